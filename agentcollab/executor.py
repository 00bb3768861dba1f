"""
agentcollab - Workflow execution.

Steps run in rounds. Each round launches every step whose dependencies are
satisfied, concurrently, and waits for all of them before the next round is
computed. A step that depends on an agent therefore never starts before that
agent's step has settled.
"""

import asyncio
import logging
from typing import Optional

from .exceptions import WorkflowExecutionError, WorkflowNotFoundError, WorkflowStateError
from .models import StructuredResponse, Workflow, WorkflowStatus, WorkflowStep, utcnow
from .registry import AgentRegistry
from .store import WorkflowStore

logger = logging.getLogger("agentcollab.executor")

UNSATISFIABLE_MESSAGE = "Workflow has circular dependencies or missing dependencies"


class WorkflowExecutor:
    """
    Runs stored workflows against the agents of one registry.

    By default the first failing round fails the whole workflow and its
    results are discarded. With ``isolate_failures`` a failing step only
    takes down the steps that depend on it; successful siblings are kept.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        store: WorkflowStore,
        step_timeout: Optional[float] = None,
        isolate_failures: bool = False,
    ):
        self.registry = registry
        self.store = store
        self.step_timeout = step_timeout
        self.isolate_failures = isolate_failures
        # ids claimed by a running execute_workflow call
        self._running: set[str] = set()

    async def execute_workflow(
        self, workflow_id: str, timeout: Optional[float] = None
    ) -> Workflow:
        """
        Execute a pending workflow and return it in a terminal state.

        Step failures are recorded on the workflow, not raised.

        Raises:
            WorkflowNotFoundError: No workflow with this id
            WorkflowStateError: The workflow is not pending or is already running
        """
        if workflow_id in self._running:
            raise WorkflowStateError(
                f"Workflow {workflow_id} is already running",
                current_status=WorkflowStatus.IN_PROGRESS.value,
                status_code=409,
            )
        self._running.add(workflow_id)
        try:
            return await self._execute(workflow_id, timeout)
        finally:
            self._running.discard(workflow_id)

    async def _execute(self, workflow_id: str, timeout: Optional[float]) -> Workflow:
        workflow = await self.store.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found", status_code=404)
        if workflow.status != WorkflowStatus.PENDING:
            raise WorkflowStateError(
                f"Workflow {workflow_id} is {workflow.status.value}; only pending "
                "workflows can be executed",
                current_status=workflow.status.value,
                status_code=409,
            )

        workflow.status = WorkflowStatus.IN_PROGRESS
        workflow.started_at = utcnow()
        await self.store.save(workflow)
        logger.info(f"Executing workflow {workflow.id} ({len(workflow.steps)} steps)")

        try:
            if timeout is not None:
                await asyncio.wait_for(self._run(workflow), timeout)
            else:
                await self._run(workflow)
        except asyncio.CancelledError:
            self._fail(workflow, "Workflow execution cancelled")
            await self.store.save(workflow)
            raise
        except asyncio.TimeoutError:
            self._fail(workflow, f"Workflow timed out after {timeout}s")
        except WorkflowExecutionError as e:
            self._fail(workflow, str(e))
        except Exception as e:
            logger.exception(f"Workflow {workflow.id} failed: {e}")
            self._fail(workflow, str(e))

        workflow.completed_at = utcnow()
        await self.store.save(workflow)
        logger.info(f"Workflow {workflow.id} finished: {workflow.status.value}")
        return workflow

    def _fail(self, workflow: Workflow, message: str) -> None:
        workflow.status = WorkflowStatus.FAILED
        workflow.error = message
        workflow.completed_at = utcnow()
        logger.warning(f"Workflow {workflow.id} failed: {message}")

    async def _run(self, workflow: Workflow) -> None:
        completed: set[str] = set()
        failed: set[str] = set()
        remaining = list(workflow.steps)

        while remaining:
            if self.isolate_failures:
                self._skip_blocked(workflow, remaining, failed)
                if not remaining:
                    break

            ready = [s for s in remaining if set(s.dependencies) <= completed]
            if not ready:
                blocked = ", ".join(
                    f"{s.agent_id} (waiting on {', '.join(sorted(set(s.dependencies) - completed))})"
                    for s in remaining
                )
                raise WorkflowExecutionError(f"{UNSATISFIABLE_MESSAGE}: {blocked}")

            logger.debug(
                f"Workflow {workflow.id}: running round with "
                f"{', '.join(s.agent_id for s in ready)}"
            )
            outcomes = await asyncio.gather(
                *(self._run_step(workflow, step) for step in ready),
                return_exceptions=True,
            )

            if not self.isolate_failures:
                for step, outcome in zip(ready, outcomes):
                    if isinstance(outcome, BaseException):
                        raise WorkflowExecutionError(str(outcome), agent_id=step.agent_id)

            for step, outcome in zip(ready, outcomes):
                remaining.remove(step)
                if isinstance(outcome, BaseException):
                    logger.warning(
                        f"Workflow {workflow.id}: step for {step.agent_id} failed: {outcome}"
                    )
                    workflow.step_errors[step.agent_id] = str(outcome)
                    failed.add(step.agent_id)
                else:
                    workflow.results[step.agent_id] = outcome
                    completed.add(step.agent_id)

            await self.store.save(workflow)

        if workflow.step_errors or workflow.skipped:
            self._fail(
                workflow,
                f"{len(workflow.step_errors)} step(s) failed, "
                f"{len(workflow.skipped)} skipped: "
                + "; ".join(f"{k}: {v}" for k, v in workflow.step_errors.items()),
            )
        else:
            workflow.status = WorkflowStatus.COMPLETED

    def _skip_blocked(
        self, workflow: Workflow, remaining: list[WorkflowStep], failed: set[str]
    ) -> None:
        """Remove steps that transitively depend on a failed agent."""
        changed = True
        while changed:
            changed = False
            for step in list(remaining):
                if failed.intersection(step.dependencies):
                    remaining.remove(step)
                    workflow.skipped.append(step.agent_id)
                    failed.add(step.agent_id)
                    changed = True
                    logger.warning(
                        f"Workflow {workflow.id}: skipping {step.agent_id}, "
                        "a dependency failed"
                    )

    async def _run_step(self, workflow: Workflow, step: WorkflowStep) -> StructuredResponse:
        agent = self.registry.get(step.agent_id)
        context = {**workflow.context, "workflow_id": workflow.id, "step_id": step.agent_id}
        call = agent.process_request(step.task, context)
        if self.step_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, self.step_timeout)
        except asyncio.TimeoutError:
            raise WorkflowExecutionError(
                f"Step for {step.agent_id} timed out after {self.step_timeout}s",
                agent_id=step.agent_id,
            )
