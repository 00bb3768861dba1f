"""
agentcollab - Orchestration entry point.

A CollaborationSystem owns everything that belongs to one user session: the
agents, their memory, the workflows they spawn and the collaboration
bookkeeping. Nothing is shared between sessions.

Usage:
    ```python
    from agentcollab import CollaborationSystem, ProviderGenerator

    system = CollaborationSystem("user-1", ProviderGenerator())
    result = await system.handle_chat_request("Should I raise prices?")
    if result.workflow:
        workflow = await system.execute_workflow(result.workflow.id)
    ```
"""

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional, Sequence, Union

from .agents import DEFAULT_TRAINING_TIMEOUT, Agent
from .collaboration import CollaborationCoordinator
from .exceptions import WorkflowNotFoundError, WorkflowValidationError
from .executor import WorkflowExecutor
from .llm import TextGenerator
from .models import (
    CollaborationInsights,
    StructuredResponse,
    Workflow,
    WorkflowStats,
    WorkflowStatus,
    WorkflowStep,
)
from .personas import create_default_registry
from .registry import AgentRegistry
from .routing import RequestRouter
from .store import InMemoryWorkflowStore, WorkflowStore
from .streaming import ChatEvent, workflow_events
from .training import TrainingCollector, TrainingMetrics
from .validation import validate_chat_request
from .workflow import DEFAULT_DESCRIPTION, WorkflowBuilder

if TYPE_CHECKING:
    from .workflow import WorkflowSpec

logger = logging.getLogger("agentcollab.system")


@dataclass
class ChatResult:
    """Everything produced by one chat request."""

    primary_agent_id: str
    primary_response: StructuredResponse
    collaboration_responses: list[StructuredResponse] = field(default_factory=list)
    workflow: Optional[Workflow] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary_agent_id": self.primary_agent_id,
            "primary_response": self.primary_response.to_dict(),
            "collaboration_responses": [r.to_dict() for r in self.collaboration_responses],
            "workflow": self.workflow.to_dict() if self.workflow else None,
        }


class CollaborationSystem:
    """
    Routes chat requests to agents, resolves their collaboration requests and
    creates and executes the workflows they propose.

    Args:
        user_id: Session owner. Every agent's memory is scoped to it.
        generator: Text generation capability shared by the agents.
        registry: Pre-built agents. Defaults to the eight built-in personas.
        store: Workflow storage. Defaults to an in-memory store.
        training_collector: Optional sink for training interactions.
        model: Overrides every persona's default model id.
        request_timeout: Bound on each agent call made for a chat request.
        step_timeout: Bound on each workflow step.
        isolate_failures: Keep successful workflow steps when a sibling fails.
    """

    def __init__(
        self,
        user_id: str,
        generator: TextGenerator,
        registry: Optional[AgentRegistry] = None,
        store: Optional[WorkflowStore] = None,
        training_collector: Optional[TrainingCollector] = None,
        router: Optional[RequestRouter] = None,
        model: Optional[str] = None,
        request_timeout: Optional[float] = None,
        step_timeout: Optional[float] = None,
        isolate_failures: bool = False,
        training_timeout: float = DEFAULT_TRAINING_TIMEOUT,
    ):
        self.user_id = user_id
        self.training_collector = training_collector
        if registry is None:
            registry = create_default_registry(
                user_id,
                generator,
                training_collector=training_collector,
                model=model,
                training_timeout=training_timeout,
            )
        self.registry = registry
        self.store = store or InMemoryWorkflowStore()
        self.router = router or RequestRouter()
        self.request_timeout = request_timeout
        self.coordinator = CollaborationCoordinator(self.registry, request_timeout)
        self.builder = WorkflowBuilder(self.store)
        self.executor = WorkflowExecutor(
            self.registry,
            self.store,
            step_timeout=step_timeout,
            isolate_failures=isolate_failures,
        )

    # ==================== Chat ====================

    def resolve_agent(
        self,
        message: str,
        agent_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> Agent:
        """
        Validate a chat request and return the agent that should answer it.

        Raises:
            InputValidationError: Empty or malformed request
            AgentNotFoundError: An explicit agent id is not registered
        """
        validate_chat_request(message, agent_id, context)
        return self.registry.get(self.router.resolve(message, agent_id))

    async def _respond(
        self, agent: Agent, message: str, context: Optional[dict[str, Any]]
    ) -> StructuredResponse:
        started = time.monotonic()
        response = await agent.process_request(message, context, timeout=self.request_timeout)
        elapsed_ms = (time.monotonic() - started) * 1000
        success = not response.degraded

        await agent.record_training_data(
            message, response, context, response_time_ms=elapsed_ms, success=success
        )

        interaction = {"type": "chat", **(context or {}), "message": message}
        outcome: dict[str, Any] = {"success": success, "confidence": response.confidence}
        if response.degraded:
            outcome["error"] = response.content
        agent.learn_from_interaction(interaction, outcome)
        return response

    async def handle_chat_request(
        self,
        message: str,
        agent_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> ChatResult:
        """
        Answer a chat message with a primary agent and its collaborators.

        Raises:
            InputValidationError: Empty or malformed request
            AgentNotFoundError: An explicit agent id is not registered
        """
        agent = self.resolve_agent(message, agent_id, context)
        primary = await self._respond(agent, message, context)

        collaboration_responses = await self.coordinator.handle_collaboration_requests(
            primary.collaboration_requests, agent.agent_id, context
        )

        workflow = None
        if self.builder.should_create_workflow(primary, collaboration_responses):
            workflow = await self.builder.create_workflow(
                primary, collaboration_responses, context
            )

        return ChatResult(
            primary_agent_id=agent.agent_id,
            primary_response=primary,
            collaboration_responses=collaboration_responses,
            workflow=workflow,
        )

    async def stream_chat_request(
        self,
        message: str,
        agent_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> AsyncIterator[ChatEvent]:
        """Same as ``handle_chat_request`` but yields events as results arrive."""
        agent = self.resolve_agent(message, agent_id, context)
        primary = await self._respond(agent, message, context)
        yield ChatEvent.primary(agent.agent_id, primary)

        collaboration_responses = []
        async for index, response in self.coordinator.iter_collaboration_requests(
            primary.collaboration_requests, agent.agent_id, context
        ):
            collaboration_responses.append(response)
            yield ChatEvent.collaboration(index, response)

        if self.builder.should_create_workflow(primary, collaboration_responses):
            workflow = await self.builder.create_workflow(
                primary, collaboration_responses, context
            )
            yield ChatEvent.workflow_created(workflow)

        yield ChatEvent.done()

    # ==================== Agents ====================

    def get_agent(self, agent_id: str) -> dict[str, Any]:
        agent = self.registry.get(agent_id)
        return {**agent.describe(), "memory": agent.snapshot()}

    def list_agents(self) -> list[dict[str, Any]]:
        return [{**agent.describe(), "memory": agent.snapshot()} for agent in self.registry]

    def update_agent_memory(self, agent_id: str, **updates: Any) -> dict[str, Any]:
        agent = self.registry.get(agent_id)
        agent.update_memory(**updates)
        return agent.snapshot()

    # ==================== Workflows ====================

    async def get_workflow(self, workflow_id: str) -> Workflow:
        workflow = await self.store.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found", status_code=404)
        return workflow

    async def list_workflows(self, status: Optional[WorkflowStatus] = None) -> list[Workflow]:
        return await self.store.list(status=status)

    async def create_workflow(
        self,
        name: str,
        steps: Sequence[Union[WorkflowStep, dict[str, Any]]],
        description: str = DEFAULT_DESCRIPTION,
    ) -> Workflow:
        return await self.builder.create_custom_workflow(name, steps, description)

    async def create_workflow_from_spec(self, spec: "WorkflowSpec") -> Workflow:
        for step in spec.steps:
            if step.assign not in self.registry:
                raise WorkflowValidationError(
                    f"Step '{step.name}' is assigned to unknown agent '{step.assign}'",
                    path=f"workflow.{step.name}.assign",
                    suggestion=f"Available agents: {', '.join(self.registry.agent_ids)}",
                )
        return await self.builder.create_custom_workflow(
            spec.name, spec.to_steps(), spec.description
        )

    async def execute_workflow(self, workflow_id: str, timeout: Optional[float] = None) -> Workflow:
        return await self.executor.execute_workflow(workflow_id, timeout=timeout)

    async def stream_workflow_execution(
        self, workflow_id: str, timeout: Optional[float] = None
    ) -> AsyncIterator[ChatEvent]:
        workflow = await self.execute_workflow(workflow_id, timeout=timeout)
        for event in workflow_events(workflow):
            yield event

    # ==================== Insights ====================

    async def collaboration_insights(self) -> CollaborationInsights:
        workflows = await self.store.list(limit=100000)
        stats = WorkflowStats(
            total=len(workflows),
            completed=sum(1 for w in workflows if w.status == WorkflowStatus.COMPLETED),
            failed=sum(1 for w in workflows if w.status == WorkflowStatus.FAILED),
        )
        return CollaborationInsights(
            total_collaborations=self.coordinator.total_collaborations,
            successful_collaborations=self.coordinator.successful_collaborations,
            agent_relationships={
                agent.agent_id: agent.relationships.summary() for agent in self.registry
            },
            workflow_stats=stats,
        )

    async def training_metrics(self) -> TrainingMetrics:
        if self.training_collector is None:
            return TrainingMetrics()
        return await self.training_collector.metrics(user_id=self.user_id)
