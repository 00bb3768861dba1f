"""
agentcollab - Workflow creation.

Workflows come from two places: the follow-up tasks agents attach to their
responses (``WorkflowBuilder``) and declarative YAML files (``WorkflowSpec``).

Example:
    from agentcollab.workflow import WorkflowSpec

    spec = WorkflowSpec.from_yaml("launch.yaml")
    workflow = await spec.run(system)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

import yaml

from .exceptions import WorkflowNotFoundError, WorkflowValidationError
from .models import StructuredResponse, Workflow, WorkflowStep
from .store import WorkflowStore
from .validation import InputValidationError, validate_required, validate_workflow_steps

if TYPE_CHECKING:
    from .system import CollaborationSystem

logger = logging.getLogger("agentcollab.workflow")

SPEC_VERSION_FIELD = "agentcollab"
DEFAULT_DESCRIPTION = "Multi-agent collaborative workflow"


# ==================== Builder ====================


class WorkflowBuilder:
    """Decides when agent responses warrant a workflow and materializes it."""

    def __init__(self, store: WorkflowStore):
        self.store = store

    def should_create_workflow(
        self,
        primary: StructuredResponse,
        collaboration_responses: Sequence[StructuredResponse],
    ) -> bool:
        return len(primary.follow_up_tasks) > 0 or len(collaboration_responses) > 1

    async def create_workflow(
        self,
        primary: StructuredResponse,
        collaboration_responses: Sequence[StructuredResponse],
        context: Optional[dict[str, Any]] = None,
    ) -> Workflow:
        steps = [WorkflowStep.from_task(task) for task in primary.follow_up_tasks]
        for response in collaboration_responses:
            steps.extend(WorkflowStep.from_task(task) for task in response.follow_up_tasks)

        timestamp = datetime.now(timezone.utc).isoformat()
        workflow = Workflow(
            name=f"Collaborative Workflow - {timestamp}",
            description=DEFAULT_DESCRIPTION,
            steps=steps,
            context=dict(context or {}),
        )
        self._warn_on_foreign_dependencies(workflow)
        await self.store.save(workflow)
        logger.info(f"Created workflow {workflow.id} with {len(steps)} steps")
        return workflow

    async def create_custom_workflow(
        self,
        name: str,
        steps: Sequence[Union[WorkflowStep, dict[str, Any]]],
        description: str = DEFAULT_DESCRIPTION,
    ) -> Workflow:
        """Create a workflow from caller-supplied steps."""
        validate_required(name, "name")
        if not steps:
            raise InputValidationError("steps must be a non-empty list", field="steps")
        raw = [s for s in steps if isinstance(s, dict)]
        if raw:
            validate_workflow_steps(raw)

        workflow = Workflow(
            name=name,
            description=description,
            steps=[s if isinstance(s, WorkflowStep) else WorkflowStep.from_dict(s) for s in steps],
        )
        self._warn_on_foreign_dependencies(workflow)
        await self.store.save(workflow)
        logger.info(f"Created workflow {workflow.id} ({name}) with {len(workflow.steps)} steps")
        return workflow

    def _warn_on_foreign_dependencies(self, workflow: Workflow) -> None:
        agents = set(workflow.agent_ids)
        for step in workflow.steps:
            missing = [d for d in step.dependencies if d not in agents]
            if missing:
                logger.warning(
                    f"Workflow {workflow.id}: step for {step.agent_id} depends on "
                    f"{', '.join(missing)}, which no step in the workflow provides"
                )


# ==================== Declarative Spec ====================


@dataclass
class StepConfig:
    """A single step declared in a workflow file."""

    name: str
    assign: str
    task: str
    expected_outcome: str = ""
    depends_on: list[str] = field(default_factory=list)


@dataclass
class WorkflowSpec:
    """
    Parsed and validated workflow file.

    Load from YAML:
        spec = WorkflowSpec.from_yaml("workflow.yaml")

    Convert to steps:
        steps = spec.to_steps()

    Run on a collaboration system:
        workflow = await spec.run(system)
    """

    version: str
    name: str
    description: str = DEFAULT_DESCRIPTION
    steps: list[StepConfig] = field(default_factory=list)
    source_path: Optional[Path] = None

    @classmethod
    def from_yaml(cls, path: str | Path) -> "WorkflowSpec":
        """
        Load and validate a workflow from a YAML file.

        Raises:
            WorkflowNotFoundError: File not found
            WorkflowValidationError: Invalid YAML structure
        """
        path = Path(path)
        if not path.exists():
            raise WorkflowNotFoundError(f"Workflow file not found: {path}")

        with open(path, "r") as f:
            content = f.read()
        return cls.from_string(content, source_name=str(path))

    @classmethod
    def from_string(cls, yaml_content: str, source_name: str = "<string>") -> "WorkflowSpec":
        """Load and validate a workflow from a YAML string."""
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise WorkflowValidationError(
                f"Invalid YAML syntax: {e}",
                suggestion="Check your YAML indentation and syntax",
            )

        if not isinstance(data, dict):
            raise WorkflowValidationError(
                "Workflow must be a YAML object",
                suggestion="Your YAML file should start with 'agentcollab: \"1.0\"'",
            )

        spec = cls._parse(data, Path(source_name))
        spec._validate()
        return spec

    @classmethod
    def _parse(cls, data: dict, source_path: Path) -> "WorkflowSpec":
        version = data.get(SPEC_VERSION_FIELD)
        if not version:
            raise WorkflowValidationError(
                f"Missing '{SPEC_VERSION_FIELD}' version field",
                path=SPEC_VERSION_FIELD,
                suggestion="Add 'agentcollab: \"1.0\"' at the top of your file",
            )

        info = data.get("info", {})
        if not isinstance(info, dict):
            raise WorkflowValidationError(
                "'info' must be an object",
                path="info",
                suggestion='info:\n  name: "My Workflow"\n  description: "..."',
            )

        name = info.get("name")
        if not name:
            raise WorkflowValidationError(
                "Missing workflow name",
                path="info.name",
                suggestion="Add 'name: \"My Workflow\"' under 'info:'",
            )

        workflow = data.get("workflow")
        if not workflow or not isinstance(workflow, dict):
            raise WorkflowValidationError(
                "Missing 'workflow' section",
                path="workflow",
                suggestion="Add a 'workflow:' section mapping step names to steps",
            )

        steps = []
        for step_name, step_data in workflow.items():
            path = f"workflow.{step_name}"
            if not isinstance(step_data, dict):
                raise WorkflowValidationError(f"Step '{step_name}' must be an object", path=path)

            assign = step_data.get("assign")
            if not assign:
                raise WorkflowValidationError(
                    f"Step '{step_name}' missing 'assign' field",
                    path=f"{path}.assign",
                    suggestion="Add 'assign: agent-id' to specify which agent handles this step",
                )

            depends_on = step_data.get("depends_on", [])
            if isinstance(depends_on, str):
                depends_on = [depends_on]
            if not isinstance(depends_on, list):
                raise WorkflowValidationError(
                    "'depends_on' must be a list",
                    path=f"{path}.depends_on",
                    suggestion="depends_on: [research, analysis]",
                )

            task = step_data.get("task") or step_data.get("title") or str(step_name).replace("_", " ").title()
            steps.append(
                StepConfig(
                    name=str(step_name),
                    assign=str(assign),
                    task=task,
                    expected_outcome=step_data.get("expected_outcome", task),
                    depends_on=[str(d) for d in depends_on],
                )
            )

        return cls(
            version=str(version),
            name=name,
            description=info.get("description", DEFAULT_DESCRIPTION),
            steps=steps,
            source_path=source_path,
        )

    def _validate(self) -> None:
        step_names = {s.name for s in self.steps}
        agent_ids = {s.assign for s in self.steps}

        for step in self.steps:
            for dep in step.depends_on:
                if dep not in step_names and dep not in agent_ids:
                    raise WorkflowValidationError(
                        f"Step '{step.name}' depends on unknown step '{dep}'",
                        path=f"workflow.{step.name}.depends_on",
                        suggestion=f"Available steps: {', '.join(sorted(step_names))}",
                    )

        self._check_circular_deps()

    def _resolve(self, dep: str) -> str:
        """Map a dependency (step name or agent id) to an agent id."""
        for step in self.steps:
            if step.name == dep:
                return step.assign
        return dep

    def _check_circular_deps(self) -> None:
        # Execution is keyed by agent id, so cycles are checked on agents.
        graph: dict[str, set[str]] = {}
        for step in self.steps:
            graph.setdefault(step.assign, set()).update(
                self._resolve(d) for d in step.depends_on
            )

        visited: set[str] = set()
        rec_stack: set[str] = set()

        def dfs(node: str, path: list[str]) -> None:
            visited.add(node)
            rec_stack.add(node)

            for neighbor in graph.get(node, ()):
                if neighbor in rec_stack:
                    cycle = " -> ".join(path + [node, neighbor])
                    raise WorkflowValidationError(
                        f"Circular dependency detected: {cycle}",
                        suggestion="Remove one of the dependencies to break the cycle",
                    )
                if neighbor not in visited:
                    dfs(neighbor, path + [node])

            rec_stack.remove(node)

        for node in graph:
            if node not in visited:
                dfs(node, [])

    def to_steps(self) -> list[WorkflowStep]:
        """Convert declared steps to workflow steps keyed by agent id."""
        steps = []
        for step in self.steps:
            dependencies = list(dict.fromkeys(self._resolve(d) for d in step.depends_on))
            steps.append(
                WorkflowStep(
                    agent_id=step.assign,
                    task=step.task,
                    dependencies=dependencies,
                    expected_outcome=step.expected_outcome,
                )
            )
        return steps

    async def run(self, system: "CollaborationSystem", timeout: Optional[float] = None) -> Workflow:
        """Create this workflow on a collaboration system and execute it."""
        workflow = await system.create_workflow_from_spec(self)
        return await system.execute_workflow(workflow.id, timeout=timeout)

    def __repr__(self) -> str:
        return f"WorkflowSpec(name={self.name!r}, steps={len(self.steps)})"


def validate_workflow(
    path: str | Path, known_agents: Optional[Sequence[str]] = None
) -> list[str]:
    """
    Validate a workflow file and return any warnings.

    Raises:
        WorkflowValidationError: If the workflow is invalid
    """
    spec = WorkflowSpec.from_yaml(path)

    warnings = []
    if known_agents is not None:
        for step in spec.steps:
            if step.assign not in known_agents:
                warnings.append(f"Step '{step.name}' is assigned to unknown agent '{step.assign}'")

    for step in spec.steps:
        if step.expected_outcome == step.task:
            warnings.append(f"Step '{step.name}' has no expected_outcome")

    return warnings
