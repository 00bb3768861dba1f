"""
agentcollab - Workflow storage.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .models import Workflow, WorkflowStatus


class WorkflowStore(ABC):
    """Where workflows live between creation and execution."""

    @abstractmethod
    async def save(self, workflow: Workflow) -> None:
        """Insert or replace a workflow."""

    @abstractmethod
    async def get(self, workflow_id: str) -> Optional[Workflow]:
        """Return a workflow, or None if it does not exist."""

    @abstractmethod
    async def list(
        self, status: Optional[WorkflowStatus] = None, limit: int = 100
    ) -> list[Workflow]:
        """Return workflows, newest first."""


class InMemoryWorkflowStore(WorkflowStore):
    """Process-local store. Holds the live Workflow objects."""

    def __init__(self):
        self._workflows: dict[str, Workflow] = {}

    async def save(self, workflow: Workflow) -> None:
        self._workflows[workflow.id] = workflow

    async def get(self, workflow_id: str) -> Optional[Workflow]:
        return self._workflows.get(workflow_id)

    async def list(
        self, status: Optional[WorkflowStatus] = None, limit: int = 100
    ) -> list[Workflow]:
        workflows = [
            w for w in self._workflows.values() if status is None or w.status == status
        ]
        workflows.sort(key=lambda w: w.created_at, reverse=True)
        return workflows[:limit]
