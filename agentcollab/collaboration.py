"""
agentcollab - Fan-out of collaboration requests between agents.
"""

import logging
from typing import Any, AsyncIterator, Iterable, Optional

from .models import (
    CollaborationRecord,
    CollaborationRequest,
    CollaborationStatus,
    StructuredResponse,
)
from .registry import AgentRegistry

logger = logging.getLogger("agentcollab.collaboration")


class CollaborationCoordinator:
    """
    Resolves the collaboration requests attached to an agent's response.

    Requests are handled one at a time, in order. A request naming an unknown
    agent is skipped with a warning; a request whose target raises is logged
    and penalizes the target's trust toward the requester. Neither stops the
    remaining requests.
    """

    def __init__(self, registry: AgentRegistry, request_timeout: Optional[float] = None):
        self.registry = registry
        self.request_timeout = request_timeout
        self.records: list[CollaborationRecord] = []

    @property
    def total_collaborations(self) -> int:
        return len(self.records)

    @property
    def successful_collaborations(self) -> int:
        return sum(1 for r in self.records if r.status == CollaborationStatus.COMPLETED)

    async def handle_collaboration_requests(
        self,
        requests: Iterable[CollaborationRequest],
        requesting_agent_id: str,
        context: Optional[dict[str, Any]] = None,
    ) -> list[StructuredResponse]:
        return [
            response
            async for _, response in self.iter_collaboration_requests(
                requests, requesting_agent_id, context
            )
        ]

    async def iter_collaboration_requests(
        self,
        requests: Iterable[CollaborationRequest],
        requesting_agent_id: str,
        context: Optional[dict[str, Any]] = None,
    ) -> AsyncIterator[tuple[int, StructuredResponse]]:
        """Yield ``(index, response)`` for each request that produced a response."""
        index = 0
        for request in requests:
            record = CollaborationRecord(
                from_agent=requesting_agent_id,
                to_agent=request.agent_id,
                request=request.request,
                priority=request.priority,
                context=dict(context or {}),
            )
            self.records.append(record)

            target = self.registry.find(request.agent_id)
            if target is None:
                logger.warning(
                    f"Collaboration target {request.agent_id} not found, "
                    f"skipping request from {requesting_agent_id}"
                )
                record.status = CollaborationStatus.SKIPPED
                continue

            record.status = CollaborationStatus.IN_PROGRESS
            try:
                response = await target.collaborate_with(
                    requesting_agent_id, request.request, timeout=self.request_timeout
                )
            except Exception as e:
                logger.exception(
                    f"Collaboration with {request.agent_id} failed: {e}"
                )
                record.status = CollaborationStatus.FAILED
                record.error = str(e)
                target.update_relationship(
                    requesting_agent_id,
                    request.request,
                    {"success": False, "error": str(e)},
                )
                continue

            record.status = CollaborationStatus.COMPLETED
            record.response = response
            target.update_relationship(
                requesting_agent_id, request.request, {"success": True}
            )
            yield index, response
            index += 1
