"""
agentcollab - Streaming events.

Chat and workflow execution results can be delivered incrementally as
Server-Sent Events. Every stream ends with a ``done`` event whose SSE data is
the literal ``[DONE]``.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Iterable, Iterator, Optional

from .models import StructuredResponse, Workflow, WorkflowStatus

DONE_SENTINEL = "[DONE]"


class ChatEventType(str, Enum):
    PRIMARY_RESPONSE = "primary_response"
    COLLABORATION_RESPONSE = "collaboration_response"
    WORKFLOW_CREATED = "workflow_created"
    WORKFLOW_STATUS = "workflow_status"
    STEP_RESULT = "step_result"
    WORKFLOW_COMPLETE = "workflow_complete"
    WORKFLOW_ERROR = "workflow_error"
    ERROR = "error"
    DONE = "done"


@dataclass
class ChatEvent:
    """One event in a chat or workflow stream."""

    type: ChatEventType
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_done(self) -> bool:
        return self.type == ChatEventType.DONE

    def to_sse(self) -> dict[str, str]:
        """Format for ``sse_starlette.EventSourceResponse``."""
        if self.is_done:
            return {"event": self.type.value, "data": DONE_SENTINEL}
        return {"event": self.type.value, "data": json.dumps(self.data, default=str)}

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "data": self.data}

    @classmethod
    def from_raw(cls, event_type: Optional[str], data_str: str) -> "ChatEvent":
        if data_str.strip() == DONE_SENTINEL:
            return cls(type=ChatEventType.DONE)
        try:
            data = json.loads(data_str) if data_str else {}
        except json.JSONDecodeError:
            data = {"raw": data_str}
        if event_type is None and isinstance(data, dict) and "type" in data:
            event_type = data.pop("type")
        return cls(type=ChatEventType(event_type or "error"), data=data)

    @classmethod
    def done(cls) -> "ChatEvent":
        return cls(type=ChatEventType.DONE)

    @classmethod
    def primary(cls, agent_id: str, response: StructuredResponse) -> "ChatEvent":
        return cls(
            type=ChatEventType.PRIMARY_RESPONSE,
            data={
                "agent_id": agent_id,
                "content": response.content,
                "confidence": response.confidence,
                "reasoning": response.reasoning,
                "suggested_actions": list(response.suggested_actions),
            },
        )

    @classmethod
    def collaboration(cls, index: int, response: StructuredResponse) -> "ChatEvent":
        return cls(
            type=ChatEventType.COLLABORATION_RESPONSE,
            data={
                "index": index,
                "agent_id": response.agent_id,
                "content": response.content,
                "confidence": response.confidence,
                "reasoning": response.reasoning,
            },
        )

    @classmethod
    def workflow_created(cls, workflow: Workflow) -> "ChatEvent":
        return cls(
            type=ChatEventType.WORKFLOW_CREATED,
            data={
                "workflow_id": workflow.id,
                "name": workflow.name,
                "steps": len(workflow.steps),
            },
        )


def workflow_events(workflow: Workflow) -> Iterator[ChatEvent]:
    """Events describing a finished workflow execution, ending with ``done``."""
    yield ChatEvent(
        type=ChatEventType.WORKFLOW_STATUS,
        data={"workflow_id": workflow.id, "status": workflow.status.value},
    )
    for agent_id, result in workflow.results.items():
        yield ChatEvent(
            type=ChatEventType.STEP_RESULT,
            data={"agent_id": agent_id, "result": result.to_dict()},
        )
    if workflow.status == WorkflowStatus.COMPLETED:
        yield ChatEvent(
            type=ChatEventType.WORKFLOW_COMPLETE,
            data={"workflow_id": workflow.id, "status": workflow.status.value},
        )
    else:
        yield ChatEvent(
            type=ChatEventType.WORKFLOW_ERROR,
            data={"workflow_id": workflow.id, "error": workflow.error},
        )
    yield ChatEvent.done()


# ==================== Parsing ====================


class SSEParser:
    """
    Incremental parser for ``text/event-stream`` lines.

    Feed lines one at a time; a blank line completes an event.
    """

    def __init__(self):
        self._event_type: Optional[str] = None
        self._data: list[str] = []

    def feed(self, line: str) -> Optional[ChatEvent]:
        line = line.rstrip("\r\n")
        if not line:
            if not self._data:
                self._event_type = None
                return None
            event = ChatEvent.from_raw(self._event_type, "\n".join(self._data))
            self._event_type = None
            self._data = []
            return event
        if line.startswith(":"):
            return None
        if line.startswith("event:"):
            self._event_type = line[6:].strip()
        elif line.startswith("data:"):
            self._data.append(line[5:].lstrip())
        return None

    def flush(self) -> Optional[ChatEvent]:
        return self.feed("")


def parse_sse_lines(lines: Iterable[str]) -> Iterator[ChatEvent]:
    """Parse SSE lines, stopping after the ``done`` event."""
    parser = SSEParser()
    for line in lines:
        event = parser.feed(line)
        if event is not None:
            yield event
            if event.is_done:
                return
    event = parser.flush()
    if event is not None:
        yield event


async def aparse_sse_lines(lines: AsyncIterator[str]) -> AsyncIterator[ChatEvent]:
    parser = SSEParser()
    async for line in lines:
        event = parser.feed(line)
        if event is not None:
            yield event
            if event.is_done:
                return
    event = parser.flush()
    if event is not None:
        yield event
