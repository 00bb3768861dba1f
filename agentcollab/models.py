"""
agentcollab - Data models for agents, collaboration and workflows.
"""

import random
import string
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

MAX_HISTORY = 100
INITIAL_TRUST = 0.5
DEFAULT_CONFIDENCE = 0.8
DEGRADED_CONFIDENCE = 0.1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id(prefix: str) -> str:
    """Return ``<prefix>_<epoch millis>_<9 random base36 chars>``."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _string_list(value: Any) -> list[str]:
    """Coerce a dependency field to a list; a bare string is one entry."""
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return []


class CollaborationStyle(str, Enum):
    """How an agent positions itself when working with others."""

    LEADER = "leader"
    SUPPORTER = "supporter"
    ANALYST = "analyst"
    EXECUTOR = "executor"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowStatus(str, Enum):
    """Lifecycle of a workflow: pending -> in_progress -> completed | failed."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class CollaborationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


# ==================== Agent Identity & Memory ====================


@dataclass
class AgentCapabilities:
    """Fixed capability set declared by an agent persona."""

    frameworks: list[str] = field(default_factory=list)
    specializations: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    collaboration_style: CollaborationStyle = CollaborationStyle.SUPPORTER

    def to_dict(self) -> dict[str, Any]:
        return {
            "frameworks": list(self.frameworks),
            "specializations": list(self.specializations),
            "tools": list(self.tools),
            "collaboration_style": self.collaboration_style.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgentCapabilities":
        return cls(
            frameworks=data.get("frameworks", []),
            specializations=data.get("specializations", []),
            tools=data.get("tools", []),
            collaboration_style=CollaborationStyle(
                data.get("collaboration_style", "supporter")
            ),
        )


@dataclass
class HistoryEntry:
    """One remembered interaction in an agent's bounded history."""

    interaction: str
    outcome: str
    learning: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "interaction": self.interaction,
            "outcome": self.outcome,
            "learning": self.learning,
        }


@dataclass
class LearnedPattern:
    """A persona-specific observation extracted from an interaction."""

    kind: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "details": dict(self.details),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class CollaborationEvent:
    """A single collaboration outcome in a relationship's history."""

    interaction: Any
    outcome: dict[str, Any]
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "interaction": self.interaction,
            "outcome": dict(self.outcome),
        }


@dataclass
class Relationship:
    """An agent's view of another agent, built from collaboration outcomes."""

    agent_id: str
    collaboration_history: list[CollaborationEvent] = field(default_factory=list)
    trust_level: float = INITIAL_TRUST
    specialization: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "collaboration_history": [e.to_dict() for e in self.collaboration_history],
            "trust_level": self.trust_level,
            "specialization": self.specialization,
        }


@dataclass
class AgentMemory:
    """
    Mutable memory owned by one agent.

    ``history`` is bounded to MAX_HISTORY entries; appending beyond the bound
    evicts the oldest entry. ``context`` holds free-form extension data while
    persona learning goes to the typed ``patterns`` lists.
    """

    user_id: str
    context: dict[str, Any] = field(default_factory=dict)
    preferences: dict[str, Any] = field(default_factory=dict)
    history: deque = field(default_factory=lambda: deque(maxlen=MAX_HISTORY))
    relationships: dict[str, Relationship] = field(default_factory=dict)
    patterns: dict[str, list[LearnedPattern]] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.history, deque) or self.history.maxlen != MAX_HISTORY:
            self.history = deque(self.history, maxlen=MAX_HISTORY)

    def recent_interactions(self, count: int = 3) -> list[str]:
        return [h.interaction for h in list(self.history)[-count:]]

    def add_pattern(self, key: str, pattern: LearnedPattern) -> None:
        self.patterns.setdefault(key, []).append(pattern)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "context": dict(self.context),
            "preferences": dict(self.preferences),
            "history": [h.to_dict() for h in self.history],
            "relationships": {k: r.to_dict() for k, r in self.relationships.items()},
            "patterns": {
                k: [p.to_dict() for p in items] for k, items in self.patterns.items()
            },
        }


# ==================== Tasks & Responses ====================


@dataclass
class Task:
    """A unit of follow-up work proposed by an agent."""

    type: str
    assigned_to: str
    expected_outcome: str
    priority: TaskPriority = TaskPriority.MEDIUM
    dependencies: list[str] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)
    deadline: Optional[datetime] = None
    status: TaskStatus = TaskStatus.PENDING
    id: str = field(default_factory=lambda: generate_id("task"))

    def __post_init__(self):
        self.priority = TaskPriority(self.priority)
        self.status = TaskStatus(self.status)
        # dependencies behave as a set but keep their declared order
        self.dependencies = list(dict.fromkeys(_string_list(self.dependencies)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "priority": self.priority.value,
            "assigned_to": self.assigned_to,
            "dependencies": list(self.dependencies),
            "context": dict(self.context),
            "expected_outcome": self.expected_outcome,
            "deadline": _isoformat(self.deadline),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], default_assignee: Optional[str] = None
    ) -> "Task":
        priority = data.get("priority", "medium")
        try:
            priority = TaskPriority(str(priority).lower())
        except ValueError:
            priority = TaskPriority.MEDIUM

        expected = (
            data.get("expected_outcome")
            or data.get("expectedOutcome")
            or data.get("description")
            or ""
        )
        kwargs: dict[str, Any] = {}
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(
            type=data.get("type", "general"),
            assigned_to=data.get("assigned_to")
            or data.get("assignedTo")
            or default_assignee
            or "",
            expected_outcome=expected,
            priority=priority,
            dependencies=_string_list(data.get("dependencies") or data.get("depends_on")),
            context=data.get("context") or {},
            deadline=_parse_datetime(data.get("deadline")),
            status=TaskStatus(data.get("status", "pending")),
            **kwargs,
        )


@dataclass(frozen=True)
class CollaborationRequest:
    """An agent's ask for another agent's input."""

    agent_id: str
    request: str
    priority: str = "medium"

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "request": self.request,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CollaborationRequest":
        return cls(
            agent_id=data.get("agent_id") or data.get("agentId") or "",
            request=data.get("request", ""),
            priority=data.get("priority", "medium"),
        )


@dataclass(frozen=True)
class StructuredResponse:
    """
    An agent's answer to a request. Immutable once created.

    ``confidence`` is clamped to [0, 1]. ``degraded`` marks the low-confidence
    fallback produced when text generation fails.
    """

    content: str
    confidence: float = DEFAULT_CONFIDENCE
    reasoning: str = ""
    suggested_actions: tuple[str, ...] = ()
    collaboration_requests: tuple[CollaborationRequest, ...] = ()
    follow_up_tasks: tuple[Task, ...] = ()
    agent_id: Optional[str] = None
    degraded: bool = False

    def __post_init__(self):
        object.__setattr__(self, "confidence", clamp(float(self.confidence)))
        object.__setattr__(self, "suggested_actions", tuple(self.suggested_actions))
        object.__setattr__(
            self, "collaboration_requests", tuple(self.collaboration_requests)
        )
        object.__setattr__(self, "follow_up_tasks", tuple(self.follow_up_tasks))

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "content": self.content,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "suggested_actions": list(self.suggested_actions),
            "collaboration_requests": [r.to_dict() for r in self.collaboration_requests],
            "follow_up_tasks": [t.to_dict() for t in self.follow_up_tasks],
            "degraded": self.degraded,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StructuredResponse":
        agent_id = data.get("agent_id")
        return cls(
            content=data.get("content", ""),
            confidence=data.get("confidence", DEFAULT_CONFIDENCE),
            reasoning=data.get("reasoning", ""),
            suggested_actions=data.get("suggested_actions", []),
            collaboration_requests=[
                CollaborationRequest.from_dict(r)
                for r in data.get("collaboration_requests", [])
            ],
            follow_up_tasks=[
                Task.from_dict(t, default_assignee=agent_id)
                for t in data.get("follow_up_tasks", [])
            ],
            agent_id=agent_id,
            degraded=data.get("degraded", False),
        )


# ==================== Workflows ====================


@dataclass
class WorkflowStep:
    """One agent assignment inside a workflow."""

    agent_id: str
    task: str
    dependencies: list[str] = field(default_factory=list)
    expected_outcome: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "task": self.task,
            "dependencies": list(self.dependencies),
            "expected_outcome": self.expected_outcome,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowStep":
        return cls(
            agent_id=data["agent_id"],
            task=data["task"],
            dependencies=_string_list(data.get("dependencies")),
            expected_outcome=data.get("expected_outcome") or data["task"],
        )

    @classmethod
    def from_task(cls, task: Task) -> "WorkflowStep":
        return cls(
            agent_id=task.assigned_to,
            task=task.expected_outcome,
            dependencies=list(task.dependencies),
            expected_outcome=task.expected_outcome,
        )


@dataclass
class Workflow:
    """
    A dependency-ordered batch of steps tracked as one execution unit.

    Results are keyed by agent id. ``error`` is set when the workflow fails
    and is serialized inside ``results`` under the ``"error"`` key.
    """

    name: str
    steps: list[WorkflowStep] = field(default_factory=list)
    description: str = "Multi-agent collaborative workflow"
    status: WorkflowStatus = WorkflowStatus.PENDING
    results: dict[str, StructuredResponse] = field(default_factory=dict)
    error: Optional[str] = None
    step_errors: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    # Request context the workflow was created under; passed to every step.
    context: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: generate_id("workflow"))
    created_at: datetime = field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (WorkflowStatus.COMPLETED, WorkflowStatus.FAILED)

    @property
    def agent_ids(self) -> list[str]:
        return list(dict.fromkeys(s.agent_id for s in self.steps))

    def to_dict(self) -> dict[str, Any]:
        results: dict[str, Any] = {k: v.to_dict() for k, v in self.results.items()}
        if self.error:
            results["error"] = self.error
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": [s.to_dict() for s in self.steps],
            "status": self.status.value,
            "results": results,
            "error": self.error,
            "step_errors": dict(self.step_errors),
            "skipped": list(self.skipped),
            "context": dict(self.context),
            "created_at": self.created_at.isoformat(),
            "started_at": _isoformat(self.started_at),
            "completed_at": _isoformat(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Workflow":
        results = {
            k: StructuredResponse.from_dict(v)
            for k, v in data.get("results", {}).items()
            if k != "error" and isinstance(v, dict)
        }
        error = data.get("error") or data.get("results", {}).get("error")
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            steps=[WorkflowStep.from_dict(s) for s in data.get("steps", [])],
            status=WorkflowStatus(data.get("status", "pending")),
            results=results,
            error=error,
            step_errors=dict(data.get("step_errors", {})),
            skipped=list(data.get("skipped", [])),
            context=dict(data.get("context") or {}),
            created_at=_parse_datetime(data.get("created_at")) or utcnow(),
            started_at=_parse_datetime(data.get("started_at")),
            completed_at=_parse_datetime(data.get("completed_at")),
        )


# ==================== Collaboration Bookkeeping ====================


@dataclass
class CollaborationRecord:
    """Bookkeeping for one collaboration request handled by the coordinator."""

    from_agent: str
    to_agent: str
    request: str
    priority: str = "medium"
    context: dict[str, Any] = field(default_factory=dict)
    status: CollaborationStatus = CollaborationStatus.PENDING
    response: Optional[StructuredResponse] = None
    error: Optional[str] = None
    id: str = field(default_factory=lambda: generate_id("collab"))
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from_agent": self.from_agent,
            "to_agent": self.to_agent,
            "request": self.request,
            "priority": self.priority,
            "context": dict(self.context),
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "response": self.response.to_dict() if self.response else None,
            "error": self.error,
        }


@dataclass
class WorkflowStats:
    total: int = 0
    completed: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "completed": self.completed, "failed": self.failed}


@dataclass
class CollaborationInsights:
    """Aggregate view of collaboration activity in one session."""

    total_collaborations: int = 0
    successful_collaborations: int = 0
    agent_relationships: dict[str, dict[str, Any]] = field(default_factory=dict)
    workflow_stats: WorkflowStats = field(default_factory=WorkflowStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_collaborations": self.total_collaborations,
            "successful_collaborations": self.successful_collaborations,
            "agent_relationships": self.agent_relationships,
            "workflow_stats": self.workflow_stats.to_dict(),
        }


# ==================== Training Data ====================


@dataclass
class TrainingInteraction:
    """One agent interaction captured for analytics and fine-tuning."""

    user_id: str
    agent_id: str
    user_message: str
    agent_response: str
    context: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    response_time_ms: float = 0.0
    confidence: float = 0.0
    collaboration_requests: list[str] = field(default_factory=list)
    follow_up_tasks: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    user_rating: Optional[float] = None
    user_feedback: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "agent_id": self.agent_id,
            "timestamp": self.timestamp.isoformat(),
            "user_message": self.user_message,
            "agent_response": self.agent_response,
            "context": self.context,
            "success": self.success,
            "response_time_ms": self.response_time_ms,
            "confidence": self.confidence,
            "collaboration_requests": list(self.collaboration_requests),
            "follow_up_tasks": list(self.follow_up_tasks),
            "metadata": dict(self.metadata),
            "user_rating": self.user_rating,
            "user_feedback": self.user_feedback,
        }
