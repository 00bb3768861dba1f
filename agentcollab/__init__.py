"""
agentcollab - Multi-agent collaboration for business assistants.

A team of persona agents answers chat requests, asks each other for input,
and turns proposed follow-up work into dependency-ordered workflows.
"""

from .agents import Agent, degraded_response
from .client import AgentCollabClient, AsyncAgentCollabClient
from .collaboration import CollaborationCoordinator
from .exceptions import (
    AgentCollabError,
    AgentNotFoundError,
    GenerationError,
    NotFoundError,
    ValidationError,
    WorkflowError,
    WorkflowExecutionError,
    WorkflowNotFoundError,
    WorkflowStateError,
    WorkflowValidationError,
)
from .executor import WorkflowExecutor
from .llm import (
    ContextAssembler,
    Generation,
    LLMConfig,
    ProviderGenerator,
    ResponseParser,
    TextGenerator,
)
from .models import (
    AgentCapabilities,
    AgentMemory,
    CollaborationInsights,
    CollaborationRecord,
    CollaborationRequest,
    CollaborationStatus,
    CollaborationStyle,
    Relationship,
    StructuredResponse,
    Task,
    TaskPriority,
    TaskStatus,
    TrainingInteraction,
    Workflow,
    WorkflowStatus,
    WorkflowStep,
)
from .personas import (
    DEFAULT_PERSONAS,
    BlazeAgent,
    EchoAgent,
    GlitchAgent,
    LexiAgent,
    LumiAgent,
    NovaAgent,
    RoxyAgent,
    VexAgent,
    create_default_registry,
)
from .registry import AgentRegistry
from .relationships import RelationshipTracker
from .routing import RequestRouter, route_request
from .store import InMemoryWorkflowStore, WorkflowStore
from .streaming import ChatEvent, ChatEventType
from .system import ChatResult, CollaborationSystem
from .training import (
    InMemoryTrainingCollector,
    SQLTrainingCollector,
    TrainingCollector,
    TrainingMetrics,
)
from .validation import InputValidationError
from .workflow import WorkflowBuilder, WorkflowSpec, validate_workflow

__version__ = "0.1.0"
__all__ = [
    "CollaborationSystem",
    "ChatResult",
    "Agent",
    "degraded_response",
    "RoxyAgent",
    "BlazeAgent",
    "EchoAgent",
    "LumiAgent",
    "VexAgent",
    "LexiAgent",
    "NovaAgent",
    "GlitchAgent",
    "DEFAULT_PERSONAS",
    "create_default_registry",
    "AgentRegistry",
    "RequestRouter",
    "route_request",
    "CollaborationCoordinator",
    "RelationshipTracker",
    "WorkflowBuilder",
    "WorkflowExecutor",
    "WorkflowSpec",
    "validate_workflow",
    "WorkflowStore",
    "InMemoryWorkflowStore",
    "TrainingCollector",
    "InMemoryTrainingCollector",
    "SQLTrainingCollector",
    "TrainingMetrics",
    "TextGenerator",
    "Generation",
    "LLMConfig",
    "ProviderGenerator",
    "ContextAssembler",
    "ResponseParser",
    "ChatEvent",
    "ChatEventType",
    "AgentCollabClient",
    "AsyncAgentCollabClient",
    "AgentCapabilities",
    "AgentMemory",
    "CollaborationInsights",
    "CollaborationRecord",
    "CollaborationRequest",
    "CollaborationStatus",
    "CollaborationStyle",
    "Relationship",
    "StructuredResponse",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "TrainingInteraction",
    "Workflow",
    "WorkflowStatus",
    "WorkflowStep",
    "AgentCollabError",
    "AgentNotFoundError",
    "GenerationError",
    "NotFoundError",
    "ValidationError",
    "InputValidationError",
    "WorkflowError",
    "WorkflowExecutionError",
    "WorkflowNotFoundError",
    "WorkflowStateError",
    "WorkflowValidationError",
]
