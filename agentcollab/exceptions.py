"""
agentcollab - Custom exceptions for error handling.
"""

from typing import Any, Optional


class AgentCollabError(Exception):
    """Base exception for all agentcollab errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


class NotFoundError(AgentCollabError):
    """Raised when a requested resource is not found."""

    pass


class AgentNotFoundError(NotFoundError):
    """Raised when an agent id does not resolve to a registered agent."""

    def __init__(self, agent_id: str, **kwargs: Any) -> None:
        super().__init__(f"Agent {agent_id} not found", **kwargs)
        self.agent_id = agent_id


class WorkflowError(AgentCollabError):
    """Base exception for workflow errors."""

    pass


class WorkflowNotFoundError(NotFoundError, WorkflowError):
    """Raised when a workflow id or workflow file is not found."""

    pass


class WorkflowStateError(WorkflowError):
    """Raised when a workflow is not in a state that allows the operation."""

    def __init__(self, message: str, current_status: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.current_status = current_status


class WorkflowExecutionError(WorkflowError):
    """Raised inside a workflow run when the dependency graph cannot proceed."""

    def __init__(self, message: str, agent_id: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.agent_id = agent_id


class WorkflowValidationError(WorkflowError):
    """Raised when a workflow definition is invalid."""

    def __init__(self, message: str, path: str = "", suggestion: str = ""):
        self.path = path
        self.suggestion = suggestion
        full_message = message
        if path:
            full_message = f"{path}: {message}"
        if suggestion:
            full_message = f"{full_message}\n  Hint: {suggestion}"
        super().__init__(full_message)


class GenerationError(AgentCollabError):
    """Raised by a text generator when the provider call fails."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.provider = provider


class ValidationError(AgentCollabError):
    """Raised when request validation fails."""

    def __init__(self, message: str, errors: Optional[list[Any]] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.errors = errors or []


class APIError(AgentCollabError):
    """Raised when an API request fails with an unexpected error."""

    pass
