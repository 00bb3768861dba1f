"""
agentcollab - Input validation helpers.

Checks caller-supplied chat messages, agent ids and workflow definitions
before they reach the orchestration core.
"""

import re
from typing import Any, Optional

from .exceptions import ValidationError as BaseValidationError

AGENT_ID_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")

MAX_MESSAGE_LENGTH = 20000


class InputValidationError(BaseValidationError):
    """Raised when input validation fails before a request is processed."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message, status_code=400, response=None)
        self.field = field
        self.value = value


ValidationError = InputValidationError


def validate_required(value: Any, field_name: str) -> None:
    """Validate that a required field is not None or empty."""
    if value is None:
        raise ValidationError(f"{field_name} is required", field=field_name)
    if isinstance(value, str) and not value.strip():
        raise ValidationError(f"{field_name} cannot be empty", field=field_name, value=value)


def validate_string_length(
    value: Optional[str],
    field_name: str,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> None:
    """Validate string length constraints."""
    if value is None:
        return

    if min_length is not None and len(value) < min_length:
        raise ValidationError(
            f"{field_name} must be at least {min_length} characters",
            field=field_name,
            value=value,
        )

    if max_length is not None and len(value) > max_length:
        raise ValidationError(
            f"{field_name} must be at most {max_length} characters",
            field=field_name,
            value=value,
        )


def validate_positive_number(value: Optional[float], field_name: str) -> None:
    """Validate that an optional number such as a timeout is positive."""
    if value is None:
        return

    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", field=field_name, value=value)

    if value <= 0:
        raise ValidationError(f"{field_name} must be positive", field=field_name, value=value)


def validate_dict(value: Any, field_name: str) -> None:
    """Validate that a value is a dictionary."""
    if value is None:
        return

    if not isinstance(value, dict):
        raise ValidationError(
            f"{field_name} must be a dictionary",
            field=field_name,
            value=value,
        )


def validate_agent_id(value: Optional[str], field_name: str = "agent_id") -> None:
    """Validate agent id format (lower-case slug)."""
    if value is None:
        return

    if not value.strip():
        raise ValidationError(f"{field_name} cannot be empty", field=field_name, value=value)

    if len(value) > 255:
        raise ValidationError(
            f"{field_name} must be at most 255 characters",
            field=field_name,
            value=value,
        )

    if not AGENT_ID_PATTERN.match(value):
        raise ValidationError(
            f"{field_name} must be a lower-case slug (e.g., 'roxy')",
            field=field_name,
            value=value,
        )


def validate_chat_request(
    message: Optional[str],
    agent_id: Optional[str] = None,
    context: Optional[dict[str, Any]] = None,
) -> None:
    """Validate the inbound chat contract before routing."""
    validate_required(message, "message")
    validate_string_length(message, "message", max_length=MAX_MESSAGE_LENGTH)
    validate_agent_id(agent_id)
    validate_dict(context, "context")


def validate_workflow_steps(steps: Any, field_name: str = "steps") -> None:
    """Validate a list of raw workflow step dicts."""
    if not isinstance(steps, list) or not steps:
        raise ValidationError(
            f"{field_name} must be a non-empty list",
            field=field_name,
            value=steps,
        )

    for i, step in enumerate(steps):
        path = f"{field_name}[{i}]"
        validate_dict(step, path)
        agent_id = step.get("agent_id")
        validate_required(agent_id, f"{path}.agent_id")
        validate_agent_id(agent_id, f"{path}.agent_id")
        validate_required(step.get("task"), f"{path}.task")
        deps = step.get("dependencies", [])
        if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
            raise ValidationError(
                f"{path}.dependencies must be a list of agent ids",
                field=f"{path}.dependencies",
                value=deps,
            )
