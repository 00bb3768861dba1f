"""
Tests for agentcollab validation module.
"""

import pytest

from agentcollab.exceptions import ValidationError as BaseValidationError
from agentcollab.validation import (
    MAX_MESSAGE_LENGTH,
    InputValidationError,
    validate_agent_id,
    validate_chat_request,
    validate_dict,
    validate_positive_number,
    validate_required,
    validate_string_length,
    validate_workflow_steps,
)


class TestExceptionInheritance:
    """Tests that InputValidationError inherits from the package ValidationError."""

    def test_inherits_from_base_validation_error(self):
        assert issubclass(InputValidationError, BaseValidationError)

    def test_caught_by_base_validation_error(self):
        with pytest.raises(BaseValidationError):
            raise InputValidationError("test error", field="test")

    def test_status_code(self):
        assert InputValidationError("bad").status_code == 400


class TestValidateRequired:
    """Tests for validate_required function."""

    def test_none_value_raises(self):
        with pytest.raises(InputValidationError) as exc:
            validate_required(None, "field")
        assert "field is required" in str(exc.value)
        assert exc.value.field == "field"

    def test_whitespace_only_raises(self):
        with pytest.raises(InputValidationError) as exc:
            validate_required("   ", "field")
        assert "cannot be empty" in str(exc.value)

    def test_valid_values_pass(self):
        validate_required("value", "field")
        validate_required(0, "field")


class TestValidateStringLength:
    def test_too_short(self):
        with pytest.raises(InputValidationError, match="at least 3"):
            validate_string_length("ab", "name", min_length=3)

    def test_too_long(self):
        with pytest.raises(InputValidationError, match="at most 3"):
            validate_string_length("abcd", "name", max_length=3)

    def test_none_passes(self):
        validate_string_length(None, "name", min_length=3)


class TestValidatePositiveNumber:
    @pytest.mark.parametrize("value", [0, -1, -0.5])
    def test_non_positive_raises(self, value):
        with pytest.raises(InputValidationError, match="must be positive"):
            validate_positive_number(value, "timeout")

    @pytest.mark.parametrize("value", ["10", True])
    def test_non_number_raises(self, value):
        with pytest.raises(InputValidationError, match="must be a number"):
            validate_positive_number(value, "timeout")

    def test_valid(self):
        validate_positive_number(None, "timeout")
        validate_positive_number(0.5, "timeout")


class TestValidateDict:
    def test_list_raises(self):
        with pytest.raises(InputValidationError, match="must be a dictionary"):
            validate_dict([], "context")

    def test_none_passes(self):
        validate_dict(None, "context")


class TestValidateAgentId:
    """Tests for validate_agent_id function."""

    @pytest.mark.parametrize("value", ["roxy", "agent_2", "data-bot"])
    def test_valid(self, value):
        validate_agent_id(value)

    @pytest.mark.parametrize("value", ["Roxy", "2bot", "has space", "roxy!"])
    def test_invalid_format(self, value):
        with pytest.raises(InputValidationError, match="lower-case slug"):
            validate_agent_id(value)

    def test_empty(self):
        with pytest.raises(InputValidationError, match="cannot be empty"):
            validate_agent_id("  ")

    def test_too_long(self):
        with pytest.raises(InputValidationError, match="at most 255"):
            validate_agent_id("a" * 256)


class TestValidateChatRequest:
    def test_valid(self):
        validate_chat_request("Should I raise prices?", "roxy", {"company": "Acme"})

    def test_message_required(self):
        with pytest.raises(InputValidationError) as exc:
            validate_chat_request(None)
        assert exc.value.field == "message"

    def test_message_too_long(self):
        with pytest.raises(InputValidationError):
            validate_chat_request("x" * (MAX_MESSAGE_LENGTH + 1))

    def test_context_must_be_dict(self):
        with pytest.raises(InputValidationError) as exc:
            validate_chat_request("hi", context="not a dict")
        assert exc.value.field == "context"


class TestValidateWorkflowSteps:
    def test_valid(self):
        validate_workflow_steps(
            [
                {"agent_id": "lexi", "task": "Numbers"},
                {"agent_id": "roxy", "task": "Decide", "dependencies": ["lexi"]},
            ]
        )

    @pytest.mark.parametrize("steps", [[], None, {"agent_id": "lexi"}])
    def test_not_a_list(self, steps):
        with pytest.raises(InputValidationError, match="non-empty list"):
            validate_workflow_steps(steps)

    def test_missing_task_reports_path(self):
        with pytest.raises(InputValidationError) as exc:
            validate_workflow_steps([{"agent_id": "lexi", "task": "x"}, {"agent_id": "roxy"}])
        assert exc.value.field == "steps[1].task"

    def test_bad_dependencies(self):
        with pytest.raises(InputValidationError) as exc:
            validate_workflow_steps([{"agent_id": "roxy", "task": "x", "dependencies": "lexi"}])
        assert exc.value.field == "steps[0].dependencies"
