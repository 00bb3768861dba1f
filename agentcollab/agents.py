"""
agentcollab - Agent base class.

An agent is a persona with fixed capabilities, its own bounded memory, and
access to an injected text generator. Every answer is a StructuredResponse;
generation failures are turned into a low-confidence degraded response and
never propagate to the caller.

Usage:
    ```python
    from agentcollab.personas import BlazeAgent

    blaze = BlazeAgent(user_id="u1", generator=my_generator)
    response = await blaze.process_request("How do I grow revenue?")
    print(response.content, response.confidence)
    ```
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from .llm import ContextAssembler, LLMConfig, ResponseParser, TextGenerator
from .models import (
    DEGRADED_CONFIDENCE,
    AgentCapabilities,
    AgentMemory,
    HistoryEntry,
    LearnedPattern,
    Relationship,
    StructuredResponse,
    Task,
    TaskPriority,
    TrainingInteraction,
)
from .relationships import RelationshipTracker
from .validation import ValidationError

if TYPE_CHECKING:
    from .training import TrainingCollector

logger = logging.getLogger("agentcollab.agents")

DEGRADED_SUGGESTED_ACTIONS = (
    "Try rephrasing your request",
    "Check if the service is available",
)

DEFAULT_TRAINING_TIMEOUT = 2.0


def degraded_response(message: str, agent_id: Optional[str] = None) -> StructuredResponse:
    """Build the fallback response returned when generation fails."""
    return StructuredResponse(
        content=(
            "I apologize, but I encountered an error processing your request: "
            f"{message}"
        ),
        confidence=DEGRADED_CONFIDENCE,
        reasoning="Error occurred during processing",
        suggested_actions=DEGRADED_SUGGESTED_ACTIONS,
        agent_id=agent_id,
        degraded=True,
    )


class Agent(ABC):
    """
    Base class for all agent personas.

    Subclasses declare their identity as class attributes and implement
    ``build_capabilities``. Persona learning is declared with
    ``pattern_type`` (the interaction type to learn from), ``pattern_key``
    (the memory bucket) and the fields to copy from the interaction and
    outcome.
    """

    agent_id: str = ""
    name: str = ""
    role: str = ""
    default_model: str = "gpt-4o"
    system_prompt: str = ""
    request_focus: tuple[str, ...] = ()
    collaboration_focus: tuple[str, ...] = ()
    framework_guides: dict[str, tuple[str, ...]] = {}

    pattern_type: Optional[str] = None
    pattern_key: Optional[str] = None
    interaction_fields: tuple[str, ...] = ()
    outcome_fields: tuple[str, ...] = ()

    def __init__(
        self,
        user_id: str,
        generator: TextGenerator,
        training_collector: Optional["TrainingCollector"] = None,
        llm_config: Optional[LLMConfig] = None,
        training_timeout: float = DEFAULT_TRAINING_TIMEOUT,
        assembler: Optional[ContextAssembler] = None,
        parser: Optional[ResponseParser] = None,
    ):
        self.generator = generator
        self.training_collector = training_collector
        self.llm_config = llm_config or LLMConfig(model=self.default_model)
        self.training_timeout = training_timeout
        self.capabilities = self.build_capabilities()
        self.memory = AgentMemory(user_id=user_id)
        self.relationships = RelationshipTracker(self.memory.relationships)
        self._assembler = assembler or ContextAssembler()
        self._parser = parser or ResponseParser()

    @abstractmethod
    def build_capabilities(self) -> AgentCapabilities:
        """Return this persona's fixed capability set."""

    @property
    def user_id(self) -> str:
        return self.memory.user_id

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.agent_id!r} user={self.user_id!r}>"

    # ==================== Responding ====================

    def build_context(self, extra: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return self._assembler.build_context(
            self.agent_id, self.name, self.capabilities, self.memory, extra
        )

    def build_request_prompt(self, text: str) -> str:
        lines = [f"User Request: {text}", ""]
        if self.request_focus:
            lines.append(f"As {self.name}, analyze this request. Consider:")
            lines.extend(f"{i}. {item}" for i, item in enumerate(self.request_focus, 1))
        return "\n".join(lines)

    def build_collaboration_text(self, requesting_agent_id: str, text: str) -> str:
        lines = [f"Collaboration Request from {requesting_agent_id}: {text}", ""]
        if self.collaboration_focus:
            lines.append(f"As {self.name}, how do you want to collaborate? Consider:")
            lines.extend(
                f"{i}. {item}" for i, item in enumerate(self.collaboration_focus, 1)
            )
        return "\n".join(lines)

    async def process_request(
        self,
        text: str,
        context: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> StructuredResponse:
        """Answer a request. Never raises on generation failure."""
        agent_context = self.build_context(context)
        prompt = self._assembler.build_prompt(
            self.system_prompt, agent_context, self.build_request_prompt(text)
        )
        return await self.generate_structured_response(prompt, timeout=timeout)

    async def collaborate_with(
        self,
        requesting_agent_id: str,
        request_text: str,
        timeout: Optional[float] = None,
    ) -> StructuredResponse:
        """Answer another agent's collaboration request."""
        agent_context = self.build_context(
            {
                "collaboration_request": request_text,
                "collaborating_agent": requesting_agent_id,
            }
        )
        prompt = self._assembler.build_collaboration_prompt(
            self.system_prompt,
            agent_context,
            requesting_agent_id,
            self.build_collaboration_text(requesting_agent_id, request_text),
        )
        return await self.generate_structured_response(prompt, timeout=timeout)

    async def analyze_with_framework(
        self,
        framework: str,
        subject: str,
        context: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> StructuredResponse:
        """Run a scoped analysis using one of the agent's declared frameworks."""
        if framework not in self.capabilities.frameworks:
            raise ValidationError(
                f"{self.name} does not use the {framework!r} framework",
                field="framework",
                value=framework,
            )
        agent_context = self.build_context(
            {**(context or {}), "analysis_type": framework, "subject": subject}
        )
        lines = [f"{framework} analysis for: {subject}", ""]
        guide = self.framework_guides.get(framework)
        if guide:
            lines.append(f"Work through the {framework} step by step:")
            lines.extend(f"{i}. {step}" for i, step in enumerate(guide, 1))
        prompt = self._assembler.build_prompt(
            self.system_prompt, agent_context, "\n".join(lines)
        )
        return await self.generate_structured_response(prompt, timeout=timeout)

    async def generate_structured_response(
        self, prompt: str, timeout: Optional[float] = None
    ) -> StructuredResponse:
        """Call the generator and parse its text, degrading on any failure."""
        config = self.llm_config
        try:
            call = self.generator.generate(
                prompt,
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
            )
            if timeout is not None:
                generation = await asyncio.wait_for(call, timeout)
            else:
                generation = await call
            return self._parser.parse(generation.text, agent_id=self.agent_id)
        except asyncio.TimeoutError:
            logger.warning(f"{self.agent_id}: generation timed out after {timeout}s")
            return degraded_response(
                f"generation timed out after {timeout}s", agent_id=self.agent_id
            )
        except Exception as e:
            logger.exception(f"{self.agent_id}: error generating response: {e}")
            return degraded_response(str(e), agent_id=self.agent_id)

    # ==================== Memory & Learning ====================

    def update_relationship(
        self, agent_id: str, interaction: Any, outcome: dict[str, Any]
    ) -> Relationship:
        return self.relationships.record(agent_id, interaction, outcome)

    def learn_from_interaction(
        self, interaction: dict[str, Any], outcome: dict[str, Any]
    ) -> None:
        kind = interaction.get("type", "unknown")
        if outcome.get("success"):
            learning = f"Successful interaction pattern: {kind}"
        else:
            error = outcome.get("error", "unknown error")
            learning = f"Failed interaction pattern: {kind} - {error}"

        self.memory.history.append(
            HistoryEntry(
                interaction=json.dumps(interaction, default=str),
                outcome=json.dumps(outcome, default=str),
                learning=learning,
            )
        )

        pattern = self.extract_pattern(interaction, outcome)
        if pattern is not None and self.pattern_key:
            self.memory.add_pattern(self.pattern_key, pattern)

    def extract_pattern(
        self, interaction: dict[str, Any], outcome: dict[str, Any]
    ) -> Optional[LearnedPattern]:
        if not self.pattern_type or interaction.get("type") != self.pattern_type:
            return None
        details = {key: interaction.get(key) for key in self.interaction_fields}
        details.update({key: outcome.get(key) for key in self.outcome_fields})
        return LearnedPattern(kind=self.pattern_type, details=details)

    def update_memory(self, **updates: Any) -> None:
        """Merge ``context`` and ``preferences`` updates into memory."""
        unknown = set(updates) - {"context", "preferences"}
        if unknown:
            raise ValidationError(
                f"Cannot update memory fields: {', '.join(sorted(unknown))}",
                field="memory",
            )
        if updates.get("context"):
            self.memory.context.update(updates["context"])
        if updates.get("preferences"):
            self.memory.preferences.update(updates["preferences"])

    def snapshot(self) -> dict[str, Any]:
        return self.memory.to_dict()

    def describe(self) -> dict[str, Any]:
        return {
            "id": self.agent_id,
            "name": self.name,
            "role": self.role,
            "model": self.llm_config.model,
            "capabilities": self.capabilities.to_dict(),
        }

    # ==================== Tasks & Training ====================

    def create_task(
        self,
        type: str,
        expected_outcome: str,
        priority: TaskPriority = TaskPriority.MEDIUM,
        assigned_to: Optional[str] = None,
        dependencies: Optional[list[str]] = None,
        context: Optional[dict[str, Any]] = None,
        deadline: Optional[datetime] = None,
    ) -> Task:
        return Task(
            type=type,
            priority=priority,
            assigned_to=assigned_to or self.agent_id,
            dependencies=dependencies or [],
            context=context or {},
            expected_outcome=expected_outcome,
            deadline=deadline,
        )

    async def record_training_data(
        self,
        user_message: str,
        response: StructuredResponse,
        context: Optional[dict[str, Any]] = None,
        response_time_ms: float = 0.0,
        success: bool = True,
    ) -> Optional[str]:
        """Send one interaction to the training collector. Best effort."""
        if self.training_collector is None:
            return None

        interaction = TrainingInteraction(
            user_id=self.user_id,
            agent_id=self.agent_id,
            user_message=user_message,
            agent_response=response.content,
            context=dict(context or {}),
            success=success,
            response_time_ms=response_time_ms,
            confidence=response.confidence,
            collaboration_requests=[r.agent_id for r in response.collaboration_requests],
            follow_up_tasks=[t.id for t in response.follow_up_tasks],
            metadata={
                "model": self.llm_config.model,
                "degraded": response.degraded,
            },
        )
        try:
            return await asyncio.wait_for(
                self.training_collector.record(interaction), self.training_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"{self.agent_id}: training data write exceeded "
                f"{self.training_timeout}s, dropped"
            )
        except Exception as e:
            logger.exception(f"{self.agent_id}: failed to record training data: {e}")
        return None
