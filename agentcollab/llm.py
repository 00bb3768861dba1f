"""
agentcollab - Text generation layer.

Agents depend on a single capability: turn a prompt into text. This module
defines that capability (``TextGenerator``), a provider-backed implementation
for OpenAI, Anthropic and Gemini models, and the helpers that assemble
prompts and parse generated text into a StructuredResponse.

Usage:
    ```python
    from agentcollab.llm import ProviderGenerator

    generator = ProviderGenerator()
    generation = await generator.generate("Hello", model="gpt-4o")
    print(generation.text)
    ```
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from .exceptions import GenerationError
from .models import (
    DEFAULT_CONFIDENCE,
    AgentCapabilities,
    AgentMemory,
    CollaborationRequest,
    StructuredResponse,
    Task,
)

logger = logging.getLogger("agentcollab.llm")

DEFAULT_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000

API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GOOGLE_API_KEY",
}

DEFAULT_REASONING = "Generated using custom agent logic"
DEFAULT_SUGGESTED_ACTIONS = ("Review the response", "Ask for clarification if needed")


def resolve_provider(model: str) -> str:
    """Infer the provider from a model id."""
    name = model.lower()
    if name.startswith("claude"):
        return "anthropic"
    if name.startswith("gemini"):
        return "gemini"
    return "openai"


@dataclass
class LLMConfig:
    """Model settings used by an agent when it calls the text generator."""

    model: str = DEFAULT_MODEL
    provider: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS

    def __post_init__(self):
        if self.provider is None:
            self.provider = resolve_provider(self.model)
        if self.api_key is None:
            env_var = API_KEY_ENV.get(self.provider)
            if env_var:
                self.api_key = os.environ.get(env_var)


@dataclass
class Generation:
    """Text produced by a generator call."""

    text: str
    model: str
    usage: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class TextGenerator(Protocol):
    """Anything that can turn a prompt into text. Implementations may raise."""

    async def generate(
        self,
        prompt: str,
        model: str,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> Generation: ...


# ==================== Provider-backed Generator ====================


class ProviderGenerator:
    """
    Dispatches generation to the SDK matching each model id.

    SDKs are imported on first use so only the providers actually called
    need to be installed. Clients are cached per provider.
    """

    def __init__(self, api_keys: Optional[dict[str, str]] = None):
        self._api_keys = dict(api_keys or {})
        self._clients: dict[str, Any] = {}

    def _api_key(self, provider: str) -> Optional[str]:
        if provider in self._api_keys:
            return self._api_keys[provider]
        return LLMConfig(model="", provider=provider).api_key

    def _client(self, provider: str) -> Any:
        if provider in self._clients:
            return self._clients[provider]

        if provider == "openai":
            try:
                import openai
            except ImportError:
                raise ImportError(
                    "openai package required. Install with: pip install openai"
                )
            client = openai.AsyncOpenAI(api_key=self._api_key(provider))
        elif provider == "anthropic":
            try:
                import anthropic
            except ImportError:
                raise ImportError(
                    "anthropic package required. Install with: pip install anthropic"
                )
            client = anthropic.AsyncAnthropic(api_key=self._api_key(provider))
        elif provider == "gemini":
            try:
                import google.generativeai as genai
            except ImportError:
                raise ImportError(
                    "google-generativeai package required. "
                    "Install with: pip install google-generativeai"
                )
            genai.configure(api_key=self._api_key(provider))
            client = genai
        else:
            raise ValueError(f"Unsupported provider: {provider}")

        self._clients[provider] = client
        return client

    async def generate(
        self,
        prompt: str,
        model: str,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> Generation:
        provider = resolve_provider(model)
        client = self._client(provider)
        try:
            if provider == "anthropic":
                return await self._generate_anthropic(
                    client, prompt, model, temperature, max_tokens
                )
            if provider == "gemini":
                return await self._generate_gemini(
                    client, prompt, model, temperature, max_tokens
                )
            return await self._generate_openai(
                client, prompt, model, temperature, max_tokens
            )
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"{provider} request failed: {e}", provider=provider) from e

    async def _generate_openai(
        self, client: Any, prompt: str, model: str, temperature: float, max_tokens: int
    ) -> Generation:
        response = await client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        text = response.choices[0].message.content or ""
        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
            }
        return Generation(text=text, model=model, usage=usage)

    async def _generate_anthropic(
        self, client: Any, prompt: str, model: str, temperature: float, max_tokens: int
    ) -> Generation:
        response = await client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(
            block.text
            for block in response.content
            if getattr(block, "type", None) == "text"
        )
        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }
        return Generation(text=text, model=model, usage=usage)

    async def _generate_gemini(
        self, client: Any, prompt: str, model: str, temperature: float, max_tokens: int
    ) -> Generation:
        gemini_model = client.GenerativeModel(model)
        response = await gemini_model.generate_content_async(
            prompt,
            generation_config={
                "temperature": temperature,
                "max_output_tokens": max_tokens,
            },
        )
        return Generation(text=response.text or "", model=model)


# ==================== Prompt Assembly ====================


RESPONSE_FORMAT = """Respond with a JSON object using these keys:
  "content": your answer to the request,
  "confidence": a number between 0 and 1,
  "reasoning": a short explanation of your approach,
  "suggested_actions": a list of next steps,
  "collaboration_requests": a list of {"agent_id", "request", "priority"} for
      other agents whose input you need (may be empty),
  "follow_up_tasks": a list of {"type", "priority", "assigned_to",
      "dependencies", "expected_outcome"} (may be empty).
Available agents: roxy, blaze, echo, lumi, vex, lexi, nova, glitch."""


class ContextAssembler:
    """Builds the context block and prompts an agent sends to the generator."""

    def __init__(self, history_window: int = 3):
        self.history_window = history_window

    def build_context(
        self,
        agent_id: str,
        name: str,
        capabilities: AgentCapabilities,
        memory: AgentMemory,
        extra: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        return {
            "agent": {"id": agent_id, "name": name},
            "capabilities": capabilities.frameworks,
            "specializations": capabilities.specializations,
            "collaboration_style": capabilities.collaboration_style.value,
            "user_context": memory.context,
            "preferences": memory.preferences,
            "recent_history": memory.recent_interactions(self.history_window),
            **(extra or {}),
        }

    def render_context(self, context: dict[str, Any]) -> str:
        return json.dumps(context, indent=2, default=str)

    def build_prompt(self, system: str, context: dict[str, Any], request: str) -> str:
        return (
            f"{system}\n\n"
            f"Context:\n{self.render_context(context)}\n\n"
            f"Request: {request}\n\n"
            f"{RESPONSE_FORMAT}"
        )

    def build_collaboration_prompt(
        self,
        system: str,
        context: dict[str, Any],
        requesting_agent_id: str,
        request: str,
    ) -> str:
        return (
            f"{system}\n\n"
            f"Another agent, {requesting_agent_id}, has asked for your input.\n\n"
            f"Context:\n{self.render_context(context)}\n\n"
            f"Collaboration request: {request}\n\n"
            "Answer from the perspective of your own expertise.\n\n"
            f"{RESPONSE_FORMAT}"
        )


# ==================== Response Parsing ====================


_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


class ResponseParser:
    """
    Turns generated text into a StructuredResponse.

    A JSON object (fenced or bare) with a ``content`` key is read field by
    field. Anything else is treated as plain text with default confidence.
    """

    def parse(self, text: str, agent_id: Optional[str] = None) -> StructuredResponse:
        payload = self._extract_json(text)
        if payload is None:
            return StructuredResponse(
                content=text.strip(),
                confidence=DEFAULT_CONFIDENCE,
                reasoning=DEFAULT_REASONING,
                suggested_actions=DEFAULT_SUGGESTED_ACTIONS,
                agent_id=agent_id,
            )

        requests = []
        for item in payload.get("collaboration_requests") or []:
            if isinstance(item, dict):
                request = CollaborationRequest.from_dict(item)
                if request.agent_id:
                    requests.append(request)

        tasks = []
        for item in payload.get("follow_up_tasks") or []:
            if isinstance(item, dict):
                task = Task.from_dict(item, default_assignee=agent_id)
                if task.assigned_to:
                    tasks.append(task)

        confidence = payload.get("confidence", DEFAULT_CONFIDENCE)
        try:
            confidence = float(confidence)
        except (TypeError, ValueError):
            confidence = DEFAULT_CONFIDENCE

        actions = payload.get("suggested_actions")
        if not isinstance(actions, list):
            actions = list(DEFAULT_SUGGESTED_ACTIONS)

        return StructuredResponse(
            content=str(payload.get("content", "")),
            confidence=confidence,
            reasoning=str(payload.get("reasoning") or DEFAULT_REASONING),
            suggested_actions=[str(a) for a in actions],
            collaboration_requests=requests,
            follow_up_tasks=tasks,
            agent_id=agent_id,
        )

    def _extract_json(self, text: str) -> Optional[dict[str, Any]]:
        candidates = []
        fenced = _FENCED_JSON.search(text)
        if fenced:
            candidates.append(fenced.group(1))
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            candidates.append(text[start : end + 1])

        for candidate in candidates:
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict) and "content" in data:
                return data
        return None
