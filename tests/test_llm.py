"""
Unit tests for the agentcollab text generation layer.

Covers provider resolution, the provider-backed generator (with SDKs
mocked out), context assembly and response parsing.
"""

import json
import sys
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agentcollab.exceptions import GenerationError
from agentcollab.llm import (
    DEFAULT_REASONING,
    DEFAULT_SUGGESTED_ACTIONS,
    RESPONSE_FORMAT,
    ContextAssembler,
    Generation,
    LLMConfig,
    ProviderGenerator,
    ResponseParser,
    TextGenerator,
    resolve_provider,
)
from agentcollab.models import AgentCapabilities, AgentMemory, HistoryEntry

# ---------------------------------------------------------------------------
# Provider Resolution
# ---------------------------------------------------------------------------


class TestProviderResolution:
    def test_openai_default(self):
        assert resolve_provider("gpt-4o") == "openai"
        assert resolve_provider("o1-mini") == "openai"

    def test_anthropic(self):
        assert resolve_provider("claude-3-5-sonnet-20241022") == "anthropic"
        assert resolve_provider("Claude-3-opus") == "anthropic"

    def test_gemini(self):
        assert resolve_provider("gemini-1.5-pro") == "gemini"


class TestLLMConfig:
    def test_defaults(self):
        config = LLMConfig()
        assert config.model == "gpt-4o"
        assert config.provider == "openai"
        assert config.temperature == 0.7
        assert config.max_tokens == 1000

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        config = LLMConfig(model="claude-3-5-sonnet-20241022")
        assert config.provider == "anthropic"
        assert config.api_key == "sk-ant-test"

    def test_explicit_api_key_wins(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        assert LLMConfig(api_key="explicit").api_key == "explicit"


# ---------------------------------------------------------------------------
# Provider Generator
# ---------------------------------------------------------------------------


class TestProviderGenerator:
    def test_satisfies_protocol(self):
        assert isinstance(ProviderGenerator(), TextGenerator)

    @pytest.mark.asyncio
    async def test_openai_generation(self):
        fake_openai = MagicMock()
        client = fake_openai.AsyncOpenAI.return_value
        client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content="hello"))],
                usage=SimpleNamespace(prompt_tokens=5, completion_tokens=2),
            )
        )

        with patch.dict(sys.modules, {"openai": fake_openai}):
            generator = ProviderGenerator(api_keys={"openai": "sk-test"})
            generation = await generator.generate("Hi", model="gpt-4o", temperature=0.2)

        assert generation == Generation(
            text="hello",
            model="gpt-4o",
            usage={"prompt_tokens": 5, "completion_tokens": 2},
        )
        fake_openai.AsyncOpenAI.assert_called_once_with(api_key="sk-test")
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_anthropic_generation(self):
        fake_anthropic = MagicMock()
        client = fake_anthropic.AsyncAnthropic.return_value
        client.messages.create = AsyncMock(
            return_value=SimpleNamespace(
                content=[
                    SimpleNamespace(type="text", text="part one "),
                    SimpleNamespace(type="tool_use", text="ignored"),
                    SimpleNamespace(type="text", text="part two"),
                ],
                usage=None,
            )
        )

        with patch.dict(sys.modules, {"anthropic": fake_anthropic}):
            generation = await ProviderGenerator().generate(
                "Hi", model="claude-3-5-sonnet-20241022"
            )

        assert generation.text == "part one part two"
        assert generation.usage == {}

    @pytest.mark.asyncio
    async def test_gemini_generation(self):
        fake_genai = MagicMock()
        fake_genai.GenerativeModel.return_value.generate_content_async = AsyncMock(
            return_value=SimpleNamespace(text="from gemini")
        )
        fake_google = MagicMock(generativeai=fake_genai)

        with patch.dict(
            sys.modules, {"google": fake_google, "google.generativeai": fake_genai}
        ):
            generation = await ProviderGenerator(api_keys={"gemini": "g-key"}).generate(
                "Hi", model="gemini-1.5-pro", max_tokens=50
            )

        assert generation.text == "from gemini"
        fake_genai.configure.assert_called_once_with(api_key="g-key")
        fake_genai.GenerativeModel.assert_called_once_with("gemini-1.5-pro")

    @pytest.mark.asyncio
    async def test_client_cached_per_provider(self):
        fake_openai = MagicMock()
        fake_openai.AsyncOpenAI.return_value.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content="x"))],
                usage=None,
            )
        )
        with patch.dict(sys.modules, {"openai": fake_openai}):
            generator = ProviderGenerator()
            await generator.generate("a", model="gpt-4o")
            await generator.generate("b", model="gpt-4o-mini")

        assert fake_openai.AsyncOpenAI.call_count == 1

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self):
        fake_openai = MagicMock()
        fake_openai.AsyncOpenAI.return_value.chat.completions.create = AsyncMock(
            side_effect=RuntimeError("rate limited")
        )

        with patch.dict(sys.modules, {"openai": fake_openai}):
            with pytest.raises(GenerationError) as exc_info:
                await ProviderGenerator().generate("Hi", model="gpt-4o")

        assert exc_info.value.provider == "openai"
        assert "rate limited" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_sdk_install_hint(self):
        with patch.dict(sys.modules, {"anthropic": None}):
            with pytest.raises(ImportError, match="pip install anthropic"):
                await ProviderGenerator().generate("Hi", model="claude-3-opus")


# ---------------------------------------------------------------------------
# Context Assembly
# ---------------------------------------------------------------------------


class TestContextAssembler:
    def _memory(self) -> AgentMemory:
        memory = AgentMemory(user_id="u1", context={"industry": "retail"})
        for n in range(5):
            memory.history.append(
                HistoryEntry(interaction=f"interaction {n}", outcome="{}", learning="")
            )
        return memory

    def test_build_context(self):
        caps = AgentCapabilities(frameworks=["SWOT"], specializations=["Strategy"])
        context = ContextAssembler().build_context(
            "roxy", "Roxy", caps, self._memory(), {"workflow_id": "w1"}
        )
        assert context["agent"] == {"id": "roxy", "name": "Roxy"}
        assert context["capabilities"] == ["SWOT"]
        assert context["user_context"] == {"industry": "retail"}
        assert context["recent_history"] == [
            "interaction 2",
            "interaction 3",
            "interaction 4",
        ]
        assert context["workflow_id"] == "w1"

    def test_history_window(self):
        context = ContextAssembler(history_window=1).build_context(
            "roxy", "Roxy", AgentCapabilities(), self._memory()
        )
        assert context["recent_history"] == ["interaction 4"]

    def test_build_prompt(self):
        assembler = ContextAssembler()
        prompt = assembler.build_prompt("You are Roxy.", {"a": 1}, "Plan Q3")
        assert prompt.startswith("You are Roxy.")
        assert '"a": 1' in prompt
        assert "Request: Plan Q3" in prompt
        assert prompt.endswith(RESPONSE_FORMAT)

    def test_build_collaboration_prompt(self):
        prompt = ContextAssembler().build_collaboration_prompt(
            "You are Lexi.", {}, "roxy", "Need the numbers"
        )
        assert "Another agent, roxy, has asked for your input." in prompt
        assert "Collaboration request: Need the numbers" in prompt


# ---------------------------------------------------------------------------
# Response Parsing
# ---------------------------------------------------------------------------


class TestResponseParser:
    def test_plain_text(self):
        response = ResponseParser().parse("  Just an answer.  ", agent_id="echo")
        assert response.content == "Just an answer."
        assert response.confidence == 0.8
        assert response.reasoning == DEFAULT_REASONING
        assert response.suggested_actions == DEFAULT_SUGGESTED_ACTIONS
        assert response.collaboration_requests == ()
        assert response.agent_id == "echo"

    def test_fenced_json(self):
        payload = {
            "content": "Raise prices 5%",
            "confidence": 0.65,
            "reasoning": "Margins are thin",
            "suggested_actions": ["Test on one segment"],
            "collaboration_requests": [{"agent_id": "lexi", "request": "Elasticity?"}],
            "follow_up_tasks": [
                {"type": "review", "assigned_to": "lumi", "expected_outcome": "Legal check"}
            ],
        }
        text = f"Sure.\n```json\n{json.dumps(payload)}\n```\nDone."
        response = ResponseParser().parse(text, agent_id="roxy")

        assert response.content == "Raise prices 5%"
        assert response.confidence == 0.65
        assert response.suggested_actions == ("Test on one segment",)
        assert response.collaboration_requests[0].agent_id == "lexi"
        assert response.follow_up_tasks[0].assigned_to == "lumi"
        assert response.follow_up_tasks[0].expected_outcome == "Legal check"

    def test_bare_json(self):
        response = ResponseParser().parse('Answer: {"content": "hi", "confidence": 2}')
        assert response.content == "hi"
        assert response.confidence == 1.0

    def test_json_without_content_is_plain_text(self):
        text = '{"answer": "hi"}'
        response = ResponseParser().parse(text)
        assert response.content == text
        assert response.confidence == 0.8

    def test_invalid_entries_dropped(self):
        payload = {
            "content": "x",
            "confidence": "very",
            "suggested_actions": "not a list",
            "collaboration_requests": [{"request": "no target"}, "junk"],
            "follow_up_tasks": [{"expected_outcome": "mine"}],
        }
        response = ResponseParser().parse(json.dumps(payload), agent_id="vex")
        assert response.confidence == 0.8
        assert response.suggested_actions == DEFAULT_SUGGESTED_ACTIONS
        assert response.collaboration_requests == ()
        assert response.follow_up_tasks[0].assigned_to == "vex"

    def test_unassigned_follow_up_dropped_without_agent(self):
        payload = {"content": "x", "follow_up_tasks": [{"expected_outcome": "orphan"}]}
        assert ResponseParser().parse(json.dumps(payload)).follow_up_tasks == ()

    def test_follow_up_dependency_string_is_one_agent(self):
        payload = {
            "content": "x",
            "follow_up_tasks": [
                {"assigned_to": "lumi", "expected_outcome": "Legal check", "dependencies": "roxy"},
                {"assigned_to": "echo", "expected_outcome": "Draft", "dependencies": {"roxy": 1}},
            ],
        }
        tasks = ResponseParser().parse(json.dumps(payload), agent_id="roxy").follow_up_tasks
        assert tasks[0].dependencies == ["roxy"]
        assert tasks[1].dependencies == []
