"""Scripted text generator standing in for LLM providers."""

import asyncio
import json
import re
from typing import Any, Optional

from agentcollab.llm import Generation

_AGENT_ID = re.compile(r'"agent": \{\s*"id": "([^"]+)"')


def reply(
    content: str = "ok",
    confidence: float = 0.9,
    collaboration_requests: Optional[list[dict[str, Any]]] = None,
    follow_up_tasks: Optional[list[dict[str, Any]]] = None,
    **extra: Any,
) -> str:
    """Generated text in the JSON shape agents ask for."""
    return json.dumps(
        {
            "content": content,
            "confidence": confidence,
            "reasoning": "scripted",
            "suggested_actions": ["Next step"],
            "collaboration_requests": collaboration_requests or [],
            "follow_up_tasks": follow_up_tasks or [],
            **extra,
        }
    )


class FakeGenerator:
    """
    Scripted TextGenerator.

    Replies are keyed by the agent id found in the prompt's context block.
    A reply may be text, an exception instance (raised), or a list consumed
    one call at a time. ``collab_replies`` override replies for
    collaboration prompts.
    """

    def __init__(
        self,
        replies: Optional[dict[str, Any]] = None,
        default: Any = None,
        delays: Optional[dict[str, float]] = None,
        collab_replies: Optional[dict[str, Any]] = None,
    ):
        self.replies = dict(replies or {})
        self.collab_replies = dict(collab_replies or {})
        self.default = default if default is not None else reply("ok")
        self.delays = dict(delays or {})
        self.calls: list[dict[str, Any]] = []
        self.events: list[tuple[str, Optional[str]]] = []
        self.active = 0
        self.max_active = 0

    def _pick(self, agent_id: Optional[str], collaboration: bool) -> Any:
        if collaboration and agent_id in self.collab_replies:
            value = self.collab_replies[agent_id]
        else:
            value = self.replies.get(agent_id, self.default)
        if isinstance(value, list):
            value = value.pop(0) if len(value) > 1 else value[0]
        return value

    async def generate(
        self,
        prompt: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> Generation:
        match = _AGENT_ID.search(prompt)
        agent_id = match.group(1) if match else None
        collaboration = "has asked for your input" in prompt
        self.calls.append(
            {
                "agent_id": agent_id,
                "prompt": prompt,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "collaboration": collaboration,
            }
        )
        self.events.append(("start", agent_id))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            delay = self.delays.get(agent_id)
            if delay:
                await asyncio.sleep(delay)
            value = self._pick(agent_id, collaboration)
            if isinstance(value, BaseException):
                raise value
            return Generation(text=value, model=model)
        finally:
            self.active -= 1
            self.events.append(("end", agent_id))

    def agents_called(self) -> list[Optional[str]]:
        return [call["agent_id"] for call in self.calls]


