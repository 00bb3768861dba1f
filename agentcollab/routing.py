"""
agentcollab - Keyword routing of free text to a primary agent.
"""

from typing import Optional

DEFAULT_AGENT = "roxy"

# Checked in order; the first group with a matching keyword wins.
ROUTING_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("roxy", ("decision", "strategy", "plan")),
    ("blaze", ("growth", "sales", "revenue")),
    ("echo", ("marketing", "content", "brand")),
    ("lumi", ("legal", "compliance", "policy")),
    ("vex", ("technical", "system", "code")),
    ("lexi", ("data", "analysis", "metrics")),
    ("nova", ("design", "ui", "ux")),
    ("glitch", ("problem", "bug", "issue")),
)


class RequestRouter:
    """
    Maps a request to the agent id that should answer it first.

    Matching is case-insensitive substring matching, so "ui" also matches
    inside "build" or "quick". Unmatched text goes to the default agent.
    """

    def __init__(
        self,
        rules: tuple[tuple[str, tuple[str, ...]], ...] = ROUTING_RULES,
        default_agent: str = DEFAULT_AGENT,
    ):
        self.rules = rules
        self.default_agent = default_agent

    def route_request(self, text: str) -> str:
        lowered = text.lower()
        for agent_id, keywords in self.rules:
            if any(keyword in lowered for keyword in keywords):
                return agent_id
        return self.default_agent

    def resolve(self, text: str, agent_id: Optional[str] = None) -> str:
        """Return an explicit agent id unchanged, otherwise route the text."""
        if agent_id:
            return agent_id
        return self.route_request(text)


def route_request(text: str) -> str:
    return RequestRouter().route_request(text)
