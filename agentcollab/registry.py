"""
agentcollab - Per-session agent container.
"""

from typing import TYPE_CHECKING, Iterator, Optional

from .exceptions import AgentNotFoundError

if TYPE_CHECKING:
    from .agents import Agent


class AgentRegistry:
    """
    Holds the agents of one user session, keyed by agent id.

    ``find`` returns None for an unknown id; ``get`` raises AgentNotFoundError.
    """

    def __init__(self, user_id: str):
        self.user_id = user_id
        self._agents: dict[str, "Agent"] = {}

    def register(self, agent: "Agent") -> "Agent":
        if agent.agent_id in self._agents:
            raise ValueError(f"Agent {agent.agent_id} is already registered")
        self._agents[agent.agent_id] = agent
        return agent

    def find(self, agent_id: str) -> Optional["Agent"]:
        return self._agents.get(agent_id)

    def get(self, agent_id: str) -> "Agent":
        agent = self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id, status_code=404)
        return agent

    @property
    def agent_ids(self) -> list[str]:
        return list(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __iter__(self) -> Iterator["Agent"]:
        return iter(self._agents.values())

    def __len__(self) -> int:
        return len(self._agents)
