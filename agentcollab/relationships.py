"""
agentcollab - Trust tracking between agents.
"""

from typing import Any, Optional

from .models import CollaborationEvent, Relationship, clamp

TRUST_REWARD = 0.1
TRUST_PENALTY = 0.05


class RelationshipTracker:
    """
    Maintains one agent's trust scores toward its collaborators.

    Relationships live in the owning agent's memory and are created lazily on
    the first recorded collaboration. Trust rises by TRUST_REWARD on success
    and falls by TRUST_PENALTY on failure, always staying within [0, 1].
    """

    def __init__(self, relationships: dict[str, Relationship]):
        self._relationships = relationships

    def record(
        self, agent_id: str, interaction: Any, outcome: dict[str, Any]
    ) -> Relationship:
        relationship = self._relationships.get(agent_id)
        if relationship is None:
            relationship = Relationship(agent_id=agent_id)
            self._relationships[agent_id] = relationship

        relationship.collaboration_history.append(
            CollaborationEvent(interaction=interaction, outcome=dict(outcome))
        )
        if outcome.get("success"):
            relationship.trust_level = clamp(relationship.trust_level + TRUST_REWARD)
        else:
            relationship.trust_level = clamp(relationship.trust_level - TRUST_PENALTY)
        return relationship

    def get(self, agent_id: str) -> Optional[Relationship]:
        return self._relationships.get(agent_id)

    def trust_level(self, agent_id: str) -> Optional[float]:
        relationship = self._relationships.get(agent_id)
        return relationship.trust_level if relationship else None

    def summary(self) -> dict[str, dict[str, Any]]:
        return {
            agent_id: {
                "trust_level": r.trust_level,
                "collaborations": len(r.collaboration_history),
            }
            for agent_id, r in self._relationships.items()
        }

    def __len__(self) -> int:
        return len(self._relationships)
