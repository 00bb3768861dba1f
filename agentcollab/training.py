"""
agentcollab - Training data collection.

Agents report every answered request to a collector. Collectors must be
cheap to call; the agent bounds each write and drops it on timeout.
"""

import asyncio
import csv
import io
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from .database import Database
from .models import TrainingInteraction

logger = logging.getLogger("agentcollab.training")

TOP_AGENTS_LIMIT = 5

EXPORT_FIELDS = (
    "id",
    "user_id",
    "agent_id",
    "timestamp",
    "user_message",
    "agent_response",
    "success",
    "response_time_ms",
    "confidence",
    "user_rating",
    "user_feedback",
)


@dataclass
class AgentTrainingStats:
    agent_id: str
    total_interactions: int
    success_rate: float
    average_rating: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "total_interactions": self.total_interactions,
            "success_rate": self.success_rate,
            "average_rating": self.average_rating,
        }


@dataclass
class TrainingMetrics:
    """Aggregates over a user's interactions. Rates are percentages."""

    total_interactions: int = 0
    success_rate: float = 0.0
    average_response_time_ms: float = 0.0
    average_confidence: float = 0.0
    average_rating: float = 0.0
    agents: list[AgentTrainingStats] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_interactions": self.total_interactions,
            "success_rate": self.success_rate,
            "average_response_time_ms": self.average_response_time_ms,
            "average_confidence": self.average_confidence,
            "average_rating": self.average_rating,
            "agents": [a.to_dict() for a in self.agents],
        }


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_metrics(interactions: list[TrainingInteraction]) -> TrainingMetrics:
    if not interactions:
        return TrainingMetrics()

    by_agent: dict[str, list[TrainingInteraction]] = {}
    for interaction in interactions:
        by_agent.setdefault(interaction.agent_id, []).append(interaction)

    agents = []
    for agent_id, items in by_agent.items():
        ratings = [i.user_rating for i in items if i.user_rating is not None]
        agents.append(
            AgentTrainingStats(
                agent_id=agent_id,
                total_interactions=len(items),
                success_rate=100.0 * sum(1 for i in items if i.success) / len(items),
                average_rating=_mean(ratings),
            )
        )
    agents.sort(key=lambda a: (a.success_rate, a.average_rating), reverse=True)

    ratings = [i.user_rating for i in interactions if i.user_rating is not None]
    return TrainingMetrics(
        total_interactions=len(interactions),
        success_rate=100.0 * sum(1 for i in interactions if i.success) / len(interactions),
        average_response_time_ms=_mean([i.response_time_ms for i in interactions]),
        average_confidence=_mean([i.confidence for i in interactions]),
        average_rating=_mean(ratings),
        agents=agents[:TOP_AGENTS_LIMIT],
    )


def export_interactions(interactions: list[TrainingInteraction], format: str = "json") -> str:
    """Serialize interactions as a JSON array or CSV."""
    if format == "json":
        return json.dumps([i.to_dict() for i in interactions], indent=2)
    if format == "csv":
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for interaction in interactions:
            writer.writerow(interaction.to_dict())
        return buffer.getvalue()
    raise ValueError(f"Unsupported export format: {format}")


class TrainingCollector(ABC):
    """Sink for training interactions."""

    @abstractmethod
    async def record(self, interaction: TrainingInteraction) -> str:
        """Store an interaction and return its id."""

    @abstractmethod
    async def update_rating(
        self, interaction_id: str, rating: float, feedback: Optional[str] = None
    ) -> bool:
        """Attach user feedback. Returns False if the interaction is unknown."""

    @abstractmethod
    async def interactions(
        self,
        user_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        limit: int = 1000,
    ) -> list[TrainingInteraction]:
        """Return stored interactions, newest first."""

    async def metrics(self, user_id: Optional[str] = None) -> TrainingMetrics:
        return compute_metrics(await self.interactions(user_id=user_id, limit=100000))

    async def export(self, user_id: Optional[str] = None, format: str = "json") -> str:
        return export_interactions(
            await self.interactions(user_id=user_id, limit=100000), format=format
        )


class InMemoryTrainingCollector(TrainingCollector):
    def __init__(self):
        self._interactions: dict[str, TrainingInteraction] = {}

    async def record(self, interaction: TrainingInteraction) -> str:
        self._interactions[interaction.id] = interaction
        return interaction.id

    async def update_rating(
        self, interaction_id: str, rating: float, feedback: Optional[str] = None
    ) -> bool:
        interaction = self._interactions.get(interaction_id)
        if interaction is None:
            return False
        interaction.user_rating = rating
        if feedback is not None:
            interaction.user_feedback = feedback
        return True

    async def interactions(
        self,
        user_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        limit: int = 1000,
    ) -> list[TrainingInteraction]:
        items = [
            i
            for i in self._interactions.values()
            if (user_id is None or i.user_id == user_id)
            and (agent_id is None or i.agent_id == agent_id)
        ]
        items.sort(key=lambda i: i.timestamp, reverse=True)
        return items[:limit]


class SQLTrainingCollector(TrainingCollector):
    """Stores interactions in the ``agent_training_interactions`` table."""

    def __init__(self, database: Database):
        self.database = database

    def _record(self, interaction: TrainingInteraction) -> str:
        session = self.database.get_session()
        try:
            return self.database.create_training_interaction(session, interaction).id
        finally:
            session.close()

    def _update_rating(
        self, interaction_id: str, rating: float, feedback: Optional[str]
    ) -> bool:
        session = self.database.get_session()
        try:
            row = self.database.update_training_rating(
                session, interaction_id, rating, feedback
            )
            return row is not None
        finally:
            session.close()

    def _interactions(
        self, user_id: Optional[str], agent_id: Optional[str], limit: int
    ) -> list[TrainingInteraction]:
        session = self.database.get_session()
        try:
            rows = self.database.list_training_interactions(
                session, user_id=user_id, agent_id=agent_id, limit=limit
            )
            return [row.to_interaction() for row in rows]
        finally:
            session.close()

    async def record(self, interaction: TrainingInteraction) -> str:
        interaction_id = await asyncio.to_thread(self._record, interaction)
        logger.debug(f"Recorded training interaction {interaction_id}")
        return interaction_id

    async def update_rating(
        self, interaction_id: str, rating: float, feedback: Optional[str] = None
    ) -> bool:
        return await asyncio.to_thread(self._update_rating, interaction_id, rating, feedback)

    async def interactions(
        self,
        user_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        limit: int = 1000,
    ) -> list[TrainingInteraction]:
        return await asyncio.to_thread(self._interactions, user_id, agent_id, limit)
