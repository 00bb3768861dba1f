"""
Database layer for agentcollab using SQLAlchemy.
Supports SQLite (default) and PostgreSQL.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    String,
    Text,
    create_engine,
    desc,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import TrainingInteraction, Workflow, WorkflowStatus
from .store import WorkflowStore

Base = declarative_base()


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _aware_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class WorkflowModel(Base):
    __tablename__ = "workflows"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(255), nullable=False, default="")
    name = Column(String(255), nullable=False)
    status = Column(String(50), default="pending")
    data = Column(JSON, default=dict)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_workflows_user_id", "user_id"),
        Index("idx_workflows_status", "status"),
    )


class TrainingInteractionModel(Base):
    __tablename__ = "agent_training_interactions"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(255), nullable=False)
    agent_id = Column(String(64), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    user_message = Column(Text, nullable=False)
    agent_response = Column(Text, nullable=False)
    context = Column(JSON, default=dict)
    success = Column(Boolean, default=True)
    response_time_ms = Column(Float, default=0.0)
    confidence = Column(Float, default=0.0)
    collaboration_requests = Column(JSON, default=list)
    follow_up_tasks = Column(JSON, default=list)
    metadata_ = Column("metadata", JSON, default=dict)
    user_rating = Column(Float, nullable=True)
    user_feedback = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_training_user_id", "user_id"),
        Index("idx_training_agent_id", "agent_id"),
    )

    def to_interaction(self) -> TrainingInteraction:
        return TrainingInteraction(
            id=self.id,
            user_id=self.user_id,
            agent_id=self.agent_id,
            timestamp=_aware_utc(self.timestamp),
            user_message=self.user_message,
            agent_response=self.agent_response,
            context=self.context or {},
            success=bool(self.success),
            response_time_ms=self.response_time_ms or 0.0,
            confidence=self.confidence or 0.0,
            collaboration_requests=self.collaboration_requests or [],
            follow_up_tasks=self.follow_up_tasks or [],
            metadata=self.metadata_ or {},
            user_rating=self.user_rating,
            user_feedback=self.user_feedback,
        )


class Database:
    """Database interface for agentcollab."""

    def __init__(self, database_url: str):
        self.database_url = database_url

        connect_args = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False

        # An in-memory sqlite database only exists on its one connection;
        # file databases get a connection per worker thread.
        in_memory = database_url.startswith("sqlite") and (
            database_url.rstrip("/") == "sqlite:" or ":memory:" in database_url
        )

        self.engine = create_engine(
            database_url,
            connect_args=connect_args,
            poolclass=StaticPool if in_memory else None,
        )
        self.SessionLocal = sessionmaker(bind=self.engine)

    def create_tables(self):
        """Create all tables."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    # ==================== Workflows ====================

    def save_workflow(self, session: Session, workflow: Workflow, user_id: str = "") -> WorkflowModel:
        row = session.get(WorkflowModel, workflow.id)
        if row is None:
            row = WorkflowModel(
                id=workflow.id,
                user_id=user_id,
                created_at=_naive_utc(workflow.created_at),
            )
            session.add(row)
        row.name = workflow.name
        row.status = workflow.status.value
        row.data = workflow.to_dict()
        row.updated_at = datetime.now(timezone.utc).replace(tzinfo=None)
        session.commit()
        return row

    def get_workflow(self, session: Session, workflow_id: str) -> Optional[WorkflowModel]:
        return session.query(WorkflowModel).filter(WorkflowModel.id == workflow_id).first()

    def list_workflows(
        self,
        session: Session,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> List[WorkflowModel]:
        query = session.query(WorkflowModel)
        if user_id is not None:
            query = query.filter(WorkflowModel.user_id == user_id)
        if status:
            query = query.filter(WorkflowModel.status == status)
        return query.order_by(desc(WorkflowModel.created_at)).limit(limit).all()

    # ==================== Training Interactions ====================

    def create_training_interaction(
        self, session: Session, interaction: TrainingInteraction
    ) -> TrainingInteractionModel:
        row = TrainingInteractionModel(
            id=interaction.id,
            user_id=interaction.user_id,
            agent_id=interaction.agent_id,
            timestamp=_naive_utc(interaction.timestamp),
            user_message=interaction.user_message,
            agent_response=interaction.agent_response,
            context=interaction.context,
            success=interaction.success,
            response_time_ms=interaction.response_time_ms,
            confidence=interaction.confidence,
            collaboration_requests=interaction.collaboration_requests,
            follow_up_tasks=interaction.follow_up_tasks,
            metadata_=interaction.metadata,
            user_rating=interaction.user_rating,
            user_feedback=interaction.user_feedback,
        )
        session.add(row)
        session.commit()
        return row

    def get_training_interaction(
        self, session: Session, interaction_id: str
    ) -> Optional[TrainingInteractionModel]:
        return (
            session.query(TrainingInteractionModel)
            .filter(TrainingInteractionModel.id == interaction_id)
            .first()
        )

    def list_training_interactions(
        self,
        session: Session,
        user_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        limit: int = 1000,
    ) -> List[TrainingInteractionModel]:
        query = session.query(TrainingInteractionModel)
        if user_id is not None:
            query = query.filter(TrainingInteractionModel.user_id == user_id)
        if agent_id is not None:
            query = query.filter(TrainingInteractionModel.agent_id == agent_id)
        return query.order_by(desc(TrainingInteractionModel.timestamp)).limit(limit).all()

    def update_training_rating(
        self,
        session: Session,
        interaction_id: str,
        rating: float,
        feedback: Optional[str] = None,
    ) -> Optional[TrainingInteractionModel]:
        row = self.get_training_interaction(session, interaction_id)
        if row is None:
            return None
        row.user_rating = rating
        if feedback is not None:
            row.user_feedback = feedback
        session.commit()
        return row


class SQLWorkflowStore(WorkflowStore):
    """
    Workflow store backed by a SQLAlchemy database.

    Each workflow is stored as its serialized dict; reads return fresh
    Workflow objects. Blocking calls run in a worker thread.
    """

    def __init__(self, database: Database, user_id: str = ""):
        self.database = database
        self.user_id = user_id

    def _save(self, workflow: Workflow) -> None:
        session = self.database.get_session()
        try:
            self.database.save_workflow(session, workflow, user_id=self.user_id)
        finally:
            session.close()

    def _get(self, workflow_id: str) -> Optional[Workflow]:
        session = self.database.get_session()
        try:
            row = self.database.get_workflow(session, workflow_id)
            if row is None or row.user_id != self.user_id:
                return None
            return Workflow.from_dict(row.data)
        finally:
            session.close()

    def _list(self, status: Optional[WorkflowStatus], limit: int) -> list[Workflow]:
        session = self.database.get_session()
        try:
            rows = self.database.list_workflows(
                session,
                user_id=self.user_id,
                status=status.value if status else None,
                limit=limit,
            )
            return [Workflow.from_dict(row.data) for row in rows]
        finally:
            session.close()

    async def save(self, workflow: Workflow) -> None:
        await asyncio.to_thread(self._save, workflow)

    async def get(self, workflow_id: str) -> Optional[Workflow]:
        return await asyncio.to_thread(self._get, workflow_id)

    async def list(
        self, status: Optional[WorkflowStatus] = None, limit: int = 100
    ) -> list[Workflow]:
        return await asyncio.to_thread(self._list, status, limit)
