"""
FastAPI application for the agentcollab server.
"""

import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from .. import __version__
from ..database import Database, SQLWorkflowStore
from ..exceptions import (
    AgentCollabError,
    NotFoundError,
    WorkflowStateError,
    WorkflowValidationError,
)
from ..llm import ProviderGenerator, TextGenerator
from ..models import WorkflowStatus
from ..personas import DEFAULT_PERSONAS
from ..store import InMemoryWorkflowStore
from ..streaming import ChatEvent, ChatEventType
from ..system import CollaborationSystem
from ..training import InMemoryTrainingCollector, SQLTrainingCollector, TrainingCollector
from ..validation import InputValidationError
from ..workflow import DEFAULT_DESCRIPTION, WorkflowSpec
from .config import ServerConfig

logger = logging.getLogger("agentcollab.server")


class ChatRequest(BaseModel):
    message: str
    agent_id: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    stream: bool = False


class WorkflowStepCreate(BaseModel):
    agent_id: str
    task: str
    dependencies: List[str] = Field(default_factory=list)
    # Defaults to the task when omitted.
    expected_outcome: Optional[str] = None


class WorkflowCreate(BaseModel):
    name: Optional[str] = None
    description: str = DEFAULT_DESCRIPTION
    steps: List[WorkflowStepCreate] = Field(default_factory=list)
    # A YAML workflow document; takes precedence over name/steps.
    yaml: Optional[str] = None


class WorkflowExecuteRequest(BaseModel):
    stream: bool = False
    timeout: Optional[float] = Field(None, gt=0)


class MemoryUpdate(BaseModel):
    context: Dict[str, Any] = Field(default_factory=dict)
    preferences: Dict[str, Any] = Field(default_factory=dict)


def create_app(
    config: Optional[ServerConfig] = None,
    generator: Optional[TextGenerator] = None,
    training_collector: Optional[TrainingCollector] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    ``generator`` and ``training_collector`` replace the provider-backed
    generator and the configured collector, mainly for tests.
    """
    if config is None:
        config = ServerConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = None
        if config.database_url:
            db = Database(config.database_url)
            db.create_tables()
        app.state.db = db
        app.state.config = config
        app.state.generator = generator or ProviderGenerator()
        if training_collector is not None:
            app.state.training_collector = training_collector
        elif db is not None:
            app.state.training_collector = SQLTrainingCollector(db)
        else:
            app.state.training_collector = InMemoryTrainingCollector()
        app.state.sessions = OrderedDict()
        yield
        app.state.sessions.clear()

    app = FastAPI(
        title="agentcollab",
        description="Multi-agent collaboration and workflow execution server",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AgentCollabError)
    async def agentcollab_error_handler(request: Request, exc: AgentCollabError):
        if isinstance(exc, (InputValidationError, WorkflowValidationError)):
            status_code = 400
        elif isinstance(exc, NotFoundError):
            status_code = 404
        elif isinstance(exc, WorkflowStateError):
            status_code = 409
        else:
            status_code = exc.status_code or 500
        if status_code >= 500:
            logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=status_code, content={"detail": exc.message})

    def get_system(x_user_id: str = Header("anonymous")) -> CollaborationSystem:
        sessions: OrderedDict = app.state.sessions
        system = sessions.get(x_user_id)
        if system is not None:
            sessions.move_to_end(x_user_id)
        else:
            if app.state.db is not None:
                store = SQLWorkflowStore(app.state.db, user_id=x_user_id)
            else:
                store = InMemoryWorkflowStore()
            system = CollaborationSystem(
                x_user_id,
                app.state.generator,
                store=store,
                training_collector=app.state.training_collector,
                model=config.model,
                request_timeout=config.request_timeout,
                step_timeout=config.step_timeout,
                isolate_failures=config.isolate_failures,
            )
            sessions[x_user_id] = system
            logger.info(f"Created collaboration session for {x_user_id}")
            while len(sessions) > config.max_sessions:
                evicted, _ = sessions.popitem(last=False)
                logger.info(f"Evicted idle collaboration session for {evicted}")
        return system

    # ==================== Discovery ====================

    @app.get("/.well-known/agentcollab.json")
    async def discovery():
        return {
            "service": "agentcollab",
            "version": __version__,
            "api_version": config.api_version,
            "agents": [persona.agent_id for persona in DEFAULT_PERSONAS],
            "capabilities": [
                "chat",
                "streaming",
                "collaboration",
                "workflows",
                "yaml-workflows",
                "insights",
                "training-metrics",
            ],
            "endpoints": {
                "chat": "/api/v1/chat",
                "agents": "/api/v1/agents",
                "workflows": "/api/v1/workflows",
                "insights": "/api/v1/insights",
                "training_metrics": "/api/v1/training/metrics",
            },
        }

    # ==================== Chat ====================

    @app.post("/api/v1/chat")
    async def chat(body: ChatRequest, system: CollaborationSystem = Depends(get_system)):
        if not body.stream:
            result = await system.handle_chat_request(
                body.message, agent_id=body.agent_id, context=body.context
            )
            return result.to_dict()

        # Surface routing and validation errors before the stream starts.
        system.resolve_agent(body.message, body.agent_id, body.context)

        async def event_generator():
            try:
                async for event in system.stream_chat_request(
                    body.message, agent_id=body.agent_id, context=body.context
                ):
                    yield event.to_sse()
            except Exception as e:
                logger.exception(f"Chat stream failed: {e}")
                yield ChatEvent(type=ChatEventType.ERROR, data={"error": str(e)}).to_sse()
                yield ChatEvent.done().to_sse()

        return EventSourceResponse(event_generator())

    # ==================== Agents ====================

    @app.get("/api/v1/agents")
    async def list_agents(system: CollaborationSystem = Depends(get_system)):
        return system.list_agents()

    @app.get("/api/v1/agents/{agent_id}")
    async def get_agent(agent_id: str, system: CollaborationSystem = Depends(get_system)):
        return system.get_agent(agent_id)

    @app.patch("/api/v1/agents/{agent_id}/memory")
    async def update_agent_memory(
        agent_id: str,
        body: MemoryUpdate,
        system: CollaborationSystem = Depends(get_system),
    ):
        return system.update_agent_memory(
            agent_id, context=body.context, preferences=body.preferences
        )

    # ==================== Workflows ====================

    @app.get("/api/v1/workflows")
    async def list_workflows(
        status: Optional[str] = Query(None),
        system: CollaborationSystem = Depends(get_system),
    ):
        status_filter = None
        if status:
            try:
                status_filter = WorkflowStatus(status)
            except ValueError:
                raise InputValidationError(
                    f"Unknown workflow status: {status}", field="status", value=status
                )
        workflows = await system.list_workflows(status=status_filter)
        return [w.to_dict() for w in workflows]

    @app.post("/api/v1/workflows", status_code=201)
    async def create_workflow(
        body: WorkflowCreate, system: CollaborationSystem = Depends(get_system)
    ):
        if body.yaml:
            spec = WorkflowSpec.from_string(body.yaml)
            workflow = await system.create_workflow_from_spec(spec)
        else:
            if not body.name:
                raise InputValidationError("name is required", field="name")
            workflow = await system.create_workflow(
                body.name,
                [s.model_dump() for s in body.steps],
                description=body.description,
            )
        return workflow.to_dict()

    @app.get("/api/v1/workflows/{workflow_id}")
    async def get_workflow(
        workflow_id: str, system: CollaborationSystem = Depends(get_system)
    ):
        workflow = await system.get_workflow(workflow_id)
        return workflow.to_dict()

    @app.post("/api/v1/workflows/{workflow_id}/execute")
    async def execute_workflow(
        workflow_id: str,
        body: Optional[WorkflowExecuteRequest] = None,
        system: CollaborationSystem = Depends(get_system),
    ):
        body = body or WorkflowExecuteRequest()
        if not body.stream:
            workflow = await system.execute_workflow(workflow_id, timeout=body.timeout)
            return workflow.to_dict()

        workflow = await system.get_workflow(workflow_id)
        if workflow.status != WorkflowStatus.PENDING:
            raise WorkflowStateError(
                f"Workflow {workflow_id} is {workflow.status.value}; only pending "
                "workflows can be executed",
                current_status=workflow.status.value,
            )

        async def event_generator():
            try:
                async for event in system.stream_workflow_execution(
                    workflow_id, timeout=body.timeout
                ):
                    yield event.to_sse()
            except Exception as e:
                logger.exception(f"Workflow stream failed: {e}")
                yield ChatEvent(
                    type=ChatEventType.WORKFLOW_ERROR,
                    data={"workflow_id": workflow_id, "error": str(e)},
                ).to_sse()
                yield ChatEvent.done().to_sse()

        return EventSourceResponse(event_generator())

    # ==================== Insights ====================

    @app.get("/api/v1/insights")
    async def insights(system: CollaborationSystem = Depends(get_system)):
        return (await system.collaboration_insights()).to_dict()

    @app.get("/api/v1/training/metrics")
    async def training_metrics(system: CollaborationSystem = Depends(get_system)):
        return (await system.training_metrics()).to_dict()

    return app


class AgentCollabServer:
    """High-level server class for running agentcollab."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 8000,
        database_url: Optional[str] = None,
        generator: Optional[TextGenerator] = None,
        **kwargs,
    ):
        self.config = ServerConfig(
            host=host,
            port=port,
            database_url=database_url,
            **kwargs,
        )
        self.app = create_app(self.config, generator=generator)

    def run(self):
        """Run the server (blocking)."""
        import uvicorn

        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level,
        )

    async def run_async(self):
        """Run the server asynchronously."""
        import uvicorn

        config = uvicorn.Config(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level,
        )
        server = uvicorn.Server(config)
        await server.serve()
