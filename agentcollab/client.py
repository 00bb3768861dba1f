"""
agentcollab - HTTP client for the agentcollab server.

Provides both synchronous and asynchronous clients.
"""

from typing import Any, AsyncIterator, Iterator, Optional

import httpx

from .exceptions import (
    APIError,
    NotFoundError,
    ValidationError,
    WorkflowStateError,
)
from .streaming import ChatEvent, aparse_sse_lines, parse_sse_lines

DEFAULT_BASE_URL = "http://localhost:8000"


def _detail(response: httpx.Response) -> tuple[str, Optional[dict]]:
    if not response.content:
        return "", None
    try:
        data = response.json()
    except ValueError:
        return response.text, None
    if isinstance(data, dict):
        detail = data.get("detail", "")
        return detail if isinstance(detail, str) else str(detail), data
    return str(data), None


def _raise_for_status(response: httpx.Response) -> None:
    """Raise the agentcollab exception matching an error response."""
    if response.status_code < 400:
        return
    message, data = _detail(response)
    if response.status_code == 404:
        raise NotFoundError(message or "Resource not found", status_code=404, response=data)
    elif response.status_code == 409:
        raise WorkflowStateError(
            message or "Workflow is not in a valid state",
            status_code=409,
            response=data,
        )
    elif response.status_code in (400, 422):
        errors = data.get("detail") if data and isinstance(data.get("detail"), list) else []
        raise ValidationError(
            message or "Validation error",
            errors=errors,
            status_code=response.status_code,
            response=data,
        )
    raise APIError(
        message or f"Request failed with status {response.status_code}",
        status_code=response.status_code,
        response=data,
    )


def _chat_payload(
    message: str, agent_id: Optional[str], context: Optional[dict[str, Any]], stream: bool
) -> dict[str, Any]:
    payload: dict[str, Any] = {"message": message, "stream": stream}
    if agent_id:
        payload["agent_id"] = agent_id
    if context:
        payload["context"] = context
    return payload


def _workflow_payload(
    name: Optional[str],
    steps: Optional[list[dict[str, Any]]],
    description: Optional[str],
    yaml: Optional[str],
) -> dict[str, Any]:
    if yaml is not None:
        return {"yaml": yaml}
    if not name:
        raise ValidationError("name is required when no YAML document is given")
    payload: dict[str, Any] = {"name": name, "steps": steps or []}
    if description:
        payload["description"] = description
    return payload


def _execute_payload(stream: bool, timeout: Optional[float]) -> dict[str, Any]:
    payload: dict[str, Any] = {"stream": stream}
    if timeout is not None:
        payload["timeout"] = timeout
    return payload


class AgentCollabClient:
    """
    Synchronous client for the agentcollab server.

    Example:
        ```python
        client = AgentCollabClient("http://localhost:8000", user_id="alice")

        result = client.chat("Should we raise prices?")
        workflow = result["workflow"]
        if workflow:
            done = client.execute_workflow(workflow["id"])
            print(done["status"])
        ```
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        user_id: str = "anonymous",
        timeout: float = 120.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={
                "X-User-ID": user_id,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def _handle_response(self, response: httpx.Response) -> Any:
        """Handle HTTP response and raise appropriate exceptions."""
        _raise_for_status(response)
        return response.json() if response.content else {}

    # ==================== Discovery ====================

    def discover(self) -> dict:
        response = self._client.get("/.well-known/agentcollab.json")
        return self._handle_response(response)

    # ==================== Chat ====================

    def chat(
        self,
        message: str,
        agent_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> dict:
        response = self._client.post(
            "/api/v1/chat", json=_chat_payload(message, agent_id, context, False)
        )
        return self._handle_response(response)

    def stream_chat(
        self,
        message: str,
        agent_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> Iterator[ChatEvent]:
        """Yield chat events as the server produces them, ending with ``done``."""
        with self._client.stream(
            "POST", "/api/v1/chat", json=_chat_payload(message, agent_id, context, True)
        ) as response:
            if response.status_code >= 400:
                response.read()
                _raise_for_status(response)
            yield from parse_sse_lines(response.iter_lines())

    # ==================== Agents ====================

    def list_agents(self) -> list[dict]:
        return self._handle_response(self._client.get("/api/v1/agents"))

    def get_agent(self, agent_id: str) -> dict:
        return self._handle_response(self._client.get(f"/api/v1/agents/{agent_id}"))

    def update_agent_memory(
        self,
        agent_id: str,
        context: Optional[dict[str, Any]] = None,
        preferences: Optional[dict[str, Any]] = None,
    ) -> dict:
        response = self._client.patch(
            f"/api/v1/agents/{agent_id}/memory",
            json={"context": context or {}, "preferences": preferences or {}},
        )
        return self._handle_response(response)

    # ==================== Workflows ====================

    def list_workflows(self, status: Optional[str] = None) -> list[dict]:
        params = {"status": status} if status else None
        return self._handle_response(self._client.get("/api/v1/workflows", params=params))

    def create_workflow(
        self,
        name: Optional[str] = None,
        steps: Optional[list[dict[str, Any]]] = None,
        description: Optional[str] = None,
        yaml: Optional[str] = None,
    ) -> dict:
        response = self._client.post(
            "/api/v1/workflows", json=_workflow_payload(name, steps, description, yaml)
        )
        return self._handle_response(response)

    def get_workflow(self, workflow_id: str) -> dict:
        return self._handle_response(self._client.get(f"/api/v1/workflows/{workflow_id}"))

    def execute_workflow(self, workflow_id: str, timeout: Optional[float] = None) -> dict:
        response = self._client.post(
            f"/api/v1/workflows/{workflow_id}/execute",
            json=_execute_payload(False, timeout),
        )
        return self._handle_response(response)

    def stream_workflow(
        self, workflow_id: str, timeout: Optional[float] = None
    ) -> Iterator[ChatEvent]:
        with self._client.stream(
            "POST",
            f"/api/v1/workflows/{workflow_id}/execute",
            json=_execute_payload(True, timeout),
        ) as response:
            if response.status_code >= 400:
                response.read()
                _raise_for_status(response)
            yield from parse_sse_lines(response.iter_lines())

    # ==================== Insights ====================

    def insights(self) -> dict:
        return self._handle_response(self._client.get("/api/v1/insights"))

    def training_metrics(self) -> dict:
        return self._handle_response(self._client.get("/api/v1/training/metrics"))

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "AgentCollabClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class AsyncAgentCollabClient:
    """
    Asynchronous client for the agentcollab server.

    Example:
        ```python
        async with AsyncAgentCollabClient(user_id="alice") as client:
            async for event in client.stream_chat("Plan our launch"):
                print(event.type, event.data)
        ```
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        user_id: str = "anonymous",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "X-User-ID": user_id,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def _handle_response(self, response: httpx.Response) -> Any:
        """Handle HTTP response and raise appropriate exceptions."""
        _raise_for_status(response)
        return response.json() if response.content else {}

    async def discover(self) -> dict:
        response = await self._client.get("/.well-known/agentcollab.json")
        return self._handle_response(response)

    async def chat(
        self,
        message: str,
        agent_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> dict:
        response = await self._client.post(
            "/api/v1/chat", json=_chat_payload(message, agent_id, context, False)
        )
        return self._handle_response(response)

    async def stream_chat(
        self,
        message: str,
        agent_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> AsyncIterator[ChatEvent]:
        async with self._client.stream(
            "POST", "/api/v1/chat", json=_chat_payload(message, agent_id, context, True)
        ) as response:
            if response.status_code >= 400:
                await response.aread()
                _raise_for_status(response)
            async for event in aparse_sse_lines(response.aiter_lines()):
                yield event

    async def list_agents(self) -> list[dict]:
        return self._handle_response(await self._client.get("/api/v1/agents"))

    async def get_agent(self, agent_id: str) -> dict:
        return self._handle_response(await self._client.get(f"/api/v1/agents/{agent_id}"))

    async def update_agent_memory(
        self,
        agent_id: str,
        context: Optional[dict[str, Any]] = None,
        preferences: Optional[dict[str, Any]] = None,
    ) -> dict:
        response = await self._client.patch(
            f"/api/v1/agents/{agent_id}/memory",
            json={"context": context or {}, "preferences": preferences or {}},
        )
        return self._handle_response(response)

    async def list_workflows(self, status: Optional[str] = None) -> list[dict]:
        params = {"status": status} if status else None
        return self._handle_response(
            await self._client.get("/api/v1/workflows", params=params)
        )

    async def create_workflow(
        self,
        name: Optional[str] = None,
        steps: Optional[list[dict[str, Any]]] = None,
        description: Optional[str] = None,
        yaml: Optional[str] = None,
    ) -> dict:
        response = await self._client.post(
            "/api/v1/workflows", json=_workflow_payload(name, steps, description, yaml)
        )
        return self._handle_response(response)

    async def get_workflow(self, workflow_id: str) -> dict:
        return self._handle_response(
            await self._client.get(f"/api/v1/workflows/{workflow_id}")
        )

    async def execute_workflow(
        self, workflow_id: str, timeout: Optional[float] = None
    ) -> dict:
        response = await self._client.post(
            f"/api/v1/workflows/{workflow_id}/execute",
            json=_execute_payload(False, timeout),
        )
        return self._handle_response(response)

    async def stream_workflow(
        self, workflow_id: str, timeout: Optional[float] = None
    ) -> AsyncIterator[ChatEvent]:
        async with self._client.stream(
            "POST",
            f"/api/v1/workflows/{workflow_id}/execute",
            json=_execute_payload(True, timeout),
        ) as response:
            if response.status_code >= 400:
                await response.aread()
                _raise_for_status(response)
            async for event in aparse_sse_lines(response.aiter_lines()):
                yield event

    async def insights(self) -> dict:
        return self._handle_response(await self._client.get("/api/v1/insights"))

    async def training_metrics(self) -> dict:
        return self._handle_response(await self._client.get("/api/v1/training/metrics"))

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncAgentCollabClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

