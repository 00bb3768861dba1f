"""
Unit tests for the agentcollab server module.

Tests server configuration and API endpoints.
"""

import json
import os
from unittest.mock import patch

import pytest

from agentcollab.server.config import ServerConfig

from fakes import FakeGenerator, reply

HEADERS = {"X-User-ID": "alice"}

PRICING_YAML = """
agentcollab: "1.0"
info:
  name: "Pricing Review"
workflow:
  numbers:
    assign: lexi
    task: "Estimate elasticity"
  decide:
    assign: roxy
    depends_on: numbers
"""


def _sse_events(text):
    """Split an SSE body into (event, data) pairs."""
    events = []
    for block in text.replace("\r\n", "\n").split("\n\n"):
        event_type, data = None, []
        for line in block.splitlines():
            if line.startswith("event:"):
                event_type = line[6:].strip()
            elif line.startswith("data:"):
                data.append(line[5:].strip())
        if event_type:
            events.append((event_type, "\n".join(data)))
    return events


@pytest.fixture
def generator():
    return FakeGenerator(
        replies={
            "roxy": reply(
                "Test the price change first",
                follow_up_tasks=[
                    {"assigned_to": "lumi", "expected_outcome": "Check consumer rules"}
                ],
            )
        }
    )


@pytest.fixture
def client(generator, monkeypatch):
    from fastapi.testclient import TestClient
    from sse_starlette.sse import AppStatus

    from agentcollab.server.app import create_app

    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(AppStatus, "should_exit_event", None, raising=False)
    app = create_app(ServerConfig(), generator=generator)
    with TestClient(app) as c:
        yield c


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        config = ServerConfig()
        assert config.host == "0.0.0.0"
        assert config.port == 8000
        assert config.database_url is None
        assert config.isolate_failures is False
        assert config.cors_origins == ["*"]

    def test_database_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///env.db")
        assert ServerConfig().database_url == "sqlite:///env.db"

    def test_from_env(self):
        with patch.dict(
            os.environ,
            {
                "AGENTCOLLAB_PORT": "9999",
                "AGENTCOLLAB_DEBUG": "true",
                "AGENTCOLLAB_MODEL": "gpt-4o",
                "AGENTCOLLAB_REQUEST_TIMEOUT": "30",
                "AGENTCOLLAB_ISOLATE_FAILURES": "TRUE",
                "AGENTCOLLAB_MAX_SESSIONS": "50",
            },
        ):
            config = ServerConfig.from_env()
            assert config.port == 9999
            assert config.debug is True
            assert config.model == "gpt-4o"
            assert config.request_timeout == 30.0
            assert config.step_timeout is None
            assert config.isolate_failures is True
            assert config.max_sessions == 50


class TestDiscovery:
    def test_discovery(self, client):
        resp = client.get("/.well-known/agentcollab.json")
        assert resp.status_code == 200
        data = resp.json()
        assert data["service"] == "agentcollab"
        assert "roxy" in data["agents"]
        assert len(data["agents"]) == 8
        assert data["endpoints"]["chat"] == "/api/v1/chat"


class TestChat:
    def test_chat_creates_workflow(self, client):
        resp = client.post(
            "/api/v1/chat",
            json={"message": "I need to decide whether to raise prices"},
            headers=HEADERS,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["primary_agent_id"] == "roxy"
        assert data["primary_response"]["content"] == "Test the price change first"
        assert data["workflow"]["status"] == "pending"
        assert [s["agent_id"] for s in data["workflow"]["steps"]] == ["lumi"]

    def test_explicit_agent(self, client):
        resp = client.post(
            "/api/v1/chat", json={"message": "Check this", "agent_id": "lumi"}, headers=HEADERS
        )
        assert resp.json()["primary_agent_id"] == "lumi"

    def test_unknown_agent_404(self, client):
        resp = client.post(
            "/api/v1/chat", json={"message": "hi", "agent_id": "zed"}, headers=HEADERS
        )
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Agent zed not found"

    def test_empty_message_400(self, client):
        resp = client.post("/api/v1/chat", json={"message": "  "}, headers=HEADERS)
        assert resp.status_code == 400
        assert "message" in resp.json()["detail"]

    def test_missing_message_422(self, client):
        resp = client.post("/api/v1/chat", json={}, headers=HEADERS)
        assert resp.status_code == 422

    def test_stream(self, client):
        resp = client.post(
            "/api/v1/chat",
            json={"message": "I need to decide whether to raise prices", "stream": True},
            headers=HEADERS,
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")

        events = _sse_events(resp.text)
        assert [e for e, _ in events] == ["primary_response", "workflow_created", "done"]
        assert json.loads(events[0][1])["agent_id"] == "roxy"
        assert events[-1][1] == "[DONE]"

    def test_stream_unknown_agent_404(self, client):
        resp = client.post(
            "/api/v1/chat",
            json={"message": "hi", "agent_id": "zed", "stream": True},
            headers=HEADERS,
        )
        assert resp.status_code == 404


class TestAgents:
    def test_list(self, client):
        resp = client.get("/api/v1/agents", headers=HEADERS)
        assert resp.status_code == 200
        agents = resp.json()
        assert len(agents) == 8
        assert agents[0]["memory"]["user_id"] == "alice"

    def test_get_and_404(self, client):
        assert client.get("/api/v1/agents/vex", headers=HEADERS).json()["name"] == "Vex"
        assert client.get("/api/v1/agents/zed", headers=HEADERS).status_code == 404

    def test_update_memory_is_per_user(self, client):
        resp = client.patch(
            "/api/v1/agents/roxy/memory",
            json={"context": {"company": "Acme"}, "preferences": {"tone": "brief"}},
            headers=HEADERS,
        )
        assert resp.status_code == 200
        assert resp.json()["context"] == {"company": "Acme"}

        mine = client.get("/api/v1/agents/roxy", headers=HEADERS).json()
        theirs = client.get("/api/v1/agents/roxy", headers={"X-User-ID": "bob"}).json()
        assert mine["memory"]["preferences"] == {"tone": "brief"}
        assert theirs["memory"]["context"] == {}


class TestWorkflows:
    def _create(self, client, **body):
        payload = body or {
            "name": "Launch",
            "steps": [
                {"agent_id": "echo", "task": "Write copy"},
                {"agent_id": "nova", "task": "Design page", "dependencies": ["echo"]},
            ],
        }
        return client.post("/api/v1/workflows", json=payload, headers=HEADERS)

    def test_create_and_get(self, client):
        resp = self._create(client)
        assert resp.status_code == 201
        workflow = resp.json()
        assert workflow["status"] == "pending"

        fetched = client.get(f"/api/v1/workflows/{workflow['id']}", headers=HEADERS)
        assert fetched.json()["name"] == "Launch"

    def test_expected_outcome_defaults_to_task(self, client):
        resp = self._create(
            client,
            name="Terms",
            steps=[
                {"agent_id": "lumi", "task": "Review terms"},
                {"agent_id": "echo", "task": "Draft notice", "expected_outcome": "Notice email"},
            ],
        )
        steps = resp.json()["steps"]
        assert steps[0]["expected_outcome"] == "Review terms"
        assert steps[1]["expected_outcome"] == "Notice email"

    def test_create_from_yaml(self, client):
        resp = self._create(client, yaml=PRICING_YAML)
        assert resp.status_code == 201
        steps = resp.json()["steps"]
        assert [s["agent_id"] for s in steps] == ["lexi", "roxy"]
        assert steps[1]["dependencies"] == ["lexi"]

    def test_create_invalid_yaml_400(self, client):
        resp = self._create(client, yaml="info: {}\n")
        assert resp.status_code == 400

    def test_create_requires_name(self, client):
        resp = self._create(client, steps=[{"agent_id": "echo", "task": "x"}])
        assert resp.status_code == 400
        assert resp.json()["detail"] == "name is required"

    def test_create_empty_steps_400(self, client):
        assert self._create(client, name="Empty", steps=[]).status_code == 400

    def test_execute(self, client):
        workflow_id = self._create(client).json()["id"]

        resp = client.post(f"/api/v1/workflows/{workflow_id}/execute", headers=HEADERS)

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "completed"
        assert set(data["results"]) == {"echo", "nova"}

        again = client.post(f"/api/v1/workflows/{workflow_id}/execute", headers=HEADERS)
        assert again.status_code == 409

    def test_execute_unknown_404(self, client):
        resp = client.post("/api/v1/workflows/workflow_missing/execute", headers=HEADERS)
        assert resp.status_code == 404

    def test_execute_failure_reports_error(self, client):
        workflow_id = self._create(
            client,
            name="Cycle",
            steps=[
                {"agent_id": "vex", "task": "a", "dependencies": ["lexi"]},
                {"agent_id": "lexi", "task": "b", "dependencies": ["vex"]},
            ],
        ).json()["id"]

        data = client.post(f"/api/v1/workflows/{workflow_id}/execute", headers=HEADERS).json()

        assert data["status"] == "failed"
        assert data["results"]["error"] == data["error"]

    def test_execute_stream(self, client):
        workflow_id = self._create(client).json()["id"]

        resp = client.post(
            f"/api/v1/workflows/{workflow_id}/execute", json={"stream": True}, headers=HEADERS
        )

        events = _sse_events(resp.text)
        assert [e for e, _ in events] == [
            "workflow_status",
            "step_result",
            "step_result",
            "workflow_complete",
            "done",
        ]

    def test_list_with_status(self, client):
        first = self._create(client).json()["id"]
        self._create(client)
        client.post(f"/api/v1/workflows/{first}/execute", headers=HEADERS)

        assert len(client.get("/api/v1/workflows", headers=HEADERS).json()) == 2
        completed = client.get(
            "/api/v1/workflows", params={"status": "completed"}, headers=HEADERS
        ).json()
        assert [w["id"] for w in completed] == [first]
        bad = client.get("/api/v1/workflows", params={"status": "paused"}, headers=HEADERS)
        assert bad.status_code == 400

    def test_workflows_are_per_user(self, client):
        workflow_id = self._create(client).json()["id"]
        resp = client.get(f"/api/v1/workflows/{workflow_id}", headers={"X-User-ID": "bob"})
        assert resp.status_code == 404


class TestInsightsAndTraining:
    def test_insights(self, client):
        client.post("/api/v1/chat", json={"message": "Plan the week"}, headers=HEADERS)
        data = client.get("/api/v1/insights", headers=HEADERS).json()
        assert data["total_collaborations"] == 0
        assert data["workflow_stats"]["total"] == 1

    def test_training_metrics(self, client):
        client.post("/api/v1/chat", json={"message": "Plan the week"}, headers=HEADERS)
        data = client.get("/api/v1/training/metrics", headers=HEADERS).json()
        assert data["total_interactions"] == 1
        assert data["success_rate"] == 100.0
        assert data["agents"][0]["agent_id"] == "roxy"


class TestSQLBackedServer:
    def test_workflows_persist(self, tmp_path, generator):
        from fastapi.testclient import TestClient

        from agentcollab.server.app import create_app

        config = ServerConfig(database_url=f"sqlite:///{tmp_path / 'server.db'}")
        app = create_app(config, generator=generator)
        with TestClient(app) as c:
            workflow_id = c.post(
                "/api/v1/workflows",
                json={"name": "Persisted", "steps": [{"agent_id": "echo", "task": "x"}]},
                headers=HEADERS,
            ).json()["id"]
            c.post(f"/api/v1/workflows/{workflow_id}/execute", headers=HEADERS)
            c.post("/api/v1/chat", json={"message": "Hello"}, headers=HEADERS)

            assert app.state.db is not None
            data = c.get(f"/api/v1/workflows/{workflow_id}", headers=HEADERS).json()
            assert data["status"] == "completed"
            metrics = c.get("/api/v1/training/metrics", headers=HEADERS).json()
            assert metrics["total_interactions"] == 1


class TestSessions:
    def test_least_recently_used_session_evicted(self, generator, monkeypatch):
        from fastapi.testclient import TestClient

        from agentcollab.server.app import create_app

        monkeypatch.delenv("DATABASE_URL", raising=False)
        app = create_app(ServerConfig(max_sessions=2), generator=generator)
        with TestClient(app) as c:
            c.patch("/api/v1/agents/roxy/memory", json={"context": {"company": "Acme"}}, headers=HEADERS)
            c.get("/api/v1/agents/roxy", headers={"X-User-ID": "bob"})
            # alice is used again, so carol's arrival drops bob
            assert c.get("/api/v1/agents/roxy", headers=HEADERS).json()["memory"]["context"] == {
                "company": "Acme"
            }
            c.get("/api/v1/agents/roxy", headers={"X-User-ID": "carol"})

            assert list(app.state.sessions) == ["alice", "carol"]

            c.get("/api/v1/agents/roxy", headers={"X-User-ID": "dave"})
            assert list(app.state.sessions) == ["carol", "dave"]
            reset = c.get("/api/v1/agents/roxy", headers=HEADERS).json()
            assert reset["memory"]["context"] == {}
