"""Tests for the collaboration coordinator."""

from unittest.mock import AsyncMock, patch

import pytest

from agentcollab.collaboration import CollaborationCoordinator
from agentcollab.models import CollaborationRequest, CollaborationStatus
from agentcollab.personas import create_default_registry

from fakes import FakeGenerator, reply


@pytest.fixture
def registry():
    generator = FakeGenerator(
        collab_replies={
            "lexi": reply("Elasticity looks low"),
            "lumi": reply("No pricing regulation issues"),
        }
    )
    return create_default_registry("u1", generator)


class TestHandleCollaborationRequests:
    @pytest.mark.asyncio
    async def test_missing_agent_skipped(self, registry):
        coordinator = CollaborationCoordinator(registry)
        requests = [
            CollaborationRequest(agent_id="lexi", request="Elasticity?"),
            CollaborationRequest(agent_id="zed", request="Anything?"),
            CollaborationRequest(agent_id="lumi", request="Legal?"),
        ]

        responses = await coordinator.handle_collaboration_requests(requests, "roxy")

        assert [r.content for r in responses] == [
            "Elasticity looks low",
            "No pricing regulation issues",
        ]
        assert [r.status for r in coordinator.records] == [
            CollaborationStatus.COMPLETED,
            CollaborationStatus.SKIPPED,
            CollaborationStatus.COMPLETED,
        ]
        assert coordinator.total_collaborations == 3
        assert coordinator.successful_collaborations == 2

    @pytest.mark.asyncio
    async def test_success_rewards_target_trust(self, registry):
        coordinator = CollaborationCoordinator(registry)
        await coordinator.handle_collaboration_requests(
            [CollaborationRequest(agent_id="lexi", request="Elasticity?")], "roxy"
        )

        lexi = registry.get("lexi")
        assert lexi.relationships.trust_level("roxy") == pytest.approx(0.6)
        assert lexi.relationships.get("roxy").collaboration_history[0].interaction == "Elasticity?"
        # the requester's own view is untouched
        assert registry.get("roxy").relationships.get("lexi") is None

    @pytest.mark.asyncio
    async def test_failure_penalizes_and_continues(self, registry):
        coordinator = CollaborationCoordinator(registry)
        requests = [
            CollaborationRequest(agent_id="vex", request="Can we build it?"),
            CollaborationRequest(agent_id="lumi", request="Legal?"),
        ]

        with patch.object(
            registry.get("vex"),
            "collaborate_with",
            AsyncMock(side_effect=RuntimeError("vex crashed")),
        ):
            responses = await coordinator.handle_collaboration_requests(requests, "roxy")

        assert [r.agent_id for r in responses] == ["lumi"]
        failed = coordinator.records[0]
        assert failed.status == CollaborationStatus.FAILED
        assert failed.error == "vex crashed"

        relationship = registry.get("vex").relationships.get("roxy")
        assert relationship.trust_level == pytest.approx(0.45)
        assert relationship.collaboration_history[0].outcome == {
            "success": False,
            "error": "vex crashed",
        }

    @pytest.mark.asyncio
    async def test_processed_in_order(self, registry):
        generator = registry.get("lexi").generator
        coordinator = CollaborationCoordinator(registry)
        requests = [
            CollaborationRequest(agent_id=agent_id, request="input?")
            for agent_id in ("nova", "echo", "blaze")
        ]

        await coordinator.handle_collaboration_requests(requests, "roxy")

        assert generator.agents_called() == ["nova", "echo", "blaze"]
        assert generator.max_active == 1

    @pytest.mark.asyncio
    async def test_records_context(self, registry):
        coordinator = CollaborationCoordinator(registry)
        await coordinator.handle_collaboration_requests(
            [CollaborationRequest(agent_id="lexi", request="x", priority="high")],
            "roxy",
            {"company": "Acme"},
        )
        record = coordinator.records[0]
        assert record.from_agent == "roxy"
        assert record.to_agent == "lexi"
        assert record.priority == "high"
        assert record.context == {"company": "Acme"}
        assert record.response.content == "Elasticity looks low"

    @pytest.mark.asyncio
    async def test_iter_yields_indexes(self, registry):
        coordinator = CollaborationCoordinator(registry)
        requests = [
            CollaborationRequest(agent_id="zed", request="x"),
            CollaborationRequest(agent_id="lexi", request="y"),
            CollaborationRequest(agent_id="lumi", request="z"),
        ]
        indexes = [
            index
            async for index, _ in coordinator.iter_collaboration_requests(requests, "roxy")
        ]
        assert indexes == [0, 1]

    @pytest.mark.asyncio
    async def test_request_timeout_degrades(self):
        generator = FakeGenerator(delays={"lexi": 1.0})
        registry = create_default_registry("u1", generator)
        coordinator = CollaborationCoordinator(registry, request_timeout=0.01)

        [response] = await coordinator.handle_collaboration_requests(
            [CollaborationRequest(agent_id="lexi", request="slow?")], "roxy"
        )

        assert response.degraded is True
        assert coordinator.records[0].status == CollaborationStatus.COMPLETED
