"""
Unit tests for the chat session service.
Covers turn processing, ownership checks, fallbacks and status changes.
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from mindcare.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from mindcare.core.model_gateway import FALLBACK_REPLY, GatewayResult, TherapyModelGateway
from mindcare.core.session_service import ChatSessionService
from mindcare.models.chat import MessageAnalysis, MessageRole, SessionStatus
from mindcare.services.event_notifier import SESSION_CREATED, SESSION_MESSAGE
from mindcare.storage.session_store import SessionStore

from conftest import create_user, make_provider


ANXIOUS_ANALYSIS = MessageAnalysis(
    emotional_state="anxious",
    risk_level=2,
    themes=["anxiety"],
    recommended_approach="grounding",
    progress_indicators=["engagement"],
)


def stub_gateway(reply="I hear you, tell me more", analysis=ANXIOUS_ANALYSIS):
    gateway = MagicMock(spec=TherapyModelGateway)
    gateway.generate = AsyncMock(return_value=GatewayResult(reply=reply, analysis=analysis))
    return gateway


@pytest.fixture
def service(session_store, notifier):
    return ChatSessionService(session_store, stub_gateway(), notifier)


class TestCreateSession:
    """Tests for session creation and history round trip."""

    @pytest.mark.asyncio
    async def test_new_session_has_empty_history(self, service, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")

        assert session.status == SessionStatus.ACTIVE
        assert await service.get_history(session.session_id, "u1") == []

    @pytest.mark.asyncio
    async def test_unknown_owner_rejected(self, service):
        with pytest.raises(NotFoundError):
            await service.create_session("ghost")

    @pytest.mark.asyncio
    async def test_emits_session_created_event(self, service, user_storage, notifier):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")

        name, data = notifier.emit.call_args[0]
        assert name == SESSION_CREATED
        assert data["sessionId"] == session.session_id
        assert data["userId"] == "u1"

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_fail_creation(self, service, user_storage, notifier):
        await create_user(user_storage, "u1")
        notifier.emit.side_effect = RuntimeError("bus down")

        session = await service.create_session("u1")
        assert session.session_id


class TestAppendTurn:
    """Tests for one complete chat turn."""

    @pytest.mark.asyncio
    async def test_scenario_single_turn(self, service, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")

        result = await service.append_turn(session.session_id, "u1", "I feel anxious today")
        assert result.reply == "I hear you, tell me more"
        assert result.analysis.risk_level == 2

        history = await service.get_history(session.session_id, "u1")
        assert len(history) == 2
        assert history[0].role == MessageRole.USER
        assert history[0].content == "I feel anxious today"
        assert history[0].metadata is None
        assert history[1].role == MessageRole.ASSISTANT
        assert history[1].content == "I hear you, tell me more"
        assert history[1].metadata.analysis.risk_level == 2
        assert history[1].metadata.progress.emotional_state == "anxious"

    @pytest.mark.asyncio
    async def test_other_user_forbidden_and_session_unchanged(self, service, user_storage):
        await create_user(user_storage, "u1")
        await create_user(user_storage, "u2")
        session = await service.create_session("u1")
        await service.append_turn(session.session_id, "u1", "I feel anxious today")

        with pytest.raises(ForbiddenError):
            await service.append_turn(session.session_id, "u2", "hi")

        assert len(await service.get_history(session.session_id, "u1")) == 2

    @pytest.mark.asyncio
    async def test_other_user_cannot_read_history(self, service, user_storage):
        await create_user(user_storage, "u1")
        await create_user(user_storage, "u2")
        session = await service.create_session("u1")

        with pytest.raises(ForbiddenError):
            await service.get_history(session.session_id, "u2")

    @pytest.mark.asyncio
    async def test_message_count_even_and_user_first(self, service, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")

        for i in range(3):
            await service.append_turn(session.session_id, "u1", f"message {i}")
            history = await service.get_history(session.session_id, "u1")
            assert len(history) % 2 == 0

        roles = [m.role for m in history]
        assert roles == [MessageRole.USER, MessageRole.ASSISTANT] * 3
        assert [m.content for m in history[::2]] == ["message 0", "message 1", "message 2"]

    @pytest.mark.asyncio
    async def test_timestamps_non_decreasing(self, service, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")
        for i in range(2):
            await service.append_turn(session.session_id, "u1", f"message {i}")

        history = await service.get_history(session.session_id, "u1")
        timestamps = [m.timestamp for m in history]
        assert timestamps == sorted(timestamps)

    @pytest.mark.asyncio
    async def test_clock_skew_keeps_timestamps_ordered(self, service, session_store, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")
        await service.append_turn(session.session_id, "u1", "first")

        # Push the stored assistant timestamp into the future
        stored = await session_store.find(session.session_id)
        stored.messages[-1].timestamp += timedelta(hours=1)
        await session_store.save(stored)

        await service.append_turn(session.session_id, "u1", "second")
        history = await service.get_history(session.session_id, "u1")
        assert history[2].content == "second"
        assert history[2].timestamp >= history[1].timestamp
        assert history[3].timestamp >= history[2].timestamp

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    async def test_empty_message_rejected_without_io(self, notifier, text):
        store = MagicMock(spec=SessionStore)
        store.find = AsyncMock()
        store.save = AsyncMock()
        gateway = stub_gateway()
        service = ChatSessionService(store, gateway, notifier)

        with pytest.raises(ValidationError):
            await service.append_turn("s1", "u1", text)

        store.find.assert_not_called()
        store.save.assert_not_called()
        gateway.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_session_not_found(self, service):
        with pytest.raises(NotFoundError):
            await service.append_turn("missing", "u1", "hello")

    @pytest.mark.asyncio
    async def test_gateway_failure_still_persists_turn(self, session_store, user_storage, notifier):
        provider = make_provider()
        provider.chat_completion.side_effect = TimeoutError("provider timed out")
        service = ChatSessionService(session_store, TherapyModelGateway(provider), notifier)
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")

        result = await service.append_turn(session.session_id, "u1", "Is anyone there?")

        assert result.reply == FALLBACK_REPLY
        assert result.analysis is not None
        assert result.analysis.risk_level == 0
        history = await service.get_history(session.session_id, "u1")
        assert [m.content for m in history] == ["Is anyone there?", FALLBACK_REPLY]

    @pytest.mark.asyncio
    async def test_notifier_failure_still_returns_and_persists(self, service, user_storage, notifier):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")
        notifier.emit.side_effect = ConnectionError("bus unavailable")

        result = await service.append_turn(session.session_id, "u1", "hello")

        assert result.reply == "I hear you, tell me more"
        assert len(await service.get_history(session.session_id, "u1")) == 2

    @pytest.mark.asyncio
    async def test_emits_turn_event(self, service, user_storage, notifier):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")

        await service.append_turn(session.session_id, "u1", "I feel anxious today")

        name, data = notifier.emit.call_args[0]
        assert name == SESSION_MESSAGE
        assert data["sessionId"] == session.session_id
        assert data["analysis"]["riskLevel"] == 2

    @pytest.mark.asyncio
    async def test_history_passed_to_gateway(self, session_store, user_storage, notifier):
        gateway = stub_gateway()
        service = ChatSessionService(session_store, gateway, notifier)
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")

        await service.append_turn(session.session_id, "u1", "first")
        await service.append_turn(session.session_id, "u1", "second")

        message, history, _ = gateway.generate.call_args[0]
        assert message == "second"
        assert [m.content for m in history] == ["first", "I hear you, tell me more"]

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, notifier):
        store = MagicMock(spec=SessionStore)
        store.find = AsyncMock(side_effect=StorageError("disk unavailable"))
        service = ChatSessionService(store, stub_gateway(), notifier)

        with pytest.raises(StorageError):
            await service.append_turn("s1", "u1", "hello")


class TestSessionStatus:
    """Tests for session status transitions."""

    @pytest.mark.asyncio
    async def test_archived_session_rejects_append(self, service, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")
        await service.set_status(session.session_id, "u1", SessionStatus.ARCHIVED)

        with pytest.raises(InvalidStateError):
            await service.append_turn(session.session_id, "u1", "hello")
        assert await service.get_history(session.session_id, "u1") == []

    @pytest.mark.asyncio
    async def test_completed_session_still_accepts_append(self, service, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")
        await service.set_status(session.session_id, "u1", SessionStatus.COMPLETED)

        await service.append_turn(session.session_id, "u1", "one more thing")
        assert len(await service.get_history(session.session_id, "u1")) == 2

    @pytest.mark.asyncio
    async def test_archived_is_terminal(self, service, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")
        await service.set_status(session.session_id, "u1", SessionStatus.ARCHIVED)

        with pytest.raises(InvalidStateError):
            await service.set_status(session.session_id, "u1", SessionStatus.ACTIVE)

    @pytest.mark.asyncio
    async def test_status_change_persisted(self, service, session_store, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")
        await service.set_status(session.session_id, "u1", SessionStatus.COMPLETED)

        stored = await session_store.find(session.session_id)
        assert stored.status == SessionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_status_change_requires_owner(self, service, user_storage):
        await create_user(user_storage, "u1")
        session = await service.create_session("u1")

        with pytest.raises(ForbiddenError):
            await service.set_status(session.session_id, "u2", SessionStatus.ARCHIVED)
