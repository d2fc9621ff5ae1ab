"""
Chat Session Service - Orchestrates therapy chat sessions and turns.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .exceptions import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from .model_gateway import THERAPIST_SYSTEM_PROMPT, TherapyModelGateway
from ..models.chat import (
    ChatMessage,
    ChatSession,
    MessageAnalysis,
    MessageMetadata,
    MessageRole,
    SessionStatus,
    utc_now,
)
from ..services.event_notifier import (
    EventNotifier,
    send_session_message_event,
    send_therapy_session_event,
)
from ..storage.session_store import SessionStore

logger = logging.getLogger(__name__)

# Allowed status changes; staying in the same status is always allowed
STATUS_TRANSITIONS = {
    SessionStatus.ACTIVE: {SessionStatus.COMPLETED, SessionStatus.ARCHIVED},
    SessionStatus.COMPLETED: {SessionStatus.ARCHIVED},
    SessionStatus.ARCHIVED: set(),
}


@dataclass
class TurnResult:
    reply: str
    analysis: MessageAnalysis
    metadata: MessageMetadata


class ChatSessionService:
    """
    Creates sessions, runs chat turns and serves history.

    Callers pass an already-authenticated caller id; every read or write of a
    session checks it against the session owner.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: TherapyModelGateway,
        notifier: EventNotifier,
        system_prompt: str = THERAPIST_SYSTEM_PROMPT
    ):
        self.store = store
        self.gateway = gateway
        self.notifier = notifier
        self.system_prompt = system_prompt

    async def _load_owned(self, session_id: str, caller_id: str) -> ChatSession:
        session = await self.store.find(session_id)
        if session is None:
            logger.warning(f"Session not found: {session_id}")
            raise NotFoundError("Session not found", resource_id=session_id)
        if session.owner_id != caller_id:
            logger.warning(
                "Unauthorized session access attempt",
                extra={"extra_fields": {"session_id": session_id, "user_id": caller_id}}
            )
            raise ForbiddenError("Unauthorized", resource_id=session_id)
        return session

    async def _notify(self, send, *args, **kwargs) -> None:
        """Run an event helper; event delivery never affects the request."""
        try:
            await send(self.notifier, *args, **kwargs)
        except Exception as e:
            logger.warning(f"Event notification failed (continuing): {e}")

    async def create_session(self, owner_id: str) -> ChatSession:
        session = await self.store.create(owner_id)
        await self._notify(send_therapy_session_event, session.session_id, owner_id)
        return session

    async def list_sessions(self, owner_id: str) -> List[ChatSession]:
        return await self.store.list_by_owner(owner_id)

    async def get_session(self, session_id: str, caller_id: str) -> ChatSession:
        return await self._load_owned(session_id, caller_id)

    async def get_history(self, session_id: str, caller_id: str) -> List[ChatMessage]:
        """Full message history of a session, oldest first."""
        session = await self._load_owned(session_id, caller_id)
        return session.messages

    async def append_turn(self, session_id: str, caller_id: str, user_text: Optional[str]) -> TurnResult:
        """
        Run one chat turn: generate a reply, append the user and assistant
        messages, persist the session and emit a turn event.

        Raises:
            ValidationError: user_text is empty or whitespace (no I/O performed)
            NotFoundError: session does not exist
            ForbiddenError: caller does not own the session
            InvalidStateError: session is archived
            StorageError: the session could not be loaded or saved
        """
        if user_text is None or not user_text.strip():
            raise ValidationError("Message cannot be empty", resource_id=session_id)

        session = await self._load_owned(session_id, caller_id)
        if session.status == SessionStatus.ARCHIVED:
            raise InvalidStateError("Cannot send messages to an archived session", resource_id=session_id)

        logger.info(
            f"Processing message for session {session_id}",
            extra={"extra_fields": {"session_id": session_id, "history_length": len(session.messages)}}
        )
        result = await self.gateway.generate(user_text, list(session.messages), self.system_prompt)

        # Insertion order is authoritative; timestamps are only kept non-decreasing
        user_time = utc_now()
        if session.messages and session.messages[-1].timestamp > user_time:
            user_time = session.messages[-1].timestamp
        metadata = MessageMetadata.from_analysis(result.analysis)

        session.messages.append(ChatMessage(
            role=MessageRole.USER,
            content=user_text,
            timestamp=user_time,
        ))
        session.messages.append(ChatMessage(
            role=MessageRole.ASSISTANT,
            content=result.reply,
            timestamp=max(utc_now(), user_time),
            metadata=metadata,
        ))

        await self.store.save(session)
        logger.info(
            f"Session updated: {session_id}",
            extra={"extra_fields": {
                "session_id": session_id,
                "message_count": len(session.messages),
                "degraded": result.degraded,
                "risk_level": result.analysis.risk_level,
            }}
        )

        await self._notify(
            send_session_message_event,
            session_id,
            caller_id,
            user_text,
            result.analysis.model_dump(by_alias=True),
            degraded=result.degraded,
        )
        return TurnResult(reply=result.reply, analysis=result.analysis, metadata=metadata)

    async def set_status(self, session_id: str, caller_id: str, status: SessionStatus) -> ChatSession:
        """
        Move a session to a new status.

        Raises:
            InvalidStateError: the transition is not allowed
        """
        session = await self._load_owned(session_id, caller_id)
        if status != session.status and status not in STATUS_TRANSITIONS[session.status]:
            raise InvalidStateError(
                f"Cannot change session status from {session.status.value} to {status.value}",
                resource_id=session_id
            )
        if status != session.status:
            session.status = status
            await self.store.save(session)
            logger.info(f"Session {session_id} status changed to {status.value}")
        return session
