"""
Session Store - Durable storage of therapy chat sessions.

Layout under the storage root:
    chat_sessions/documents/<id>.json          full session document
    chat_sessions/by_session_id/<session_id>   internal id for the public session id

Both files are written once at creation. After that only the session's own
document is rewritten, so saves to different sessions never touch the same file.
"""

import logging
import re
import uuid
from typing import List, Optional

import pydantic

from .interface import StorageInterface
from .user_storage import UserStorage
from ..core.exceptions import NotFoundError, StorageError
from ..models.chat import ChatSession, SessionStatus, utc_now

logger = logging.getLogger(__name__)

# Public session ids are uuid4 strings; anything else cannot name a stored session
_SESSION_ID_PATTERN = re.compile(r"[A-Za-z0-9-]+")


class SessionStore:
    """Keyed lookup, listing and overwrite-saves of ChatSession documents."""

    base_dir = "chat_sessions"

    def __init__(self, storage: StorageInterface, user_storage: UserStorage):
        self.storage = storage
        self.user_storage = user_storage

    def _document_path(self, internal_id: str) -> str:
        return f"{self.base_dir}/documents/{internal_id}.json"

    def _pointer_path(self, session_id: str) -> str:
        return f"{self.base_dir}/by_session_id/{session_id}"

    async def _load_document(self, path: str) -> Optional[ChatSession]:
        content = await self.storage.load(path)
        if content is None:
            return None
        try:
            return ChatSession.model_validate_json(content)
        except pydantic.ValidationError as e:
            logger.error(f"Unreadable session document {path}: {e}")
            raise StorageError(f"Corrupt session document at {path}", resource_id=path) from e

    async def create(self, owner_id: str) -> ChatSession:
        """
        Allocate and persist a new, empty, active session.

        Raises:
            NotFoundError: If owner_id is not a registered user
        """
        if not await self.user_storage.user_exists(owner_id):
            raise NotFoundError("User not found", resource_id=owner_id)

        session = ChatSession(
            id=uuid.uuid4().hex,
            session_id=str(uuid.uuid4()),
            owner_id=owner_id,
            status=SessionStatus.ACTIVE,
            start_time=utc_now(),
            messages=[],
        )
        await self.save(session)
        await self.storage.save(self._pointer_path(session.session_id), session.id)

        logger.info(
            f"Chat session created: {session.session_id}",
            extra={"extra_fields": {"session_id": session.session_id, "user_id": owner_id}}
        )
        return session

    async def find(self, session_id: str) -> Optional[ChatSession]:
        """Look up a session by its public id. Returns None if absent."""
        if not _SESSION_ID_PATTERN.fullmatch(session_id or ""):
            return None
        pointer = await self.storage.load(self._pointer_path(session_id))
        if pointer is None:
            return None
        internal_id = pointer.decode('utf-8').strip()
        return await self._load_document(self._document_path(internal_id))

    async def list_by_owner(self, owner_id: str) -> List[ChatSession]:
        """All sessions owned by owner_id, newest first by start time."""
        sessions = []
        for path in await self.storage.list(f"{self.base_dir}/documents", pattern="*.json"):
            session = await self._load_document(path)
            if session is not None and session.owner_id == owner_id:
                sessions.append(session)
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions

    async def save(self, session: ChatSession) -> None:
        """Persist the full current state of a session (overwrite)."""
        await self.storage.save(
            self._document_path(session.id),
            session.model_dump_json(by_alias=True, indent=2)
        )
        logger.debug(
            f"Chat session saved: {session.session_id} ({len(session.messages)} messages)"
        )
