"""
Service wiring for the API routers.

init_services() builds the storage-backed services once at startup; routers
obtain them through the get_* dependencies so tests can override them.
"""

import logging
from typing import Optional

from ..config import settings
from ..core.model_gateway import TherapyModelGateway
from ..core.session_service import ChatSessionService
from ..llm.base import LLMProvider
from ..llm.factory import create_llm_provider
from ..models.wellness import ActivityEntry, MoodEntry
from ..services.event_notifier import EventNotifier, get_event_notifier
from ..storage.interface import StorageInterface
from ..storage.record_storage import RecordStorage
from ..storage.session_store import SessionStore
from ..storage.user_storage import init_user_storage

logger = logging.getLogger(__name__)

_session_service: Optional[ChatSessionService] = None
_mood_storage: Optional[RecordStorage[MoodEntry]] = None
_activity_storage: Optional[RecordStorage[ActivityEntry]] = None
_notifier: Optional[EventNotifier] = None


def get_configured_llm_provider() -> Optional[LLMProvider]:
    """Get configured LLM provider or None."""
    api_key = settings.llm_api_key or settings.gemini_api_key
    if not api_key:
        return None
    return create_llm_provider(
        provider=settings.llm_provider,
        api_key=api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
    )


def init_services(
    storage: StorageInterface,
    llm_provider: Optional[LLMProvider] = None,
    notifier: Optional[EventNotifier] = None
) -> ChatSessionService:
    """
    Build the global services on top of a storage backend.

    Args:
        storage: Storage backend shared by all stores
        llm_provider: Provider for the model gateway (None means fallback replies only)
        notifier: Event notifier; defaults to one configured from settings
    """
    global _session_service, _mood_storage, _activity_storage, _notifier

    user_storage = init_user_storage(storage)
    _notifier = notifier or get_event_notifier()
    gateway = TherapyModelGateway(llm_provider, timeout=settings.llm_timeout_seconds)
    _session_service = ChatSessionService(SessionStore(storage, user_storage), gateway, _notifier)
    _mood_storage = RecordStorage(storage, "moods", MoodEntry)
    _activity_storage = RecordStorage(storage, "activities", ActivityEntry)

    logger.info(
        f"Services initialized: llm_provider={llm_provider.name if llm_provider else 'none'}, "
        f"event_bus={'enabled' if _notifier.enabled else 'disabled'}"
    )
    return _session_service


def _require(value, name: str):
    if value is None:
        raise RuntimeError(f"{name} not initialized. Call init_services() first.")
    return value


def get_session_service() -> ChatSessionService:
    return _require(_session_service, "Session service")


def get_mood_storage() -> RecordStorage[MoodEntry]:
    return _require(_mood_storage, "Mood storage")


def get_activity_storage() -> RecordStorage[ActivityEntry]:
    return _require(_activity_storage, "Activity storage")


def get_notifier() -> EventNotifier:
    return _require(_notifier, "Event notifier")
