"""
Shared test fixtures and configuration.
"""

import pytest
import os
from unittest.mock import AsyncMock, MagicMock

# Set test environment variables before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/mindcare_test_data")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LLM_API_KEY", "")
os.environ.setdefault("EVENT_KEY", "")

from mindcare.llm.base import LLMProvider, LLMResponse
from mindcare.services.event_notifier import EventNotifier
from mindcare.storage.local_storage import LocalStorage
from mindcare.storage.session_store import SessionStore
from mindcare.storage.user_storage import UserStorage


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


@pytest.fixture
def user_storage(storage):
    return UserStorage(storage)


@pytest.fixture
def session_store(storage, user_storage):
    return SessionStore(storage, user_storage)


@pytest.fixture
def notifier():
    """Event notifier whose sends are recorded instead of posted."""
    mock = MagicMock(spec=EventNotifier)
    mock.enabled = True
    mock.emit = AsyncMock(return_value=True)
    return mock


def make_provider(*contents):
    """LLM provider mock returning the given contents on successive calls."""
    provider = AsyncMock(spec=LLMProvider)
    provider.name = "mock"
    provider.chat_completion.side_effect = [
        LLMResponse(content=c, model="mock") for c in contents
    ]
    return provider


async def create_user(user_storage, user_id: str, email: str = None) -> dict:
    return await user_storage.create_user(
        user_id=user_id,
        name=f"User {user_id}",
        email=email or f"{user_id}@example.com",
        hashed_password="not-a-real-hash",
    )
