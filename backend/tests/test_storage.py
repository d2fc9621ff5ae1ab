"""
Unit tests for the storage layer.
Tests LocalStorage, UserStorage, SessionStore and RecordStorage.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from mindcare.core.exceptions import ConflictError, NotFoundError, StorageError
from mindcare.models.chat import ChatMessage, MessageRole, SessionStatus
from mindcare.models.wellness import MoodEntry
from mindcare.storage.record_storage import RecordStorage

from conftest import create_user


class TestLocalStorage:
    """Tests for the local filesystem backend."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, storage):
        await storage.save("a/b/doc.json", '{"x": 1}')
        assert await storage.load("a/b/doc.json") == b'{"x": 1}'
        assert await storage.exists("a/b/doc.json")

    @pytest.mark.asyncio
    async def test_load_missing_returns_none(self, storage):
        assert await storage.load("nope.json") is None

    @pytest.mark.asyncio
    async def test_overwrite_leaves_no_temp_files(self, storage):
        await storage.save("docs/one.json", "first")
        await storage.save("docs/one.json", "second")

        assert await storage.load("docs/one.json") == b"second"
        assert await storage.list("docs") == ["docs/one.json"]

    @pytest.mark.asyncio
    async def test_list_with_pattern(self, storage):
        await storage.save("docs/one.json", "1")
        await storage.save("docs/two.txt", "2")
        assert await storage.list("docs", pattern="*.json") == ["docs/one.json"]
        assert await storage.list("missing") == []

    @pytest.mark.asyncio
    async def test_delete(self, storage):
        await storage.save("docs/one.json", "1")
        assert await storage.delete("docs/one.json") is True
        assert await storage.delete("docs/one.json") is False

    @pytest.mark.asyncio
    async def test_directory_is_not_a_document(self, storage):
        await storage.save("docs/one.json", "1")
        assert await storage.load("docs") is None
        assert not await storage.exists("docs")

    @pytest.mark.asyncio
    async def test_path_traversal_rejected(self, storage):
        with pytest.raises(ValueError, match="path traversal"):
            await storage.load("../../etc/passwd")

    @pytest.mark.asyncio
    async def test_write_failure_raises_storage_error(self, storage):
        with patch("aiofiles.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                await storage.save("docs/one.json", "1")
        assert await storage.list("docs") == []


class TestUserStorage:
    """Tests for user accounts."""

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, user_storage):
        created = await create_user(user_storage, "u1", email="Ana@Example.com")

        assert created["email"] == "ana@example.com"
        assert (await user_storage.get_user("u1"))["name"] == "User u1"
        assert (await user_storage.get_user_by_email("ANA@example.com"))["user_id"] == "u1"
        assert await user_storage.user_exists("u1")
        assert not await user_storage.user_exists("u2")

    @pytest.mark.asyncio
    async def test_duplicate_email_conflict(self, user_storage):
        await create_user(user_storage, "u1", email="same@example.com")
        with pytest.raises(ConflictError):
            await create_user(user_storage, "u2", email="same@example.com")


class TestSessionStore:
    """Tests for chat session persistence."""

    @pytest.mark.asyncio
    async def test_create_requires_existing_owner(self, session_store):
        with pytest.raises(NotFoundError):
            await session_store.create("nobody")

    @pytest.mark.asyncio
    async def test_create_defaults(self, session_store, user_storage):
        await create_user(user_storage, "u1")
        session = await session_store.create("u1")

        assert session.owner_id == "u1"
        assert session.status == SessionStatus.ACTIVE
        assert session.messages == []
        assert session.id != session.session_id

    @pytest.mark.asyncio
    async def test_session_ids_unique(self, session_store, user_storage):
        await create_user(user_storage, "u1")
        ids = {(await session_store.create("u1")).session_id for _ in range(5)}
        assert len(ids) == 5

    @pytest.mark.asyncio
    async def test_documents_keyed_by_internal_id(self, session_store, user_storage, storage):
        await create_user(user_storage, "u1")
        session = await session_store.create("u1")

        assert await storage.exists(f"chat_sessions/documents/{session.id}.json")
        assert not await storage.exists(f"chat_sessions/documents/{session.session_id}.json")

    @pytest.mark.asyncio
    async def test_find_missing(self, session_store):
        assert await session_store.find("does-not-exist") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("session_id", ["..", ".", "", "a/b", "..%2F"])
    async def test_find_malformed_id(self, session_store, user_storage, session_id):
        await create_user(user_storage, "u1")
        await session_store.create("u1")
        assert await session_store.find(session_id) is None

    @pytest.mark.asyncio
    async def test_save_roundtrip_preserves_messages(self, session_store, user_storage):
        await create_user(user_storage, "u1")
        session = await session_store.create("u1")
        session.messages.append(ChatMessage(role=MessageRole.USER, content="hello"))
        await session_store.save(session)

        loaded = await session_store.find(session.session_id)
        assert loaded.messages[0].content == "hello"
        assert loaded.messages[0].role == MessageRole.USER
        assert loaded.start_time == session.start_time

    @pytest.mark.asyncio
    async def test_saves_to_different_sessions_independent(self, session_store, user_storage):
        await create_user(user_storage, "u1")
        first = await session_store.create("u1")
        second = await session_store.create("u1")

        first.messages.append(ChatMessage(role=MessageRole.USER, content="one"))
        second.messages.append(ChatMessage(role=MessageRole.USER, content="two"))
        await session_store.save(first)
        await session_store.save(second)

        assert [m.content for m in (await session_store.find(first.session_id)).messages] == ["one"]
        assert [m.content for m in (await session_store.find(second.session_id)).messages] == ["two"]

    @pytest.mark.asyncio
    async def test_list_by_owner_newest_first(self, session_store, user_storage):
        await create_user(user_storage, "u1")
        await create_user(user_storage, "u2")
        older = await session_store.create("u1")
        older.start_time -= timedelta(days=1)
        await session_store.save(older)
        newer = await session_store.create("u1")
        await session_store.create("u2")

        sessions = await session_store.list_by_owner("u1")
        assert [s.session_id for s in sessions] == [newer.session_id, older.session_id]

    @pytest.mark.asyncio
    async def test_corrupt_document_raises_storage_error(self, session_store, user_storage, storage):
        await create_user(user_storage, "u1")
        session = await session_store.create("u1")
        await storage.save(f"chat_sessions/documents/{session.id}.json", "{broken")

        with pytest.raises(StorageError):
            await session_store.find(session.session_id)


class TestRecordStorage:
    """Tests for per-user mood/activity records."""

    @pytest.mark.asyncio
    async def test_list_filters_and_orders(self, storage):
        moods = RecordStorage(storage, "moods", MoodEntry)
        now = datetime.now(timezone.utc)
        for i, score in enumerate([40, 60, 80]):
            await moods.add(MoodEntry(
                id=f"m{i}", user_id="u1", score=score, timestamp=now - timedelta(days=i)
            ))
        await moods.add(MoodEntry(id="other", user_id="u2", score=10, timestamp=now))

        newest_first = await moods.list_for_user("u1")
        assert [m.id for m in newest_first] == ["m0", "m1", "m2"]

        recent = await moods.list_for_user(
            "u1", start=now - timedelta(days=1, hours=1), end=now, newest_first=False
        )
        assert [m.score for m in recent] == [60, 40]
