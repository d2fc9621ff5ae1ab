"""
User Storage - Persistent storage for user accounts using StorageInterface.
"""

import json
import logging
from typing import Optional, Dict
from datetime import datetime, timezone

from .interface import StorageInterface
from ..core.exceptions import ConflictError, StorageError

logger = logging.getLogger(__name__)


class UserStorage:
    """
    Manages persistent storage of user data.
    One JSON file per user in users/, plus an email -> user_id index.
    """

    def __init__(self, storage: StorageInterface):
        """
        Args:
            storage: StorageInterface implementation (typically LocalStorage)
        """
        self.storage = storage
        self.users_dir = "users"
        self._email_index_path = f"{self.users_dir}/index/email_index.json"

    def _user_path(self, user_id: str) -> str:
        return f"{self.users_dir}/{user_id}.json"

    @staticmethod
    def _decode(content: bytes, path: str) -> Dict:
        try:
            data = json.loads(content.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Corrupt document at {path}", resource_id=path) from e
        for key in ('created_at', 'updated_at'):
            if key in data:
                data[key] = datetime.fromisoformat(data[key])
        return data

    async def _load_email_index(self) -> Dict[str, str]:
        content = await self.storage.load(self._email_index_path)
        if content is None:
            return {}
        return self._decode(content, self._email_index_path)

    async def get_user(self, user_id: str) -> Optional[Dict]:
        """
        Get user by user_id.

        Returns:
            Optional[Dict]: User data (with hashed_password) or None if not found
        """
        path = self._user_path(user_id)
        content = await self.storage.load(path)
        if content is None:
            return None
        return self._decode(content, path)

    async def user_exists(self, user_id: str) -> bool:
        return await self.storage.exists(self._user_path(user_id))

    async def get_user_by_email(self, email: str) -> Optional[Dict]:
        index = await self._load_email_index()
        user_id = index.get(email.lower())
        if user_id is None:
            return None
        return await self.get_user(user_id)

    async def create_user(
        self,
        user_id: str,
        name: str,
        email: str,
        hashed_password: str
    ) -> Dict:
        """
        Create a new user.

        Raises:
            ConflictError: If the email is already registered
        """
        email = email.lower()
        index = await self._load_email_index()
        if email in index:
            raise ConflictError("Email already in use")

        now = datetime.now(timezone.utc)
        user_data = {
            "user_id": user_id,
            "name": name,
            "email": email,
            "hashed_password": hashed_password,
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
            "is_active": True,
        }
        await self.storage.save(
            self._user_path(user_id),
            json.dumps(user_data, indent=2, ensure_ascii=False)
        )

        index[email] = user_id
        await self.storage.save(self._email_index_path, json.dumps(index, indent=2))
        logger.info(f"User created: {user_id}")

        user_data['created_at'] = now
        user_data['updated_at'] = now
        return user_data


# Global user storage instance
_user_storage: Optional[UserStorage] = None


def init_user_storage(storage: StorageInterface) -> UserStorage:
    """Initialize the global user storage instance."""
    global _user_storage
    _user_storage = UserStorage(storage)
    return _user_storage


def get_user_storage() -> UserStorage:
    """
    Get the global user storage instance.

    Raises:
        RuntimeError: If user storage has not been initialized
    """
    if _user_storage is None:
        raise RuntimeError("User storage not initialized. Call init_user_storage() first.")
    return _user_storage
