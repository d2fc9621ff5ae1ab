"""
Record Storage - Per-user timestamped records (mood entries, activities).
"""

import logging
from datetime import datetime
from typing import Generic, List, Optional, Type, TypeVar

import pydantic

from .interface import StorageInterface
from ..core.exceptions import StorageError
from ..models.wellness import ActivityEntry, MoodEntry

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", MoodEntry, ActivityEntry)


class RecordStorage(Generic[RecordT]):
    """
    Stores records as users/<user_id>/<kind>/<record_id>.json.

    Record models must carry `id`, `user_id` and `timestamp` fields.
    """

    def __init__(self, storage: StorageInterface, kind: str, model: Type[RecordT]):
        self.storage = storage
        self.kind = kind
        self.model = model

    def _dir(self, user_id: str) -> str:
        return f"users/{user_id}/{self.kind}"

    async def add(self, record: RecordT) -> RecordT:
        path = f"{self._dir(record.user_id)}/{record.id}.json"
        await self.storage.save(path, record.model_dump_json(by_alias=True, indent=2))
        logger.debug(f"Saved {self.kind} record {record.id} for user {record.user_id}")
        return record

    async def list_for_user(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        newest_first: bool = True
    ) -> List[RecordT]:
        """
        List a user's records, optionally bounded to [start, end].

        Args:
            user_id: Owner of the records
            start: Inclusive lower bound on timestamp
            end: Inclusive upper bound on timestamp
            newest_first: Sort order by timestamp
        """
        records = []
        for path in await self.storage.list(self._dir(user_id), pattern="*.json"):
            content = await self.storage.load(path)
            if content is None:
                continue
            try:
                record = self.model.model_validate_json(content)
            except pydantic.ValidationError as e:
                raise StorageError(f"Corrupt {self.kind} record at {path}", resource_id=path) from e
            if start is not None and record.timestamp < start:
                continue
            if end is not None and record.timestamp > end:
                continue
            records.append(record)

        records.sort(key=lambda r: r.timestamp, reverse=newest_first)
        return records
