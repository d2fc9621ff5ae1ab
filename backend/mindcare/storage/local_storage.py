"""
Local Filesystem Storage Implementation.
This implementation stores all data on the server's local filesystem.
"""

import logging
import uuid
import aiofiles
import aiofiles.os
from pathlib import Path
from typing import Optional, List

from .interface import StorageInterface
from ..core.exceptions import StorageError

logger = logging.getLogger(__name__)


class LocalStorage(StorageInterface):
    """
    Local filesystem storage implementation.
    Stores all data in a base directory on the server.
    """

    def __init__(self, base_dir: str = "./data"):
        """
        Initialize local storage with a base directory.

        Args:
            base_dir: Base directory for all stored files
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, path: str) -> Path:
        """Convert relative path to full absolute path within base directory."""
        full_path = (self.base_dir / path).resolve()

        # Security check: ensure path is within base_dir
        if full_path != self.base_dir and self.base_dir not in full_path.parents:
            raise ValueError(f"Invalid path: {path} - path traversal detected")

        return full_path

    async def save(self, path: str, content: bytes | str) -> None:
        """Write to a temp file in the same directory, then rename over the target."""
        full_path = self._get_full_path(path)
        tmp_path = full_path.with_name(f".{full_path.name}.{uuid.uuid4().hex}.tmp")
        data = content.encode('utf-8') if isinstance(content, str) else content
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, 'wb') as f:
                await f.write(data)
            await aiofiles.os.replace(tmp_path, full_path)
        except OSError as e:
            logger.error(f"Error saving file {path}: {e}", exc_info=True)
            if tmp_path.exists():
                tmp_path.unlink()
            raise StorageError(f"Failed to save {path}", resource_id=path) from e

    async def load(self, path: str) -> Optional[bytes]:
        full_path = self._get_full_path(path)
        if not full_path.is_file():
            return None
        try:
            async with aiofiles.open(full_path, 'rb') as f:
                return await f.read()
        except OSError as e:
            logger.error(f"Error loading file {path}: {e}", exc_info=True)
            raise StorageError(f"Failed to load {path}", resource_id=path) from e

    async def exists(self, path: str) -> bool:
        return self._get_full_path(path).is_file()

    async def delete(self, path: str) -> bool:
        full_path = self._get_full_path(path)
        if not full_path.exists():
            return False
        try:
            await aiofiles.os.remove(full_path)
        except OSError as e:
            logger.error(f"Error deleting file {path}: {e}", exc_info=True)
            raise StorageError(f"Failed to delete {path}", resource_id=path) from e
        return True

    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        full_path = self._get_full_path(path)
        if not full_path.is_dir():
            return []
        try:
            files = [p for p in full_path.glob(pattern or "*") if p.is_file()]
        except OSError as e:
            logger.error(f"Error listing files in {path}: {e}", exc_info=True)
            raise StorageError(f"Failed to list {path}", resource_id=path) from e

        # Temp files from in-flight saves are never listed
        return sorted(
            str(p.relative_to(self.base_dir)) for p in files if not p.name.endswith('.tmp')
        )
