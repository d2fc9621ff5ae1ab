"""
Storage Interface - Abstract base class for all storage implementations.
This interface enables switching between local disk, S3, a document database, etc.
"""

from abc import ABC, abstractmethod
from typing import Optional, List


class StorageInterface(ABC):
    """
    Abstract storage interface that defines the contract for all storage implementations.

    Implementations raise StorageError when the backing store is unavailable;
    a missing object is not an error (load returns None).
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> None:
        """
        Save content to the specified path, replacing any previous content.
        The write must be atomic per path: readers see either the old or the
        new content, never a partial document.

        Args:
            path: Relative path (e.g., "chat_sessions/documents/<id>.json")
            content: Content to save (bytes or str)

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the specified path.

        Args:
            path: Relative path to load from

        Returns:
            Optional[bytes]: File content, or None if it doesn't exist

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check if an object exists at the specified path."""
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete the object at the specified path.

        Returns:
            bool: True if something was deleted, False if it didn't exist
        """
        pass

    @abstractmethod
    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        """
        List objects directly under a directory.

        Args:
            path: Directory path to list
            pattern: Optional glob pattern to filter names (e.g., "*.json")

        Returns:
            List[str]: Sorted relative paths
        """
        pass
