from abc import ABC, abstractmethod
from typing import Optional


class SnapshotStore(ABC):
    """
    Abstract key/value store for database images. Supports both S3 and local filesystem.
    """

    @abstractmethod
    def save(self, key: str, data: bytes) -> None:
        """
        Save a binary image under a key, replacing any previous one.

        Args:
            key: Snapshot key
            data: Binary database image
        """
        pass

    @abstractmethod
    def load(self, key: str) -> Optional[bytes]:
        """
        Retrieve a binary image.

        Args:
            key: Snapshot key

        Returns:
            The stored bytes, or None if nothing was saved under the key
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a stored image.

        Args:
            key: Snapshot key

        Returns:
            True if an image existed and was deleted, False otherwise
        """
        pass
