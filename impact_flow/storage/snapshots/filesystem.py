import os
from typing import Optional

from impact_flow.storage.snapshots.interface import SnapshotStore


class FilesystemSnapshotStore(SnapshotStore):
    """
    Implements snapshot storage using the local filesystem.
    """

    def __init__(self, base_dir: str = None):
        """
        Initialize filesystem storage.

        Args:
            base_dir: Base directory for storing snapshots.
                      If None, uses 'snapshots' in the current working directory.
        """
        if base_dir is None:
            base_dir = os.path.join(os.getcwd(), "snapshots")

        self.base_dir = base_dir
        os.makedirs(self.base_dir, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.base_dir, f"{key}.sqlite")

    def save(self, key: str, data: bytes) -> None:
        """
        Save a snapshot to the filesystem.

        The image is written to a temporary file first and moved into place,
        so a crash mid-write leaves the previous snapshot intact.
        """
        file_path = self._path(key)
        tmp_path = f"{file_path}.tmp"
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, file_path)

    def load(self, key: str) -> Optional[bytes]:
        file_path = self._path(key)
        if not os.path.exists(file_path):
            return None

        with open(file_path, "rb") as f:
            return f.read()

    def delete(self, key: str) -> bool:
        file_path = self._path(key)
        if not os.path.exists(file_path):
            return False
        os.remove(file_path)
        return True
