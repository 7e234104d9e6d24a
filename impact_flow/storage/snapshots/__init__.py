from impact_flow.storage.snapshots.interface import SnapshotStore
from impact_flow.storage.snapshots.filesystem import FilesystemSnapshotStore
from impact_flow.storage.snapshots.factory import get_snapshot_store

__all__ = ['SnapshotStore', 'FilesystemSnapshotStore', 'get_snapshot_store']
