from impact_flow.config import Settings, settings as default_settings
from impact_flow.domain.errors import ConfigurationError
from impact_flow.storage.snapshots.filesystem import FilesystemSnapshotStore
from impact_flow.storage.snapshots.interface import SnapshotStore


def get_snapshot_store(settings: Settings = None) -> SnapshotStore:
    """
    Factory function to create the snapshot store for the durable SQLite image
    based on settings.

    Returns:
        A snapshot store implementation (S3 or Filesystem)
    """
    settings = settings or default_settings

    if settings.SNAPSHOT_STORE == "s3":
        if not settings.S3_BUCKET:
            raise ConfigurationError("S3_BUCKET must be set when using the S3 snapshot store")

        from impact_flow.storage.snapshots.s3 import S3SnapshotStore

        return S3SnapshotStore(
            bucket_name=settings.S3_BUCKET,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_REGION
        )

    # Use filesystem storage
    return FilesystemSnapshotStore(base_dir=settings.SNAPSHOT_DIR)
