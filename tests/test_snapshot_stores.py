"""Tests for snapshot stores."""
from __future__ import annotations

import io
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from impact_flow.config import Settings
from impact_flow.domain.errors import ConfigurationError
from impact_flow.storage.snapshots import FilesystemSnapshotStore, get_snapshot_store


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "operation")


class TestFilesystemSnapshotStore:
    """Test local snapshot files."""

    def test_round_trip(self, tmp_path):
        store = FilesystemSnapshotStore(base_dir=str(tmp_path))
        store.save("db", b"image-1")
        store.save("db", b"image-2")

        assert store.load("db") == b"image-2"
        assert (tmp_path / "db.sqlite").exists()
        assert not (tmp_path / "db.sqlite.tmp").exists()

    def test_missing_key(self, tmp_path):
        store = FilesystemSnapshotStore(base_dir=str(tmp_path))
        assert store.load("nothing") is None
        assert store.delete("nothing") is False

    def test_delete(self, tmp_path):
        store = FilesystemSnapshotStore(base_dir=str(tmp_path))
        store.save("db", b"x")
        assert store.delete("db") is True
        assert store.load("db") is None

    def test_creates_directory(self, tmp_path):
        FilesystemSnapshotStore(base_dir=str(tmp_path / "nested" / "dir"))
        assert (tmp_path / "nested" / "dir").is_dir()


class TestS3SnapshotStore:
    """Test the S3 store against a mocked boto3 client."""

    @pytest.fixture
    def s3_client(self):
        with patch("impact_flow.storage.snapshots.s3.boto3") as boto3:
            client = Mock()
            boto3.client.return_value = client
            yield client

    def make_store(self):
        from impact_flow.storage.snapshots.s3 import S3SnapshotStore
        return S3SnapshotStore(bucket_name="bucket")

    def test_creates_missing_bucket(self, s3_client):
        s3_client.head_bucket.side_effect = client_error("404")
        self.make_store()
        s3_client.create_bucket.assert_called_once_with(Bucket="bucket")

    def test_save_and_load(self, s3_client):
        store = self.make_store()
        store.save("db", b"image")
        s3_client.put_object.assert_called_once_with(Bucket="bucket", Key="snapshots/db.sqlite", Body=b"image")

        s3_client.get_object.return_value = {"Body": io.BytesIO(b"image")}
        assert store.load("db") == b"image"

    def test_load_missing(self, s3_client):
        s3_client.get_object.side_effect = client_error("NoSuchKey")
        assert self.make_store().load("db") is None

    def test_other_errors_propagate(self, s3_client):
        s3_client.get_object.side_effect = client_error("AccessDenied")
        with pytest.raises(ClientError):
            self.make_store().load("db")

    def test_delete(self, s3_client):
        store = self.make_store()
        assert store.delete("db") is True
        s3_client.delete_object.assert_called_once_with(Bucket="bucket", Key="snapshots/db.sqlite")

        s3_client.head_object.side_effect = client_error("404")
        assert store.delete("db") is False


class TestSnapshotStoreFactory:
    """Test store selection from settings."""

    def test_filesystem_default(self, tmp_path):
        store = get_snapshot_store(Settings(SNAPSHOT_DIR=str(tmp_path)))
        assert isinstance(store, FilesystemSnapshotStore)
        assert store.base_dir == str(tmp_path)

    def test_s3_requires_bucket(self):
        with pytest.raises(ConfigurationError):
            get_snapshot_store(Settings(SNAPSHOT_STORE="s3", S3_BUCKET=""))

    def test_s3(self):
        with patch("impact_flow.storage.snapshots.s3.boto3"):
            from impact_flow.storage.snapshots.s3 import S3SnapshotStore
            store = get_snapshot_store(Settings(SNAPSHOT_STORE="s3", S3_BUCKET="bucket"))
        assert isinstance(store, S3SnapshotStore)
