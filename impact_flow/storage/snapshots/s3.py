from typing import Optional

import boto3
from botocore.exceptions import ClientError

from impact_flow.storage.snapshots.interface import SnapshotStore


class S3SnapshotStore(SnapshotStore):
    """
    Implements snapshot storage using AWS S3.
    """

    def __init__(self, bucket_name: str, aws_access_key_id: str = None,
                 aws_secret_access_key: str = None, region_name: str = None,
                 prefix: str = "snapshots"):
        """
        Initialize S3 storage.

        Args:
            bucket_name: S3 bucket name
            aws_access_key_id: AWS access key ID (if None, uses environment variables)
            aws_secret_access_key: AWS secret access key (if None, uses environment variables)
            region_name: AWS region name (if None, uses environment variables)
            prefix: Key prefix inside the bucket
        """
        self.bucket_name = bucket_name
        self.prefix = prefix.strip("/")

        # If credentials are not provided, boto3 will look for them in environment variables
        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=aws_access_key_id or None,
            aws_secret_access_key=aws_secret_access_key or None,
            region_name=region_name or None
        )

        # Ensure bucket exists
        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self):
        """Ensure the S3 bucket exists, create it if it doesn't."""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code')
            if error_code == '404':
                # Bucket doesn't exist, create it
                self.s3_client.create_bucket(Bucket=self.bucket_name)
            else:
                # Another error occurred
                raise

    def _key(self, key: str) -> str:
        return f"{self.prefix}/{key}.sqlite" if self.prefix else f"{key}.sqlite"

    def save(self, key: str, data: bytes) -> None:
        self.s3_client.put_object(
            Bucket=self.bucket_name,
            Key=self._key(key),
            Body=data
        )

    def load(self, key: str) -> Optional[bytes]:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=self._key(key))
            return response['Body'].read()
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                return None
            raise

    def delete(self, key: str) -> bool:
        """
        Delete a snapshot from S3.

        Returns:
            True if the object existed and was deleted, False otherwise
        """
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=self._key(key))
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                return False
            raise
        self.s3_client.delete_object(Bucket=self.bucket_name, Key=self._key(key))
        return True
