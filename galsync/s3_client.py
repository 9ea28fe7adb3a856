"""
S3Client - S3 operations for listing, uploading, and deleting published objects.
"""

import logging
from typing import Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import DeleteError, RemoteListError, UploadError
from .s3_config import S3Config


class S3Client:
    """
    Wrapper for the S3 operations the publish engine needs.

    Every call is scoped to the configured bucket; listing is scoped to the
    configured prefix.
    """

    def __init__(self, config: S3Config, logger: Optional[logging.Logger] = None):
        """
        Initialize S3 client.

        Args:
            config: S3 configuration
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self._client = boto3.client(
            's3',
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
            config=Config(
                signature_version='s3v4',
                retries={'max_attempts': 3, 'mode': 'standard'},
            ),
            verify=config.verify_ssl
        )

    @property
    def client(self):
        """Return the underlying boto3 client."""
        return self._client

    @property
    def bucket(self) -> str:
        return self.config.bucket_name

    def list_objects(self, prefix: Optional[str] = None) -> Dict[str, str]:
        """
        List every object under the prefix.

        Args:
            prefix: Key prefix (default: configured prefix)

        Returns:
            Dict mapping key -> ETag with surrounding quotes removed

        Raises:
            RemoteListError: if any page of the listing fails
        """
        prefix = self.config.key_prefix if prefix is None else prefix
        objects: Dict[str, str] = {}

        try:
            paginator = self._client.get_paginator('list_objects_v2')
            page_iterator = paginator.paginate(Bucket=self.bucket, Prefix=prefix)

            for page in page_iterator:
                for obj in page.get('Contents', []):
                    key = obj.get('Key', '')
                    if not key:
                        continue
                    objects[key] = obj.get('ETag', '').strip('"')
        except (ClientError, BotoCoreError) as e:
            raise RemoteListError(
                f"Cannot list s3://{self.bucket}/{prefix}: {e}", file=prefix
            ) from e

        self.logger.debug(f"Listed {len(objects)} objects under s3://{self.bucket}/{prefix}")
        return objects

    def upload_file(self, key: str, local_path: str, content_type: str) -> None:
        """
        Upload a local file as a single PUT so its ETag is the MD5 of its bytes.

        Raises:
            UploadError: if the file cannot be read or the PUT fails
        """
        try:
            with open(local_path, 'rb') as body:
                self._client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except OSError as e:
            raise UploadError(f"Failed to read {local_path}: {e}", file=key) from e
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"Upload failed for {key}: {e}", file=key) from e

    def delete_object(self, key: str) -> None:
        """
        Delete a single object.

        Raises:
            DeleteError: if the delete request fails
        """
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise DeleteError(f"Delete failed for {key}: {e}", file=key) from e

    def check_access(self) -> None:
        """
        Confirm the bucket is reachable with the configured credentials.

        Raises:
            RemoteListError: if the bucket cannot be accessed
        """
        try:
            self._client.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as e:
            raise RemoteListError(f"Cannot access bucket {self.bucket}: {e}") from e
