"""
PhotoMemo Backend: Object Storage Service
=========================================

What:  Thin async facade over an S3-compatible bucket (put and delete).
How:   boto3's client is synchronous; each call runs in a worker thread via
       asyncio.to_thread so the event loop keeps serving other requests.
Who:   FileService (uploads) and the attachment reconciler (deletions).

The boto3 client is built on first use. Importing this module never needs
credentials or network access, so tests can patch the singleton freely.
"""

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from photomemo.config import settings
from photomemo.exceptions import FileStorageError

logger = logging.getLogger(__name__)


class ObjectStorage:
    """
    Put/delete primitives for one bucket.

    Both methods raise FileStorageError on failure. Callers decide whether
    that is fatal (uploads) or best effort (attachment cleanup).
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ):
        self.bucket = bucket if bucket is not None else settings.s3_bucket
        self.region = region or settings.aws_region
        self.endpoint_url = endpoint_url if endpoint_url is not None else settings.s3_endpoint_url
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
            )
            logger.info(
                "S3 client initialized (bucket=%s, region=%s, endpoint=%s)",
                self.bucket,
                self.region,
                self.endpoint_url or "aws",
            )
        return self._client

    @property
    def is_configured(self) -> bool:
        return bool(self.bucket)

    async def put_object(self, key: str, content: bytes, content_type: str) -> None:
        """Store `content` under `key`."""
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 put failed for %s: %s", key, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"key": key, "error": str(e)},
            )
        logger.info("Stored object %s (%d bytes)", key, len(content))

    async def delete_object(self, key: str) -> None:
        """Remove `key` from the bucket. S3 treats a missing key as success."""
        try:
            await asyncio.to_thread(
                self.client.delete_object,
                Bucket=self.bucket,
                Key=key,
            )
        except (BotoCoreError, ClientError) as e:
            raise FileStorageError(
                message=f"Failed to delete object '{key}'",
                context={"key": key, "error": str(e)},
            )
        logger.debug("Deleted object %s", key)


storage_service = ObjectStorage()
