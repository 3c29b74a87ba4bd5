"""S3 storage helpers for pipeline artifacts."""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from app.config.settings import settings
from app.services.aws import create_boto3_client, response_status

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when S3 asset persistence fails."""


class ObjectStorage:
    """Thin async facade over the S3 calls the pipeline needs."""

    def __init__(self, bucket_name: str | None = None, client: Any | None = None) -> None:
        self._bucket_name = bucket_name
        self._client = client

    @property
    def bucket(self) -> str:
        bucket = self._bucket_name or settings.storage.bucket_name
        if not bucket:
            raise StorageError("S3 bucket name is not configured.")
        return bucket

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = create_boto3_client("s3")
        return self._client

    def media_uri(self, key: str) -> str:
        """Return the ``s3://`` URI other AWS services use to read ``key``."""

        return f"s3://{self.bucket}/{key}"

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload ``data`` and return only once S3 confirmed the write."""

        if not data:
            raise StorageError(f"Refusing to store empty payload under {key}.")
        try:
            response = await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload {key}: {exc}") from exc

        status_code = response_status(response)
        if status_code != 200:
            raise StorageError(
                f"Upload of {key} was not confirmed (status={status_code})."
            )
        logger.debug("Stored s3://%s/%s (%d bytes)", self.bucket, key, len(data))

    async def get(self, key: str) -> bytes:
        """Download an object body."""

        try:
            response = await run_in_threadpool(
                self.client.get_object,
                Bucket=self.bucket,
                Key=key,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to download {key}: {exc}") from exc

        status_code = response_status(response)
        if status_code != 200:
            raise StorageError(
                f"Download of {key} was not confirmed (status={status_code})."
            )
        body = response.get("Body")
        if body is None:
            raise StorageError(f"S3 returned no body for {key}.")
        return await run_in_threadpool(body.read)

    async def presign(self, key: str, ttl_seconds: int) -> str:
        """Generate a presigned GET URL valid for ``ttl_seconds``."""

        try:
            return await run_in_threadpool(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to presign {key}: {exc}") from exc


def get_storage() -> ObjectStorage:
    """Return the default storage facade."""

    return _DEFAULT_STORAGE


_DEFAULT_STORAGE = ObjectStorage()


__all__ = ["ObjectStorage", "StorageError", "get_storage"]
