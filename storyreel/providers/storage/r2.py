"""
Cloudflare R2 Storage Provider

R2 speaks the S3 API, so uploads go through a boto3 S3 client pointed at the
account endpoint. boto3 is synchronous; every call runs in the default
executor so the event loop keeps serving other segments.

Public addresses are derived from the configured public base URL plus the
object key; no presigning is involved.
"""

import asyncio
import logging
import os
from functools import partial
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..base import (
    StorageConfigError,
    StorageError,
    StorageProvider,
    StorageProviderConfig,
    StorageResult,
)

logger = logging.getLogger(__name__)


class R2StorageProvider(StorageProvider):
    """S3-compatible object store (Cloudflare R2)"""

    def __init__(self, config: StorageProviderConfig, s3_client: Optional[Any] = None):
        """
        Args:
            config: Bucket, endpoint, credentials and public base URL
            s3_client: Pre-built boto3 S3 client; built from `config` if omitted
        """
        super().__init__(config)

        missing = []
        if not config.bucket:
            missing.append("bucket")
        if not config.public_base_url:
            missing.append("public_base_url")
        if s3_client is None:
            if not config.endpoint_url:
                missing.append("endpoint_url")
            if not config.access_key_id:
                missing.append("access_key_id")
            if not config.secret_access_key:
                missing.append("secret_access_key")
        if missing:
            raise StorageConfigError(
                f"Missing required R2 configuration: {', '.join(missing)}"
            )

        self.s3_client = s3_client if s3_client is not None else self._build_client()

    def _build_client(self) -> Any:
        return boto3.client(
            "s3",
            region_name=self.config.region or "auto",
            endpoint_url=self.config.endpoint_url,
            aws_access_key_id=self.config.access_key_id,
            aws_secret_access_key=self.config.secret_access_key,
        )

    @property
    def name(self) -> str:
        return "r2"

    def get_url(self, key: str) -> str:
        return f"{self.config.public_base_url.rstrip('/')}/{key.lstrip('/')}"

    def _put_file(self, local_path: str, key: str, content_type: str) -> None:
        with open(local_path, "rb") as body:
            self.s3_client.put_object(
                Bucket=self.config.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )

    async def _run(self, func, *args) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def upload_file(
        self,
        local_path: str,
        key: str,
        content_type: str,
    ) -> StorageResult:
        """Stream a local file as the object body"""
        try:
            size = os.path.getsize(local_path)
            await self._run(self._put_file, local_path, key, content_type)
        except (BotoCoreError, ClientError, OSError) as e:
            raise StorageError(
                f"Failed to upload file '{local_path}' to '{key}': {e}"
            ) from e

        logger.info("Uploaded %s (%d bytes) to %s/%s", os.path.basename(local_path), size, self.config.bucket, key)
        return StorageResult(
            key=key,
            url=self.get_url(key),
            size_bytes=size,
            content_type=content_type,
        )

    async def upload_bytes(
        self,
        data: bytes,
        key: str,
        content_type: str,
    ) -> StorageResult:
        """Upload an in-memory payload"""
        try:
            await self._run(
                partial(
                    self.s3_client.put_object,
                    Bucket=self.config.bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                )
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload object '{key}': {e}") from e

        return StorageResult(
            key=key,
            url=self.get_url(key),
            size_bytes=len(data),
            content_type=content_type,
        )
