"""
Local Filesystem Storage Provider

Pricing: Free (local storage)

Use case: Development, offline (--mock) runs and testing
"""

import asyncio
import logging
import shutil
from pathlib import Path

from ..base import StorageError, StorageProvider, StorageProviderConfig, StorageResult

logger = logging.getLogger(__name__)


class LocalStorageProvider(StorageProvider):
    """Local filesystem storage provider"""

    def __init__(self, config: StorageProviderConfig):
        """
        Initialize local storage provider.

        Args:
            config: Storage configuration with base_path
        """
        super().__init__(config)
        self.base_path = Path(config.base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    @property
    def name(self) -> str:
        return "local"

    def _target(self, key: str) -> Path:
        target = (self.base_path / key).resolve()
        if self.base_path.resolve() not in target.parents:
            raise StorageError(f"Key escapes the storage root: {key}")
        return target

    def get_url(self, key: str) -> str:
        """
        Get object URL.

        Returns:
            public_base_url + key when configured, otherwise a file:// URL
        """
        if self.config.public_base_url:
            return f"{self.config.public_base_url.rstrip('/')}/{key}"
        return (self.base_path / key).absolute().as_uri()

    async def upload_file(
        self,
        local_path: str,
        key: str,
        content_type: str,
    ) -> StorageResult:
        """Copy a file under base_path/key"""
        target = self._target(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.get_running_loop().run_in_executor(
                None, shutil.copyfile, local_path, target
            )
        except OSError as e:
            raise StorageError(f"Failed to store '{local_path}' at '{key}': {e}") from e

        logger.info("Stored %s at %s", Path(local_path).name, target)
        return StorageResult(
            key=key,
            url=self.get_url(key),
            size_bytes=target.stat().st_size,
            content_type=content_type,
        )

    async def upload_bytes(
        self,
        data: bytes,
        key: str,
        content_type: str,
    ) -> StorageResult:
        target = self._target(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to store object '{key}': {e}") from e
        return StorageResult(
            key=key,
            url=self.get_url(key),
            size_bytes=len(data),
            content_type=content_type,
        )
