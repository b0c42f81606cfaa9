"""
Final video publishing

Uploads the concatenated video under a key derived from the story id. A
failed upload is fatal and is not retried; when a recovery directory is
configured the file is moved there before the workspace is removed.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional, Tuple

from .errors import PublishError
from .providers.base import StorageError, StorageProvider

logger = logging.getLogger(__name__)

VIDEO_CONTENT_TYPE = "video/mp4"


def build_video_key(story_id: int) -> str:
    """Deterministic object key for a story's final video"""
    return f"videos/story_{story_id}_video.mp4"


class ArtifactPublisher:
    """Publishes the final video and returns its public address."""

    def __init__(self, storage: StorageProvider, recovery_dir: Optional[Path] = None):
        self.storage = storage
        self.recovery_dir = Path(recovery_dir) if recovery_dir else None

    async def publish(self, story_id: int, video_path: Path) -> Tuple[str, str]:
        """
        Upload `video_path` for `story_id`.

        Returns:
            (storage_key, public_url)

        Raises:
            PublishError: The file is missing or the store rejected it
        """
        key = build_video_key(story_id)
        video_path = Path(video_path)
        if not video_path.exists():
            raise PublishError(f"Final video {video_path} does not exist")

        try:
            result = await self.storage.upload_file(str(video_path), key, VIDEO_CONTENT_TYPE)
        except StorageError as e:
            recovered = self._retain(video_path)
            message = f"Failed to publish story {story_id} to {key}: {e}"
            if recovered:
                message += f" (video kept at {recovered})"
            raise PublishError(message) from e

        logger.info("Story %s published to %s", story_id, result.url)
        return key, result.url

    def _retain(self, video_path: Path) -> Optional[Path]:
        if self.recovery_dir is None:
            return None
        target = self.recovery_dir / video_path.name
        try:
            self.recovery_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(video_path), str(target))
        except OSError as e:
            logger.warning("Could not keep %s for recovery: %s", video_path.name, e)
            return None
        logger.warning("Publish failed; video kept at %s", target)
        return target
