"""Builds providers and the pipeline from a PipelineConfig."""

import logging
from pathlib import Path
from typing import Optional

from .concat import Concatenator
from .config import PipelineConfig
from .encoder import SegmentEncoder
from .errors import ValidationError
from .imagery import ImageSynthesizer
from .narration import NarrationSynthesizer
from .pipeline import StoryVideoPipeline
from .probe import FFprobeDurationProbe, MutagenDurationProbe
from .providers.base import (
    AudioProviderConfig,
    ImageProviderConfig,
    StorageConfigError,
    StorageProvider,
    StorageProviderConfig,
)
from .providers.audio import OpenAITTSProvider
from .providers.image import ReplicateImageClient
from .providers.mock import MockImageClient, MockNarrationProvider
from .providers.storage import LocalStorageProvider, R2StorageProvider
from .publisher import ArtifactPublisher
from .workspace import WorkspaceManager

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_STORAGE = Path("artifacts/published")


def build_storage(config: PipelineConfig, local_path: Optional[Path] = None) -> StorageProvider:
    """R2 storage, or filesystem storage under `local_path` when given."""
    if local_path is not None:
        return LocalStorageProvider(StorageProviderConfig(base_path=str(local_path)))

    missing = config.missing_storage_fields()
    if missing:
        raise ValidationError(f"Missing required storage configuration: {', '.join(missing)}")
    try:
        return R2StorageProvider(StorageProviderConfig(
            bucket=config.storage_bucket,
            region="auto",
            endpoint_url=config.storage_endpoint,
            access_key_id=config.storage_access_key_id,
            secret_access_key=config.storage_secret_access_key,
            public_base_url=config.public_base_url,
        ))
    except StorageConfigError as e:
        raise ValidationError(str(e)) from e


def build_pipeline(
    config: PipelineConfig,
    mock: bool = False,
    local_storage: Optional[Path] = None,
) -> StoryVideoPipeline:
    """
    Wire the production (or mock) collaborators into a pipeline.

    Args:
        config: Runtime settings
        mock: Use offline narration/image providers and local storage
        local_storage: Publish to this directory instead of R2

    Raises:
        ValidationError: Required settings are missing or invalid
    """
    if mock:
        narration_provider = MockNarrationProvider(timeout=config.tool_timeout)
        image_client = MockImageClient(timeout=config.tool_timeout)
        probe = FFprobeDurationProbe(timeout=config.tool_timeout)
        local_storage = local_storage or DEFAULT_LOCAL_STORAGE
    else:
        missing = config.missing_service_fields()
        if missing:
            raise ValidationError(f"Missing required configuration: {', '.join(missing)}")
        OpenAITTSProvider.validate_voice(config.tts_voice)
        narration_provider = OpenAITTSProvider(
            AudioProviderConfig(api_key=config.openai_api_key, timeout=config.http_timeout),
            model=config.tts_model,
            response_format=config.tts_format,
        )
        image_client = ReplicateImageClient(
            ImageProviderConfig(api_key=config.replicate_api_token, timeout=config.http_timeout),
            model=config.image_model,
        )
        probe = MutagenDurationProbe(FFprobeDurationProbe(timeout=config.tool_timeout))

    storage = build_storage(config, local_storage)
    logger.debug("Building pipeline with %r (storage: %s)", config, storage.name)

    return StoryVideoPipeline(
        narration=NarrationSynthesizer(narration_provider, probe=probe, voice=config.tts_voice),
        imagery=ImageSynthesizer(
            image_client,
            options=config.image,
            poll_interval=config.poll_interval,
            max_retries=config.max_poll_retries,
            storage=storage if config.publish_segment_images else None,
        ),
        encoder=SegmentEncoder(config.video, timeout=config.tool_timeout),
        concatenator=Concatenator(config.video, timeout=config.tool_timeout),
        publisher=ArtifactPublisher(storage, recovery_dir=config.recovery_dir),
        workspaces=WorkspaceManager(config.workspace_root),
        encoder_concurrency=config.encoder_concurrency,
        network_concurrency=config.network_concurrency,
        cancel_on_failure=config.cancel_on_failure,
    )
