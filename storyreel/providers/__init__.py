"""Provider interfaces and implementations for narration, images and storage"""

from .base import (
    AudioProvider,
    AudioProviderConfig,
    AudioGenerationResult,
    ImageGenerationClient,
    ImageProviderConfig,
    StorageProvider,
    StorageProviderConfig,
    StorageResult,
    StorageError,
    StorageConfigError,
)
from .audio import OpenAITTSProvider
from .image import ReplicateImageClient
from .storage import LocalStorageProvider, R2StorageProvider
from .mock import MockNarrationProvider, MockImageClient

__all__ = [
    "AudioProvider",
    "AudioProviderConfig",
    "AudioGenerationResult",
    "ImageGenerationClient",
    "ImageProviderConfig",
    "StorageProvider",
    "StorageProviderConfig",
    "StorageResult",
    "StorageError",
    "StorageConfigError",
    "OpenAITTSProvider",
    "ReplicateImageClient",
    "LocalStorageProvider",
    "R2StorageProvider",
    "MockNarrationProvider",
    "MockImageClient",
]
