"""Abstract base classes for provider interfaces"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional, Dict, Any, List, AsyncIterator

import aiohttp

from ..config import mask_secret
from ..models.generation import ImageOptions


class StorageError(RuntimeError):
    """Base exception for object storage failures."""


class StorageConfigError(StorageError):
    """Raised when storage configuration is missing or invalid."""


@dataclass
class AudioProviderConfig:
    """Configuration for audio provider"""
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 60  # seconds

    def __repr__(self) -> str:
        """Safe repr that masks API key to prevent accidental exposure in logs."""
        return (
            f"AudioProviderConfig(api_key={mask_secret(self.api_key)}, "
            f"base_url={self.base_url!r}, timeout={self.timeout})"
        )


@dataclass
class AudioGenerationResult:
    """Result from speech synthesis"""
    audio_data: bytes
    format: str = "mp3"


class AudioProvider(ABC):
    """
    Abstract base class for narration (TTS) providers.

    Implementations raise ExternalServiceError for non-success responses
    and transport failures.
    """

    def __init__(self, config: AudioProviderConfig):
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier"""
        pass

    @abstractmethod
    async def generate_speech(
        self,
        text: str,
        voice_id: Optional[str] = None,
        **kwargs
    ) -> AudioGenerationResult:
        """
        Generate speech from text.

        Args:
            text: Text to convert to speech
            voice_id: Voice identifier (provider-specific)
            **kwargs: Provider-specific parameters

        Returns:
            AudioGenerationResult with the raw audio bytes
        """
        pass


@dataclass
class ImageProviderConfig:
    """Configuration for image provider"""
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 60  # seconds

    def __repr__(self) -> str:
        """Safe repr that masks API key to prevent accidental exposure in logs."""
        return (
            f"ImageProviderConfig(api_key={mask_secret(self.api_key)}, "
            f"base_url={self.base_url!r}, timeout={self.timeout})"
        )


class ImageGenerationClient(ABC):
    """
    Abstract base class for asynchronous image generation services.

    Job responses are normalized to a dict with the keys:
        id: Job identifier
        status: Service status string ("succeeded", "failed", anything else
            means the job is still running)
        output: List of output URLs (possibly empty)
        error: Error message or None
        poll_url: Address to poll, or None

    Implementations raise ExternalServiceError for non-success responses
    and transport failures.
    """

    def __init__(self, config: ImageProviderConfig):
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier"""
        pass

    @abstractmethod
    async def submit(self, prompt: str, options: ImageOptions) -> Dict[str, Any]:
        """Submit a generation job and return the normalized job response"""
        pass

    @abstractmethod
    async def check_status(self, poll_url: str) -> Dict[str, Any]:
        """Fetch the current normalized job response from `poll_url`"""
        pass

    @abstractmethod
    async def download(self, url: str) -> bytes:
        """Download raw bytes of one output reference"""
        pass


def normalize_output(output: Any) -> List[str]:
    """Services return a single URL or a list of URLs; always return a list."""
    if output is None:
        return []
    if isinstance(output, str):
        return [output] if output else []
    return [str(o) for o in output if o]


@dataclass
class StorageProviderConfig:
    """Configuration for storage provider"""
    bucket: Optional[str] = None
    base_path: str = "./artifacts"
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    public_base_url: str = ""

    def __repr__(self) -> str:
        """Safe repr that masks credentials to prevent accidental exposure in logs."""
        return (
            f"StorageProviderConfig(bucket={self.bucket!r}, "
            f"endpoint_url={self.endpoint_url!r}, "
            f"access_key_id={mask_secret(self.access_key_id)}, "
            f"secret_access_key={mask_secret(self.secret_access_key)}, "
            f"public_base_url={self.public_base_url!r})"
        )


@dataclass
class StorageResult:
    """Result from storage operation"""
    key: str
    url: str
    size_bytes: Optional[int] = None
    content_type: Optional[str] = None


class StorageProvider(ABC):
    """
    Abstract base class for object storage providers.

    Implementations raise StorageError on failure.
    """

    def __init__(self, config: StorageProviderConfig):
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier"""
        pass

    @abstractmethod
    async def upload_file(
        self,
        local_path: str,
        key: str,
        content_type: str,
    ) -> StorageResult:
        """
        Upload a local file, streaming it as the object body.

        Args:
            local_path: Path to local file
            key: Destination object key
            content_type: MIME type stored with the object

        Returns:
            StorageResult with the public URL
        """
        pass

    @abstractmethod
    async def upload_bytes(
        self,
        data: bytes,
        key: str,
        content_type: str,
    ) -> StorageResult:
        """Upload an in-memory payload"""
        pass

    @abstractmethod
    def get_url(self, key: str) -> str:
        """Public URL for an object key"""
        pass


@asynccontextmanager
async def http_session(
    session: Optional[aiohttp.ClientSession],
    timeout: float,
) -> AsyncIterator[aiohttp.ClientSession]:
    """Yield the injected session, or a short-lived one bound to `timeout`."""
    if session is not None:
        yield session
        return
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with aiohttp.ClientSession(timeout=client_timeout) as owned:
        yield owned
