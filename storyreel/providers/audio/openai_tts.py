"""
OpenAI Text-to-Speech Provider

API Docs: https://platform.openai.com/docs/guides/text-to-speech
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from ...errors import ExternalServiceError, ValidationError
from ..base import (
    AudioProvider,
    AudioProviderConfig,
    AudioGenerationResult,
    http_session,
)

logger = logging.getLogger(__name__)


class OpenAITTSProvider(AudioProvider):
    """OpenAI text-to-speech provider"""

    # Available voices
    VOICES = ["alloy", "echo", "fable", "onyx", "nova", "shimmer"]

    # Formats the duration probe can read (raw pcm has no header)
    FORMATS = ["mp3", "opus", "aac", "flac", "wav"]

    DEFAULT_VOICE = "onyx"

    # API endpoint
    API_URL = "https://api.openai.com/v1/audio/speech"

    def __init__(
        self,
        config: AudioProviderConfig,
        model: str = "tts-1",
        response_format: str = "mp3",
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize OpenAI TTS provider.

        Args:
            config: Provider configuration
            model: "tts-1" (standard) or "tts-1-hd" (high quality)
            response_format: mp3, opus, aac, flac or wav
            session: Shared aiohttp session; one per request is opened if omitted
        """
        super().__init__(config)
        self.model = model
        self.response_format = response_format
        self._session = session

        if not self.config.api_key:
            raise ValueError("OpenAI API key required")
        if response_format not in self.FORMATS:
            raise ValidationError(
                f"Unsupported TTS format '{response_format}'. "
                f"Must be one of: {', '.join(self.FORMATS)}"
            )

    @classmethod
    def validate_voice(cls, voice: Optional[str]) -> str:
        """Return the voice to request, or raise ValidationError if unknown"""
        voice = voice or cls.DEFAULT_VOICE
        if voice not in cls.VOICES:
            raise ValidationError(
                f"Invalid voice '{voice}'. Must be one of: {', '.join(cls.VOICES)}"
            )
        return voice

    @property
    def name(self) -> str:
        return "openai_tts"

    @property
    def api_url(self) -> str:
        return self.config.base_url or self.API_URL

    async def generate_speech(
        self,
        text: str,
        voice_id: Optional[str] = None,
        **kwargs
    ) -> AudioGenerationResult:
        """
        Generate speech from text using OpenAI TTS API

        Args:
            text: Text to convert to speech
            voice_id: Voice identifier (alloy, echo, fable, onyx, nova, shimmer)

        Returns:
            AudioGenerationResult with the audio bytes

        Raises:
            ValidationError: Unknown voice
            ExternalServiceError: Non-200 response or transport failure
        """
        voice = self.validate_voice(voice_id)

        payload = {
            "model": self.model,
            "input": text,
            "voice": voice,
            "response_format": self.response_format,
        }

        try:
            async with http_session(self._session, self.config.timeout) as session:
                async with session.post(
                    self.api_url,
                    headers={
                        "Authorization": f"Bearer {self.config.api_key}",
                        "Content-Type": "application/json"
                    },
                    json=payload,
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise ExternalServiceError(
                            f"OpenAI TTS API error ({response.status})",
                            service="narration",
                            status=response.status,
                            detail=error_text,
                        )
                    audio_bytes = await response.read()
        except aiohttp.ClientError as e:
            raise ExternalServiceError(
                f"OpenAI TTS request failed: {e}",
                service="narration",
                detail=str(e),
            ) from e
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(
                f"OpenAI TTS request timed out after {self.config.timeout}s",
                service="narration",
            ) from e

        if not audio_bytes:
            raise ExternalServiceError(
                "OpenAI TTS returned an empty audio body",
                service="narration",
                status=200,
            )

        logger.debug("Synthesized %d bytes of %s audio", len(audio_bytes), self.response_format)
        return AudioGenerationResult(
            audio_data=audio_bytes,
            format=self.response_format,
        )
