"""
Narration synthesis

Turns one segment's text into a narration file inside the run workspace and
measures its duration.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol, Tuple

from .errors import ValidationError
from .models.story import Segment
from .probe import FFprobeDurationProbe
from .providers.base import AudioProvider
from .workspace import Workspace

logger = logging.getLogger(__name__)


class DurationProbe(Protocol):
    async def probe(self, audio_path: Path) -> float: ...


class NarrationSynthesizer:
    """Calls the narration service for a segment and records its duration."""

    def __init__(
        self,
        provider: AudioProvider,
        probe: Optional[DurationProbe] = None,
        voice: Optional[str] = None,
    ):
        self.provider = provider
        self.probe = probe or FFprobeDurationProbe()
        self.voice = voice

    async def synthesize(self, segment: Segment, workspace: Workspace) -> Tuple[Path, float]:
        """
        Synthesize narration for `segment`.

        Returns:
            (audio_path, duration_seconds); both are also stored on the segment

        Raises:
            ValidationError: Segment text is empty
            ExternalServiceError: Narration service failed
            EncodingError: Duration could not be measured or is not positive
        """
        if not segment.text or not segment.text.strip():
            raise ValidationError(f"Segment {segment.number} has no narration text")

        result = await self.provider.generate_speech(segment.text, voice_id=self.voice)

        audio_path = workspace.audio_path(segment.number, result.format)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, audio_path.write_bytes, result.audio_data)

        duration = await self.probe.probe(audio_path)
        segment.audio_path = audio_path
        segment.duration = duration

        logger.info(
            "Story %s segment %s: narration %.2fs (%d bytes)",
            segment.story_id, segment.number, duration, len(result.audio_data),
        )
        return audio_path, duration
