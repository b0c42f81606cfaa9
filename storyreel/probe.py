"""
Audio duration probes

A DurationProbe maps an audio file to its length in seconds. The result must
be a finite positive number; anything else is an EncodingError.
"""

import logging
import math
from pathlib import Path
from typing import Optional

import mutagen
from mutagen import MutagenError

from .errors import EncodingError, ToolError
from .tools import find_ffprobe, run_tool

logger = logging.getLogger(__name__)


def _validate_duration(raw: str, audio_path: Path) -> float:
    try:
        duration = float(raw.strip())
    except ValueError:
        raise EncodingError(
            f"Duration probe returned a non-numeric value for {audio_path.name}: {raw!r}"
        )
    if not math.isfinite(duration) or duration <= 0:
        raise EncodingError(
            f"Duration probe returned an invalid duration for {audio_path.name}: {duration}"
        )
    return duration


class FFprobeDurationProbe:
    """Measures duration with `ffprobe -show_entries format=duration`."""

    def __init__(self, ffprobe_path: Optional[str] = None, timeout: float = 60.0):
        self._ffprobe_path = ffprobe_path
        self.timeout = timeout

    async def probe(self, audio_path: Path) -> float:
        audio_path = Path(audio_path)
        try:
            ffprobe = self._ffprobe_path or find_ffprobe()
            result = await run_tool(
                [
                    ffprobe,
                    "-v", "error",
                    "-show_entries", "format=duration",
                    "-of", "default=noprint_wrappers=1:nokey=1",
                    str(audio_path),
                ],
                timeout=self.timeout,
            )
        except ToolError as e:
            raise EncodingError(f"Could not probe {audio_path.name}: {e}") from e

        if not result.ok:
            raise EncodingError(
                f"ffprobe failed for {audio_path.name} (exit {result.returncode})",
                diagnostics=result.diagnostics,
            )
        return _validate_duration(result.stdout.decode(errors="replace"), audio_path)


class MutagenDurationProbe:
    """
    Reads duration from the audio container headers with mutagen.

    Tries mutagen first (fast, pure-Python), falls back to ffprobe for
    formats mutagen cannot parse (raw WAV from some encoders, for example).
    """

    def __init__(self, fallback: Optional[FFprobeDurationProbe] = None):
        self.fallback = fallback or FFprobeDurationProbe()

    async def probe(self, audio_path: Path) -> float:
        audio_path = Path(audio_path)
        try:
            audio = mutagen.File(str(audio_path))
        except MutagenError as e:
            logger.debug("mutagen could not read %s: %s", audio_path.name, e)
            audio = None

        length = getattr(getattr(audio, "info", None), "length", None)
        if length:
            return _validate_duration(str(length), audio_path)

        return await self.fallback.probe(audio_path)
