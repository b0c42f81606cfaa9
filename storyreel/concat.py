"""
Clip concatenation

Joins every segment clip, in ascending segment order, with the FFmpeg concat
demuxer. The pass re-encodes at a constant frame rate so audio and video do
not drift apart at clip boundaries.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import ConcatenationError, ToolError
from .models.render import EncoderSettings, SegmentClip
from .tools import find_ffmpeg, run_tool
from .workspace import Workspace

logger = logging.getLogger(__name__)


def _quote(path: Path) -> str:
    # concat demuxer syntax: single quotes, embedded quotes as '\''
    return str(path).replace("\\", "/").replace("'", "'\\''")


def write_manifest(clips: Sequence[SegmentClip], manifest_path: Path) -> List[Path]:
    """
    Write the concat manifest in ascending segment-number order.

    Returns:
        Clip paths in the order they were written
    """
    ordered = sorted(clips, key=lambda c: c.number)
    numbers = [c.number for c in ordered]
    if len(set(numbers)) != len(numbers):
        raise ConcatenationError(f"Duplicate segment numbers in clip list: {numbers}")

    paths = [Path(c.clip_path).resolve() for c in ordered]
    manifest_path.write_text(
        "".join(f"file '{_quote(p)}'\n" for p in paths),
        encoding="utf-8",
    )
    return paths


class Concatenator:
    """Builds the final video from ordered segment clips."""

    def __init__(
        self,
        settings: Optional[EncoderSettings] = None,
        ffmpeg_path: Optional[str] = None,
        timeout: Optional[float] = 600.0,
    ):
        self.settings = settings or EncoderSettings()
        self._ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    def build_args(self, ffmpeg: str, manifest_path: Path, output_path: Path) -> List[str]:
        s = self.settings
        return [
            ffmpeg,
            "-y",
            "-hide_banner",
            "-loglevel", "error",
            "-f", "concat",
            "-safe", "0",
            "-i", str(manifest_path),
            "-c:v", s.video_codec,
            "-preset", s.preset,
            "-crf", str(s.crf),
            "-pix_fmt", s.pixel_format,
            "-c:a", s.audio_codec,
            "-fps_mode", "cfr",
            "-r", str(s.frame_rate),
            str(output_path),
        ]

    async def concatenate(self, clips: Sequence[SegmentClip], workspace: Workspace) -> Path:
        """
        Join `clips` into the run's final video.

        Raises:
            ConcatenationError: Empty/incomplete clip list, FFmpeg failure or
                a missing/empty output file
        """
        if not clips:
            raise ConcatenationError("No clips to concatenate")
        missing = [c.number for c in clips if not Path(c.clip_path).exists()]
        if missing:
            raise ConcatenationError(f"Clip files missing for segment(s) {missing}")

        manifest = workspace.manifest_path()
        output_path = workspace.video_path()
        write_manifest(clips, manifest)

        try:
            ffmpeg = self._ffmpeg_path or find_ffmpeg()
            result = await run_tool(
                self.build_args(ffmpeg, manifest, output_path),
                timeout=self.timeout,
            )
        except ToolError as e:
            raise ConcatenationError(f"Concatenation failed: {e}") from e

        if not result.ok:
            raise ConcatenationError(
                f"FFmpeg concat exited with {result.returncode}",
                diagnostics=result.diagnostics,
            )
        if not output_path.exists() or output_path.stat().st_size == 0:
            raise ConcatenationError(
                "FFmpeg concat produced no output file",
                diagnostics=result.diagnostics,
            )

        logger.info("Story %s: joined %d clips -> %s", workspace.story_id, len(clips), output_path.name)
        return output_path
