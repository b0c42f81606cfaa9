"""
Segment encoding

Renders one segment clip in a single FFmpeg pass: the still image arrives on
stdin, is scaled and cropped to the output size, upscaled, then run through
zoompan for exactly `frames` frames while the narration is muxed in. The
output is clipped to the narration duration.
"""

import logging
from pathlib import Path
from typing import List, Optional

from .errors import EncodingError, ToolError
from .models.render import EncoderSettings, SegmentClip
from .models.story import Segment
from .tools import find_ffmpeg, run_tool
from .workspace import Workspace

logger = logging.getLogger(__name__)


def build_filter_graph(settings: EncoderSettings, frames: int) -> str:
    """Scale/crop/zoom filter graph producing `frames` frames on [v]."""
    w, h = settings.width, settings.height
    return (
        f"[0:v]scale={w}:{h}:force_original_aspect_ratio=increase,"
        f"setsar=1:1,crop={w}:{h},"
        f"scale={settings.prescale_width}:-1,"
        f"zoompan=z='zoom+{settings.zoom_step}'"
        f":x='iw/2-(iw/zoom/2)':y='ih/2-(ih/zoom/2)'"
        f":d={frames}:s={w}x{h}:fps={settings.frame_rate}[v]"
    )


class SegmentEncoder:
    """Encodes image + narration into one fixed-duration clip."""

    def __init__(
        self,
        settings: Optional[EncoderSettings] = None,
        ffmpeg_path: Optional[str] = None,
        timeout: Optional[float] = 300.0,
    ):
        self.settings = settings or EncoderSettings()
        self._ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    def build_args(
        self,
        ffmpeg: str,
        audio_path: Path,
        output_path: Path,
        duration: float,
        frames: int,
    ) -> List[str]:
        s = self.settings
        return [
            ffmpeg,
            "-y",
            "-hide_banner",
            "-loglevel", "error",
            "-i", "pipe:0",
            "-i", str(audio_path),
            "-filter_complex", build_filter_graph(s, frames),
            "-map", "[v]",
            "-map", "1:a",
            "-c:v", s.video_codec,
            "-preset", s.preset,
            "-crf", str(s.crf),
            "-pix_fmt", s.pixel_format,
            "-r", str(s.frame_rate),
            "-c:a", s.audio_codec,
            "-t", f"{duration:.3f}",
            str(output_path),
        ]

    async def encode(self, segment: Segment, workspace: Workspace) -> SegmentClip:
        """
        Encode `segment` into its clip file.

        The segment must already carry image bytes, an audio path and a
        measured duration.

        Raises:
            EncodingError: Missing inputs, narration shorter than one frame,
                missing FFmpeg, timeout or a non-zero exit (stderr attached as diagnostics)
        """
        if not segment.image_bytes:
            raise EncodingError(f"Segment {segment.number} has no image to encode")
        if segment.audio_path is None or not segment.duration or segment.duration <= 0:
            raise EncodingError(f"Segment {segment.number} has no usable narration")
        if segment.duration < self.settings.frame_interval:
            raise EncodingError(
                f"Segment {segment.number} narration ({segment.duration}s) is shorter than one frame"
            )

        frames = self.settings.frame_count(segment.duration)
        output_path = workspace.clip_path(segment.number)

        try:
            ffmpeg = self._ffmpeg_path or find_ffmpeg()
            args = self.build_args(ffmpeg, segment.audio_path, output_path, segment.duration, frames)
            result = await run_tool(args, input_bytes=segment.image_bytes, timeout=self.timeout)
        except ToolError as e:
            raise EncodingError(f"Segment {segment.number} encode failed: {e}") from e

        if not result.ok:
            raise EncodingError(
                f"FFmpeg exited with {result.returncode} encoding segment {segment.number}",
                diagnostics=result.diagnostics,
            )
        if not output_path.exists() or output_path.stat().st_size == 0:
            raise EncodingError(
                f"FFmpeg produced no clip for segment {segment.number}",
                diagnostics=result.diagnostics,
            )

        segment.clip_path = output_path
        logger.info(
            "Story %s segment %s: encoded %d frames (%.2fs) -> %s",
            segment.story_id, segment.number, frames, segment.duration, output_path.name,
        )
        return SegmentClip(
            number=segment.number,
            clip_path=output_path,
            audio_path=segment.audio_path,
            duration=segment.duration,
            frames=frames,
        )
