"""
Render models for per-segment encoding and final concatenation

These models hold the fixed video settings every clip of a story shares,
plus the result produced for each encoded segment.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class EncoderSettings:
    """
    Video settings shared by every clip of a run.

    Attributes:
        frame_rate: Output frame rate for clips and the final video
        width: Output width in pixels
        height: Output height in pixels
        prescale_width: Width the cropped still is upscaled to before the
            zoom, which keeps the zoompan motion smooth
        zoom_step: Zoom increment applied per output frame
        video_codec: Video codec (libx264)
        audio_codec: Audio codec for the muxed narration
        pixel_format: Pixel format (yuv420p for compatibility)
        preset: x264 speed preset
        crf: Quality-based encoding factor (0-51, lower = better)
    """
    frame_rate: int = 15
    width: int = 1344
    height: int = 768
    prescale_width: int = 8000
    zoom_step: float = 0.0005
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    pixel_format: str = "yuv420p"
    preset: str = "medium"
    crf: int = 23

    @property
    def frame_interval(self) -> float:
        """Duration of one frame in seconds"""
        return 1.0 / self.frame_rate

    def frame_count(self, duration: float) -> int:
        """Frames needed to cover `duration` seconds (at least one)"""
        return max(1, int(duration * self.frame_rate))


@dataclass
class SegmentClip:
    """An encoded clip for one segment, stored at its segment's slot."""
    number: int
    clip_path: Path
    audio_path: Path
    duration: float
    frames: int
