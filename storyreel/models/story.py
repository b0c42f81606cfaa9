"""Story and segment models"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .render import SegmentClip


@dataclass
class Segment:
    """
    One numbered unit of story text.

    Numbers are 1-based, unique within the story and define playback order.
    Media fields are filled in by the pipeline run that owns the segment.
    """
    story_id: int
    number: int
    text: str
    duration: Optional[float] = None
    image_bytes: Optional[bytes] = field(default=None, repr=False)
    image_url: Optional[str] = None
    audio_path: Optional[Path] = None
    clip_path: Optional[Path] = None


@dataclass
class Story:
    """A story submitted for video generation."""
    story_id: int
    content: str
    video_url: str = ""


@dataclass
class PipelineResult:
    """Outcome of a successful pipeline run."""
    story_id: int
    video_url: str
    storage_key: str
    clips: List[SegmentClip] = field(default_factory=list)

    @property
    def total_duration(self) -> float:
        return sum(c.duration for c in self.clips)
