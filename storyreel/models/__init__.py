"""Data models for stories, segments, generation jobs and rendering"""

from .story import Story, Segment, PipelineResult
from .generation import JobStatus, GenerationJob, ImageOptions
from .render import EncoderSettings, SegmentClip

__all__ = [
    "Story",
    "Segment",
    "PipelineResult",
    "JobStatus",
    "GenerationJob",
    "ImageOptions",
    "EncoderSettings",
    "SegmentClip",
]
