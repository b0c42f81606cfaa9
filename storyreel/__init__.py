"""storyreel - narrated story videos from text"""

from .config import PipelineConfig
from .errors import (
    PipelineError,
    ValidationError,
    ExternalServiceError,
    GenerationTimeoutError,
    EncodingError,
    ConcatenationError,
    PublishError,
    SegmentFailure,
    SegmentsFailedError,
)
from .models import Segment, Story, PipelineResult
from .pipeline import StoryVideoPipeline, SegmentScheduler
from .factory import build_pipeline

# Note: the CLI lives in the separate `cli` package.

__version__ = "0.1.0"

__all__ = [
    "PipelineConfig",
    "PipelineError",
    "ValidationError",
    "ExternalServiceError",
    "GenerationTimeoutError",
    "EncodingError",
    "ConcatenationError",
    "PublishError",
    "SegmentFailure",
    "SegmentsFailedError",
    "Segment",
    "Story",
    "PipelineResult",
    "StoryVideoPipeline",
    "SegmentScheduler",
    "build_pipeline",
]
