"""Error taxonomy for the story video pipeline.

Segment-level errors (ExternalServiceError, EncodingError and a
ValidationError raised for one segment's input) are collected by the
scheduler and reported together through SegmentsFailedError. Run-level
errors (ValidationError before any work, ConcatenationError, PublishError)
end the run immediately.
"""

from dataclasses import dataclass
from typing import List, Optional


class PipelineError(Exception):
    """Base exception for every pipeline failure."""
    pass


class ValidationError(PipelineError):
    """Raised when inputs or configuration are unusable."""
    pass


class ExternalServiceError(PipelineError):
    """Raised when a narration/image service call fails.

    Attributes:
        service: Short service name ("narration", "image", ...)
        status: HTTP status code, if the service answered
        detail: Response body or transport error text
    """

    def __init__(
        self,
        message: str,
        service: str = "",
        status: Optional[int] = None,
        detail: str = ""
    ):
        super().__init__(message)
        self.service = service
        self.status = status
        self.detail = detail


class GenerationTimeoutError(ExternalServiceError):
    """Raised when a generation job never reaches a terminal state."""
    pass


class EncodingError(PipelineError):
    """Raised when a segment cannot be encoded or its audio probed."""

    def __init__(self, message: str, diagnostics: str = ""):
        super().__init__(message)
        self.diagnostics = diagnostics


class ConcatenationError(PipelineError):
    """Raised when segment clips cannot be joined into one video."""

    def __init__(self, message: str, diagnostics: str = ""):
        super().__init__(message)
        self.diagnostics = diagnostics


class PublishError(PipelineError):
    """Raised when the final video cannot be stored."""
    pass


class ToolError(PipelineError):
    """Raised by the external tool runner."""
    pass


class ToolNotFoundError(ToolError):
    """Raised when FFmpeg/FFprobe is not installed or not in PATH."""
    pass


class ToolTimeoutError(ToolError):
    """Raised when an external tool exceeds its time limit."""
    pass


@dataclass
class SegmentFailure:
    """One failed segment task and the error that ended it."""
    number: int
    error: BaseException

    def describe(self) -> str:
        return f"segment {self.number}: {type(self.error).__name__}: {self.error}"


class SegmentsFailedError(PipelineError):
    """Aggregate of every segment task that failed in a run."""

    def __init__(self, failures: List[SegmentFailure]):
        self.failures = sorted(failures, key=lambda f: f.number)
        lines = "; ".join(f.describe() for f in self.failures)
        super().__init__(f"{len(self.failures)} segment(s) failed: {lines}")

    @property
    def segment_numbers(self) -> List[int]:
        return [f.number for f in self.failures]
