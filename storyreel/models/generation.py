"""
Image generation job models

A GenerationJob tracks one asynchronous request against the image service
from submission until it reaches a terminal state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class JobStatus(Enum):
    """Lifecycle states of a generation job"""
    SUBMITTED = "submitted"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.TIMED_OUT)


# Transitions allowed by the poll loop
_ALLOWED = {
    JobStatus.SUBMITTED: {JobStatus.PROCESSING, JobStatus.SUCCEEDED, JobStatus.FAILED},
    JobStatus.PROCESSING: {
        JobStatus.PROCESSING,
        JobStatus.SUCCEEDED,
        JobStatus.FAILED,
        JobStatus.TIMED_OUT,
    },
}


@dataclass(frozen=True)
class ImageOptions:
    """
    Fixed generation options for every segment image.

    Attributes:
        aspect_ratio: Requested aspect ratio (e.g., "1:1", "16:9")
        output_format: Image format returned by the service (webp, png, jpg)
        output_quality: Encoder quality 0-100
        prompt_template: Format string wrapping the segment text; "{text}"
            is replaced with the narration text
    """
    aspect_ratio: str = "1:1"
    output_format: str = "webp"
    output_quality: int = 100
    prompt_template: str = "{text}"

    def build_prompt(self, text: str) -> str:
        return self.prompt_template.format(text=text.strip())


@dataclass
class GenerationJob:
    """
    One image generation request.

    Attributes:
        job_id: Service identifier of the job
        status: Current lifecycle state
        poll_url: Address to poll for status updates
        output: Output references (URLs) once succeeded
        error: Service error message once failed
        polls: Number of status requests made so far
    """
    job_id: str
    status: JobStatus = JobStatus.SUBMITTED
    poll_url: Optional[str] = None
    output: List[str] = field(default_factory=list)
    error: Optional[str] = None
    polls: int = 0

    def transition(self, new_status: JobStatus) -> None:
        """Move to `new_status`, refusing to leave a terminal state."""
        if self.status.is_terminal:
            raise ValueError(
                f"Job {self.job_id} is already {self.status.value}; "
                f"cannot move to {new_status.value}"
            )
        if new_status not in _ALLOWED[self.status]:
            raise ValueError(
                f"Invalid job transition {self.status.value} -> {new_status.value}"
            )
        self.status = new_status
