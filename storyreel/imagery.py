"""
Image synthesis

Drives one generation job per segment through the image service:

    submitted -> processing -> succeeded | failed | timed_out

A submit response that already carries output goes straight to succeeded.
While the job is running its poll address is fetched every `poll_interval`
seconds, at most `max_retries` times, so a job that never finishes fails
after exactly `max_retries * poll_interval` seconds of waiting.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from .errors import ExternalServiceError, GenerationTimeoutError, ValidationError
from .models.generation import GenerationJob, ImageOptions, JobStatus
from .models.story import Segment
from .providers.base import ImageGenerationClient, StorageError, StorageProvider

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPES = {
    "webp": "image/webp",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}


def build_image_key(story_id: int, number: int, fmt: str = "webp") -> str:
    """Deterministic object key for a published segment image"""
    return f"images/story_{story_id}_segment_{number}.{fmt}"


class ImageSynthesizer:
    """Generates and downloads the illustration for a segment."""

    def __init__(
        self,
        client: ImageGenerationClient,
        options: Optional[ImageOptions] = None,
        poll_interval: float = 1.0,
        max_retries: int = 60,
        storage: Optional[StorageProvider] = None,
    ):
        """
        Args:
            client: Image generation service client
            options: Fixed generation options shared by every segment
            poll_interval: Seconds between status requests
            max_retries: Maximum number of status requests per job
            storage: When given, each downloaded image is also published
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.client = client
        self.options = options or ImageOptions()
        self.poll_interval = poll_interval
        self.max_retries = max_retries
        self.storage = storage

    async def generate(self, segment: Segment) -> bytes:
        """
        Generate the image for `segment` and return its raw bytes.

        Raises:
            ValidationError: Segment text is empty
            ExternalServiceError: Job failed, returned no output or a call failed
            GenerationTimeoutError: Job never reached a terminal state
        """
        if not segment.text or not segment.text.strip():
            raise ValidationError(f"Segment {segment.number} has no text to illustrate")

        job = await self.run_job(self.options.build_prompt(segment.text), label=segment.number)
        image_bytes = await self.client.download(job.output[0])
        if not image_bytes:
            raise ExternalServiceError(
                f"Image download for job {job.job_id} was empty",
                service="image",
            )
        segment.image_bytes = image_bytes

        if self.storage is not None:
            await self._publish(segment, image_bytes)

        logger.info(
            "Story %s segment %s: image ready after %d poll(s) (%d bytes)",
            segment.story_id, segment.number, job.polls, len(image_bytes),
        )
        return image_bytes

    async def run_job(self, prompt: str, label: Any = "") -> GenerationJob:
        """Submit a job and poll it to a terminal state; return the succeeded job."""
        response = await self.client.submit(prompt, self.options)
        job = GenerationJob(
            job_id=response.get("id") or "",
            poll_url=response.get("poll_url"),
        )

        if self._settle(job, response):
            return job

        if not job.poll_url:
            job.transition(JobStatus.FAILED)
            raise ExternalServiceError(
                f"Image job {job.job_id} is {response.get('status')!r} but has no poll address",
                service="image",
            )

        job.transition(JobStatus.PROCESSING)
        while job.polls < self.max_retries:
            await asyncio.sleep(self.poll_interval)
            response = await self.client.check_status(job.poll_url)
            job.polls += 1
            logger.debug(
                "Image job %s (segment %s) poll %d/%d: %s",
                job.job_id, label, job.polls, self.max_retries, response.get("status"),
            )
            if self._settle(job, response):
                return job
            job.transition(JobStatus.PROCESSING)

        job.transition(JobStatus.TIMED_OUT)
        raise GenerationTimeoutError(
            f"Image job {job.job_id} did not finish after {self.max_retries} polls "
            f"({self.max_retries * self.poll_interval:.1f}s)",
            service="image",
        )

    def _settle(self, job: GenerationJob, response: Dict[str, Any]) -> bool:
        """
        Apply a terminal response to `job`.

        Returns:
            True if the job succeeded, False if it is still running

        Raises:
            ExternalServiceError: The job failed or succeeded without output
        """
        status = response.get("status")
        output = list(response.get("output") or [])

        if output and status != "failed":
            job.output = output
            job.transition(JobStatus.SUCCEEDED)
            return True

        if status == "succeeded":
            job.transition(JobStatus.FAILED)
            job.error = "succeeded without output"
            raise ExternalServiceError(
                f"Image job {job.job_id} succeeded but returned no output",
                service="image",
            )

        if status == "failed":
            job.transition(JobStatus.FAILED)
            job.error = response.get("error") or "unknown error"
            raise ExternalServiceError(
                f"Image job {job.job_id} failed: {job.error}",
                service="image",
                detail=str(job.error),
            )

        return False

    async def _publish(self, segment: Segment, image_bytes: bytes) -> None:
        fmt = self.options.output_format
        key = build_image_key(segment.story_id, segment.number, fmt)
        try:
            result = await self.storage.upload_bytes(
                image_bytes, key, IMAGE_CONTENT_TYPES.get(fmt, "application/octet-stream")
            )
        except StorageError as e:
            raise ExternalServiceError(
                f"Failed to publish image for segment {segment.number}: {e}",
                service="storage",
            ) from e
        segment.image_url = result.url
