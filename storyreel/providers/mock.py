"""Mock narration and image providers for running without API keys

Used for:
- Offline runs (`storyreel produce --mock`)
- Development without incurring costs
- Integration tests against a real FFmpeg

Both providers synthesize real media with FFmpeg so the encoder and
concatenator downstream see genuine files.
"""

import hashlib
from typing import Any, Dict, Optional

from ..errors import ExternalServiceError, ToolError
from ..models.generation import ImageOptions
from ..tools import find_ffmpeg, run_tool
from .base import (
    AudioGenerationResult,
    AudioProvider,
    AudioProviderConfig,
    ImageGenerationClient,
    ImageProviderConfig,
)

# Muted palette for placeholder frames
_COLORS = ["0x2b2d42", "0x8d99ae", "0x3d405b", "0x81b29a", "0xe07a5f", "0x6d597a"]


class MockNarrationProvider(AudioProvider):
    """
    Produces silent WAV audio sized to the text at ~150 words per minute.
    """

    WORDS_PER_MINUTE = 150.0
    MIN_DURATION = 1.0

    def __init__(self, config: Optional[AudioProviderConfig] = None, timeout: float = 60.0):
        super().__init__(config or AudioProviderConfig())
        self.timeout = timeout
        self.calls = 0

    @property
    def name(self) -> str:
        return "mock_narration"

    def duration_for(self, text: str) -> float:
        seconds = len(text.split()) / self.WORDS_PER_MINUTE * 60.0
        return round(max(seconds, self.MIN_DURATION), 2)

    async def generate_speech(
        self,
        text: str,
        voice_id: Optional[str] = None,
        **kwargs
    ) -> AudioGenerationResult:
        self.calls += 1
        duration = self.duration_for(text)
        try:
            result = await run_tool(
                [
                    find_ffmpeg(),
                    "-hide_banner", "-loglevel", "error",
                    "-f", "lavfi",
                    "-i", "anullsrc=r=24000:cl=mono",
                    "-t", f"{duration:.2f}",
                    "-f", "wav",
                    "pipe:1",
                ],
                timeout=self.timeout,
            )
        except ToolError as e:
            raise ExternalServiceError(f"Mock narration failed: {e}", service="narration") from e

        if not result.ok:
            raise ExternalServiceError(
                "Mock narration failed",
                service="narration",
                status=result.returncode,
                detail=result.diagnostics,
            )
        return AudioGenerationResult(
            audio_data=result.stdout,
            format="wav",
        )


class MockImageClient(ImageGenerationClient):
    """
    Completes every job immediately with a solid-colour frame.

    The colour is picked from the prompt so each segment looks different.
    """

    def __init__(self, config: Optional[ImageProviderConfig] = None, timeout: float = 60.0):
        super().__init__(config or ImageProviderConfig())
        self.timeout = timeout
        self.jobs: Dict[str, Dict[str, Any]] = {}

    @property
    def name(self) -> str:
        return "mock_image"

    async def submit(self, prompt: str, options: ImageOptions) -> Dict[str, Any]:
        digest = hashlib.sha1(prompt.encode("utf-8")).hexdigest()
        job_id = f"mock_job_{len(self.jobs) + 1}"
        color = _COLORS[int(digest[:8], 16) % len(_COLORS)]
        job = {
            "id": job_id,
            "status": "succeeded",
            "output": [f"mock://{job_id}/{color}"],
            "error": None,
            "poll_url": None,
        }
        self.jobs[job_id] = job
        return job

    async def check_status(self, poll_url: str) -> Dict[str, Any]:
        job_id = poll_url.rsplit("/", 1)[-1]
        if job_id not in self.jobs:
            return {"id": job_id, "status": "failed", "output": [], "error": "Job not found", "poll_url": poll_url}
        return self.jobs[job_id]

    async def download(self, url: str) -> bytes:
        color = url.rsplit("/", 1)[-1]
        try:
            result = await run_tool(
                [
                    find_ffmpeg(),
                    "-hide_banner", "-loglevel", "error",
                    "-f", "lavfi",
                    "-i", f"color=c={color}:s=1024x1024",
                    "-frames:v", "1",
                    "-f", "image2pipe",
                    "-vcodec", "png",
                    "pipe:1",
                ],
                timeout=self.timeout,
            )
        except ToolError as e:
            raise ExternalServiceError(f"Mock image failed: {e}", service="image") from e

        if not result.ok:
            raise ExternalServiceError(
                "Mock image failed",
                service="image",
                status=result.returncode,
                detail=result.diagnostics,
            )
        return result.stdout
