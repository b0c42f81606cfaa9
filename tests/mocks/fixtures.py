"""Test data factories and in-memory collaborators for pipeline tests"""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from storyreel.errors import ExternalServiceError
from storyreel.models import ImageOptions, Segment, SegmentClip
from storyreel.providers.base import (
    AudioGenerationResult,
    AudioProvider,
    AudioProviderConfig,
    ImageGenerationClient,
    ImageProviderConfig,
    StorageError,
    StorageProvider,
    StorageProviderConfig,
    StorageResult,
)

HAUNTED_TEXTS = [
    "A haunted house creaks in the wind.",
    "A ghost appears at the top of the stairs.",
]


def make_segments(story_id: int = 7, texts: Optional[Sequence[str]] = None) -> List[Segment]:
    """Factory for numbered segments"""
    texts = texts if texts is not None else [f"Segment text {i}." for i in range(1, 4)]
    return [
        Segment(story_id=story_id, number=i, text=t)
        for i, t in enumerate(texts, start=1)
    ]


def make_clip(number: int, tmp_path: Path, duration: float = 2.0) -> SegmentClip:
    """Factory for a clip backed by a real (dummy) file"""
    clip_path = tmp_path / f"clip_{number}.mp4"
    clip_path.write_bytes(b"clip")
    return SegmentClip(
        number=number,
        clip_path=clip_path,
        audio_path=tmp_path / f"audio_{number}.mp3",
        duration=duration,
        frames=int(duration * 15),
    )


class FakeNarrationProvider(AudioProvider):
    """
    Returns text-tagged bytes; fails for texts listed in `fail_texts`.

    `delays` maps text to seconds to wait before answering.
    """

    def __init__(
        self,
        fail_texts: Sequence[str] = (),
        delays: Optional[Dict[str, float]] = None,
    ):
        super().__init__(AudioProviderConfig(api_key="test"))
        self.fail_texts = set(fail_texts)
        self.delays = delays or {}
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return "fake_narration"

    async def generate_speech(self, text, voice_id=None, **kwargs):
        self.calls.append(text)
        await asyncio.sleep(self.delays.get(text, 0))
        if text in self.fail_texts:
            raise ExternalServiceError(
                "TTS API error (500)", service="narration", status=500, detail="boom"
            )
        return AudioGenerationResult(audio_data=f"audio:{text}".encode(), format="mp3")


class FakeProbe:
    """Duration lookup keyed by the narration bytes written to disk"""

    def __init__(self, durations: Optional[Dict[str, float]] = None, default: float = 2.0):
        self.durations = durations or {}
        self.default = default

    async def probe(self, audio_path: Path) -> float:
        text = Path(audio_path).read_bytes().decode().split(":", 1)[1]
        return self.durations.get(text, self.default)


class FakeImageClient(ImageGenerationClient):
    """Completes every job immediately with one output URL"""

    def __init__(self):
        super().__init__(ImageProviderConfig(api_key="test"))
        self.prompts: List[str] = []

    @property
    def name(self) -> str:
        return "fake_image"

    async def submit(self, prompt: str, options: ImageOptions):
        self.prompts.append(prompt)
        n = len(self.prompts)
        return {
            "id": f"job_{n}",
            "status": "succeeded",
            "output": [f"https://img.example/{n}.webp"],
            "error": None,
            "poll_url": None,
        }

    async def check_status(self, poll_url: str):
        raise AssertionError("immediate jobs are never polled")

    async def download(self, url: str) -> bytes:
        return b"RIFF-webp:" + url.encode()


class FakeStorage(StorageProvider):
    """Records put calls; optionally fails every upload"""

    def __init__(self, fail: bool = False, base_url: str = "https://cdn.example.com"):
        super().__init__(StorageProviderConfig(bucket="halloween", public_base_url=base_url))
        self.fail = fail
        self.puts: List[Dict[str, str]] = []

    @property
    def name(self) -> str:
        return "fake_storage"

    def get_url(self, key: str) -> str:
        return f"{self.config.public_base_url}/{key}"

    async def upload_file(self, local_path, key, content_type):
        if self.fail:
            raise StorageError("bucket unavailable")
        self.puts.append({"path": str(local_path), "key": key, "content_type": content_type})
        return StorageResult(key=key, url=self.get_url(key), content_type=content_type)

    async def upload_bytes(self, data, key, content_type):
        if self.fail:
            raise StorageError("bucket unavailable")
        self.puts.append({"path": None, "key": key, "content_type": content_type})
        return StorageResult(key=key, url=self.get_url(key), size_bytes=len(data), content_type=content_type)
