"""End-to-end run against a real FFmpeg with mock narration and images"""

import shutil
from pathlib import Path

import pytest

from storyreel.concat import Concatenator
from storyreel.encoder import SegmentEncoder
from storyreel.imagery import ImageSynthesizer
from storyreel.models import EncoderSettings, Story
from storyreel.narration import NarrationSynthesizer
from storyreel.pipeline import StoryVideoPipeline
from storyreel.probe import FFprobeDurationProbe
from storyreel.providers.base import StorageProviderConfig
from storyreel.providers.mock import MockImageClient, MockNarrationProvider
from storyreel.providers.storage import LocalStorageProvider
from storyreel.publisher import ArtifactPublisher
from storyreel.segmentation import ParagraphSegmenter
from storyreel.workspace import WorkspaceManager

pytestmark = [
    pytest.mark.integration,
    pytest.mark.slow,
    pytest.mark.skipif(
        shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
        reason="FFmpeg/FFprobe not installed",
    ),
]

# Small frames keep the zoompan pass fast
SETTINGS = EncoderSettings(width=320, height=180, prescale_width=1280, preset="ultrafast")


@pytest.mark.asyncio
async def test_mock_story_produces_published_video(tmp_path):
    narration = MockNarrationProvider()
    storage = LocalStorageProvider(StorageProviderConfig(base_path=str(tmp_path / "published")))
    pipeline = StoryVideoPipeline(
        narration=NarrationSynthesizer(narration, probe=FFprobeDurationProbe()),
        imagery=ImageSynthesizer(MockImageClient(), poll_interval=0, max_retries=1),
        encoder=SegmentEncoder(SETTINGS),
        concatenator=Concatenator(SETTINGS),
        publisher=ArtifactPublisher(storage),
        workspaces=WorkspaceManager(tmp_path / "runs"),
        encoder_concurrency=2,
    )
    story = Story(
        story_id=77,
        content="A haunted house creaks in the wind.\n\nA ghost appears at the top of the stairs.",
    )

    result = await pipeline.produce(story, ParagraphSegmenter())

    published = tmp_path / "published" / "videos" / "story_77_video.mp4"
    assert published.exists()
    assert story.video_url == published.absolute().as_uri()

    duration = await FFprobeDurationProbe().probe(published)
    expected = sum(c.duration for c in result.clips)
    # one frame of rounding per clip, plus AAC priming padding
    assert abs(duration - expected) <= SETTINGS.frame_interval * len(result.clips) + 0.1
    assert list((tmp_path / "runs").iterdir()) == []
