"""Unit tests for NarrationSynthesizer"""

import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from storyreel.errors import EncodingError, ExternalServiceError, ValidationError
from storyreel.models import Segment
from storyreel.narration import NarrationSynthesizer
from tests.mocks.fixtures import FakeNarrationProvider, FakeProbe


@pytest.mark.asyncio
async def test_writes_deterministic_file_and_records_duration(workspaces):
    workspace = workspaces.allocate(7)
    synth = NarrationSynthesizer(FakeNarrationProvider(), probe=FakeProbe({"Boo.": 3.0}))
    segment = Segment(story_id=7, number=2, text="Boo.")

    audio_path, duration = await synth.synthesize(segment, workspace)

    assert audio_path == workspace.path / "story_7_segment_2_narration.mp3"
    assert audio_path.read_bytes() == b"audio:Boo."
    assert duration == 3.0
    assert segment.duration == 3.0
    assert segment.audio_path == audio_path


@pytest.mark.asyncio
async def test_audio_file_is_written_off_the_event_loop_thread(workspaces):
    writer_threads = []
    original_write = Path.write_bytes

    def recording_write(self, data):
        writer_threads.append(threading.current_thread())
        return original_write(self, data)

    synth = NarrationSynthesizer(FakeNarrationProvider(), probe=FakeProbe())
    with patch.object(Path, "write_bytes", recording_write):
        audio_path, _ = await synth.synthesize(
            Segment(story_id=7, number=1, text="Boo."), workspaces.allocate(7)
        )

    assert audio_path.read_bytes() == b"audio:Boo."
    assert len(writer_threads) == 1
    assert writer_threads[0] is not threading.current_thread()


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   \n"])
async def test_empty_text_fails_without_calling_service(workspaces, text):
    provider = FakeNarrationProvider()
    synth = NarrationSynthesizer(provider, probe=FakeProbe())

    with pytest.raises(ValidationError):
        await synth.synthesize(Segment(story_id=7, number=1, text=text), workspaces.allocate(7))

    assert provider.calls == []


@pytest.mark.asyncio
async def test_service_error_propagates(workspaces):
    synth = NarrationSynthesizer(FakeNarrationProvider(fail_texts=["Boo."]), probe=FakeProbe())

    with pytest.raises(ExternalServiceError) as exc_info:
        await synth.synthesize(Segment(story_id=7, number=1, text="Boo."), workspaces.allocate(7))

    assert exc_info.value.detail == "boom"


@pytest.mark.asyncio
async def test_probe_failure_propagates(workspaces):
    class BrokenProbe:
        async def probe(self, audio_path):
            raise EncodingError("invalid duration")

    synth = NarrationSynthesizer(FakeNarrationProvider(), probe=BrokenProbe())

    with pytest.raises(EncodingError):
        await synth.synthesize(Segment(story_id=7, number=1, text="Boo."), workspaces.allocate(7))
