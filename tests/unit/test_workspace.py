"""Unit tests for WorkspaceManager"""

import os
import time
from unittest.mock import patch

from storyreel.workspace import WorkspaceManager


def test_allocations_are_unique_even_for_same_story(tmp_path):
    manager = WorkspaceManager(tmp_path)

    a = manager.allocate(1)
    b = manager.allocate(1)
    c = manager.allocate(2)

    assert len({a.path, b.path, c.path}) == 3
    assert a.path.name.startswith("story_1_")
    assert c.path.name.startswith("story_2_")


def test_file_names_are_scoped_by_story_and_segment(tmp_path):
    workspace = WorkspaceManager(tmp_path).allocate(3)

    assert workspace.audio_path(2).name == "story_3_segment_2_narration.mp3"
    assert workspace.audio_path(2, "wav").name == "story_3_segment_2_narration.wav"
    assert workspace.clip_path(2).name == "story_3_segment_2_clip.mp4"
    assert workspace.manifest_path().name == "story_3_concat.txt"
    assert workspace.video_path().name == "story_3_video.mp4"


def test_release_removes_only_its_own_directory(tmp_path):
    manager = WorkspaceManager(tmp_path)
    mine = manager.allocate(1)
    other = manager.allocate(2)
    mine.clip_path(1).write_bytes(b"x")
    other.clip_path(1).write_bytes(b"y")

    assert mine.release() is True

    assert not mine.path.exists()
    assert other.clip_path(1).read_bytes() == b"y"


def test_release_failure_is_logged_not_raised(tmp_path, caplog):
    workspace = WorkspaceManager(tmp_path).allocate(1)

    with patch("storyreel.workspace.shutil.rmtree", side_effect=PermissionError("busy")):
        assert workspace.release() is False

    assert "Failed to remove workspace" in caplog.text


def test_release_is_idempotent(tmp_path):
    workspace = WorkspaceManager(tmp_path).allocate(1)
    assert workspace.release() is True
    assert workspace.release() is True


def test_sweep_stale_removes_old_run_directories(tmp_path):
    manager = WorkspaceManager(tmp_path)
    old = manager.allocate(1)
    fresh = manager.allocate(2)
    unrelated = tmp_path / "keep_me"
    unrelated.mkdir()
    past = time.time() - 48 * 3600
    os.utime(old.path, (past, past))
    os.utime(unrelated, (past, past))

    removed = manager.sweep_stale(max_age_hours=24)

    assert removed == [old.path]
    assert fresh.path.exists()
    assert unrelated.exists()


def test_sweep_on_missing_root(tmp_path):
    assert WorkspaceManager(tmp_path / "absent").sweep_stale() == []
