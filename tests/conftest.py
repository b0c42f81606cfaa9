"""Shared pytest fixtures"""

import pytest

from storyreel.workspace import WorkspaceManager
from tests.mocks.fixtures import (
    FakeImageClient,
    FakeNarrationProvider,
    FakeProbe,
    FakeStorage,
    make_segments,
)


# ============================================================
# Environment
# ============================================================

@pytest.fixture(autouse=True)
def no_keychain(monkeypatch):
    """Never read the developer's real keychain during tests"""
    monkeypatch.setattr("storyreel.secrets._from_keychain", lambda key_name: None)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable PipelineConfig.from_env() reads"""
    for name in [
        "OPENAI_API_KEY", "REPLICATE_API_TOKEN", "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY", "R2_DEV_ENDPOINT", "R2_BUCKET", "R2_S3_API",
        "TTS_MODEL", "TTS_VOICE", "TTS_FORMAT", "IMAGE_MODEL",
        "IMAGE_ASPECT_RATIO", "IMAGE_OUTPUT_FORMAT", "IMAGE_OUTPUT_QUALITY",
        "IMAGE_PROMPT_TEMPLATE", "IMAGE_POLL_INTERVAL", "IMAGE_MAX_POLL_RETRIES",
        "HTTP_TIMEOUT_SECONDS", "VIDEO_FRAME_RATE", "VIDEO_WIDTH", "VIDEO_HEIGHT",
        "VIDEO_ZOOM_STEP", "VIDEO_PRESCALE_WIDTH", "ENCODER_CONCURRENCY",
        "NETWORK_CONCURRENCY", "TOOL_TIMEOUT_SECONDS", "WORKSPACE_ROOT",
        "RECOVERY_DIR", "PUBLISH_SEGMENT_IMAGES", "CANCEL_ON_FAILURE",
    ]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ============================================================
# Pipeline collaborators
# ============================================================

@pytest.fixture
def workspaces(tmp_path):
    """Workspace manager rooted in the test's temp dir"""
    return WorkspaceManager(tmp_path / "runs")


@pytest.fixture
def narration_provider():
    return FakeNarrationProvider()


@pytest.fixture
def image_client():
    return FakeImageClient()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def sample_segments():
    """Three segments of story 7"""
    return make_segments(7)


# ============================================================
# Markers Configuration
# ============================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )
    config.addinivalue_line(
        "markers", "live_api: marks tests that hit real APIs (requires keys)"
    )
