"""Unit tests for PipelineConfig"""

from pathlib import Path

import pytest

from storyreel.config import PipelineConfig, mask_secret
from storyreel.errors import ValidationError
from storyreel.factory import build_pipeline
from storyreel.pipeline import StoryVideoPipeline


def test_defaults_match_original_pipeline(clean_env):
    config = PipelineConfig.from_env()

    assert config.tts_model == "tts-1"
    assert config.tts_voice == "onyx"
    assert config.image_model == "black-forest-labs/flux-schnell"
    assert config.image.aspect_ratio == "1:1"
    assert config.image.output_format == "webp"
    assert config.image.output_quality == 100
    assert config.video.frame_rate == 15
    assert (config.video.width, config.video.height) == (1344, 768)
    assert config.encoder_concurrency == 2
    assert config.storage_bucket == "halloween"
    assert config.recovery_dir is None


def test_reads_environment(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-test-1234567890")
    clean_env.setenv("ENCODER_CONCURRENCY", "4")
    clean_env.setenv("IMAGE_POLL_INTERVAL", "0.5")
    clean_env.setenv("R2_S3_API", "https://pub.example.com/")
    clean_env.setenv("RECOVERY_DIR", "/tmp/recovered")
    clean_env.setenv("CANCEL_ON_FAILURE", "yes")

    config = PipelineConfig.from_env()

    assert config.openai_api_key == "sk-test-1234567890"
    assert config.encoder_concurrency == 4
    assert config.poll_interval == 0.5
    assert config.public_base_url == "https://pub.example.com"
    assert config.recovery_dir == Path("/tmp/recovered")
    assert config.cancel_on_failure is True


def test_invalid_numbers_fall_back_to_defaults(clean_env):
    clean_env.setenv("ENCODER_CONCURRENCY", "many")
    clean_env.setenv("IMAGE_MAX_POLL_RETRIES", "0")

    config = PipelineConfig.from_env()

    assert config.encoder_concurrency == 2
    assert config.max_poll_retries == 1


def test_missing_fields(clean_env):
    config = PipelineConfig.from_env()

    missing = config.missing_fields()
    assert "OPENAI_API_KEY" in missing
    assert "REPLICATE_API_TOKEN" in missing
    assert "R2_DEV_ENDPOINT" in missing
    assert "R2_BUCKET" not in missing


def test_repr_masks_secrets():
    config = PipelineConfig(openai_api_key="sk-abcdefghijklmnop", storage_secret_access_key="short")

    text = repr(config)
    assert "sk-abcdefghijklmnop" not in text
    assert "sk-a...mnop" in text
    assert "short" not in text


def test_mask_secret():
    assert mask_secret(None) == "None"
    assert mask_secret("abc") == "'***'"


def live_config(tmp_path, **overrides):
    settings = dict(
        openai_api_key="sk-test-key",
        replicate_api_token="r8-test-token",
        workspace_root=tmp_path / "work",
    )
    settings.update(overrides)
    return PipelineConfig(**settings)


def test_build_pipeline_accepts_valid_live_config(tmp_path):
    pipeline = build_pipeline(live_config(tmp_path), local_storage=tmp_path / "published")

    assert isinstance(pipeline, StoryVideoPipeline)


def test_build_pipeline_rejects_unknown_voice(tmp_path):
    with pytest.raises(ValidationError, match="Invalid voice 'bogus'"):
        build_pipeline(live_config(tmp_path, tts_voice="bogus"), local_storage=tmp_path / "published")


def test_build_pipeline_rejects_unreadable_tts_format(tmp_path):
    with pytest.raises(ValidationError, match="Unsupported TTS format 'pcm'"):
        build_pipeline(live_config(tmp_path, tts_format="pcm"), local_storage=tmp_path / "published")
