"""Pipeline configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .models.generation import ImageOptions
from .models.render import EncoderSettings
from .secrets import get_api_key


def _read_int(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(value, minimum)


def _read_float(name: str, default: float, minimum: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(value, minimum)


def _read_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def mask_secret(value: Optional[str]) -> str:
    """Mask a secret value for safe display in logs/repr."""
    if value is None:
        return "None"
    if len(value) <= 8:
        return "'***'"
    return f"'{value[:4]}...{value[-4:]}'"


@dataclass(frozen=True)
class PipelineConfig:
    """Runtime settings for one pipeline deployment."""

    openai_api_key: Optional[str] = None
    tts_model: str = "tts-1"
    tts_voice: str = "onyx"
    tts_format: str = "mp3"

    replicate_api_token: Optional[str] = None
    image_model: str = "black-forest-labs/flux-schnell"
    image: ImageOptions = field(default_factory=ImageOptions)
    poll_interval: float = 1.0
    max_poll_retries: int = 60
    http_timeout: float = 60.0

    video: EncoderSettings = field(default_factory=EncoderSettings)
    encoder_concurrency: int = 2
    network_concurrency: int = 8
    tool_timeout: float = 300.0

    workspace_root: Path = field(default_factory=lambda: Path("temp"))
    recovery_dir: Optional[Path] = None

    storage_endpoint: str = ""
    storage_bucket: str = "halloween"
    storage_access_key_id: Optional[str] = None
    storage_secret_access_key: Optional[str] = None
    public_base_url: str = ""

    publish_segment_images: bool = False
    cancel_on_failure: bool = False

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        recovery = os.getenv("RECOVERY_DIR", "").strip()
        return cls(
            openai_api_key=get_api_key("OPENAI_API_KEY"),
            tts_model=os.getenv("TTS_MODEL", "tts-1").strip() or "tts-1",
            tts_voice=os.getenv("TTS_VOICE", "onyx").strip() or "onyx",
            tts_format=os.getenv("TTS_FORMAT", "mp3").strip() or "mp3",
            replicate_api_token=get_api_key("REPLICATE_API_TOKEN"),
            image_model=os.getenv("IMAGE_MODEL", "black-forest-labs/flux-schnell").strip(),
            image=ImageOptions(
                aspect_ratio=os.getenv("IMAGE_ASPECT_RATIO", "1:1").strip() or "1:1",
                output_format=os.getenv("IMAGE_OUTPUT_FORMAT", "webp").strip() or "webp",
                output_quality=min(_read_int("IMAGE_OUTPUT_QUALITY", default=100, minimum=0), 100),
                prompt_template=os.getenv("IMAGE_PROMPT_TEMPLATE", "{text}") or "{text}",
            ),
            poll_interval=_read_float("IMAGE_POLL_INTERVAL", default=1.0, minimum=0.0),
            max_poll_retries=_read_int("IMAGE_MAX_POLL_RETRIES", default=60, minimum=1),
            http_timeout=_read_float("HTTP_TIMEOUT_SECONDS", default=60.0, minimum=1.0),
            video=EncoderSettings(
                frame_rate=_read_int("VIDEO_FRAME_RATE", default=15, minimum=1),
                width=_read_int("VIDEO_WIDTH", default=1344, minimum=16),
                height=_read_int("VIDEO_HEIGHT", default=768, minimum=16),
                prescale_width=_read_int("VIDEO_PRESCALE_WIDTH", default=8000, minimum=16),
                zoom_step=_read_float("VIDEO_ZOOM_STEP", default=0.0005, minimum=0.0),
            ),
            encoder_concurrency=_read_int("ENCODER_CONCURRENCY", default=2, minimum=1),
            network_concurrency=_read_int("NETWORK_CONCURRENCY", default=8, minimum=1),
            tool_timeout=_read_float("TOOL_TIMEOUT_SECONDS", default=300.0, minimum=1.0),
            workspace_root=Path(os.getenv("WORKSPACE_ROOT", "temp").strip() or "temp"),
            recovery_dir=Path(recovery) if recovery else None,
            storage_endpoint=os.getenv("R2_DEV_ENDPOINT", "").strip(),
            storage_bucket=os.getenv("R2_BUCKET", "halloween").strip() or "halloween",
            storage_access_key_id=get_api_key("AWS_ACCESS_KEY_ID"),
            storage_secret_access_key=get_api_key("AWS_SECRET_ACCESS_KEY"),
            public_base_url=os.getenv("R2_S3_API", "").strip().rstrip("/"),
            publish_segment_images=_read_bool("PUBLISH_SEGMENT_IMAGES", default=False),
            cancel_on_failure=_read_bool("CANCEL_ON_FAILURE", default=False),
        )

    def missing_service_fields(self) -> List[str]:
        """Settings required to call the narration and image services."""
        missing: List[str] = []
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self.replicate_api_token:
            missing.append("REPLICATE_API_TOKEN")
        return missing

    def missing_storage_fields(self) -> List[str]:
        """Settings required to publish to the object store."""
        missing: List[str] = []
        if not self.storage_endpoint:
            missing.append("R2_DEV_ENDPOINT")
        if not self.storage_bucket:
            missing.append("R2_BUCKET")
        if not self.storage_access_key_id:
            missing.append("AWS_ACCESS_KEY_ID")
        if not self.storage_secret_access_key:
            missing.append("AWS_SECRET_ACCESS_KEY")
        if not self.public_base_url:
            missing.append("R2_S3_API")
        return missing

    def missing_fields(self) -> List[str]:
        return self.missing_service_fields() + self.missing_storage_fields()

    def __repr__(self) -> str:
        """Safe repr that masks secrets to prevent accidental exposure in logs."""
        return (
            f"PipelineConfig(openai_api_key={mask_secret(self.openai_api_key)}, "
            f"replicate_api_token={mask_secret(self.replicate_api_token)}, "
            f"storage_access_key_id={mask_secret(self.storage_access_key_id)}, "
            f"storage_secret_access_key={mask_secret(self.storage_secret_access_key)}, "
            f"tts_model={self.tts_model!r}, image_model={self.image_model!r}, "
            f"encoder_concurrency={self.encoder_concurrency}, "
            f"workspace_root={str(self.workspace_root)!r})"
        )
