"""Configuration loader for the reelscribe pipeline (Pydantic edition)."""

from __future__ import annotations

import logging
import re
import tempfile
from pathlib import Path
from typing import Iterable, Literal

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_INSTAGRAM_APP_ID = "936619743392459"
_BITRATE_RE = re.compile(r"^\d+[kK]?$")


class AppConfig(BaseSettings):
    """Strongly typed runtime configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        validate_default=True,
        populate_by_name=True,
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENVIRONMENT", "APP_ENV"),
    )
    log_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("APP_LOG_PATH", "LOG_PATH"),
    )

    # Credentials
    openai_api_key: SecretStr | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(default=None, validation_alias="OPENAI_BASE_URL")

    # Transcription
    transcription_model: str = Field("whisper-1", validation_alias="APP_TRANSCRIPTION_MODEL")
    transcription_response_format: Literal["json", "verbose_json"] = Field(
        "verbose_json", validation_alias="APP_TRANSCRIPTION_RESPONSE_FORMAT"
    )
    transcription_language: str | None = Field(default=None, validation_alias="APP_TRANSCRIPTION_LANGUAGE")
    transcription_max_attempts: int = Field(3, ge=1, le=10, validation_alias="APP_TRANSCRIPTION_MAX_ATTEMPTS")
    transcription_backoff_seconds: float = Field(1.0, ge=0, validation_alias="APP_TRANSCRIPTION_BACKOFF")
    transcription_timeout_seconds: float = Field(120.0, gt=0, validation_alias="APP_TRANSCRIPTION_TIMEOUT")

    # Scraping
    user_agent: str = Field(DEFAULT_USER_AGENT, validation_alias=AliasChoices("APP_USER_AGENT", "USER_AGENT"))
    instagram_app_id: str = Field(
        DEFAULT_INSTAGRAM_APP_ID,
        validation_alias=AliasChoices("APP_INSTAGRAM_APP_ID", "X_IG_APP_ID"),
    )
    http_connect_timeout: float = Field(10.0, gt=0, validation_alias="APP_HTTP_CONNECT_TIMEOUT")
    http_read_timeout: float = Field(20.0, gt=0, validation_alias="APP_HTTP_READ_TIMEOUT")

    # Audio extraction
    ffmpeg_binary: str = Field("ffmpeg", validation_alias=AliasChoices("APP_FFMPEG_BINARY", "FFMPEG_PATH"))
    transcode_timeout_seconds: float = Field(30.0, gt=0, validation_alias="APP_TRANSCODE_TIMEOUT")
    audio_bitrate: str = Field("192k", validation_alias="APP_AUDIO_BITRATE")
    audio_sample_rate: int | None = Field(16_000, ge=8_000, validation_alias="APP_AUDIO_SAMPLE_RATE")
    audio_channels: int | None = Field(1, ge=1, le=2, validation_alias="APP_AUDIO_CHANNELS")
    temp_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()), validation_alias="APP_TEMP_DIR")

    @field_validator("log_path", "temp_dir", mode="after")
    @classmethod
    def _expand_path(cls, value: Path | None) -> Path | None:
        if value is None:
            return None
        expanded = value.expanduser()
        return expanded if expanded.is_absolute() else (Path.cwd() / expanded).resolve()

    @field_validator("audio_bitrate", mode="after")
    @classmethod
    def _check_bitrate(cls, value: str) -> str:
        if not _BITRATE_RE.match(value):
            raise ValueError(f"audio_bitrate must look like '192k', got {value!r}")
        return value.lower()

    def ensure_runtime_directories(self) -> None:
        """Create directories required for runtime operation."""
        paths = [self.temp_dir]
        if self.log_path is not None:
            paths.append(self.log_path.parent)
        _ensure_directories(paths)

    @property
    def openai_key(self) -> str | None:
        """Return the plaintext OpenAI key stripped of whitespace, or None."""
        if self.openai_api_key is None:
            return None
        stripped = self.openai_api_key.get_secret_value().strip()
        return stripped or None

    @property
    def has_transcription_credentials(self) -> bool:
        return self.openai_key is not None


def _ensure_directories(paths: Iterable[Path]) -> None:
    for directory in paths:
        directory.mkdir(parents=True, exist_ok=True)


def load_config(env_path: Path | None = None) -> AppConfig:
    """Load configuration from .env/environment with validation."""
    load_kwargs: dict[str, str] = {}
    if env_path is not None:
        load_dotenv(env_path, override=False)
        load_kwargs["_env_file"] = str(env_path)
    else:
        load_dotenv(override=False)
    try:
        config = AppConfig(**load_kwargs)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    config.ensure_runtime_directories()

    LOGGER.info(
        "AppConfig loaded",
        extra={
            "event": "config.loaded",
            "environment": config.environment,
            "extra_fields": {
                "transcription_model": config.transcription_model,
                "transcription_configured": config.has_transcription_credentials,
                "temp_dir": str(config.temp_dir),
            },
        },
    )
    return config
