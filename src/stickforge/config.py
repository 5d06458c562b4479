"""Application configuration with pydantic-settings + TOML."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, TomlConfigSettingsSource

from stickforge.models.enums import StatePolicy


def _default_config_dir() -> Path:
    return Path.home() / ".stickforge"


def _default_output_dir() -> Path:
    return _default_config_dir() / "renders"


class RenderSettings(BaseSettings):
    """Frame rendering parameters."""

    width: int = Field(default=512, gt=0)
    height: int = Field(default=512, gt=0)
    fps: float = Field(default=30, gt=0)
    background: str = "#FFFFFF"
    supersample: int = Field(default=1, ge=1, le=4)
    workers: int = Field(default=4, ge=1)
    state_policy: StatePolicy = StatePolicy.BLEND_NUMERIC


class EncoderSettings(BaseSettings):
    """External ffmpeg/ffprobe configuration."""

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    video_codec: str = "libx264"
    pixel_format: str = "yuv420p"
    preset: str = "fast"
    audio_codec: str = "aac"


class JobSettings(BaseSettings):
    """Render job timeout and progress bands (percent)."""

    timeout_seconds: float = Field(default=300.0, gt=0)
    frames_start: int = Field(default=10, ge=0, le=100)
    frames_end: int = Field(default=90, ge=0, le=100)

    @model_validator(mode="after")
    def _check_bands(self) -> JobSettings:
        if self.frames_start > self.frames_end:
            msg = "frames_start must not exceed frames_end"
            raise ValueError(msg)
        return self


class VideoSettings(BaseSettings):
    """Video-to-figure conversion settings."""

    fps: float = Field(default=10, gt=0)
    model_asset_path: str = "pose_landmarker_lite.task"


class AppConfig(BaseSettings):
    """Root application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STICKFORGE_",
        env_nested_delimiter="__",
    )

    config_dir: Path = Field(default_factory=_default_config_dir)
    output_dir: Path = Field(default_factory=_default_output_dir)
    render: RenderSettings = Field(default_factory=RenderSettings)
    encoder: EncoderSettings = Field(default_factory=EncoderSettings)
    jobs: JobSettings = Field(default_factory=JobSettings)
    video: VideoSettings = Field(default_factory=VideoSettings)

    @classmethod
    def settings_customise_sources(cls, settings_cls, **kwargs):  # type: ignore[override]
        toml_path = _default_config_dir() / "config.toml"
        sources = (
            kwargs.get("init_settings"),
            kwargs.get("env_settings"),
        )
        if toml_path.exists():
            sources = (*sources, TomlConfigSettingsSource(settings_cls, toml_file=toml_path))
        return (*sources, kwargs.get("dotenv_settings"), kwargs.get("file_secret_settings"))

    def ensure_dirs(self) -> None:
        """Create config and output directories if they don't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    """Load application config, creating defaults if needed."""
    config = AppConfig()
    config.ensure_dirs()
    return config
