"""Tests for configuration system."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from stickforge.config import (
    AppConfig,
    EncoderSettings,
    JobSettings,
    RenderSettings,
    VideoSettings,
    load_config,
)
from stickforge.models import StatePolicy


def test_render_settings_defaults():
    s = RenderSettings()
    assert (s.width, s.height) == (512, 512)
    assert s.fps == 30
    assert s.background == "#FFFFFF"
    assert s.supersample == 1
    assert s.state_policy is StatePolicy.BLEND_NUMERIC


def test_encoder_settings_defaults():
    s = EncoderSettings()
    assert s.ffmpeg_path == "ffmpeg"
    assert s.ffprobe_path == "ffprobe"
    assert s.video_codec == "libx264"
    assert s.pixel_format == "yuv420p"
    assert s.preset == "fast"


def test_job_settings_defaults():
    s = JobSettings()
    assert s.timeout_seconds == 300
    assert (s.frames_start, s.frames_end) == (10, 90)


def test_video_settings_defaults():
    assert VideoSettings().fps == 10


def test_app_config_defaults():
    config = AppConfig()
    assert config.config_dir.name == ".stickforge"
    assert config.output_dir.parent.name == ".stickforge"


@pytest.mark.parametrize("bad", [0, 5])
def test_supersample_bounds(bad: int):
    with pytest.raises(ValidationError):
        RenderSettings(supersample=bad)


@pytest.mark.parametrize("field", ["width", "height", "fps", "workers"])
def test_render_settings_reject_non_positive(field: str):
    with pytest.raises(ValidationError):
        RenderSettings(**{field: 0})


def test_job_bands_must_be_ordered():
    with pytest.raises(ValidationError):
        JobSettings(frames_start=80, frames_end=20)


def test_env_override(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STICKFORGE_RENDER__WIDTH", "320")
    monkeypatch.setenv("STICKFORGE_JOBS__TIMEOUT_SECONDS", "12")
    config = AppConfig()
    assert config.render.width == 320
    assert config.jobs.timeout_seconds == 12


def test_toml_config(isolated_home: Path):
    config_dir = isolated_home / ".stickforge"
    config_dir.mkdir()
    (config_dir / "config.toml").write_text(
        '[render]\nbackground = "#000000"\nstate_policy = "step"\n'
    )
    config = AppConfig()
    assert config.render.background == "#000000"
    assert config.render.state_policy is StatePolicy.STEP


def test_load_config_creates_dirs(isolated_home: Path):
    config = load_config()
    assert config.config_dir.is_dir()
    assert config.output_dir.is_dir()
    assert config.config_dir == isolated_home / ".stickforge"
