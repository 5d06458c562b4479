"""Shared fixtures for StickForge tests."""

from pathlib import Path

import pytest

from stickforge.config import AppConfig, JobSettings, RenderSettings
from stickforge.models import (
    DEFAULT_POSE,
    CharacterState,
    Keyframe,
    MouthExpression,
    Point2D,
    Pose,
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep config and render output out of the real home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in ("STICKFORGE_OUTPUT_DIR", "STICKFORGE_CONFIG_DIR"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def raised_arms_pose() -> Pose:
    """DEFAULT_POSE with both wrists lifted above the shoulders."""
    return (
        DEFAULT_POSE
        .with_joint("left_wrist", Point2D(x=0.2, y=0.15))
        .with_joint("right_wrist", Point2D(x=0.8, y=0.15))
    )


@pytest.fixture
def two_keyframes(raised_arms_pose: Pose) -> list[Keyframe]:
    return [
        Keyframe(id="start", time=0, pose=DEFAULT_POSE),
        Keyframe(
            id="end",
            time=1000,
            pose=raised_arms_pose,
            state=CharacterState(mouth_open=True, mouth_expression=MouthExpression.SURPRISED),
        ),
    ]


@pytest.fixture
def small_render() -> RenderSettings:
    return RenderSettings(width=64, height=64, workers=2)


@pytest.fixture
def app_config(tmp_path: Path, small_render: RenderSettings) -> AppConfig:
    return AppConfig(
        config_dir=tmp_path / "config",
        output_dir=tmp_path / "renders",
        render=small_render,
        jobs=JobSettings(timeout_seconds=30),
    )
