"""Tests for frame-grid sampling and frame generation."""

from pathlib import Path

import pytest
from PIL import Image

from stickforge.config import RenderSettings
from stickforge.models import DEFAULT_POSE, CharacterState, Keyframe, MouthExpression
from stickforge.pipeline.interpolate import resolve
from stickforge.pipeline.sequencer import (
    InsufficientKeyframesError,
    frame_count,
    frame_filename,
    frame_times,
    generate_frames,
    render_at,
    write_frames,
)


def test_frame_count():
    assert frame_count(2000, 30) == 60
    assert frame_count(1000, 10) == 10
    assert frame_count(1001, 10) == 11
    assert frame_count(50, 30) == 2


@pytest.mark.parametrize(("duration", "fps"), [(0, 30), (1000, 0), (-5, 10)])
def test_frame_count_rejects_non_positive(duration: float, fps: float):
    with pytest.raises(ValueError):
        frame_count(duration, fps)


def test_frame_times_grid():
    times = frame_times(2000, 30)
    assert len(times) == 60
    assert times[0] == 0
    assert times[59] == pytest.approx(1966.67, abs=0.01)
    assert times == sorted(times)
    assert all(t < 2000 for t in times)


def test_frame_filename():
    assert frame_filename(0) == "frame_0000.png"
    assert frame_filename(42) == "frame_0042.png"


def test_generate_sixty_frames(two_keyframes):
    settings = RenderSettings(width=16, height=16)
    frames = list(generate_frames(two_keyframes, 2000, 30, settings=settings))
    assert len(frames) == 60
    assert [f.index for f in frames] == list(range(60))
    assert frames[0].time_ms == 0
    assert frames[59].time_ms == pytest.approx(1966.67, abs=0.01)
    assert frames[0].image.size == (16, 16)


@pytest.mark.parametrize("count", [0, 1])
def test_insufficient_keyframes_raise_before_any_frame(count: int):
    keyframes = [Keyframe(time=0, pose=DEFAULT_POSE)][:count]
    # Raised by the call itself, not on first iteration.
    with pytest.raises(InsufficientKeyframesError):
        generate_frames(keyframes, 1000, 10)
    assert issubclass(InsufficientKeyframesError, ValueError)


def test_ten_frame_scenario(two_keyframes, raised_arms_pose, small_render: RenderSettings):
    frames = list(generate_frames(two_keyframes, 1000, 10, settings=small_render))
    assert len(frames) == 10
    assert frames[5].time_ms == pytest.approx(500)

    wrist = resolve(two_keyframes, frames[5].time_ms).pose.left_wrist
    expected = (DEFAULT_POSE.left_wrist.y + raised_arms_pose.left_wrist.y) / 2
    assert wrist.y == pytest.approx(expected)

    direct = render_at(two_keyframes, 500, settings=small_render)
    assert frames[5].image.tobytes() == direct.tobytes()


def test_progress_callback(two_keyframes, small_render: RenderSettings):
    calls = []
    frames = generate_frames(
        two_keyframes, 500, 10, settings=small_render,
        progress_callback=lambda done, total, status: calls.append((done, total)),
    )
    assert calls == []  # lazy until iterated
    list(frames)
    assert calls == [(i, 5) for i in range(1, 6)]


def test_mouth_states_override(small_render: RenderSettings):
    talking = CharacterState(mouth_expression=MouthExpression.NEUTRAL)
    keyframes = [
        Keyframe(time=0, pose=DEFAULT_POSE, state=talking),
        Keyframe(time=1000, pose=DEFAULT_POSE, state=talking),
    ]
    closed = list(generate_frames(keyframes, 300, 10, settings=small_render))
    forced = list(
        generate_frames(keyframes, 300, 10, settings=small_render, mouth_states=[False, True])
    )
    assert forced[0].image.tobytes() == closed[0].image.tobytes()
    assert forced[1].image.tobytes() != closed[1].image.tobytes()
    # Frame 2 has no flag and keeps the resolved state.
    assert forced[2].image.tobytes() == closed[2].image.tobytes()


def test_write_frames(tmp_path: Path, two_keyframes, small_render: RenderSettings):
    frames = generate_frames(two_keyframes, 400, 10, settings=small_render)
    paths = write_frames(frames, tmp_path / "out")
    assert [p.name for p in paths] == [f"frame_{i:04d}.png" for i in range(4)]
    with Image.open(paths[0]) as img:
        assert img.size == (64, 64)
