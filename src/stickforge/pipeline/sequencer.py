"""Frame-grid sampling and rendering of keyframed animations."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from stickforge.config import RenderSettings
from stickforge.pipeline.interpolate import resolve
from stickforge.pipeline.lipsync import apply_mouth_state
from stickforge.render import render_frame

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence
    from pathlib import Path

    from PIL import Image

    from stickforge.models.character import CharacterStyle
    from stickforge.models.enums import StatePolicy
    from stickforge.models.keyframe import Keyframe

ProgressCallback: TypeAlias = Callable[[int, int, str], None]  # (done, total, status)

logger = logging.getLogger(__name__)


class InsufficientKeyframesError(ValueError):
    """Raised when an animation has fewer than two keyframes."""


@dataclass(frozen=True)
class RenderedFrame:
    """One rendered animation frame."""

    index: int
    time_ms: float
    image: Image.Image


def frame_count(duration_ms: float, fps: float) -> int:
    """Number of frames needed to cover *duration_ms* at *fps*."""
    if duration_ms <= 0 or fps <= 0:
        msg = f"duration and fps must be positive (got {duration_ms} ms at {fps} fps)"
        raise ValueError(msg)
    return math.ceil(duration_ms / 1000 * fps)


def frame_times(duration_ms: float, fps: float) -> list[float]:
    """Sample times (ms) of every frame: ``i / n * duration`` for ``i in 0..n-1``.

    The end of the animation is never sampled, so a looping animation does
    not show its first pose twice.
    """
    total = frame_count(duration_ms, fps)
    return [i / total * duration_ms for i in range(total)]


def frame_filename(index: int) -> str:
    return f"frame_{index:04d}.png"


def validate_keyframes(keyframes: Sequence[Keyframe]) -> None:
    if len(keyframes) < 2:
        msg = f"At least 2 keyframes are required, got {len(keyframes)}"
        raise InsufficientKeyframesError(msg)


def render_at(
    keyframes: Sequence[Keyframe],
    time_ms: float,
    *,
    style: CharacterStyle | None = None,
    settings: RenderSettings | None = None,
    policy: StatePolicy | None = None,
    mouth_open: bool | None = None,
) -> Image.Image:
    """Resolve the animation at *time_ms* and render it to a fresh image."""
    settings = settings or RenderSettings()
    resolved = resolve(keyframes, time_ms, policy=policy or settings.state_policy)
    state = resolved.state
    if mouth_open is not None:
        state = apply_mouth_state(state, mouth_open)
    return render_frame(
        resolved.pose,
        style,
        state,
        width=settings.width,
        height=settings.height,
        background=settings.background,
        supersample=settings.supersample,
    )


def generate_frames(
    keyframes: Sequence[Keyframe],
    duration_ms: float,
    fps: float,
    *,
    style: CharacterStyle | None = None,
    settings: RenderSettings | None = None,
    mouth_states: Sequence[bool] | None = None,
    policy: StatePolicy | None = None,
    progress_callback: ProgressCallback | None = None,
) -> Iterator[RenderedFrame]:
    """Render every frame of the animation, in order.

    Arguments are validated immediately; the returned iterator renders lazily.
    ``mouth_states`` holds one lip-sync flag per frame and overrides the
    interpolated ``mouth_open``; frames past its end keep the resolved value.
    """
    validate_keyframes(keyframes)
    times = frame_times(duration_ms, fps)
    settings = settings or RenderSettings()
    keyframes = list(keyframes)

    def _frames() -> Iterator[RenderedFrame]:
        total = len(times)
        for idx, time_ms in enumerate(times):
            image = render_at(
                keyframes,
                time_ms,
                style=style,
                settings=settings,
                policy=policy,
                mouth_open=_mouth_at(mouth_states, idx),
            )
            logger.debug("Rendered frame %d/%d at %.2f ms", idx + 1, total, time_ms)
            if progress_callback:
                progress_callback(idx + 1, total, f"Rendered frame {idx + 1}/{total}")
            yield RenderedFrame(index=idx, time_ms=time_ms, image=image)

    return _frames()


def write_frames(frames: Iterable[RenderedFrame], directory: Path) -> list[Path]:
    """Save frames as ``frame_NNNN.png`` in *directory*; returns paths by index."""
    directory.mkdir(parents=True, exist_ok=True)
    paths: dict[int, Path] = {}
    for frame in frames:
        path = directory / frame_filename(frame.index)
        frame.image.save(path, "PNG")
        paths[frame.index] = path
    return [paths[idx] for idx in sorted(paths)]


def _mouth_at(mouth_states: Sequence[bool] | None, idx: int) -> bool | None:
    if mouth_states is None or idx >= len(mouth_states):
        return None
    return mouth_states[idx]
