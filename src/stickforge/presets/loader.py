"""Load bundled animation presets and turn them into keyframes."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from stickforge.models.character import AnimationFrame, PresetSequence
from stickforge.models.keyframe import Keyframe

logger = logging.getLogger(__name__)

# Directory containing the bundled preset JSON files.
_PRESETS_DIR = Path(__file__).resolve().parent


def available_presets() -> list[str]:
    """Return a sorted list of available preset names (without extension)."""
    return sorted(p.stem for p in _PRESETS_DIR.glob("*.json"))


@lru_cache(maxsize=32)
def load(name: str) -> PresetSequence:
    """Load and validate a preset sequence by name.

    Parameters
    ----------
    name:
        Either a bare name like ``"jump"`` or with extension ``"jump.json"``.

    Returns
    -------
    PresetSequence
        The validated preset.

    Raises
    ------
    FileNotFoundError
        If no matching JSON file exists in the presets directory.
    """
    if not name.endswith(".json"):
        name = f"{name}.json"

    path = _PRESETS_DIR / name

    if not path.exists():
        msg = f"Preset not found: {path}"
        raise FileNotFoundError(msg)

    data = json.loads(path.read_text(encoding="utf-8"))
    seq = PresetSequence.model_validate(data)
    logger.debug("Loaded preset '%s' (%d frames)", seq.name, len(seq.frames))
    return seq


def load_preset(name: str) -> list[AnimationFrame]:
    """Return the ordered frames of a named preset."""
    return list(load(name).frames)


def keyframes_from_preset(
    name: str,
    duration_ms: float,
    *,
    start_ms: float = 0.0,
) -> list[Keyframe]:
    """Seed keyframes from a preset, spread evenly over *duration_ms*.

    Frame ``i`` of ``n`` lands at ``start_ms + i / (n - 1) * duration_ms`` so the
    first and last frames sit on the span's edges; a single-frame preset is
    placed at ``start_ms``.
    """
    if duration_ms < 0 or start_ms < 0:
        msg = "duration_ms and start_ms must be non-negative"
        raise ValueError(msg)

    frames = load_preset(name)
    last = max(len(frames) - 1, 1)
    return [
        Keyframe(
            time=start_ms + idx / last * duration_ms,
            pose=frame.pose,
            state=frame.state,
        )
        for idx, frame in enumerate(frames)
    ]
