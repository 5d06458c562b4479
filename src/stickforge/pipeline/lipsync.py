"""Mouth-open signals for lip sync and their merge into character state."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stickforge.models.character import CharacterState


def simple_lip_sync(
    total_frames: int,
    fps: float,
    *,
    syllables_per_second: float = 3.5,
) -> list[bool]:
    """Rhythmic talking pattern: the mouth is open for the first half of each syllable."""
    if total_frames < 0:
        msg = "total_frames must be non-negative"
        raise ValueError(msg)
    if fps <= 0 or syllables_per_second <= 0:
        msg = "fps and syllables_per_second must be positive"
        raise ValueError(msg)

    frames_per_syllable = fps / syllables_per_second
    return [
        (i % frames_per_syllable) / frames_per_syllable < 0.5
        for i in range(total_frames)
    ]


def apply_mouth_state(state: CharacterState, mouth_open: bool) -> CharacterState:
    """Overwrite the state's mouth flag with a lip-sync value."""
    if state.mouth_open == mouth_open:
        return state
    return state.model_copy(update={"mouth_open": mouth_open})
