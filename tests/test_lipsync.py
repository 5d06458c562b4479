"""Tests for lip-sync mouth patterns."""

import pytest

from stickforge.models import DEFAULT_STATE, CharacterState
from stickforge.pipeline.lipsync import apply_mouth_state, simple_lip_sync


def test_simple_lip_sync_length():
    assert len(simple_lip_sync(25, 10)) == 25
    assert simple_lip_sync(0, 10) == []


def test_simple_lip_sync_rhythm():
    # 7 fps at 3.5 syllables/s: 2 frames per syllable, open then closed.
    assert simple_lip_sync(6, 7) == [True, False, True, False, True, False]


def test_simple_lip_sync_default_rate():
    states = simple_lip_sync(10, 10)
    # 10 / 3.5 frames per syllable: first half of each cycle is open.
    assert states[:4] == [True, True, False, False]
    assert states[3] is False


def test_simple_lip_sync_custom_rate():
    assert simple_lip_sync(4, 4, syllables_per_second=1) == [True, True, False, False]


@pytest.mark.parametrize(("frames", "fps", "rate"), [(-1, 10, 3.5), (5, 0, 3.5), (5, 10, 0)])
def test_simple_lip_sync_rejects_bad_args(frames: int, fps: float, rate: float):
    with pytest.raises(ValueError):
        simple_lip_sync(frames, fps, syllables_per_second=rate)


def test_apply_mouth_state():
    opened = apply_mouth_state(DEFAULT_STATE, True)
    assert opened.mouth_open is True
    assert DEFAULT_STATE.mouth_open is False
    assert opened.eye_expression is DEFAULT_STATE.eye_expression


def test_apply_mouth_state_unchanged_returns_same():
    state = CharacterState(mouth_open=True)
    assert apply_mouth_state(state, True) is state
