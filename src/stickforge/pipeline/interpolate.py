"""Temporal interpolation of keyframes into a resolved pose and state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from stickforge.models.character import DEFAULT_STATE, CharacterState
from stickforge.models.enums import StatePolicy
from stickforge.models.keyframe import sort_keyframes
from stickforge.models.pose import JOINT_NAMES, Point2D, Pose

if TYPE_CHECKING:
    from collections.abc import Sequence

    from stickforge.models.keyframe import Keyframe


class NoKeyframesError(ValueError):
    """Raised when resolving against an empty keyframe list."""


@dataclass(frozen=True)
class ResolvedFrame:
    """Fully determined pose and character state for one instant."""

    pose: Pose
    state: CharacterState


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve(
    keyframes: Sequence[Keyframe],
    time: float,
    *,
    policy: StatePolicy = StatePolicy.BLEND_NUMERIC,
) -> ResolvedFrame:
    """Resolve the pose and character state at *time* (milliseconds).

    Before the first keyframe the first sample is held, after the last one
    the last sample is held; in between every joint is linearly interpolated
    between the bounding keyframes.  Expression enums and boolean flags switch
    at keyframe boundaries (the earlier keyframe governs).  Numeric state
    fields are blended or stepped according to *policy*.

    Keyframes sharing a timestamp are resolved deterministically: the first
    one in input order wins and later duplicates are ignored.
    """
    if not keyframes:
        msg = "cannot resolve a pose without keyframes"
        raise NoKeyframesError(msg)

    ordered = _dedupe_times(sort_keyframes(list(keyframes)))

    before: Keyframe | None = None
    after: Keyframe | None = None
    for kf in ordered:
        if kf.time <= time:
            before = kf
        else:
            after = kf
            break

    if before is None:
        first = ordered[0]
        return ResolvedFrame(first.pose, first.state or DEFAULT_STATE)
    if after is None:
        return ResolvedFrame(before.pose, before.state or DEFAULT_STATE)

    span = after.time - before.time
    alpha = (time - before.time) / span if span > 0 else 0.0

    pose = lerp_pose(before.pose, after.pose, alpha)
    state = _blend_state(
        before.state or DEFAULT_STATE,
        after.state or DEFAULT_STATE,
        alpha,
        policy,
    )
    return ResolvedFrame(pose, state)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def lerp_point(a: Point2D, b: Point2D, t: float) -> Point2D:
    return Point2D(x=lerp(a.x, b.x, t), y=lerp(a.y, b.y, t))


def lerp_pose(pose_a: Pose, pose_b: Pose, t: float) -> Pose:
    """Linearly interpolate every joint independently between two poses."""
    if t == 0:
        return pose_a
    data = {
        name: lerp_point(getattr(pose_a, name), getattr(pose_b, name), t)
        for name in JOINT_NAMES
    }
    return Pose(**data)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _dedupe_times(ordered: list[Keyframe]) -> list[Keyframe]:
    result: list[Keyframe] = []
    for kf in ordered:
        if result and result[-1].time == kf.time:
            continue
        result.append(kf)
    return result


def _blend_state(
    a: CharacterState,
    b: CharacterState,
    t: float,
    policy: StatePolicy,
) -> CharacterState:
    if policy is StatePolicy.STEP or t == 0:
        return a
    return a.model_copy(
        update={
            "scale": lerp(a.scale, b.scale, t),
            "head_tilt": lerp(a.head_tilt, b.head_tilt, t),
            "head_turn": lerp(a.head_turn, b.head_turn, t),
        }
    )
