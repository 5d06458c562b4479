"""Keyframes and the time-sorted keyframe track owned by an authoring session."""

from __future__ import annotations

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from stickforge.models.character import CharacterState
from stickforge.models.pose import Pose


def _new_keyframe_id() -> str:
    return f"keyframe-{uuid4().hex[:12]}"


class Keyframe(BaseModel):
    """A timestamped, fully specified pose (and optional state) sample."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_keyframe_id)
    time: float = Field(ge=0)  # milliseconds
    pose: Pose
    state: CharacterState | None = None


def sort_keyframes(keyframes: list[Keyframe]) -> list[Keyframe]:
    """Return keyframes ordered by time.

    The sort is stable, so keyframes sharing a timestamp keep their input order.
    """
    return sorted(keyframes, key=lambda kf: kf.time)


class KeyframeTrack:
    """Mutable, always-sorted list of keyframes.

    Every insert or time change re-sorts the track, so iteration order is
    non-decreasing in ``time``.  Keyframes themselves are immutable; edits
    replace the stored instance.
    """

    def __init__(self, keyframes: list[Keyframe] | None = None) -> None:
        self._keyframes: list[Keyframe] = sort_keyframes(list(keyframes or []))

    def __len__(self) -> int:
        return len(self._keyframes)

    def __iter__(self):
        return iter(list(self._keyframes))

    def snapshot(self) -> list[Keyframe]:
        """Return a copy of the current keyframe list (safe to hand to a render job)."""
        return list(self._keyframes)

    def get(self, keyframe_id: str) -> Keyframe:
        return self._keyframes[self._index(keyframe_id)]

    def add(
        self,
        pose: Pose,
        time: float,
        state: CharacterState | None = None,
        *,
        keyframe_id: str | None = None,
    ) -> Keyframe:
        """Insert a new keyframe and return it."""
        kwargs: dict[str, object] = {"time": time, "pose": pose, "state": state}
        if keyframe_id is not None:
            if any(kf.id == keyframe_id for kf in self._keyframes):
                msg = f"duplicate keyframe id: {keyframe_id}"
                raise ValueError(msg)
            kwargs["id"] = keyframe_id
        keyframe = Keyframe(**kwargs)
        self._keyframes.append(keyframe)
        self._keyframes = sort_keyframes(self._keyframes)
        return keyframe

    def move(self, keyframe_id: str, time: float) -> Keyframe:
        """Change a keyframe's time and restore sort order."""
        if time < 0:
            msg = "keyframe time must be non-negative"
            raise ValueError(msg)
        moved = self._replace(keyframe_id, time=time)
        self._keyframes = sort_keyframes(self._keyframes)
        return moved

    def update_pose(self, keyframe_id: str, pose: Pose) -> Keyframe:
        return self._replace(keyframe_id, pose=Pose.from_mapping(pose))

    def update_state(self, keyframe_id: str, state: CharacterState | None) -> Keyframe:
        return self._replace(keyframe_id, state=state)

    def remove(self, keyframe_id: str) -> Keyframe:
        return self._keyframes.pop(self._index(keyframe_id))

    def _index(self, keyframe_id: str) -> int:
        for idx, kf in enumerate(self._keyframes):
            if kf.id == keyframe_id:
                return idx
        raise KeyError(keyframe_id)

    def _replace(self, keyframe_id: str, **update: object) -> Keyframe:
        idx = self._index(keyframe_id)
        new = self._keyframes[idx].model_copy(update=update)
        self._keyframes[idx] = new
        return new
