"""Skeleton schema: the fixed 13-joint humanoid pose."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

# Joint order is part of the schema; renderers and serializers iterate in it.
JOINT_NAMES: tuple[str, ...] = (
    "nose",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)


class InvalidPoseError(ValueError):
    """Raised when a pose is missing joints or has malformed coordinates."""


class Point2D(BaseModel):
    """A joint position normalised to the canvas (0-1 on both axes).

    Values outside 0-1 are allowed; they are simply drawn off-canvas.
    """

    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class Pose(BaseModel):
    """A complete snapshot of all 13 joints.

    Poses are immutable; use :meth:`with_joint` to derive a modified copy.
    JSON uses camelCase joint names (``leftShoulder``); snake_case is
    accepted on input as well.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    nose: Point2D
    left_shoulder: Point2D
    right_shoulder: Point2D
    left_elbow: Point2D
    right_elbow: Point2D
    left_wrist: Point2D
    right_wrist: Point2D
    left_hip: Point2D
    right_hip: Point2D
    left_knee: Point2D
    right_knee: Point2D
    left_ankle: Point2D
    right_ankle: Point2D

    @classmethod
    def from_mapping(cls, data: Pose | Mapping[str, object]) -> Pose:
        """Build a Pose from a mapping, raising :class:`InvalidPoseError` on bad input."""
        if isinstance(data, Pose):
            return data
        if not isinstance(data, Mapping):
            msg = f"pose must be a mapping of joints, got {type(data).__name__}"
            raise InvalidPoseError(msg)
        missing = [
            name for name in JOINT_NAMES if name not in data and to_camel(name) not in data
        ]
        if missing:
            msg = f"pose is missing joints: {', '.join(missing)}"
            raise InvalidPoseError(msg)
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            msg = f"pose has malformed joints: {exc}"
            raise InvalidPoseError(msg) from None

    def joints(self) -> dict[str, Point2D]:
        """Return joints as an ordered ``name -> Point2D`` mapping."""
        return {name: getattr(self, name) for name in JOINT_NAMES}

    def with_joint(self, name: str, point: Point2D | Mapping[str, object]) -> Pose:
        """Return a copy of this pose with one joint moved."""
        if name not in JOINT_NAMES:
            msg = f"unknown joint: {name}"
            raise InvalidPoseError(msg)
        try:
            point = Point2D.model_validate(point)
        except PydanticValidationError as exc:
            msg = f"joint {name} is malformed: {exc}"
            raise InvalidPoseError(msg) from None
        return self.model_copy(update={name: point})


def _pose(coords: dict[str, tuple[float, float]]) -> Pose:
    return Pose(**{name: Point2D(x=x, y=y) for name, (x, y) in coords.items()})


# Symmetric T-pose: arms horizontal at shoulder height, legs straight.
DEFAULT_POSE = _pose({
    "nose": (0.5, 0.2),
    "left_shoulder": (0.4, 0.35),
    "right_shoulder": (0.6, 0.35),
    "left_elbow": (0.3, 0.35),
    "right_elbow": (0.7, 0.35),
    "left_wrist": (0.2, 0.35),
    "right_wrist": (0.8, 0.35),
    "left_hip": (0.45, 0.55),
    "right_hip": (0.55, 0.55),
    "left_knee": (0.45, 0.7),
    "right_knee": (0.55, 0.7),
    "left_ankle": (0.45, 0.85),
    "right_ankle": (0.55, 0.85),
})

# Relaxed standing pose substituted when pose extraction finds nobody.
FALLBACK_POSE = _pose({
    "nose": (0.5, 0.3),
    "left_shoulder": (0.4, 0.45),
    "right_shoulder": (0.6, 0.45),
    "left_elbow": (0.35, 0.6),
    "right_elbow": (0.65, 0.6),
    "left_wrist": (0.3, 0.75),
    "right_wrist": (0.7, 0.75),
    "left_hip": (0.45, 0.65),
    "right_hip": (0.55, 0.65),
    "left_knee": (0.45, 0.8),
    "right_knee": (0.55, 0.8),
    "left_ankle": (0.45, 0.95),
    "right_ankle": (0.55, 0.95),
})
