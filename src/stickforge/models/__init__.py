"""StickForge data models - pure Pydantic, no I/O beyond project save/load."""

from stickforge.models.character import (
    DEFAULT_STATE,
    DEFAULT_STYLE,
    AnimationFrame,
    CharacterState,
    CharacterStyle,
    PresetSequence,
)
from stickforge.models.enums import EyeExpression, JobState, MouthExpression, StatePolicy
from stickforge.models.job import JobStatus
from stickforge.models.keyframe import Keyframe, KeyframeTrack, sort_keyframes
from stickforge.models.pose import (
    DEFAULT_POSE,
    FALLBACK_POSE,
    JOINT_NAMES,
    InvalidPoseError,
    Point2D,
    Pose,
)
from stickforge.models.project import AnimationProject, ProjectLoadError

__all__ = [
    "DEFAULT_POSE",
    "DEFAULT_STATE",
    "DEFAULT_STYLE",
    "FALLBACK_POSE",
    "JOINT_NAMES",
    "AnimationFrame",
    "AnimationProject",
    "CharacterState",
    "CharacterStyle",
    "EyeExpression",
    "InvalidPoseError",
    "JobState",
    "JobStatus",
    "Keyframe",
    "KeyframeTrack",
    "MouthExpression",
    "Point2D",
    "Pose",
    "PresetSequence",
    "ProjectLoadError",
    "StatePolicy",
    "sort_keyframes",
]
