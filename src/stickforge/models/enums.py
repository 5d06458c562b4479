"""Enumerations used throughout StickForge."""

from enum import StrEnum


class EyeExpression(StrEnum):
    NORMAL = "normal"
    HAPPY = "happy"
    ANGRY = "angry"
    SAD = "sad"
    SHOCKED = "shocked"
    BORED = "bored"


class MouthExpression(StrEnum):
    SMILE = "smile"
    FROWN = "frown"
    NEUTRAL = "neutral"
    SURPRISED = "surprised"
    ANGRY = "angry"


class StatePolicy(StrEnum):
    """How numeric character-state fields behave between keyframes."""

    BLEND_NUMERIC = "blend_numeric"
    STEP = "step"


class JobState(StrEnum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
