"""Character appearance (style) and per-frame expression state."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from stickforge.models.enums import EyeExpression, MouthExpression
from stickforge.models.pose import Pose


class CharacterStyle(BaseModel):
    """Static drawing style applied uniformly across a render."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    # Body proportion multipliers
    head_size: float = Field(default=1.0, gt=0)
    joint_size: float = Field(default=0.8, ge=0)
    torso_width: float = Field(default=1.0, ge=0)
    limb_width: float = Field(default=1.0, ge=0)

    # Colours (any Pillow colour string)
    skin_color: str = "#FFD4A3"
    outline_color: str = "#000000"
    eye_color: str = "#000000"

    has_outline: bool = True
    show_joints: bool = True


class CharacterState(BaseModel):
    """Animatable expression and transform snapshot."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    scale: float = Field(default=1.0, gt=0)
    flip: bool = False

    eyes_open: bool = True
    eye_expression: EyeExpression = EyeExpression.NORMAL
    mouth_open: bool = False
    mouth_expression: MouthExpression = MouthExpression.SMILE

    # -1 (left) .. 1 (right)
    head_tilt: float = 0.0
    head_turn: float = 0.0

    @field_validator("head_tilt", "head_turn")
    @classmethod
    def _clamp_unit(cls, value: float) -> float:
        return max(-1.0, min(1.0, value))


class AnimationFrame(BaseModel):
    """One preset sample: a pose with its expression state."""

    model_config = ConfigDict(frozen=True)

    pose: Pose
    state: CharacterState = Field(default_factory=CharacterState)


class PresetSequence(BaseModel):
    """A named, ordered list of animation frames."""

    name: str
    frames: list[AnimationFrame] = Field(min_length=1)
    loop: bool = False


DEFAULT_STYLE = CharacterStyle()
DEFAULT_STATE = CharacterState()
