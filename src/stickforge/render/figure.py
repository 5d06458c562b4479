"""Procedural rendering of the stylised articulated figure."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from stickforge.models.character import (
    DEFAULT_STATE,
    DEFAULT_STYLE,
    CharacterState,
    CharacterStyle,
)
from stickforge.models.enums import EyeExpression, MouthExpression
from stickforge.models.pose import Pose
from stickforge.render.surface import PillowSurface

if TYPE_CHECKING:
    from PIL import Image

    from stickforge.render.surface import DrawingSurface, PointXY

OUTLINE_WIDTH = 2.0
FEATURE_WIDTH = 2.0
MAX_HEAD_TILT = 0.3  # radians at head_tilt == 1 (~17 degrees)


@dataclass(frozen=True)
class FigureGeometry:
    """Pixel-space joints and derived body sizes for one pose."""

    joints: dict[str, PointXY]
    neck: PointXY
    hip_center: PointXY
    head_radius: float
    joint_radius: float
    limb_width: float
    torso_width: float


@dataclass(frozen=True)
class _Face:
    cx: float
    cy: float
    radius: float
    state: CharacterState
    style: CharacterStyle


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def figure_geometry(
    pose: Pose,
    style: CharacterStyle,
    width: int,
    height: int,
) -> FigureGeometry:
    """Scale a normalised pose to pixels and derive body part sizes from it."""
    joints = {name: (p.x * width, p.y * height) for name, p in pose.joints().items()}
    neck = _midpoint(joints["left_shoulder"], joints["right_shoulder"])
    hip_center = _midpoint(joints["left_hip"], joints["right_hip"])

    head_radius = abs(joints["nose"][1] - neck[1]) * 1.5 * style.head_size
    return FigureGeometry(
        joints=joints,
        neck=neck,
        hip_center=hip_center,
        head_radius=head_radius,
        joint_radius=head_radius * 0.3 * style.joint_size,
        limb_width=head_radius * 0.4 * style.limb_width,
        torso_width=(
            abs(joints["left_shoulder"][0] - joints["right_shoulder"][0])
            * 0.7
            * style.torso_width
        ),
    )


def render(
    surface: DrawingSurface,
    pose: Pose | Mapping[str, object],
    style: CharacterStyle | None,
    state: CharacterState | None,
    width: int,
    height: int,
) -> None:
    """Draw the figure for one (pose, style, state) triple onto *surface*.

    Every call computes all geometry from scratch, so identical inputs always
    produce identical drawing commands.  A pose with missing joints raises
    :class:`~stickforge.models.pose.InvalidPoseError`.
    """
    pose = Pose.from_mapping(pose)
    style = DEFAULT_STYLE if style is None else style
    state = DEFAULT_STATE if state is None else state
    geo = figure_geometry(pose, style, width, height)
    j = geo.joints

    with _saved(surface):
        # Scale (and mirror) the whole figure about the canvas centre.
        surface.translate(width / 2, height / 2)
        surface.scale(-state.scale if state.flip else state.scale, state.scale)
        surface.translate(-width / 2, -height / 2)

        _draw_torso(surface, geo, style)

        for a, b, c in (
            ("left_shoulder", "left_elbow", "left_wrist"),
            ("right_shoulder", "right_elbow", "right_wrist"),
            ("left_hip", "left_knee", "left_ankle"),
            ("right_hip", "right_knee", "right_ankle"),
        ):
            _draw_limb(surface, j[a], j[b], j[c], geo.limb_width, style)

        if style.show_joints:
            for name in ("left_shoulder", "right_shoulder", "left_elbow", "right_elbow"):
                _draw_joint(surface, j[name], geo.joint_radius, style)
            for name in ("left_wrist", "right_wrist"):
                _draw_joint(surface, j[name], geo.joint_radius * 0.8, style)
            for name in ("left_hip", "right_hip", "left_knee", "right_knee"):
                _draw_joint(surface, j[name], geo.joint_radius, style)
            for name in ("left_ankle", "right_ankle"):
                _draw_joint(surface, j[name], geo.joint_radius * 0.8, style)

        _draw_neck(surface, geo.neck, geo.head_radius * 0.6, style)
        _draw_head(surface, j["nose"], geo.head_radius, state, style)


def render_frame(
    pose: Pose | Mapping[str, object],
    style: CharacterStyle | None = None,
    state: CharacterState | None = None,
    *,
    width: int = 512,
    height: int = 512,
    background: str = "#FFFFFF",
    supersample: int = 1,
) -> Image.Image:
    """Render a pose onto a fresh offscreen surface and return the RGB image."""
    surface = PillowSurface(width, height, background=background, supersample=supersample)
    render(surface, pose, style, state, width, height)
    return surface.to_image()


# ---------------------------------------------------------------------------
# Body parts
# ---------------------------------------------------------------------------


def _draw_torso(surface: DrawingSurface, geo: FigureGeometry, style: CharacterStyle) -> None:
    cx, cy = _midpoint(geo.neck, geo.hip_center)
    ry = abs(geo.hip_center[1] - geo.neck[1]) / 2
    surface.fill_ellipse(cx, cy, geo.torso_width, ry, style.skin_color)
    if style.has_outline:
        surface.stroke_ellipse(cx, cy, geo.torso_width, ry, style.outline_color, OUTLINE_WIDTH)


def _draw_limb(
    surface: DrawingSurface,
    start: PointXY,
    mid: PointXY,
    end: PointXY,
    width: float,
    style: CharacterStyle,
) -> None:
    surface.stroke_polyline([start, mid], style.skin_color, width)
    surface.stroke_polyline([mid, end], style.skin_color, width)

    if style.has_outline:
        # Outline goes under the fill so only a rim shows around the limb.
        with surface.behind():
            surface.stroke_polyline([start, mid], style.outline_color, width + OUTLINE_WIDTH)
            surface.stroke_polyline([mid, end], style.outline_color, width + OUTLINE_WIDTH)


def _draw_joint(
    surface: DrawingSurface, point: PointXY, radius: float, style: CharacterStyle,
) -> None:
    x, y = point
    surface.fill_ellipse(x, y, radius, radius, style.skin_color)
    if style.has_outline:
        surface.stroke_ellipse(x, y, radius, radius, style.outline_color, OUTLINE_WIDTH)


def _draw_neck(
    surface: DrawingSurface, neck: PointXY, width: float, style: CharacterStyle,
) -> None:
    x, y = neck[0] - width / 2, neck[1] - width / 3
    surface.fill_rect(x, y, width, width / 2, style.skin_color)
    if style.has_outline:
        surface.stroke_rect(x, y, width, width / 2, style.outline_color, OUTLINE_WIDTH)


def _draw_head(
    surface: DrawingSurface,
    nose: PointXY,
    radius: float,
    state: CharacterState,
    style: CharacterStyle,
) -> None:
    cx = nose[0] + state.head_turn * radius * 0.2
    cy = nose[1] - radius / 2

    with _saved(surface):
        surface.translate(cx, cy)
        surface.rotate(state.head_tilt * MAX_HEAD_TILT)
        surface.translate(-cx, -cy)

        surface.fill_ellipse(cx, cy, radius, radius, style.skin_color)
        if style.has_outline:
            surface.stroke_ellipse(cx, cy, radius, radius, style.outline_color, OUTLINE_WIDTH)

        face = _Face(cx=cx, cy=cy, radius=radius, state=state, style=style)
        _EYE_DRAWERS[state.eye_expression](surface, face)
        _MOUTH_DRAWERS[state.mouth_expression](surface, face)


# ---------------------------------------------------------------------------
# Face features
# ---------------------------------------------------------------------------


def _eye_centres(face: _Face) -> tuple[PointXY, PointXY]:
    eye_y = face.cy - face.radius / 4
    offset = face.radius / 3
    return (face.cx - offset, eye_y), (face.cx + offset, eye_y)


def _draw_happy_eyes(surface: DrawingSurface, face: _Face) -> None:
    for x, y in _eye_centres(face):
        surface.stroke_arc(
            x, y, face.radius / 8, 0.2, math.pi - 0.2, face.style.eye_color, FEATURE_WIDTH,
        )


def _draw_angry_eyes(surface: DrawingSurface, face: _Face) -> None:
    (lx, ly), (rx, ry) = _eye_centres(face)
    colour = face.style.eye_color
    # Brows slant down towards the nose.
    surface.stroke_polyline([(lx - 5, ly - 3), (lx + 5, ly + 3)], colour, FEATURE_WIDTH)
    surface.stroke_polyline([(rx - 5, ry + 3), (rx + 5, ry - 3)], colour, FEATURE_WIDTH)


def _draw_wide_eyes(surface: DrawingSurface, face: _Face) -> None:
    r = face.radius / 10
    for x, y in _eye_centres(face):
        surface.fill_ellipse(x, y, r, r, face.style.eye_color)


def _draw_plain_eyes(surface: DrawingSurface, face: _Face) -> None:
    colour = face.style.eye_color
    for x, y in _eye_centres(face):
        if face.state.eyes_open:
            surface.fill_ellipse(x, y, 3, 3, colour)
        else:
            surface.stroke_polyline([(x - 3, y), (x + 3, y)], colour, FEATURE_WIDTH)


def _mouth_y(face: _Face) -> float:
    return face.cy + face.radius / 3


def _draw_smile(surface: DrawingSurface, face: _Face) -> None:
    surface.stroke_arc(
        face.cx,
        _mouth_y(face) - face.radius / 8,
        face.radius / 3,
        0.2,
        math.pi - 0.2,
        face.style.outline_color,
        FEATURE_WIDTH,
    )


def _draw_frown(surface: DrawingSurface, face: _Face) -> None:
    surface.stroke_arc(
        face.cx,
        _mouth_y(face) + face.radius / 4,
        face.radius / 3,
        math.pi + 0.2,
        math.tau - 0.2,
        face.style.outline_color,
        FEATURE_WIDTH,
    )


def _draw_surprised_mouth(surface: DrawingSurface, face: _Face) -> None:
    r = face.radius / 5
    surface.stroke_ellipse(face.cx, _mouth_y(face), r, r, face.style.outline_color, FEATURE_WIDTH)


def _draw_flat_mouth(surface: DrawingSurface, face: _Face) -> None:
    y = _mouth_y(face)
    half = face.radius / 4
    surface.stroke_polyline(
        [(face.cx - half, y), (face.cx + half, y)], face.style.outline_color, FEATURE_WIDTH,
    )


def _draw_neutral_mouth(surface: DrawingSurface, face: _Face) -> None:
    if not face.state.mouth_open:
        _draw_flat_mouth(surface, face)
        return
    y = _mouth_y(face)
    rx, ry = face.radius / 4, face.radius / 6
    surface.fill_ellipse(face.cx, y, rx, ry, face.style.outline_color)
    surface.stroke_ellipse(face.cx, y, rx, ry, face.style.outline_color, FEATURE_WIDTH)


_EYE_DRAWERS: dict[EyeExpression, Callable[[DrawingSurface, _Face], None]] = {
    EyeExpression.NORMAL: _draw_plain_eyes,
    EyeExpression.HAPPY: _draw_happy_eyes,
    EyeExpression.ANGRY: _draw_angry_eyes,
    EyeExpression.SAD: _draw_wide_eyes,
    EyeExpression.SHOCKED: _draw_wide_eyes,
    EyeExpression.BORED: _draw_plain_eyes,
}

_MOUTH_DRAWERS: dict[MouthExpression, Callable[[DrawingSurface, _Face], None]] = {
    MouthExpression.SMILE: _draw_smile,
    MouthExpression.FROWN: _draw_frown,
    MouthExpression.NEUTRAL: _draw_neutral_mouth,
    MouthExpression.SURPRISED: _draw_surprised_mouth,
    MouthExpression.ANGRY: _draw_flat_mouth,
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


@contextmanager
def _saved(surface: DrawingSurface) -> Iterator[None]:
    surface.save()
    try:
        yield
    finally:
        surface.restore()


def _midpoint(a: PointXY, b: PointXY) -> PointXY:
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)
