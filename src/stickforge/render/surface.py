"""Drawing-surface capability interface and its Pillow implementation."""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol, TypeAlias, runtime_checkable

from PIL import Image, ImageDraw

# (a, b, c, d, e, f): x' = a*x + c*y + e, y' = b*x + d*y + f
Matrix: TypeAlias = tuple[float, float, float, float, float, float]
PointXY: TypeAlias = tuple[float, float]


@runtime_checkable
class DrawingSurface(Protocol):
    """Primitive 2D drawing operations the figure renderer depends on.

    Coordinates are in pixels, transformed by the current transform.  Angles
    are radians, measured clockwise from the +x axis (y grows downward).
    """

    def save(self) -> None:
        """Push the current transform."""
        ...

    def restore(self) -> None:
        """Pop the most recently saved transform."""
        ...

    def translate(self, dx: float, dy: float) -> None: ...

    def scale(self, sx: float, sy: float) -> None: ...

    def rotate(self, angle: float) -> None: ...

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str) -> None: ...

    def stroke_rect(
        self, x: float, y: float, w: float, h: float, color: str, width: float,
    ) -> None: ...

    def fill_ellipse(self, cx: float, cy: float, rx: float, ry: float, color: str) -> None: ...

    def stroke_ellipse(
        self, cx: float, cy: float, rx: float, ry: float, color: str, width: float,
    ) -> None: ...

    def stroke_arc(
        self,
        cx: float,
        cy: float,
        radius: float,
        start: float,
        end: float,
        color: str,
        width: float,
        *,
        anticlockwise: bool = False,
    ) -> None: ...

    def stroke_polyline(self, points: Sequence[PointXY], color: str, width: float) -> None:
        """Stroke connected segments with round caps and joins."""
        ...

    def behind(self) -> AbstractContextManager[None]:
        """Composite everything drawn inside the block underneath existing content."""
        ...


class PillowSurface:
    """Offscreen RGBA surface backed by a Pillow image.

    The figure is drawn onto a transparent layer; :meth:`to_image` flattens it
    over the background colour.  Curves are tessellated *after* transforming,
    so rotation, mirroring and non-uniform scale stay exact.  ``supersample``
    renders at N times the size and downsamples for smoother edges.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        background: str = "#FFFFFF",
        supersample: int = 1,
    ) -> None:
        if width <= 0 or height <= 0:
            msg = f"surface size must be positive, got {width}x{height}"
            raise ValueError(msg)
        if supersample < 1:
            msg = "supersample must be >= 1"
            raise ValueError(msg)
        self.width = width
        self.height = height
        self.background = background
        self.supersample = supersample
        self._size = (width * supersample, height * supersample)
        self._layer = Image.new("RGBA", self._size, (0, 0, 0, 0))
        self._draw = ImageDraw.Draw(self._layer)
        s = float(supersample)
        self._matrix: Matrix = (s, 0.0, 0.0, s, 0.0, 0.0)
        self._stack: list[Matrix] = []

    # -- transform ----------------------------------------------------------

    def save(self) -> None:
        self._stack.append(self._matrix)

    def restore(self) -> None:
        if not self._stack:
            msg = "restore() called without matching save()"
            raise RuntimeError(msg)
        self._matrix = self._stack.pop()

    def translate(self, dx: float, dy: float) -> None:
        a, b, c, d, e, f = self._matrix
        self._matrix = (a, b, c, d, a * dx + c * dy + e, b * dx + d * dy + f)

    def scale(self, sx: float, sy: float) -> None:
        a, b, c, d, e, f = self._matrix
        self._matrix = (a * sx, b * sx, c * sy, d * sy, e, f)

    def rotate(self, angle: float) -> None:
        a, b, c, d, e, f = self._matrix
        cos, sin = math.cos(angle), math.sin(angle)
        self._matrix = (
            a * cos + c * sin,
            b * cos + d * sin,
            c * cos - a * sin,
            d * cos - b * sin,
            e,
            f,
        )

    @property
    def matrix(self) -> Matrix:
        return self._matrix

    # -- primitives ---------------------------------------------------------

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str) -> None:
        self._draw.polygon(self._map(_rect_points(x, y, w, h)), fill=color)

    def stroke_rect(
        self, x: float, y: float, w: float, h: float, color: str, width: float,
    ) -> None:
        self._stroke(self._map(_rect_points(x, y, w, h)), color, width, closed=True)

    def fill_ellipse(self, cx: float, cy: float, rx: float, ry: float, color: str) -> None:
        points = self._map(self._ellipse_points(cx, cy, rx, ry, 0.0, math.tau))
        if len(points) >= 3:
            self._draw.polygon(points, fill=color)

    def stroke_ellipse(
        self, cx: float, cy: float, rx: float, ry: float, color: str, width: float,
    ) -> None:
        points = self._map(self._ellipse_points(cx, cy, rx, ry, 0.0, math.tau))
        self._stroke(points, color, width, closed=True)

    def stroke_arc(
        self,
        cx: float,
        cy: float,
        radius: float,
        start: float,
        end: float,
        color: str,
        width: float,
        *,
        anticlockwise: bool = False,
    ) -> None:
        sweep = _arc_sweep(start, end, anticlockwise=anticlockwise)
        points = self._map(self._ellipse_points(cx, cy, radius, radius, start, sweep))
        self._stroke(points, color, width, closed=abs(sweep) >= math.tau)

    def stroke_polyline(self, points: Sequence[PointXY], color: str, width: float) -> None:
        self._stroke(self._map(points), color, width, closed=False)

    @contextmanager
    def behind(self) -> Iterator[None]:
        front = self._layer
        self._layer = Image.new("RGBA", self._size, (0, 0, 0, 0))
        self._draw = ImageDraw.Draw(self._layer)
        try:
            yield
        finally:
            back = self._layer
            self._layer = Image.alpha_composite(back, front)
            self._draw = ImageDraw.Draw(self._layer)

    # -- output -------------------------------------------------------------

    def to_image(self) -> Image.Image:
        """Flatten the figure over the background and return an RGB image."""
        base = Image.new("RGBA", self._size, self.background)
        flat = Image.alpha_composite(base, self._layer).convert("RGB")
        if self.supersample > 1:
            flat = flat.resize((self.width, self.height), Image.Resampling.LANCZOS)
        return flat

    # -- internals ----------------------------------------------------------

    def _map(self, points: Sequence[PointXY]) -> list[PointXY]:
        a, b, c, d, e, f = self._matrix
        return [(a * x + c * y + e, b * x + d * y + f) for x, y in points]

    def _line_scale(self) -> float:
        a, b, c, d, _e, _f = self._matrix
        return math.sqrt(abs(a * d - b * c))

    def _ellipse_points(
        self, cx: float, cy: float, rx: float, ry: float, start: float, sweep: float,
    ) -> list[PointXY]:
        # Segment count follows the on-screen size of the curve.
        device_r = max(abs(rx), abs(ry)) * self._line_scale()
        steps = max(12, min(360, int(device_r * abs(sweep) / 2) + 1))
        return [
            (
                cx + rx * math.cos(start + sweep * i / steps),
                cy + ry * math.sin(start + sweep * i / steps),
            )
            for i in range(steps + 1)
        ]

    def _stroke(
        self, points: list[PointXY], color: str, width: float, *, closed: bool,
    ) -> None:
        if not points:
            return
        px = max(1, round(width * self._line_scale()))
        if closed:
            points = [*points, points[0]]
        if len(points) > 1:
            self._draw.line(points, fill=color, width=px, joint="curve")
        if not closed and px > 2:
            r = px / 2
            for x, y in (points[0], points[-1]):
                self._draw.ellipse([x - r, y - r, x + r, y + r], fill=color)


def _rect_points(x: float, y: float, w: float, h: float) -> list[PointXY]:
    return [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]


def _arc_sweep(start: float, end: float, *, anticlockwise: bool) -> float:
    """Signed sweep angle following HTML canvas ``arc()`` conventions."""
    if anticlockwise:
        sweep = start - end
        if sweep >= math.tau:
            return -math.tau
        sweep %= math.tau
        return -sweep
    sweep = end - start
    if sweep >= math.tau:
        return math.tau
    return sweep % math.tau
