"""Figure rendering onto abstract drawing surfaces."""

from stickforge.render.figure import FigureGeometry, figure_geometry, render, render_frame
from stickforge.render.surface import DrawingSurface, PillowSurface

__all__ = [
    "DrawingSurface",
    "FigureGeometry",
    "PillowSurface",
    "figure_geometry",
    "render",
    "render_frame",
]
