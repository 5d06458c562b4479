"""StickForge - keyframe stick-figure animation renderer."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("stickforge")
except PackageNotFoundError:
    __version__ = "unknown"
