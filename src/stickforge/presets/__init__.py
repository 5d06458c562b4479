"""Built-in animation presets (walk cycle, jump, expressions, ...)."""

from stickforge.presets.loader import available_presets, keyframes_from_preset, load, load_preset

__all__ = ["available_presets", "keyframes_from_preset", "load", "load_preset"]
