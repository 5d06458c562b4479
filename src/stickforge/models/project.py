"""Animation project document - style, timing and keyframes with save/load."""

from __future__ import annotations

import json
from pathlib import Path

import jsonschema
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from stickforge.models.character import CharacterStyle
from stickforge.models.keyframe import Keyframe, KeyframeTrack, sort_keyframes
from stickforge.validation import validate_project_json


class ProjectLoadError(ValueError):
    """Raised when a project file cannot be loaded."""


class AnimationProject(BaseModel):
    """A saved authoring session: timing, style and the keyframe list."""

    name: str
    version: str = "0.1.0"
    duration_ms: float = Field(default=5000, gt=0)
    fps: float = Field(default=30, gt=0)
    style: CharacterStyle = Field(default_factory=CharacterStyle)
    keyframes: list[Keyframe] = Field(default_factory=list)

    def track(self) -> KeyframeTrack:
        """Return an editable track seeded with this project's keyframes."""
        return KeyframeTrack(self.keyframes)

    def save(self, path: Path) -> Path:
        """Save project to JSON file (a directory gets ``project.json``)."""
        save_path = path if path.suffix == ".json" else path / "project.json"
        save_path.parent.mkdir(parents=True, exist_ok=True)
        self.keyframes = sort_keyframes(self.keyframes)
        save_path.write_text(self.model_dump_json(indent=2, by_alias=True))
        return save_path

    @classmethod
    def load(cls, path: Path) -> AnimationProject:
        """Load project from JSON file."""
        if path.is_dir():
            path = path / "project.json"
        try:
            text = path.read_text()
        except FileNotFoundError:
            msg = f"project file not found: {path}"
            raise ProjectLoadError(msg) from None
        except PermissionError:
            msg = f"permission denied reading project file: {path}"
            raise ProjectLoadError(msg) from None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"project file contains invalid JSON: {exc}"
            raise ProjectLoadError(msg) from None
        try:
            validate_project_json(data)
            project = cls.model_validate(data)
        except (jsonschema.ValidationError, PydanticValidationError) as exc:
            msg = f"project file has invalid structure: {exc}"
            raise ProjectLoadError(msg) from None
        project.keyframes = sort_keyframes(project.keyframes)
        return project
