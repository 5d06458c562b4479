"""Validation utilities for StickForge project documents."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

import jsonschema

_SCHEMA_PATH = Path(__file__).parent / "schemas" / "project.schema.json"


@lru_cache(maxsize=1)
def _project_schema() -> dict[str, object]:
    return json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))


def validate_project_json(data: dict[str, object]) -> None:
    """Validate project data dict against project.schema.json.

    Parameters
    ----------
    data:
        The project data dictionary to validate.

    Raises
    ------
    jsonschema.ValidationError
        If the data does not conform to the schema.
    """
    jsonschema.validate(data, _project_schema())
