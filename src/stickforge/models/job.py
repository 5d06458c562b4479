"""Render job status snapshot."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from stickforge.models.enums import JobState


class JobStatus(BaseModel):
    """Point-in-time status of a render job, as polled by callers."""

    model_config = ConfigDict(frozen=True)

    id: str
    status: JobState = JobState.PROCESSING
    progress: int = Field(default=0, ge=0, le=100)
    message: str = ""
    error: str | None = None
    output_path: Path | None = None
    timed_out: bool = False

    @property
    def finished(self) -> bool:
        return self.status is not JobState.PROCESSING
