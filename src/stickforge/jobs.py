"""Render job orchestration: status table, animation export and video conversion."""

from __future__ import annotations

import asyncio
import logging
import shutil
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from stickforge.config import AppConfig
from stickforge.models.character import CharacterState
from stickforge.models.enums import JobState, MouthExpression
from stickforge.models.job import JobStatus
from stickforge.pipeline.encoder import EncodeError, FFmpegEncoder
from stickforge.pipeline.extract import pose_or_fallback
from stickforge.pipeline.lipsync import apply_mouth_state, simple_lip_sync
from stickforge.pipeline.sequencer import (
    frame_filename,
    frame_times,
    render_at,
    validate_keyframes,
)
from stickforge.render import render_frame

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from PIL import Image

    from stickforge.models.character import CharacterStyle
    from stickforge.models.keyframe import Keyframe
    from stickforge.pipeline.encoder import VideoEncoder
    from stickforge.pipeline.extract import PoseExtractor

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Rendering timed out"
NOT_FOUND_MESSAGE = "Job not found"

# Expression used for figures traced from video; only the mouth animates.
TALKING_STATE = CharacterState(mouth_expression=MouthExpression.NEUTRAL)


class JobTimeoutError(TimeoutError):
    """Raised when a job exceeds its timeout."""


class JobStore:
    """Thread-safe table of job status snapshots keyed by job id.

    Snapshots are immutable and replaced whole, so readers never observe a
    half-applied update.  While a job is processing its progress never moves
    backwards.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: dict[str, JobStatus] = {}

    def create(self, job_id: str, message: str = "Initializing...") -> JobStatus:
        status = JobStatus(id=job_id, message=message)
        with self._lock:
            self._jobs[job_id] = status
        return status

    def update(self, job_id: str, **fields: object) -> JobStatus:
        with self._lock:
            current = self._jobs[job_id]
            progress = fields.get("progress")
            if (
                isinstance(progress, int)
                and current.status is JobState.PROCESSING
                and progress < current.progress
            ):
                fields["progress"] = current.progress
            updated = JobStatus.model_validate({**current.model_dump(), **fields})
            self._jobs[job_id] = updated
        return updated

    def get(self, job_id: str) -> JobStatus:
        with self._lock:
            status = self._jobs.get(job_id)
        if status is None:
            return JobStatus(
                id=job_id,
                status=JobState.ERROR,
                message=NOT_FOUND_MESSAGE,
                error=NOT_FOUND_MESSAGE,
            )
        return status

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    def cleanup_finished(self) -> int:
        """Forget every completed or failed job; returns how many were removed."""
        with self._lock:
            finished = [job_id for job_id, s in self._jobs.items() if s.finished]
            for job_id in finished:
                del self._jobs[job_id]
        return len(finished)


# Process-wide default table.
job_store = JobStore()


# ---------------------------------------------------------------------------
# Animation export
# ---------------------------------------------------------------------------


async def render_animation(
    job_id: str,
    keyframes: Sequence[Keyframe],
    duration_ms: float,
    fps: float,
    output_dir: Path,
    *,
    encoder: VideoEncoder | None = None,
    store: JobStore | None = None,
    config: AppConfig | None = None,
    style: CharacterStyle | None = None,
    audio_path: Path | None = None,
) -> Path:
    """Render a keyframed animation to a video file, tracking progress in *store*.

    Frames are written to ``output_dir/frames-<job_id>/`` and removed once the
    job ends, whatever the outcome.  The finished file is
    ``output_dir/<job_id>.<ext>``.
    """
    config = config or AppConfig()
    store = store or job_store
    encoder = encoder or FFmpegEncoder(config.encoder)
    bands = config.jobs

    keyframes = list(keyframes)
    store.create(job_id)
    try:
        validate_keyframes(keyframes)
    except ValueError as exc:
        store.update(job_id, status=JobState.ERROR, error=str(exc), message="Invalid keyframes")
        raise

    frames_dir = output_dir / f"frames-{job_id}"
    output = output_dir / f"{job_id}.{encoder.extension}"
    writer = _FrameWriter()
    logger.info("Job %s: rendering %s ms at %s fps", job_id, duration_ms, fps)

    try:
        async with asyncio.timeout(bands.timeout_seconds):
            store.update(job_id, progress=0, message="Preparing render...")
            frames_dir.mkdir(parents=True, exist_ok=True)
            times = frame_times(duration_ms, fps)
            store.update(job_id, progress=bands.frames_start, message="Rendering frames...")

            def _render(idx: int) -> Path:
                image = render_at(keyframes, times[idx], style=style, settings=config.render)
                return writer.save(image, frames_dir / frame_filename(idx))

            frames = await _run_frames(
                len(times),
                _render,
                workers=config.render.workers,
                on_done=lambda done, total: store.update(
                    job_id,
                    progress=_band(done, total, bands.frames_start, bands.frames_end),
                    message=f"Rendering frame {done}/{total}...",
                ),
            )

            store.update(job_id, progress=bands.frames_end, message="Encoding video...")
            await encoder.encode(frames, output, fps, audio_path)
    except TimeoutError:
        logger.error("Job %s timed out after %s s", job_id, bands.timeout_seconds)
        store.update(
            job_id,
            status=JobState.ERROR,
            message=TIMEOUT_MESSAGE,
            error=TIMEOUT_MESSAGE,
            timed_out=True,
        )
        raise JobTimeoutError(TIMEOUT_MESSAGE) from None
    except Exception as exc:
        logger.exception("Job %s failed", job_id)
        store.update(job_id, status=JobState.ERROR, message="Render failed", error=str(exc))
        raise
    finally:
        writer.close()
        _remove_dir(frames_dir)

    store.update(
        job_id,
        status=JobState.COMPLETED,
        progress=100,
        message="Animation complete!",
        output_path=output,
    )
    logger.info("Job %s: wrote %s", job_id, output)
    return output


# ---------------------------------------------------------------------------
# Video -> stick figure
# ---------------------------------------------------------------------------


async def process_video(
    job_id: str,
    video_path: Path,
    output_dir: Path,
    *,
    extractor: PoseExtractor,
    encoder: FFmpegEncoder | None = None,
    store: JobStore | None = None,
    config: AppConfig | None = None,
    style: CharacterStyle | None = None,
) -> Path:
    """Trace the person in *video_path* as a talking stick figure.

    The video is sampled at ``config.video.fps``; frames where nobody is
    detected use the fallback pose.  The mouth follows a simple talking
    rhythm and the source audio is muxed into ``output_dir/<job_id>.mp4``.
    """
    config = config or AppConfig()
    store = store or job_store
    encoder = encoder or FFmpegEncoder(config.encoder)
    fps = config.video.fps

    work_dir = output_dir / f"work-{job_id}"
    output = output_dir / f"{job_id}.mp4"
    writer = _FrameWriter()
    store.create(job_id)

    try:
        async with asyncio.timeout(config.jobs.timeout_seconds):
            work_dir.mkdir(parents=True, exist_ok=True)

            store.update(job_id, progress=5, message="Analyzing video...")
            metadata = await encoder.probe(video_path)
            logger.info(
                "Job %s: %s (%.1f s, %dx%d)",
                job_id, video_path.name, metadata.duration, metadata.width, metadata.height,
            )

            store.update(job_id, progress=10, message="Extracting audio...")
            audio = await encoder.extract_audio(video_path, work_dir / "audio.aac")

            store.update(job_id, progress=20, message="Extracting frames...")
            sources = await encoder.extract_frames(video_path, work_dir / "source", fps)
            if not sources:
                msg = "No frames extracted from video"
                raise EncodeError(msg)
            total = len(sources)

            store.update(job_id, progress=35, message="Analyzing audio for lip sync...")
            mouth_states = simple_lip_sync(total, fps)

            store.update(job_id, progress=40, message="Processing frames...")
            render_dir = work_dir / "render"
            render_dir.mkdir(parents=True, exist_ok=True)
            settings = config.render

            def _render(idx: int) -> Path:
                pose = pose_or_fallback(extractor, sources[idx])
                state = apply_mouth_state(TALKING_STATE, mouth_states[idx])
                image = render_frame(
                    pose,
                    style,
                    state,
                    width=settings.width,
                    height=settings.height,
                    background=settings.background,
                    supersample=settings.supersample,
                )
                return writer.save(image, render_dir / frame_filename(idx))

            # Pose extractors are not guaranteed thread-safe; run frames serially.
            frames = await _run_frames(
                total,
                _render,
                workers=1,
                on_done=lambda done, n: store.update(
                    job_id,
                    progress=_band(done, n, 40, 90),
                    message=f"Processing frame {done}/{n}...",
                ),
            )

            store.update(job_id, progress=90, message="Assembling video...")
            await encoder.encode(frames, output, fps, audio)
    except TimeoutError:
        logger.error("Job %s timed out", job_id)
        store.update(
            job_id,
            status=JobState.ERROR,
            message=TIMEOUT_MESSAGE,
            error=TIMEOUT_MESSAGE,
            timed_out=True,
        )
        raise JobTimeoutError(TIMEOUT_MESSAGE) from None
    except Exception as exc:
        logger.exception("Job %s failed", job_id)
        store.update(job_id, status=JobState.ERROR, message="Processing failed", error=str(exc))
        raise
    finally:
        writer.close()
        _remove_dir(work_dir)

    store.update(
        job_id,
        status=JobState.COMPLETED,
        progress=100,
        message="Video processing complete!",
        output_path=output,
    )
    return output


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _run_frames(
    total: int,
    render_one: Callable[[int], Path],
    *,
    workers: int,
    on_done: Callable[[int, int], object],
) -> list[Path]:
    """Run ``render_one(i)`` for every frame on worker threads; paths in index order."""
    loop = asyncio.get_running_loop()
    pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="stickforge-render")
    try:
        futures = [loop.run_in_executor(pool, render_one, idx) for idx in range(total)]
        for done, future in enumerate(asyncio.as_completed(futures), start=1):
            await future
            on_done(done, total)
        return [f.result() for f in futures]
    finally:
        # Never block the event loop on a cancelled job's remaining frames.
        pool.shutdown(wait=False, cancel_futures=True)


class _FrameWriter:
    """Saves frames from worker threads until closed.

    ``close`` waits for a save already in progress, so the frame directory can
    be removed right after it returns.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._closed = False
        self._in_flight = 0

    def save(self, image: Image.Image, path: Path) -> Path:
        with self._cond:
            if self._closed:
                return path
            self._in_flight += 1
        try:
            image.save(path, "PNG")
        finally:
            with self._cond:
                self._in_flight -= 1
                self._cond.notify_all()
        return path

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.wait_for(lambda: self._in_flight == 0)


def _band(done: int, total: int, start: int, end: int) -> int:
    return start + (done * (end - start)) // max(total, 1)


def _remove_dir(path: Path) -> None:
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError:
        logger.warning("Failed to clean up %s", path, exc_info=True)
