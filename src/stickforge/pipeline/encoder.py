"""Video encoders and ffmpeg helpers for assembling rendered frames."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from PIL import Image

from stickforge.config import EncoderSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

FRAME_PATTERN = "frame_%04d.png"
_STDERR_TAIL_LINES = 8


class EncodeError(RuntimeError):
    """Raised when frames cannot be encoded or a media tool fails."""


@dataclass(frozen=True)
class VideoMetadata:
    """Basic properties of a source video."""

    duration: float
    fps: float
    width: int
    height: int


@runtime_checkable
class VideoEncoder(Protocol):
    """Protocol for anything that turns an ordered frame sequence into a file."""

    extension: str

    async def encode(
        self,
        frames: list[Path],
        output: Path,
        fps: float,
        audio: Path | None = None,
    ) -> Path:
        """Encode *frames* (in order) at *fps* into *output* and return its path."""
        ...


# ---------------------------------------------------------------------------
# ffmpeg
# ---------------------------------------------------------------------------


class FFmpegEncoder:
    """Encode frames to H.264 MP4 by invoking the ``ffmpeg`` binary.

    Frames must be contiguous ``frame_%04d.png`` files in a single directory,
    which is what :func:`stickforge.pipeline.sequencer.write_frames` produces.
    """

    extension = "mp4"

    def __init__(self, settings: EncoderSettings | None = None) -> None:
        self.settings = settings or EncoderSettings()

    def build_command(
        self,
        frames_dir: Path,
        output: Path,
        fps: float,
        audio: Path | None = None,
    ) -> list[str]:
        s = self.settings
        cmd = [
            s.ffmpeg_path,
            "-y",
            "-framerate", _fmt_number(fps),
            "-i", str(frames_dir / FRAME_PATTERN),
        ]
        if audio is not None:
            cmd += ["-i", str(audio)]
        cmd += ["-c:v", s.video_codec, "-pix_fmt", s.pixel_format, "-preset", s.preset]
        if audio is not None:
            cmd += ["-c:a", s.audio_codec, "-shortest"]
        cmd.append(str(output))
        return cmd

    async def encode(
        self,
        frames: list[Path],
        output: Path,
        fps: float,
        audio: Path | None = None,
    ) -> Path:
        if not frames:
            msg = "no frames to encode"
            raise EncodeError(msg)
        frames_dir = _frames_directory(frames)
        output.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Encoding %d frames at %s fps to %s", len(frames), fps, output)
        await _run(self.build_command(frames_dir, output, fps, audio))
        return output

    async def extract_frames(self, video: Path, output_dir: Path, fps: float) -> list[Path]:
        """Sample *video* at *fps* into ``frame_%04d.png`` files, returned sorted."""
        output_dir.mkdir(parents=True, exist_ok=True)
        await _run([
            self.settings.ffmpeg_path,
            "-y",
            "-i", str(video),
            "-vf", f"fps={_fmt_number(fps)}",
            str(output_dir / FRAME_PATTERN),
        ])
        return sorted(output_dir.glob("frame_*.png"))

    async def extract_audio(self, video: Path, output: Path) -> Path:
        output.parent.mkdir(parents=True, exist_ok=True)
        await _run([
            self.settings.ffmpeg_path,
            "-y",
            "-i", str(video),
            "-vn",
            "-c:a", self.settings.audio_codec,
            str(output),
        ])
        return output

    async def probe(self, video: Path) -> VideoMetadata:
        """Read duration, frame rate and size of the first video stream."""
        stdout = await _run([
            self.settings.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(video),
        ])
        return parse_probe_output(stdout)


def parse_probe_output(raw: bytes | str) -> VideoMetadata:
    """Build :class:`VideoMetadata` from ffprobe's JSON output."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"ffprobe returned invalid JSON: {exc}"
        raise EncodeError(msg) from None

    stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "video"),
        None,
    )
    if stream is None:
        msg = "No video stream found"
        raise EncodeError(msg)

    try:
        fps = float(Fraction(stream.get("r_frame_rate") or "30/1"))
    except (ValueError, ZeroDivisionError):
        fps = 30.0
    return VideoMetadata(
        duration=float(data.get("format", {}).get("duration") or 0),
        fps=fps,
        width=int(stream.get("width") or 512),
        height=int(stream.get("height") or 512),
    )


async def _run(cmd: Sequence[str]) -> bytes:
    logger.debug("Running: %s", " ".join(cmd))
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        msg = f"{cmd[0]} not found; install ffmpeg or set STICKFORGE_ENCODER__FFMPEG_PATH"
        raise EncodeError(msg) from None

    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise

    if proc.returncode != 0:
        tail = stderr.decode(errors="replace").strip().splitlines()[-_STDERR_TAIL_LINES:]
        msg = f"{Path(cmd[0]).name} exited with code {proc.returncode}: " + "\n".join(tail)
        raise EncodeError(msg)
    return stdout


def _frames_directory(frames: Sequence[Path]) -> Path:
    directory = frames[0].parent
    for idx, frame in enumerate(frames):
        if frame.parent != directory or frame.name != FRAME_PATTERN % idx:
            msg = f"frames must be contiguous {FRAME_PATTERN} files in one directory"
            raise EncodeError(msg)
    return directory


def _fmt_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# ---------------------------------------------------------------------------
# Animated GIF
# ---------------------------------------------------------------------------


class GifEncoder:
    """Pillow animated-GIF encoder; needs no external binary."""

    extension = "gif"

    def __init__(self, *, loop: int = 0) -> None:
        self.loop = loop

    async def encode(
        self,
        frames: list[Path],
        output: Path,
        fps: float,
        audio: Path | None = None,
    ) -> Path:
        if not frames:
            msg = "no frames to encode"
            raise EncodeError(msg)
        if fps <= 0:
            msg = "fps must be positive"
            raise EncodeError(msg)
        if audio is not None:
            logger.warning("GIF output has no audio track; ignoring %s", audio)
        return await asyncio.to_thread(self._write, list(frames), output, fps)

    def _write(self, frames: list[Path], output: Path, fps: float) -> Path:
        output.parent.mkdir(parents=True, exist_ok=True)
        images = []
        for path in frames:
            with Image.open(path) as img:
                images.append(img.convert("RGB"))
        images[0].save(
            output,
            format="GIF",
            save_all=True,
            append_images=images[1:],
            duration=round(1000 / fps),
            loop=self.loop,
        )
        logger.info("Wrote %d-frame GIF to %s", len(images), output)
        return output
