"""Tests for video encoders and ffmpeg helpers."""

import asyncio
import json
import logging
from pathlib import Path

import pytest
from PIL import Image

from stickforge.config import EncoderSettings
from stickforge.pipeline.encoder import (
    EncodeError,
    FFmpegEncoder,
    GifEncoder,
    VideoEncoder,
    parse_probe_output,
)


def _write_frames(directory: Path, count: int, size: int = 16) -> list[Path]:
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for i in range(count):
        path = directory / f"frame_{i:04d}.png"
        Image.new("RGB", (size, size), (i * 40 % 256, 0, 0)).save(path)
        paths.append(path)
    return paths


class FakeProcess:
    def __init__(self, returncode: int, stdout: bytes = b"", stderr: bytes = b"") -> None:
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr

    async def communicate(self):
        return self._stdout, self._stderr


@pytest.fixture
def fake_exec(monkeypatch: pytest.MonkeyPatch):
    """Replace subprocess spawning; records argv and returns a canned process."""
    calls: list[list[str]] = []
    result = {"proc": FakeProcess(0)}

    async def _exec(*cmd, **kwargs):
        calls.append(list(cmd))
        return result["proc"]

    monkeypatch.setattr(asyncio, "create_subprocess_exec", _exec)
    return calls, result


def test_protocol_compliance():
    assert isinstance(FFmpegEncoder(), VideoEncoder)
    assert isinstance(GifEncoder(), VideoEncoder)


def test_build_command_without_audio(tmp_path: Path):
    cmd = FFmpegEncoder().build_command(tmp_path, tmp_path / "out.mp4", 30)
    assert cmd == [
        "ffmpeg", "-y",
        "-framerate", "30",
        "-i", str(tmp_path / "frame_%04d.png"),
        "-c:v", "libx264", "-pix_fmt", "yuv420p", "-preset", "fast",
        str(tmp_path / "out.mp4"),
    ]


def test_build_command_with_audio(tmp_path: Path):
    settings = EncoderSettings(ffmpeg_path="/opt/ffmpeg")
    cmd = FFmpegEncoder(settings).build_command(
        tmp_path, tmp_path / "out.mp4", 12.5, tmp_path / "a.aac",
    )
    assert cmd[0] == "/opt/ffmpeg"
    assert cmd[cmd.index("-framerate") + 1] == "12.5"
    assert cmd.count("-i") == 2
    assert cmd[-4:] == ["-c:a", "aac", "-shortest", str(tmp_path / "out.mp4")]


@pytest.mark.asyncio
async def test_ffmpeg_encode_runs_command(tmp_path: Path, fake_exec):
    calls, _result = fake_exec
    frames = _write_frames(tmp_path / "frames", 3)
    out = await FFmpegEncoder().encode(frames, tmp_path / "out" / "x.mp4", 10)
    assert out == tmp_path / "out" / "x.mp4"
    assert calls[0][0] == "ffmpeg"
    assert str(tmp_path / "frames" / "frame_%04d.png") in calls[0]


@pytest.mark.asyncio
async def test_ffmpeg_encode_failure_carries_stderr(tmp_path: Path, fake_exec):
    _calls, result = fake_exec
    stderr = "\n".join(f"line {i}" for i in range(20)) + "\nUnknown encoder 'libx264'"
    result["proc"] = FakeProcess(1, stderr=stderr.encode())
    frames = _write_frames(tmp_path / "frames", 2)
    with pytest.raises(EncodeError) as exc_info:
        await FFmpegEncoder().encode(frames, tmp_path / "x.mp4", 10)
    message = str(exc_info.value)
    assert message.startswith("ffmpeg exited with code 1")
    assert "Unknown encoder 'libx264'" in message
    assert "line 0" not in message


@pytest.mark.asyncio
async def test_ffmpeg_missing_binary(tmp_path: Path):
    settings = EncoderSettings(ffmpeg_path=str(tmp_path / "no-such-ffmpeg"))
    frames = _write_frames(tmp_path / "frames", 2)
    with pytest.raises(EncodeError, match="not found"):
        await FFmpegEncoder(settings).encode(frames, tmp_path / "x.mp4", 10)


@pytest.mark.asyncio
async def test_ffmpeg_rejects_gaps(tmp_path: Path):
    frames = _write_frames(tmp_path / "frames", 3)
    with pytest.raises(EncodeError, match="contiguous"):
        await FFmpegEncoder().encode([frames[0], frames[2]], tmp_path / "x.mp4", 10)


@pytest.mark.asyncio
async def test_ffmpeg_rejects_empty(tmp_path: Path):
    with pytest.raises(EncodeError):
        await FFmpegEncoder().encode([], tmp_path / "x.mp4", 10)


@pytest.mark.asyncio
async def test_ffmpeg_probe(tmp_path: Path, fake_exec):
    _calls, result = fake_exec
    payload = {
        "streams": [
            {"codec_type": "audio"},
            {"codec_type": "video", "r_frame_rate": "30000/1001", "width": 640, "height": 360},
        ],
        "format": {"duration": "12.5"},
    }
    result["proc"] = FakeProcess(0, stdout=json.dumps(payload).encode())
    meta = await FFmpegEncoder().probe(tmp_path / "clip.mp4")
    assert meta.duration == 12.5
    assert meta.fps == pytest.approx(29.97, abs=0.01)
    assert (meta.width, meta.height) == (640, 360)


@pytest.mark.asyncio
async def test_ffmpeg_extract_frames_lists_output(tmp_path: Path, fake_exec):
    calls, _result = fake_exec
    out_dir = tmp_path / "source"
    _write_frames(out_dir, 3)
    paths = await FFmpegEncoder().extract_frames(tmp_path / "clip.mp4", out_dir, 10)
    assert [p.name for p in paths] == ["frame_0000.png", "frame_0001.png", "frame_0002.png"]
    assert "fps=10" in calls[0]


def test_parse_probe_defaults():
    meta = parse_probe_output(json.dumps({"streams": [{"codec_type": "video"}]}))
    assert meta.fps == 30
    assert (meta.width, meta.height) == (512, 512)
    assert meta.duration == 0


def test_parse_probe_without_video():
    with pytest.raises(EncodeError, match="No video stream"):
        parse_probe_output(json.dumps({"streams": [{"codec_type": "audio"}]}))


def test_parse_probe_bad_json():
    with pytest.raises(EncodeError):
        parse_probe_output("not json")


@pytest.mark.asyncio
async def test_gif_encoder(tmp_path: Path):
    frames = _write_frames(tmp_path / "frames", 4)
    out = await GifEncoder().encode(frames, tmp_path / "anim.gif", 10)
    with Image.open(out) as img:
        assert img.format == "GIF"
        assert img.n_frames == 4
        assert img.info["duration"] == 100


@pytest.mark.asyncio
async def test_gif_encoder_ignores_audio(tmp_path: Path, caplog):
    frames = _write_frames(tmp_path / "frames", 2)
    with caplog.at_level(logging.WARNING, logger="stickforge"):
        await GifEncoder().encode(frames, tmp_path / "anim.gif", 5, tmp_path / "a.aac")
    assert any("no audio" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_gif_encoder_rejects_empty(tmp_path: Path):
    with pytest.raises(EncodeError):
        await GifEncoder().encode([], tmp_path / "anim.gif", 10)
