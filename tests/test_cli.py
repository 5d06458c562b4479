"""Tests for the CLI entry point."""

import json
from pathlib import Path

from PIL import Image
from typer.testing import CliRunner

from stickforge import __version__
from stickforge.cli import app

runner = CliRunner()


def _new_project(tmp_path: Path, *extra: str) -> Path:
    path = tmp_path / "wave.json"
    result = runner.invoke(
        app, ["new", "wave", "--duration", "400", "--fps", "10", "--out", str(path), *extra]
    )
    assert result.exit_code == 0, result.output
    return path


def test_version_flag():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip() == f"stickforge {__version__}"


def test_no_command_shows_help():
    result = runner.invoke(app, [])
    assert result.exit_code == 0
    assert "render" in result.output


def test_presets_lists_bundled_sequences():
    result = runner.invoke(app, ["presets"])
    assert result.exit_code == 0
    assert "walking_cycle: 8 frame(s) (loop)" in result.output
    assert "happy: 1 frame(s)" in result.output


def test_new_writes_project(tmp_path: Path):
    path = _new_project(tmp_path)
    data = json.loads(path.read_text())
    assert data["name"] == "wave"
    assert data["duration_ms"] == 400
    assert len(data["keyframes"]) == 8
    assert data["keyframes"][-1]["time"] == 400


def test_new_single_pose_preset_is_held(tmp_path: Path):
    path = _new_project(tmp_path, "--preset", "happy")
    times = [k["time"] for k in json.loads(path.read_text())["keyframes"]]
    assert times == [0, 400]


def test_new_unknown_preset(tmp_path: Path):
    out = tmp_path / "x.json"
    result = runner.invoke(app, ["new", "x", "--preset", "moonwalk", "--out", str(out)])
    assert result.exit_code == 1
    assert not out.exists()


def test_frame_writes_png(tmp_path: Path):
    path = _new_project(tmp_path)
    target = tmp_path / "still.png"
    result = runner.invoke(app, ["frame", str(path), "--time", "150", "--out", str(target)])
    assert result.exit_code == 0, result.output
    with Image.open(target) as img:
        assert img.format == "PNG"
        assert img.size == (512, 512)


def test_frame_missing_project(tmp_path: Path):
    result = runner.invoke(app, ["frame", str(tmp_path / "nope.json"), "--time", "0"])
    assert result.exit_code == 1


def test_frame_invalid_project(tmp_path: Path):
    bad = tmp_path / "bad.json"
    bad.write_text('{"name": "bad"}')
    result = runner.invoke(app, ["frame", str(bad), "--time", "0"])
    assert result.exit_code == 1


def test_render_gif(tmp_path: Path):
    path = _new_project(tmp_path)
    target = tmp_path / "anim" / "wave.gif"
    result = runner.invoke(app, ["render", str(path), "--format", "gif", "--out", str(target)])
    assert result.exit_code == 0, result.output
    assert "Saved:" in result.output
    with Image.open(target) as img:
        assert img.n_frames == 4


def test_render_format_from_out_suffix(tmp_path: Path):
    path = _new_project(tmp_path)
    target = tmp_path / "wave.gif"
    result = runner.invoke(app, ["render", str(path), "--out", str(target)])
    assert result.exit_code == 0, result.output
    with Image.open(target) as img:
        assert img.format == "GIF"


def test_render_rejects_format_mismatch(tmp_path: Path):
    path = _new_project(tmp_path)
    target = tmp_path / "wave.gif"
    result = runner.invoke(app, ["render", str(path), "--out", str(target), "--format", "mp4"])
    assert result.exit_code == 1
    assert "does not match" in result.output
    assert not target.exists()


def test_render_too_few_keyframes(tmp_path: Path):
    path = tmp_path / "one.json"
    path.write_text(json.dumps({"name": "one", "keyframes": []}))
    result = runner.invoke(app, ["render", str(path), "--format", "gif"])
    assert result.exit_code == 1
