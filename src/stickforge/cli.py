"""CLI entry point using Typer."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer

app = typer.Typer(
    name="stickforge",
    help="Keyframe stick-figure animator.",
    no_args_is_help=False,
)


class OutputFormat(StrEnum):
    MP4 = "mp4"
    GIF = "gif"


@app.command()
def presets() -> None:
    """List the bundled animation presets."""
    from stickforge.presets import available_presets, load

    for name in available_presets():
        sequence = load(name)
        loop = " (loop)" if sequence.loop else ""
        typer.echo(f"{name}: {len(sequence.frames)} frame(s){loop}")


@app.command()
def new(
    name: Annotated[str, typer.Argument(help="Project name")],
    preset: Annotated[
        str, typer.Option("--preset", "-p", help="Preset to seed keyframes from")
    ] = "walking_cycle",
    duration: Annotated[
        float, typer.Option("--duration", "-d", help="Animation length in milliseconds")
    ] = 2000,
    fps: Annotated[float, typer.Option("--fps", help="Frames per second")] = 30,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Project file to write"),
    ] = None,
) -> None:
    """Create a new animation project seeded from a preset."""
    from stickforge.models.keyframe import Keyframe
    from stickforge.models.project import AnimationProject
    from stickforge.presets import keyframes_from_preset

    if duration <= 0 or fps <= 0:
        typer.echo("Error: duration and fps must be positive", err=True)
        raise typer.Exit(1)
    try:
        keyframes = keyframes_from_preset(preset, duration)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if len(keyframes) == 1:
        # Hold a single-pose preset for the whole animation.
        only = keyframes[0]
        keyframes.append(Keyframe(time=duration, pose=only.pose, state=only.state))

    project = AnimationProject(name=name, duration_ms=duration, fps=fps, keyframes=keyframes)
    save_path = project.save(out or Path(f"{name}.json"))
    typer.echo(f"Created project '{name}' with {len(keyframes)} keyframes at {save_path}")


@app.command()
def frame(
    project_path: Annotated[Path, typer.Argument(help="Path to project directory or JSON")],
    time: Annotated[float, typer.Option("--time", "-t", help="Time in milliseconds")],
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="PNG file to write"),
    ] = None,
) -> None:
    """Render the single frame at TIME to a PNG."""
    from stickforge.config import load_config
    from stickforge.models.project import AnimationProject, ProjectLoadError
    from stickforge.pipeline.interpolate import NoKeyframesError
    from stickforge.pipeline.sequencer import render_at

    config = load_config()
    try:
        project = AnimationProject.load(project_path)
        image = render_at(
            project.keyframes, time, style=project.style, settings=config.render,
        )
    except (ProjectLoadError, NoKeyframesError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    target = out or Path(f"{project.name}_{int(time)}ms.png")
    target.parent.mkdir(parents=True, exist_ok=True)
    image.save(target, "PNG")
    typer.echo(f"Saved: {target}")


@app.command()
def render(
    project_path: Annotated[Path, typer.Argument(help="Path to project directory or JSON")],
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Output file (default: config output_dir)"),
    ] = None,
    fmt: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output container (default: from --out, else mp4)"),
    ] = None,
    audio: Annotated[
        Path | None,
        typer.Option("--audio", "-a", help="Audio track to mux in (mp4 only)"),
    ] = None,
) -> None:
    """Render a project to a video (or animated GIF)."""
    import asyncio
    from uuid import uuid4

    from stickforge.config import load_config
    from stickforge.jobs import JobStore, render_animation
    from stickforge.models.project import AnimationProject, ProjectLoadError
    from stickforge.pipeline.encoder import FFmpegEncoder, GifEncoder, VideoEncoder

    config = load_config()
    try:
        project = AnimationProject.load(project_path)
    except ProjectLoadError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    try:
        fmt = _output_format(out, fmt)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    encoder: VideoEncoder
    encoder = GifEncoder() if fmt is OutputFormat.GIF else FFmpegEncoder(config.encoder)
    output_dir = out.parent if out is not None else config.output_dir
    job_id = uuid4().hex[:12]
    store = JobStore()

    async def _run() -> Path:
        task = asyncio.create_task(
            render_animation(
                job_id,
                project.keyframes,
                project.duration_ms,
                project.fps,
                output_dir,
                encoder=encoder,
                store=store,
                config=config,
                style=project.style,
                audio_path=audio,
            )
        )
        last = -1
        while not task.done():
            status = store.get(job_id)
            if job_id in store and status.progress != last:
                typer.echo(f"  [{status.progress:3d}%] {status.message}")
                last = status.progress
            await asyncio.sleep(0.1)
        return await task

    typer.echo(f"Rendering '{project.name}' (job {job_id})")
    try:
        result = asyncio.run(_run())
    except Exception:
        status = store.get(job_id)
        typer.echo(f"Error: {status.error or status.message}", err=True)
        raise typer.Exit(1) from None

    if out is not None and result != out:
        result = result.replace(out)
    typer.echo(f"Saved: {result}")


def _output_format(out: Path | None, fmt: OutputFormat | None) -> OutputFormat:
    """Pick the container from --format or the --out suffix; a known suffix must agree."""
    suffix = out.suffix.lstrip(".").lower() if out is not None else ""
    if fmt is None:
        return OutputFormat(suffix) if suffix in set(OutputFormat) else OutputFormat.MP4
    if suffix in set(OutputFormat) and suffix != fmt:
        msg = f"--out {out} does not match --format {fmt}"
        raise ValueError(msg)
    return fmt


@app.command()
def convert(
    video: Annotated[Path, typer.Argument(help="Source video with a person in it")],
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Output directory"),
    ] = None,
    model: Annotated[
        Path | None,
        typer.Option("--model", "-m", help="MediaPipe pose landmarker .task file"),
    ] = None,
) -> None:
    """Trace the person in a video as a talking stick figure (needs mediapipe)."""
    import asyncio
    from uuid import uuid4

    from stickforge.config import load_config
    from stickforge.jobs import JobStore, process_video
    from stickforge.pipeline.extract import MediaPipePoseExtractor

    config = load_config()
    if not video.exists():
        typer.echo(f"Error: video not found: {video}", err=True)
        raise typer.Exit(1)
    try:
        extractor = MediaPipePoseExtractor(str(model or config.video.model_asset_path))
    except RuntimeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    job_id = uuid4().hex[:12]
    store = JobStore()
    typer.echo(f"Converting {video.name} (job {job_id})")
    try:
        with extractor:
            result = asyncio.run(
                process_video(
                    job_id,
                    video,
                    out or config.output_dir,
                    extractor=extractor,
                    store=store,
                    config=config,
                )
            )
    except Exception:
        status = store.get(job_id)
        typer.echo(f"Error: {status.error or status.message}", err=True)
        raise typer.Exit(1) from None
    typer.echo(f"Saved: {result}")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool, typer.Option("--version", "-V", help="Show version")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """StickForge - keyframe stick-figure animator."""
    if version:
        from stickforge import __version__

        typer.echo(f"stickforge {__version__}")
        raise typer.Exit()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
