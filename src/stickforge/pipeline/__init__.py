"""StickForge animation pipeline - interpolate, render, sequence and encode."""

from stickforge.pipeline.encoder import (
    EncodeError,
    FFmpegEncoder,
    GifEncoder,
    VideoEncoder,
    VideoMetadata,
)
from stickforge.pipeline.extract import (
    MediaPipePoseExtractor,
    PoseExtractor,
    pose_or_fallback,
)
from stickforge.pipeline.interpolate import (
    NoKeyframesError,
    ResolvedFrame,
    lerp,
    lerp_point,
    lerp_pose,
    resolve,
)
from stickforge.pipeline.lipsync import apply_mouth_state, simple_lip_sync
from stickforge.pipeline.sequencer import (
    InsufficientKeyframesError,
    RenderedFrame,
    frame_count,
    frame_filename,
    frame_times,
    generate_frames,
    render_at,
    write_frames,
)

__all__ = [
    "EncodeError",
    "FFmpegEncoder",
    "GifEncoder",
    "InsufficientKeyframesError",
    "MediaPipePoseExtractor",
    "NoKeyframesError",
    "PoseExtractor",
    "RenderedFrame",
    "ResolvedFrame",
    "VideoEncoder",
    "VideoMetadata",
    "apply_mouth_state",
    "frame_count",
    "frame_filename",
    "frame_times",
    "generate_frames",
    "lerp",
    "lerp_point",
    "lerp_pose",
    "pose_or_fallback",
    "render_at",
    "resolve",
    "simple_lip_sync",
    "write_frames",
]
