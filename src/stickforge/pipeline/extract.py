"""Pose extraction from still images (video frames)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from stickforge.models.pose import FALLBACK_POSE, JOINT_NAMES, Point2D, Pose

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# MediaPipe pose landmark index for each joint, in JOINT_NAMES order.
LANDMARK_INDICES: dict[str, int] = dict(
    zip(JOINT_NAMES, (0, 11, 12, 13, 14, 15, 16, 23, 24, 25, 26, 27, 28), strict=True)
)


@runtime_checkable
class PoseExtractor(Protocol):
    """Anything that can find a single figure's joints in an image."""

    def extract(self, image_path: Path) -> Pose | None:
        """Return the detected pose (normalised coordinates) or None if nobody is found."""
        ...


def pose_or_fallback(
    extractor: PoseExtractor,
    image_path: Path,
    fallback: Pose = FALLBACK_POSE,
) -> Pose:
    pose = extractor.extract(image_path)
    if pose is None:
        logger.warning("No pose detected in %s, using fallback pose", image_path.name)
        return fallback
    return pose


def pose_from_landmarks(landmarks: Any) -> Pose:
    """Map a sequence of normalised MediaPipe landmarks onto the 13-joint skeleton."""
    return Pose(**{
        name: Point2D(x=float(landmarks[idx].x), y=float(landmarks[idx].y))
        for name, idx in LANDMARK_INDICES.items()
    })


class MediaPipePoseExtractor:
    """Single-person pose extraction with the MediaPipe Tasks pose landmarker.

    Requires the optional ``mediapipe`` extra and a ``.task`` model file.
    """

    def __init__(self, model_asset_path: str = "pose_landmarker_lite.task") -> None:
        try:
            import mediapipe as mp
            from mediapipe.tasks.python.core.base_options import BaseOptions
            from mediapipe.tasks.python.vision import (
                PoseLandmarker,
                PoseLandmarkerOptions,
                RunningMode,
            )
        except ImportError as exc:
            msg = "MediaPipe is not installed; install with: pip install 'stickforge[mediapipe]'"
            raise RuntimeError(msg) from exc

        self._mp = mp
        options = PoseLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=model_asset_path),
            running_mode=RunningMode.IMAGE,
            num_poses=1,
        )
        self._detector = PoseLandmarker.create_from_options(options)

    def extract(self, image_path: Path) -> Pose | None:
        try:
            image = self._mp.Image.create_from_file(str(image_path))
            result = self._detector.detect(image)
        except Exception:
            logger.exception("Pose extraction failed for %s", image_path)
            return None
        if not result.pose_landmarks:
            return None
        return pose_from_landmarks(result.pose_landmarks[0])

    def close(self) -> None:
        self._detector.close()

    def __enter__(self) -> MediaPipePoseExtractor:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
