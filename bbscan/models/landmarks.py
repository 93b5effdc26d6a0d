from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..tuning import VISIBILITY_MIN, WORLD_LANDMARK_COUNT

logger = logging.getLogger(__name__)


class LM:
    """MediaPipe Pose landmark indices (33-point topology)."""

    NOSE = 0
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28


JOINT_NAMES: Dict[int, str] = {
    LM.NOSE: "Head",
    LM.LEFT_SHOULDER: "Left Shoulder",
    LM.RIGHT_SHOULDER: "Right Shoulder",
    LM.LEFT_ELBOW: "Left Elbow",
    LM.RIGHT_ELBOW: "Right Elbow",
    LM.LEFT_WRIST: "Left Wrist",
    LM.RIGHT_WRIST: "Right Wrist",
    LM.LEFT_HIP: "Left Hip",
    LM.RIGHT_HIP: "Right Hip",
    LM.LEFT_KNEE: "Left Knee",
    LM.RIGHT_KNEE: "Right Knee",
    LM.LEFT_ANKLE: "Left Ankle",
    LM.RIGHT_ANKLE: "Right Ankle",
}


SYMMETRY_PAIRS: List[Tuple[int, int, str]] = [
    (LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER, "shoulder"),
    (LM.LEFT_ELBOW, LM.RIGHT_ELBOW, "elbow"),
    (LM.LEFT_HIP, LM.RIGHT_HIP, "hip"),
    (LM.LEFT_KNEE, LM.RIGHT_KNEE, "knee"),
]


def joint_name(idx: int) -> str:
    return JOINT_NAMES.get(idx, f"Joint {idx}")


@dataclass(frozen=True)
class Point2D:
    x: float
    y: float


@dataclass(frozen=True)
class Landmark:
    # Image-normalised coords in [0,1]; visibility is detector confidence.
    x: float
    y: float
    z: float = 0.0
    visibility: float = 0.0

    def to_pixel(self, width: float, height: float) -> Point2D:
        return Point2D(self.x * width, self.y * height)


@dataclass(frozen=True)
class WorldLandmark:
    # Meters, origin at the hip midpoint. No to_pixel(): not interchangeable
    # with Landmark.
    x: float
    y: float
    z: float = 0.0
    visibility: float = 0.0


def landmark_at(landmarks: Optional[Sequence[Landmark]], idx: int) -> Optional[Landmark]:
    if not landmarks or idx < 0 or idx >= len(landmarks):
        return None
    return landmarks[idx]


def is_visible(lm: Optional[object], threshold: float = VISIBILITY_MIN) -> bool:
    if lm is None:
        return False
    try:
        return float(getattr(lm, "visibility")) > threshold
    except (AttributeError, TypeError, ValueError):
        return False


def both_visible(
    landmarks: Optional[Sequence[Landmark]], left: int, right: int, threshold: float = VISIBILITY_MIN
) -> bool:
    return is_visible(landmark_at(landmarks, left), threshold) and is_visible(
        landmark_at(landmarks, right), threshold
    )


def pixel_landmarks(landmarks: Optional[Sequence[object]]) -> List[Optional[Landmark]]:
    """Keep only image-space landmarks; anything else becomes a missing slot."""
    out: List[Optional[Landmark]] = []
    rejected = 0
    for lm in landmarks or []:
        if isinstance(lm, Landmark):
            out.append(lm)
        else:
            out.append(None)
            if lm is not None:
                rejected += 1
    if rejected:
        logger.warning("Ignored %d non image-space entries in landmark array", rejected)
    return out


def world_landmarks_or_none(world: Optional[Sequence[object]]) -> Optional[List[WorldLandmark]]:
    """World landmarks usable for metric computations, or None.

    Truncated arrays and arrays holding anything but WorldLandmark are
    treated as "world data unavailable".
    """
    if world is None or len(world) < WORLD_LANDMARK_COUNT:
        return None
    for wl in world:
        if wl is not None and not isinstance(wl, WorldLandmark):
            logger.warning("World landmark array contains %s; ignoring world data", type(wl).__name__)
            return None
    return list(world)


@dataclass(frozen=True)
class PoseDetectionResult:
    landmarks: Sequence[Landmark]
    world_landmarks: Sequence[WorldLandmark] = field(default_factory=tuple)


@dataclass(frozen=True)
class MaskData:
    """Per-pixel person confidence, row-major, values in [0,1]."""

    data: np.ndarray
    width: int
    height: int

    @staticmethod
    def from_array(arr: np.ndarray) -> "MaskData":
        grid = np.asarray(arr, dtype=np.float32)
        if grid.ndim != 2:
            raise ValueError(f"Mask must be 2-D, got shape {grid.shape}")
        h, w = grid.shape
        return MaskData(data=grid.reshape(-1), width=int(w), height=int(h))

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0 or self.data.size == 0

    def as_grid(self) -> Optional[np.ndarray]:
        if self.is_empty or self.data.size != self.width * self.height:
            return None
        return np.asarray(self.data, dtype=np.float32).reshape(self.height, self.width)
