from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

from ..metrics.measurements import Measurements
from ..models.landmarks import Landmark, is_visible, landmark_at
from ..tuning import (
    DISTANCE_RATIO_HIGH,
    DISTANCE_RATIO_LOW,
    LIVE_WEIGHTS,
    PHOTO_WEIGHTS,
    SHOULDER_FALLBACK_MAX,
    SHOULDER_RATIO_HIGH,
    SHOULDER_RATIO_LOW,
    SHOULDER_RATIO_REF,
)
from ..utils.numeric import clamp, round1
from ..vision.brightness import brightness_score


@dataclass(frozen=True)
class ConfidenceBreakdown:
    landmarks_visible: float
    brightness: float
    distance: float
    pose_match: float
    # Photo mode only.
    segmentation_quality: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        if self.segmentation_quality is None:
            out.pop("segmentation_quality")
        return out


@dataclass(frozen=True)
class ConfidenceResult:
    total: float
    breakdown: ConfidenceBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "breakdown": self.breakdown.to_dict()}


def _visible_fraction(landmarks: Optional[Sequence[Landmark]], required: Sequence[int]) -> float:
    if not required:
        return 0.0
    count = sum(1 for idx in required if is_visible(landmark_at(landmarks, idx)))
    return count / len(required)


def distance_score(body_height_px: float, frame_height: float) -> float:
    """0..20: body should fill 40-90% of the frame height."""
    if body_height_px <= 0 or frame_height <= 0:
        return 0.0
    ratio = body_height_px / frame_height
    cap = LIVE_WEIGHTS["distance"]
    if DISTANCE_RATIO_LOW <= ratio <= DISTANCE_RATIO_HIGH:
        return cap
    if ratio < DISTANCE_RATIO_LOW:
        return clamp(ratio / DISTANCE_RATIO_LOW * cap, 0.0, cap)
    return clamp((1.0 - ratio) / (1.0 - DISTANCE_RATIO_HIGH) * cap, 0.0, cap)


def shoulder_distance_score(shoulder_width_px: float, frame_width: float) -> float:
    if shoulder_width_px <= 0 or frame_width <= 0:
        return 0.0
    ratio = shoulder_width_px / frame_width
    if SHOULDER_RATIO_LOW <= ratio <= SHOULDER_RATIO_HIGH:
        return SHOULDER_FALLBACK_MAX
    return clamp(ratio / SHOULDER_RATIO_REF * SHOULDER_FALLBACK_MAX, 0.0, SHOULDER_FALLBACK_MAX)


def compute_live_confidence(
    landmarks: Optional[Sequence[Landmark]],
    required_joints: Sequence[int],
    alignment_score: float,
    avg_luma: float,
    measurements: Optional[Measurements],
    frame_width: float,
    frame_height: float,
) -> ConfidenceResult:
    w = LIVE_WEIGHTS
    visible = _visible_fraction(landmarks, required_joints) * w["landmarks_visible"]
    bright = brightness_score(avg_luma)
    dist = 0.0
    if measurements is not None:
        if measurements.body_height_px > 0:
            dist = distance_score(measurements.body_height_px, frame_height)
        elif measurements.shoulder_width_px > 0:
            dist = shoulder_distance_score(measurements.shoulder_width_px, frame_width)
    pose = alignment_score / 100.0 * w["pose_match"]

    breakdown = ConfidenceBreakdown(
        landmarks_visible=round1(visible),
        brightness=round1(bright),
        distance=round1(dist),
        pose_match=round1(pose),
    )
    return ConfidenceResult(total=clamp(visible + bright + dist + pose), breakdown=breakdown)


def compute_photo_confidence(
    landmarks: Optional[Sequence[Landmark]],
    required_joints: Sequence[int],
    alignment_score: float,
    avg_luma: float,
    body_height_px: float,
    frame_height: float,
    segmentation_quality: float,
) -> ConfidenceResult:
    """Photo variant: 10 pose-match points go to segmentation quality."""
    w = PHOTO_WEIGHTS
    visible = _visible_fraction(landmarks, required_joints) * w["landmarks_visible"]
    bright = brightness_score(avg_luma)
    dist = distance_score(body_height_px, frame_height)
    pose = alignment_score / 100.0 * w["pose_match"]
    seg = segmentation_quality / 100.0 * w["segmentation_quality"]

    breakdown = ConfidenceBreakdown(
        landmarks_visible=round1(visible),
        brightness=round1(bright),
        distance=round1(dist),
        pose_match=round1(pose),
        segmentation_quality=round1(seg),
    )
    return ConfidenceResult(total=clamp(visible + bright + dist + pose + seg), breakdown=breakdown)


_LIVE_TIPS = (
    ("brightness", "Improve lighting: move to a brighter area"),
    ("distance", "Step back: show your full body in frame"),
    ("landmarks_visible", "Show your full body: some joints aren't visible"),
    ("pose_match", "Align to the outline: match the pose template"),
)


def generate_tip(breakdown: ConfidenceBreakdown) -> str:
    """Tip for the weakest live-confidence dimension, relative to its cap."""
    ratios = [(getattr(breakdown, key) / LIVE_WEIGHTS[key], tip) for key, tip in _LIVE_TIPS]
    # min() keeps the first of equal ratios
    return min(ratios, key=lambda r: r[0])[1]
