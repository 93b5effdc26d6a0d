from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from ..models.landmarks import LM, Landmark, Point2D, both_visible, is_visible, landmark_at
from ..tuning import (
    MIN_BODY_SCALE_PX,
    SCALE_NOSE_TO_HIPS,
    SCALE_NOSE_TO_SHOULDERS,
    SCALE_SHOULDER_WIDTH,
    SCALE_SHOULDERS_TO_ANKLES,
    SCALE_SHOULDERS_TO_HIPS,
)

logger = logging.getLogger(__name__)

QualityTier = Literal["full", "upper", "torso", "head"]
BodyVisibility = Literal["full", "upper", "partial", "none"]


@dataclass(frozen=True)
class BodyGeometry:
    center: Point2D
    # Estimated full body height in pixels.
    scale: float
    quality_tier: QualityTier


def dist(a: Point2D, b: Point2D) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def midpoint(a: Point2D, b: Point2D) -> Point2D:
    return Point2D((a.x + b.x) / 2.0, (a.y + b.y) / 2.0)


def pixel_midpoint(landmarks: Sequence[Landmark], left: int, right: int, width: float, height: float) -> Point2D:
    return midpoint(landmarks[left].to_pixel(width, height), landmarks[right].to_pixel(width, height))


def estimate_body_geometry(
    landmarks: Optional[Sequence[Landmark]],
    width: float,
    height: float,
) -> Optional[BodyGeometry]:
    """Body center and height scale from whatever joints are visible.

    Center is the hip midpoint when both hips are visible, else the shoulder
    midpoint. Scale walks a fallback chain from nose-to-ankles (best) down to
    shoulder width (worst). Needs both shoulders; returns None otherwise or
    when the estimated height is degenerate.
    """
    if not both_visible(landmarks, LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER):
        return None

    has_nose = is_visible(landmark_at(landmarks, LM.NOSE))
    has_hips = both_visible(landmarks, LM.LEFT_HIP, LM.RIGHT_HIP)
    has_ankles = both_visible(landmarks, LM.LEFT_ANKLE, LM.RIGHT_ANKLE)

    ls = landmarks[LM.LEFT_SHOULDER].to_pixel(width, height)
    rs = landmarks[LM.RIGHT_SHOULDER].to_pixel(width, height)
    shoulder_mid = midpoint(ls, rs)
    hip_mid = pixel_midpoint(landmarks, LM.LEFT_HIP, LM.RIGHT_HIP, width, height) if has_hips else None
    center = hip_mid if hip_mid is not None else shoulder_mid
    nose = landmarks[LM.NOSE].to_pixel(width, height) if has_nose else None

    tier: QualityTier
    if has_ankles:
        ankle_mid = pixel_midpoint(landmarks, LM.LEFT_ANKLE, LM.RIGHT_ANKLE, width, height)
        if nose is not None:
            scale = dist(nose, ankle_mid)
        else:
            scale = dist(shoulder_mid, ankle_mid) * SCALE_SHOULDERS_TO_ANKLES
        tier = "full"
    elif hip_mid is not None and nose is not None:
        scale = dist(nose, hip_mid) * SCALE_NOSE_TO_HIPS
        tier = "upper"
    elif hip_mid is not None:
        scale = dist(shoulder_mid, hip_mid) * SCALE_SHOULDERS_TO_HIPS
        tier = "torso"
    elif nose is not None:
        scale = dist(nose, shoulder_mid) * SCALE_NOSE_TO_SHOULDERS
        tier = "head"
    else:
        scale = dist(ls, rs) * SCALE_SHOULDER_WIDTH
        tier = "head"

    if not math.isfinite(scale) or scale <= MIN_BODY_SCALE_PX:
        logger.debug("Degenerate body scale %.2fpx (tier=%s)", scale, tier)
        return None
    return BodyGeometry(center=center, scale=float(scale), quality_tier=tier)


def body_visibility(landmarks: Optional[Sequence[Landmark]]) -> BodyVisibility:
    if not both_visible(landmarks, LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER):
        return "none"
    if both_visible(landmarks, LM.LEFT_ANKLE, LM.RIGHT_ANKLE):
        return "full"
    if both_visible(landmarks, LM.LEFT_HIP, LM.RIGHT_HIP):
        return "upper"
    return "partial"
