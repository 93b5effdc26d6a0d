from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

from ..models.landmarks import LM, Landmark, WorldLandmark, both_visible, is_visible, world_landmarks_or_none
from ..tuning import SCALE_NOSE_TO_HIPS, SCALE_SHOULDER_WIDTH, WORLD_HEIGHT_MIN_M
from .geometry import dist, estimate_body_geometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorldMeasurements:
    shoulder_width_m: float = 0.0
    hip_width_m: float = 0.0
    body_height_m: float = 0.0
    # Centimeter fields are 0 when uncalibrated, never "measured zero".
    shoulder_width_cm: float = 0.0
    hip_width_cm: float = 0.0
    body_height_cm: float = 0.0
    calibration_factor: Optional[float] = None


@dataclass(frozen=True)
class Measurements:
    shoulder_width_px: float
    hip_width_px: float
    body_height_px: float
    shoulder_index: float
    hip_index: float
    v_taper_index: float
    shoulder_width_m: float = 0.0
    hip_width_m: float = 0.0
    body_height_m: float = 0.0
    shoulder_width_cm: float = 0.0
    hip_width_cm: float = 0.0
    body_height_cm: float = 0.0
    calibration_factor: Optional[float] = None

    @property
    def calibrated(self) -> bool:
        return self.calibration_factor is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _dist3(a: WorldLandmark, b: WorldLandmark) -> float:
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2 + (a.z - b.z) ** 2)


def calibration_factor(user_height_cm: Optional[float], body_height_m: float) -> Optional[float]:
    if not user_height_cm or user_height_cm <= 0 or body_height_m <= WORLD_HEIGHT_MIN_M:
        return None
    return (float(user_height_cm) / 100.0) / body_height_m


def calibrated_cm(value_m: float, factor: Optional[float]) -> float:
    if factor is None:
        return 0.0
    return value_m * factor * 100.0


def compute_world_measurements(
    world_landmarks: Optional[Sequence[WorldLandmark]],
    user_height_cm: Optional[float] = None,
) -> Optional[WorldMeasurements]:
    world = world_landmarks_or_none(world_landmarks)
    if world is None or not both_visible(world, LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER):
        return None

    shoulder_width_m = _dist3(world[LM.LEFT_SHOULDER], world[LM.RIGHT_SHOULDER])
    has_hips = both_visible(world, LM.LEFT_HIP, LM.RIGHT_HIP)
    hip_width_m = _dist3(world[LM.LEFT_HIP], world[LM.RIGHT_HIP]) if has_hips else 0.0

    # Height is the vertical extent in meters, with the same anatomical
    # fallbacks as the pixel-space estimator.
    nose = world[LM.NOSE]
    if is_visible(nose) and both_visible(world, LM.LEFT_ANKLE, LM.RIGHT_ANKLE):
        ankle_mid_y = (world[LM.LEFT_ANKLE].y + world[LM.RIGHT_ANKLE].y) / 2.0
        body_height_m = abs(nose.y - ankle_mid_y)
    elif is_visible(nose) and has_hips:
        hip_mid_y = (world[LM.LEFT_HIP].y + world[LM.RIGHT_HIP].y) / 2.0
        body_height_m = abs(nose.y - hip_mid_y) * SCALE_NOSE_TO_HIPS
    else:
        body_height_m = shoulder_width_m * SCALE_SHOULDER_WIDTH

    factor = calibration_factor(user_height_cm, body_height_m)
    return WorldMeasurements(
        shoulder_width_m=shoulder_width_m,
        hip_width_m=hip_width_m,
        body_height_m=body_height_m,
        shoulder_width_cm=calibrated_cm(shoulder_width_m, factor),
        hip_width_cm=calibrated_cm(hip_width_m, factor),
        body_height_cm=calibrated_cm(body_height_m, factor),
        calibration_factor=factor,
    )


def compute_measurements(
    landmarks: Optional[Sequence[Landmark]],
    width: float,
    height: float,
    world_landmarks: Optional[Sequence[WorldLandmark]] = None,
    user_height_cm: Optional[float] = None,
) -> Optional[Measurements]:
    """Pixel, metric and calibrated body widths plus physique indices.

    Pixel indices are always computed; world-derived indices replace them
    when world landmarks are available since they do not depend on camera
    distance.
    """
    if not both_visible(landmarks, LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER):
        return None
    geo = estimate_body_geometry(landmarks, width, height)
    if geo is None:
        return None

    shoulder_width_px = dist(
        landmarks[LM.LEFT_SHOULDER].to_pixel(width, height),
        landmarks[LM.RIGHT_SHOULDER].to_pixel(width, height),
    )
    hip_width_px = 0.0
    if both_visible(landmarks, LM.LEFT_HIP, LM.RIGHT_HIP):
        hip_width_px = dist(
            landmarks[LM.LEFT_HIP].to_pixel(width, height),
            landmarks[LM.RIGHT_HIP].to_pixel(width, height),
        )
    body_height_px = geo.scale

    shoulder_index = shoulder_width_px / body_height_px if body_height_px > 0 else 0.0
    hip_index = hip_width_px / body_height_px if body_height_px > 0 else 0.0
    v_taper_index = shoulder_width_px / hip_width_px if hip_width_px > 0 else 0.0

    wm = compute_world_measurements(world_landmarks, user_height_cm) or WorldMeasurements()
    if wm.shoulder_width_m > 0 and wm.body_height_m > WORLD_HEIGHT_MIN_M:
        shoulder_index = wm.shoulder_width_m / wm.body_height_m
    if wm.hip_width_m > 0 and wm.body_height_m > WORLD_HEIGHT_MIN_M:
        hip_index = wm.hip_width_m / wm.body_height_m
    if wm.shoulder_width_m > 0 and wm.hip_width_m > 0:
        v_taper_index = wm.shoulder_width_m / wm.hip_width_m
    if wm.body_height_m <= 0:
        logger.debug("No world measurements; using pixel indices (tier=%s)", geo.quality_tier)

    return Measurements(
        shoulder_width_px=shoulder_width_px,
        hip_width_px=hip_width_px,
        body_height_px=body_height_px,
        shoulder_index=shoulder_index,
        hip_index=hip_index,
        v_taper_index=v_taper_index,
        shoulder_width_m=wm.shoulder_width_m,
        hip_width_m=wm.hip_width_m,
        body_height_m=wm.body_height_m,
        shoulder_width_cm=wm.shoulder_width_cm,
        hip_width_cm=wm.hip_width_cm,
        body_height_cm=wm.body_height_cm,
        calibration_factor=wm.calibration_factor,
    )
