from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from ..metrics.geometry import estimate_body_geometry
from ..models.landmarks import Landmark, is_visible, landmark_at
from ..tuning import ALIGNMENT_MAX_JOINT_WEIGHT, ALIGNMENT_MIN_JOINTS, ALIGNMENT_PARTIAL_SCORE, Tuning, resolve_tuning
from ..utils.numeric import clamp
from .library import PoseTemplate


@dataclass(frozen=True)
class AlignmentError:
    avg_error: float
    matched: int


def alignment_error(
    landmarks: Optional[Sequence[Landmark]],
    template: PoseTemplate,
    width: float,
    height: float,
) -> Optional[AlignmentError]:
    """Weighted mean distance between normalized joints and template targets.

    Joints are normalized as (pixel - center) / scale using the body geometry
    estimate. Each joint weight is capped so no single joint dominates.
    """
    geo = estimate_body_geometry(landmarks, width, height)
    if geo is None:
        return None

    total_error = 0.0
    total_weight = 0.0
    matched = 0
    for idx in template.required_joints:
        lm = landmark_at(landmarks, idx)
        target = template.targets.get(idx)
        if not is_visible(lm) or target is None:
            continue
        w = min(template.weights.get(idx, 1.0), ALIGNMENT_MAX_JOINT_WEIGHT)
        px = lm.to_pixel(width, height)
        nx = (px.x - geo.center.x) / geo.scale
        ny = (px.y - geo.center.y) / geo.scale
        total_error += math.hypot(nx - target[0], ny - target[1]) * w
        total_weight += w
        matched += 1

    avg = total_error / total_weight if total_weight > 0 else 0.0
    return AlignmentError(avg_error=avg, matched=matched)


def compute_alignment(
    landmarks: Optional[Sequence[Landmark]],
    template: PoseTemplate,
    width: float,
    height: float,
    tuning: Optional[Tuning] = None,
) -> float:
    t = resolve_tuning(tuning)
    err = alignment_error(landmarks, template, width, height)
    if err is None:
        return 0.0
    if err.matched < ALIGNMENT_MIN_JOINTS:
        # something detected, but too little to compare
        return ALIGNMENT_PARTIAL_SCORE if err.matched > 0 else 0.0
    return clamp(100.0 - err.avg_error * t.alignment_k)
