from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..models.landmarks import LM, Landmark, landmark_at
from ..tuning import Tuning, VISIBILITY_MIN, resolve_tuning


def _angle(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
    # angle ABC in degrees; a collapsed limb counts as straight
    ba = a - b
    bc = c - b
    denom = np.linalg.norm(ba) * np.linalg.norm(bc)
    if denom < 1e-8:
        return 180.0
    cosang = float(np.clip(np.dot(ba, bc) / denom, -1.0, 1.0))
    return math.degrees(math.acos(cosang))


def _px(lm: Landmark, width: float, height: float) -> np.ndarray:
    return np.array([lm.x * width, lm.y * height], dtype=float)


def leg_angle(hip: Landmark, knee: Landmark, ankle: Landmark, width: float, height: float) -> float:
    return _angle(_px(hip, width, height), _px(knee, width, height), _px(ankle, width, height))


def torso_lean_deg(landmarks: Sequence[Landmark], width: float, height: float) -> Optional[float]:
    """Angle between the hip-mid -> shoulder-mid line and vertical."""
    joints = [landmark_at(landmarks, i) for i in (LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER, LM.LEFT_HIP, LM.RIGHT_HIP)]
    if any(j is None for j in joints):
        return None
    ls, rs, lh, rh = joints
    mid_sh = 0.5 * (_px(ls, width, height) + _px(rs, width, height))
    mid_hip = 0.5 * (_px(lh, width, height) + _px(rh, width, height))
    torso_height = mid_hip[1] - mid_sh[1]
    if torso_height <= 0:
        return None
    return abs(math.degrees(math.atan2(mid_sh[0] - mid_hip[0], torso_height)))


def tilt_deg(landmarks: Sequence[Landmark], left_idx: int, right_idx: int, width: float, height: float) -> float:
    """Tilt of the left->right joint line in degrees; 0 when either is unseen."""
    left = landmark_at(landmarks, left_idx)
    right = landmark_at(landmarks, right_idx)
    if left is None or right is None or left.visibility < VISIBILITY_MIN or right.visibility < VISIBILITY_MIN:
        return 0.0
    dx = (right.x - left.x) * width
    dy = (right.y - left.y) * height
    return math.degrees(math.atan2(dy, dx))


def stance_width_px(landmarks: Sequence[Landmark], width: float, height: float) -> float:
    la = landmark_at(landmarks, LM.LEFT_ANKLE)
    ra = landmark_at(landmarks, LM.RIGHT_ANKLE)
    if la is None or ra is None or la.visibility < VISIBILITY_MIN or ra.visibility < VISIBILITY_MIN:
        return 0.0
    return float(np.linalg.norm(_px(la, width, height) - _px(ra, width, height)))


@dataclass(frozen=True)
class StandingCheck:
    standing: bool
    reason: str = ""
    leg_angle_deg: Optional[float] = None
    lean_deg: Optional[float] = None


def detect_standing(
    landmarks: Sequence[Landmark],
    width: float,
    height: float,
    tuning: Optional[Tuning] = None,
) -> StandingCheck:
    """Upright stance: ankles below knees below hips, straight legs, low lean."""
    t = resolve_tuning(tuning)
    idx = (LM.LEFT_HIP, LM.RIGHT_HIP, LM.LEFT_KNEE, LM.RIGHT_KNEE, LM.LEFT_ANKLE, LM.RIGHT_ANKLE)
    joints = [landmark_at(landmarks, i) for i in idx]
    if any(j is None for j in joints):
        return StandingCheck(False, "Missing lower-body joints")
    lh, rh, lk, rk, la, ra = joints

    hip_y = (lh.y + rh.y) / 2.0 * height
    knee_y = (lk.y + rk.y) / 2.0 * height
    ankle_y = (la.y + ra.y) / 2.0 * height
    tol = t.standing_tolerance_px
    if not (ankle_y > knee_y - tol and knee_y > hip_y - tol):
        return StandingCheck(False, "Not standing upright: ankles should be below knees and hips")

    avg_angle = (leg_angle(lh, lk, la, width, height) + leg_angle(rh, rk, ra, width, height)) / 2.0
    if avg_angle < t.standing_leg_angle_min_deg:
        return StandingCheck(False, "Legs not straight: stand upright with straight legs", leg_angle_deg=avg_angle)

    lean = torso_lean_deg(landmarks, width, height)
    if lean is not None and lean > t.standing_lean_max_deg:
        return StandingCheck(False, "Leaning too much: stand straight", leg_angle_deg=avg_angle, lean_deg=lean)

    return StandingCheck(True, "", leg_angle_deg=avg_angle, lean_deg=lean)
