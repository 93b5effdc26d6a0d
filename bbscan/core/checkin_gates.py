"""Check-in validation.

A capture counts as a check-in only when it is comparable to the previous
check-in of the same pose: required joints clearly visible (A), standing
upright (B), framed like last time (C), and not on the same day (D).
Prior records are passed in by the caller; nothing here reads a store.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..metrics.pose_features import detect_standing
from ..models.landmarks import LM, Landmark, joint_name, landmark_at
from ..models.records import ScanRecord
from ..tuning import Tuning, resolve_tuning
from ..utils.numeric import angle_diff_deg
from ..utils.time import days_since

logger = logging.getLogger(__name__)

FRONT_REQUIRED: Tuple[int, ...] = (
    LM.NOSE,
    LM.LEFT_SHOULDER,
    LM.RIGHT_SHOULDER,
    LM.LEFT_HIP,
    LM.RIGHT_HIP,
    LM.LEFT_KNEE,
    LM.RIGHT_KNEE,
    LM.LEFT_ANKLE,
    LM.RIGHT_ANKLE,
)
BACK_REQUIRED: Tuple[int, ...] = FRONT_REQUIRED


def required_joints(pose_type: str) -> Tuple[int, ...]:
    if pose_type == "back-checkin":
        return BACK_REQUIRED
    return FRONT_REQUIRED


@dataclass(frozen=True)
class JointVisibilityGate:
    passed: bool
    missing_joints: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class StandingGate:
    passed: bool
    reason: str = ""


@dataclass(frozen=True)
class ConsistencyDetails:
    scale_match: bool = True
    stance_match: bool = True
    hip_tilt_match: bool = True
    # None when the prior record carries no luma to compare against.
    brightness_match: Optional[bool] = True

    def adjustments(self) -> List[str]:
        out: List[str] = []
        if not self.scale_match:
            out.append("distance from camera")
        if not self.stance_match:
            out.append("foot placement")
        if not self.hip_tilt_match:
            out.append("hip alignment")
        if self.brightness_match is False:
            out.append("lighting")
        return out


@dataclass(frozen=True)
class ConsistencyGate:
    passed: bool
    score: float
    details: ConsistencyDetails = field(default_factory=ConsistencyDetails)
    brightness_verified: bool = False


@dataclass(frozen=True)
class TimeGate:
    warning: bool = False
    same_day_block: bool = False
    days_since_last_checkin: Optional[int] = None


@dataclass(frozen=True)
class CheckinGateResult:
    gate_a: JointVisibilityGate
    gate_b: StandingGate
    gate_c: ConsistencyGate
    gate_d: TimeGate

    @property
    def all_passed(self) -> bool:
        return self.gate_a.passed and self.gate_b.passed and self.gate_c.passed and not self.gate_d.same_day_block

    def reasons(self) -> List[str]:
        out: List[str] = []
        if not self.gate_a.passed:
            out.append(f"Missing joints: {', '.join(self.gate_a.missing_joints)}")
        if not self.gate_b.passed:
            out.append(self.gate_b.reason)
        if not self.gate_c.passed:
            adjust = self.gate_c.details.adjustments()
            if adjust:
                out.append(f"Check-in inconsistent: adjust {', '.join(adjust)}")
        if self.gate_d.same_day_block:
            out.append("Already checked in today: save as Gallery or wait until tomorrow")
        elif self.gate_d.warning and self.gate_d.days_since_last_checkin is not None:
            out.append(
                f"Only {self.gate_d.days_since_last_checkin}d since last check-in: wait 7 days for best comparison"
            )
        return out

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["all_passed"] = self.all_passed
        return out


def check_joint_visibility(
    landmarks: Optional[Sequence[Landmark]],
    pose_type: str,
    tuning: Optional[Tuning] = None,
) -> JointVisibilityGate:
    t = resolve_tuning(tuning)
    missing = []
    for idx in required_joints(pose_type):
        lm = landmark_at(landmarks, idx)
        if lm is None or lm.visibility < t.gate_visibility_min:
            missing.append(joint_name(idx))
    return JointVisibilityGate(passed=not missing, missing_joints=missing)


def check_standing(
    landmarks: Optional[Sequence[Landmark]],
    width: float,
    height: float,
    tuning: Optional[Tuning] = None,
) -> StandingGate:
    res = detect_standing(landmarks, width, height, tuning)
    return StandingGate(passed=res.standing, reason=res.reason)


def check_consistency(
    body_height_px: float,
    stance_width_px: float,
    hip_tilt_deg: float,
    prev: Optional[ScanRecord],
    avg_brightness: Optional[float] = None,
    tuning: Optional[Tuning] = None,
) -> ConsistencyGate:
    """Compare framing against a prior record; each agreeing signal is worth 25.

    Stance is compared as stance width over body height so that it tracks
    foot placement rather than camera distance. A signal that cannot be
    measured on either side counts as agreeing.
    """
    t = resolve_tuning(tuning)
    if prev is None:
        return ConsistencyGate(passed=True, score=100.0)

    scale_match = True
    if prev.body_height_px > 0 and body_height_px > 0:
        scale_match = abs(body_height_px - prev.body_height_px) / prev.body_height_px <= t.consistency_scale_tol

    stance_match = True
    if prev.stance_width_index > 0 and stance_width_px > 0 and body_height_px > 0:
        stance_index = stance_width_px / body_height_px
        stance_match = (
            abs(stance_index - prev.stance_width_index) / prev.stance_width_index <= t.consistency_stance_tol
        )

    hip_tilt_match = abs(angle_diff_deg(hip_tilt_deg, prev.hip_tilt_deg or 0.0)) <= t.consistency_hip_tilt_tol_deg

    brightness_match: Optional[bool] = None
    verified = prev.avg_brightness is not None and avg_brightness is not None
    if verified:
        brightness_match = abs(avg_brightness - prev.avg_brightness) <= t.consistency_luma_tol
    else:
        logger.debug("Brightness consistency not verified (no luma on prior record or capture)")

    details = ConsistencyDetails(
        scale_match=scale_match,
        stance_match=stance_match,
        hip_tilt_match=hip_tilt_match,
        brightness_match=brightness_match,
    )
    # unverified brightness still earns its share
    passes = sum(1 for m in (scale_match, stance_match, hip_tilt_match) if m)
    passes += 0 if brightness_match is False else 1
    score = passes / 4.0 * 100.0
    return ConsistencyGate(
        passed=score >= t.consistency_pass_score,
        score=score,
        details=details,
        brightness_verified=verified,
    )


def check_time_gate(
    prev: Optional[ScanRecord],
    now: Optional[datetime] = None,
    tuning: Optional[Tuning] = None,
) -> TimeGate:
    t = resolve_tuning(tuning)
    if prev is None:
        return TimeGate()
    days = days_since(prev.timestamp, now)
    return TimeGate(
        warning=1.0 <= days < t.checkin_warn_days,
        same_day_block=days < 1.0,
        days_since_last_checkin=int(math.floor(days)),
    )


def run_checkin_gates(
    landmarks: Optional[Sequence[Landmark]],
    width: float,
    height: float,
    pose_type: str,
    body_height_px: float,
    stance_width_px: float,
    hip_tilt_deg: float,
    prev_checkin: Optional[ScanRecord],
    avg_brightness: Optional[float] = None,
    now: Optional[datetime] = None,
    tuning: Optional[Tuning] = None,
) -> CheckinGateResult:
    result = CheckinGateResult(
        gate_a=check_joint_visibility(landmarks, pose_type, tuning),
        gate_b=check_standing(landmarks, width, height, tuning),
        gate_c=check_consistency(body_height_px, stance_width_px, hip_tilt_deg, prev_checkin, avg_brightness, tuning),
        gate_d=check_time_gate(prev_checkin, now, tuning),
    )
    logger.debug("Check-in gates for %s: all_passed=%s", pose_type, result.all_passed)
    return result
