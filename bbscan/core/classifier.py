from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence

from ..metrics.pose_features import detect_standing
from ..models.landmarks import LM, Landmark, both_visible, is_visible, landmark_at
from ..tuning import (
    CHECKIN_FULL_MIN_LIGHTING,
    CHECKIN_FULL_MIN_POSE_MATCH,
    CHECKIN_SELFIE_MIN_LIGHTING,
    CLASSIFIER_VISIBILITY_MIN,
    DIRECTION_BACK_NOSE_MAX,
    DIRECTION_FRONT_NOSE_MIN,
    MAX_TIPS,
    TIP_MIN_FRAMING,
    TIP_MIN_LIGHTING,
    Tuning,
)
from ..utils.numeric import clamp, round_half_up
from ..vision.brightness import lighting_score

ScanCategory = Literal["CHECKIN_FULL", "CHECKIN_SELFIE", "GALLERY"]
PoseDirection = Literal["FRONT", "BACK", "UNKNOWN"]

TIP_STEP_BACK = "Step back until your feet are visible for a full check-in."
TIP_STAND_UPRIGHT = "Stand upright with straight legs for best tracking."
TIP_LIGHTING = "Move to brighter light or face the light source."
TIP_FRAMING = "Center yourself in the frame with some margin around your body."


@dataclass(frozen=True)
class VisibleParts:
    nose: bool
    shoulders: bool
    hips: bool
    knees: bool
    ankles: bool

    @property
    def full_body(self) -> bool:
        return self.shoulders and self.hips and self.knees and self.ankles


def visible_parts(landmarks: Optional[Sequence[Landmark]]) -> VisibleParts:
    vis = CLASSIFIER_VISIBILITY_MIN
    return VisibleParts(
        nose=is_visible(landmark_at(landmarks, LM.NOSE), vis),
        shoulders=both_visible(landmarks, LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER, vis),
        hips=both_visible(landmarks, LM.LEFT_HIP, LM.RIGHT_HIP, vis),
        knees=both_visible(landmarks, LM.LEFT_KNEE, LM.RIGHT_KNEE, vis),
        ankles=both_visible(landmarks, LM.LEFT_ANKLE, LM.RIGHT_ANKLE, vis),
    )


@dataclass(frozen=True)
class AnalysisScores:
    quality: int
    lighting: int
    framing: int
    pose_match: int


@dataclass(frozen=True)
class ClassificationResult:
    category: ScanCategory
    pose_direction: PoseDirection
    scores: AnalysisScores
    tracked_regions: List[str] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def detect_pose_direction(landmarks: Optional[Sequence[Landmark]]) -> PoseDirection:
    # A confidently seen nose means facing the camera; no nose with visible
    # shoulders means facing away.
    if not both_visible(landmarks, LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER, CLASSIFIER_VISIBILITY_MIN):
        return "UNKNOWN"
    nose = landmark_at(landmarks, LM.NOSE)
    if nose is not None and nose.visibility > DIRECTION_FRONT_NOSE_MIN:
        return "FRONT"
    if nose is None or nose.visibility < DIRECTION_BACK_NOSE_MAX:
        return "BACK"
    return "UNKNOWN"


def framing_score(landmarks: Sequence[Landmark], width: float, height: float, parts: VisibleParts) -> float:
    """0-100: centered body with margins, head and feet in frame."""
    if not parts.shoulders:
        return 20.0
    score = 50.0
    ls, rs = landmarks[LM.LEFT_SHOULDER], landmarks[LM.RIGHT_SHOULDER]
    if parts.hips:
        center_x = (landmarks[LM.LEFT_HIP].x + landmarks[LM.RIGHT_HIP].x) / 2.0 * width
    else:
        center_x = (ls.x + rs.x) / 2.0 * width

    offset = abs(center_x - width / 2.0) / (width / 2.0) if width > 0 else 1.0
    if offset < 0.2:
        score += 25
    elif offset < 0.35:
        score += 15
    else:
        score -= 10

    if not parts.nose:
        score -= 10
    elif landmarks[LM.NOSE].y < 0.03:
        score -= 15  # head nearly cut off

    if min(ls.x, rs.x) > 0.05 and max(ls.x, rs.x) < 0.95:
        score += 10
    else:
        score -= 10

    if parts.full_body:
        score += 15
    elif parts.hips:
        score += 5
    return clamp(score)


def classify_photo(
    landmarks: Optional[Sequence[Landmark]],
    width: float,
    height: float,
    avg_brightness: float,
    alignment_score: float,
    tuning: Optional[Tuning] = None,
) -> ClassificationResult:
    """Sort a capture into full check-in, upper-body check-in or gallery."""
    landmarks = landmarks or []
    parts = visible_parts(landmarks)
    standing = parts.full_body and detect_standing(landmarks, width, height, tuning).standing

    lighting = round_half_up(lighting_score(avg_brightness))
    framing = round_half_up(framing_score(landmarks, width, height, parts))
    pose_match = round_half_up(min(100.0, alignment_score))
    bonus = 15 if parts.full_body else 8 if parts.hips else 0
    quality = round_half_up(lighting * 0.25 + framing * 0.35 + pose_match * 0.25 + bonus)

    category: ScanCategory
    regions: List[str] = []
    if (
        parts.full_body
        and standing
        and lighting >= CHECKIN_FULL_MIN_LIGHTING
        and pose_match >= CHECKIN_FULL_MIN_POSE_MATCH
    ):
        category = "CHECKIN_FULL"
        regions = ["Full body", "Shoulders", "Torso", "Legs"]
    elif parts.shoulders and parts.hips and lighting >= CHECKIN_SELFIE_MIN_LIGHTING:
        category = "CHECKIN_SELFIE"
        regions = ["Upper body", "Shoulders", "Torso proportions"]
    else:
        category = "GALLERY"

    tips: List[str] = []
    if category != "CHECKIN_FULL":
        if not parts.ankles or not parts.knees:
            tips.append(TIP_STEP_BACK)
        if parts.full_body and not standing:
            tips.append(TIP_STAND_UPRIGHT)
    if lighting < TIP_MIN_LIGHTING and len(tips) < MAX_TIPS:
        tips.append(TIP_LIGHTING)
    if framing < TIP_MIN_FRAMING and len(tips) < MAX_TIPS:
        tips.append(TIP_FRAMING)

    return ClassificationResult(
        category=category,
        pose_direction=detect_pose_direction(landmarks),
        scores=AnalysisScores(quality=quality, lighting=lighting, framing=framing, pose_match=pose_match),
        tracked_regions=regions,
        tips=tips[:MAX_TIPS],
    )
