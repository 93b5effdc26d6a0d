from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..models.landmarks import LM

# Target coordinates are hip-centered and normalized by body height:
# y is negative above the hips. Views are mirrored (selfie camera), so the
# subject's left side sits at negative x, on the image left.

ALL_BODY_JOINTS: Tuple[int, ...] = (
    LM.NOSE,
    LM.LEFT_SHOULDER,
    LM.RIGHT_SHOULDER,
    LM.LEFT_ELBOW,
    LM.RIGHT_ELBOW,
    LM.LEFT_WRIST,
    LM.RIGHT_WRIST,
    LM.LEFT_HIP,
    LM.RIGHT_HIP,
    LM.LEFT_KNEE,
    LM.RIGHT_KNEE,
    LM.LEFT_ANKLE,
    LM.RIGHT_ANKLE,
)

DEFAULT_WEIGHTS: Dict[int, float] = {
    LM.NOSE: 0.5,
    LM.LEFT_SHOULDER: 1.0,
    LM.RIGHT_SHOULDER: 1.0,
    LM.LEFT_ELBOW: 1.2,
    LM.RIGHT_ELBOW: 1.2,
    LM.LEFT_WRIST: 1.0,
    LM.RIGHT_WRIST: 1.0,
    LM.LEFT_HIP: 0.8,
    LM.RIGHT_HIP: 0.8,
    LM.LEFT_KNEE: 0.5,
    LM.RIGHT_KNEE: 0.5,
    LM.LEFT_ANKLE: 0.3,
    LM.RIGHT_ANKLE: 0.3,
}


@dataclass(frozen=True)
class PoseTemplate:
    id: str
    name: str
    required_joints: Tuple[int, ...]
    weights: Dict[int, float]
    targets: Dict[int, Tuple[float, float]]
    guidance: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        missing = [j for j in self.required_joints if j not in self.weights or j not in self.targets]
        if missing:
            raise ValueError(f"Template {self.id!r} lacks weight/target for joints {missing}")


def _weights(**overrides: float) -> Dict[int, float]:
    out = dict(DEFAULT_WEIGHTS)
    for side in ("LEFT", "RIGHT"):
        for joint, w in overrides.items():
            out[getattr(LM, f"{side}_{joint.upper()}")] = w
    return out


def _mirrored(nose_x: float, nose_y: float, **pairs: Tuple[float, float, float, float]) -> Dict[int, Tuple[float, float]]:
    # pairs: joint -> (left_x, left_y, right_x, right_y)
    out: Dict[int, Tuple[float, float]] = {LM.NOSE: (nose_x, nose_y)}
    for joint, (lx, ly, rx, ry) in pairs.items():
        out[getattr(LM, f"LEFT_{joint.upper()}")] = (lx, ly)
        out[getattr(LM, f"RIGHT_{joint.upper()}")] = (rx, ry)
    return out


POSE_TEMPLATES: Dict[str, PoseTemplate] = {
    "front-biceps": PoseTemplate(
        id="front-biceps",
        name="Front Biceps",
        required_joints=ALL_BODY_JOINTS,
        weights=_weights(elbow=1.5, wrist=1.3),
        targets=_mirrored(
            0.0, -0.47,
            shoulder=(-0.13, -0.33, 0.13, -0.33),
            elbow=(-0.25, -0.33, 0.25, -0.33),
            wrist=(-0.22, -0.46, 0.22, -0.46),
            hip=(-0.08, 0.0, 0.08, 0.0),
            knee=(-0.09, 0.22, 0.09, 0.22),
            ankle=(-0.09, 0.45, 0.09, 0.45),
        ),
        guidance=[
            "Raise elbows to shoulder height without shrugging.",
            "Keep waist tight and chest up.",
        ],
    ),
    "back-lats": PoseTemplate(
        id="back-lats",
        name="Back Lats",
        required_joints=ALL_BODY_JOINTS,
        weights=_weights(shoulder=1.5),
        targets=_mirrored(
            0.0, -0.47,
            shoulder=(-0.15, -0.33, 0.15, -0.33),
            elbow=(-0.26, -0.22, 0.26, -0.22),
            wrist=(-0.20, -0.10, 0.20, -0.10),
            hip=(-0.08, 0.0, 0.08, 0.0),
            knee=(-0.09, 0.22, 0.09, 0.22),
            ankle=(-0.10, 0.45, 0.10, 0.45),
        ),
        guidance=["Flare the lats wide; keep shoulders level."],
    ),
    "side-glute": PoseTemplate(
        id="side-glute",
        name="Side Glute",
        required_joints=ALL_BODY_JOINTS,
        weights=_weights(hip=1.3, knee=0.8),
        targets=_mirrored(
            0.02, -0.47,
            shoulder=(-0.04, -0.33, 0.06, -0.34),
            elbow=(-0.06, -0.18, 0.10, -0.20),
            wrist=(-0.02, -0.08, 0.06, -0.06),
            hip=(-0.03, 0.0, 0.05, 0.0),
            knee=(-0.04, 0.22, 0.06, 0.22),
            ankle=(-0.04, 0.45, 0.06, 0.45),
        ),
    ),
    "back-glute": PoseTemplate(
        id="back-glute",
        name="Back Glute",
        required_joints=ALL_BODY_JOINTS,
        weights=_weights(hip=1.4, knee=0.9),
        targets=_mirrored(
            0.0, -0.47,
            shoulder=(-0.13, -0.33, 0.13, -0.33),
            elbow=(-0.18, -0.18, 0.18, -0.18),
            wrist=(-0.10, -0.05, 0.10, -0.05),
            hip=(-0.09, 0.0, 0.09, 0.0),
            knee=(-0.10, 0.22, 0.10, 0.22),
            ankle=(-0.12, 0.45, 0.08, 0.45),
        ),
    ),
}


POSE_NAMES: Dict[str, str] = {
    "front-checkin": "Front Check-in",
    "back-checkin": "Back Check-in",
    **{t.id: t.name for t in POSE_TEMPLATES.values()},
}


def get_template(template_id: str) -> Optional[PoseTemplate]:
    return POSE_TEMPLATES.get(template_id)


def pose_display_name(pose_id: str) -> str:
    return POSE_NAMES.get(pose_id, pose_id)
