from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Grade:
    min: float
    max: float
    label: str


# Reference grades for scan metrics; ranges are [min, max).
V_TAPER_GRADES: List[Grade] = [
    Grade(0.0, 1.2, "Developing"),
    Grade(1.2, 1.4, "Average"),
    Grade(1.4, 1.6, "Good"),
    Grade(1.6, 1.8, "Great"),
    Grade(1.8, 9.0, "Elite"),
]

SHOULDER_RATIO_GRADES: List[Grade] = [
    Grade(0.0, 0.24, "Narrow"),
    Grade(0.24, 0.27, "Average"),
    Grade(0.27, 0.30, "Broad"),
    Grade(0.30, 0.34, "Wide"),
    Grade(0.34, 9.0, "Elite"),
]

SYMMETRY_GRADES: List[Grade] = [
    Grade(90.0, 101.0, "Balanced"),
    Grade(75.0, 90.0, "Moderate"),
    Grade(0.0, 75.0, "Imbalanced"),
]


def grade_for(value: float, grades: List[Grade]) -> Grade:
    for g in grades:
        if g.min <= value < g.max:
            return g
    return grades[0]


_POSE_INSIGHTS: Dict[str, Dict[str, str]] = {
    "front-biceps": {
        "vt:Elite": "Monster V-taper: competition ready",
        "vt:Great": "V-taper is looking wide, keep it up",
        "sym:Imbalanced": "Focus on evening out both sides",
        "default": "Shoulders widening, keep pushing",
    },
    "back-lats": {
        "vt:Elite": "Lats are spreading like wings",
        "vt:Great": "Back width is impressive, keep pulling",
        "sym:Imbalanced": "One side is pulling ahead: add unilateral work",
        "default": "Back is developing: rows and pulldowns",
    },
    "side-glute": {
        "sym:Balanced": "Great side profile: proportions on point",
        "sym:Imbalanced": "Check hip alignment: stretch and mobilize",
        "default": "Side pose improving, keep working glutes",
    },
    "back-glute": {
        "sym:Balanced": "Glutes and hamstrings looking balanced",
        "sym:Imbalanced": "Posterior imbalance: add single-leg work",
        "default": "Posterior chain developing: hip thrusts and RDLs",
    },
}

_INSIGHT_ORDER = ("vt:Elite", "vt:Great", "sym:Balanced", "sym:Imbalanced")


def pose_insight(pose_id: str, v_taper: float, symmetry_score: Optional[float]) -> str:
    """Fixed one-line summary for a pose from its V-taper and symmetry grades."""
    table = _POSE_INSIGHTS.get(pose_id)
    if table is None:
        return "Keep hitting your poses consistently"
    vt_label = grade_for(v_taper, V_TAPER_GRADES).label
    sym_label = grade_for(symmetry_score, SYMMETRY_GRADES).label if symmetry_score is not None else "Unknown"
    for key in _INSIGHT_ORDER:
        kind, label = key.split(":")
        current = vt_label if kind == "vt" else sym_label
        if key in table and current == label:
            return table[key]
    return table["default"]
