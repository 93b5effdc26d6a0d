from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Literal, Optional, Sequence

from ..models.landmarks import SYMMETRY_PAIRS, WorldLandmark, is_visible, world_landmarks_or_none
from ..tuning import SYMMETRY_BALANCED_PCT, SYMMETRY_DIFF_CAP_PCT, SYMMETRY_MODERATE_PCT
from ..utils.numeric import clamp, round1, round_half_up

SymmetryStatus = Literal["balanced", "moderate", "imbalanced"]

_EPS = 0.001


@dataclass(frozen=True)
class SymmetryPair:
    left_index: int
    right_index: int
    label: str
    height_diff_pct: float
    distance_diff_pct: float
    overall_diff_pct: float
    status: SymmetryStatus


@dataclass(frozen=True)
class SymmetryData:
    pairs: List[SymmetryPair]
    overall_score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _pct_diff(a: float, b: float) -> float:
    avg = (a + b) / 2.0
    if avg <= _EPS:
        return 0.0
    return abs(a - b) / avg * 100.0


def symmetry_status(diff_pct: float) -> SymmetryStatus:
    if diff_pct < SYMMETRY_BALANCED_PCT:
        return "balanced"
    if diff_pct < SYMMETRY_MODERATE_PCT:
        return "moderate"
    return "imbalanced"


def compute_symmetry(world_landmarks: Optional[Sequence[WorldLandmark]]) -> Optional[SymmetryData]:
    """Left/right balance of shoulders, elbows, hips and knees in world space.

    Height difference compares |y| of each side, distance difference compares
    |x| (lateral offset from the hip-centered midline). Pairs where either
    side is not visible are skipped; None when no pair qualifies.
    """
    world = world_landmarks_or_none(world_landmarks)
    if world is None:
        return None

    pairs: List[SymmetryPair] = []
    for left_idx, right_idx, label in SYMMETRY_PAIRS:
        left, right = world[left_idx], world[right_idx]
        if not is_visible(left) or not is_visible(right):
            continue
        height_diff = _pct_diff(abs(left.y), abs(right.y))
        distance_diff = _pct_diff(abs(left.x), abs(right.x))
        overall = max(height_diff, distance_diff)
        pairs.append(
            SymmetryPair(
                left_index=left_idx,
                right_index=right_idx,
                label=label,
                height_diff_pct=round1(height_diff),
                distance_diff_pct=round1(distance_diff),
                overall_diff_pct=round1(overall),
                status=symmetry_status(overall),
            )
        )

    if not pairs:
        return None
    capped = [min(p.overall_diff_pct, SYMMETRY_DIFF_CAP_PCT) for p in pairs]
    score = round_half_up(100.0 - sum(capped) / len(capped))
    return SymmetryData(pairs=pairs, overall_score=clamp(score))
