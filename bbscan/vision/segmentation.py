"""Person segmentation mask analysis.

Masks arrive as per-pixel confidences from the pose estimator. They are
binarized, scored for plausibility, and sliced horizontally at anatomical
heights to measure silhouette widths.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..models.landmarks import LM, Landmark, MaskData, is_visible, landmark_at
from ..tuning import (
    MASK_AREA_IDEAL_HIGH,
    MASK_AREA_IDEAL_LOW,
    MASK_AREA_MAX,
    MASK_AREA_MIN,
    MASK_AREA_POINTS,
    MASK_COHERENCE_POINTS,
    MASK_COHERENCE_ROWS,
    MASK_THRESHOLD,
    SLICE_CALF_FRAC,
    SLICE_MID_THIGH_FRAC,
    SLICE_SAMPLE_RADIUS,
    SLICE_UPPER_THIGH_FRAC,
)
from ..utils.numeric import round_half_up

logger = logging.getLogger(__name__)


def binarize_mask(mask: MaskData, threshold: float = MASK_THRESHOLD) -> Optional[np.ndarray]:
    """2-D uint8 array of 0/1, or None for an empty/malformed mask."""
    grid = mask.as_grid()
    if grid is None:
        return None
    return (grid >= threshold).astype(np.uint8)


def _area_points(ratio: float) -> float:
    if MASK_AREA_IDEAL_LOW <= ratio <= MASK_AREA_IDEAL_HIGH:
        return MASK_AREA_POINTS
    if ratio < MASK_AREA_MIN:
        return 0.0
    if ratio < MASK_AREA_IDEAL_LOW:
        return (ratio - MASK_AREA_MIN) / (MASK_AREA_IDEAL_LOW - MASK_AREA_MIN) * MASK_AREA_POINTS
    over = (ratio - MASK_AREA_IDEAL_HIGH) / (MASK_AREA_MAX - MASK_AREA_IDEAL_HIGH)
    return max(0.0, MASK_AREA_POINTS - over * MASK_AREA_POINTS)


def mask_quality_score(mask: MaskData) -> int:
    """0-100: plausible silhouette area plus one contiguous span per row."""
    binary = binarize_mask(mask)
    if binary is None:
        return 0
    h, w = binary.shape
    area = _area_points(float(binary.sum()) / float(w * h))

    step = max(1, h // MASK_COHERENCE_ROWS)
    rows = binary[::step]
    # background -> person -> background is two transitions
    transitions = np.count_nonzero(np.diff(rows.astype(np.int8), axis=1), axis=1)
    coherence = float(np.count_nonzero(transitions <= 2)) / len(rows) * MASK_COHERENCE_POINTS
    return round_half_up(min(100.0, area + coherence))


@dataclass(frozen=True)
class SliceWidth:
    total_width_px: int
    # Distances from the detected center to each silhouette edge.
    left_width_px: int
    right_width_px: int
    center_x: int


def _row_edges(binary: np.ndarray, row: int) -> Optional[tuple]:
    if row < 0 or row >= binary.shape[0]:
        return None
    cols = np.flatnonzero(binary[row])
    if cols.size == 0:
        return None
    return int(cols[0]), int(cols[-1])


def compute_slice_width(binary: np.ndarray, y: float, radius: int = SLICE_SAMPLE_RADIUS) -> Optional[SliceWidth]:
    """Silhouette width around row y, as the median over rows y-radius..y+radius."""
    widths: List[int] = []
    centers: List[float] = []
    for dy in range(-radius, radius + 1):
        edges = _row_edges(binary, round_half_up(y + dy))
        if edges is None:
            continue
        left, right = edges
        if right > left:
            widths.append(right - left + 1)
            centers.append((left + right) / 2.0)
    if not widths:
        return None

    median_width = sorted(widths)[len(widths) // 2]
    median_center = sorted(centers)[len(centers) // 2]

    edges = _row_edges(binary, round_half_up(y))
    if edges is not None:
        left, right = edges
        center = (left + right) / 2.0
    else:
        center = median_center
        left = center - median_width / 2.0
        right = center + median_width / 2.0

    return SliceWidth(
        total_width_px=median_width,
        left_width_px=round_half_up(center - left),
        right_width_px=round_half_up(right - center),
        center_x=round_half_up(center),
    )


@dataclass(frozen=True)
class SliceYPositions:
    hip_y: float
    upper_thigh_y: float
    mid_thigh_y: float
    calf_y: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def slice_y_positions(landmarks: Optional[Sequence[Landmark]], image_height: float) -> Optional[SliceYPositions]:
    idx = (LM.LEFT_HIP, LM.RIGHT_HIP, LM.LEFT_KNEE, LM.RIGHT_KNEE, LM.LEFT_ANKLE, LM.RIGHT_ANKLE)
    joints = [landmark_at(landmarks, i) for i in idx]
    if not all(is_visible(j) for j in joints):
        return None
    lh, rh, lk, rk, la, ra = joints
    y_hip = (lh.y + rh.y) / 2.0 * image_height
    y_knee = (lk.y + rk.y) / 2.0 * image_height
    y_ankle = (la.y + ra.y) / 2.0 * image_height
    return SliceYPositions(
        hip_y=y_hip,
        upper_thigh_y=y_hip + SLICE_UPPER_THIGH_FRAC * (y_knee - y_hip),
        mid_thigh_y=y_hip + SLICE_MID_THIGH_FRAC * (y_knee - y_hip),
        calf_y=y_knee + SLICE_CALF_FRAC * (y_ankle - y_knee),
    )


@dataclass(frozen=True)
class SliceIndices:
    hip_band_width_index: float
    upper_thigh_width_index: float
    mid_thigh_width_index: float
    calf_width_index: float
    hip_band_left_px: int
    hip_band_right_px: int
    upper_thigh_left_px: int
    upper_thigh_right_px: int
    mid_thigh_left_px: int
    mid_thigh_right_px: int
    calf_left_px: int
    calf_right_px: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_body_slice_indices(
    binary: Optional[np.ndarray],
    landmarks: Optional[Sequence[Landmark]],
    image_height: float,
    body_height_px: float,
) -> Optional[SliceIndices]:
    """Width indices at hip band, upper thigh, mid thigh and calf.

    Landmark heights are mapped into mask rows (the mask may be a different
    resolution than the image) and widths are divided by the body height in
    the same mask space. Horizontal widths stay in mask pixels.
    """
    if binary is None or binary.size == 0 or body_height_px <= 0 or image_height <= 0:
        return None
    scale_y = binary.shape[0] / float(image_height)
    ys = slice_y_positions(landmarks, image_height * scale_y)
    if ys is None:
        return None

    body_in_mask = body_height_px * scale_y
    slices = [compute_slice_width(binary, y) for y in (ys.hip_y, ys.upper_thigh_y, ys.mid_thigh_y, ys.calf_y)]
    if any(s is None for s in slices):
        logger.debug("Slice width unavailable at one of %s", ys)
        return None
    hip, upper, mid, calf = slices
    return SliceIndices(
        hip_band_width_index=hip.total_width_px / body_in_mask,
        upper_thigh_width_index=upper.total_width_px / body_in_mask,
        mid_thigh_width_index=mid.total_width_px / body_in_mask,
        calf_width_index=calf.total_width_px / body_in_mask,
        hip_band_left_px=hip.left_width_px,
        hip_band_right_px=hip.right_width_px,
        upper_thigh_left_px=upper.left_width_px,
        upper_thigh_right_px=upper.right_width_px,
        mid_thigh_left_px=mid.left_width_px,
        mid_thigh_right_px=mid.right_width_px,
        calf_left_px=calf.left_width_px,
        calf_right_px=calf.right_width_px,
    )
