from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


# Calibration constants, tuned against real capture sessions. Retune per
# camera/model pairing.

# Landmark visibility.
VISIBILITY_MIN = 0.2
CLASSIFIER_VISIBILITY_MIN = 0.3
DIRECTION_FRONT_NOSE_MIN = 0.4
DIRECTION_BACK_NOSE_MAX = 0.15

# Body geometry. Multipliers approximate the fraction of full body height
# spanned by each visible joint subset.
MIN_BODY_SCALE_PX = 10.0
SCALE_SHOULDERS_TO_ANKLES = 1.2
SCALE_NOSE_TO_HIPS = 2.1
SCALE_SHOULDERS_TO_HIPS = 3.2
SCALE_NOSE_TO_SHOULDERS = 5.5
SCALE_SHOULDER_WIDTH = 4.0

# Alignment: ~0.02 normalized error scores ~95, ~0.25 scores ~70.
ALIGNMENT_K = 120.0
ALIGNMENT_MAX_JOINT_WEIGHT = 1.0
ALIGNMENT_PARTIAL_SCORE = 10.0
ALIGNMENT_MIN_JOINTS = 2

# World-space measurements (meters).
WORLD_HEIGHT_MIN_M = 0.1
WORLD_LANDMARK_COUNT = 33

# Luma curves (0-255 average luma).
LUMA_IDEAL_LOW = 60.0
LUMA_IDEAL_HIGH = 200.0
LUMA_VERY_DARK = 30.0
LUMA_VERY_BRIGHT = 240.0
LUMA_FALLBACK = 128.0
BRIGHTNESS_SAMPLE_W = 32
BRIGHTNESS_SAMPLE_H = 18
PHOTO_DARK_WARNING_LUMA = 40.0
PHOTO_BRIGHT_WARNING_LUMA = 230.0

# Confidence sub-score caps.
LIVE_WEIGHTS = {"landmarks_visible": 30.0, "brightness": 20.0, "distance": 20.0, "pose_match": 30.0}
PHOTO_WEIGHTS = {
    "landmarks_visible": 30.0,
    "brightness": 20.0,
    "distance": 20.0,
    "pose_match": 20.0,
    "segmentation_quality": 10.0,
}

# Distance: body height as a fraction of frame height.
DISTANCE_RATIO_LOW = 0.40
DISTANCE_RATIO_HIGH = 0.90
# Fallback: shoulder width as a fraction of frame width.
SHOULDER_RATIO_LOW = 0.15
SHOULDER_RATIO_HIGH = 0.55
SHOULDER_RATIO_REF = 0.35
SHOULDER_FALLBACK_MAX = 18.0

# Segmentation.
MASK_THRESHOLD = 0.5
MASK_AREA_IDEAL_LOW = 0.15
MASK_AREA_IDEAL_HIGH = 0.60
MASK_AREA_MIN = 0.05
MASK_AREA_MAX = 0.80
MASK_AREA_POINTS = 60.0
MASK_COHERENCE_POINTS = 40.0
MASK_COHERENCE_ROWS = 20
SLICE_SAMPLE_RADIUS = 3
SLICE_UPPER_THIGH_FRAC = 0.20
SLICE_MID_THIGH_FRAC = 0.55
SLICE_CALF_FRAC = 0.55

# Symmetry (percent differences).
SYMMETRY_BALANCED_PCT = 5.0
SYMMETRY_MODERATE_PCT = 15.0
SYMMETRY_DIFF_CAP_PCT = 30.0

# Temporal smoothing: 25 samples is ~2 s at the 80 ms detection interval.
EMA_ALPHA = 0.12
MEDIAN_BUFFER_SIZE = 25
MEDIAN_MIN_SAMPLES = 5
READY_ALIGNMENT_MIN = 80.0
READY_CONFIDENCE_MIN = 70.0
READY_HOLD_MS = 1000.0

# Check-in gates.
GATE_VISIBILITY_MIN = 0.5
STANDING_TOLERANCE_PX = 10.0
STANDING_LEG_ANGLE_MIN_DEG = 155.0
STANDING_LEAN_MAX_DEG = 12.0
CONSISTENCY_SCALE_TOL = 0.07
CONSISTENCY_STANCE_TOL = 0.08
CONSISTENCY_HIP_TILT_TOL_DEG = 6.0
CONSISTENCY_LUMA_TOL = 25.0
CONSISTENCY_PASS_SCORE = 65.0
CHECKIN_WARN_DAYS = 7.0

# Photo classifier.
CHECKIN_FULL_MIN_LIGHTING = 50
CHECKIN_FULL_MIN_POSE_MATCH = 60
CHECKIN_SELFIE_MIN_LIGHTING = 40
TIP_MIN_LIGHTING = 50
TIP_MIN_FRAMING = 40
MAX_TIPS = 2


@dataclass(frozen=True)
class Tuning:
    """Per-deployment tunables that callers may override from YAML."""

    alignment_k: float = ALIGNMENT_K
    ema_alpha: float = EMA_ALPHA
    median_buffer_size: int = MEDIAN_BUFFER_SIZE
    median_min_samples: int = MEDIAN_MIN_SAMPLES
    ready_alignment_min: float = READY_ALIGNMENT_MIN
    ready_confidence_min: float = READY_CONFIDENCE_MIN
    ready_hold_ms: float = READY_HOLD_MS
    gate_visibility_min: float = GATE_VISIBILITY_MIN
    standing_tolerance_px: float = STANDING_TOLERANCE_PX
    standing_leg_angle_min_deg: float = STANDING_LEG_ANGLE_MIN_DEG
    standing_lean_max_deg: float = STANDING_LEAN_MAX_DEG
    consistency_scale_tol: float = CONSISTENCY_SCALE_TOL
    consistency_stance_tol: float = CONSISTENCY_STANCE_TOL
    consistency_hip_tilt_tol_deg: float = CONSISTENCY_HIP_TILT_TOL_DEG
    consistency_luma_tol: float = CONSISTENCY_LUMA_TOL
    consistency_pass_score: float = CONSISTENCY_PASS_SCORE
    checkin_warn_days: float = CHECKIN_WARN_DAYS

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_TUNING = Tuning()


def resolve_tuning(tuning: Optional[Tuning]) -> Tuning:
    return tuning if tuning is not None else DEFAULT_TUNING


def _coerce(value: Any, like: Any) -> Optional[Any]:
    if value in (None, ""):
        return None
    try:
        if isinstance(like, int) and not isinstance(like, bool):
            return int(value)
        return float(value)
    except (TypeError, ValueError):
        return None


def tuning_from_mapping(data: Dict[str, Any], base: Optional[Tuning] = None) -> Tuning:
    base = resolve_tuning(base)
    known = {f.name for f in fields(base)}
    updates: Dict[str, Any] = {}
    for key, raw in (data or {}).items():
        name = str(key)
        if name not in known:
            logger.warning("Ignoring unknown tuning key: %s", name)
            continue
        value = _coerce(raw, getattr(base, name))
        if value is None:
            logger.warning("Ignoring non-numeric tuning value for %s: %r", name, raw)
            continue
        updates[name] = value
    return replace(base, **updates) if updates else base


def load_tuning(path: Optional[Path] = None) -> Tuning:
    if path is None:
        return DEFAULT_TUNING
    cfg_path = Path(path)
    if not cfg_path.exists():
        logger.warning("Tuning file not found, using defaults: %s", cfg_path)
        return DEFAULT_TUNING
    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.warning("Could not parse tuning file %s: %s", cfg_path, exc)
        return DEFAULT_TUNING
    if not isinstance(data, dict):
        return DEFAULT_TUNING
    section = data.get("tuning", data)
    if not isinstance(section, dict):
        return DEFAULT_TUNING
    return tuning_from_mapping(section)
