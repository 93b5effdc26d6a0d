"""Single-photo analysis.

Composes geometry, measurements, symmetry, segmentation slicing, confidence,
consistency against earlier scans, check-in gating and classification into
one result. Detection, image decoding and storage happen elsewhere; this
module only takes their outputs.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..metrics.benchmarks import SHOULDER_RATIO_GRADES, SYMMETRY_GRADES, V_TAPER_GRADES, grade_for, pose_insight
from ..metrics.geometry import BodyVisibility, body_visibility
from ..metrics.measurements import Measurements, compute_measurements
from ..metrics.pose_features import stance_width_px, tilt_deg
from ..metrics.symmetry import SymmetryData, compute_symmetry
from ..models.landmarks import LM, MaskData, PoseDetectionResult, pixel_landmarks
from ..models.records import ScanRecord, ScanType, latest_checkin, latest_scan
from ..poses.library import get_template, pose_display_name
from ..poses.scoring import compute_alignment
from ..tuning import PHOTO_BRIGHT_WARNING_LUMA, PHOTO_DARK_WARNING_LUMA, Tuning, resolve_tuning
from ..vision.segmentation import (
    SliceIndices,
    SliceYPositions,
    binarize_mask,
    compute_body_slice_indices,
    mask_quality_score,
    slice_y_positions,
)
from .checkin_gates import FRONT_REQUIRED, CheckinGateResult, ConsistencyGate, check_consistency, run_checkin_gates
from .classifier import ClassificationResult, classify_photo
from .confidence import ConfidenceResult, compute_photo_confidence

logger = logging.getLogger(__name__)


class PhotoScanError(ValueError):
    """The photo holds no usable person."""


@dataclass(frozen=True)
class PhotoScanResult:
    pose_type: str
    scan_type: ScanType
    body_visibility: BodyVisibility
    measurements: Measurements
    symmetry: Optional[SymmetryData]
    alignment_score: float
    confidence: ConfidenceResult
    segmentation_quality: int
    slice_indices: Optional[SliceIndices]
    slice_y_positions: Optional[SliceYPositions]
    consistency: ConsistencyGate
    avg_brightness: float
    stance_width_px: float
    stance_width_index: float
    hip_tilt_deg: float
    shoulder_tilt_deg: float
    classification: ClassificationResult
    checkin_gates: Optional[CheckinGateResult] = None
    warnings: List[str] = field(default_factory=list)

    def grades(self) -> Dict[str, str]:
        m = self.measurements
        sym = self.symmetry.overall_score if self.symmetry else None
        out = {
            "v_taper": grade_for(m.v_taper_index, V_TAPER_GRADES).label,
            "shoulder_ratio": grade_for(m.shoulder_index, SHOULDER_RATIO_GRADES).label,
            "insight": pose_insight(self.pose_type, m.v_taper_index, sym),
        }
        if sym is not None:
            out["symmetry"] = grade_for(sym, SYMMETRY_GRADES).label
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pose_type": self.pose_type,
            "pose_name": pose_display_name(self.pose_type),
            "scan_type": self.scan_type,
            "body_visibility": self.body_visibility,
            "alignment_score": self.alignment_score,
            "confidence": self.confidence.to_dict(),
            "measurements": self.measurements.to_dict(),
            "symmetry": self.symmetry.to_dict() if self.symmetry else None,
            "segmentation_quality": self.segmentation_quality,
            "slice_indices": self.slice_indices.to_dict() if self.slice_indices else None,
            "slice_y_positions": self.slice_y_positions.to_dict() if self.slice_y_positions else None,
            "consistency": {
                "score": self.consistency.score,
                "passed": self.consistency.passed,
                "brightness_verified": self.consistency.brightness_verified,
                "details": asdict(self.consistency.details),
            },
            "avg_brightness": self.avg_brightness,
            "stance_width_px": self.stance_width_px,
            "stance_width_index": self.stance_width_index,
            "hip_tilt_deg": self.hip_tilt_deg,
            "shoulder_tilt_deg": self.shoulder_tilt_deg,
            "classification": self.classification.to_dict(),
            "checkin_gates": self.checkin_gates.to_dict() if self.checkin_gates else None,
            "grades": self.grades(),
            "warnings": list(self.warnings),
        }


def analyze_photo(
    detection: Optional[PoseDetectionResult],
    width: float,
    height: float,
    pose_type: str,
    avg_brightness: float,
    mask: Optional[MaskData] = None,
    history: Sequence[ScanRecord] = (),
    scan_type: ScanType = "GALLERY",
    user_height_cm: Optional[float] = None,
    now: Optional[datetime] = None,
    tuning: Optional[Tuning] = None,
) -> PhotoScanResult:
    t = resolve_tuning(tuning)
    if detection is None or not detection.landmarks:
        raise PhotoScanError("No person detected in this photo. Try a clearer full-body photo.")

    landmarks = pixel_landmarks(detection.landmarks)
    warnings: List[str] = []

    visibility = body_visibility(landmarks)
    if visibility in ("none", "partial"):
        warnings.append("Full body not visible: show your entire body for best results")

    template = get_template(pose_type)
    alignment = compute_alignment(landmarks, template, width, height, t) if template else 0.0

    measurements = compute_measurements(landmarks, width, height, detection.world_landmarks, user_height_cm)
    if measurements is None:
        raise PhotoScanError("Could not compute body measurements. Ensure shoulders are visible.")

    symmetry = compute_symmetry(detection.world_landmarks)

    if avg_brightness < PHOTO_DARK_WARNING_LUMA:
        warnings.append("Photo is too dark: use better lighting for accurate analysis")
    elif avg_brightness > PHOTO_BRIGHT_WARNING_LUMA:
        warnings.append("Photo is overexposed: reduce brightness for better results")

    shoulder_tilt = tilt_deg(landmarks, LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER, width, height)
    hip_tilt = tilt_deg(landmarks, LM.LEFT_HIP, LM.RIGHT_HIP, width, height)

    seg_quality = 0
    slices: Optional[SliceIndices] = None
    binary = binarize_mask(mask) if mask is not None else None
    if binary is not None:
        seg_quality = mask_quality_score(mask)
        if visibility == "full":
            slices = compute_body_slice_indices(binary, landmarks, height, measurements.body_height_px)
            if slices is None:
                warnings.append("Could not compute lower body widths: ensure legs are fully visible")
    else:
        warnings.append("Segmentation not available: body shape analysis limited")

    required = template.required_joints if template else FRONT_REQUIRED
    confidence = compute_photo_confidence(
        landmarks, required, alignment, avg_brightness, measurements.body_height_px, height, seg_quality
    )

    stance = stance_width_px(landmarks, width, height)
    stance_index = stance / measurements.body_height_px if measurements.body_height_px > 0 else 0.0

    consistency = check_consistency(
        measurements.body_height_px, stance, hip_tilt, latest_scan(history, pose_type), avg_brightness, t
    )
    if not consistency.passed and consistency.score < 100:
        adjust = consistency.details.adjustments()
        if adjust:
            warnings.append(f"Inconsistent with previous scan: adjust {', '.join(adjust)}")

    gates: Optional[CheckinGateResult] = None
    if scan_type == "CHECKIN":
        gates = run_checkin_gates(
            landmarks,
            width,
            height,
            pose_type,
            measurements.body_height_px,
            stance,
            hip_tilt,
            latest_checkin(history, pose_type),
            avg_brightness=avg_brightness,
            now=now,
            tuning=t,
        )
        warnings.extend(gates.reasons())

    classification = classify_photo(landmarks, width, height, avg_brightness, alignment, t)
    logger.info(
        "Photo scan %s: visibility=%s alignment=%.1f confidence=%.1f category=%s",
        pose_type,
        visibility,
        alignment,
        confidence.total,
        classification.category,
    )

    return PhotoScanResult(
        pose_type=pose_type,
        scan_type=scan_type,
        body_visibility=visibility,
        measurements=measurements,
        symmetry=symmetry,
        alignment_score=alignment,
        confidence=confidence,
        segmentation_quality=seg_quality,
        slice_indices=slices,
        slice_y_positions=slice_y_positions(landmarks, height),
        consistency=consistency,
        avg_brightness=avg_brightness,
        stance_width_px=stance,
        stance_width_index=stance_index,
        hip_tilt_deg=hip_tilt,
        shoulder_tilt_deg=shoulder_tilt,
        classification=classification,
        checkin_gates=gates,
        warnings=warnings,
    )
