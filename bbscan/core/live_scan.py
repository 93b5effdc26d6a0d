from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..metrics.geometry import BodyVisibility, body_visibility
from ..metrics.measurements import Measurements, compute_measurements
from ..metrics.symmetry import SymmetryData, compute_symmetry
from ..models.landmarks import PoseDetectionResult, pixel_landmarks
from ..poses.library import PoseTemplate
from ..poses.scoring import compute_alignment
from ..tuning import Tuning, resolve_tuning
from .confidence import ConfidenceBreakdown, compute_live_confidence, generate_tip
from .smoothing import SmoothingState, decay_state, ema, update_state

TIP_NO_POSE = "No pose detected: stand in frame"


@dataclass(frozen=True)
class FrameResult:
    state: SmoothingState
    raw_alignment: float
    body_visibility: BodyVisibility
    tip: str
    breakdown: Optional[ConfidenceBreakdown] = None
    measurements: Optional[Measurements] = None
    symmetry: Optional[SymmetryData] = None

    @property
    def alignment(self) -> float:
        return self.state.alignment

    @property
    def confidence(self) -> float:
        return self.state.confidence

    @property
    def ready(self) -> bool:
        return self.state.ready

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alignment": self.alignment,
            "raw_alignment": self.raw_alignment,
            "confidence": self.confidence,
            "ready": self.ready,
            "body_visibility": self.body_visibility,
            "tip": self.tip,
            "breakdown": self.breakdown.to_dict() if self.breakdown else None,
            "measurements": self.measurements.to_dict() if self.measurements else None,
            "symmetry": self.symmetry.to_dict() if self.symmetry else None,
        }


def analyze_frame(
    state: SmoothingState,
    detection: Optional[PoseDetectionResult],
    template: PoseTemplate,
    width: float,
    height: float,
    avg_luma: float,
    now_ms: float,
    user_height_cm: Optional[float] = None,
    tuning: Optional[Tuning] = None,
) -> FrameResult:
    """One live-video scoring pass; returns the next smoothing state with the scores."""
    t = resolve_tuning(tuning)
    if detection is None or not detection.landmarks:
        return FrameResult(state=decay_state(state, t), raw_alignment=0.0, body_visibility="none", tip=TIP_NO_POSE)

    landmarks = pixel_landmarks(detection.landmarks)
    raw_alignment = compute_alignment(landmarks, template, width, height, t)
    measurements = compute_measurements(landmarks, width, height, detection.world_landmarks, user_height_cm)
    # Confidence uses the smoothed alignment.
    confidence = compute_live_confidence(
        landmarks,
        template.required_joints,
        ema(state.alignment, raw_alignment, t.ema_alpha),
        avg_luma,
        measurements,
        width,
        height,
    )
    nxt = update_state(state, raw_alignment, confidence.total, measurements, now_ms, t)
    return FrameResult(
        state=nxt,
        raw_alignment=raw_alignment,
        body_visibility=body_visibility(landmarks),
        tip=generate_tip(confidence.breakdown),
        breakdown=confidence.breakdown,
        measurements=measurements,
        symmetry=compute_symmetry(detection.world_landmarks),
    )
