from __future__ import annotations

from .checkin_gates import CheckinGateResult, run_checkin_gates
from .classifier import ClassificationResult, classify_photo
from .confidence import compute_live_confidence, compute_photo_confidence, generate_tip
from .live_scan import FrameResult, analyze_frame
from .photo_scan import PhotoScanError, PhotoScanResult, analyze_photo
from .smoothing import SmoothingSessions, SmoothingState, commit_capture, ema

__all__ = [
    "CheckinGateResult",
    "run_checkin_gates",
    "ClassificationResult",
    "classify_photo",
    "compute_live_confidence",
    "compute_photo_confidence",
    "generate_tip",
    "FrameResult",
    "analyze_frame",
    "PhotoScanError",
    "PhotoScanResult",
    "analyze_photo",
    "SmoothingSessions",
    "SmoothingState",
    "commit_capture",
    "ema",
]
