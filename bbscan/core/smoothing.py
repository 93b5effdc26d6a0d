"""Temporal smoothing for live capture sessions.

All accumulators live in an immutable SmoothingState that callers thread
through successive frames; every update returns a new state. One state
belongs to exactly one capture session and must be reset (replaced with a
fresh SmoothingState) when the session switches template or restarts.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from ..metrics.measurements import Measurements, calibrated_cm, calibration_factor
from ..tuning import EMA_ALPHA, Tuning, resolve_tuning
from ..utils.numeric import round_half_up

logger = logging.getLogger(__name__)


def ema(prev: float, curr: float, alpha: float = EMA_ALPHA) -> float:
    return prev * (1.0 - alpha) + curr * alpha


@dataclass(frozen=True)
class MeasurementSample:
    shoulder_index: float = 0.0
    hip_index: float = 0.0
    v_taper_index: float = 0.0
    shoulder_width_m: float = 0.0
    hip_width_m: float = 0.0
    body_height_m: float = 0.0
    shoulder_width_px: float = 0.0
    hip_width_px: float = 0.0
    body_height_px: float = 0.0

    @staticmethod
    def from_measurements(m: Measurements) -> "MeasurementSample":
        return MeasurementSample(**{f.name: float(getattr(m, f.name)) for f in fields(MeasurementSample)})

    def blend(self, curr: "MeasurementSample", alpha: float) -> "MeasurementSample":
        return MeasurementSample(
            **{f.name: ema(getattr(self, f.name), getattr(curr, f.name), alpha) for f in fields(self)}
        )


def median_sample(samples: Sequence[MeasurementSample]) -> MeasurementSample:
    names = [f.name for f in fields(MeasurementSample)]
    grid = np.array([[getattr(s, n) for n in names] for s in samples], dtype=float)
    med = np.median(grid, axis=0)
    return MeasurementSample(**{n: float(v) for n, v in zip(names, med)})


@dataclass(frozen=True)
class SmoothingState:
    alignment: float = 0.0
    confidence: float = 0.0
    # Seeded by the first observed frame.
    measurements: Optional[MeasurementSample] = None
    buffer: Tuple[MeasurementSample, ...] = ()
    ready_since_ms: Optional[float] = None
    ready: bool = False


def update_readiness(state: SmoothingState, now_ms: float, tuning: Optional[Tuning] = None) -> SmoothingState:
    """Ready once alignment and confidence stay above threshold for the hold time."""
    t = resolve_tuning(tuning)
    above = state.alignment >= t.ready_alignment_min and state.confidence >= t.ready_confidence_min
    if not above:
        return replace(state, ready_since_ms=None, ready=False)
    since = state.ready_since_ms if state.ready_since_ms is not None else now_ms
    return replace(state, ready_since_ms=since, ready=(now_ms - since) >= t.ready_hold_ms)


def update_state(
    state: SmoothingState,
    alignment: float,
    confidence: float,
    measurements: Optional[Measurements],
    now_ms: float,
    tuning: Optional[Tuning] = None,
) -> SmoothingState:
    t = resolve_tuning(tuning)
    smoothed = state.measurements
    buffer = state.buffer
    if measurements is not None:
        curr = MeasurementSample.from_measurements(measurements)
        smoothed = curr if smoothed is None else smoothed.blend(curr, t.ema_alpha)
        buffer = (buffer + (smoothed,))[-t.median_buffer_size:]

    nxt = replace(
        state,
        alignment=ema(state.alignment, alignment, t.ema_alpha),
        confidence=ema(state.confidence, confidence, t.ema_alpha),
        measurements=smoothed,
        buffer=buffer,
    )
    return update_readiness(nxt, now_ms, t)


def decay_state(state: SmoothingState, tuning: Optional[Tuning] = None) -> SmoothingState:
    """Frame without a detection: scores decay toward zero and readiness drops."""
    t = resolve_tuning(tuning)
    return replace(
        state,
        alignment=ema(state.alignment, 0.0, t.ema_alpha),
        confidence=ema(state.confidence, 0.0, t.ema_alpha),
        ready_since_ms=None,
        ready=False,
    )


def committed_sample(state: SmoothingState, tuning: Optional[Tuning] = None) -> Optional[MeasurementSample]:
    t = resolve_tuning(tuning)
    if len(state.buffer) >= t.median_min_samples:
        return median_sample(state.buffer)
    return state.measurements


@dataclass(frozen=True)
class CaptureCommit:
    alignment_score: int
    confidence_score: int
    shoulder_index: float
    hip_index: float
    v_taper_index: float
    shoulder_width_px: int
    hip_width_px: int
    body_height_px: int
    shoulder_width_cm: float
    hip_width_cm: float
    body_height_cm: float
    from_median: bool
    sample_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def commit_capture(
    state: SmoothingState,
    user_height_cm: Optional[float] = None,
    tuning: Optional[Tuning] = None,
) -> Optional[CaptureCommit]:
    """Values to log at capture time, or None before any measurement was seen."""
    t = resolve_tuning(tuning)
    sample = committed_sample(state, t)
    if sample is None:
        return None
    from_median = len(state.buffer) >= t.median_min_samples
    factor = calibration_factor(user_height_cm, sample.body_height_m)
    logger.debug(
        "Committing capture from %s (%d buffered samples)",
        "buffer median" if from_median else "EMA",
        len(state.buffer),
    )
    return CaptureCommit(
        alignment_score=round_half_up(state.alignment),
        confidence_score=round_half_up(state.confidence),
        shoulder_index=round(sample.shoulder_index, 3),
        hip_index=round(sample.hip_index, 3),
        v_taper_index=round(sample.v_taper_index, 3),
        shoulder_width_px=round_half_up(sample.shoulder_width_px),
        hip_width_px=round_half_up(sample.hip_width_px),
        body_height_px=round_half_up(sample.body_height_px),
        shoulder_width_cm=round(calibrated_cm(sample.shoulder_width_m, factor), 1),
        hip_width_cm=round(calibrated_cm(sample.hip_width_m, factor), 1),
        body_height_cm=round(calibrated_cm(sample.body_height_m, factor), 1),
        from_median=from_median,
        sample_count=len(state.buffer),
    )


class SmoothingSessions:
    """Smoothing states keyed by session id.

    Sessions are independent of each other; calls for a single session must
    be serialized by the caller.
    """

    def __init__(self) -> None:
        self._states: Dict[str, SmoothingState] = {}

    def get(self, session_id: str) -> SmoothingState:
        return self._states.get(session_id, SmoothingState())

    def put(self, session_id: str, state: SmoothingState) -> None:
        self._states[session_id] = state

    def reset(self, session_id: str) -> SmoothingState:
        state = SmoothingState()
        self._states[session_id] = state
        return state

    def drop(self, session_id: str) -> None:
        self._states.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._states

    def __len__(self) -> int:
        return len(self._states)
