from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from ..utils.time import as_utc
from .landmarks import Landmark, PoseDetectionResult, WorldLandmark

ScanType = Literal["CHECKIN", "GALLERY"]


class ScanRecord(BaseModel):
    """Summary of a prior capture, read from the caller's scan store."""

    model_config = ConfigDict(extra="ignore")

    pose_id: str
    timestamp: datetime
    scan_type: ScanType = "GALLERY"
    body_height_px: float = 0.0
    stance_width_index: float = 0.0
    hip_tilt_deg: float = 0.0
    # Average luma at capture time; older records may not carry it.
    avg_brightness: Optional[float] = None

    alignment_score: Optional[float] = None
    confidence_score: Optional[float] = None
    shoulder_index: Optional[float] = None
    hip_index: Optional[float] = None
    v_taper_index: Optional[float] = None
    symmetry_score: Optional[float] = None


def latest_scan(records: Sequence[ScanRecord], pose_id: str) -> Optional[ScanRecord]:
    same_pose = [r for r in records if r.pose_id == pose_id]
    if not same_pose:
        return None
    return max(same_pose, key=lambda r: as_utc(r.timestamp))


def latest_checkin(records: Sequence[ScanRecord], pose_id: str) -> Optional[ScanRecord]:
    return latest_scan([r for r in records if r.scan_type == "CHECKIN"], pose_id)


class LandmarkIn(BaseModel):
    x: float
    y: float
    z: float = 0.0
    visibility: float = 0.0


class DetectionPayload(BaseModel):
    """Pose estimator output as exchanged in JSON files."""

    landmarks: List[LandmarkIn] = Field(default_factory=list)
    world_landmarks: List[LandmarkIn] = Field(default_factory=list)

    def to_detection(self) -> PoseDetectionResult:
        return PoseDetectionResult(
            landmarks=tuple(Landmark(p.x, p.y, p.z, p.visibility) for p in self.landmarks),
            world_landmarks=tuple(WorldLandmark(p.x, p.y, p.z, p.visibility) for p in self.world_landmarks),
        )
