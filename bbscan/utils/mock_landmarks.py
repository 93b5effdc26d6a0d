from __future__ import annotations

import math
from typing import List, Optional

import numpy as np

from ..models.landmarks import LM, Landmark, PoseDetectionResult, WorldLandmark
from ..poses.library import POSE_TEMPLATES, get_template

LANDMARK_COUNT = 33

# Hip midpoint in normalized frame coordinates and body height as a
# fraction of the frame.
CENTER_X = 0.5
CENTER_Y = 0.45
FRAME_SCALE = 0.7
WORLD_HEIGHT_M = 1.75


def mock_detection(pose_id: str, frame: int, rng: Optional[np.random.Generator] = None) -> PoseDetectionResult:
    """Synthetic detection that holds a template pose with a gentle sway."""
    rng = rng if rng is not None else np.random.default_rng(0)
    template = get_template(pose_id) or next(iter(POSE_TEMPLATES.values()))

    t = frame * 0.02
    sway_x = math.sin(t) * 0.008
    sway_y = math.cos(t * 0.7) * 0.005
    sway_world = math.sin(t) * 0.005

    landmarks: List[Landmark] = [Landmark(0.0, 0.0) for _ in range(LANDMARK_COUNT)]
    world: List[WorldLandmark] = [WorldLandmark(0.0, 0.0) for _ in range(LANDMARK_COUNT)]
    for idx, (tx, ty) in template.targets.items():
        vis = float(0.95 + rng.random() * 0.05)
        landmarks[idx] = Landmark(
            x=CENTER_X + tx * FRAME_SCALE + sway_x,
            y=CENTER_Y + ty * FRAME_SCALE + sway_y,
            visibility=vis,
        )
        world[idx] = WorldLandmark(
            x=tx * WORLD_HEIGHT_M + sway_world,
            y=ty * WORLD_HEIGHT_M,
            z=float(-0.02 + rng.random() * 0.01),
            visibility=vis,
        )

    if landmarks[LM.NOSE].visibility <= 0:
        landmarks[LM.NOSE] = Landmark(CENTER_X + sway_x, CENTER_Y - 0.47 * FRAME_SCALE + sway_y, visibility=0.9)
        world[LM.NOSE] = WorldLandmark(sway_world, -0.47 * WORLD_HEIGHT_M, visibility=0.9)

    return PoseDetectionResult(landmarks=tuple(landmarks), world_landmarks=tuple(world))
