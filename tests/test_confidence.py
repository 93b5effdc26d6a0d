from __future__ import annotations

import unittest

from bbscan.core.confidence import (
    ConfidenceBreakdown,
    compute_live_confidence,
    compute_photo_confidence,
    distance_score,
    generate_tip,
)
from bbscan.metrics.measurements import Measurements, compute_measurements
from bbscan.models.landmarks import LM, Landmark

FRONT = {
    LM.NOSE: (0.5, 0.1),
    LM.LEFT_SHOULDER: (0.42, 0.22),
    LM.RIGHT_SHOULDER: (0.58, 0.22),
    LM.LEFT_HIP: (0.45, 0.5),
    LM.RIGHT_HIP: (0.55, 0.5),
    LM.LEFT_ANKLE: (0.45, 0.9),
    LM.RIGHT_ANKLE: (0.55, 0.9),
}
REQUIRED = tuple(FRONT)


def _landmarks(hidden=()):
    lms = [Landmark(0.0, 0.0) for _ in range(33)]
    for idx, (x, y) in FRONT.items():
        lms[idx] = Landmark(x, y, 0.0, 0.0 if idx in hidden else 0.9)
    return lms


class DistanceScoreTests(unittest.TestCase):
    def test_ratio_bands(self) -> None:
        self.assertEqual(distance_score(500.0, 1000.0), 20.0)
        self.assertAlmostEqual(distance_score(200.0, 1000.0), 10.0, places=6)
        self.assertAlmostEqual(distance_score(950.0, 1000.0), 10.0, places=6)
        self.assertEqual(distance_score(1200.0, 1000.0), 0.0)
        self.assertEqual(distance_score(0.0, 1000.0), 0.0)


class LiveConfidenceTests(unittest.TestCase):
    def test_ideal_frame_scores_full(self) -> None:
        lms = _landmarks()
        m = compute_measurements(lms, 1000, 1000)
        res = compute_live_confidence(lms, REQUIRED, 100.0, 128.0, m, 1000, 1000)
        self.assertAlmostEqual(res.total, 100.0, places=6)
        self.assertEqual(
            res.breakdown.to_dict(),
            {"landmarks_visible": 30.0, "brightness": 20.0, "distance": 20.0, "pose_match": 30.0},
        )

    def test_hidden_joints_reduce_visibility_points(self) -> None:
        lms = _landmarks(hidden=(LM.LEFT_ANKLE,))
        m = compute_measurements(lms, 1000, 1000)
        res = compute_live_confidence(lms, REQUIRED, 0.0, 128.0, m, 1000, 1000)
        self.assertAlmostEqual(res.breakdown.landmarks_visible, 25.7, places=6)
        self.assertEqual(res.breakdown.pose_match, 0.0)

    def test_shoulder_width_fallback_for_distance(self) -> None:
        m = Measurements(
            shoulder_width_px=300.0,
            hip_width_px=0.0,
            body_height_px=0.0,
            shoulder_index=0.0,
            hip_index=0.0,
            v_taper_index=0.0,
        )
        res = compute_live_confidence(_landmarks(), REQUIRED, 0.0, 128.0, m, 1000, 1000)
        self.assertEqual(res.breakdown.distance, 18.0)

    def test_no_measurements_no_distance_points(self) -> None:
        res = compute_live_confidence(None, REQUIRED, 0.0, 10.0, None, 1000, 1000)
        self.assertAlmostEqual(res.total, 4.0, places=6)


class PhotoConfidenceTests(unittest.TestCase):
    def test_segmentation_takes_pose_points(self) -> None:
        res = compute_photo_confidence(_landmarks(), REQUIRED, 50.0, 128.0, 800.0, 1000.0, 80.0)
        self.assertAlmostEqual(res.total, 88.0, places=6)
        self.assertEqual(res.breakdown.pose_match, 10.0)
        self.assertEqual(res.breakdown.segmentation_quality, 8.0)
        self.assertIn("segmentation_quality", res.to_dict()["breakdown"])


class TipTests(unittest.TestCase):
    def test_weakest_dimension_wins(self) -> None:
        cases = [
            (ConfidenceBreakdown(30.0, 4.0, 20.0, 30.0), "Improve lighting"),
            (ConfidenceBreakdown(30.0, 20.0, 10.0, 30.0), "Step back"),
            (ConfidenceBreakdown(15.0, 20.0, 20.0, 30.0), "Show your full body"),
            (ConfidenceBreakdown(30.0, 20.0, 20.0, 6.0), "Align to the outline"),
        ]
        for breakdown, prefix in cases:
            with self.subTest(prefix=prefix):
                self.assertTrue(generate_tip(breakdown).startswith(prefix))

    def test_ties_keep_first_dimension(self) -> None:
        self.assertTrue(generate_tip(ConfidenceBreakdown(30.0, 20.0, 20.0, 30.0)).startswith("Improve lighting"))
        self.assertTrue(generate_tip(ConfidenceBreakdown(15.0, 20.0, 10.0, 30.0)).startswith("Step back"))


if __name__ == "__main__":
    unittest.main()
