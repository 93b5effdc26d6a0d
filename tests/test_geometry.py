from __future__ import annotations

import unittest

from bbscan.metrics.geometry import body_visibility, estimate_body_geometry
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


def _landmarks(hidden=(), vis: float = 0.9):
    lms = [Landmark(0.0, 0.0) for _ in range(33)]
    for idx, (x, y) in FRONT.items():
        lms[idx] = Landmark(x, y, 0.0, 0.0 if idx in hidden else vis)
    return lms


ANKLES = (LM.LEFT_ANKLE, LM.RIGHT_ANKLE)
HIPS = (LM.LEFT_HIP, LM.RIGHT_HIP)


class BodyGeometryTests(unittest.TestCase):
    def test_full_body_scale_is_nose_to_ankle_distance(self) -> None:
        geo = estimate_body_geometry(_landmarks(), 1000, 1000)
        self.assertIsNotNone(geo)
        self.assertAlmostEqual(geo.scale, 800.0, places=6)
        self.assertEqual(geo.quality_tier, "full")
        self.assertAlmostEqual(geo.center.x, 500.0, places=6)
        self.assertAlmostEqual(geo.center.y, 500.0, places=6)

    def test_fallback_chain(self) -> None:
        cases = [
            ((LM.NOSE,), 680.0 * 1.2, "full"),
            (ANKLES, 400.0 * 2.1, "upper"),
            (ANKLES + (LM.NOSE,), 280.0 * 3.2, "torso"),
            (ANKLES + HIPS, 120.0 * 5.5, "head"),
            (ANKLES + HIPS + (LM.NOSE,), 160.0 * 4.0, "head"),
        ]
        for hidden, expected, tier in cases:
            with self.subTest(hidden=hidden):
                geo = estimate_body_geometry(_landmarks(hidden=hidden), 1000, 1000)
                self.assertIsNotNone(geo)
                self.assertAlmostEqual(geo.scale, expected, places=4)
                self.assertEqual(geo.quality_tier, tier)

    def test_center_falls_back_to_shoulders_without_hips(self) -> None:
        geo = estimate_body_geometry(_landmarks(hidden=HIPS), 1000, 1000)
        self.assertAlmostEqual(geo.center.y, 220.0, places=6)

    def test_requires_both_shoulders(self) -> None:
        self.assertIsNone(estimate_body_geometry(_landmarks(hidden=(LM.LEFT_SHOULDER,)), 1000, 1000))
        self.assertIsNone(estimate_body_geometry([], 1000, 1000))
        self.assertIsNone(estimate_body_geometry(None, 1000, 1000))

    def test_visibility_threshold_is_strict(self) -> None:
        self.assertIsNone(estimate_body_geometry(_landmarks(vis=0.2), 1000, 1000))

    def test_degenerate_scale_returns_none(self) -> None:
        # shoulders only on a 10px frame: 1.6px * 4 is far below the minimum
        self.assertIsNone(estimate_body_geometry(_landmarks(hidden=ANKLES + HIPS + (LM.NOSE,)), 10, 10))

    def test_truncated_array_drops_missing_joints(self) -> None:
        # right hip (24) and everything below is cut off
        geo = estimate_body_geometry(_landmarks()[:24], 1000, 1000)
        self.assertIsNotNone(geo)
        self.assertEqual(geo.quality_tier, "head")
        self.assertAlmostEqual(geo.scale, 120.0 * 5.5, places=4)


class BodyVisibilityTests(unittest.TestCase):
    def test_levels(self) -> None:
        self.assertEqual(body_visibility(_landmarks()), "full")
        self.assertEqual(body_visibility(_landmarks(hidden=ANKLES)), "upper")
        self.assertEqual(body_visibility(_landmarks(hidden=ANKLES + HIPS)), "partial")
        self.assertEqual(body_visibility(_landmarks(hidden=(LM.RIGHT_SHOULDER,))), "none")


if __name__ == "__main__":
    unittest.main()
