from __future__ import annotations

import unittest

from bbscan.metrics.benchmarks import (
    SHOULDER_RATIO_GRADES,
    SYMMETRY_GRADES,
    V_TAPER_GRADES,
    grade_for,
    pose_insight,
)
from bbscan.metrics.symmetry import compute_symmetry
from bbscan.models.landmarks import LM, WorldLandmark

PAIRS = {
    "shoulder": (LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER, 0.2, -0.5),
    "elbow": (LM.LEFT_ELBOW, LM.RIGHT_ELBOW, 0.35, -0.3),
    "hip": (LM.LEFT_HIP, LM.RIGHT_HIP, 0.15, 0.02),
    "knee": (LM.LEFT_KNEE, LM.RIGHT_KNEE, 0.12, 0.45),
}


def _mirrored(vis: float = 0.9):
    world = [WorldLandmark(0.0, 0.0) for _ in range(33)]
    for left, right, x, y in PAIRS.values():
        world[left] = WorldLandmark(x, y, 0.0, vis)
        world[right] = WorldLandmark(-x, y, 0.0, vis)
    return world


class SymmetryTests(unittest.TestCase):
    def test_mirrored_pose_is_perfectly_balanced(self) -> None:
        data = compute_symmetry(_mirrored())
        self.assertIsNotNone(data)
        self.assertEqual(data.overall_score, 100)
        self.assertEqual([p.label for p in data.pairs], ["shoulder", "elbow", "hip", "knee"])
        for pair in data.pairs:
            self.assertEqual(pair.status, "balanced")
            self.assertEqual(pair.overall_diff_pct, 0.0)

    def test_lateral_imbalance_is_capped(self) -> None:
        world = _mirrored()
        for idx in (LM.LEFT_ELBOW, LM.RIGHT_ELBOW, LM.LEFT_HIP, LM.RIGHT_HIP, LM.LEFT_KNEE, LM.RIGHT_KNEE):
            world[idx] = WorldLandmark(0.0, 0.0, 0.0, 0.1)
        world[LM.RIGHT_SHOULDER] = WorldLandmark(-0.1, -0.5, 0.0, 0.9)
        data = compute_symmetry(world)
        self.assertEqual(len(data.pairs), 1)
        pair = data.pairs[0]
        self.assertAlmostEqual(pair.distance_diff_pct, 66.7, places=6)
        self.assertEqual(pair.status, "imbalanced")
        self.assertEqual(data.overall_score, 70)

    def test_moderate_height_difference(self) -> None:
        world = _mirrored()
        world[LM.RIGHT_SHOULDER] = WorldLandmark(-0.2, -0.46, 0.0, 0.9)
        pair = compute_symmetry(world).pairs[0]
        self.assertAlmostEqual(pair.height_diff_pct, 8.3, places=6)
        self.assertEqual(pair.status, "moderate")

    def test_unavailable_inputs(self) -> None:
        self.assertIsNone(compute_symmetry(None))
        self.assertIsNone(compute_symmetry(_mirrored()[:32]))
        self.assertIsNone(compute_symmetry(_mirrored(vis=0.2)))


class BenchmarkTests(unittest.TestCase):
    def test_grade_ranges(self) -> None:
        self.assertEqual(grade_for(1.1, V_TAPER_GRADES).label, "Developing")
        self.assertEqual(grade_for(1.4, V_TAPER_GRADES).label, "Good")
        self.assertEqual(grade_for(1.85, V_TAPER_GRADES).label, "Elite")
        self.assertEqual(grade_for(0.28, SHOULDER_RATIO_GRADES).label, "Broad")
        self.assertEqual(grade_for(95, SYMMETRY_GRADES).label, "Balanced")
        self.assertEqual(grade_for(80, SYMMETRY_GRADES).label, "Moderate")
        self.assertEqual(grade_for(10, SYMMETRY_GRADES).label, "Imbalanced")

    def test_out_of_range_falls_back_to_first(self) -> None:
        self.assertEqual(grade_for(-1.0, V_TAPER_GRADES).label, "Developing")
        self.assertEqual(grade_for(500, SYMMETRY_GRADES).label, "Balanced")

    def test_pose_insight(self) -> None:
        self.assertEqual(pose_insight("front-biceps", 1.9, 95), "Monster V-taper: competition ready")
        self.assertEqual(pose_insight("front-biceps", 1.3, 50), "Focus on evening out both sides")
        self.assertEqual(pose_insight("side-glute", 1.3, 95), "Great side profile: proportions on point")
        self.assertEqual(pose_insight("back-glute", 1.3, None), "Posterior chain developing: hip thrusts and RDLs")
        self.assertEqual(pose_insight("front-checkin", 1.3, None), "Keep hitting your poses consistently")


if __name__ == "__main__":
    unittest.main()
