from __future__ import annotations

import unittest

import numpy as np

from bbscan.models.landmarks import LM, Landmark, MaskData
from bbscan.vision.segmentation import (
    binarize_mask,
    compute_body_slice_indices,
    compute_slice_width,
    mask_quality_score,
    slice_y_positions,
)


def _column_mask(h: int, w: int, left: int, right: int, value: float = 0.9) -> np.ndarray:
    grid = np.zeros((h, w), dtype=np.float32)
    grid[:, left : right + 1] = value
    return grid


def _binary_mask(h: int, w: int, left: int, right: int) -> np.ndarray:
    return (_column_mask(h, w, left, right) >= 0.5).astype(np.uint8)


def _legs(vis: float = 0.9):
    lms = [Landmark(0.0, 0.0) for _ in range(33)]
    for idx, (x, y) in {
        LM.LEFT_HIP: (0.45, 0.5),
        LM.RIGHT_HIP: (0.55, 0.5),
        LM.LEFT_KNEE: (0.45, 0.7),
        LM.RIGHT_KNEE: (0.55, 0.7),
        LM.LEFT_ANKLE: (0.45, 0.9),
        LM.RIGHT_ANKLE: (0.55, 0.9),
    }.items():
        lms[idx] = Landmark(x, y, 0.0, vis)
    return lms


class MaskQualityTests(unittest.TestCase):
    def test_binarize_threshold(self) -> None:
        mask = MaskData.from_array(np.array([[0.49, 0.5], [0.7, 0.1]], dtype=np.float32))
        np.testing.assert_array_equal(binarize_mask(mask), np.array([[0, 1], [1, 0]], dtype=np.uint8))

    def test_clean_silhouette_scores_full(self) -> None:
        mask = MaskData.from_array(_column_mask(100, 100, 30, 69))
        self.assertEqual(mask_quality_score(mask), 100)

    def test_empty_mask_only_earns_coherence(self) -> None:
        mask = MaskData.from_array(np.zeros((100, 100), dtype=np.float32))
        self.assertEqual(mask_quality_score(mask), 40)

    def test_striped_mask_loses_coherence(self) -> None:
        grid = np.zeros((100, 100), dtype=np.float32)
        grid[:, ::2] = 1.0
        self.assertEqual(mask_quality_score(MaskData.from_array(grid)), 60)

    def test_oversized_area_tapers(self) -> None:
        # 70% coverage: halfway between 60% and 80%
        mask = MaskData.from_array(_column_mask(100, 100, 0, 69))
        self.assertEqual(mask_quality_score(mask), 70)

    def test_malformed_mask(self) -> None:
        mask = MaskData(data=np.zeros(10, dtype=np.float32), width=4, height=4)
        self.assertIsNone(binarize_mask(mask))
        self.assertEqual(mask_quality_score(mask), 0)
        with self.assertRaises(ValueError):
            MaskData.from_array(np.zeros(5))


class SliceWidthTests(unittest.TestCase):
    def test_width_and_split(self) -> None:
        binary = _binary_mask(100, 100, 30, 69)
        self.assertEqual(int(binary.sum()), 4000)
        res = compute_slice_width(binary, 50)
        self.assertEqual(res.total_width_px, 40)
        self.assertEqual(res.center_x, 50)
        self.assertEqual(res.left_width_px, 20)
        self.assertEqual(res.right_width_px, 20)

    def test_idempotent_on_unchanged_mask(self) -> None:
        binary = _binary_mask(80, 60, 10, 41)
        binary[40:44, 41:50] = 1
        before = binary.copy()
        first = compute_slice_width(binary, 42.3)
        second = compute_slice_width(binary, 42.3)
        self.assertEqual(first, second)
        np.testing.assert_array_equal(binary, before)

    def test_median_over_sampled_rows(self) -> None:
        binary = _binary_mask(20, 50, 10, 19)
        binary[9, 10:40] = 1  # single wide row is outvoted
        res = compute_slice_width(binary, 10)
        self.assertEqual(res.total_width_px, 10)

    def test_no_span_returns_none(self) -> None:
        binary = np.zeros((20, 20), dtype=np.uint8)
        self.assertIsNone(compute_slice_width(binary, 10))
        binary[5, 7] = 1  # one pixel is not a span
        self.assertIsNone(compute_slice_width(binary, 5))
        self.assertIsNone(compute_slice_width(_binary_mask(20, 20, 2, 8), 100))


class SliceIndexTests(unittest.TestCase):
    def test_slice_positions(self) -> None:
        ys = slice_y_positions(_legs(), 1000)
        self.assertAlmostEqual(ys.hip_y, 500.0, places=6)
        self.assertAlmostEqual(ys.upper_thigh_y, 540.0, places=6)
        self.assertAlmostEqual(ys.mid_thigh_y, 610.0, places=6)
        self.assertAlmostEqual(ys.calf_y, 810.0, places=6)
        self.assertIsNone(slice_y_positions(_legs(vis=0.2), 1000))

    def test_indices_in_mask_space(self) -> None:
        # mask at half the image resolution
        binary = _binary_mask(500, 500, 200, 299)
        idx = compute_body_slice_indices(binary, _legs(), 1000, 800.0)
        self.assertIsNotNone(idx)
        for value in (
            idx.hip_band_width_index,
            idx.upper_thigh_width_index,
            idx.mid_thigh_width_index,
            idx.calf_width_index,
        ):
            self.assertAlmostEqual(value, 100.0 / 400.0, places=9)
        self.assertEqual(idx.calf_left_px, 50)
        self.assertEqual(idx.calf_right_px, 50)

    def test_any_failed_slice_fails_all(self) -> None:
        binary = _binary_mask(500, 500, 200, 299)
        binary[390:420, :] = 0  # calf rows empty
        self.assertIsNone(compute_body_slice_indices(binary, _legs(), 1000, 800.0))

    def test_unusable_inputs(self) -> None:
        binary = _binary_mask(500, 500, 200, 299)
        self.assertIsNone(compute_body_slice_indices(binary, _legs(), 1000, 0.0))
        self.assertIsNone(compute_body_slice_indices(None, _legs(), 1000, 800.0))
        self.assertIsNone(compute_body_slice_indices(binary, _legs(vis=0.1), 1000, 800.0))


if __name__ == "__main__":
    unittest.main()
