from __future__ import annotations

import unittest

import numpy as np

from bbscan.vision.brightness import (
    ArrayImageSource,
    brightness_score,
    lighting_score,
    luma,
    measure_brightness,
)


class _SplitSource:
    """Left half black, right half white."""

    width = 64
    height = 36

    def sample(self, x: int, y: int):
        v = 0.0 if x < self.width // 2 else 255.0
        return v, v, v


class _FlatSource:
    def __init__(self, width: int, height: int, rgb) -> None:
        self.width = width
        self.height = height
        self._rgb = rgb

    def sample(self, x: int, y: int):
        return self._rgb


class MeasureBrightnessTests(unittest.TestCase):
    def test_uniform_rgb_array(self) -> None:
        rgb = np.zeros((480, 640, 3), dtype=np.uint8)
        rgb[...] = (100, 150, 200)
        self.assertAlmostEqual(measure_brightness(ArrayImageSource(rgb)), 140.75, places=4)

    def test_from_bgr_swaps_channels(self) -> None:
        bgr = np.zeros((120, 160, 3), dtype=np.uint8)
        bgr[...] = (200, 150, 100)
        self.assertAlmostEqual(measure_brightness(ArrayImageSource.from_bgr(bgr)), 140.75, places=4)

    def test_from_gray_frame(self) -> None:
        gray = np.full((90, 160), 90, dtype=np.uint8)
        src = ArrayImageSource.from_bgr(gray)
        self.assertEqual(src.rgb.shape, (90, 160, 3))
        self.assertAlmostEqual(measure_brightness(src), 90.0, places=4)

    def test_protocol_source_is_grid_sampled(self) -> None:
        self.assertAlmostEqual(measure_brightness(_SplitSource()), 127.5, places=6)
        self.assertAlmostEqual(
            measure_brightness(_FlatSource(10, 10, (10.0, 20.0, 30.0))), luma(10.0, 20.0, 30.0), places=6
        )

    def test_empty_source_falls_back_to_mid_luma(self) -> None:
        self.assertEqual(measure_brightness(ArrayImageSource(np.zeros((0, 0, 3), dtype=np.uint8))), 128.0)
        self.assertEqual(measure_brightness(_FlatSource(0, 10, (0.0, 0.0, 0.0))), 128.0)


class BrightnessScoreTests(unittest.TestCase):
    def test_confidence_subscore(self) -> None:
        cases = {100.0: 20.0, 60.0: 20.0, 200.0: 20.0, 20.0: 4.0, 250.0: 8.0, 45.0: 12.0, 220.0: 14.0}
        for luma_value, expected in cases.items():
            with self.subTest(luma=luma_value):
                self.assertAlmostEqual(brightness_score(luma_value), expected, places=6)

    def test_lighting_score(self) -> None:
        cases = {180.0: 100.0, 20.0: 20.0, 250.0: 30.0, 45.0: 60.0, 220.0: 65.0}
        for luma_value, expected in cases.items():
            with self.subTest(luma=luma_value):
                self.assertAlmostEqual(lighting_score(luma_value), expected, places=6)


if __name__ == "__main__":
    unittest.main()
