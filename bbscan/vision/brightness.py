"""Frame brightness.

Images are reduced to a small fixed grid and averaged as BT.601 luma. Only
the averaged scalar leaves this module; no pixel data is kept.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

import cv2
import numpy as np

from ..tuning import (
    BRIGHTNESS_SAMPLE_H,
    BRIGHTNESS_SAMPLE_W,
    LUMA_FALLBACK,
    LUMA_IDEAL_HIGH,
    LUMA_IDEAL_LOW,
    LUMA_VERY_BRIGHT,
    LUMA_VERY_DARK,
)

RGB = Tuple[float, float, float]


class ImageSource(Protocol):
    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def sample(self, x: int, y: int) -> RGB: ...


@dataclass(frozen=True)
class ArrayImageSource:
    """RGB uint8 array of shape (h, w, 3) exposed as an ImageSource."""

    rgb: np.ndarray

    @property
    def width(self) -> int:
        return int(self.rgb.shape[1])

    @property
    def height(self) -> int:
        return int(self.rgb.shape[0])

    def sample(self, x: int, y: int) -> RGB:
        r, g, b = self.rgb[y, x][:3]
        return float(r), float(g), float(b)

    def downsampled(self, width: int, height: int) -> "ArrayImageSource":
        if self.width == width and self.height == height:
            return self
        small = cv2.resize(self.rgb, (width, height), interpolation=cv2.INTER_AREA)
        return ArrayImageSource(small)

    @staticmethod
    def from_bgr(frame: np.ndarray) -> "ArrayImageSource":
        arr = np.asarray(frame)
        if arr.ndim == 2:
            arr = cv2.cvtColor(arr, cv2.COLOR_GRAY2BGR)
        elif arr.shape[2] == 4:
            arr = cv2.cvtColor(arr, cv2.COLOR_BGRA2BGR)
        return ArrayImageSource(cv2.cvtColor(arr, cv2.COLOR_BGR2RGB))


def luma(r: float, g: float, b: float) -> float:
    return 0.299 * r + 0.587 * g + 0.114 * b


def measure_brightness(source: ImageSource) -> float:
    """Mean luma 0..255 over a 32x18 sampling grid."""
    if source.width <= 0 or source.height <= 0:
        return LUMA_FALLBACK
    if isinstance(source, ArrayImageSource):
        small = source.downsampled(BRIGHTNESS_SAMPLE_W, BRIGHTNESS_SAMPLE_H).rgb.astype(np.float64)
        return float(np.mean(luma(small[..., 0], small[..., 1], small[..., 2])))

    total = 0.0
    for gy in range(BRIGHTNESS_SAMPLE_H):
        y = min(source.height - 1, int((gy + 0.5) * source.height / BRIGHTNESS_SAMPLE_H))
        for gx in range(BRIGHTNESS_SAMPLE_W):
            x = min(source.width - 1, int((gx + 0.5) * source.width / BRIGHTNESS_SAMPLE_W))
            total += luma(*source.sample(x, y))
    return total / (BRIGHTNESS_SAMPLE_W * BRIGHTNESS_SAMPLE_H)


def brightness_score(avg_luma: float) -> float:
    """Luma to a 0..20 confidence sub-score; severe over/under exposure is floored."""
    if LUMA_IDEAL_LOW <= avg_luma <= LUMA_IDEAL_HIGH:
        return 20.0
    if avg_luma < LUMA_VERY_DARK:
        return 4.0
    if avg_luma > LUMA_VERY_BRIGHT:
        return 8.0
    if avg_luma < LUMA_IDEAL_LOW:
        return 4.0 + (avg_luma - LUMA_VERY_DARK) / 30.0 * 16.0
    return 20.0 - (avg_luma - LUMA_IDEAL_HIGH) / 40.0 * 12.0


def lighting_score(avg_luma: float) -> float:
    """Same curve shape as brightness_score on a 0..100 scale."""
    if LUMA_IDEAL_LOW <= avg_luma <= LUMA_IDEAL_HIGH:
        return 100.0
    if avg_luma < LUMA_VERY_DARK:
        return 20.0
    if avg_luma > LUMA_VERY_BRIGHT:
        return 30.0
    if avg_luma < LUMA_IDEAL_LOW:
        return 20.0 + (avg_luma - LUMA_VERY_DARK) / 30.0 * 80.0
    return 100.0 - (avg_luma - LUMA_IDEAL_HIGH) / 40.0 * 70.0
