"""Drive / saturation: soft-clipping transfer curve and a waveshaper.

The curve is a static lookup table; the waveshaper reads it with linear
interpolation and runs at 4x the signal rate so the harmonics it creates
alias less when folded back down.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from scipy.signal import resample_poly

CURVE_SIZE = 44100

# 20 degrees in radians; keeps the curve output inside [-1, 1].
_CURVE_NORMALISER = 20.0 * np.pi / 180.0


def generate_drive_curve(amount: float, n_samples: int = CURVE_SIZE) -> np.ndarray:
    """Soft-clipping table for a drive amount in [0, 1].

    ``y = (3 + k) * x * c / (pi + k * |x|)`` with ``k = 100 * amount``.
    Odd-symmetric and monotonic; larger amounts saturate harder.
    """

    if n_samples < 2:
        raise ValueError("Drive curve needs at least two points")
    k = float(amount) * 100.0
    x = np.arange(n_samples, dtype=np.float64) * 2.0 / n_samples - 1.0
    return (3.0 + k) * x * _CURVE_NORMALISER / (np.pi + k * np.abs(x))


@dataclass
class WaveShaper:
    """Table-lookup waveshaper with optional integer oversampling."""

    curve: np.ndarray
    oversample: int = 4
    name: str = field(default="drive")

    def _shape(self, x: np.ndarray) -> np.ndarray:
        n = self.curve.shape[0]
        v = (n - 1) * 0.5 * (x + 1.0)
        v = np.clip(v, 0.0, n - 1.0)
        idx = np.minimum(np.floor(v).astype(np.int64), n - 2)
        frac = v - idx
        return (1.0 - frac) * self.curve[idx] + frac * self.curve[idx + 1]

    def process(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        n = x.shape[-1]
        if n == 0:
            return x.copy()
        if self.oversample <= 1:
            return self._shape(x)

        up = resample_poly(x, self.oversample, 1, axis=-1)
        shaped = self._shape(up)
        down = resample_poly(shaped, 1, self.oversample, axis=-1)
        return down[..., :n]


def create_drive_shaper(amount: float) -> WaveShaper:
    """Waveshaper for the enhancement chain (4x oversampled)."""

    return WaveShaper(curve=generate_drive_curve(amount), oversample=4)
