"""Biquad filters built on SciPy.

Coefficients follow the RBJ audio-EQ cookbook (the same forms browser audio
engines use for their biquad nodes) and are stored as a single SOS section
so they can be run with ``scipy.signal.sosfilt``.

Shelves use a slope of 1; high/low-pass sections default to a Butterworth
Q of 1/sqrt(2).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np
from scipy.signal import sosfilt

FilterType = Literal["highpass", "lowpass", "peaking", "lowshelf", "highshelf"]

BUTTERWORTH_Q = 1.0 / np.sqrt(2.0)


@dataclass
class BiquadFilter:
    """Container for a single biquad section in SOS form."""

    sos: np.ndarray  # shape (1, 6)
    name: str = "biquad"

    def process(self, x: np.ndarray) -> np.ndarray:
        """Filter a mono ``[N]`` or multi-channel ``[channels, N]`` signal.

        Each channel is filtered independently from a zero state.
        """

        if x.shape[-1] == 0:
            return np.asarray(x, dtype=np.float64).copy()
        return np.asarray(sosfilt(self.sos, np.asarray(x, dtype=np.float64), axis=-1))

    def frequency_response(self, freqs_hz: np.ndarray, sr: int) -> np.ndarray:
        """Complex response at the given frequencies (used by tests and reports)."""

        b0, b1, b2, a0, a1, a2 = self.sos[0]
        z = np.exp(-1j * 2.0 * np.pi * np.asarray(freqs_hz, dtype=np.float64) / sr)
        return (b0 + b1 * z + b2 * z * z) / (a0 + a1 * z + a2 * z * z)


def _clamp_freq(freq: float, sr: int) -> float:
    nyq = sr * 0.5
    return float(np.clip(freq, 10.0, nyq * 0.99))


def design_biquad(
    ftype: FilterType,
    freq: float,
    sr: int,
    gain_db: float = 0.0,
    q: float = BUTTERWORTH_Q,
) -> BiquadFilter:
    """Design a single biquad section.

    ``gain_db`` only applies to peaking and shelving types; ``q`` is ignored
    by the shelves.
    """

    if sr <= 0:
        raise ValueError(f"Sample rate must be positive, got {sr}")
    if q <= 0.0:
        raise ValueError(f"Q must be positive, got {q}")

    freq = _clamp_freq(freq, sr)
    w0 = 2.0 * np.pi * freq / sr
    cos_w0 = np.cos(w0)
    sin_w0 = np.sin(w0)
    a = 10.0 ** (gain_db / 40.0)

    if ftype == "lowpass":
        alpha = sin_w0 / (2.0 * q)
        b = [(1.0 - cos_w0) / 2.0, 1.0 - cos_w0, (1.0 - cos_w0) / 2.0]
        den = [1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha]
    elif ftype == "highpass":
        alpha = sin_w0 / (2.0 * q)
        b = [(1.0 + cos_w0) / 2.0, -(1.0 + cos_w0), (1.0 + cos_w0) / 2.0]
        den = [1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha]
    elif ftype == "peaking":
        alpha = sin_w0 / (2.0 * q)
        b = [1.0 + alpha * a, -2.0 * cos_w0, 1.0 - alpha * a]
        den = [1.0 + alpha / a, -2.0 * cos_w0, 1.0 - alpha / a]
    elif ftype == "lowshelf":
        alpha = sin_w0 / 2.0 * np.sqrt(2.0)
        k = 2.0 * np.sqrt(a) * alpha
        b = [
            a * ((a + 1.0) - (a - 1.0) * cos_w0 + k),
            2.0 * a * ((a - 1.0) - (a + 1.0) * cos_w0),
            a * ((a + 1.0) - (a - 1.0) * cos_w0 - k),
        ]
        den = [
            (a + 1.0) + (a - 1.0) * cos_w0 + k,
            -2.0 * ((a - 1.0) + (a + 1.0) * cos_w0),
            (a + 1.0) + (a - 1.0) * cos_w0 - k,
        ]
    elif ftype == "highshelf":
        alpha = sin_w0 / 2.0 * np.sqrt(2.0)
        k = 2.0 * np.sqrt(a) * alpha
        b = [
            a * ((a + 1.0) + (a - 1.0) * cos_w0 + k),
            -2.0 * a * ((a - 1.0) + (a + 1.0) * cos_w0),
            a * ((a + 1.0) + (a - 1.0) * cos_w0 - k),
        ]
        den = [
            (a + 1.0) - (a - 1.0) * cos_w0 + k,
            2.0 * ((a - 1.0) - (a + 1.0) * cos_w0),
            (a + 1.0) - (a - 1.0) * cos_w0 - k,
        ]
    else:
        raise ValueError(f"Unsupported filter type: {ftype}")

    a0 = den[0]
    sos = np.array([[b[0] / a0, b[1] / a0, b[2] / a0, 1.0, den[1] / a0, den[2] / a0]], dtype=np.float64)
    return BiquadFilter(sos=sos, name=f"{ftype}_{freq:g}hz")
