"""Convolution reverb with a synthetic impulse response.

The impulse is decaying stereo noise; convolution runs through
``scipy.signal.fftconvolve`` so long tails stay cheap.

The kernel is power-normalised before use, matching the calibration
browser convolver nodes apply, so changing the decay time changes the tail
length without making the reverb dramatically louder or quieter.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.signal import fftconvolve

from .buffer import PcmBuffer

REVERB_DECAY_EXPONENT = 2.0

# Convolver calibration constants.
_GAIN_CALIBRATION_DB = -58.0
_GAIN_CALIBRATION_SAMPLE_RATE = 44100.0
_MIN_POWER = 0.000125


def generate_impulse(
    sample_rate: int,
    duration_sec: float,
    decay_exponent: float,
    rng: Optional[np.random.Generator] = None,
) -> PcmBuffer:
    """Stereo noise burst shaped by ``(1 - i/length) ** decay_exponent``.

    Longer durations or smaller exponents give a longer, denser tail.
    """

    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    if duration_sec <= 0.0:
        raise ValueError(f"Impulse duration must be positive, got {duration_sec}")
    if decay_exponent < 0.0:
        raise ValueError(f"Impulse decay exponent must not be negative, got {decay_exponent}")

    rng = rng if rng is not None else np.random.default_rng()
    length = max(int(sample_rate * duration_sec), 1)
    envelope = (1.0 - np.arange(length, dtype=np.float64) / length) ** decay_exponent
    noise = rng.uniform(-1.0, 1.0, size=(2, length))
    return PcmBuffer(noise * envelope[np.newaxis, :], sample_rate)


def normalization_scale(kernel: np.ndarray, sample_rate: int) -> float:
    """Gain that brings an impulse to a calibrated perceived level."""

    channels, length = kernel.shape
    power = float(np.sum(np.square(kernel, dtype=np.float64)))
    power = float(np.sqrt(power / (channels * max(length, 1))))
    if not np.isfinite(power) or power < _MIN_POWER:
        power = _MIN_POWER
    scale = 1.0 / power
    scale *= 10.0 ** (_GAIN_CALIBRATION_DB * 0.05)
    scale *= _GAIN_CALIBRATION_SAMPLE_RATE / float(sample_rate)
    return scale


@dataclass
class ConvolutionReverb:
    """Wet-only convolution against a stereo impulse.

    Output length equals input length; whatever tail falls past the end of
    the render buffer is discarded.
    """

    impulse: PcmBuffer
    normalize: bool = True
    name: str = "reverb"

    def process(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        n = x.shape[-1]
        if n == 0:
            return x.copy()

        kernel = self.impulse.samples.astype(np.float64)
        if self.normalize:
            kernel = kernel * normalization_scale(kernel, self.impulse.sample_rate)

        if x.ndim == 1:
            return fftconvolve(x, kernel[0])[:n]

        out = np.empty_like(x)
        for ch in range(x.shape[0]):
            out[ch] = fftconvolve(x[ch], kernel[ch % kernel.shape[0]])[:n]
        return out


def create_reverb(
    sample_rate: int,
    decay_sec: float,
    rng: Optional[np.random.Generator] = None,
) -> ConvolutionReverb:
    """Reverb for the enhancement chain; ``decay_sec`` sets the impulse length."""

    impulse = generate_impulse(sample_rate, decay_sec, REVERB_DECAY_EXPONENT, rng=rng)
    return ConvolutionReverb(impulse=impulse)
