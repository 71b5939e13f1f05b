"""Varispeed buffer playback and render-length accounting.

A source played at ``rate`` runs ``rate`` times faster and sounds
``12 * log2(rate)`` semitones higher; there is no independent pitch
correction. Resampling to the output rate happens here too, with linear
interpolation between source frames.
"""
from __future__ import annotations

import math

import numpy as np

from .buffer import PcmBuffer
from .stereo import ensure_stereo


def stretched_duration(duration_sec: float, rate: float) -> float:
    if rate <= 0.0:
        raise ValueError(f"Playback rate must be positive, got {rate}")
    return duration_sec / rate


def output_length(duration_sec: float, rate: float, sample_rate: int, tail_sec: float = 0.0) -> int:
    """Frames needed to hold a source played at ``rate`` plus an effect tail."""

    body = stretched_duration(duration_sec, rate) * sample_rate
    # guards against 240000.00000000003 style rounding turning into an extra frame
    frames = math.ceil(body - 1e-7) if body > 0.0 else 0
    return frames + int(round(tail_sec * sample_rate))


def play_at_rate(source: PcmBuffer, rate: float, out_sr: int, length: int) -> np.ndarray:
    """Render ``source`` at ``rate`` into a stereo ``[2, length]`` float64 array.

    Frames past the end of the source are silent.
    """

    if rate <= 0.0:
        raise ValueError(f"Playback rate must be positive, got {rate}")

    out = np.zeros((2, length), dtype=np.float64)
    if source.frames == 0 or length == 0:
        return out

    step = rate * source.sample_rate / float(out_sr)
    positions = np.arange(length, dtype=np.float64) * step
    frame_index = np.arange(source.frames, dtype=np.float64)

    stereo = ensure_stereo(source.samples)
    for ch in range(2):
        out[ch] = np.interp(positions, frame_index, stereo[ch], left=0.0, right=0.0)
    return out
