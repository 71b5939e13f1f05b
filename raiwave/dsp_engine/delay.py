"""Delay lines for the enhancement chain.

- ``FeedbackDelay``: echo send with a feedback loop, modelled as an owned
  ring buffer with a read/write cursor instead of a recursive graph edge.
- ``ModulatedDelay``: short delay whose time is swept by a sine LFO; used
  for vibrato and for the backing-vocal doubler.

Both return the delayed (wet) signal only; the caller mixes it.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class FeedbackDelay:
    """``w[n] = x[n] + feedback * w[n - D]``, output ``w[n - D]``.

    ``feedback`` must stay below 1 or the loop never decays.
    """

    sr: int
    time_sec: float
    feedback: float
    name: str = "delay"

    def __post_init__(self) -> None:
        if not 0.0 <= self.feedback < 1.0:
            raise ValueError(f"feedback must be in [0, 1), got {self.feedback}")
        if self.time_sec <= 0.0:
            raise ValueError(f"delay time must be positive, got {self.time_sec}")

    @property
    def delay_samples(self) -> int:
        return max(int(round(self.sr * self.time_sec)), 1)

    def process(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        squeeze = x.ndim == 1
        if squeeze:
            x = x[np.newaxis, :]

        channels, n = x.shape
        size = self.delay_samples
        buf = np.zeros((channels, size), dtype=np.float64)
        out = np.zeros_like(x)
        fb = float(self.feedback)

        # Each step covers a contiguous run of the ring buffer no longer than
        # the delay, so every slot is read before it is overwritten.
        cursor = 0
        pos = 0
        while pos < n:
            run = min(size - cursor, n - pos)
            delayed = buf[:, cursor : cursor + run].copy()
            out[:, pos : pos + run] = delayed
            buf[:, cursor : cursor + run] = x[:, pos : pos + run] + fb * delayed
            pos += run
            cursor += run
            if cursor >= size:
                cursor = 0

        return out[0] if squeeze else out


@dataclass
class ModulatedDelay:
    """Delay of ``base_sec + depth_sec * sin(2*pi*rate_hz*t)`` seconds.

    Negative instantaneous delays are clamped to zero. Reads use linear
    interpolation; positions before the start of the signal read silence.
    """

    sr: int
    base_sec: float
    depth_sec: float
    rate_hz: float
    name: str = "modulated_delay"

    def delay_curve(self, n: int) -> np.ndarray:
        t = np.arange(n, dtype=np.float64) / self.sr
        d = self.base_sec + self.depth_sec * np.sin(2.0 * np.pi * self.rate_hz * t)
        return np.maximum(d, 0.0)

    def process(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        n = x.shape[-1]
        if n == 0:
            return x.copy()

        idx = np.arange(n, dtype=np.float64)
        read_pos = idx - self.delay_curve(n) * self.sr

        if x.ndim == 1:
            return np.interp(read_pos, idx, x, left=0.0, right=0.0)

        out = np.empty_like(x)
        for ch in range(x.shape[0]):
            out[ch] = np.interp(read_pos, idx, x[ch], left=0.0, right=0.0)
        return out


def create_vibrato(sr: int, depth: float, rate_hz: float) -> ModulatedDelay:
    """Pitch wobble: 5 ms centre delay, 3 ms of sweep per depth unit."""

    return ModulatedDelay(sr=sr, base_sec=0.005, depth_sec=depth * 0.003, rate_hz=rate_hz, name="vibrato")


def create_doubler_delay(sr: int) -> ModulatedDelay:
    """Backing-vocal doubler: 25 ms delay drifting +/-2 ms at 0.5 Hz."""

    return ModulatedDelay(sr=sr, base_sec=0.025, depth_sec=0.002, rate_hz=0.5, name="backing_vocals_delay")
