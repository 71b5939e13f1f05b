"""Immutable PCM buffer exchanged between all engine stages."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class PcmBuffer:
    """Fixed-length multi-channel float PCM at a known sample rate.

    ``samples`` is shaped ``[channels, frames]``. The array is copied on
    construction and locked read-only, so a decoded source can be shared by
    concurrent renders.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        data = np.array(self.samples, dtype=np.float32, copy=True)
        if data.ndim == 1:
            data = data[np.newaxis, :]
        if data.ndim != 2 or data.shape[0] not in (1, 2):
            raise ValueError("PcmBuffer expects mono [N] or [channels, N] audio with 1 or 2 channels")
        if int(self.sample_rate) <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        data.flags.writeable = False
        object.__setattr__(self, "samples", data)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @classmethod
    def from_frames(cls, audio: np.ndarray, sample_rate: int) -> "PcmBuffer":
        """Build from soundfile-style ``[frames, channels]`` or mono ``[frames]``."""

        arr = np.asarray(audio)
        if arr.ndim == 2:
            arr = arr.T
        return cls(arr, sample_rate)

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def frames(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        return self.frames / float(self.sample_rate)

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]

    def head(self, seconds: float) -> "PcmBuffer":
        """First ``seconds`` of audio (the whole buffer if shorter)."""

        length = min(self.frames, int(np.floor(max(seconds, 0.0) * self.sample_rate)))
        return PcmBuffer(self.samples[:, :length], self.sample_rate)

    def peak(self) -> float:
        if self.frames == 0:
            return 0.0
        return float(np.max(np.abs(self.samples)))
