"""Level and loudness measurement shared by render reports and /analyze.

librosa / pyloudnorm stay isolated here so the processing stages only
depend on numpy and scipy.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import numpy as np
import pyloudnorm as pyln
import librosa


@dataclass
class LoudnessStats:
  integrated_lufs: float
  peak_dbfs: float


@lru_cache(maxsize=16)
def _meter_for_sr(sr: int) -> pyln.Meter:
  return pyln.Meter(sr)


def _mono(x: np.ndarray) -> np.ndarray:
  x = np.asarray(x, dtype=np.float64)
  return x.mean(axis=0) if x.ndim > 1 else x


def measure_loudness(x: np.ndarray, sr: int) -> LoudnessStats:
  """Integrated loudness (ITU-R BS.1770) and sample peak of ``[channels, N]`` audio."""
  mono = _mono(x)
  if mono.size == 0:
    return LoudnessStats(integrated_lufs=float("-inf"), peak_dbfs=float("-inf"))

  meter = _meter_for_sr(int(sr))
  try:
    integrated = float(meter.integrated_loudness(mono))
  except ValueError:
    # pyloudnorm needs at least one 400 ms gating block
    rms = float(np.sqrt(np.mean(np.square(mono)) + 1e-12))
    integrated = 20.0 * np.log10(max(rms, 1e-6))

  # peak over every channel; the mixdown cancels anti-phase content
  peak = float(np.max(np.abs(np.asarray(x, dtype=np.float64))) + 1e-9)
  return LoudnessStats(integrated_lufs=integrated, peak_dbfs=float(20.0 * np.log10(peak)))


def spectral_centroid_hz(x: np.ndarray, sr: int) -> float:
  """Mean spectral centroid; a rough brightness indicator."""
  mono = _mono(x).astype(np.float32)
  if mono.size < 2048:
    return 0.0
  return float(librosa.feature.spectral_centroid(y=mono, sr=sr).mean())
