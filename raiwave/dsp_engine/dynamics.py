"""Feed-forward compressor and brick-wall limiter.

Both share one gain computer: a linked peak detector across channels, a
static soft-knee curve in dB, and an attack/release follower that smooths
the gain reduction before it is applied.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

_EPS = 1e-9


def static_gain_reduction_db(level_db: np.ndarray, threshold_db: float, ratio: float, knee_db: float) -> np.ndarray:
  """Gain reduction (positive dB) of a soft-knee compressor curve."""
  level_db = np.asarray(level_db, dtype=np.float64)
  slope = 1.0 - 1.0 / ratio
  over = level_db - threshold_db
  if knee_db <= 0.0:
    return np.maximum(over, 0.0) * slope

  half = knee_db / 2.0
  return np.where(
    over <= -half,
    0.0,
    np.where(
      over >= half,
      slope * over,
      slope * ((over + half) ** 2) / (2.0 * knee_db),
    ),
  )


def smooth_gain_db(target_db: np.ndarray, sr: int, attack_ms: float, release_ms: float, initial_db: float = 0.0) -> np.ndarray:
  """Attack/release follower over a gain curve in dB, starting at ``initial_db``.

  Falling gain moves at the attack rate, rising gain at the release rate.
  """
  attack = float(np.exp(-1.0 / max(attack_ms * 0.001 * sr, _EPS)))
  release = float(np.exp(-1.0 / max(release_ms * 0.001 * sr, _EPS)))

  env = np.empty(target_db.shape[0], dtype=np.float64)
  prev = float(initial_db)
  for i, g in enumerate(target_db.tolist()):
    coeff = attack if g < prev else release
    prev = coeff * prev + (1.0 - coeff) * g
    env[i] = prev
  return env


@dataclass
class Compressor:
  sr: int
  threshold_db: float = -24.0
  ratio: float = 3.0
  knee_db: float = 30.0
  attack_ms: float = 10.0
  release_ms: float = 250.0
  auto_makeup: bool = False
  name: str = "compressor"

  def __post_init__(self) -> None:
    if self.ratio < 1.0:
      raise ValueError(f"Compressor ratio must be >= 1, got {self.ratio}")

  @property
  def makeup_db(self) -> float:
    """Automatic makeup: 0.6 of the reduction a full-scale signal receives."""
    if not self.auto_makeup:
      return 0.0
    full_scale_gr = float(static_gain_reduction_db(np.array([0.0]), self.threshold_db, self.ratio, self.knee_db)[0])
    return 0.6 * full_scale_gr

  def gain_curve(self, x: np.ndarray) -> np.ndarray:
    """Linear gain per sample, shared by all channels.

    Makeup and reduction are smoothed together from unity, so makeup rises
    at the release rate and never gets ahead of the reduction on onsets.
    """
    x = np.asarray(x, dtype=np.float64)
    detector = np.abs(x) if x.ndim == 1 else np.max(np.abs(x), axis=0)
    level_db = 20.0 * np.log10(np.maximum(detector, _EPS))
    gr = static_gain_reduction_db(level_db, self.threshold_db, self.ratio, self.knee_db)
    env = smooth_gain_db(self.makeup_db - gr, self.sr, self.attack_ms, self.release_ms)
    return 10.0 ** (env / 20.0)

  def process(self, x: np.ndarray) -> np.ndarray:
    x = np.asarray(x, dtype=np.float64)
    if x.shape[-1] == 0:
      return x.copy()
    gain = self.gain_curve(x)
    return x * gain if x.ndim == 1 else x * gain[np.newaxis, :]


@dataclass
class Limiter:
  """High-ratio, hard-knee compressor followed by a ceiling clamp.

  The envelope does the audible gain riding; the clamp catches whatever the
  1 ms attack lets through, so no sample ever exceeds the threshold.
  """

  sr: int
  threshold_db: float = -1.0
  ratio: float = 20.0
  attack_ms: float = 1.0
  release_ms: float = 100.0
  name: str = "limiter"

  @property
  def ceiling(self) -> float:
    return float(10.0 ** (self.threshold_db / 20.0))

  def process(self, x: np.ndarray) -> np.ndarray:
    comp = Compressor(
      sr=self.sr,
      threshold_db=self.threshold_db,
      ratio=self.ratio,
      knee_db=0.0,
      attack_ms=self.attack_ms,
      release_ms=self.release_ms,
    )
    y = comp.process(x)
    ceiling = self.ceiling
    return np.clip(y, -ceiling, ceiling)


def create_bus_compressor(sr: int) -> Compressor:
  """Glue compressor that sits on the dry + wet sum."""
  return Compressor(
    sr=sr,
    threshold_db=-24.0,
    ratio=3.0,
    knee_db=30.0,
    attack_ms=10.0,
    release_ms=250.0,
    auto_makeup=True,
  )


def create_master_limiter(sr: int) -> Limiter:
  return Limiter(sr=sr, threshold_db=-1.0, ratio=20.0, attack_ms=1.0, release_ms=100.0)


def create_mix_limiter(sr: int) -> Limiter:
  """Shared limiter for the two-source remix bus."""
  return Limiter(sr=sr, threshold_db=-2.0, ratio=10.0, attack_ms=3.0, release_ms=250.0, name="mix_limiter")
