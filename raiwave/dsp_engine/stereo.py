"""Stereo helpers: channel upmix, equal-power panner and a gain stage."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def ensure_stereo(x: np.ndarray) -> np.ndarray:
  """Return ``[2, N]``; mono is copied to both channels."""
  x = np.asarray(x, dtype=np.float64)
  if x.ndim == 1:
    return np.stack([x, x], axis=0)
  if x.ndim == 2 and x.shape[0] == 1:
    return np.concatenate([x, x], axis=0)
  if x.ndim == 2 and x.shape[0] == 2:
    return x
  raise ValueError("Expected mono [N], [1, N] or stereo [2, N] audio")


@dataclass
class StereoPanner:
  """Equal-power panner for stereo input; ``pan`` in [-1, 1].

  Centre leaves both channels untouched.
  """

  pan: float = 0.0
  name: str = "panner"

  def process(self, x: np.ndarray) -> np.ndarray:
    x = ensure_stereo(x)
    pan = float(np.clip(self.pan, -1.0, 1.0))
    if pan == 0.0:
      return x

    left, right = x
    if pan < 0.0:
      theta = (pan + 1.0) * np.pi / 2.0
      out_l = left + right * np.cos(theta)
      out_r = right * np.sin(theta)
    else:
      theta = pan * np.pi / 2.0
      out_l = left * np.cos(theta)
      out_r = right + left * np.sin(theta)
    return np.stack([out_l, out_r], axis=0)


@dataclass
class Gain:
  gain_db: float = 0.0
  name: str = "gain"

  @property
  def linear(self) -> float:
    return float(10.0 ** (self.gain_db / 20.0))

  def process(self, x: np.ndarray) -> np.ndarray:
    return np.asarray(x, dtype=np.float64) * self.linear
