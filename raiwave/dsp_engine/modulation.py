"""Ring modulation ("robot" voice)."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

RING_MOD_CARRIER_HZ = 30.0


@dataclass
class RingModulator:
    """Blend of a dry path and the signal multiplied by a sine carrier.

    ``out = x * (1 - 0.5 * amount) + x * sin(2*pi*f*t) * amount``
    """

    sr: int
    amount: float
    carrier_hz: float = RING_MOD_CARRIER_HZ
    name: str = "ring_mod"

    def carrier(self, n: int) -> np.ndarray:
        t = np.arange(n, dtype=np.float64) / self.sr
        return np.sin(2.0 * np.pi * self.carrier_hz * t)

    def process(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        n = x.shape[-1]
        dry = x * (1.0 - 0.5 * self.amount)
        wet = x * self.carrier(n) * self.amount
        return dry + wet
