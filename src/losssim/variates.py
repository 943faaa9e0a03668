"""Exponential random variates for inter-arrival and service times."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

# Largest double strictly below 1.0.
_U_MAX = math.nextafter(1.0, 0.0)


class ExponentialSampler:
    """
    Independent stream of exponential samples drawn by inversion.

    Each concurrent unit (a client loop, a server) owns one sampler. Streams
    are seeded through ``numpy.random.SeedSequence``: ``seed=None`` pulls OS
    entropy, and ``spawn`` derives decorrelated child streams, so streams
    created at the same instant never share a sequence.

    A sampler is not thread-safe; callers serialize access to their own one.
    """

    def __init__(self, seed: Optional[int | np.random.SeedSequence] = None):
        if isinstance(seed, np.random.SeedSequence):
            self._seq = seed
        else:
            self._seq = np.random.SeedSequence(seed)
        self.rng = np.random.default_rng(self._seq)

    def spawn(self) -> "ExponentialSampler":
        """Return a child sampler with an independent stream."""
        (child,) = self._seq.spawn(1)
        return ExponentialSampler(child)

    def uniform(self) -> float:
        """Draw u in [0, 1 - eps] so that the inversion stays finite."""
        return min(float(self.rng.random()), _U_MAX)

    def sample(self, rate: float) -> float:
        """Return -ln(1-u)/rate."""
        if rate <= 0:
            raise ValueError("Exponential rate must be strictly positive.")
        return -math.log1p(-self.uniform()) / rate
