"""Mersenne Twister random stream.

The default stream: a 32-bit MT19937 bit generator behind a numpy
``Generator``, seeded directly from the configured integer.
"""

from __future__ import annotations

import numpy as np

from token_sampler.streams.base import RandomStream


class MT19937Stream(RandomStream):
    """``np.random.MT19937`` wrapped in a ``Generator``."""

    def __init__(self, seed: int = 0) -> None:
        super().__init__(seed)
        self._rng = np.random.Generator(np.random.MT19937(self._seed))

    @property
    def name(self) -> str:
        """Return ``'mt19937'``."""
        return "mt19937"

    def _next_uniform(self) -> float:
        return float(self._rng.random())
