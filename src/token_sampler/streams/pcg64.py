"""PCG64 random stream, numpy's default bit generator."""

from __future__ import annotations

import numpy as np

from token_sampler.streams.base import RandomStream


class PCG64Stream(RandomStream):
    """``np.random.default_rng(seed)`` as a random stream."""

    def __init__(self, seed: int = 0) -> None:
        super().__init__(seed)
        self._rng = np.random.default_rng(self._seed)

    @property
    def name(self) -> str:
        """Return ``'pcg64'``."""
        return "pcg64"

    def _next_uniform(self) -> float:
        return float(self._rng.random())
