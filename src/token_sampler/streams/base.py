"""Abstract base class for all random streams.

A random stream is the only mutable state a Sampler carries across calls.
Each Sampler owns exactly one stream, seeded once at construction and
advanced by every draw, so a fixed seed and a fixed call sequence reproduce
the same tokens. Subclasses implement ``name``, ``uniform()`` and
``close()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

_SEED_MASK = (1 << 64) - 1


def fold_seed(seed: int) -> int:
    """Map any Python integer onto the non-negative 64-bit range numpy accepts."""
    return int(seed) & _SEED_MASK


class RandomStream(ABC):
    """Abstract base for seeded uniform generators.

    Args:
        seed: Integer seed. Negative values are folded into 64 bits.
    """

    def __init__(self, seed: int = 0) -> None:
        self._seed = fold_seed(seed)
        self._draws = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """Stream type name (e.g., ``'mt19937'``)."""

    @property
    def seed(self) -> int:
        """The folded seed this stream was created with."""
        return self._seed

    @property
    def draws(self) -> int:
        """Number of uniform values drawn so far."""
        return self._draws

    def uniform(self) -> float:
        """Advance the stream and return one float in ``[0, 1)``."""
        self._draws += 1
        return self._next_uniform()

    @abstractmethod
    def _next_uniform(self) -> float:
        """Return the next float in ``[0, 1)`` from the underlying generator."""

    def close(self) -> None:
        """Release resources. Built-in streams hold none."""

    def state(self) -> dict[str, Any]:
        """Return a status dictionary for this stream."""
        return {"stream": self.name, "seed": self._seed, "draws": self._draws}
