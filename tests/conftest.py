"""Shared pytest fixtures for token-sampler tests.

Provides reusable configuration objects, seeded random streams, and
sample logit arrays that are used across multiple test modules.
"""

from __future__ import annotations

import numpy as np
import pytest

from token_sampler.config import SamplerConfig
from token_sampler.streams.mt19937 import MT19937Stream


class FixedStream(MT19937Stream):
    """Stream that replays a fixed list of uniform values."""

    def __init__(self, values: list[float]) -> None:
        super().__init__(0)
        self._values = list(values)

    @property
    def name(self) -> str:
        return "fixed"

    def _next_uniform(self) -> float:
        return self._values.pop(0)


@pytest.fixture
def default_config() -> SamplerConfig:
    """Return a SamplerConfig with all default values, ignoring any .env file."""
    return SamplerConfig(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def silent_config() -> SamplerConfig:
    """Return a config with no logging for noise-free tests."""
    return SamplerConfig(_env_file=None, log_level="none")  # type: ignore[call-arg]


@pytest.fixture
def example_logits() -> np.ndarray:
    """The five-entry vocabulary with a tied maximum at indices 1 and 4."""
    return np.array([1.0, 3.0, 2.0, 0.5, 3.0], dtype=np.float64)


@pytest.fixture
def example_batch(example_logits: np.ndarray) -> np.ndarray:
    """``example_logits`` shaped as a one-element batch ``(1, 1, 5)``."""
    return example_logits.reshape(1, 1, -1)


@pytest.fixture
def sample_logits_large_vocab() -> np.ndarray:
    """Random logits for a realistic vocabulary (32000), batch of 4.

    Uses a fixed RNG seed for reproducibility.
    """
    rng = np.random.default_rng(seed=12345)
    return rng.standard_normal((4, 1, 32000)).astype(np.float32)


@pytest.fixture
def fixed_stream() -> type[FixedStream]:
    """Return the FixedStream class, for tests that script the uniform draws."""
    return FixedStream
