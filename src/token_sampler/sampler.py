"""Batch token sampler.

Turns a ``(batch, 1, vocab_size)`` block of logits into one token index per
batch element under a fixed policy:

    greedy: argmax, lowest index among exact ties
    top_k:  top-k selection -> temperature softmax -> draw
    top_p:  top-k selection -> temperature softmax -> nucleus cut -> renormalize -> draw

Each Sampler owns one seeded random stream. Batch elements are processed in
ascending batch order and each element whose final distribution holds more
than one candidate consumes exactly one uniform draw, so a fixed seed and a
fixed call sequence always reproduce the same tokens. A Sampler is not safe
for concurrent use; give each decoding worker its own instance.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import numpy as np

from token_sampler.config import (
    SamplerConfig,
    SamplingPolicy,
    build_config,
    config_hash,
    resolve_config,
    validate_config,
)
from token_sampler.exceptions import InvalidArgumentError
from token_sampler.logging.logger import SamplingLogger
from token_sampler.logging.types import SamplingRecord
from token_sampler.selection.selector import TokenSelector
from token_sampler.selection.types import CandidateSet, SelectionResult
from token_sampler.streams.factory import build_stream
from token_sampler.tensor import as_logits_tensor, validate_shape

if TYPE_CHECKING:
    from collections.abc import Callable

    from token_sampler.streams.base import RandomStream

logger = logging.getLogger("token_sampler")


class Sampler:
    """Selects one token per batch element from raw logits.

    Use :meth:`create` for the positional constructor form or pass a
    :class:`SamplerConfig` directly.

    Args:
        config: Sampler configuration. ``None`` loads it from the
            environment.

    Raises:
        InvalidArgumentError: If the configuration is out of range or names
            an unknown random stream.
    """

    def __init__(self, config: SamplerConfig | None = None) -> None:
        self._config = config if config is not None else build_config()
        validate_config(self._config)

        self._stream: RandomStream = build_stream(
            self._config.random_stream_type, self._config.seed
        )

        self._selector = TokenSelector()
        self._logger = SamplingLogger(self._config)
        self._config_hash = config_hash(self._config)
        self._pipelines: dict[SamplingPolicy, Callable[[CandidateSet], SelectionResult]] = {
            SamplingPolicy.GREEDY: self._sample_greedy,
            SamplingPolicy.TOP_K: self._sample_top_k,
            SamplingPolicy.TOP_P: self._sample_top_p,
        }

        logger.info(
            "Sampler initialized: policy=%s, top_k=%d, top_p=%.3f, temperature=%.3f, "
            "stream=%s, seed=%d",
            self._config.policy.value,
            self._config.top_k,
            self._config.top_p,
            self._config.temperature,
            self._stream.name,
            self._config.seed,
        )

    @classmethod
    def create(
        cls,
        policy: SamplingPolicy | str,
        top_k: int = 0,
        top_p: float = 1.0,
        temperature: float = 1.0,
        seed: int = 0,
        **settings: Any,
    ) -> Sampler:
        """Build and validate a Sampler.

        Args:
            policy: ``SamplingPolicy`` or its string value.
            top_k: Candidates kept before softmax (<=0 keeps all). Ignored by greedy.
            top_p: Nucleus threshold in [0, 1]. Used by top_p only.
            temperature: Positive logit divisor. Ignored by greedy.
            seed: Seed of the random stream.
            **settings: Any other SamplerConfig field (e.g. ``log_level``).

        Returns:
            A ready Sampler owning its own random stream.

        Raises:
            InvalidArgumentError: On any invalid argument.
        """
        config = build_config(
            policy=policy,
            top_k=top_k,
            top_p=top_p,
            temperature=temperature,
            seed=seed,
            **settings,
        )
        return cls(config)

    @classmethod
    def from_config(cls, config: SamplerConfig) -> Sampler:
        """Build a Sampler from an existing configuration."""
        return cls(config)

    def with_overrides(self, overrides: dict[str, Any] | None) -> Sampler:
        """Build a sibling Sampler from this one's config plus *overrides*.

        Override keys are config field names, optionally prefixed with
        ``ts_``. The sibling gets its own stream, seeded from the resolved
        config; this Sampler and its stream are left untouched. With no
        overrides the sibling shares this Sampler's config and seed.

        Raises:
            InvalidArgumentError: If a key is unknown or the merged config is
                out of range.
        """
        return type(self)(resolve_config(self._config, overrides))

    @property
    def config(self) -> SamplerConfig:
        return self._config

    @property
    def policy(self) -> SamplingPolicy:
        return self._config.policy

    @property
    def stream(self) -> RandomStream:
        return self._stream

    @property
    def sampling_logger(self) -> SamplingLogger:
        return self._logger

    def sample(self, logits: Any) -> list[int]:
        """Pick one token index per batch element.

        Args:
            logits: A :class:`LogitsTensor` or array-like of shape
                ``(batch, 1, vocab_size)``. Read, never modified.

        Returns:
            One index in ``[0, vocab_size)`` per batch element, in batch order.

        Raises:
            InvalidArgumentError: If the shape is not ``(batch, 1, vocab_size)``
                with ``vocab_size >= 1`` or a row holds NaN.
            InternalSamplingError: If a stage meets an empty candidate set.
        """
        tensor = as_logits_tensor(logits)
        batch_size, vocab_size = validate_shape(tensor.shape)
        pipeline = self._pipelines[self._config.policy]

        tokens: list[int] = []
        records: list[SamplingRecord] = []
        for batch_index in range(batch_size):
            t_start = time.perf_counter()
            row = self._read_row(tensor.batch_logits(batch_index), batch_index, vocab_size)
            result = pipeline(CandidateSet.from_logits(row))
            tokens.append(result.token_id)
            records.append(self._make_record(batch_index, result, t_start))

        # Nothing is logged for a call that failed part way.
        for record in records:
            self._logger.log_token(record)
        return tokens

    def close(self) -> None:
        """Release the random stream."""
        self._stream.close()

    def __enter__(self) -> Sampler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- Per-policy pipelines ---

    def _sample_greedy(self, candidates: CandidateSet) -> SelectionResult:
        return self._selector.argmax(candidates)

    def _sample_top_k(self, candidates: CandidateSet) -> SelectionResult:
        candidates = self._selector.select_top_k(candidates, self._config.top_k)
        candidates = self._selector.scaled_softmax(
            candidates, self._config.temperature, normalize=True
        )
        return self._selector.draw(candidates, self._stream)

    def _sample_top_p(self, candidates: CandidateSet) -> SelectionResult:
        candidates = self._selector.select_top_k(candidates, self._config.top_k)
        candidates = self._selector.scaled_softmax(
            candidates, self._config.temperature, normalize=True
        )
        candidates = self._selector.select_top_p(candidates, self._config.top_p)
        candidates = self._selector.normalize(candidates)
        return self._selector.draw(candidates, self._stream)

    # --- Helpers ---

    @staticmethod
    def _read_row(values: Any, batch_index: int, vocab_size: int) -> np.ndarray:
        row = np.asarray(values, dtype=np.float64).reshape(-1)
        if row.size != vocab_size:
            raise InvalidArgumentError(
                f"batch {batch_index}: expected {vocab_size} logits, got {row.size}"
            )
        if np.isnan(row).any():
            raise InvalidArgumentError(f"batch {batch_index}: logits contain NaN")
        return row

    def _temperature_used(self) -> float:
        # Greedy never divides by the temperature.
        if self._config.policy is SamplingPolicy.GREEDY:
            return 1.0
        return self._config.temperature

    def _make_record(
        self,
        batch_index: int,
        result: SelectionResult,
        t_start: float,
    ) -> SamplingRecord:
        return SamplingRecord(
            timestamp_ns=time.time_ns(),
            total_sampling_ms=(time.perf_counter() - t_start) * 1000.0,
            policy=self._config.policy.value,
            batch_index=batch_index,
            token_id=result.token_id,
            token_rank=result.token_rank,
            token_prob=result.token_prob,
            num_candidates=result.num_candidates,
            u_value=result.u_value,
            temperature_used=self._temperature_used(),
            stream_name=self._stream.name,
            config_hash=self._config_hash,
        )
