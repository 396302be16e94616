"""Data types for the diagnostic logging subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SamplingRecord:
    """Immutable record of one batch element's sampling.

    Attributes:
        timestamp_ns: Wall-clock time of sampling (nanoseconds since epoch).
        total_sampling_ms: Time spent on this batch element (ms).
        policy: Sampling policy value (``'greedy'``, ``'top_k'``, ``'top_p'``).
        batch_index: Position of the element in the batch.
        token_id: Vocabulary index of the selected token.
        token_rank: Rank of the selected token (0 = most probable).
        token_prob: Probability of the selected token.
        num_candidates: Number of tokens in the final distribution.
        u_value: Uniform draw used, or None when the stream was not advanced.
        temperature_used: Temperature applied (1.0 for greedy).
        stream_name: Name of the random stream.
        config_hash: 16-char SHA-256 prefix of the active config.
    """

    # Timing
    timestamp_ns: int
    total_sampling_ms: float

    # Request
    policy: str
    batch_index: int

    # Selection
    token_id: int
    token_rank: int
    token_prob: float
    num_candidates: int
    u_value: float | None

    # Settings
    temperature_used: float
    stream_name: str
    config_hash: str
