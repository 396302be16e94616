"""token-sampler: pick the next token from a batch of language-model logits.

Greedy, top-k and nucleus (top-p) sampling over raw logits, with
numerically stable temperature softmax and a per-sampler seeded random
stream for reproducible decoding.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("token-sampler")
except PackageNotFoundError:
    __version__ = "0.0.0"

from token_sampler.config import SamplerConfig, SamplingPolicy, resolve_config
from token_sampler.exceptions import (
    InternalSamplingError,
    InvalidArgumentError,
    TokenSamplerError,
)
from token_sampler.sampler import Sampler
from token_sampler.selection import CandidateSet, ScoredIndex, SelectionResult, TokenSelector
from token_sampler.tensor import ArrayLogits, LogitsTensor

__all__ = [
    "ArrayLogits",
    "CandidateSet",
    "InternalSamplingError",
    "InvalidArgumentError",
    "LogitsTensor",
    "Sampler",
    "SamplerConfig",
    "SamplingPolicy",
    "ScoredIndex",
    "SelectionResult",
    "TokenSamplerError",
    "TokenSelector",
    "__version__",
    "resolve_config",
]
