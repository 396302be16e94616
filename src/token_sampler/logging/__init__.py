"""Diagnostic logging subsystem for token-sampler.

Provides immutable per-token sampling records and a configurable logger
that supports none/summary/full verbosity and in-memory diagnostic mode.
"""

from token_sampler.logging.logger import SamplingLogger
from token_sampler.logging.types import SamplingRecord

__all__ = [
    "SamplingLogger",
    "SamplingRecord",
]
