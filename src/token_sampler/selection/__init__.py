"""Token selection subsystem for token-sampler.

Top-k partial selection, temperature-scaled softmax, nucleus truncation,
and CDF draws over explicit (score, vocabulary index) candidate sets.
"""

from token_sampler.selection.selector import TokenSelector
from token_sampler.selection.types import CandidateSet, ScoredIndex, SelectionResult

__all__ = [
    "CandidateSet",
    "ScoredIndex",
    "SelectionResult",
    "TokenSelector",
]
