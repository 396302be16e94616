"""Exception hierarchy for token-sampler.

All exceptions derive from TokenSamplerError, enabling broad catch patterns
at the application boundary while allowing fine-grained handling internally.
"""


class TokenSamplerError(Exception):
    """Base exception for all token-sampler errors."""


class InvalidArgumentError(TokenSamplerError, ValueError):
    """Caller-supplied input is invalid.

    Raised when the sampler configuration is out of range (non-positive
    temperature for a stochastic policy, negative top_k, top_p outside
    [0, 1]) or when a logits tensor has the wrong shape or content.
    """


class InternalSamplingError(TokenSamplerError):
    """A sampling stage hit an invariant violation.

    Raised when a candidate set reaches a selection, softmax, or draw stage
    empty. This indicates a logic defect rather than caller misuse.
    """
