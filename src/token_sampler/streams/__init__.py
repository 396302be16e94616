"""Random stream subsystem for token-sampler.

Re-exports the ABC, the built-in streams and the name lookup used by the
Sampler::

    from token_sampler.streams import RandomStream, build_stream
    from token_sampler.streams import MT19937Stream, PCG64Stream
"""

from token_sampler.streams.base import RandomStream, fold_seed
from token_sampler.streams.factory import STREAM_TYPES, build_stream
from token_sampler.streams.mt19937 import MT19937Stream
from token_sampler.streams.pcg64 import PCG64Stream

__all__ = [
    "STREAM_TYPES",
    "MT19937Stream",
    "PCG64Stream",
    "RandomStream",
    "build_stream",
    "fold_seed",
]
