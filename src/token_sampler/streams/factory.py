"""Lookup from ``random_stream_type`` names to stream classes."""

from __future__ import annotations

from token_sampler.exceptions import InvalidArgumentError
from token_sampler.streams.base import RandomStream
from token_sampler.streams.mt19937 import MT19937Stream
from token_sampler.streams.pcg64 import PCG64Stream

STREAM_TYPES: dict[str, type[RandomStream]] = {
    "mt19937": MT19937Stream,
    "pcg64": PCG64Stream,
}


def build_stream(stream_type: str, seed: int) -> RandomStream:
    """Create a freshly seeded stream of the named type.

    Args:
        stream_type: Key of :data:`STREAM_TYPES`.
        seed: Seed for the new stream.

    Returns:
        A stream owned by the caller, not shared with any other.

    Raises:
        InvalidArgumentError: If *stream_type* is not a known stream.
    """
    try:
        stream_cls = STREAM_TYPES[stream_type]
    except KeyError:
        known = ", ".join(sorted(STREAM_TYPES))
        raise InvalidArgumentError(
            f"Unknown random stream: {stream_type!r}. Available: {known}"
        ) from None
    return stream_cls(seed)
