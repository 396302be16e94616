"""Read-only access to a batch of logits.

The Sampler consumes logits through the :class:`LogitsTensor` protocol:
a ``shape`` of ``(batch, 1, vocab_size)`` and a ``batch_logits(b)`` accessor
returning the contiguous vocabulary row for batch index ``b``. Arrays
(numpy, or anything convertible to one, including CPU/GPU torch tensors)
are wrapped in :class:`ArrayLogits`.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import numpy as np

from token_sampler.exceptions import InvalidArgumentError


@runtime_checkable
class LogitsTensor(Protocol):
    """Anything that can hand out one vocabulary row per batch index."""

    @property
    def shape(self) -> tuple[int, ...]: ...

    def batch_logits(self, batch_index: int) -> np.ndarray: ...


class ArrayLogits:
    """:class:`LogitsTensor` over an in-memory array.

    Args:
        data: Array-like of shape ``(batch, 1, vocab_size)``.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Any) -> None:
        self._data = _to_numpy(data)

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(int(d) for d in self._data.shape)

    def batch_logits(self, batch_index: int) -> np.ndarray:
        return self._data[batch_index, 0]


def _to_numpy(data: Any) -> np.ndarray:
    # torch tensors: detach from autograd and move to host first.
    if hasattr(data, "detach") and hasattr(data, "cpu"):
        data = data.detach().cpu().numpy()
    return np.asarray(data)


def as_logits_tensor(logits: Any) -> LogitsTensor:
    """Return *logits* unchanged if it already is a LogitsTensor, else wrap it."""
    if isinstance(logits, LogitsTensor):
        return logits
    return ArrayLogits(logits)


def validate_shape(shape: tuple[int, ...]) -> tuple[int, int]:
    """Check a ``(batch, 1, vocab_size)`` shape.

    Args:
        shape: Shape reported by the tensor.

    Returns:
        Tuple of (batch size, vocabulary size).

    Raises:
        InvalidArgumentError: If the rank is not 3, the sequence dimension
            is not 1, or the vocabulary is empty.
    """
    if len(shape) != 3:
        raise InvalidArgumentError(
            f"logits must have shape (batch, 1, vocab_size), got rank {len(shape)}: {shape}"
        )
    batch, seq_len, vocab_size = shape
    if seq_len != 1:
        raise InvalidArgumentError(f"logits sequence dimension must be 1, got {seq_len}")
    if vocab_size < 1:
        raise InvalidArgumentError(f"vocab_size must be >= 1, got {vocab_size}")
    return batch, vocab_size
