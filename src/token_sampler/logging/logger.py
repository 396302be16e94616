"""Diagnostic logger for per-token sampling events.

Uses the standard ``logging`` module with the ``"token_sampler"`` logger.
Supports three verbosity levels and an in-memory diagnostic mode for
post-hoc analysis.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from token_sampler.config import SamplerConfig
    from token_sampler.logging.types import SamplingRecord

logger = logging.getLogger("token_sampler")


class SamplingLogger:
    """Per-token diagnostic logger.

    Log levels:
        ``"none"``: No logging output. Records are still stored if
        ``diagnostic_mode=True``.

        ``"summary"``: One line per token with the key metrics.

        ``"full"``: Full JSON dump of all record fields.

    Diagnostic mode stores all records in memory for later inspection via
    ``get_diagnostic_data()`` and ``get_summary_stats()``.
    """

    def __init__(self, config: SamplerConfig) -> None:
        self._log_level = config.log_level
        self._diagnostic_mode = config.diagnostic_mode
        self._records: list[SamplingRecord] = []

    def log_token(self, record: SamplingRecord) -> None:
        """Log a single sampling event."""
        if self._diagnostic_mode:
            self._records.append(record)

        if self._log_level == "none":
            return

        if self._log_level == "summary":
            logger.info(
                "batch=%d policy=%s token=%d rank=%d prob=%.4f u=%s temp=%.3f "
                "candidates=%d total=%.3fms",
                record.batch_index,
                record.policy,
                record.token_id,
                record.token_rank,
                record.token_prob,
                "-" if record.u_value is None else f"{record.u_value:.6f}",
                record.temperature_used,
                record.num_candidates,
                record.total_sampling_ms,
            )
        elif self._log_level == "full":
            logger.info("sampling_record: %s", json.dumps(asdict(record), default=str))

    def get_diagnostic_data(self) -> list[SamplingRecord]:
        """Return a copy of all stored records (empty unless diagnostic_mode)."""
        return list(self._records)

    def clear(self) -> None:
        """Drop all stored records."""
        self._records.clear()

    def get_summary_stats(self) -> dict[str, Any]:
        """Compute summary statistics over all stored records.

        Returns:
            Dictionary with aggregate stats, or empty dict if no records.
        """
        if not self._records:
            return {}

        n = len(self._records)
        drawn = [r.u_value for r in self._records if r.u_value is not None]
        ranks = [r.token_rank for r in self._records]
        probs = [r.token_prob for r in self._records]
        candidates = [r.num_candidates for r in self._records]
        total_times = [r.total_sampling_ms for r in self._records]

        return {
            "total_tokens": n,
            "draw_count": len(drawn),
            "mean_u": sum(drawn) / len(drawn) if drawn else None,
            "mean_rank": sum(ranks) / n,
            "mean_prob": sum(probs) / n,
            "mean_candidates": sum(candidates) / n,
            "mean_total_ms": sum(total_times) / n,
            "max_total_ms": max(total_times),
        }
