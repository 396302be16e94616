"""Configuration system for token-sampler.

Uses pydantic-settings for declarative, layered configuration:
init kwargs -> environment variables (TOKEN_SAMPLER_*) -> .env file -> field defaults.

Range checks that depend on the sampling policy live in validate_config(),
which the Sampler runs once at construction. Per-call overrides are applied
via resolve_config() which creates a new config instance without mutating
the defaults.
"""

from __future__ import annotations

import enum
import hashlib
import math
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from token_sampler.exceptions import InvalidArgumentError

_OVERRIDE_PREFIX = "ts_"

_LOG_LEVELS: frozenset[str] = frozenset({"none", "summary", "full"})


class SamplingPolicy(str, enum.Enum):
    """Token selection policy, fixed for the lifetime of a Sampler."""

    GREEDY = "greedy"
    TOP_K = "top_k"
    TOP_P = "top_p"

    @property
    def is_stochastic(self) -> bool:
        """Whether the policy draws from the random stream."""
        return self is not SamplingPolicy.GREEDY


class SamplerConfig(BaseSettings):
    """Configuration for a Sampler.

    Resolution order: init kwargs -> env vars (TOKEN_SAMPLER_*) -> .env file -> defaults.

    Fields are divided into two groups:
    - **Sampling**: policy, top_k, top_p, temperature, seed and the random
      stream backing the draws.
    - **Diagnostics**: log verbosity and in-memory record keeping.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOKEN_SAMPLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Sampling ---

    policy: SamplingPolicy = Field(
        default=SamplingPolicy.GREEDY,
        description="Sampling policy: 'greedy', 'top_k' or 'top_p'",
    )
    top_k: int = Field(
        default=0,
        description="Number of highest-scoring candidates kept (<=0 keeps all)",
    )
    top_p: float = Field(
        default=1.0,
        description="Nucleus threshold in [0, 1], used by the top_p policy",
    )
    temperature: float = Field(
        default=1.0,
        description="Logit divisor before softmax, must be > 0 for stochastic policies",
    )
    seed: int = Field(
        default=0,
        description="Seed of the per-sampler random stream",
    )
    random_stream_type: str = Field(
        default="mt19937",
        description="Random stream backing the draws: 'mt19937' or 'pcg64'",
    )

    # --- Diagnostics ---

    log_level: str = Field(
        default="summary",
        description="Logging verbosity: 'none', 'summary', 'full'",
    )
    diagnostic_mode: bool = Field(
        default=False,
        description="Store all sampling records in memory for analysis",
    )


_ALL_FIELDS: frozenset[str] = frozenset(SamplerConfig.model_fields.keys())


def build_config(**kwargs: Any) -> SamplerConfig:
    """Build a SamplerConfig, reporting coercion failures as InvalidArgumentError.

    Args:
        **kwargs: Field values; unspecified fields come from the environment
            or defaults.

    Returns:
        A new SamplerConfig.

    Raises:
        InvalidArgumentError: If pydantic rejects a value (e.g. unknown policy).
    """
    try:
        return SamplerConfig(**kwargs)
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid sampler configuration: {exc}") from exc


def validate_config(config: SamplerConfig) -> None:
    """Check policy-dependent ranges of a configuration.

    Args:
        config: The configuration to check.

    Raises:
        InvalidArgumentError: If temperature is not positive for a stochastic
            policy, top_k is negative, top_p is outside [0, 1] for the top_p
            policy, or log_level is unknown.
    """
    if config.policy.is_stochastic and not config.temperature > 0:
        raise InvalidArgumentError(
            f"temperature must be > 0 for policy '{config.policy.value}', "
            f"got {config.temperature}"
        )
    if config.top_k < 0:
        raise InvalidArgumentError(f"top_k must be >= 0, got {config.top_k}")
    if config.policy is SamplingPolicy.TOP_P and (
        math.isnan(config.top_p) or not 0.0 <= config.top_p <= 1.0
    ):
        raise InvalidArgumentError(f"top_p must be in [0, 1], got {config.top_p}")
    if config.log_level not in _LOG_LEVELS:
        raise InvalidArgumentError(
            f"log_level must be one of {sorted(_LOG_LEVELS)}, got {config.log_level!r}"
        )


def _strip_prefix(key: str) -> str:
    if key.startswith(_OVERRIDE_PREFIX):
        return key[len(_OVERRIDE_PREFIX) :]
    return key


def resolve_config(
    defaults: SamplerConfig,
    overrides: dict[str, Any] | None,
) -> SamplerConfig:
    """Create a new config instance merging defaults with overrides.

    Override keys may carry a 'ts_' prefix (e.g., 'ts_top_k': 40).

    Args:
        defaults: The base configuration.
        overrides: Field overrides, or None.

    Returns:
        ``defaults`` itself when there is nothing to override, otherwise a
        new validated SamplerConfig.

    Raises:
        InvalidArgumentError: If a key names no config field, a value
            fails type validation, or the merged config is out of range.
    """
    if not overrides:
        return defaults

    updates: dict[str, Any] = {}
    for key, value in overrides.items():
        field_name = _strip_prefix(key)
        if field_name not in _ALL_FIELDS:
            raise InvalidArgumentError(
                f"Unknown config field: '{key}' (no field '{field_name}' exists)"
            )
        updates[field_name] = value

    # model_copy(update=...) skips validation, so coerce through model_validate.
    merged = defaults.model_dump()
    merged.update(updates)
    try:
        resolved = SamplerConfig.model_validate(merged)
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid sampler configuration: {exc}") from exc
    validate_config(resolved)
    return resolved


def config_hash(config: SamplerConfig) -> str:
    """Return the first 16 hex characters of the SHA-256 of the config dump."""
    raw = config.model_dump_json().encode("utf-8")
    return hashlib.sha256(raw).hexdigest()[:16]
