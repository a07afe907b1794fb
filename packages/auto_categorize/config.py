"""Environment-driven tunables.

Every value has a hard-coded default and an optional environment override.
Unparseable or non-positive overrides fall back to the default rather than
failing the run; explicit arguments always win over the environment.
"""

from __future__ import annotations

import logging
import os

# Cap on the categorized-history window loaded per run. Larger values raise
# recall for accounts with long histories at the cost of matching latency.
DEFAULT_HISTORY_LIMIT: int = 500
HISTORY_LIMIT_ENV = "AUTO_CATEGORIZE_HISTORY_LIMIT"

# How long a loaded taxonomy snapshot is reused by the name->id resolver.
DEFAULT_RESOLVER_TTL_SEC: float = 300.0
RESOLVER_TTL_ENV = "AUTO_CATEGORIZE_RESOLVER_TTL"

# Level for the package logger when the CLI configures output.
DEFAULT_LOG_LEVEL: int = logging.INFO
LOG_LEVEL_ENV = "AUTO_CATEGORIZE_LOG_LEVEL"


def _positive_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        val = int(raw.strip())
    except ValueError:
        return None
    return val if val > 0 else None


def _non_negative_float(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        val = float(raw.strip())
    except ValueError:
        return None
    return val if val >= 0 else None


def _log_level(raw: str | None) -> int | None:
    if raw is None:
        return None
    name = raw.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name)


def resolve_history_limit(override: int | None = None) -> int:
    """Return the history cap: ``override`` > env var > default."""

    if override is not None:
        if isinstance(override, bool) or override < 1:
            raise ValueError("history_limit must be a positive integer")
        return override
    return _positive_int(os.getenv(HISTORY_LIMIT_ENV)) or DEFAULT_HISTORY_LIMIT


def resolve_resolver_ttl(override: float | None = None) -> float:
    """Return the taxonomy cache TTL in seconds: ``override`` > env var > default."""

    if override is not None:
        return max(0.0, float(override))
    env_val = _non_negative_float(os.getenv(RESOLVER_TTL_ENV))
    return DEFAULT_RESOLVER_TTL_SEC if env_val is None else env_val


def resolve_log_level(override: int | str | None = None) -> int:
    """Return the package log level: ``override`` > env var > ``INFO``.

    ``override`` may be a level number or a name such as ``"debug"``; an
    unknown name raises ``ValueError``. An unknown env value is ignored.
    """

    if isinstance(override, int) and not isinstance(override, bool):
        return override
    if isinstance(override, str):
        level = _log_level(override)
        if level is None:
            raise ValueError(f"unknown log level: {override!r}")
        return level
    env_val = _log_level(os.getenv(LOG_LEVEL_ENV))
    return DEFAULT_LOG_LEVEL if env_val is None else env_val


__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_RESOLVER_TTL_SEC",
    "HISTORY_LIMIT_ENV",
    "LOG_LEVEL_ENV",
    "RESOLVER_TTL_ENV",
    "resolve_history_limit",
    "resolve_log_level",
    "resolve_resolver_ttl",
]
