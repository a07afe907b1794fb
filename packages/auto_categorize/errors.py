"""Error taxonomy for an auto-categorization run.

Run-level failures (:class:`LoadError`, :class:`CommitError`) abort the whole
pass and are raised to the caller with the underlying exception chained.
:class:`ResolutionError` is per-transaction: the orchestrator catches it, logs
it, and leaves that one transaction pending.
"""

from __future__ import annotations


class AutoCategorizeError(RuntimeError):
    """Base class for failures that abort an entire categorization run."""


class LoadError(AutoCategorizeError):
    """Reading rules, history, or pending transactions failed; nothing was updated."""


class CommitError(AutoCategorizeError):
    """Applying the batched updates failed; the transaction was rolled back."""


class ResolutionError(LookupError):
    """A (major category, category) name pair could not be mapped to ids."""

    def __init__(self, major_name: str | None, category_name: str | None, reason: str) -> None:
        super().__init__(f"cannot resolve {major_name!r}/{category_name!r}: {reason}")
        self.major_name = major_name
        self.category_name = category_name
        self.reason = reason


__all__ = [
    "AutoCategorizeError",
    "LoadError",
    "CommitError",
    "ResolutionError",
]
