"""Best-match search over an account's categorization history.

The search runs in three phases:

1. amount pre-filter (±20%), falling back to the full pool when nothing is in
   the window;
2. description scoring in pool order, stopping at the first near-perfect
   score;
3. otherwise, the best score at or above the acceptance threshold.

The pool is expected most-recent-first, so ties and early exits favour recent
categorizations.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .logging_setup import get_logger
from .models import CategorizedTransaction
from .similarity import filter_by_amount, similarity_score, to_amount

EARLY_EXIT_SCORE: float = 0.95
MIN_ACCEPT_SCORE: float = 0.7

type Scorer = Callable[[str, str], float]

_logger = get_logger("auto_categorize.history")


@dataclass(frozen=True, slots=True)
class HistoryMatch:
    candidate: CategorizedTransaction
    score: float


def _is_well_formed(c: CategorizedTransaction) -> bool:
    return isinstance(c.description, str) and to_amount(c.amount) is not None


def find_best_match(
    description: str,
    amount: Any,
    history: Sequence[CategorizedTransaction],
    *,
    scorer: Scorer = similarity_score,
) -> HistoryMatch | None:
    """Return the best history match for a pending transaction, or ``None``.

    Never returns a candidate scoring below ``MIN_ACCEPT_SCORE``. Candidates
    with a malformed amount or description are skipped.
    """

    pool = [c for c in history if _is_well_formed(c)]
    skipped = len(history) - len(pool)
    if skipped:
        _logger.debug("skipping %d malformed history rows", skipped)
    if not pool:
        return None

    candidates = filter_by_amount(amount, pool) or pool

    best: CategorizedTransaction | None = None
    best_score = 0.0
    for candidate in candidates:
        score = scorer(description, candidate.description)
        if score >= EARLY_EXIT_SCORE:
            return HistoryMatch(candidate, score)
        # Strictly greater: the earlier (more recent) candidate keeps a tie.
        if score > best_score and score >= MIN_ACCEPT_SCORE:
            best = candidate
            best_score = score

    if best is None:
        return None
    return HistoryMatch(best, best_score)


__all__ = [
    "EARLY_EXIT_SCORE",
    "MIN_ACCEPT_SCORE",
    "HistoryMatch",
    "find_best_match",
]
