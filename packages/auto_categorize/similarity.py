"""Description similarity scoring and the amount pre-filter.

Both helpers are pure and cheap to call; :mod:`auto_categorize.history`
composes them into the history search.

Scoring tiers (after normalization):

- ``1.0`` exact match (two empty strings also count as exact);
- ``0.8`` one description contains the other;
- ``(0.5, 0.8)`` shared significant words (longer than 3 characters);
- ``0.0`` otherwise.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from decimal import Decimal, InvalidOperation
from operator import attrgetter
from typing import Any, TypeVar

T = TypeVar("T")

EXACT_SCORE: float = 1.0
CONTAINS_SCORE: float = 0.8
WORD_BASE_SCORE: float = 0.5
WORD_SPAN: float = 0.3
MIN_WORD_LEN: int = 4

AMOUNT_LOWER_FACTOR = Decimal("0.8")
AMOUNT_UPPER_FACTOR = Decimal("1.2")


def _normalize(s: str) -> str:
    # Order matters: trim happens before apostrophes are removed.
    return s.lower().strip().replace("'", "")


def _significant_words(s: str) -> list[str]:
    return [w for w in s.split() if len(w) >= MIN_WORD_LEN]


def similarity_score(a: str, b: str) -> float:
    """Return a similarity score in ``[0, 1]`` for two free-text descriptions.

    The word tier counts every token of ``a``'s list that appears in the *set*
    of ``b``'s tokens, so a word repeated in ``a`` is counted once per
    occurrence. That makes the word tier slightly asymmetric for inputs with
    repeated words; callers always pass the pending description first.
    """

    s1 = _normalize(a)
    s2 = _normalize(b)

    if not s1 or not s2:
        return EXACT_SCORE if s1 == s2 else 0.0

    if s1 == s2:
        return EXACT_SCORE

    if s1 in s2 or s2 in s1:
        return CONTAINS_SCORE

    words1 = _significant_words(s1)
    words2 = set(_significant_words(s2))
    common = sum(1 for w in words1 if w in words2)
    if common > 0:
        return WORD_BASE_SCORE + (common / max(len(words1), len(words2))) * WORD_SPAN

    return 0.0


# ---- Amount pre-filter ------------------------------------------------------


def to_amount(raw: Any) -> Decimal | None:
    """Coerce ``raw`` to a finite ``Decimal`` or return ``None`` when malformed."""

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        d = raw
    else:
        try:
            d = Decimal(str(raw).strip())
        except (InvalidOperation, ValueError):
            return None
    return d if d.is_finite() else None


def amount_window(target: Any) -> tuple[Decimal, Decimal] | None:
    """Return the inclusive ``(lo, hi)`` window of ±20% around ``target``.

    ``min``/``max`` keep the bounds ordered for negative targets, where the
    0.8 multiple is the upper bound. Returns ``None`` for a malformed target.
    """

    t = to_amount(target)
    if t is None:
        return None
    a1 = t * AMOUNT_LOWER_FACTOR
    a2 = t * AMOUNT_UPPER_FACTOR
    return min(a1, a2), max(a1, a2)


def filter_by_amount(
    target: Any,
    candidates: Iterable[T],
    *,
    amount_of: Callable[[T], Any] = attrgetter("amount"),
) -> list[T]:
    """Return the candidates whose amount lies within ±20% of ``target``.

    Order is preserved. Candidates with a missing or non-numeric amount are
    skipped, and a malformed ``target`` yields an empty list. An empty result
    is not a "no match" signal: callers must fall back to the full pool.
    """

    window = amount_window(target)
    if window is None:
        return []
    lo, hi = window
    out: list[T] = []
    for c in candidates:
        amt = to_amount(amount_of(c))
        if amt is not None and lo <= amt <= hi:
            out.append(c)
    return out


__all__ = [
    "similarity_score",
    "to_amount",
    "amount_window",
    "filter_by_amount",
]
