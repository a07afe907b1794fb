"""Auto-categorization of an account's pending transactions.

Public API:
    - :func:`auto_categorize`
    - :class:`TransactionReader`, :class:`TransactionWriter`,
      :class:`NameResolver` (collaborator protocols)

One call runs ``LOAD -> MATCH -> BATCH -> COMMIT -> REPORT``:

- LOAD reads rules (newest first), categorized history (most recent first,
  capped) and pending transactions. Any read failure raises
  :class:`~auto_categorize.errors.LoadError` before anything is matched.
- MATCH tries, per pending transaction, the merchant table, then user rules,
  then history similarity. Exactly one outcome per transaction; a name that
  cannot be resolved to ids leaves that transaction pending.
- BATCH groups assignments by (provenance, category ids).
- COMMIT hands every group to the writer in one call; a failure raises
  :class:`~auto_categorize.errors.CommitError` and no counts are reported.
- REPORT returns an :class:`~auto_categorize.models.AutoCategorizeSummary`.

No side effects occur at import time; all state is local to one call.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from .batching import CategorizationBatcher
from .config import resolve_history_limit
from .errors import CommitError, LoadError
from .history import find_best_match
from .logging_setup import get_logger
from .merchants import MERCHANT_RULES, MerchantRule
from .models import (
    AutoCategorizeSummary,
    BulkUpdateOp,
    CategorizedTransaction,
    CategoryAssignment,
    CategoryIds,
    PendingTransaction,
    Rule,
)
from .rules import match_rules

_logger = get_logger("auto_categorize.categorize")


# ---- Collaborator protocols -------------------------------------------------


class TransactionReader(Protocol):
    def load_rules(self, account_id: str) -> Sequence[Rule]:
        """Active rules for the account, newest first."""
        ...

    def load_history(
        self, account_id: str, *, limit: int
    ) -> Sequence[CategorizedTransaction]:
        """Categorized transactions, most recent first, at most ``limit`` rows."""
        ...

    def load_pending(self, account_id: str) -> Sequence[PendingTransaction]:
        ...


class TransactionWriter(Protocol):
    def apply_bulk_updates(
        self, ops: Sequence[BulkUpdateOp], *, account_id: str | None = None
    ) -> int:
        """Apply every op as one logical transaction; raise on any failure."""
        ...


class NameResolver(Protocol):
    def resolve(self, major_name: str | None, category_name: str | None) -> CategoryIds:
        """Map names to ids.

        Should raise :class:`~auto_categorize.errors.ResolutionError` for names
        it cannot map. Any exception raised here only leaves the one matched
        transaction pending.
        """
        ...


# ---- Matching -----------------------------------------------------------------


def _match_one(
    tx: PendingTransaction,
    *,
    merchant_rules: Sequence[MerchantRule],
    rules: Sequence[Rule],
    history: Sequence[CategorizedTransaction],
    resolver: NameResolver,
) -> CategoryAssignment | None:
    description = tx.description if isinstance(tx.description, str) else ""

    rule_match = match_rules(description, merchant_rules, rules)
    if rule_match is not None:
        try:
            ids = resolver.resolve(rule_match.major_category, rule_match.category)
        except Exception as e:
            _logger.warning(
                "transaction %s: %s keyword %r matched but %r; leaving pending",
                tx.id,
                rule_match.provenance,
                rule_match.keyword,
                e,
            )
            return None
        return CategoryAssignment(tx.id, ids, rule_match.provenance)

    hit = find_best_match(description, tx.amount, history)
    if hit is None:
        return None
    ids = CategoryIds(hit.candidate.major_category_id, hit.candidate.category_id)
    _logger.debug(
        "transaction %s: history match %s (score %.2f)", tx.id, hit.candidate.id, hit.score
    )
    return CategoryAssignment(tx.id, ids, "history")


# ---- Orchestration ------------------------------------------------------------


def auto_categorize(
    account_id: str,
    *,
    reader: TransactionReader,
    writer: TransactionWriter,
    resolver: NameResolver,
    merchant_rules: Sequence[MerchantRule] = MERCHANT_RULES,
    history_limit: int | None = None,
) -> AutoCategorizeSummary:
    """Categorize every pending transaction of ``account_id`` it can match.

    ``history_limit`` caps the history window (default from
    ``AUTO_CATEGORIZE_HISTORY_LIMIT`` or 500); a smaller window is faster but
    can miss older look-alikes.
    """

    limit = resolve_history_limit(history_limit)

    # LOAD
    try:
        rules = list(reader.load_rules(account_id))
        history = list(reader.load_history(account_id, limit=limit))
        pending = list(reader.load_pending(account_id))
    except Exception as e:
        _logger.error("load failed for account %s: %s", account_id, e)
        raise LoadError(f"failed to load transactions for account {account_id!r}: {e}") from e

    _logger.info(
        "account %s: %d pending, %d rules, %d history rows (limit %d)",
        account_id,
        len(pending),
        len(rules),
        len(history),
        limit,
    )

    # MATCH + BATCH
    batcher = CategorizationBatcher()
    for tx in pending:
        assignment = _match_one(
            tx,
            merchant_rules=merchant_rules,
            rules=rules,
            history=history,
            resolver=resolver,
        )
        if assignment is not None:
            batcher.add(tx.id, assignment)

    counts = batcher.counts_by_provenance()
    ops = batcher.flush()

    # COMMIT
    if ops:
        try:
            writer.apply_bulk_updates(ops, account_id=account_id)
        except Exception as e:
            _logger.error("commit of %d bulk updates failed: %s", len(ops), e)
            raise CommitError(f"failed to apply categorization updates: {e}") from e

    # REPORT
    summary = AutoCategorizeSummary(
        total=len(pending),
        by_merchant=counts["merchant"],
        by_rule=counts["rule"],
        by_history=counts["history"],
    )
    _logger.info("%s (%d bulk updates)", summary.message, len(ops))
    return summary


__all__ = [
    "TransactionReader",
    "TransactionWriter",
    "NameResolver",
    "auto_categorize",
]
