"""Public API interfaces and orchestration for the ``auto_categorize`` package.

This module is the stable import surface for callers (route handlers, the
CLI, scripts). The matching logic lives in :mod:`auto_categorize.categorize`
and is re-exported here; :func:`auto_categorize_account` wires it to the
database.

Transactions are kept short: reads run in their own ``session_scope`` and
are finished before matching starts, and all bulk updates run (and commit)
inside a single second scope. A failure during that second scope rolls back
every update and surfaces as :class:`~auto_categorize.errors.CommitError`.
"""

from __future__ import annotations

from collections.abc import Sequence

from db.client import session_scope

from .categories import CategoryResolver, db_taxonomy_loader
from .categorize import NameResolver, auto_categorize
from .merchants import MERCHANT_RULES, MerchantRule
from .models import (
    AutoCategorizeSummary,
    BulkUpdateOp,
    CategorizedTransaction,
    PendingTransaction,
    Rule,
)
from .persistence import SqlTransactionStore


class _ScopedReader:
    """Reader that opens a short transaction per load."""

    def __init__(self, database_url: str | None) -> None:
        self._database_url = database_url

    def load_rules(self, account_id: str) -> list[Rule]:
        with session_scope(database_url=self._database_url) as session:
            return SqlTransactionStore(session).load_rules(account_id)

    def load_history(self, account_id: str, *, limit: int) -> list[CategorizedTransaction]:
        with session_scope(database_url=self._database_url) as session:
            return SqlTransactionStore(session).load_history(account_id, limit=limit)

    def load_pending(self, account_id: str) -> list[PendingTransaction]:
        with session_scope(database_url=self._database_url) as session:
            return SqlTransactionStore(session).load_pending(account_id)


class _ScopedWriter:
    """Writer that applies every op and commits in one transaction."""

    def __init__(self, database_url: str | None) -> None:
        self._database_url = database_url

    def apply_bulk_updates(
        self, ops: Sequence[BulkUpdateOp], *, account_id: str | None = None
    ) -> int:
        with session_scope(database_url=self._database_url) as session:
            return SqlTransactionStore(session).apply_bulk_updates(ops, account_id=account_id)


def auto_categorize_account(
    account_id: str,
    *,
    database_url: str | None = None,
    history_limit: int | None = None,
    resolver: NameResolver | None = None,
    merchant_rules: Sequence[MerchantRule] = MERCHANT_RULES,
) -> AutoCategorizeSummary:
    """Run auto-categorization for one account against the database.

    ``database_url`` falls back to ``DATABASE_URL``. Pass a long-lived
    ``resolver`` to reuse its taxonomy cache across calls; by default a fresh
    one is built per call.
    """

    if resolver is None:
        resolver = CategoryResolver(db_taxonomy_loader(database_url=database_url))
    return auto_categorize(
        account_id,
        reader=_ScopedReader(database_url),
        writer=_ScopedWriter(database_url),
        resolver=resolver,
        merchant_rules=merchant_rules,
        history_limit=history_limit,
    )


__all__ = [
    "auto_categorize",
    "auto_categorize_account",
]
