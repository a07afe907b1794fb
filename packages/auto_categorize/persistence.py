"""Persistence integration for auto-categorization.

Reads and writes go through the shared ORM models in ``db.models.finance``
and a session provided by ``db.client``. Functions here never commit: callers
wrap them in :func:`db.client.session_scope`, which commits on success and
rolls back on any exception, so a batch of bulk updates lands atomically.

Scope:
- Load rules, categorized history, and pending transactions for an account
  (in the order the matcher relies on).
- Apply grouped category updates (one ``UPDATE ... WHERE id IN`` per group).
- Manage keyword rules (create, list, soft-delete, seed defaults).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from db.models.finance import FaRule, FaTransaction
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .logging_setup import get_logger
from .merchants import MERCHANT_RULES, MerchantRule
from .models import (
    STATUS_CATEGORIZED,
    STATUS_PENDING,
    BulkUpdateOp,
    CategorizedTransaction,
    PendingTransaction,
    Rule,
)

_logger = get_logger("auto_categorize.persistence")


def _rule_from_row(row: FaRule) -> Rule:
    return Rule(
        id=row.id,
        keyword=row.keyword,
        major_category=row.major_category,
        category=row.category,
        sub_category=row.sub_category,
        is_default=bool(row.is_default),
        created_at=row.created_at,
    )


class SqlTransactionStore:
    """Storage reader/writer over a caller-owned SQLAlchemy session.

    Ordering guarantees (the matcher depends on them):

    - rules: newest first (``created_at DESC``, then ``id DESC``);
    - history: most recent first (``date DESC NULLS LAST``, then ``id DESC``),
      capped;
    - pending: import order (``id ASC``).
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ---- reader ------------------------------------------------------------

    def load_rules(self, account_id: str) -> list[Rule]:
        rows = (
            self._session.execute(
                select(FaRule)
                .where(FaRule.account_id == account_id, FaRule.deleted_at.is_(None))
                .order_by(FaRule.created_at.desc(), FaRule.id.desc())
            )
            .scalars()
            .all()
        )
        return [_rule_from_row(r) for r in rows]

    def load_history(self, account_id: str, *, limit: int) -> list[CategorizedTransaction]:
        rows = (
            self._session.execute(
                select(FaTransaction)
                .where(
                    FaTransaction.account_id == account_id,
                    FaTransaction.status == STATUS_CATEGORIZED,
                    FaTransaction.major_category_id.is_not(None),
                    FaTransaction.is_deleted.is_(False),
                )
                .order_by(FaTransaction.date.desc().nulls_last(), FaTransaction.id.desc())
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return [
            CategorizedTransaction(
                id=r.id,
                description=r.description,
                amount=r.amount,
                major_category_id=r.major_category_id,  # type: ignore[arg-type]
                category_id=r.category_id,
                date=r.date,
                origin=r.origin,
                status=r.status,
            )
            for r in rows
        ]

    def load_pending(self, account_id: str) -> list[PendingTransaction]:
        rows = (
            self._session.execute(
                select(FaTransaction)
                .where(
                    FaTransaction.account_id == account_id,
                    FaTransaction.status == STATUS_PENDING,
                    FaTransaction.is_deleted.is_(False),
                )
                .order_by(FaTransaction.id.asc())
            )
            .scalars()
            .all()
        )
        return [
            PendingTransaction(
                id=r.id,
                description=r.description,
                amount=r.amount,
                date=r.date,
                origin=r.origin,
                status=r.status,
            )
            for r in rows
        ]

    # ---- writer ------------------------------------------------------------

    def _apply_one(self, op: BulkUpdateOp, account_id: str | None) -> int:
        stmt = update(FaTransaction).where(FaTransaction.id.in_(op.transaction_ids))
        if account_id is not None:
            stmt = stmt.where(FaTransaction.account_id == account_id)
        result = self._session.execute(
            stmt.values(**op.values, updated_at=func.now()),
            execution_options={"synchronize_session": False},
        )
        return result.rowcount or 0

    def apply_bulk_updates(
        self, ops: Sequence[BulkUpdateOp], *, account_id: str | None = None
    ) -> int:
        """Execute every op in the current transaction; return rows touched.

        Does not commit. Any failure propagates so the enclosing
        ``session_scope`` rolls back all ops together.
        """

        touched = 0
        for op in ops:
            touched += self._apply_one(op, account_id)
        self._session.flush()
        _logger.debug("applied %d bulk updates touching %d rows", len(ops), touched)
        return touched


# ---- Rule management ---------------------------------------------------------


def create_rule(
    session: Session,
    *,
    account_id: str,
    keyword: str,
    major_category: str,
    category: str,
    sub_category: str | None = None,
    is_default: bool = False,
) -> Rule:
    """Create a keyword rule. Keywords are stored lower-cased.

    Raises ``ValueError`` for an empty keyword or when an active rule with the
    same keyword already exists for the account.
    """

    kw = keyword.strip().lower()
    if not kw:
        raise ValueError("Rule keyword cannot be empty")
    if not major_category.strip() or not category.strip():
        raise ValueError("Rule must name both a major category and a category")

    existing = session.execute(
        select(FaRule.id).where(
            FaRule.account_id == account_id,
            FaRule.keyword == kw,
            FaRule.deleted_at.is_(None),
        )
    ).first()
    if existing is not None:
        raise ValueError(f"Rule with keyword {kw!r} already exists")

    row = FaRule(
        account_id=account_id,
        keyword=kw,
        major_category=major_category.strip(),
        category=category.strip(),
        sub_category=(sub_category or "").strip() or None,
        is_default=is_default,
    )
    session.add(row)
    session.flush()
    return _rule_from_row(row)


def list_rules(session: Session, *, account_id: str) -> list[Rule]:
    """Active rules for display: defaults first, then newest first."""

    rows = (
        session.execute(
            select(FaRule)
            .where(FaRule.account_id == account_id, FaRule.deleted_at.is_(None))
            .order_by(FaRule.is_default.desc(), FaRule.created_at.desc(), FaRule.id.desc())
        )
        .scalars()
        .all()
    )
    return [_rule_from_row(r) for r in rows]


def soft_delete_rule(session: Session, *, account_id: str, rule_id: int) -> None:
    """Mark a rule deleted; it stops matching but stays in the table."""

    row = session.execute(
        select(FaRule).where(
            FaRule.id == rule_id,
            FaRule.account_id == account_id,
            FaRule.deleted_at.is_(None),
        )
    ).scalar_one_or_none()
    if row is None:
        raise ValueError(f"Rule not found: {rule_id}")
    row.deleted_at = datetime.now(UTC)
    session.flush()


def seed_default_rules(
    session: Session,
    *,
    account_id: str,
    merchant_rules: Iterable[MerchantRule] = MERCHANT_RULES,
) -> int:
    """Copy the merchant table into the account's rules as ``is_default`` rows.

    Keywords already present as active rules are skipped. Returns the number
    of rules created.
    """

    present = set(
        session.execute(
            select(FaRule.keyword).where(
                FaRule.account_id == account_id, FaRule.deleted_at.is_(None)
            )
        ).scalars()
    )
    created = 0
    for m in merchant_rules:
        kw = m.keyword.lower()
        if kw in present:
            continue
        session.add(
            FaRule(
                account_id=account_id,
                keyword=kw,
                major_category=m.major_category,
                category=m.category,
                sub_category=m.sub_category or m.category,
                is_default=True,
            )
        )
        present.add(kw)
        created += 1
    session.flush()
    return created


__all__ = [
    "SqlTransactionStore",
    "create_rule",
    "list_rules",
    "soft_delete_rule",
    "seed_default_rules",
]
