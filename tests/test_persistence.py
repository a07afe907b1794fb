from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

import pytest
from db.client import session_scope
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auto_categorize.merchants import MERCHANT_RULES
from auto_categorize.models import BulkUpdateOp, CategoryIds, Rule
from auto_categorize.persistence import (
    SqlTransactionStore,
    create_rule,
    list_rules,
    seed_default_rules,
    soft_delete_rule,
)
from tests.helpers.db import add_rule_row, add_transactions, fetch_transactions

ACCOUNT = "acc-1"
FIXED_FOOD = {"major_category_id": "custos-fixos", "category_id": "custos-fixos.alimentacao"}


# ---- Helpers -----------------------------------------------------------------


def _tx(description: str, *, day: date | None = None, **extra: Any) -> dict[str, Any]:
    return {"description": description, "amount": Decimal("-1.00"), "date": day, **extra}


def _add_rule(
    session: Session,
    keyword: str,
    major: str = "Custos Fixos",
    category: str = "Casa",
    *,
    account_id: str = ACCOUNT,
) -> Rule:
    return create_rule(
        session,
        account_id=account_id,
        keyword=keyword,
        major_category=major,
        category=category,
    )


# ---- Loading -----------------------------------------------------------------


def test_load_pending_in_import_order(sqlite_url: str) -> None:
    ids = add_transactions(
        database_url=sqlite_url,
        account_id=ACCOUNT,
        rows=[
            _tx("B", day=date(2026, 1, 2)),
            _tx("A", day=date(2026, 1, 1)),
            _tx("deleted", is_deleted=True),
            _tx("done", **FIXED_FOOD),
        ],
    )
    add_transactions(database_url=sqlite_url, account_id="other", rows=[_tx("elsewhere")])

    with session_scope(database_url=sqlite_url) as session:
        pending = SqlTransactionStore(session).load_pending(ACCOUNT)

    assert [p.id for p in pending] == ids[:2]
    assert pending[0].description == "B"
    assert pending[0].amount == Decimal("-1.00")
    assert pending[0].status == "pending"


def test_load_history_most_recent_first_and_capped(sqlite_url: str) -> None:
    ids = add_transactions(
        database_url=sqlite_url,
        account_id=ACCOUNT,
        rows=[
            _tx("old", day=date(2026, 1, 1), **FIXED_FOOD),
            _tx("new", day=date(2026, 3, 1), **FIXED_FOOD),
            _tx("mid", day=date(2026, 2, 1), **FIXED_FOOD),
            _tx("same-day", day=date(2026, 3, 1), **FIXED_FOOD),
            _tx("undated", **FIXED_FOOD),
            _tx("pending", day=date(2026, 4, 1)),
            _tx("gone", day=date(2026, 4, 1), is_deleted=True, **FIXED_FOOD),
            _tx("no-major", day=date(2026, 4, 1), status="categorized"),
        ],
    )

    with session_scope(database_url=sqlite_url) as session:
        store = SqlTransactionStore(session)
        full = store.load_history(ACCOUNT, limit=500)
        capped = store.load_history(ACCOUNT, limit=2)

    assert [h.description for h in full] == ["same-day", "new", "mid", "old", "undated"]
    assert [h.id for h in capped] == [ids[3], ids[1]]
    assert full[0].major_category_id == "custos-fixos"
    assert full[0].category_id == "custos-fixos.alimentacao"


def test_load_rules_newest_first_without_deleted(sqlite_url: str) -> None:
    with session_scope(database_url=sqlite_url) as session:
        first = _add_rule(session, "Talho", category="Alimentação")
        second = _add_rule(session, "escola", "Custos Variaveis", "Lazer")
        third = _add_rule(session, "condominio")
        soft_delete_rule(session, account_id=ACCOUNT, rule_id=second.id)

    with session_scope(database_url=sqlite_url) as session:
        rules = SqlTransactionStore(session).load_rules(ACCOUNT)

    assert [r.id for r in rules] == [third.id, first.id]
    assert rules[1].keyword == "talho"


# ---- Bulk updates --------------------------------------------------------------


def test_apply_bulk_updates_writes_each_group(sqlite_url: str) -> None:
    ids = add_transactions(
        database_url=sqlite_url,
        account_id=ACCOUNT,
        rows=[_tx(f"tx{i}", flagged=True) for i in range(4)],
    )
    (other,) = add_transactions(database_url=sqlite_url, account_id="other", rows=[_tx("x")])
    ops = [
        BulkUpdateOp("merchant", CategoryIds(**FIXED_FOOD), (ids[0], ids[1], ids[2], other)),
        BulkUpdateOp("rule", CategoryIds("custos-fixos", None), (ids[3],)),
    ]

    with session_scope(database_url=sqlite_url) as session:
        touched = SqlTransactionStore(session).apply_bulk_updates(ops, account_id=ACCOUNT)

    assert touched == 4
    rows = fetch_transactions(database_url=sqlite_url, account_id=ACCOUNT)
    for tx_id in ids[:3]:
        assert rows[tx_id].status == "categorized"
        assert rows[tx_id].flagged is False
        assert rows[tx_id].category_id == "custos-fixos.alimentacao"
    assert rows[ids[3]].major_category_id == "custos-fixos"
    assert rows[ids[3]].category_id is None
    # Scoped to the account: the foreign row is untouched.
    foreign = fetch_transactions(database_url=sqlite_url, account_id="other")
    assert foreign[other].status == "pending"


def test_bulk_updates_roll_back_together(sqlite_url: str) -> None:
    ids = add_transactions(
        database_url=sqlite_url, account_id=ACCOUNT, rows=[_tx("tx0"), _tx("tx1")]
    )
    ops = [
        BulkUpdateOp("merchant", CategoryIds(**FIXED_FOOD), (ids[0],)),
        BulkUpdateOp("rule", CategoryIds(**FIXED_FOOD), (ids[1],)),
    ]

    with pytest.raises(RuntimeError):
        with session_scope(database_url=sqlite_url) as session:
            SqlTransactionStore(session).apply_bulk_updates(ops, account_id=ACCOUNT)
            raise RuntimeError("connection dropped before commit")

    rows = fetch_transactions(database_url=sqlite_url, account_id=ACCOUNT)
    assert {r.status for r in rows.values()} == {"pending"}


# ---- Rule management -------------------------------------------------------------


def test_create_rule_rejects_empty_and_duplicate_keywords(sqlite_url: str) -> None:
    with session_scope(database_url=sqlite_url) as session:
        _add_rule(session, "Talho", category="Alimentação")
        with pytest.raises(ValueError, match="already exists"):
            _add_rule(session, " TALHO ")
        with pytest.raises(ValueError, match="empty"):
            _add_rule(session, "   ")
        # Same keyword on another account is fine.
        _add_rule(session, "talho", account_id="other")


def test_deleted_keyword_can_be_recreated(sqlite_url: str) -> None:
    with session_scope(database_url=sqlite_url) as session:
        rule = _add_rule(session, "talho", category="Alimentação")
        soft_delete_rule(session, account_id=ACCOUNT, rule_id=rule.id)
        again = _add_rule(session, "talho", "Custos Variaveis", "Alimentação")
    assert again.id != rule.id


def test_soft_delete_unknown_rule(sqlite_url: str) -> None:
    with session_scope(database_url=sqlite_url) as session:
        with pytest.raises(ValueError, match="not found"):
            soft_delete_rule(session, account_id=ACCOUNT, rule_id=12345)


def test_database_rejects_empty_keyword(sqlite_url: str) -> None:
    with pytest.raises(IntegrityError):
        add_rule_row(
            database_url=sqlite_url,
            account_id=ACCOUNT,
            keyword="",
            major_category="Custos Fixos",
            category="Casa",
        )


def test_seed_default_rules_is_idempotent(sqlite_url: str) -> None:
    with session_scope(database_url=sqlite_url) as session:
        _add_rule(session, "Netflix", "Custos Variaveis", "Lazer")

    with session_scope(database_url=sqlite_url) as session:
        created = seed_default_rules(session, account_id=ACCOUNT)
    assert created == len(MERCHANT_RULES) - 1

    with session_scope(database_url=sqlite_url) as session:
        assert seed_default_rules(session, account_id=ACCOUNT) == 0
        rules = list_rules(session, account_id=ACCOUNT)

    assert len(rules) == len(MERCHANT_RULES)
    # Defaults first, custom rules after.
    assert all(r.is_default for r in rules[:-1])
    assert rules[-1].keyword == "netflix"
    assert not rules[-1].is_default
    continente = next(r for r in rules if r.keyword == "continente")
    assert continente.sub_category == "Supermercado"
