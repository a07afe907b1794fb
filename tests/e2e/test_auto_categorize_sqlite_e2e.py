"""End-to-end auto-categorization against a temporary SQLite database."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from db.client import session_scope

from auto_categorize.api import auto_categorize_account
from auto_categorize.categories import CategoryResolver, db_taxonomy_loader
from auto_categorize.errors import CommitError, LoadError
from auto_categorize.persistence import SqlTransactionStore, create_rule
from tests.helpers.db import add_transactions, fetch_transactions

ACCOUNT = "acc-e2e"


def _seed_account(database_url: str) -> dict[str, int]:
    """Rules, history, and pending rows; returns pending ids by label."""

    with session_scope(database_url=database_url) as session:
        create_rule(
            session,
            account_id=ACCOUNT,
            keyword="escola musica",
            major_category="Custos Variaveis",
            category="Lazer",
        )
        create_rule(
            session,
            account_id=ACCOUNT,
            keyword="condominio",
            major_category="Custos Fixos",
            category="Casa",
        )

    add_transactions(
        database_url=database_url,
        account_id=ACCOUNT,
        rows=[
            {
                "description": "TALHO SILVA",
                "amount": Decimal("-30.00"),
                "date": date(2026, 9, 1),
                "major_category_id": "custos-fixos",
                "category_id": "custos-fixos.alimentacao",
            },
            {
                "description": "CABELEIREIRO RITA",
                "amount": Decimal("-25.00"),
                "date": date(2026, 9, 2),
                "major_category_id": "custos-variaveis",
                "category_id": "custos-variaveis.lazer",
            },
        ],
    )

    labels = [
        ("continente", "COMPRA CONTINENTE MODELO", "-54.20"),
        ("pingo", "PINGO DOCE LISBOA", "-12.10"),
        ("lidl", "LIDL AMADORA", "-8.99"),
        ("escola", "PAGAMENTO ESCOLA MUSICA", "-60.00"),
        ("condominio", "TRF CONDOMINIO PREDIO", "-45.00"),
        ("talho1", "TALHO SILVA", "-31.00"),
        ("talho2", "talho silva", "-29.50"),
        ("talho3", "TALHO SILVA LDA", "-28.00"),
        ("rita1", "CABELEIREIRO RITA", "-25.00"),
        ("rita2", "CABELEIREIRO RITA", "-22.00"),
        ("other", "TRANSFERENCIA DIVERSA", "-100.00"),
    ]
    ids = add_transactions(
        database_url=database_url,
        account_id=ACCOUNT,
        rows=[
            {"description": desc, "amount": Decimal(amount), "date": date(2026, 10, 1)}
            for _, desc, amount in labels
        ],
    )
    return {label: tx_id for (label, _, _), tx_id in zip(labels, ids, strict=True)}


def test_auto_categorize_account_end_to_end(sqlite_url: str) -> None:
    ids = _seed_account(sqlite_url)

    summary = auto_categorize_account(ACCOUNT, database_url=sqlite_url)

    assert (summary.total, summary.by_merchant, summary.by_rule, summary.by_history) == (
        11,
        3,
        2,
        5,
    )
    rows = fetch_transactions(database_url=sqlite_url, account_id=ACCOUNT)
    expected = {
        "continente": ("custos-fixos", "custos-fixos.alimentacao"),
        "lidl": ("custos-fixos", "custos-fixos.alimentacao"),
        "escola": ("custos-variaveis", "custos-variaveis.lazer"),
        "condominio": ("custos-fixos", "custos-fixos.casa"),
        "talho3": ("custos-fixos", "custos-fixos.alimentacao"),
        "rita2": ("custos-variaveis", "custos-variaveis.lazer"),
    }
    for label, (major, category) in expected.items():
        row = rows[ids[label]]
        assert (row.major_category_id, row.category_id, row.status) == (
            major,
            category,
            "categorized",
        )
        assert row.flagged is False
    assert rows[ids["other"]].status == "pending"
    assert rows[ids["other"]].major_category_id is None

    # A second run only sees what is still pending.
    again = auto_categorize_account(ACCOUNT, database_url=sqlite_url)
    assert (again.total, again.updated) == (1, 0)


def test_commit_failure_rolls_back_every_group(
    sqlite_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    ids = _seed_account(sqlite_url)
    original = SqlTransactionStore._apply_one
    applied: list[object] = []

    def _fail_on_second(self, op, account_id):
        applied.append(op)
        if len(applied) == 2:
            raise RuntimeError("disk I/O error")
        return original(self, op, account_id)

    monkeypatch.setattr(SqlTransactionStore, "_apply_one", _fail_on_second)

    with pytest.raises(CommitError, match="disk I/O error"):
        auto_categorize_account(ACCOUNT, database_url=sqlite_url)

    assert len(applied) == 2
    rows = fetch_transactions(database_url=sqlite_url, account_id=ACCOUNT)
    for tx_id in ids.values():
        assert rows[tx_id].status == "pending"
        assert rows[tx_id].major_category_id is None


def test_caller_supplied_resolver_is_reused(sqlite_url: str) -> None:
    ids = _seed_account(sqlite_url)
    loads = 0
    db_loader = db_taxonomy_loader(database_url=sqlite_url)

    def _counting_loader():
        nonlocal loads
        loads += 1
        return db_loader()

    resolver = CategoryResolver(_counting_loader)

    summary = auto_categorize_account(ACCOUNT, database_url=sqlite_url, resolver=resolver)
    auto_categorize_account(ACCOUNT, database_url=sqlite_url, resolver=resolver)

    assert summary.by_merchant == 3
    # Five name lookups (3 merchant, 2 rule) share one taxonomy read.
    assert loads == 1
    rows = fetch_transactions(database_url=sqlite_url, account_id=ACCOUNT)
    assert rows[ids["pingo"]].category_id == "custos-fixos.alimentacao"


def test_history_limit_restricts_the_window(sqlite_url: str) -> None:
    ids = _seed_account(sqlite_url)

    # Only the most recent history row (CABELEIREIRO RITA) is consulted.
    summary = auto_categorize_account(ACCOUNT, database_url=sqlite_url, history_limit=1)

    assert summary.by_history == 2
    rows = fetch_transactions(database_url=sqlite_url, account_id=ACCOUNT)
    assert rows[ids["talho1"]].status == "pending"
    assert rows[ids["rita1"]].status == "categorized"


def test_missing_database_url_is_a_load_error() -> None:
    with pytest.raises(LoadError, match="DATABASE_URL"):
        auto_categorize_account(ACCOUNT)
