# ruff: noqa: I001
"""Taxonomy, transactions, and keyword rules for auto-categorization.

Revision ID: 0001_autocat_core
Revises: None
Create Date: 2026-10-17
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_autocat_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "fa_major_categories",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "fa_categories",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "major_category_id",
            sa.String(),
            sa.ForeignKey("fa_major_categories.id", deferrable=True, initially="DEFERRED"),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("major_category_id", "name", name="uniq_fa_cat_major_name"),
    )

    op.create_table(
        "fa_transactions",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("origin", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("flagged", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "major_category_id",
            sa.String(),
            sa.ForeignKey("fa_major_categories.id", deferrable=True, initially="DEFERRED"),
            nullable=True,
        ),
        sa.Column(
            "category_id",
            sa.String(),
            sa.ForeignKey("fa_categories.id", deferrable=True, initially="DEFERRED"),
            nullable=True,
        ),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.CheckConstraint("status in ('pending','categorized')", name="ck_fa_tx_status"),
    )
    op.create_index(
        "ix_fa_tx_account_status_date",
        "fa_transactions",
        ["account_id", "status", "date"],
    )

    op.create_table(
        "fa_rules",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("keyword", sa.String(), nullable=False),
        sa.Column("major_category", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("sub_category", sa.String(), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("length(keyword) > 0", name="ck_fa_rules_keyword_non_empty"),
    )
    op.create_index("ix_fa_rules_account_created", "fa_rules", ["account_id", "created_at"])
    # One active rule per keyword and account
    op.create_index(
        "uniq_fa_rules_account_keyword_active",
        "fa_rules",
        ["account_id", "keyword"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uniq_fa_rules_account_keyword_active", table_name="fa_rules")
    op.drop_index("ix_fa_rules_account_created", table_name="fa_rules")
    op.drop_table("fa_rules")
    op.drop_index("ix_fa_tx_account_status_date", table_name="fa_transactions")
    op.drop_table("fa_transactions")
    op.drop_table("fa_categories")
    op.drop_table("fa_major_categories")
