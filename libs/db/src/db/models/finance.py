from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# BIGINT identity on Postgres; SQLite only autoincrements INTEGER PRIMARY KEY.
_BigId = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: two-level taxonomy (major -> category)
# ---------------------------


class FaMajorCategory(Base):
    __tablename__ = "fa_major_categories"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    # Names are the lookup key used by rules and the merchant table.
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class FaCategory(Base):
    __tablename__ = "fa_categories"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    major_category_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("fa_major_categories.id", deferrable=True, initially="DEFERRED"),
        nullable=False,
    )
    # Category names repeat across majors ("Alimentação" under both fixed and
    # variable costs), so uniqueness is per-major.
    name: Mapped[str] = mapped_column(String, nullable=False)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("major_category_id", "name", name="uniq_fa_cat_major_name"),
    )


# ---------------------------
# Core: fa_transactions
# ---------------------------


class FaTransaction(Base):
    __tablename__ = "fa_transactions"

    id: Mapped[int] = mapped_column(_BigId, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # Bank/provider tag the row was imported from (e.g. "cgd", "revolut").
    origin: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("'pending'")
    )
    flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    major_category_id: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("fa_major_categories.id", deferrable=True, initially="DEFERRED"),
        nullable=True,
    )
    category_id: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("fa_categories.id", deferrable=True, initially="DEFERRED"),
        nullable=True,
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "status in ('pending','categorized')",
            name="ck_fa_tx_status",
        ),
        Index("ix_fa_tx_account_status_date", "account_id", "status", "date"),
    )


# ---------------------------
# Keyword rules
# ---------------------------


class FaRule(Base):
    __tablename__ = "fa_rules"

    id: Mapped[int] = mapped_column(_BigId, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(String, nullable=False)
    # Stored lower-cased; matching is a case-insensitive substring test.
    keyword: Mapped[str] = mapped_column(String, nullable=False)
    # Rules reference the taxonomy by name; ids are resolved at match time.
    major_category: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    sub_category: Mapped[str | None] = mapped_column(String, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("length(keyword) > 0", name="ck_fa_rules_keyword_non_empty"),
        Index("ix_fa_rules_account_created", "account_id", "created_at"),
        # One active rule per keyword and account; soft-deleted rows do not count.
        Index(
            "uniq_fa_rules_account_keyword_active",
            "account_id",
            "keyword",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )


__all__ = [
    "Base",
    "FaMajorCategory",
    "FaCategory",
    "FaTransaction",
    "FaRule",
]
