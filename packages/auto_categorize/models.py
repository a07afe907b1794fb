"""Data models for ``auto_categorize``.

Domain records loaded from storage are frozen dataclasses: the core only reads
them. The per-run artifacts (assignments and bulk-update operations) are also
immutable; the only mutable accumulator lives in
:mod:`auto_categorize.batching`. The caller-facing summary is a pydantic
model so the route/UI layer can serialize it directly.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

# ---------------------------------------------------------------------------
# Provenance and statuses
# ---------------------------------------------------------------------------

type Provenance = Literal["merchant", "rule", "history"]
"""Which matching strategy produced a category assignment."""

PROVENANCES: tuple[Provenance, ...] = ("merchant", "rule", "history")

STATUS_PENDING = "pending"
STATUS_CATEGORIZED = "categorized"


# ---------------------------------------------------------------------------
# Records read from storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """An imported transaction still waiting for a category."""

    id: int
    description: str
    amount: Decimal | None
    date: date | None = None
    origin: str | None = None
    status: str = STATUS_PENDING


@dataclass(frozen=True, slots=True)
class CategorizedTransaction:
    """A history row: same shape as a pending transaction plus its category ids.

    Only used as a similarity-search corpus; never mutated by a run.
    """

    id: int
    description: str
    amount: Decimal | None
    major_category_id: str
    category_id: str | None
    date: date | None = None
    origin: str | None = None
    status: str = STATUS_CATEGORIZED


@dataclass(frozen=True, slots=True)
class Rule:
    """A keyword rule. ``is_default`` marks rules seeded from the merchant table."""

    id: int
    keyword: str
    major_category: str
    category: str
    sub_category: str | None = None
    is_default: bool = False
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Per-run artifacts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryIds:
    """Stable identifiers of a (major category, category) pair."""

    major_category_id: str
    category_id: str | None

    def as_values(self) -> dict[str, Any]:
        return {
            "major_category_id": self.major_category_id,
            "category_id": self.category_id,
        }

    def serialize(self) -> str:
        """Deterministic JSON form used as part of a batch key."""
        return json.dumps(self.as_values(), sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True, slots=True)
class CategoryAssignment:
    transaction_id: int
    ids: CategoryIds
    provenance: Provenance


@dataclass(frozen=True, slots=True)
class BulkUpdateOp:
    """One storage update applying an identical payload to many transactions."""

    provenance: Provenance
    ids: CategoryIds
    transaction_ids: tuple[int, ...]

    @property
    def values(self) -> dict[str, Any]:
        """Field-update payload written to every row in ``transaction_ids``."""
        return {
            **self.ids.as_values(),
            "status": STATUS_CATEGORIZED,
            "flagged": False,
        }


# ---------------------------------------------------------------------------
# Caller-facing result
# ---------------------------------------------------------------------------


class AutoCategorizeSummary(BaseModel):
    """Counts reported after a successful commit."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    total: int = Field(ge=0, description="Pending transactions considered by the run.")
    by_merchant: int = Field(default=0, ge=0)
    by_rule: int = Field(default=0, ge=0)
    by_history: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _updated_within_total(self) -> AutoCategorizeSummary:
        if self.updated > self.total:
            raise ValueError("updated count cannot exceed the number of pending transactions")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def updated(self) -> int:
        return self.by_merchant + self.by_rule + self.by_history

    @property
    def message(self) -> str:
        return (
            f"Applied categorization: {self.by_merchant} by merchant rules, "
            f"{self.by_rule} by custom rules, {self.by_history} by history"
        )


__all__ = [
    "Provenance",
    "PROVENANCES",
    "STATUS_PENDING",
    "STATUS_CATEGORIZED",
    "PendingTransaction",
    "CategorizedTransaction",
    "Rule",
    "CategoryIds",
    "CategoryAssignment",
    "BulkUpdateOp",
    "AutoCategorizeSummary",
]
