"""Two-level taxonomy lookups: category names -> stable identifiers.

Rules and the merchant table refer to categories by *name*; transactions
store *ids*. :class:`CategoryResolver` bridges the two from a snapshot of the
whole taxonomy (majors and categories read in one pass) that is cached for a
configurable TTL, so resolving names for hundreds of matches costs one read
rather than one round-trip per transaction.

Category names are only unique within their major ("Alimentação" exists
under both fixed and variable costs), so categories are keyed by
``(major_id, name)``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from db.client import session_scope
from db.models.finance import FaCategory, FaMajorCategory
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import resolve_resolver_ttl
from .errors import ResolutionError
from .logging_setup import get_logger
from .models import CategoryIds

_logger = get_logger("auto_categorize.categories")


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name`` (case kept)."""

    return " ".join(name.strip().split())


@dataclass(frozen=True, slots=True)
class TaxonomySnapshot:
    majors_by_name: dict[str, str] = field(default_factory=dict)
    categories_by_key: dict[tuple[str, str], str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.majors_by_name) + len(self.categories_by_key)


type TaxonomyLoader = Callable[[], TaxonomySnapshot]


def load_taxonomy(session: Session) -> TaxonomySnapshot:
    """Read every major and category into a lookup snapshot."""

    majors = session.execute(
        select(FaMajorCategory.id, FaMajorCategory.name)
    ).all()
    cats = session.execute(
        select(FaCategory.id, FaCategory.major_category_id, FaCategory.name)
    ).all()
    return TaxonomySnapshot(
        majors_by_name={normalize_name(name): mid for mid, name in majors},
        categories_by_key={(major_id, normalize_name(name)): cid for cid, major_id, name in cats},
    )


def db_taxonomy_loader(*, database_url: str | None = None) -> TaxonomyLoader:
    """Return a loader reading the taxonomy in its own short transaction."""

    def _load() -> TaxonomySnapshot:
        with session_scope(database_url=database_url) as session:
            return load_taxonomy(session)

    return _load


class CategoryResolver:
    """Cached name->id resolution backed by a :data:`TaxonomyLoader`."""

    def __init__(
        self,
        loader: TaxonomyLoader,
        *,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl = resolve_resolver_ttl(ttl_seconds)
        self._clock = clock
        self._snapshot: TaxonomySnapshot | None = None
        # A failed load is cached for one TTL, like a snapshot.
        self._failure: ResolutionError | None = None
        self._loaded_at = 0.0

    def _current(self) -> TaxonomySnapshot:
        now = self._clock()
        fresh = now - self._loaded_at <= self._ttl
        if self._snapshot is not None and fresh:
            return self._snapshot
        if self._failure is not None and fresh:
            raise self._failure
        try:
            snapshot = self._loader()
        except Exception as e:
            _logger.warning("taxonomy load failed: %s", e)
            failure = ResolutionError(None, None, f"taxonomy load failed: {e}")
            self._snapshot, self._failure, self._loaded_at = None, failure, now
            raise failure from e
        _logger.debug("loaded taxonomy snapshot (%d entries)", len(snapshot))
        self._snapshot, self._failure, self._loaded_at = snapshot, None, now
        return snapshot

    def invalidate(self) -> None:
        self._snapshot = None
        self._failure = None

    def resolve(self, major_name: str | None, category_name: str | None) -> CategoryIds:
        """Return ids for ``(major_name, category_name)``.

        Raises :class:`~auto_categorize.errors.ResolutionError` when the major
        is missing or unknown, or when a category name is given but not found
        under that major. A missing ``category_name`` resolves to the major
        alone.
        """

        if not major_name or not major_name.strip():
            raise ResolutionError(major_name, category_name, "major category name is empty")
        snapshot = self._current()
        major_id = snapshot.majors_by_name.get(normalize_name(major_name))
        if major_id is None:
            raise ResolutionError(major_name, category_name, "unknown major category")
        if not category_name or not category_name.strip():
            return CategoryIds(major_id, None)
        category_id = snapshot.categories_by_key.get((major_id, normalize_name(category_name)))
        if category_id is None:
            raise ResolutionError(major_name, category_name, "unknown category for major")
        return CategoryIds(major_id, category_id)


__all__ = [
    "normalize_name",
    "TaxonomySnapshot",
    "TaxonomyLoader",
    "load_taxonomy",
    "db_taxonomy_loader",
    "CategoryResolver",
]
