"""Grouping of category assignments into bulk updates.

Importing or re-categorizing a few hundred transactions would otherwise issue
one ``UPDATE`` per row. Transactions that end up with a byte-identical update
(same provenance, same category ids) are collected under one key and written
with a single ``UPDATE ... WHERE id IN (...)``, so the number of statements is
bounded by the number of distinct outcomes rather than by the number of rows.

Keys have the form ``"<provenance>-<json category ids>"``, for example::

    merchant-{"category_id":"alimentacao-fixos","major_category_id":"custos-fixos"}

A batcher is owned by a single run; :meth:`CategorizationBatcher.flush` hands
out immutable operations and resets the accumulator.
"""

from __future__ import annotations

from .models import (
    PROVENANCES,
    BulkUpdateOp,
    CategoryAssignment,
    CategoryIds,
    Provenance,
)


def batch_key(provenance: Provenance, ids: CategoryIds) -> str:
    return f"{provenance}-{ids.serialize()}"


class _Group:
    __slots__ = ("provenance", "ids", "transaction_ids")

    def __init__(self, provenance: Provenance, ids: CategoryIds) -> None:
        self.provenance = provenance
        self.ids = ids
        self.transaction_ids: list[int] = []


class CategorizationBatcher:
    """Keyed accumulator of transaction ids that share an identical update."""

    def __init__(self) -> None:
        # Insertion-ordered: flush() emits groups in first-seen order.
        self._groups: dict[str, _Group] = {}
        self._seen: set[int] = set()

    def __len__(self) -> int:
        return len(self._seen)

    def add(self, transaction_id: int, assignment: CategoryAssignment) -> None:
        """Record ``assignment`` for ``transaction_id``.

        A transaction gets exactly one outcome per run; adding the same id
        twice raises ``ValueError``.
        """

        if assignment.transaction_id != transaction_id:
            raise ValueError(
                f"assignment is for transaction {assignment.transaction_id}, "
                f"not {transaction_id}"
            )
        if transaction_id in self._seen:
            raise ValueError(f"transaction {transaction_id} already batched in this run")

        key = batch_key(assignment.provenance, assignment.ids)
        group = self._groups.get(key)
        if group is None:
            group = _Group(assignment.provenance, assignment.ids)
            self._groups[key] = group
        group.transaction_ids.append(transaction_id)
        self._seen.add(transaction_id)

    def counts_by_provenance(self) -> dict[Provenance, int]:
        counts: dict[Provenance, int] = dict.fromkeys(PROVENANCES, 0)
        for group in self._groups.values():
            counts[group.provenance] += len(group.transaction_ids)
        return counts

    def flush(self) -> list[BulkUpdateOp]:
        """Return one :class:`BulkUpdateOp` per group and clear the batcher."""

        ops = [
            BulkUpdateOp(
                provenance=g.provenance,
                ids=g.ids,
                transaction_ids=tuple(g.transaction_ids),
            )
            for g in self._groups.values()
        ]
        self._groups = {}
        self._seen = set()
        return ops


__all__ = ["CategorizationBatcher", "batch_key"]
