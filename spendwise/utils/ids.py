"""Id generation for the flat ledger collections."""

from typing import Iterable, Protocol


class HasId(Protocol):
    id: int


def generate_id(items: Iterable[HasId]) -> int:
    """
    Next id for a collection: max(existing ids, 0) + 1.

    Ids are only ever derived from what is currently in the collection,
    so gaps left by deletions below the maximum are never filled.
    """
    return max([0, *(item.id for item in items)]) + 1
