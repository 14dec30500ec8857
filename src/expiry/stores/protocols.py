"""Capability protocols for the tables expiry runs on.

Any table used as a data store, key index or time index must behave like a
small mapping. The time index additionally has to iterate its keys in
ascending order; the scheduler only ever consumes the first one.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Protocol, TypeVar, runtime_checkable

from expiry.errors import NotFoundError

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@runtime_checkable
class Table(Protocol[K, V]):
    """Keyed table. A plain ``dict`` satisfies this protocol."""

    def __getitem__(self, key: K) -> V:
        """Return the value for ``key`` or raise ``KeyError``."""
        ...

    def __setitem__(self, key: K, value: V) -> None:
        """Insert or overwrite ``key``."""
        ...

    def __delitem__(self, key: K) -> None:
        """Remove ``key``; raising ``KeyError`` when absent is allowed."""
        ...

    def __contains__(self, key: object) -> bool: ...

    def __len__(self) -> int: ...


@runtime_checkable
class OrderedTable(Table[K, V], Protocol[K, V]):
    """Table whose keys iterate in ascending order."""

    def keys(self) -> Iterator[K]:
        """Lazily yield keys in ascending order."""
        ...


def first_key(table: OrderedTable[K, V]) -> K:
    """Return the smallest key of ``table``.

    Raises:
        NotFoundError: If the table is empty.
    """
    first = getattr(table, "first", None)
    if callable(first):
        return first()
    for key in table.keys():
        return key
    raise NotFoundError("table is empty")
