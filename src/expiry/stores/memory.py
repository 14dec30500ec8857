"""In-memory ordered table."""

from __future__ import annotations

import bisect
from collections.abc import Iterator
from typing import Any

from expiry.errors import NotFoundError


class SortedTable:
    """Dict-backed table that keeps its keys sorted.

    Keys must be mutually comparable. Insertion and removal of keys are
    ``O(n)`` list operations, the smallest key is ``O(1)``.
    """

    def __init__(self, items: dict[Any, Any] | None = None) -> None:
        self._data: dict[Any, Any] = {}
        self._keys: list[Any] = []
        for key, value in (items or {}).items():
            self[key] = value

    def __getitem__(self, key: Any) -> Any:
        try:
            return self._data[key]
        except KeyError:
            raise NotFoundError(key) from None

    def __setitem__(self, key: Any, value: Any) -> None:
        if key not in self._data:
            bisect.insort(self._keys, key)
        self._data[key] = value

    def __delitem__(self, key: Any) -> None:
        if key not in self._data:
            raise NotFoundError(key)
        del self._data[key]
        index = bisect.bisect_left(self._keys, key)
        del self._keys[index]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[Any]:
        return self.keys()

    def __repr__(self) -> str:
        return f"SortedTable({len(self)} keys)"

    def keys(self) -> Iterator[Any]:
        return iter(self._keys)

    def items(self) -> Iterator[tuple[Any, Any]]:
        for key in list(self._keys):
            yield key, self._data[key]

    def first(self) -> Any:
        if not self._keys:
            raise NotFoundError("table is empty")
        return self._keys[0]

    def clear(self) -> None:
        self._data.clear()
        self._keys.clear()
