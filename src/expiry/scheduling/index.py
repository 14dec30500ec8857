"""Mirrored time/key indices over caller-supplied tables.

``TimeIndex`` wraps an ordered byte table whose record keys are
``encode(time) + utf8(key)`` and whose values are ``utf8(key)``. The key
suffix keeps distinct keys with identical expiry times apart.

``KeyIndex`` wraps any table mapping ``utf8(key)`` to ``encode(time)``.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from expiry import timestamps
from expiry.errors import NotFoundError
from expiry.stores.protocols import OrderedTable, Table, first_key
from expiry.timestamps import Timestamp


def encode_key(key: str) -> bytes:
    return key.encode("utf-8")


def decode_key(raw: bytes | str) -> str:
    if isinstance(raw, str):
        return raw
    return bytes(raw).decode("utf-8")


class TimeIndex:
    """TimeToKeyIndex: ascending by expiry time."""

    def __init__(self, table: OrderedTable[Any, Any]) -> None:
        self._table = table

    @property
    def table(self) -> OrderedTable[Any, Any]:
        return self._table

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, entry: object) -> bool:
        if not isinstance(entry, tuple) or len(entry) != 2:
            return False
        when, key = entry
        return timestamps.time_key(when, encode_key(key)) in self._table

    def add(self, when: Timestamp, key: str) -> None:
        raw = encode_key(key)
        self._table[timestamps.time_key(when, raw)] = raw

    def remove(self, when: Timestamp, key: str) -> None:
        """Remove a record. Raises NotFoundError if it is absent."""
        del self._table[timestamps.time_key(when, encode_key(key))]

    def discard(self, when: Timestamp, key: str) -> None:
        try:
            self.remove(when, key)
        except KeyError:
            pass

    def first(self) -> tuple[Timestamp, str]:
        """Peek the earliest record.

        Raises:
            NotFoundError: If the index is empty.
        """
        when, suffix = timestamps.split_time_key(bytes(first_key(self._table)))
        return when, decode_key(suffix)

    def peek(self) -> tuple[Timestamp, str] | None:
        try:
            return self.first()
        except KeyError:
            return None

    def __iter__(self) -> Iterator[tuple[Timestamp, str]]:
        for raw in self._table.keys():
            when, suffix = timestamps.split_time_key(bytes(raw))
            yield when, decode_key(suffix)


class KeyIndex:
    """KeyToTimeIndex: key to its pending expiry time."""

    def __init__(self, table: Table[Any, Any]) -> None:
        self._table = table

    @property
    def table(self) -> Table[Any, Any]:
        return self._table

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return encode_key(key) in self._table

    def get(self, key: str) -> Timestamp:
        """Return the pending time for ``key``.

        Raises:
            NotFoundError: If ``key`` has no pending expiry.
        """
        try:
            raw = self._table[encode_key(key)]
        except KeyError:
            raise NotFoundError(key) from None
        return timestamps.decode(bytes(raw))

    def set(self, key: str, when: Timestamp) -> None:
        self._table[encode_key(key)] = timestamps.encode(when)

    def remove(self, key: str) -> None:
        del self._table[encode_key(key)]

    def discard(self, key: str) -> None:
        try:
            self.remove(key)
        except KeyError:
            pass
