"""Tests for the table implementations and their shared contract."""

from pathlib import Path

import pytest

from expiry.errors import NotFoundError
from expiry.stores import (
    DirectoryTable,
    OrderedTable,
    SortedTable,
    SqliteTable,
    Table,
    create_sqlite_engine,
    first_key,
)


class TestTableContract:
    """Every backend behaves the same through the mapping interface."""

    def test_missing_key_raises_not_found(self, table_factory):
        table = table_factory("t")
        with pytest.raises(NotFoundError):
            table[b"missing"]
        # NotFoundError is a KeyError, so dict-style callers keep working
        with pytest.raises(KeyError):
            table[b"missing"]

    def test_set_get_overwrite(self, table_factory):
        table = table_factory("t")
        table[b"k"] = b"v1"
        assert table[b"k"] == b"v1"
        table[b"k"] = b"v2"
        assert table[b"k"] == b"v2"
        assert len(table) == 1

    def test_long_keys(self, table_factory):
        table = table_factory("t")
        long_key = b"session:" + b"a" * 300
        table[long_key] = b"v"
        table[long_key[:200]] = b"prefix"
        table[b"session:b"] = b"later"
        assert table[long_key] == b"v"
        assert long_key in table
        assert list(table.keys()) == [long_key[:200], long_key, b"session:b"]
        del table[long_key]
        assert long_key not in table
        assert table[long_key[:200]] == b"prefix"
        assert len(table) == 2

    def test_delete(self, table_factory):
        table = table_factory("t")
        table[b"k"] = b"v"
        del table[b"k"]
        assert b"k" not in table
        assert len(table) == 0

    def test_delete_missing_raises(self, table_factory):
        table = table_factory("t")
        with pytest.raises(NotFoundError):
            del table[b"missing"]

    def test_contains_and_len(self, table_factory):
        table = table_factory("t")
        assert len(table) == 0
        table[b"a"] = b"1"
        table[b"b"] = b"2"
        assert b"a" in table
        assert b"c" not in table
        assert len(table) == 2

    def test_keys_ascending_byte_order(self, table_factory):
        table = table_factory("t")
        keys = [b"a", b"\x02", b"\x00", b"\x01\xff", b"\x01", b"ab"]
        for key in keys:
            table[key] = b"x"
        assert list(table.keys()) == sorted(keys)

    def test_first(self, table_factory):
        table = table_factory("t")
        with pytest.raises(NotFoundError):
            first_key(table)
        table[b"\x05"] = b"x"
        table[b"\x03"] = b"y"
        assert first_key(table) == b"\x03"
        del table[b"\x03"]
        assert first_key(table) == b"\x05"

    def test_satisfies_protocols(self, table_factory):
        table = table_factory("t")
        assert isinstance(table, Table)
        assert isinstance(table, OrderedTable)

    def test_tables_are_independent(self, table_factory):
        left = table_factory("left")
        right = table_factory("right")
        left[b"k"] = b"left"
        assert b"k" not in right
        assert len(right) == 0


class TestDictAsTable:
    def test_dict_satisfies_table(self):
        assert isinstance({}, Table)

    def test_first_key_on_plain_ordered_keys(self):
        class KeysOnly(dict):
            def keys(self):
                return iter(sorted(super().keys()))

        table = KeysOnly({b"b": 1, b"a": 2})
        assert first_key(table) == b"a"


class TestSortedTable:
    def test_initial_items(self):
        table = SortedTable({3: "c", 1: "a", 2: "b"})
        assert list(table.keys()) == [1, 2, 3]
        assert list(table.items()) == [(1, "a"), (2, "b"), (3, "c")]

    def test_overwrite_keeps_single_key(self):
        table = SortedTable()
        table[1] = "a"
        table[1] = "b"
        assert list(table) == [1]

    def test_clear(self):
        table = SortedTable({1: "a"})
        table.clear()
        assert len(table) == 0
        with pytest.raises(NotFoundError):
            table.first()


class TestSqliteTable:
    def test_text_keys_and_values_are_encoded(self, tmp_path: Path):
        engine = create_sqlite_engine(tmp_path / "db.sqlite")
        table = SqliteTable(engine, "data")
        table["key"] = "value"
        assert table[b"key"] == b"value"
        assert "key" in table
        del table["key"]
        assert len(table) == 0
        engine.dispose()

    def test_persists_across_engines(self, tmp_path: Path):
        path = tmp_path / "nested" / "db.sqlite"
        engine = create_sqlite_engine(path)
        SqliteTable(engine, "data")[b"k"] = b"v"
        engine.dispose()

        engine = create_sqlite_engine(path)
        assert SqliteTable(engine, "data")[b"k"] == b"v"
        engine.dispose()

    def test_items_and_clear(self, tmp_path: Path):
        engine = create_sqlite_engine(tmp_path / "db.sqlite")
        table = SqliteTable(engine, "data")
        table[b"b"] = b"2"
        table[b"a"] = b"1"
        assert list(table.items()) == [(b"a", b"1"), (b"b", b"2")]
        assert table.clear() == 2
        assert len(table) == 0
        engine.dispose()

    def test_non_bytes_key_not_contained(self, tmp_path: Path):
        engine = create_sqlite_engine(tmp_path / "db.sqlite")
        table = SqliteTable(engine, "data")
        assert 42 not in table
        engine.dispose()


class TestDirectoryTable:
    def test_files_named_by_hex_key(self, tmp_path: Path):
        table = DirectoryTable(tmp_path / "store")
        table["ab"] = "value"
        assert (tmp_path / "store" / "k6162").read_bytes() == b"value"

    def test_ignores_foreign_and_temp_files(self, tmp_path: Path):
        store = tmp_path / "store"
        table = DirectoryTable(store)
        table[b"\x01"] = b"x"
        (store / "notes.txt").write_text("ignore me")
        (store / "k01.tmp").write_text("partial")
        (store / "subdir").mkdir()
        assert list(table.keys()) == [b"\x01"]
        assert len(table) == 1

    def test_items_skip_nothing_when_stable(self, tmp_path: Path):
        table = DirectoryTable(tmp_path / "store")
        table[b"b"] = b"2"
        table[b"a"] = b"1"
        assert list(table.items()) == [(b"a", b"1"), (b"b", b"2")]

    def test_shared_between_instances(self, tmp_path: Path):
        first = DirectoryTable(tmp_path / "store")
        second = DirectoryTable(tmp_path / "store")
        first[b"k"] = b"v"
        assert second[b"k"] == b"v"
        del second[b"k"]
        assert b"k" not in first

    def test_empty_key(self, tmp_path: Path):
        table = DirectoryTable(tmp_path / "store")
        table[b""] = b"v"
        assert table[b""] == b"v"
        assert list(table.keys()) == [b""]

    def test_long_key_split_into_chunk_directories(self, tmp_path: Path):
        store = tmp_path / "store"
        table = DirectoryTable(store)
        key = bytes(range(150))
        table[key] = b"v"

        hexed = key.hex()
        path = store / f"d{hexed[:128]}" / f"d{hexed[128:256]}" / f"k{hexed[256:]}"
        assert path.read_bytes() == b"v"
        assert table.first() == key

        del table[key]
        assert list(store.iterdir()) == []

    def test_chunk_directory_kept_while_shared(self, tmp_path: Path):
        store = tmp_path / "store"
        table = DirectoryTable(store)
        base = b"x" * 64
        table[base + b"1"] = b"1"
        table[base + b"2"] = b"2"
        del table[base + b"1"]
        assert list(table.items()) == [(base + b"2", b"2")]
