from __future__ import annotations

import sqlite3

import pytest

from frontdesk.infrastructure.db import get_connection
from frontdesk.domain.sync_errors import StoreUnavailableError
from frontdesk.infrastructure.sqlite_uow import store_access, transaction


def test_file_connection_uses_wal_and_row_factory(tmp_path) -> None:
    connection = get_connection(tmp_path / "nested" / "store.db")
    try:
        assert connection.execute("PRAGMA journal_mode").fetchone()[0].lower() == "wal"
        assert connection.row_factory is sqlite3.Row
    finally:
        connection.close()


def test_transaction_rolls_back_on_error() -> None:
    connection = get_connection(":memory:")
    connection.execute("CREATE TABLE t (id INTEGER)")
    connection.commit()

    with pytest.raises(RuntimeError):
        with transaction(connection):
            connection.execute("INSERT INTO t VALUES (1)")
            raise RuntimeError("boom")

    assert connection.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 0


def test_nested_transaction_uses_savepoint() -> None:
    connection = get_connection(":memory:")
    connection.execute("CREATE TABLE t (id INTEGER)")
    connection.commit()

    with transaction(connection):
        connection.execute("INSERT INTO t VALUES (1)")
        with pytest.raises(RuntimeError):
            with transaction(connection):
                connection.execute("INSERT INTO t VALUES (2)")
                raise RuntimeError("inner")

    assert [row[0] for row in connection.execute("SELECT id FROM t")] == [1]


def test_store_access_reports_sqlite_errors_as_store_unavailable() -> None:
    connection = get_connection(":memory:")

    with pytest.raises(StoreUnavailableError, match="Could not read partition 'missing'"):
        with store_access(connection, "read partition 'missing'") as db:
            db.execute("SELECT * FROM missing")


def test_atomic_store_access_rolls_back_partial_writes() -> None:
    connection = get_connection(":memory:")
    connection.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")
    connection.commit()

    with pytest.raises(StoreUnavailableError):
        with store_access(connection, "write t", atomic=True) as db:
            db.execute("INSERT INTO t VALUES (1)")
            db.execute("INSERT INTO t VALUES (1)")

    assert connection.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 0
