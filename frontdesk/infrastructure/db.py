from __future__ import annotations

import sqlite3
from pathlib import Path

from frontdesk.bootstrap.settings import resolve_data_dir

DB_FILENAME = "frontdesk_offline.db"
DEFAULT_BUSY_TIMEOUT_MS = 30000
IN_MEMORY = ":memory:"


def default_db_path() -> Path:
    return resolve_data_dir() / DB_FILENAME


def configure_sqlite_connection(connection: sqlite3.Connection, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> None:
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA journal_mode=WAL")
    connection.execute("PRAGMA synchronous=NORMAL")
    connection.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")


def get_connection(
    db_path: Path | str | None = None,
    *,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    check_same_thread: bool = False,
) -> sqlite3.Connection:
    if db_path == IN_MEMORY:
        target: Path | str = IN_MEMORY
    else:
        target = Path(db_path) if db_path else default_db_path()
        target.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(
        target,
        check_same_thread=check_same_thread,
        timeout=max(1.0, busy_timeout_ms / 1000),
    )
    configure_sqlite_connection(connection, busy_timeout_ms=busy_timeout_ms)
    return connection
