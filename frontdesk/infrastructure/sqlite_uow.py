from __future__ import annotations

import contextlib
import sqlite3
import uuid
from collections.abc import Iterator

from frontdesk.domain.sync_errors import StoreUnavailableError


@contextlib.contextmanager
def transaction(connection: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Atomic block on ``connection``; a block opened inside another becomes a SAVEPOINT."""
    if not connection.in_transaction:
        connection.execute("BEGIN")
        try:
            yield connection
        except BaseException:
            connection.rollback()
            raise
        connection.commit()
        return

    savepoint = f"sp_{uuid.uuid4().hex}"
    connection.execute(f"SAVEPOINT {savepoint}")
    try:
        yield connection
    except BaseException:
        connection.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
        raise
    finally:
        connection.execute(f"RELEASE SAVEPOINT {savepoint}")


@contextlib.contextmanager
def store_access(connection: sqlite3.Connection, action: str, *, atomic: bool = False) -> Iterator[sqlite3.Connection]:
    """Runs one local store operation and reports SQLite failures as ``StoreUnavailableError``.

    ``action`` completes the sentence "Could not ..." in the error message.
    """
    try:
        if atomic:
            with transaction(connection):
                yield connection
        else:
            yield connection
    except sqlite3.Error as exc:
        raise StoreUnavailableError(f"Could not {action}: {exc}") from exc
