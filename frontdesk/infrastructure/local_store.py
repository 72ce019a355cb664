from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from frontdesk.core.errors import ValidationError
from frontdesk.domain.sync_errors import StoreUnavailableError, UnknownPartitionError
from frontdesk.domain.sync_models import MIRROR_PARTITIONS, SYNC_QUEUE_PARTITION
from frontdesk.infrastructure.db import get_connection
from frontdesk.infrastructure.migrations import run_migrations
from frontdesk.infrastructure.sqlite_uow import store_access

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], sqlite3.Connection]

_QUEUE_COLUMNS = ("id", "operation", "model", "payload", "enqueued_at", "attempts", "last_error")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SQLiteLocalStore:
    """Durable local store split in named partitions.

    ``sync_queue`` keeps pending mutations as typed columns; the mirror
    partitions keep the last known server snapshot of each entity as JSON,
    keyed by the entity ``id``. One connection is shared by every caller and
    all access goes through ``_lock``, so UI and worker threads can use the
    same instance.
    """

    def __init__(self, connection_factory: ConnectionFactory | None = None) -> None:
        self._connection_factory = connection_factory or get_connection
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self) -> "SQLiteLocalStore":
        with self._lock:
            if self._connection is not None:
                return self
            try:
                connection = self._connection_factory()
                run_migrations(connection)
            except (sqlite3.Error, OSError) as exc:
                raise StoreUnavailableError(f"Local store could not be opened: {exc}") from exc
            self._connection = connection
            logger.info("Local store opened")
            return self

    def close(self) -> None:
        with self._lock:
            if self._connection is None:
                return
            self._connection.close()
            self._connection = None
            logger.info("Local store closed")

    def get_all(self, partition: str) -> list[dict[str, Any]]:
        table = self._table_for(partition)
        with self._lock, store_access(self._require_connection(), f"read partition {partition!r}") as connection:
            if table == SYNC_QUEUE_PARTITION:
                rows = connection.execute(
                    f"SELECT {', '.join(_QUEUE_COLUMNS)} FROM sync_queue ORDER BY enqueued_at, seq"
                ).fetchall()
                return [self._queue_row_to_dict(row) for row in rows]
            rows = connection.execute(f"SELECT data FROM {table} ORDER BY seq").fetchall()
            return [json.loads(row["data"]) for row in rows]

    def put(self, partition: str, record: dict[str, Any]) -> None:
        table = self._table_for(partition)
        key = self._key_of(record)
        with self._lock, store_access(
            self._require_connection(), f"write to partition {partition!r}", atomic=True
        ) as connection:
            if table == SYNC_QUEUE_PARTITION:
                self._upsert_queue_row(connection, record)
            else:
                self._upsert_mirror_row(connection, table, key, record)

    def record_attempt(self, key: str, attempts: int, last_error: str | None) -> bool:
        """Store replay bookkeeping on a queued record that is still there.

        Only updates: a record another drain already delivered and removed
        stays removed. Returns whether the record was found.
        """
        with self._lock, store_access(
            self._require_connection(), f"update queued record {key!r}", atomic=True
        ) as connection:
            cursor = connection.execute(
                "UPDATE sync_queue SET attempts = ?, last_error = ? WHERE id = ?",
                (int(attempts), last_error, str(key)),
            )
            return cursor.rowcount > 0

    def delete(self, partition: str, key: str) -> None:
        table = self._table_for(partition)
        with self._lock, store_access(
            self._require_connection(), f"delete from partition {partition!r}", atomic=True
        ) as connection:
            connection.execute(f"DELETE FROM {table} WHERE id = ?", (str(key),))

    def replace_all(self, partition: str, records: Iterable[dict[str, Any]]) -> int:
        table = self._table_for(partition)
        if table == SYNC_QUEUE_PARTITION:
            raise ValidationError("The sync queue cannot be overwritten wholesale")
        materialized = [(self._key_of(record), record) for record in records]
        with self._lock, store_access(
            self._require_connection(), f"refresh partition {partition!r}", atomic=True
        ) as connection:
            connection.execute(f"DELETE FROM {table}")
            for key, record in materialized:
                self._upsert_mirror_row(connection, table, key, record)
        return len(materialized)

    def count(self, partition: str) -> int:
        table = self._table_for(partition)
        with self._lock, store_access(self._require_connection(), f"count partition {partition!r}") as connection:
            row = connection.execute(f"SELECT COUNT(*) AS total FROM {table}").fetchone()
        return int(row["total"])

    def applied_schema_version(self) -> int:
        with self._lock:
            connection = self._require_connection()
            return int(connection.execute("PRAGMA user_version").fetchone()[0])

    def _require_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise StoreUnavailableError("Local store is not open")
        return self._connection

    @staticmethod
    def _table_for(partition: str) -> str:
        if partition == SYNC_QUEUE_PARTITION or partition in MIRROR_PARTITIONS:
            return partition
        raise UnknownPartitionError(partition)

    @staticmethod
    def _key_of(record: dict[str, Any]) -> str:
        key = record.get("id")
        if key is None or str(key).strip() == "":
            raise ValidationError("Record has no 'id' primary key")
        return str(key)

    @staticmethod
    def _upsert_queue_row(connection: sqlite3.Connection, record: dict[str, Any]) -> None:
        # ON CONFLICT keeps the original seq, so bookkeeping updates never reorder the queue.
        connection.execute(
            """
            INSERT INTO sync_queue (id, operation, model, payload, enqueued_at, attempts, last_error)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                operation = excluded.operation,
                model = excluded.model,
                payload = excluded.payload,
                enqueued_at = excluded.enqueued_at,
                attempts = excluded.attempts,
                last_error = excluded.last_error
            """,
            (
                str(record["id"]),
                str(record["operation"]),
                str(record["model"]),
                json.dumps(record.get("payload"), ensure_ascii=False),
                int(record["enqueued_at"]),
                int(record.get("attempts") or 0),
                record.get("last_error"),
            ),
        )

    @staticmethod
    def _upsert_mirror_row(connection: sqlite3.Connection, table: str, key: str, record: dict[str, Any]) -> None:
        connection.execute(
            f"""
            INSERT INTO {table} (id, data, stored_at)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET data = excluded.data, stored_at = excluded.stored_at
            """,
            (key, json.dumps(record, ensure_ascii=False), _utc_now()),
        )

    @staticmethod
    def _queue_row_to_dict(row: sqlite3.Row) -> dict[str, Any]:
        return {
            "id": row["id"],
            "operation": row["operation"],
            "model": row["model"],
            "payload": json.loads(row["payload"]),
            "enqueued_at": row["enqueued_at"],
            "attempts": row["attempts"],
            "last_error": row["last_error"],
        }
