from __future__ import annotations

import argparse
import hashlib
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from frontdesk.bootstrap.logging import configure_logging
from frontdesk.bootstrap.settings import resolve_log_dir
from frontdesk.infrastructure.db import default_db_path, get_connection

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"
_UP_SUFFIX = ".up.sql"
_HISTORY_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    checksum TEXT NOT NULL,
    applied_at TEXT NOT NULL
)
"""


@dataclass(frozen=True)
class MigrationDefinition:
    version: int
    name: str
    up_sql: Path
    down_sql: Path

    @property
    def label(self) -> str:
        return f"{self.version:04d}_{self.name}"

    def up_script(self) -> str:
        return self.up_sql.read_text(encoding="utf-8")

    def down_script(self) -> str:
        return self.down_sql.read_text(encoding="utf-8")

    def checksum(self) -> str:
        return hashlib.sha256(self.up_script().encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class MigrationState:
    version: int
    name: str
    applied: bool
    # The .up.sql file changed after it was applied to this database.
    drifted: bool = False

    @property
    def marker(self) -> str:
        if self.drifted:
            return "[!]"
        return "[x]" if self.applied else "[ ]"


class MigrationRunner:
    """Applies and rolls back the numbered SQL scripts of the offline store.

    Each applied script is recorded in ``schema_migrations`` together with its
    checksum, and ``PRAGMA user_version`` always holds the highest applied
    version.
    """

    def __init__(self, connection: sqlite3.Connection, migrations_dir: Path | None = None) -> None:
        self.connection = connection
        self.migrations = discover_migrations(migrations_dir)

    def apply_all(self) -> list[int]:
        history = self._history()
        for state in self._states(history):
            if state.drifted:
                logger.warning("Migration %04d %s changed after it was applied", state.version, state.name)
        pending = [migration for migration in self.migrations if migration.version not in history]
        for migration in pending:
            self._run(migration.up_script(), migration, applying=True)
        return [migration.version for migration in pending]

    def rollback(self, steps: int = 1) -> list[int]:
        history = self._history()
        by_version = {migration.version: migration for migration in self.migrations}
        newest_first = sorted(history, reverse=True)[: max(steps, 0)]
        for version in newest_first:
            migration = by_version[version]
            self._run(migration.down_script(), migration, applying=False)
        return newest_first

    def status(self) -> list[MigrationState]:
        return self._states(self._history())

    def _states(self, history: dict[int, str]) -> list[MigrationState]:
        return [
            MigrationState(
                version=migration.version,
                name=migration.name,
                applied=migration.version in history,
                drifted=migration.version in history and history[migration.version] != migration.checksum(),
            )
            for migration in self.migrations
        ]

    def _history(self) -> dict[int, str]:
        """Applied version -> checksum recorded when it ran."""
        self.connection.execute(_HISTORY_DDL)
        self.connection.commit()
        rows = self.connection.execute("SELECT version, checksum FROM schema_migrations").fetchall()
        return {int(version): str(checksum) for version, checksum in rows}

    def _run(self, script: str, migration: MigrationDefinition, *, applying: bool) -> None:
        with self.connection:
            if script.strip():
                self.connection.executescript(script)
            if applying:
                self.connection.execute(
                    "INSERT INTO schema_migrations (version, name, checksum, applied_at) VALUES (?, ?, ?, ?)",
                    (migration.version, migration.name, migration.checksum(), _utc_now()),
                )
            else:
                self.connection.execute("DELETE FROM schema_migrations WHERE version = ?", (migration.version,))
            current = self.connection.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations").fetchone()[0]
            self.connection.execute(f"PRAGMA user_version = {int(current)}")
        logger.info("%s migration %s", "Applied" if applying else "Rolled back", migration.label)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_stem(up_file: Path) -> tuple[int, str, str]:
    stem = up_file.name[: -len(_UP_SUFFIX)]
    version_text, _, name = stem.partition("_")
    if not version_text.isdigit() or not name:
        raise ValueError(f"Migration file must be named NNN_name{_UP_SUFFIX}: {up_file.name}")
    return int(version_text), name, stem


def discover_migrations(migrations_dir: Path | None = None) -> list[MigrationDefinition]:
    directory = migrations_dir or MIGRATIONS_DIR
    definitions: list[MigrationDefinition] = []
    for up_file in directory.glob(f"*{_UP_SUFFIX}"):
        version, name, stem = _parse_stem(up_file)
        down_file = directory / f"{stem}.down.sql"
        if not down_file.exists():
            raise FileNotFoundError(f"Missing down migration for {up_file.name}: {down_file}")
        definitions.append(MigrationDefinition(version, name, up_file, down_file))
    definitions.sort(key=lambda migration: migration.version)
    versions = [migration.version for migration in definitions]
    if len(set(versions)) != len(versions):
        raise ValueError(f"Duplicate migration versions in {directory}")
    return definitions


def latest_schema_version(migrations_dir: Path | None = None) -> int:
    migrations = discover_migrations(migrations_dir)
    return migrations[-1].version if migrations else 0


def run_migrations(connection: sqlite3.Connection) -> list[int]:
    return MigrationRunner(connection).apply_all()


def build_cli() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the front desk offline store schema")
    parser.add_argument("command", choices=["up", "down", "status"], help="Operation to run")
    parser.add_argument("--db", default=str(default_db_path()), help="Path to the SQLite file")
    parser.add_argument("--steps", type=int, default=1, help="Number of migrations to roll back")
    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(resolve_log_dir())
    args = build_cli().parse_args(argv)

    connection = get_connection(Path(args.db))
    try:
        runner = MigrationRunner(connection)
        if args.command == "status":
            for state in runner.status():
                print(f"{state.marker} {state.version:04d} {state.name}")
            return 0
        versions = runner.apply_all() if args.command == "up" else runner.rollback(args.steps)
        logger.info("Migrations %s", args.command, extra={"extra": {"command": args.command, "versions": versions}})
        print(f"{args.command}: {', '.join(str(version) for version in versions) or 'nothing to do'}")
    finally:
        connection.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
