from __future__ import annotations

import argparse
import faulthandler
import logging
import sys
from pathlib import Path

from frontdesk.bootstrap.container import AppContainer, build_container
from frontdesk.bootstrap.logging import configure_logging, install_exception_hook
from frontdesk.bootstrap.settings import resolve_log_dir

logger = logging.getLogger(__name__)


def _run_selfcheck(container: AppContainer, log_dir: Path) -> int:
    report = container.health_check_use_case.run()
    for item in report.checks:
        level = logging.INFO if item.status == "OK" else logging.WARNING if item.status == "WARN" else logging.ERROR
        logger.log(level, "[%s] %s/%s: %s", item.status, item.category, item.key, item.message)
    container.local_store.close()
    if not report.ok:
        logger.error("Selfcheck failed. crash.log=%s", log_dir / "crash.log")
        return 1
    logger.info("Selfcheck OK.")
    return 0


def _run_sync_now(container: AppContainer) -> int:
    service = container.sync_service
    service.start()
    try:
        result = service.sync_data()
        snapshot = service.snapshot()
    finally:
        service.stop()
    logger.info(
        "Sync finished: attempted=%s succeeded=%s failed=%s pending=%s",
        result.attempted,
        result.succeeded,
        result.failed,
        snapshot.pending,
    )
    if not snapshot.offline_enabled:
        logger.error("Local store not available; nothing to sync")
        return 1
    return 1 if result.has_failures else 0


def _discard_task(_task: object) -> None:
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Front desk offline sync")
    parser.add_argument("--selfcheck", action="store_true", help="Check local store and API access without the UI")
    parser.add_argument("--sync-now", action="store_true", help="Replay queued mutations and exit")
    parser.add_argument("--db", default=None, help="Path to the SQLite file")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    log_dir = resolve_log_dir()
    configure_logging(log_dir)
    install_exception_hook(log_dir)
    faulthandler.enable()

    logger.info("Log dir: %s", log_dir)
    logger.info("Python: %s", sys.version)
    logger.info("CWD: %s", Path.cwd())

    if args.selfcheck:
        return _run_selfcheck(build_container(db_path=args.db), log_dir)
    if args.sync_now:
        # The explicit drain below is the only one this run should perform.
        return _run_sync_now(build_container(db_path=args.db, dispatcher=_discard_task))

    from frontdesk.entrypoints.ui_main import run_ui

    return run_ui(db_path=args.db)
