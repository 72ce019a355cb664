from __future__ import annotations

import sys
from pathlib import Path
from types import TracebackType

from frontdesk.bootstrap.exception_handler import handle_global_exception


def build_ui_error_message(incident_id: str) -> str:
    return f"An unexpected error occurred.\nIncident id: {incident_id}"


def handle_ui_exception(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_traceback: TracebackType,
) -> str:
    from PySide6.QtWidgets import QApplication, QMessageBox

    incident_id = handle_global_exception(exc_type, exc_value, exc_traceback)
    if QApplication.instance() is None:
        return incident_id
    try:
        QMessageBox.critical(None, "Unexpected error", build_ui_error_message(incident_id))
    except Exception:  # noqa: BLE001
        # The dialog itself must not raise a second crash.
        pass
    return incident_id


def run_ui(db_path: Path | str | None = None) -> int:
    from PySide6.QtWidgets import QApplication

    from frontdesk.bootstrap.container import build_container
    from frontdesk.ui.main_window import FrontDeskWindow
    from frontdesk.ui.qt_connectivity import QtConnectivitySource
    from frontdesk.ui.workers.sync_workers import QThreadDispatcher

    app = QApplication.instance() or QApplication([])
    dispatcher = QThreadDispatcher(app)
    container = build_container(db_path=db_path, connectivity=QtConnectivitySource(app), dispatcher=dispatcher)
    sync_service = container.sync_service

    try:
        sync_service.start()
        window = FrontDeskWindow(sync_service)
        window.show()
        exit_code = app.exec()
    except Exception:  # noqa: BLE001
        exc_type, exc_value, exc_traceback = sys.exc_info()
        if exc_type is not None and exc_value is not None and exc_traceback is not None:
            handle_ui_exception(exc_type, exc_value, exc_traceback)
        return 2
    finally:
        dispatcher.wait_all()
        sync_service.stop()
        container.api_client.close()
    return exit_code
