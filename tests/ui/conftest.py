import inspect
import os
from pathlib import Path

import pytest


def _qt_ready() -> bool:
    try:
        from PySide6.QtCore import QEvent
        from PySide6.QtWidgets import QApplication

        _ = (QApplication, QEvent)
        return True
    except Exception:
        return False


def require_qt():
    # UI tests only: keeps non-UI tests free of the Qt backend.
    caller_file = Path(inspect.stack()[1].filename).as_posix()
    if "/tests/ui/" not in f"/{caller_file}":
        raise RuntimeError("require_qt() is only meant for tests/ui/**")

    try:
        from PySide6.QtWidgets import QApplication

        return QApplication
    except Exception:
        pytest.skip("PySide6 not available in this environment", allow_module_level=True)


def _is_ui_item(item: pytest.Item) -> bool:
    item_path = getattr(item, "path", None)
    if item_path is None:
        return False
    parts = Path(str(item_path)).as_posix().split("/")
    return any(parts[idx] == "tests" and parts[idx + 1] == "ui" for idx in range(len(parts) - 1))


def pytest_collection_modifyitems(config, items):
    skip_ui_in_ci = os.getenv("CI") == "true" and os.getenv("RUN_UI_TESTS") != "1"
    qt_ready = _qt_ready()

    skip_in_ci = pytest.mark.skip(reason="UI tests disabled in CI by default (set RUN_UI_TESTS=1).")
    skip_qt = pytest.mark.skip(reason="PySide6 not available in this environment")

    for item in items:
        if not _is_ui_item(item):
            continue
        if skip_ui_in_ci:
            item.add_marker(skip_in_ci)
            continue
        if not qt_ready:
            item.add_marker(skip_qt)


@pytest.fixture
def qapp():
    QApplication = require_qt()
    app = QApplication.instance() or QApplication([])
    yield app
