from __future__ import annotations

import importlib
import os
import platform
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _is_linux_headless() -> bool:
    if platform.system() != "Linux":
        return False
    return not (os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"))


if _is_linux_headless():
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    os.environ.setdefault("QT_OPENGL", "software")


_UI_BACKEND_ERROR: str | None = None


def _detect_ui_backend_issue() -> str | None:
    try:
        importlib.import_module("PySide6")
        importlib.import_module("PySide6.QtWidgets")
        return None
    except Exception as exc:  # pragma: no cover - depends on the host
        return f"PySide6/Qt not available for UI tests: {exc}"


def pytest_configure(config: pytest.Config) -> None:
    global _UI_BACKEND_ERROR
    config.addinivalue_line("markers", "ui: PySide6 interface tests")
    _UI_BACKEND_ERROR = _detect_ui_backend_issue()


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    skip_ui = None
    if _UI_BACKEND_ERROR is not None:
        skip_ui = pytest.mark.skip(reason=_UI_BACKEND_ERROR)

    for item in items:
        if "tests/ui/" in item.nodeid:
            item.add_marker(pytest.mark.ui)
        if skip_ui is not None and "ui" in item.keywords:
            item.add_marker(skip_ui)


from frontdesk.core.metrics import metrics_registry
from frontdesk.domain.sync_models import ConnectivityState
from frontdesk.infrastructure.connectivity import ManualConnectivitySource
from frontdesk.infrastructure.db import IN_MEMORY, get_connection
from frontdesk.infrastructure.local_store import SQLiteLocalStore
from tests.fakes import FakeTransport


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics_registry.reset()
    yield
    metrics_registry.reset()


@pytest.fixture
def store() -> SQLiteLocalStore:
    local_store = SQLiteLocalStore(lambda: get_connection(IN_MEMORY))
    local_store.open()
    yield local_store
    local_store.close()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def online_source() -> ManualConnectivitySource:
    return ManualConnectivitySource(ConnectivityState.ONLINE)


@pytest.fixture
def offline_source() -> ManualConnectivitySource:
    return ManualConnectivitySource(ConnectivityState.OFFLINE)
