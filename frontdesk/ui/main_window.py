from __future__ import annotations

import logging

from PySide6.QtCore import Slot
from PySide6.QtWidgets import (
    QComboBox,
    QFormLayout,
    QGroupBox,
    QLineEdit,
    QListWidget,
    QMainWindow,
    QPushButton,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from frontdesk.application.dto import CheckinDraft, checkin_payload
from frontdesk.application.offline_sync_service import OfflineSyncService
from frontdesk.core.errors import ValidationError
from frontdesk.domain.models import COTTAGE_TYPES, COTTAGES
from frontdesk.domain.ports import Unsubscribe
from frontdesk.domain.sync_errors import StoreUnavailableError
from frontdesk.domain.sync_models import CHECKINS_PARTITION
from frontdesk.ui.components import ConnectionStatus
from frontdesk.ui.controllers.sync_controller import SyncController

logger = logging.getLogger(__name__)


def format_checkin_row(record: dict) -> str:
    name = record.get("clientName") or record.get("client_name") or "?"
    cottage = record.get("cottageNumber") or record.get("cottage_number") or "?"
    when = " ".join(part for part in (record.get("checkInDate"), record.get("checkInTime")) if part)
    suffix = " (pending)" if record.get("pendingSync") else ""
    return f"{name} - {cottage} {when}".strip() + suffix


class FrontDeskWindow(QMainWindow):
    def __init__(self, sync_service: OfflineSyncService, parent=None) -> None:
        super().__init__(parent)
        self._sync_service = sync_service
        self._sync_controller = SyncController(self, sync_service)
        self._status_unsubscribe: Unsubscribe | None = None

        self.setWindowTitle("Front desk")
        self._build_ui()

        self._status_unsubscribe = sync_service.subscribe_status(self.connection_status.snapshot_changed.emit)
        self.connection_status.apply_snapshot(sync_service.snapshot())
        self.connection_status.snapshot_changed.connect(self._on_snapshot)
        self.reload_checkins()

    def _build_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)

        self.connection_status = ConnectionStatus(central)
        layout.addWidget(self.connection_status)

        form_box = QGroupBox("Quick check-in", central)
        form = QFormLayout(form_box)
        self.client_name_input = QLineEdit(form_box)
        self.cottage_input = QComboBox(form_box)
        self.cottage_input.addItems(list(COTTAGES))
        self.cottage_type_input = QComboBox(form_box)
        self.cottage_type_input.addItems(list(COTTAGE_TYPES))
        self.cottage_type_input.setCurrentText("DOUBLE")
        self.phone_input = QLineEdit(form_box)
        self.email_input = QLineEdit(form_box)
        self.guests_input = QLineEdit(form_box)
        self.guests_input.setPlaceholderText("Comma separated")
        self.save_button = QPushButton("Save check-in", form_box)
        self.save_button.setProperty("variant", "primary")
        self.save_button.clicked.connect(self.on_save_checkin)
        form.addRow("Guest name", self.client_name_input)
        form.addRow("Cottage", self.cottage_input)
        form.addRow("Type", self.cottage_type_input)
        form.addRow("Phone", self.phone_input)
        form.addRow("Email", self.email_input)
        form.addRow("Other guests", self.guests_input)
        form.addRow(self.save_button)
        layout.addWidget(form_box)

        list_box = QGroupBox("Check-ins on this device", central)
        list_layout = QVBoxLayout(list_box)
        self.checkins_list = QListWidget(list_box)
        list_layout.addWidget(self.checkins_list)
        layout.addWidget(list_box)

        self.retry_sync_button = QPushButton("Retry sync", central)
        self.retry_sync_button.clicked.connect(self._sync_controller.on_retry_sync)
        layout.addWidget(self.retry_sync_button)

        self.setCentralWidget(central)
        self.setStatusBar(QStatusBar(self))

    def build_draft(self) -> CheckinDraft:
        guests = tuple(name.strip() for name in self.guests_input.text().split(",") if name.strip())
        return CheckinDraft(
            client_name=self.client_name_input.text(),
            cottage_number=self.cottage_input.currentText(),
            cottage_type=self.cottage_type_input.currentText(),
            client_phone=self.phone_input.text().strip() or None,
            client_email=self.email_input.text().strip() or None,
            guest_names=guests,
        )

    @Slot()
    def on_save_checkin(self) -> None:
        try:
            payload = checkin_payload(self.build_draft())
        except ValidationError as exc:
            self.show_message(str(exc))
            return
        try:
            self._sync_service.save_offline(CHECKINS_PARTITION, payload, keep_local_copy=True)
        except StoreUnavailableError:
            self.show_message("Could not save the check-in on this device.")
            return
        except Exception as exc:  # noqa: BLE001
            logger.exception("Check-in could not be saved")
            self.show_message(f"Could not save the check-in: {exc}")
            return
        self.client_name_input.clear()
        self.guests_input.clear()
        self.show_message("Check-in saved.")
        self.reload_checkins()

    def reload_checkins(self) -> None:
        self.checkins_list.clear()
        for record in self._sync_service.get_offline_records(CHECKINS_PARTITION):
            self.checkins_list.addItem(format_checkin_row(record))

    def set_sync_in_progress(self, in_progress: bool) -> None:
        self.retry_sync_button.setEnabled(not in_progress)

    def show_message(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)

    @Slot(object)
    def _on_snapshot(self, _snapshot) -> None:
        self.retry_sync_button.setEnabled(not self._sync_controller.in_progress)
        # A finished sync may have swapped pending rows for the server copy.
        self.reload_checkins()

    def closeEvent(self, event) -> None:  # noqa: N802
        if self._status_unsubscribe is not None:
            self._status_unsubscribe()
            self._status_unsubscribe = None
        super().closeEvent(event)
