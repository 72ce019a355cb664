from __future__ import annotations

import json
import logging
import traceback
import uuid
from dataclasses import asdict, dataclass
from types import TracebackType

from frontdesk.bootstrap.logging import CRASH_LOG_NAME
from frontdesk.bootstrap.settings import resolve_log_dir
from frontdesk.core.observability import generate_correlation_id, get_correlation_id
from frontdesk.core.redaction import redact_text


def generate_incident_id() -> str:
    return f"INC-{uuid.uuid4().hex[:12].upper()}"


@dataclass(frozen=True)
class IncidentReport:
    """What the front desk can quote to support after an unexpected error."""

    incident_id: str
    correlation_id: str
    error_type: str
    error_message: str
    stacktrace: str

    @classmethod
    def capture(
        cls, exc_type: type[BaseException], exc_value: BaseException, exc_traceback: TracebackType | None
    ) -> "IncidentReport":
        return cls(
            incident_id=generate_incident_id(),
            correlation_id=get_correlation_id() or generate_correlation_id(),
            error_type=exc_type.__name__,
            error_message=redact_text(str(exc_value)),
            stacktrace=redact_text("".join(traceback.format_exception(exc_type, exc_value, exc_traceback))),
        )


def _append_to_crash_file(report: IncidentReport) -> None:
    # Used when the logging handlers themselves are broken.
    log_dir = resolve_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    with (log_dir / CRASH_LOG_NAME).open("a", encoding="utf-8") as crash_file:
        crash_file.write(json.dumps(asdict(report), ensure_ascii=False) + "\n")


def handle_global_exception(
    exc_type: type[BaseException], exc_value: BaseException, exc_traceback: TracebackType | None
) -> str:
    report = IncidentReport.capture(exc_type, exc_value, exc_traceback)
    try:
        logging.getLogger("frontdesk.global_exception").critical(
            "Unhandled exception. incident_id=%s",
            report.incident_id,
            exc_info=(exc_type, exc_value, exc_traceback),
            extra={"incident_id": report.incident_id, "correlation_id": report.correlation_id},
        )
    except Exception:  # noqa: BLE001
        _append_to_crash_file(report)
    return report.incident_id
