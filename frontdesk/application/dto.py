from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from frontdesk.core.errors import ValidationError
from frontdesk.domain.models import COTTAGE_TYPES, COTTAGES


@dataclass(frozen=True)
class CheckinDraft:
    client_name: str
    cottage_number: str
    cottage_type: str = "DOUBLE"
    client_phone: str | None = None
    client_email: str | None = None
    guest_names: tuple[str, ...] = field(default_factory=tuple)
    checked_in_at: datetime | None = None


def validate_checkin(draft: CheckinDraft) -> list[str]:
    errors: list[str] = []
    if not draft.client_name.strip():
        errors.append("Client name is required")
    if draft.cottage_number not in COTTAGES:
        errors.append(f"Unknown cottage: {draft.cottage_number}")
    if draft.cottage_type not in COTTAGE_TYPES:
        errors.append(f"Unknown cottage type: {draft.cottage_type}")
    if not (draft.client_phone or draft.client_email):
        errors.append("Either phone number or email must be provided")
    if draft.client_email and "@" not in draft.client_email:
        errors.append("Invalid email format")
    return errors


def checkin_payload(draft: CheckinDraft) -> dict[str, Any]:
    errors = validate_checkin(draft)
    if errors:
        raise ValidationError("; ".join(errors))
    moment = draft.checked_in_at or datetime.now()
    payload: dict[str, Any] = {
        "clientName": draft.client_name.strip(),
        "cottageType": draft.cottage_type,
        "cottageNumber": draft.cottage_number,
        "checkInDate": moment.strftime("%Y-%m-%d"),
        "checkInTime": moment.strftime("%H:%M"),
        "guestNames": [{"name": name} for name in draft.guest_names if name.strip()],
    }
    if draft.client_phone:
        payload["clientPhone"] = draft.client_phone
    if draft.client_email:
        payload["clientEmail"] = draft.client_email
    return payload
