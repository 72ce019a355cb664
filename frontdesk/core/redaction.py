from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

REDACTED = "<REDACTED>"

_PATTERNS = (
    re.compile(r"(?i)(authorization[\"']?\s*[:=]\s*[\"']?bearer\s+)([^\s,;\"']+)"),
    re.compile(r"(?i)(\bbearer\s+)([A-Za-z0-9._~+/=-]{8,})"),
    re.compile(r'(?i)("?(?:api_token|access_token|token|password|api_key)"?\s*[:=]\s*)("[^"]*"|\'[^\']*\'|[^,\s}\]]+)'),
)
# Guest contact data travels in check-in payloads and stays out of log files.
_MASKED_KEYS = frozenset(
    {"clientPhone", "clientEmail", "client_phone", "client_email", "api_token", "token", "authorization"}
)


def redact_text(text: str) -> str:
    for pattern in _PATTERNS:
        text = pattern.sub(rf"\1{REDACTED}", text)
    return text


def redact_value(value: Any) -> Any:
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, Mapping):
        return {key: REDACTED if key in _MASKED_KEYS else redact_value(item) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_value(item) for item in value]
    return value


class SecretsRedactionFilter(logging.Filter):
    """Masks bearer tokens and guest contact data before a record is written."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_text(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(redact_value(arg) for arg in record.args)
        elif isinstance(record.args, Mapping):
            record.args = redact_value(record.args)
        payload = getattr(record, "extra", None)
        if isinstance(payload, Mapping):
            record.extra = redact_value(payload)
        return True
