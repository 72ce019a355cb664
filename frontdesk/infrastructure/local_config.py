from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any

from frontdesk.bootstrap.settings import DEFAULT_API_BASE_URL, DEFAULT_REQUEST_TIMEOUT_SECONDS, resolve_data_dir
from frontdesk.domain.models import ApiConfig

logger = logging.getLogger(__name__)


class ApiConfigStore:
    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir or resolve_data_dir()
        self._config_path = self._base_dir / "config.json"

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(self) -> ApiConfig:
        payload = self._read_payload()
        device_id = str(payload.get("device_id", "")).strip()
        if not device_id:
            device_id = self._generate_device_id()
            payload["device_id"] = device_id
            self._write_payload(payload)
        return ApiConfig(
            api_base_url=str(payload.get("api_base_url") or DEFAULT_API_BASE_URL).strip().rstrip("/"),
            request_timeout_seconds=self._parse_timeout(payload.get("request_timeout_seconds")),
            device_id=device_id,
        )

    def save(self, config: ApiConfig) -> ApiConfig:
        payload = {
            "api_base_url": config.api_base_url.strip().rstrip("/"),
            "request_timeout_seconds": config.request_timeout_seconds,
            "device_id": config.device_id or self._generate_device_id(),
        }
        self._write_payload(payload)
        return ApiConfig(
            api_base_url=payload["api_base_url"],
            request_timeout_seconds=payload["request_timeout_seconds"],
            device_id=payload["device_id"],
        )

    def _read_payload(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}
        try:
            payload = json.loads(self._config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.exception("Could not read config.json: %s", exc)
            return {}
        return payload if isinstance(payload, dict) else {}

    def _write_payload(self, payload: dict[str, Any]) -> None:
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            self._config_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            logger.exception("Could not write config.json: %s", exc)

    @staticmethod
    def _parse_timeout(raw_value: Any) -> float:
        try:
            value = float(raw_value)
        except (TypeError, ValueError):
            return DEFAULT_REQUEST_TIMEOUT_SECONDS
        return value if value > 0 else DEFAULT_REQUEST_TIMEOUT_SECONDS

    @staticmethod
    def _generate_device_id() -> str:
        return str(uuid.uuid4())
