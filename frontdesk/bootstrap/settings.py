from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

APP_DIR_NAME = "FrontDesk"
DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0


def project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _first_writable_dir(candidates: list[Path]) -> Path | None:
    for candidate in candidates:
        try:
            candidate.mkdir(parents=True, exist_ok=True)
            test_file = candidate / "_write_test.tmp"
            test_file.write_text("ok", encoding="utf-8")
            test_file.unlink(missing_ok=True)
            return candidate
        except OSError:
            continue
    return None


def resolve_log_dir() -> Path:
    candidates: list[Path] = []
    env_dir = os.environ.get("FRONTDESK_LOG_DIR")
    if env_dir:
        candidates.append(Path(env_dir))
    candidates.append(project_root() / "logs")
    candidates.append(Path(tempfile.gettempdir()) / APP_DIR_NAME / "logs")

    resolved = _first_writable_dir(candidates)
    if resolved is not None:
        return resolved

    fallback = project_root()
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def resolve_data_dir() -> Path:
    env_dir = os.environ.get("FRONTDESK_DATA_DIR")
    if env_dir:
        return Path(env_dir)
    local_app_data = os.environ.get("LOCALAPPDATA")
    base_dir = Path(local_app_data) if local_app_data else Path.home() / ".local" / "share"
    return base_dir / APP_DIR_NAME


@dataclass(frozen=True)
class ApiSettings:
    base_url: str = DEFAULT_API_BASE_URL
    timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    token: str | None = None


def _safe_float_env(name: str, default: float) -> float:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def apply_env_overrides(settings: ApiSettings) -> ApiSettings:
    """Environment wins over config.json so deployments can pin the API."""
    base_url = os.getenv("FRONTDESK_API_URL") or settings.base_url
    token = os.getenv("FRONTDESK_API_TOKEN") or settings.token
    timeout = _safe_float_env("FRONTDESK_API_TIMEOUT", settings.timeout_seconds)
    return ApiSettings(base_url=base_url.rstrip("/"), timeout_seconds=timeout, token=token)
