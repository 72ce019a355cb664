from __future__ import annotations

import json

from frontdesk.bootstrap.settings import DEFAULT_API_BASE_URL, DEFAULT_REQUEST_TIMEOUT_SECONDS
from frontdesk.domain.models import ApiConfig
from frontdesk.infrastructure.local_config import ApiConfigStore


def test_load_defaults_and_persists_device_id(tmp_path) -> None:
    store = ApiConfigStore(tmp_path)

    config = store.load()

    assert config.api_base_url == DEFAULT_API_BASE_URL
    assert config.request_timeout_seconds == DEFAULT_REQUEST_TIMEOUT_SECONDS
    assert config.device_id
    assert store.load().device_id == config.device_id


def test_save_and_load_round_trip_strips_trailing_slash(tmp_path) -> None:
    store = ApiConfigStore(tmp_path)

    store.save(ApiConfig(api_base_url="https://lodge.example/", request_timeout_seconds=5, device_id="dev-1"))
    config = store.load()

    assert config.api_base_url == "https://lodge.example"
    assert config.request_timeout_seconds == 5
    assert config.device_id == "dev-1"


def test_corrupted_config_falls_back_to_defaults(tmp_path) -> None:
    (tmp_path / "config.json").write_text("{not json", encoding="utf-8")

    config = ApiConfigStore(tmp_path).load()

    assert config.api_base_url == DEFAULT_API_BASE_URL


def test_invalid_timeout_uses_default(tmp_path) -> None:
    (tmp_path / "config.json").write_text(json.dumps({"request_timeout_seconds": -3}), encoding="utf-8")

    assert ApiConfigStore(tmp_path).load().request_timeout_seconds == DEFAULT_REQUEST_TIMEOUT_SECONDS
