from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests

from frontdesk.bootstrap.settings import ApiSettings
from frontdesk.domain.sync_errors import ApiUnreachableError, ReplayRejectedError
from frontdesk.domain.sync_models import SyncRecord
from frontdesk.infrastructure.api_client import DEVICE_HEADER, IDEMPOTENCY_HEADER, RestApiClient


def _session(response: Mock | None = None) -> Mock:
    session = Mock()
    session.headers = {}
    session.request.return_value = response or Mock(ok=True, status_code=200)
    return session


def _client(session: Mock, **kwargs) -> RestApiClient:
    settings = ApiSettings(base_url="http://api.test", timeout_seconds=4.0, token=kwargs.pop("token", None))
    return RestApiClient(settings, session=session, **kwargs)


@pytest.mark.parametrize(
    ("operation", "method"),
    [("CREATE", "POST"), ("UPDATE", "PUT"), ("DELETE", "DELETE")],
)
def test_replay_maps_operation_to_http_method(operation: str, method: str) -> None:
    session = _session()
    record = SyncRecord.new(operation, "accommodations", {"id": 7})

    _client(session).replay(record)

    session.request.assert_called_once_with(
        method,
        "http://api.test/api/accommodations",
        json={"id": 7},
        headers={"Content-Type": "application/json", IDEMPOTENCY_HEADER: record.id},
        timeout=4.0,
    )


def test_session_headers_carry_token_and_device() -> None:
    session = _session()

    _client(session, token="secret", device_id="dev-1")

    assert session.headers["Authorization"] == "Bearer secret"
    assert session.headers[DEVICE_HEADER] == "dev-1"


def test_non_2xx_response_raises_rejected_error() -> None:
    response = Mock(ok=False, status_code=422, text='{"error": "cottage taken"}', reason="Unprocessable")
    session = _session(response)

    with pytest.raises(ReplayRejectedError) as exc_info:
        _client(session).replay(SyncRecord.new("CREATE", "checkins", {}))

    assert exc_info.value.status_code == 422
    assert "cottage taken" in str(exc_info.value)


def test_connection_error_raises_unreachable() -> None:
    session = _session()
    session.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(ApiUnreachableError):
        _client(session).replay(SyncRecord.new("CREATE", "checkins", {}))


def test_timeout_raises_unreachable() -> None:
    session = _session()
    session.request.side_effect = requests.exceptions.Timeout("slow")

    with pytest.raises(ApiUnreachableError, match="timed out"):
        _client(session).replay(SyncRecord.new("CREATE", "checkins", {}))


@pytest.mark.parametrize(
    "body",
    [
        [{"id": 1}, "noise"],
        {"data": [{"id": 1}]},
        {"items": [{"id": 1}]},
    ],
)
def test_fetch_collection_accepts_common_envelopes(body) -> None:
    session = _session()
    session.get.return_value = Mock(ok=True, status_code=200, json=Mock(return_value=body))

    assert _client(session).fetch_collection("checkins") == [{"id": 1}]
    session.get.assert_called_once_with("http://api.test/api/checkins", timeout=4.0)


def test_fetch_collection_invalid_json_is_rejected() -> None:
    session = _session()
    session.get.return_value = Mock(ok=True, status_code=200, json=Mock(side_effect=ValueError("bad json")))

    with pytest.raises(ReplayRejectedError):
        _client(session).fetch_collection("checkins")


def test_ping_returns_status_code() -> None:
    session = _session()
    session.head.return_value = Mock(status_code=204)

    assert _client(session).ping() == 204
