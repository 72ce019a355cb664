from __future__ import annotations

from unittest.mock import Mock

import requests

from frontdesk.domain.sync_errors import ApiUnreachableError, ReplayRejectedError
from frontdesk.infrastructure.api_errors import map_requests_exception, rejected_response_error


def test_http_error_keeps_status_code() -> None:
    error = requests.exceptions.HTTPError("409 Conflict", response=Mock(status_code=409))

    mapped = map_requests_exception(error, method="POST", url="http://api.test/api/checkins")

    assert isinstance(mapped, ReplayRejectedError)
    assert mapped.status_code == 409


def test_network_failures_are_transient() -> None:
    for error in (
        requests.exceptions.ConnectionError("down"),
        requests.exceptions.Timeout("slow"),
        requests.exceptions.RequestException("other"),
    ):
        assert isinstance(map_requests_exception(error, method="PUT", url="u"), ApiUnreachableError)


def test_unserialisable_payload_is_rejected() -> None:
    mapped = map_requests_exception(TypeError("set is not JSON serializable"), method="POST", url="u")

    assert isinstance(mapped, ReplayRejectedError)


def test_unrelated_exception_is_returned_unchanged() -> None:
    error = KeyError("x")

    assert map_requests_exception(error, method="POST", url="u") is error


def test_rejected_response_detail_is_truncated() -> None:
    response = Mock(status_code=500, text="x" * 500, reason="Server Error")

    error = rejected_response_error("POST", "u", response)

    assert error.status_code == 500
    assert len(str(error)) < 260
