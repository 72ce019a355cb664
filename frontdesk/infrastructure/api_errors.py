from __future__ import annotations

import requests

from frontdesk.domain.sync_errors import ApiUnreachableError, ReplayRejectedError

_MAX_DETAIL_CHARS = 200


def extract_response_status_code(ex: Exception) -> int | None:
    response = getattr(ex, "response", None)
    return getattr(response, "status_code", None)


def _response_detail(response: requests.Response) -> str:
    text = (getattr(response, "text", "") or "").strip()
    if not text:
        return str(getattr(response, "reason", "") or "")
    return text[:_MAX_DETAIL_CHARS]


def rejected_response_error(method: str, url: str, response: requests.Response) -> ReplayRejectedError:
    detail = _response_detail(response)
    message = f"{method} {url} answered {response.status_code}"
    if detail:
        message = f"{message}: {detail}"
    return ReplayRejectedError(message, status_code=response.status_code)


def map_requests_exception(ex: Exception, *, method: str, url: str) -> Exception:
    if isinstance(ex, ReplayRejectedError | ApiUnreachableError):
        return ex
    if isinstance(ex, (requests.exceptions.InvalidJSONError, TypeError)):
        return ReplayRejectedError(f"{method} {url} payload is not JSON serialisable: {ex}")
    if isinstance(ex, requests.exceptions.HTTPError):
        return ReplayRejectedError(f"{method} {url} failed: {ex}", status_code=extract_response_status_code(ex))
    if isinstance(ex, requests.exceptions.Timeout):
        return ApiUnreachableError(f"{method} {url} timed out")
    if isinstance(ex, requests.exceptions.ConnectionError):
        return ApiUnreachableError(f"{method} {url} unreachable: {ex}")
    if isinstance(ex, requests.exceptions.RequestException):
        return ApiUnreachableError(f"{method} {url} failed: {ex}")
    return ex
