from __future__ import annotations

import logging
from typing import Any

import requests

from frontdesk.bootstrap.settings import ApiSettings
from frontdesk.domain.sync_errors import ReplayRejectedError
from frontdesk.domain.sync_models import SyncRecord
from frontdesk.infrastructure.api_errors import map_requests_exception, rejected_response_error

logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"
DEVICE_HEADER = "X-Device-Id"


class RestApiClient:
    """Replays queued mutations against ``{base_url}/api/{model}``.

    No retries happen here: a failed request surfaces as an exception and the
    record stays queued until the next drain.
    """

    def __init__(
        self,
        settings: ApiSettings,
        *,
        device_id: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if settings.token:
            self._session.headers["Authorization"] = f"Bearer {settings.token}"
        if device_id:
            self._session.headers[DEVICE_HEADER] = device_id

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def url_for(self, model: str) -> str:
        return f"{self._settings.base_url}/api/{model}"

    def replay(self, record: SyncRecord) -> None:
        method = record.operation.http_method
        url = self.url_for(record.model)
        try:
            response = self._session.request(
                method,
                url,
                json=record.payload,
                headers={"Content-Type": "application/json", IDEMPOTENCY_HEADER: record.id},
                timeout=self._settings.timeout_seconds,
            )
        except (requests.exceptions.RequestException, TypeError) as exc:
            raise map_requests_exception(exc, method=method, url=url) from exc
        if not response.ok:
            raise rejected_response_error(method, url, response)
        logger.debug("Replayed %s %s (%s)", method, url, response.status_code)

    def fetch_collection(self, model: str) -> list[dict[str, Any]]:
        url = self.url_for(model)
        try:
            response = self._session.get(url, timeout=self._settings.timeout_seconds)
        except requests.exceptions.RequestException as exc:
            raise map_requests_exception(exc, method="GET", url=url) from exc
        if not response.ok:
            raise rejected_response_error("GET", url, response)
        try:
            body = response.json()
        except ValueError as exc:
            raise ReplayRejectedError(f"GET {url} returned invalid JSON", status_code=response.status_code) from exc
        return _extract_items(body)

    def ping(self) -> int:
        response = self._session.head(self._settings.base_url, timeout=self._settings.timeout_seconds)
        return response.status_code

    def close(self) -> None:
        self._session.close()


def _extract_items(body: Any) -> list[dict[str, Any]]:
    if isinstance(body, dict):
        for key in ("data", "items"):
            if isinstance(body.get(key), list):
                body = body[key]
                break
    if not isinstance(body, list):
        return []
    return [item for item in body if isinstance(item, dict)]
