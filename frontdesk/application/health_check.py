from __future__ import annotations

from datetime import datetime

from frontdesk.domain.ports import ApiConnectivityProbe, LocalStoreProbe
from frontdesk.domain.sync_models import HealthCheckItem, HealthReport

SLOW_API_LATENCY_MS = 1500


class HealthCheckUseCase:
    def __init__(self, local_store_probe: LocalStoreProbe, api_probe: ApiConnectivityProbe) -> None:
        self._local_store_probe = local_store_probe
        self._api_probe = api_probe

    def run(self) -> HealthReport:
        checks: list[HealthCheckItem] = []

        api_reachable, latency_ms, message = self._api_probe.check()
        # Offline is a supported mode, so an unreachable API is only a warning.
        checks.append(
            HealthCheckItem(
                key="api_reachable",
                status="OK" if api_reachable else "WARN",
                message=message,
                category="Connectivity",
            )
        )
        checks.append(
            HealthCheckItem(
                key="api_latency",
                status="OK" if latency_ms is not None and latency_ms < SLOW_API_LATENCY_MS else "WARN",
                message=f"{latency_ms:.0f} ms" if latency_ms is not None else "Latency not available.",
                category="Connectivity",
            )
        )

        checks.extend(self._build_checks("Local store", self._local_store_probe.check()))
        return HealthReport(generated_at=datetime.now().isoformat(), checks=tuple(checks))

    @staticmethod
    def _build_checks(category: str, checks: dict[str, tuple[bool, str]]) -> list[HealthCheckItem]:
        mapped: list[HealthCheckItem] = []
        for key, (ok, message) in checks.items():
            status = "OK" if ok else "ERROR"
            if key == "pending_queue" and not ok:
                status = "WARN"
            mapped.append(HealthCheckItem(key=key, status=status, message=message, category=category))
        return mapped
