from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from frontdesk.application.health_check import HealthCheckUseCase
from frontdesk.application.network_monitor import Dispatcher, run_inline
from frontdesk.application.offline_sync_service import OfflineSyncService
from frontdesk.bootstrap.settings import ApiSettings, apply_env_overrides
from frontdesk.domain.models import ApiConfig
from frontdesk.domain.ports import ConnectivitySourcePort
from frontdesk.domain.sync_models import ConnectivityState
from frontdesk.infrastructure.api_client import RestApiClient
from frontdesk.infrastructure.connectivity import ManualConnectivitySource
from frontdesk.infrastructure.db import default_db_path, get_connection
from frontdesk.infrastructure.health_probes import ApiReachabilityProbe, SQLiteLocalStoreProbe
from frontdesk.infrastructure.local_config import ApiConfigStore
from frontdesk.infrastructure.local_store import SQLiteLocalStore


@dataclass
class AppContainer:
    api_config: ApiConfig
    local_store: SQLiteLocalStore
    api_client: RestApiClient
    connectivity: ConnectivitySourcePort
    sync_service: OfflineSyncService
    health_check_use_case: HealthCheckUseCase


def build_container(
    *,
    db_path: Path | str | None = None,
    config_store: ApiConfigStore | None = None,
    connectivity: ConnectivitySourcePort | None = None,
    dispatcher: Dispatcher = run_inline,
    api_client: RestApiClient | None = None,
) -> AppContainer:
    config_store = config_store or ApiConfigStore()
    api_config = config_store.load()
    settings = apply_env_overrides(
        ApiSettings(base_url=api_config.api_base_url, timeout_seconds=api_config.request_timeout_seconds)
    )

    resolved_db_path = db_path if db_path is not None else default_db_path()
    local_store = SQLiteLocalStore(lambda: get_connection(resolved_db_path))
    api_client = api_client or RestApiClient(settings, device_id=api_config.device_id)
    connectivity = connectivity or ManualConnectivitySource(ConnectivityState.ONLINE)

    sync_service = OfflineSyncService(local_store, api_client, connectivity, dispatcher=dispatcher)
    health_check_use_case = HealthCheckUseCase(
        SQLiteLocalStoreProbe(local_store),
        ApiReachabilityProbe(api_client),
    )

    return AppContainer(
        api_config=api_config,
        local_store=local_store,
        api_client=api_client,
        connectivity=connectivity,
        sync_service=sync_service,
        health_check_use_case=health_check_use_case,
    )
