from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import FastAPI

from src.monitor_api.config import BackendConfig
from src.monitor_api.services.alert_state import WorkloadStateStore
from src.monitor_api.services.prometheus_client import PrometheusClient


@dataclass
class AppState:
    """Typed app.state container for shared singletons."""

    config: BackendConfig
    prometheus: PrometheusClient
    # Prior-poll pod state for transition alerts; lives as long as the process.
    workload_state: WorkloadStateStore = field(default_factory=WorkloadStateStore)


# PUBLIC_INTERFACE
def init_state(app: FastAPI, config: BackendConfig) -> None:
    """Initialize app.state with config, Prometheus client and the alert state store."""
    app.state.state = AppState(
        config=config,
        prometheus=PrometheusClient(config.prometheus_url, timeout_seconds=config.prometheus_timeout_sec),
    )


# PUBLIC_INTERFACE
def get_state(app: FastAPI) -> AppState:
    """Fetch typed AppState from a FastAPI app."""
    return app.state.state  # type: ignore[attr-defined]
