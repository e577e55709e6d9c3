from __future__ import annotations

from collections.abc import AsyncIterator
from types import SimpleNamespace

import httpx
import pytest

from src.monitor_api.schemas.snapshots import HostSnapshot
from src.monitor_api.services import gpu_collector, host_collector, k8s_collector


@pytest.fixture(scope="session")
def app():
    """
    FastAPI app fixture with env vars configured for deterministic tests.

    Config is read once at import time, so env is set before the first import of main.
    """
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("PROMETHEUS_URL", "http://prometheus.test")
        mp.setenv("PROMETHEUS_TIMEOUT_SEC", "2")
        mp.setenv("HOST_CPU_CORES", "8")
        mp.setenv("ALERT_BASELINE_FIRST_SIGHTING", "true")
        mp.setenv("LOG_LEVEL", "DEBUG")
        mp.delenv("DASHBOARD_STATIC_DIR", raising=False)

        from src.monitor_api.main import app as fastapi_app

        yield fastapi_app


@pytest.fixture
def app_state(app):
    """Typed AppState with the pod state store cleared for each test."""
    from src.monitor_api.state import get_state

    state = get_state(app)
    state.workload_state.clear()
    yield state
    state.workload_state.clear()


@pytest.fixture
async def async_client(app, app_state, anyio_backend) -> AsyncIterator[httpx.AsyncClient]:
    """Async HTTP client bound to the FastAPI ASGI app."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def snapshots(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    """
    Replace the live collectors with mutable canned snapshots.

    Tests assign .host / .gpus / .pods between requests to simulate successive polls.
    """
    data = SimpleNamespace(host=HostSnapshot(), gpus=[], pods=[])
    monkeypatch.setattr(host_collector, "fetch_host_snapshot", lambda cfg: data.host)
    monkeypatch.setattr(gpu_collector, "fetch_accelerator_snapshot", lambda cfg: list(data.gpus))
    monkeypatch.setattr(k8s_collector, "fetch_workload_instances", lambda cfg: list(data.pods))
    return data
