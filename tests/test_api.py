from __future__ import annotations

import httpx
import pytest

from src.monitor_api.routers import alerts as alerts_router
from src.monitor_api.services.alert_rules import AlertEvaluationError
from src.monitor_api.services.prometheus_client import PrometheusClient
from tests.helpers import gpu, host, pod


@pytest.mark.anyio
async def test_health_ok(async_client: httpx.AsyncClient):
    res = await async_client.get("/api/health")
    assert res.status_code == 200
    body = res.json()
    assert body.get("status") == "ok"
    assert "timestamp" in body


@pytest.mark.anyio
async def test_alerts_end_to_end_and_repeat_poll(async_client: httpx.AsyncClient, snapshots):
    snapshots.host = host(cpu=97, mem=60, disk=40)
    snapshots.gpus = [gpu(used=96, total=100, temp=90)]
    snapshots.pods = [pod("job-1", status="Failed"), pod("web", status="Pending")]

    res = await async_client.get("/api/alerts")
    assert res.status_code == 200
    body = res.json()
    assert set(body.keys()) == {"minor", "serious", "critical"}
    assert [a["title"] for a in body["critical"]] == [
        "CPU usage critical",
        "GPU memory exhausted",
        "GPU temperature critical",
        "Pod failed: job-1",
    ]
    assert [a["title"] for a in body["serious"]] == ["Pod pending scheduling: web"]
    assert body["minor"] == []
    for alert in body["critical"] + body["serious"]:
        assert set(alert.keys()) == {"title", "desc", "fix"}

    # Next poll: web came up, job-1 still failed.
    snapshots.pods = [pod("job-1", status="Failed"), pod("web", status="Running")]
    res = await async_client.get("/api/alerts")
    body = res.json()
    assert [a["title"] for a in body["serious"]] == ["Pod recovered: web"]
    assert "Pod failed: job-1" in [a["title"] for a in body["critical"]]

    # Identical poll: recovery does not repeat, terminal status does.
    res = await async_client.get("/api/alerts")
    body = res.json()
    assert body["serious"] == []
    assert "Pod failed: job-1" in [a["title"] for a in body["critical"]]


@pytest.mark.anyio
async def test_alerts_detect_restarts_across_requests(async_client: httpx.AsyncClient, snapshots):
    snapshots.pods = [pod("api", restarts=2)]
    assert (await async_client.get("/api/alerts")).json()["serious"] == []

    snapshots.pods = [pod("api", restarts=5)]
    body = (await async_client.get("/api/alerts")).json()
    assert len(body["serious"]) == 1
    assert "increased by 3" in body["serious"][0]["desc"]

    diag = (await async_client.get("/api/health/alert-state")).json()
    assert diag["tracked_workloads"] == 1
    assert diag["baseline_first_sighting"] is True


@pytest.mark.anyio
async def test_degraded_collectors_yield_empty_bundle(async_client: httpx.AsyncClient, snapshots):
    res = await async_client.get("/api/alerts")
    assert res.status_code == 200
    assert res.json() == {"minor": [], "serious": [], "critical": []}


@pytest.mark.anyio
async def test_alerts_evaluation_failure_returns_500_error_body(
    async_client: httpx.AsyncClient,
    snapshots,
    monkeypatch: pytest.MonkeyPatch,
):
    def broken(*args, **kwargs):
        raise AlertEvaluationError("bad snapshot shape")

    monkeypatch.setattr(alerts_router, "evaluate_alerts", broken)
    res = await async_client.get("/api/alerts")
    assert res.status_code == 500
    assert res.json() == {"error": "bad snapshot shape"}


@pytest.mark.anyio
async def test_snapshot_endpoints_keep_dashboard_shapes(async_client: httpx.AsyncClient, snapshots):
    snapshots.host = host(cpu=12.5, mem=40.0, disk=55.1)
    snapshots.gpus = [gpu(used=1024, total=16384, temp=50, name="T4")]
    snapshots.pods = [pod("web", ns="prod", restarts=1, age="3d 4h")]

    body = (await async_client.get("/api/host/metrics")).json()
    assert body["cpu"]["percent"] == 12.5
    assert body["memory"]["percent"] == 40.0
    assert body["disk"]["percent"] == 55.1
    assert body["cpu"]["load_1min"] is None

    gpus = (await async_client.get("/api/gpu/metrics")).json()
    assert gpus == [
        {"index": 0, "name": "T4", "utilization": 50, "memoryUsed": 1024, "memoryTotal": 16384, "temperature": 50}
    ]

    pods = (await async_client.get("/api/k8s/pods")).json()
    assert pods == [{"namespace": "prod", "name": "web", "status": "Running", "restarts": 1, "age": "3d 4h"}]


@pytest.mark.anyio
async def test_history_endpoint_uses_prometheus(async_client: httpx.AsyncClient, app_state, monkeypatch):
    seen_steps = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_steps.append(request.url.params.get("step"))
        values = [[1700000000, "10"], [1700000030, "20.26"]]
        return httpx.Response(
            200,
            json={"status": "success", "data": {"resultType": "matrix", "result": [{"metric": {}, "values": values}]}},
        )

    client = PrometheusClient("http://prometheus.test", transport=httpx.MockTransport(handler))
    monkeypatch.setattr(app_state, "prometheus", client)
    try:
        res = await async_client.get("/api/history", params={"duration": "1h", "step": "1m"})
    finally:
        await client.close()

    assert res.status_code == 200
    body = res.json()
    assert set(body.keys()) == {"cpu", "memory", "disk", "gpuUtil", "gpuMem", "gpuTemp"}
    assert body["gpuMem"]["data"] == [10.0, 20.3]
    assert len(body["cpu"]["labels"]) == 2
    assert seen_steps == ["1m"] * 6


@pytest.mark.anyio
async def test_prometheus_connectivity_check_reports_failure(async_client: httpx.AsyncClient, app_state, monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = PrometheusClient("http://prometheus.test", transport=httpx.MockTransport(handler))
    monkeypatch.setattr(app_state, "prometheus", client)
    try:
        res = await async_client.get("/api/health/prometheus")
    finally:
        await client.close()

    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is False
    assert body["value"] is None
    assert body["prometheus_url"] == "http://prometheus.test"


@pytest.mark.anyio
async def test_dashboard_page_not_configured(async_client: httpx.AsyncClient):
    res = await async_client.get("/")
    assert res.status_code == 404


@pytest.mark.anyio
async def test_dashboard_page_served_from_static_dir(async_client: httpx.AsyncClient, app_state, monkeypatch, tmp_path):
    from dataclasses import replace

    (tmp_path / "monitor.html").write_text("<html>dashboard</html>", encoding="utf-8")
    monkeypatch.setattr(app_state, "config", replace(app_state.config, dashboard_static_dir=str(tmp_path)))

    res = await async_client.get("/monitor.html")
    assert res.status_code == 200
    assert "dashboard" in res.text
    assert res.headers["content-type"].startswith("text/html")


@pytest.mark.anyio
async def test_unhandled_route_exception_returns_500_error_body(app, app_state, monkeypatch):
    from src.monitor_api.services import host_collector

    def broken(cfg):
        raise RuntimeError("collector blew up")

    monkeypatch.setattr(host_collector, "fetch_host_snapshot", broken)

    # Starlette re-raises after the error response is sent; keep the response instead.
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        res = await client.get("/api/host/metrics")

    assert res.status_code == 500
    assert res.json() == {"error": "collector blew up"}
