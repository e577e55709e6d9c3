from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from src.monitor_api.schemas.common import HealthResponse, utc_now
from src.monitor_api.state import get_state

router = APIRouter(tags=["Health"])


class PrometheusConnectivityResponse(BaseModel):
    """Response model for backend↔Prometheus connectivity diagnostics."""

    ok: bool = Field(..., description="Whether an instant query against Prometheus returned a value.")
    prometheus_url: str = Field(..., description="Configured Prometheus base URL.")
    value: Optional[float] = Field(default=None, description="Result of the probe query (1.0 when healthy).")
    timestamp: str = Field(..., description="UTC timestamp when the check was performed (ISO string).")
    meta: Dict[str, Any] = Field(default_factory=dict, description="Optional debug metadata.")


class AlertStateDiagnosticsResponse(BaseModel):
    """Diagnostics describing the retained pod state used for transition alerts."""

    tracked_workloads: int = Field(..., ge=0, description="Pods retained from the previous poll.")
    baseline_first_sighting: bool = Field(
        ..., description="Whether a pod's first sighting only records a baseline."
    )
    timestamp: str = Field(..., description="UTC timestamp when the diagnostics were produced (ISO string).")


@router.get(
    "/api/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Basic service liveness check used by deployment and the dashboard.",
    operation_id="health_check",
)
def health_check() -> HealthResponse:
    """Return service liveness status."""
    return HealthResponse(status="ok", message="Healthy", timestamp=utc_now())


@router.get(
    "/api/health/prometheus",
    response_model=PrometheusConnectivityResponse,
    summary="Prometheus connectivity check",
    description="Runs a trivial instant query against the configured Prometheus and reports the outcome.",
    operation_id="prometheus_connectivity_check",
)
async def prometheus_connectivity_check(request: Request) -> PrometheusConnectivityResponse:
    """Connectivity check endpoint to validate backend↔Prometheus."""
    state = get_state(request.app)
    value = await state.prometheus.query("vector(1)")
    return PrometheusConnectivityResponse(
        ok=value is not None,
        prometheus_url=state.config.prometheus_url,
        value=value,
        timestamp=utc_now().isoformat(),
        meta={"timeout_sec": state.config.prometheus_timeout_sec},
    )


@router.get(
    "/api/health/alert-state",
    response_model=AlertStateDiagnosticsResponse,
    summary="Alert state diagnostics",
    description="Reports how many pods are retained between polls for restart/recovery detection.",
    operation_id="alert_state_diagnostics",
)
def alert_state_diagnostics(request: Request) -> AlertStateDiagnosticsResponse:
    """Return retained-state size and first-sighting policy."""
    state = get_state(request.app)
    return AlertStateDiagnosticsResponse(
        tracked_workloads=len(state.workload_state),
        baseline_first_sighting=bool(state.config.alert_baseline_first_sighting),
        timestamp=utc_now().isoformat(),
    )
