from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from src.monitor_api.schemas.history import HistoryResponse
from src.monitor_api.schemas.snapshots import AcceleratorSnapshot, HostSnapshot, WorkloadInstance
from src.monitor_api.services import gpu_collector, history_service, host_collector, k8s_collector
from src.monitor_api.state import get_state

router = APIRouter(prefix="/api", tags=["Metrics"])


@router.get(
    "/host/metrics",
    response_model=HostSnapshot,
    summary="Host metrics",
    description="Current CPU load, memory and root filesystem usage. Unavailable sections are null.",
    operation_id="get_host_metrics",
)
def get_host_metrics(request: Request) -> HostSnapshot:
    """Return a live host snapshot."""
    return host_collector.fetch_host_snapshot(get_state(request.app).config)


@router.get(
    "/gpu/metrics",
    response_model=AcceleratorSnapshot,
    summary="GPU metrics",
    description="Per-GPU utilization, memory and temperature from nvidia-smi. Empty when no GPU is available.",
    operation_id="get_gpu_metrics",
)
def get_gpu_metrics(request: Request) -> AcceleratorSnapshot:
    """Return live GPU readings."""
    return gpu_collector.fetch_accelerator_snapshot(get_state(request.app).config)


@router.get(
    "/k8s/pods",
    response_model=List[WorkloadInstance],
    summary="Kubernetes pods",
    description="Pods in all namespaces with phase, total restarts and age. Empty when kubectl is unavailable.",
    operation_id="get_k8s_pods",
)
def get_k8s_pods(request: Request) -> List[WorkloadInstance]:
    """Return the live pod list."""
    return k8s_collector.fetch_workload_instances(get_state(request.app).config)


@router.get(
    "/history",
    response_model=HistoryResponse,
    summary="Metrics history",
    description="Chart series for host and GPU metrics from Prometheus over a trailing window.",
    operation_id="get_history",
)
async def get_history(
    request: Request,
    duration: Optional[str] = Query(default=None, description="Trailing window, e.g. 30m, 2h, 1d."),
    step: Optional[str] = Query(default=None, description="Query resolution step, e.g. 30s, 5m."),
) -> HistoryResponse:
    """Return chart series; panels with no data come back empty."""
    state = get_state(request.app)
    return await history_service.get_history(
        state.prometheus,
        duration=duration or state.config.history_duration,
        step=step or state.config.history_step,
    )
