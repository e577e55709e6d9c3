from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.monitor_api.schemas.alerts import AlertBundle
from src.monitor_api.schemas.common import ErrorResponse
from src.monitor_api.services import gpu_collector, host_collector, k8s_collector
from src.monitor_api.services.alert_rules import AlertEvaluationError, evaluate_alerts
from src.monitor_api.state import get_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


@router.get(
    "",
    response_model=AlertBundle,
    responses={500: {"model": ErrorResponse}},
    summary="Evaluate alerts",
    description=(
        "Collect host, GPU and pod snapshots, evaluate threshold and state-transition rules against "
        "the previous poll, and return alerts grouped into minor/serious/critical."
    ),
    operation_id="get_alerts",
)
def get_alerts(request: Request):
    """Run one fetch-then-evaluate cycle."""
    state = get_state(request.app)
    cfg = state.config

    host = host_collector.fetch_host_snapshot(cfg)
    gpus = gpu_collector.fetch_accelerator_snapshot(cfg)
    pods = k8s_collector.fetch_workload_instances(cfg)

    try:
        return evaluate_alerts(
            host,
            gpus,
            pods,
            state.workload_state,
            baseline_first_sighting=cfg.alert_baseline_first_sighting,
        )
    except AlertEvaluationError as exc:
        return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc)).model_dump())
