from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from src.monitor_api.config import load_config
from src.monitor_api.routers import alerts, dashboard, health, metrics
from src.monitor_api.schemas.common import ErrorResponse
from src.monitor_api.state import get_state, init_state

openapi_tags = [
    {"name": "Health", "description": "Service health and connectivity diagnostics."},
    {"name": "Metrics", "description": "Live host, GPU and pod snapshots plus Prometheus history."},
    {"name": "Alerts", "description": "Threshold and pod state-transition alerts."},
]

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Cluster Monitor API",
    description=(
        "Backend API for the cluster monitoring dashboard. "
        "Polls host, GPU and Kubernetes state on demand, reads history from Prometheus, "
        "and evaluates tiered alerts with pod state-change detection between polls."
    ),
    version="1.0.0",
    openapi_tags=openapi_tags,
)

# Initialize typed app state (config + Prometheus client + alert state store)
init_state(app, load_config())
logging.getLogger("src.monitor_api").setLevel(get_state(app).config.log_level)


@app.on_event("shutdown")
async def _on_shutdown() -> None:
    """Shutdown hook: close the Prometheus connection pool."""
    state = get_state(app)
    try:
        await state.prometheus.close()
    except Exception:
        logger.exception("Error closing Prometheus client")


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report unexpected failures in the {error} shape the dashboard understands."""
    logger.exception("Unhandled exception path=%s", request.url.path)
    return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc)).model_dump())


def _env_frontend_url() -> str | None:
    return os.getenv("FRONTEND_URL") or os.getenv("REACT_APP_FRONTEND_URL")


def _env_cors_extra_origins() -> List[str]:
    # Comma-separated list for preview deployments, etc.
    raw = os.getenv("CORS_ALLOW_ORIGINS") or ""
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    return parts


# CORS: allow local frontend by default, plus explicit frontend URL and optional extra origins.
allowed_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
frontend_url = _env_frontend_url()
if frontend_url:
    allowed_origins.append(frontend_url)
allowed_origins.extend(_env_cors_extra_origins())

# De-dupe while preserving order
_seen = set()
allowed_origins = [o for o in allowed_origins if not (o in _seen or _seen.add(o))]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(alerts.router)
app.include_router(dashboard.router)

# Remaining dashboard assets (logo, images) are served from the same directory as monitor.html.
_static_dir = get_state(app).config.dashboard_static_dir
if _static_dir and Path(_static_dir).is_dir():
    app.mount("/", StaticFiles(directory=_static_dir), name="dashboard-assets")
elif _static_dir:
    logger.warning("DASHBOARD_STATIC_DIR=%s is not a directory; static assets disabled", _static_dir)
