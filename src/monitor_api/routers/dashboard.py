from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from src.monitor_api.state import get_state

router = APIRouter(tags=["Dashboard"])

DASHBOARD_PAGE = "monitor.html"


@router.get("/", include_in_schema=False)
@router.get(f"/{DASHBOARD_PAGE}", include_in_schema=False)
def dashboard_page(request: Request) -> FileResponse:
    """Serve the dashboard page from DASHBOARD_STATIC_DIR."""
    static_dir = get_state(request.app).config.dashboard_static_dir
    if not static_dir:
        raise HTTPException(status_code=404, detail="dashboard not configured")
    page = Path(static_dir) / DASHBOARD_PAGE
    if not page.is_file():
        raise HTTPException(status_code=404, detail=f"{DASHBOARD_PAGE} not found")
    return FileResponse(page, media_type="text/html; charset=utf-8")
