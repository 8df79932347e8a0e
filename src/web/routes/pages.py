"""
HTML page routes.

- /status -> server status dashboard (Jinja2 template, auto-refreshing)
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from ..services.health_service import HealthService, format_uptime
from ..state import ServiceState, get_service_state

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

REFRESH_SECONDS = 10


@router.get("/status", response_class=HTMLResponse)
def status_page(request: Request, svc: ServiceState = Depends(get_service_state)):
    """Human-facing status dashboard."""
    snap = svc.tracker.snapshot()
    return templates.TemplateResponse(
        request,
        "status.html",
        {
            "server": svc.config.server,
            "model_loaded": svc.loader.loaded,
            "model_state": svc.loader.state.value,
            "backend": svc.loader.backend,
            "load_error": svc.loader.last_error,
            "stats": snap,
            "uptime": format_uptime(snap.uptime_seconds),
            "runtime": HealthService.runtime_info(),
            "refresh_seconds": REFRESH_SECONDS,
        },
    )
