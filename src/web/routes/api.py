from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ..api_models import (
    ConnectResponse,
    DetectRequest,
    DetectResponse,
    DisconnectResponse,
    HealthResponse,
    HeartbeatResponse,
    ReloadResponse,
    RootResponse,
    StatsResponse,
)
from ..services.detection_service import DetectionService
from ..services.health_service import HealthService
from ..services.stats_service import StatsService
from ..state import ServiceState, get_service_state


router = APIRouter()


class PayloadTooLarge(Exception):
    pass


async def _read_json_body(request: Request, max_bytes: Optional[int] = None) -> Dict[str, Any]:
    """
    Parse the request body as a JSON object.

    A missing, malformed or non-object body is treated as {} so presence and
    detection endpoints always answer with a well-formed response.
    """
    raw = await request.body()
    if max_bytes is not None and len(raw) > max_bytes:
        raise PayloadTooLarge(f"{len(raw)} bytes exceeds limit of {max_bytes}")
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        logging.debug("Ignoring malformed JSON body on %s", request.url.path)
        return {}
    return body if isinstance(body, dict) else {}


def _user_id(body: Dict[str, Any]) -> Optional[str]:
    value = body.get("userId")
    if not value:
        return None
    return str(value)


@router.get("/", response_model=RootResponse)
def root(svc: ServiceState = Depends(get_service_state)):
    return RootResponse(
        name=svc.config.server.name,
        version=svc.config.server.version,
        status="online",
        model_loaded=svc.loader.loaded,
        backend=svc.loader.backend,
        active_users=svc.tracker.active_count(),
        error=svc.loader.last_error,
    )


@router.get("/health", response_model=HealthResponse)
def health(svc: ServiceState = Depends(get_service_state)):
    return HealthService(loader=svc.loader).get_health_summary()


@router.get("/stats", response_model=StatsResponse)
def stats(svc: ServiceState = Depends(get_service_state)):
    return StatsService(tracker=svc.tracker, loader=svc.loader).get_summary()


@router.post("/connect", response_model=ConnectResponse)
async def connect(request: Request, svc: ServiceState = Depends(get_service_state)):
    body = await _read_json_body(request)
    user_id, active = svc.tracker.connect(_user_id(body))
    return ConnectResponse(
        user_id=user_id,
        active_users=active,
        model_ready=svc.model_ready,
    )


@router.post("/disconnect", response_model=DisconnectResponse)
async def disconnect(request: Request, svc: ServiceState = Depends(get_service_state)):
    body = await _read_json_body(request)
    active = svc.tracker.disconnect(_user_id(body))
    return DisconnectResponse(active_users=active)


@router.post("/heartbeat", response_model=HeartbeatResponse)
async def heartbeat(request: Request, svc: ServiceState = Depends(get_service_state)):
    body = await _read_json_body(request)
    active = svc.tracker.heartbeat(_user_id(body))
    return HeartbeatResponse(active_users=active, model_ready=svc.model_ready)


@router.post("/detect", response_model=DetectResponse, response_model_exclude_none=True)
async def detect(request: Request, svc: ServiceState = Depends(get_service_state)):
    try:
        body = await _read_json_body(request, max_bytes=svc.config.server.max_body_bytes)
    except PayloadTooLarge as e:
        logging.warning("Rejected detection payload: %s", e)
        return DetectResponse(error="Payload too large")

    try:
        req = DetectRequest.model_validate(body)
    except ValidationError as e:
        return DetectResponse(error=f"Invalid request: {e.errors()[0].get('msg', 'validation failed')}")

    service = DetectionService(tracker=svc.tracker, loader=svc.loader, cfg=svc.config.detection)
    # Inference is blocking; keep it off the event loop.
    return await run_in_threadpool(service.detect, req.image, req.confidence, req.max_detections)


@router.post("/reload-model", response_model=ReloadResponse)
def reload_model(svc: ServiceState = Depends(get_service_state)):
    result = svc.loader.reload()
    return ReloadResponse(success=result.success, backend=result.backend, error=result.error)
