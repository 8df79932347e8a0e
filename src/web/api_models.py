from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    # Wire format is camelCase; Python attributes stay snake_case.
    model_config = ConfigDict(populate_by_name=True)


class RootResponse(_ApiModel):
    name: str
    version: str
    status: str = "online"
    model_loaded: bool = Field(..., alias="modelLoaded")
    backend: str
    active_users: int = Field(..., alias="activeUsers")
    error: Optional[str] = None


class HealthResponse(_ApiModel):
    status: str = Field("healthy", description="Process liveness; model readiness is separate")
    model_ready: bool = Field(..., alias="modelReady")
    model_state: str = Field(..., alias="modelState", description="unloaded|loading|loaded|failed")
    backend: Optional[str] = None
    error: Optional[str] = None


class StatsResponse(_ApiModel):
    active_users: int = Field(..., alias="activeUsers")
    peak_users: int = Field(..., alias="peakUsers")
    total_connections: int = Field(..., alias="totalConnections")
    total_detections: int = Field(..., alias="totalDetections")
    uptime: str = Field(..., description="Human readable, e.g. '3h 4m 5s'")
    uptime_seconds: int = Field(..., alias="uptimeSeconds")
    model_loaded: bool = Field(..., alias="modelLoaded")
    backend: str
    error: Optional[str] = None


class ConnectResponse(_ApiModel):
    success: bool = True
    user_id: str = Field(..., alias="userId")
    active_users: int = Field(..., alias="activeUsers")
    model_ready: bool = Field(..., alias="modelReady")


class DisconnectResponse(_ApiModel):
    success: bool = True
    active_users: int = Field(..., alias="activeUsers")


class HeartbeatResponse(_ApiModel):
    success: bool = True
    active_users: int = Field(..., alias="activeUsers")
    model_ready: bool = Field(..., alias="modelReady")


class DetectRequest(_ApiModel):
    """
    Detection request. ``image`` is base64, optionally a data URL.
    Numeric params are loosely typed; bad values fall back to defaults.
    """
    image: Optional[str] = None
    confidence: Optional[Any] = None
    max_detections: Optional[Any] = Field(None, alias="maxDetections")


class Prediction(_ApiModel):
    class_name: str = Field(..., alias="class")
    score: float
    bbox: List[float] = Field(..., description="[x, y, width, height] in pixels")


class DetectResponse(_ApiModel):
    predictions: List[Prediction] = Field(default_factory=list)
    count: Optional[int] = None
    backend: Optional[str] = None
    error: Optional[str] = None


class ReloadResponse(_ApiModel):
    success: bool
    backend: str
    error: Optional[str] = None
