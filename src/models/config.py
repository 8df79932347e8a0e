"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 3000
    name: str = "Person Detection Server"
    version: str = "2.2.0"
    max_body_bytes: int = 10 * 1024 * 1024

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            host=d.get("host", "0.0.0.0"),
            port=int(d.get("port", 3000)),
            name=d.get("name", "Person Detection Server"),
            version=str(d.get("version", "2.2.0")),
            max_body_bytes=int(d.get("max_body_bytes", 10 * 1024 * 1024)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "name": self.name,
            "version": self.version,
            "max_body_bytes": self.max_body_bytes,
        }


@dataclass
class ModelConfig:
    """Detection model and inference backend selection."""
    path: str = "yolov8n.pt"
    backends: List[str] = field(default_factory=lambda: ["cuda", "cpu"])
    load_on_startup: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            path=d.get("path", "yolov8n.pt"),
            backends=list(d.get("backends") or ["cuda", "cpu"]),
            load_on_startup=bool(d.get("load_on_startup", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "backends": list(self.backends),
            "load_on_startup": self.load_on_startup,
        }


@dataclass
class DetectionConfig:
    """Detection request defaults and limits."""
    default_confidence: float = 0.35
    default_max_detections: int = 5
    max_detections_limit: int = 100
    min_payload_chars: int = 100
    target_class: str = "person"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            default_confidence=float(d.get("default_confidence", 0.35)),
            default_max_detections=int(d.get("default_max_detections", 5)),
            max_detections_limit=int(d.get("max_detections_limit", 100)),
            min_payload_chars=int(d.get("min_payload_chars", 100)),
            target_class=d.get("target_class", "person"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_confidence": self.default_confidence,
            "default_max_detections": self.default_max_detections,
            "max_detections_limit": self.max_detections_limit,
            "min_payload_chars": self.min_payload_chars,
            "target_class": self.target_class,
        }


@dataclass
class PresenceConfig:
    """Presence tracking configuration. ttl_seconds <= 0 disables expiry."""
    ttl_seconds: float = 120.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PresenceConfig":
        return cls(ttl_seconds=float(d.get("ttl_seconds", 120.0)))

    def to_dict(self) -> Dict[str, Any]:
        return {"ttl_seconds": self.ttl_seconds}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    server: ServerConfig = field(default_factory=ServerConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    presence: PresenceConfig = field(default_factory=PresenceConfig)
    log_path: str = "logs/detection_server.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from ConfigService)."""
        return cls(
            server=ServerConfig.from_dict(d.get("server", {}) or {}),
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            presence=PresenceConfig.from_dict(d.get("presence", {}) or {}),
            log_path=d.get("log_path", "logs/detection_server.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "server": self.server.to_dict(),
            "model": self.model.to_dict(),
            "detection": self.detection.to_dict(),
            "presence": self.presence.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
