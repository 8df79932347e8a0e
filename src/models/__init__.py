"""
Typed models for the detection server.

Config dataclasses mirror the YAML structure; detection dataclasses are the
in-process form of model output before it is serialized for /detect.
"""

from .detection import Detection, BoundingBox
from .config import (
    Config,
    ServerConfig,
    ModelConfig,
    DetectionConfig,
    PresenceConfig,
)

__all__ = [
    # Detection
    "Detection",
    "BoundingBox",
    # Config
    "Config",
    "ServerConfig",
    "ModelConfig",
    "DetectionConfig",
    "PresenceConfig",
]
