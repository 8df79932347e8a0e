from __future__ import annotations

import platform
import time
from dataclasses import dataclass
from typing import Any, Dict

from inference.loader import ModelLoader


def format_uptime(seconds: float) -> str:
    """
    Human uptime string: "2d 3h 4m", "3h 4m 5s", "4m 5s" or "5s".
    """
    total = max(0, int(seconds))
    days = total // 86400
    hours = (total % 86400) // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


@dataclass
class HealthService:
    loader: ModelLoader

    def get_health_summary(self) -> Dict[str, Any]:
        # The process answering at all means "healthy"; model readiness is reported separately.
        return {
            "status": "healthy",
            "modelReady": self.loader.loaded,
            "modelState": self.loader.state.value,
            "backend": self.loader.backend,
            "error": self.loader.last_error,
        }

    @staticmethod
    def runtime_info() -> Dict[str, Any]:
        """Platform details shown on the status page."""
        return {
            "timestamp": time.time(),
            "platform": platform.platform(),
            "python": platform.python_version(),
        }
