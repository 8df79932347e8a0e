from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from inference.loader import ModelLoader
from presence.tracker import PresenceTracker

from .health_service import format_uptime


@dataclass
class StatsService:
    tracker: PresenceTracker
    loader: ModelLoader

    def get_summary(self) -> Dict[str, Any]:
        snap = self.tracker.snapshot()
        return {
            "activeUsers": snap.active_count,
            "peakUsers": snap.peak_users,
            "totalConnections": snap.total_connections,
            "totalDetections": snap.total_detections,
            "uptime": format_uptime(snap.uptime_seconds),
            "uptimeSeconds": int(snap.uptime_seconds),
            "modelLoaded": self.loader.loaded,
            "backend": self.loader.backend,
            "error": self.loader.last_error,
        }
