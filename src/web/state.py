from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from inference.loader import ModelLoader, candidates_from_names
from models.config import Config
from presence.tracker import PresenceTracker


@dataclass
class ServiceState:
    """
    Process-wide state shared by the request handlers.

    One instance is created per app and stored on ``app.state.service``;
    handlers reach it through the request instead of a module global.
    """

    config: Config
    tracker: PresenceTracker
    loader: ModelLoader

    @classmethod
    def from_config(cls, config: Config) -> "ServiceState":
        tracker = PresenceTracker(ttl_seconds=config.presence.ttl_seconds)
        loader = ModelLoader(
            model_path=config.model.path,
            candidates=candidates_from_names(config.model.backends),
        )
        return cls(config=config, tracker=tracker, loader=loader)

    @property
    def model_ready(self) -> bool:
        return self.loader.loaded


def get_service_state(request: Request) -> ServiceState:
    """FastAPI dependency returning the app's ServiceState."""
    return request.app.state.service
