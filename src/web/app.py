"""
FastAPI application factory for the detection server.

Routes:
- / , /health, /stats -> JSON status
- /connect, /disconnect, /heartbeat -> presence tracking
- /detect -> person detection on a base64 image
- /reload-model -> operator-triggered model reload
- /status -> HTML dashboard
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from models.config import Config
from .routes import api, pages
from .services.config_service import ConfigService
from .state import ServiceState


def create_app(
    config: Optional[Config] = None,
    service_state: Optional[ServiceState] = None,
    preload: Optional[bool] = None,
) -> FastAPI:
    """
    Create the FastAPI app and wire routes.

    ``service_state`` lets callers (tests, embedding) supply a prebuilt state;
    otherwise one is built from ``config``. ``preload`` overrides
    ``model.load_on_startup``.
    """
    if config is None:
        config = service_state.config if service_state else Config.from_dict(ConfigService.load_effective_config())
    svc = service_state or ServiceState.from_config(config)
    load_on_startup = config.model.load_on_startup if preload is None else preload

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if load_on_startup:
            # Load in the background; requests see modelReady=false until it finishes.
            svc.loader.start_background_load()
        else:
            logging.info("Model preload disabled; use POST /reload-model to load")
        yield

    app = FastAPI(
        title=config.server.name,
        version=config.server.version,
        description="Person detection over REST with presence tracking",
        lifespan=lifespan,
    )
    app.state.service = svc

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(api.router)
    app.include_router(pages.router)

    return app
