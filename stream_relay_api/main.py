# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from stream_relay_api.api.routes_health import router as health_router
from stream_relay_api.api.routes_streams import router as streams_router
from stream_relay_api.api.schemas import error
from stream_relay_api.core.config import Settings
from stream_relay_api.core.logging import setup_logging
from stream_relay_api.services.reconciler import Reconciler
from stream_relay_api.services.relay import MediaMTXClient
from stream_relay_api.services.store import StreamStore
from stream_relay_api.services.streams import StreamService

logger = logging.getLogger(__name__)


def log_banner(settings: Settings) -> None:
    logger.info("============================================")
    logger.info("  Stream API Server")
    logger.info("  Listen:      %s", settings.listen_addr)
    logger.info("  MediaMTX:    %s", settings.mediamtx_api_url)
    logger.info("  Web UI:      http://localhost:%d", settings.listen_port)
    logger.info("  API:         http://localhost:%d/api/streams", settings.listen_port)
    logger.info("============================================")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(error(str(exc.detail)), status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("Rejected request body, %s", exc.errors())
    return JSONResponse(error("Invalid JSON body"), status_code=400)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[StreamStore] = None,
    relay: Optional[MediaMTXClient] = None,
    start_reconciler: bool = True,
) -> FastAPI:
    """
    Build the API application.

    Store and relay client are created in the lifespan from settings unless
    given, tests pass their own. The startup restore runs in a daemon thread
    alongside request serving.
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store = store if store is not None else StreamStore(settings.store_path)
        app.state.relay = (
            relay if relay is not None else MediaMTXClient(settings.mediamtx_api_url, timeout=settings.relay_timeout)
        )
        app.state.service = StreamService(app.state.store, app.state.relay)
        app.state.reconciler = Reconciler(
            app.state.store,
            app.state.relay,
            max_attempts=settings.restore_attempts,
            interval=settings.restore_interval,
        )

        log_banner(settings)
        if start_reconciler:
            app.state.reconciler.start()

        try:
            yield
        finally:
            app.state.reconciler.stop(timeout=1.0)

    app = FastAPI(title="Stream API", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(streams_router, prefix="/api/streams", tags=["Streams"])
    app.include_router(health_router, prefix="/api", tags=["Health"])

    web_dir = Path(settings.web_dir)
    if web_dir.is_dir():
        app.mount("/", StaticFiles(directory=web_dir, html=True), name="web")
    else:
        logger.warning("Web UI directory %s not found, static files disabled", web_dir)

    return app


app = create_app()
