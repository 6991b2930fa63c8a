# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

from __future__ import annotations

from fastapi import APIRouter, Depends

from stream_relay_api.api.deps import get_service, get_settings
from stream_relay_api.api.schemas import ok
from stream_relay_api.core.config import Settings
from stream_relay_api.services.streams import StreamService

router = APIRouter()


@router.get("/health")
def health(service: StreamService = Depends(get_service), settings: Settings = Depends(get_settings)):
    return ok(
        {
            "status": "ok",
            "mediamtx": "ok" if service.relay_reachable() else "unreachable",
            "ports": settings.ports,
        }
    )


@router.get("/config")
def client_config(settings: Settings = Depends(get_settings)):
    """Ports the web UI needs to build player urls."""
    return ok(
        {
            "webrtcPort": settings.webrtc_port,
            "hlsPort": settings.hls_port,
            "rtspPort": settings.rtsp_port,
        }
    )
