# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.


from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from stream_relay_api.api.deps import get_service
from stream_relay_api.api.schemas import AddStreamRequest, ok
from stream_relay_api.services.relay import RelayError
from stream_relay_api.services.streams import StreamError, StreamService

router = APIRouter()


@router.post("")
def add_stream(payload: AddStreamRequest, service: StreamService = Depends(get_service)):
    """
    Register a camera and configure its relay path.

    The name is normalized, or generated as cam-<milliseconds> when empty.
    The label defaults to the name. Returns the created record with status
    "connecting".
    """
    try:
        outcome = service.add_stream(payload.rtsp_url, name=payload.name, label=payload.label)
    except StreamError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
    except RelayError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return ok(outcome.data.to_dict())


@router.get("")
def list_streams(service: StreamService = Depends(get_service)):
    """
    List every registered stream with its live status.

    When MediaMTX cannot be queried the last known status is returned.
    """
    outcome = service.list_streams()
    return ok([stream.to_dict() for stream in outcome.data])


@router.delete("/{name}")
def delete_stream(name: str, service: StreamService = Depends(get_service)):
    """Forget a stream. Relay errors are logged, the stream is removed anyway."""
    try:
        outcome = service.delete_stream(name)
    except StreamError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
    return ok({"deleted": outcome.data})
