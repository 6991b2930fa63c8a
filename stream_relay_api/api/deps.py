# Copyright (C) 2022-2025, Pyronear.
# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

from __future__ import annotations

from typing import cast

from fastapi import Request

from stream_relay_api.core.config import Settings
from stream_relay_api.services.streams import StreamService


def get_service(request: Request) -> StreamService:
    return cast(StreamService, request.app.state.service)


def get_settings(request: Request) -> Settings:
    return cast(Settings, request.app.state.settings)
