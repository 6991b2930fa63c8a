# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.


from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

__all__ = [
    "GENERATED_NAME_PREFIX",
    "MAX_NAME_LENGTH",
    "StreamRecord",
    "StreamStatus",
    "generate_stream_name",
    "is_valid_source_url",
    "now_rfc3339",
    "sanitize_stream_name",
]

MAX_NAME_LENGTH = 50
GENERATED_NAME_PREFIX = "cam-"
SOURCE_URL_SCHEMES = ("rtsp://", "rtsps://")

_WHITESPACE = re.compile(r"\s+")
_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


class StreamStatus(str, Enum):
    CONNECTING = "connecting"
    ONLINE = "online"
    OFFLINE = "offline"


def sanitize_stream_name(name: Optional[str]) -> str:
    """
    Turn free text into a relay path name.

    Lowercase, whitespace runs become a single hyphen, anything outside
    [a-zA-Z0-9_-] is dropped and the result is cut to MAX_NAME_LENGTH.
    May return an empty string.
    """
    name = (name or "").strip().lower()
    name = _WHITESPACE.sub("-", name)
    name = _INVALID_NAME_CHARS.sub("", name)
    return name[:MAX_NAME_LENGTH]


def generate_stream_name() -> str:
    return f"{GENERATED_NAME_PREFIX}{int(time.time() * 1000)}"


def is_valid_source_url(url: Optional[str]) -> bool:
    return bool(url) and url.startswith(SOURCE_URL_SCHEMES)


def now_rfc3339() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


@dataclass
class StreamRecord:
    """One registered camera source, keyed by its relay path name."""

    name: str
    rtsp_url: str
    label: str = ""
    status: StreamStatus = StreamStatus.CONNECTING
    created_at: str = field(default_factory=now_rfc3339)

    def __post_init__(self) -> None:
        if not self.label:
            self.label = self.name
        if not isinstance(self.status, StreamStatus):
            try:
                self.status = StreamStatus(self.status)
            except ValueError:
                self.status = StreamStatus.OFFLINE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "rtspUrl": self.rtsp_url,
            "status": self.status.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StreamRecord":
        """Build a record from its snapshot form. Raises KeyError when name or rtspUrl is missing."""
        return cls(
            name=data["name"],
            rtsp_url=data["rtspUrl"],
            label=data.get("label") or "",
            status=data.get("status") or StreamStatus.CONNECTING,
            created_at=data.get("createdAt") or now_rfc3339(),
        )
