# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, TypeVar

from stream_relay_api.models import (
    StreamRecord,
    StreamStatus,
    generate_stream_name,
    is_valid_source_url,
    sanitize_stream_name,
)
from stream_relay_api.services.relay import MediaMTXClient, RelayError
from stream_relay_api.services.store import StreamStore

__all__ = [
    "Outcome",
    "StreamConflictError",
    "StreamError",
    "StreamNotFoundError",
    "StreamService",
    "StreamValidationError",
]

T = TypeVar("T")


class StreamError(Exception):
    status_code = 400


class StreamValidationError(StreamError):
    status_code = 400


class StreamConflictError(StreamError):
    status_code = 409


class StreamNotFoundError(StreamError):
    status_code = 404


@dataclass
class Outcome(Generic[T]):
    """Primary result of an operation plus the ancillary effects that failed on the way."""

    data: T
    warnings: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


class StreamService:
    """
    Request level operations composing the store and the relay client.

    On add the relay is configured before the store is written, so the store
    never holds a record the relay rejected. On delete the store removal wins
    over relay errors. Same name add and delete are not sequenced, the last
    completed operation wins.

    Args:
        store: stream registry
        relay: relay control client
        log: sink for ancillary failures, defaults to this module's logger
    """

    def __init__(self, store: StreamStore, relay: MediaMTXClient, log: Optional[logging.Logger] = None) -> None:
        self.store = store
        self.relay = relay
        self.log = log or logging.getLogger(__name__)

    def _ancillary(self, outcome: Outcome[Any], message: str) -> None:
        self.log.warning(message)
        outcome.warnings.append(message)

    def add_stream(self, rtsp_url: Optional[str], name: Optional[str] = None, label: Optional[str] = None) -> Outcome[StreamRecord]:
        """
        Register a camera.

        Raises:
            StreamValidationError: missing or non rtsp(s) source url
            StreamConflictError: the normalized name is already registered
            RelayError: the relay refused or could not be reached, nothing is stored
        """
        if not rtsp_url:
            raise StreamValidationError("rtspUrl is required")
        if not is_valid_source_url(rtsp_url):
            raise StreamValidationError("URL must start with rtsp:// or rtsps://")

        stream_name = sanitize_stream_name(name) or generate_stream_name()
        if self.store.get(stream_name) is not None:
            raise StreamConflictError(f"Stream '{stream_name}' already exists")

        self.relay.register_path(stream_name, rtsp_url)

        record = StreamRecord(name=stream_name, rtsp_url=rtsp_url, label=label or "", status=StreamStatus.CONNECTING)
        outcome: Outcome[StreamRecord] = Outcome(record)
        if not self.store.add(record):
            self._ancillary(outcome, f"stream '{stream_name}' kept in memory only, snapshot write failed")
        self.log.info("Added stream: %s -> %s", stream_name, rtsp_url)
        return outcome

    def list_streams(self) -> Outcome[List[StreamRecord]]:
        """All records, with status overlaid from the relay when it answers."""
        streams = self.store.list()
        outcome: Outcome[List[StreamRecord]] = Outcome(streams)
        try:
            paths = self.relay.list_live_paths()
        except RelayError as exc:
            self._ancillary(outcome, f"live status unavailable, {exc}")
            return outcome

        for stream in streams:
            live = paths.get(stream.name)
            stream.status = live.status if live is not None else StreamStatus.OFFLINE
        self.store.remember_statuses({stream.name: stream.status for stream in streams})
        return outcome

    def delete_stream(self, name: Optional[str]) -> Outcome[str]:
        """
        Forget a stream, removing its relay path on a best effort basis.

        Raises:
            StreamValidationError: empty name
            StreamNotFoundError: the name is not registered
        """
        if not name:
            raise StreamValidationError("Stream name is required")
        if self.store.get(name) is None:
            raise StreamNotFoundError("Stream not found")

        outcome: Outcome[str] = Outcome(name)
        try:
            self.relay.unregister_path(name)
        except RelayError as exc:
            self._ancillary(outcome, f"MediaMTX delete error for {name}, {exc}")

        if not self.store.delete(name):
            self._ancillary(outcome, f"stream '{name}' removed in memory only, snapshot write failed")
        self.log.info("Deleted stream: %s", name)
        return outcome

    def relay_reachable(self) -> bool:
        return self.relay.ping()
