# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from stream_relay_api.services.relay import MediaMTXClient, RelayError
from stream_relay_api.services.store import StreamStore

__all__ = ["Reconciler", "ReconcilerState"]

logger = logging.getLogger(__name__)


class ReconcilerState(str, Enum):
    WAITING = "waiting"
    RECONCILING = "reconciling"
    DONE = "done"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class Reconciler:
    """
    One shot startup restore of the stored streams into the relay.

    Pings the relay up to max_attempts times, interval seconds apart. On the
    first successful ping every stored record is registered once, then the
    reconciler is DONE. If the relay never answers it ends TIMED_OUT and the
    service keeps running without the restore.

    Args:
        store: registry whose records are replayed
        relay: relay control client
        max_attempts: number of pings before giving up
        interval: seconds between two pings
        wait: called with the interval between pings, returns True to abort.
            Defaults to waiting on the internal stop event.
    """

    def __init__(
        self,
        store: StreamStore,
        relay: MediaMTXClient,
        max_attempts: int = 30,
        interval: float = 2.0,
        wait: Optional[Callable[[float], bool]] = None,
    ) -> None:
        self.store = store
        self.relay = relay
        self.max_attempts = max_attempts
        self.interval = interval
        self._stop = threading.Event()
        self._wait = wait or self._stop.wait
        self._thread: Optional[threading.Thread] = None
        self.state = ReconcilerState.WAITING
        self.attempts = 0
        self.restored = 0

    @property
    def finished(self) -> bool:
        return self.state in (ReconcilerState.DONE, ReconcilerState.TIMED_OUT, ReconcilerState.CANCELLED)

    def run(self) -> ReconcilerState:
        """Drive the state machine to a final state and return it."""
        while self.attempts < self.max_attempts:
            if self._stop.is_set():
                self.state = ReconcilerState.CANCELLED
                return self.state
            self.attempts += 1
            if self.relay.ping():
                logger.info("MediaMTX API is reachable")
                self.state = ReconcilerState.RECONCILING
                self._restore()
                self.state = ReconcilerState.DONE
                return self.state
            if self.attempts < self.max_attempts and self._wait(self.interval):
                self.state = ReconcilerState.CANCELLED
                return self.state

        logger.warning("MediaMTX not reachable after %.0fs", self.max_attempts * self.interval)
        self.state = ReconcilerState.TIMED_OUT
        return self.state

    def _restore(self) -> None:
        records = self.store.list()
        for record in records:
            try:
                self.relay.register_path(record.name, record.rtsp_url)
            except RelayError as exc:
                logger.warning("Restore failed for %s, %s", record.name, exc)
            else:
                self.restored += 1
        if records:
            logger.info("Restored %d/%d streams to MediaMTX", self.restored, len(records))

    def start(self) -> threading.Thread:
        """Run in a daemon thread, once."""
        if self._thread is None:
            self._thread = threading.Thread(target=self.run, name="stream-restore", daemon=True)
            self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout)
