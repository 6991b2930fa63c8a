# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Union

from stream_relay_api.models import StreamRecord, StreamStatus

__all__ = ["ReadWriteLock", "StreamStore"]

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or a single writer. Waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class StreamStore:
    """
    In memory registry of stream records backed by a JSON snapshot file.

    Every mutation rewrites the whole snapshot through a temporary file and
    an atomic rename, so readers of the file never see a partial write.
    Records handed out are copies, callers cannot mutate the store by accident.

    Args:
        path: snapshot file location, parent folders are created on first write
        log: logger receiving load and persist warnings
    """

    def __init__(self, path: Union[str, Path], log: Optional[logging.Logger] = None) -> None:
        self.path = Path(path)
        self._log = log or logger
        self._lock = ReadWriteLock()
        self._persist_lock = threading.Lock()
        self._streams: Dict[str, StreamRecord] = {}
        self.load()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._streams)

    def load(self) -> int:
        """
        Replace the in memory map with the snapshot content.

        A missing or unreadable snapshot leaves the store empty, it is only
        logged since a fresh deployment has no prior state.
        Returns the number of records loaded.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._log.warning("No stream snapshot at %s, starting empty", self.path)
            return 0
        except OSError as exc:
            self._log.warning("Failed to read stream snapshot %s, %s", self.path, exc)
            return 0

        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("snapshot root is not a list")
            records = [StreamRecord.from_dict(item) for item in items]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            self._log.warning("Failed to parse stream snapshot %s, %s", self.path, exc)
            return 0

        with self._lock.write():
            self._streams = {record.name: record for record in records}
            count = len(self._streams)
        self._log.info("Loaded %d streams from %s", count, self.path)
        return count

    def persist(self) -> bool:
        """
        Dump the full record set to the snapshot file.

        The map is copied under the read lock and written after releasing it.
        Writes are serialized so an older copy never replaces a newer one.
        Failures are logged and reported as False, never raised.
        """
        with self._persist_lock:
            return self._write_snapshot()

    def _write_snapshot(self) -> bool:
        with self._lock.read():
            payload = [record.to_dict() for record in self._streams.values()]

        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            self._log.warning("Failed to save stream snapshot %s, %s", self.path, exc)
            return False
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        return True

    def add(self, record: StreamRecord) -> bool:
        """Insert or overwrite by name, then persist. Returns the persist result."""
        with self._lock.write():
            self._streams[record.name] = replace(record)
        return self.persist()

    def get(self, name: str) -> Optional[StreamRecord]:
        with self._lock.read():
            record = self._streams.get(name)
            return replace(record) if record is not None else None

    def list(self) -> List[StreamRecord]:
        """Return copies of every record, in no particular order."""
        with self._lock.read():
            return [replace(record) for record in self._streams.values()]

    def delete(self, name: str) -> bool:
        """Remove by name, a missing name is a no-op. Returns the persist result."""
        with self._lock.write():
            self._streams.pop(name, None)
        return self.persist()

    def remember_statuses(self, statuses: Mapping[str, StreamStatus]) -> None:
        """Keep the last known live status in memory, written out with the next snapshot."""
        with self._lock.write():
            for name, status in statuses.items():
                record = self._streams.get(name)
                if record is not None:
                    record.status = status
