# stream_relay_api/services/__init__.py

from .reconciler import Reconciler, ReconcilerState
from .relay import LivePath, MediaMTXClient, RelayError, RelayRequestError, RelayUnreachableError
from .store import StreamStore
from .streams import (
    Outcome,
    StreamConflictError,
    StreamError,
    StreamNotFoundError,
    StreamService,
    StreamValidationError,
)

__all__ = [
    "LivePath",
    "MediaMTXClient",
    "Outcome",
    "Reconciler",
    "ReconcilerState",
    "RelayError",
    "RelayRequestError",
    "RelayUnreachableError",
    "StreamConflictError",
    "StreamError",
    "StreamNotFoundError",
    "StreamService",
    "StreamStore",
    "StreamValidationError",
]
