# stream_relay_api/core/__init__.py

from .config import Settings
from .logging import setup_logging

__all__ = [
    "Settings",
    "setup_logging",
]
