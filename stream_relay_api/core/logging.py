# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
HANDLER_NAME = "stream_relay_api"

# Chatty below WARNING, the relay client polls MediaMTX through them
QUIET_LOGGERS = ("urllib3",)


def setup_logging(level_name: str = "INFO") -> int:
    """
    Send application logs to stdout at the configured level.

    Only the handler installed by a previous call is replaced, so building
    the app twice (uvicorn reload, tests) never duplicates lines nor drops
    handlers owned by someone else. Unknown level names fall back to INFO.
    Returns the numeric level applied.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    for handler in root.handlers[:]:
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return level
