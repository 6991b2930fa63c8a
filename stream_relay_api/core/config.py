# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.


from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import find_dotenv, load_dotenv

DEFAULT_LISTEN_ADDR = ":8080"
DEFAULT_MEDIAMTX_API_URL = "http://localhost:9997"
DEFAULT_WEBRTC_PORT = "8889"
DEFAULT_HLS_PORT = "8888"
DEFAULT_RTSP_PORT = "8554"
DEFAULT_STORE_PATH = "./data/streams.json"
DEFAULT_WEB_DIR = "./web"

RELAY_TIMEOUT = 10.0
RESTORE_ATTEMPTS = 30
RESTORE_INTERVAL = 2.0


def env(key: str, fallback: str) -> str:
    """Return the environment value for key, or fallback when unset or empty."""
    value = os.getenv(key)
    return value if value else fallback


@dataclass(frozen=True)
class Settings:
    listen_addr: str = DEFAULT_LISTEN_ADDR
    mediamtx_api_url: str = DEFAULT_MEDIAMTX_API_URL
    webrtc_port: str = DEFAULT_WEBRTC_PORT
    hls_port: str = DEFAULT_HLS_PORT
    rtsp_port: str = DEFAULT_RTSP_PORT
    store_path: str = DEFAULT_STORE_PATH
    web_dir: str = DEFAULT_WEB_DIR
    relay_timeout: float = RELAY_TIMEOUT
    restore_attempts: int = RESTORE_ATTEMPTS
    restore_interval: float = RESTORE_INTERVAL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        A .env file found from the working directory upwards is loaded
        first, it never overrides variables that are already set.
        """
        load_dotenv(find_dotenv(usecwd=True))
        return cls(
            listen_addr=env("LISTEN_ADDR", DEFAULT_LISTEN_ADDR),
            mediamtx_api_url=env("MEDIAMTX_API_URL", DEFAULT_MEDIAMTX_API_URL),
            webrtc_port=env("WEBRTC_PORT", DEFAULT_WEBRTC_PORT),
            hls_port=env("HLS_PORT", DEFAULT_HLS_PORT),
            rtsp_port=env("RTSP_PORT", DEFAULT_RTSP_PORT),
            store_path=env("STORE_PATH", DEFAULT_STORE_PATH),
            web_dir=env("WEB_DIR", DEFAULT_WEB_DIR),
            relay_timeout=float(env("RELAY_TIMEOUT", str(RELAY_TIMEOUT))),
            restore_attempts=int(env("RESTORE_ATTEMPTS", str(RESTORE_ATTEMPTS))),
            restore_interval=float(env("RESTORE_INTERVAL", str(RESTORE_INTERVAL))),
            log_level=env("LOG_LEVEL", "INFO").upper(),
        )

    def _split_listen_addr(self) -> Tuple[str, int]:
        host, _, port = self.listen_addr.rpartition(":")
        # "[::]:8080" binds as "::"
        host = host.strip("[]")
        return host or "0.0.0.0", int(port)

    @property
    def listen_host(self) -> str:
        return self._split_listen_addr()[0]

    @property
    def listen_port(self) -> int:
        return self._split_listen_addr()[1]

    @property
    def ports(self) -> dict[str, str]:
        return {"webrtc": self.webrtc_port, "hls": self.hls_port, "rtsp": self.rtsp_port}
