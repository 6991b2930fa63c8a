# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.


from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from stream_relay_api.models import StreamStatus

__all__ = [
    "LivePath",
    "MediaMTXClient",
    "RelayError",
    "RelayRequestError",
    "RelayUnreachableError",
]

logger = logging.getLogger(__name__)

ITEMS_PER_PAGE = 100


class RelayError(Exception):
    """Base class for failures talking to the relay control API."""


class RelayUnreachableError(RelayError):
    def __init__(self, reason: Any) -> None:
        super().__init__(f"cannot reach MediaMTX API: {reason}")
        self.reason = reason


class RelayRequestError(RelayError):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"MediaMTX error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class LivePath:
    """Runtime state of one relay path."""

    name: str
    ready: bool = False
    source_type: Optional[str] = None
    readers: int = 0

    @property
    def status(self) -> StreamStatus:
        return StreamStatus.ONLINE if self.ready else StreamStatus.CONNECTING

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "LivePath":
        source = item.get("source") or {}
        return cls(
            name=item["name"],
            ready=bool(item.get("ready", False)),
            source_type=source.get("type") if isinstance(source, dict) else None,
            readers=len(item.get("readers") or []),
        )


class MediaMTXClient:
    """
    Thin wrapper over the MediaMTX v3 control API.

    Every call is bounded by timeout. Network failures raise
    RelayUnreachableError, error answers raise RelayRequestError.

    Args:
        api_url: control API base url, e.g. http://localhost:9997
        timeout: per request timeout in seconds
    """

    def __init__(self, api_url: str, timeout: float = 10.0) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        url = f"{self.api_url}{path}"
        try:
            return requests.request(method=method, url=url, params=params, json=json, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RelayUnreachableError(exc) from exc

    @staticmethod
    def _raise_for_status(resp: requests.Response, allowed=()) -> None:
        if resp.status_code >= 400 and resp.status_code not in allowed:
            raise RelayRequestError(resp.status_code, resp.text.strip())

    # ------------------------------------------------------------------
    # Path configuration
    # ------------------------------------------------------------------

    def register_path(self, name: str, source: str) -> None:
        """
        Upsert a path pulling from source, with on demand pulling disabled.

        The add endpoint refuses existing paths, those are replaced instead.
        """
        body = {"source": source, "sourceOnDemand": False}
        resp = self._request("POST", f"/v3/config/paths/add/{quote(name, safe='')}", json=body)
        if resp.status_code == 400 and "already exists" in resp.text:
            logger.debug("Path %s already configured, replacing it", name)
            resp = self._request("POST", f"/v3/config/paths/replace/{quote(name, safe='')}", json=body)
        self._raise_for_status(resp)

    def unregister_path(self, name: str) -> None:
        """Delete a path configuration. An unknown path counts as deleted."""
        resp = self._request("DELETE", f"/v3/config/paths/delete/{quote(name, safe='')}")
        self._raise_for_status(resp, allowed=(404,))

    # ------------------------------------------------------------------
    # Runtime state
    # ------------------------------------------------------------------

    def list_live_paths(self) -> Dict[str, LivePath]:
        """Fetch every page of the runtime path table, keyed by path name."""
        paths: Dict[str, LivePath] = {}
        page = 0
        while True:
            resp = self._request("GET", "/v3/paths/list", params={"page": page, "itemsPerPage": ITEMS_PER_PAGE})
            self._raise_for_status(resp)
            try:
                data = resp.json()
                for item in data.get("items") or []:
                    live = LivePath.from_item(item)
                    paths[live.name] = live
                page_count = int(data.get("pageCount") or 1)
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                raise RelayRequestError(resp.status_code, f"malformed path list: {exc}") from exc
            page += 1
            if page >= page_count:
                return paths

    def ping(self) -> bool:
        """The relay has no liveness endpoint, a successful path listing is the ping."""
        try:
            self.list_live_paths()
        except RelayError as exc:
            logger.debug("MediaMTX ping failed, %s", exc)
            return False
        return True
