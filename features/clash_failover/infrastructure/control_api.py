from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import quote

import requests

from features.clash_failover.application.ports import ControlApi
from features.clash_failover.domain.errors import FetchError, ProbeError, SwitchError


@dataclass
class RequestsControlApi(ControlApi):
    """Client for the proxy-control service's REST controller."""

    base_url: str
    secret: str = ""
    timeout: float = 10.0

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"Bearer {self.secret}"

    def list_proxies(self) -> Dict[str, Any]:
        try:
            response = self._session.get(f"{self.base_url}/proxies", timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise FetchError(f"GET /proxies failed: {exc}") from exc
        except ValueError as exc:
            raise FetchError(f"GET /proxies returned invalid JSON: {exc}") from exc

    def probe_delay(self, name: str, url: str, timeout_ms: int) -> int:
        # the service gets timeout_ms to answer; the transport waits a little longer
        transport_timeout = timeout_ms / 1000.0 + 1.0
        try:
            response = self._session.get(
                self._proxy_url(name) + "/delay",
                params={"url": url, "timeout": timeout_ms},
                timeout=transport_timeout,
            )
        except requests.RequestException as exc:
            raise ProbeError(f"delay probe for {name!r} failed: {exc}") from exc
        if response.status_code != 200:
            raise ProbeError(f"delay probe for {name!r} returned {response.status_code}")
        try:
            delay = response.json()["delay"]
        except (ValueError, KeyError, TypeError) as exc:
            raise ProbeError(f"delay probe for {name!r} returned an unreadable body") from exc
        if isinstance(delay, bool) or not isinstance(delay, int):
            raise ProbeError(f"delay probe for {name!r} returned non-integer delay {delay!r}")
        return delay

    def switch(self, selector: str, name: str) -> None:
        try:
            response = self._session.put(
                self._proxy_url(selector),
                json={"name": name},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise SwitchError(f"switching {selector!r} to {name!r} failed: {exc}") from exc
        if not 200 <= response.status_code <= 299:
            raise SwitchError(
                f"switching {selector!r} to {name!r} failed with status {response.status_code}"
            )

    def close(self) -> None:
        self._session.close()

    def _proxy_url(self, name: str) -> str:
        return f"{self.base_url}/proxies/{quote(name, safe='')}"
