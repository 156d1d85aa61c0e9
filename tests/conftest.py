from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pytest

from features.clash_failover.application.pool_state import PoolState
from features.clash_failover.domain.errors import ProbeError
from features.clash_failover.domain.models import NO_SIGNAL, Endpoint, Snapshot


class FakeControlApi:
    def __init__(self, payload=None, delays: Optional[Dict[str, int]] = None) -> None:
        self.payload = payload
        self.delays = delays or {}
        self.fetch_error: Optional[Exception] = None
        self.switch_error: Optional[Exception] = None
        self.probes: List[Tuple[str, str, int]] = []
        self.switches: List[Tuple[str, str]] = []

    def list_proxies(self):
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.payload

    def probe_delay(self, name: str, url: str, timeout_ms: int) -> int:
        self.probes.append((name, url, timeout_ms))
        delay = self.delays.get(name)
        if delay is None:
            raise ProbeError(f"{name} timed out")
        return delay

    def switch(self, selector: str, name: str) -> None:
        if self.switch_error is not None:
            raise self.switch_error
        self.switches.append((selector, name))


class FakeProber:
    def __init__(self, latencies: Optional[Dict[str, int]] = None) -> None:
        self.latencies = latencies or {}
        self.probed: List[Optional[str]] = []

    def probe(self, endpoint: Optional[Endpoint]) -> int:
        self.probed.append(endpoint.name if endpoint else None)
        if endpoint is None:
            return NO_SIGNAL
        return self.latencies.get(endpoint.name, NO_SIGNAL)

    def measure(self, endpoint: Endpoint, trials: int, trial_delay: float) -> int:
        return self.probe(endpoint)


def endpoint(name: str, cost: float = 1.0, latency_ms: int = NO_SIGNAL) -> Endpoint:
    return Endpoint(name=name, kind="Shadowsocks", reachable=True, cost=cost, latency_ms=latency_ms)


def directory(*entries: dict) -> dict:
    return {"proxies": {entry["name"]: entry for entry in entries}}


@pytest.fixture()
def state() -> PoolState:
    return PoolState()


@pytest.fixture()
def seeded_state(state: PoolState) -> PoolState:
    state.replace(
        Snapshot(
            endpoints=(endpoint("HK 01"), endpoint("JP 01"), endpoint("US 01 (2x)", cost=2.0)),
            active_name="HK 01",
        )
    )
    return state
