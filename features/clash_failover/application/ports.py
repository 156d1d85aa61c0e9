from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from features.clash_failover.domain.models import Endpoint, Snapshot


class ControlApi(Protocol):
    def list_proxies(self) -> Dict[str, Any]:
        """Return the raw ``GET /proxies`` payload."""

    def probe_delay(self, name: str, url: str, timeout_ms: int) -> int:
        """Ask the service to measure one endpoint against ``url``."""

    def switch(self, selector: str, name: str) -> None:
        """Point the selector group at ``name``."""


class SnapshotSource(Protocol):
    def fetch(self) -> Snapshot:
        """Return the filtered, cost-scored endpoint directory."""


class LatencyProber(Protocol):
    def probe(self, endpoint: Optional[Endpoint]) -> int:
        """Return one delay in milliseconds, or -1 when there is no signal."""

    def measure(self, endpoint: Endpoint, trials: int, trial_delay: float) -> int:
        """Return the truncated mean of the successful trials, or -1."""


class PreferredSource(Protocol):
    def select(self) -> Endpoint:
        """Measure the pool and return the preferred endpoint."""
