from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, Mapping, Optional, Tuple

from features.clash_failover.domain.models import Endpoint, EndpointRef, PoolView, Snapshot


class PoolState:
    """Process-wide record of the endpoint pool and the active/preferred picks.

    The endpoint list is replaced wholesale on every refresh and each
    replacement bumps ``generation``. Active and preferred are kept as
    :class:`EndpointRef` values and resolve to ``None`` once their generation
    is gone or their name is no longer in the pool. One re-entrant lock
    guards every read-modify-write; callers never hold it across network I/O.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._generation = 0
        self._endpoints: Tuple[Endpoint, ...] = ()
        self._index: Dict[str, Endpoint] = {}
        self._active: Optional[EndpointRef] = None
        self._preferred: Optional[EndpointRef] = None

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def replace(self, snapshot: Snapshot) -> int:
        with self._lock:
            self._generation += 1
            self._endpoints = tuple(snapshot.endpoints)
            self._index = {endpoint.name: endpoint for endpoint in self._endpoints}

            # the service reports the active member on every refresh
            active_name = snapshot.active_name if snapshot.active_name in self._index else None
            self._active = EndpointRef(active_name, self._generation) if active_name else None
            self._preferred = None
            return self._generation

    def view(self) -> PoolView:
        with self._lock:
            return PoolView(
                generation=self._generation,
                endpoints=self._endpoints,
                active=self._resolve_locked(self._active),
                preferred=self._resolve_locked(self._preferred),
            )

    def resolve(self, ref: Optional[EndpointRef]) -> Optional[Endpoint]:
        with self._lock:
            return self._resolve_locked(ref)

    def record_latencies(self, generation: int, latencies: Mapping[str, int]) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            self._endpoints = tuple(
                replace(endpoint, latency_ms=latencies[endpoint.name])
                if endpoint.name in latencies
                else endpoint
                for endpoint in self._endpoints
            )
            self._index = {endpoint.name: endpoint for endpoint in self._endpoints}
            return True

    def offer_preferred(self, endpoint: Endpoint, generation: int) -> bool:
        with self._lock:
            if generation != self._generation or endpoint.name not in self._index:
                return False
            self._preferred = EndpointRef(endpoint.name, generation)
            return True

    def set_active(self, name: str, expected: Optional[str] = None) -> bool:
        with self._lock:
            current = self._active.name if self._active else None
            if expected is not None and current != expected:
                return False
            if name not in self._index:
                self._active = None
                return False
            self._active = EndpointRef(name, self._generation)
            return True

    def _resolve_locked(self, ref: Optional[EndpointRef]) -> Optional[Endpoint]:
        if ref is None or ref.generation != self._generation:
            return None
        return self._index.get(ref.name)
