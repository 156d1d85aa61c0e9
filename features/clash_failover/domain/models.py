from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


NO_SIGNAL = -1

IGNORED_KINDS = frozenset({"Selector", "Direct", "URLTest", "Fallback", "LoadBalance", "Reject"})


@dataclass(frozen=True)
class Endpoint:
    name: str
    kind: str = ""
    reachable: bool = True
    cost: float = 1.0
    latency_ms: int = NO_SIGNAL  # -1 = unmeasured or unreachable

    @property
    def has_signal(self) -> bool:
        return self.latency_ms > 0


@dataclass(frozen=True)
class EndpointRef:
    """Name of an endpoint pinned to the pool generation it was taken from."""

    name: str
    generation: int


@dataclass(frozen=True)
class Snapshot:
    endpoints: Tuple[Endpoint, ...]
    active_name: Optional[str] = None

    def find(self, name: Optional[str]) -> Optional[Endpoint]:
        if name is None:
            return None
        for endpoint in self.endpoints:
            if endpoint.name == name:
                return endpoint
        return None


@dataclass(frozen=True)
class PoolView:
    generation: int
    endpoints: Tuple[Endpoint, ...] = field(default_factory=tuple)
    active: Optional[Endpoint] = None
    preferred: Optional[Endpoint] = None

    @property
    def empty(self) -> bool:
        return not self.endpoints
