from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import NoCandidateError
from .models import Endpoint


def group_by_cost(endpoints: Iterable[Endpoint]) -> List[List[Endpoint]]:
    """Return endpoints grouped into cost tiers, cheapest tier first."""
    groups: Dict[float, List[Endpoint]] = {}
    for endpoint in endpoints:
        groups.setdefault(endpoint.cost, []).append(endpoint)
    return [groups[cost] for cost in sorted(groups)]


def fastest_within(tier: Sequence[Endpoint], threshold: int) -> Optional[Endpoint]:
    best: Optional[Endpoint] = None
    for endpoint in tier:
        if not endpoint.has_signal or endpoint.latency_ms > threshold:
            continue
        if best is None or endpoint.latency_ms < best.latency_ms:
            best = endpoint
    return best


@dataclass
class ThresholdEscalation:
    """Tier scan with a latency bar that grows by a tenth of the base up to twice the base.

    Each call to ``step`` inspects one tier at the current threshold. When the
    last tier has been inspected without a hit the threshold is raised and the
    scan restarts from the cheapest tier. ``exhausted`` turns true once the
    threshold passes the ceiling.
    """

    tiers: List[List[Endpoint]]
    base_threshold: int
    threshold: int = field(init=False)
    tier_index: int = field(init=False, default=0)
    escalations: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        if self.base_threshold <= 0:
            raise ValueError("base_threshold must be positive")
        self.threshold = self.base_threshold

    @property
    def increment(self) -> int:
        return max(1, self.base_threshold // 10)

    @property
    def ceiling(self) -> int:
        return self.base_threshold * 2

    @property
    def exhausted(self) -> bool:
        return not self.tiers or self.threshold > self.ceiling

    def step(self) -> Optional[Endpoint]:
        if self.exhausted:
            return None
        found = fastest_within(self.tiers[self.tier_index], self.threshold)
        if found is not None:
            return found
        self.tier_index += 1
        if self.tier_index >= len(self.tiers):
            self.tier_index = 0
            self.threshold += self.increment
            self.escalations += 1
        return None

    def run(self) -> Endpoint:
        while not self.exhausted:
            found = self.step()
            if found is not None:
                return found
        raise NoCandidateError(
            f"no endpoint answered within {self.ceiling}ms "
            f"(base {self.base_threshold}ms, {self.escalations} escalations)"
        )


def choose_preferred(endpoints: Iterable[Endpoint], base_threshold: int) -> Endpoint:
    tiers = group_by_cost(endpoints)
    if not tiers:
        raise NoCandidateError("endpoint pool is empty")
    return ThresholdEscalation(tiers=tiers, base_threshold=base_threshold).run()
