from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Dict, List, Tuple

from features.clash_failover.application.ports import LatencyProber, PreferredSource
from features.clash_failover.application.pool_state import PoolState
from features.clash_failover.domain.errors import NoCandidateError
from features.clash_failover.domain.models import NO_SIGNAL, Endpoint
from features.clash_failover.domain.selection import choose_preferred


logger = logging.getLogger(__name__)


class EndpointSelector(PreferredSource):
    """Measures every endpoint in the pool and picks the cheapest fast one."""

    def __init__(
        self,
        state: PoolState,
        prober: LatencyProber,
        *,
        trials: int,
        base_threshold: int,
        trial_delay: float = 1.0,
        max_workers: int = 20,
    ) -> None:
        self._state = state
        self._prober = prober
        self._trials = trials
        self._base_threshold = base_threshold
        self._trial_delay = trial_delay
        self._max_workers = max_workers

    def select(self) -> Endpoint:
        view = self._state.view()
        if view.empty:
            raise NoCandidateError("endpoint pool is empty")

        latencies = self._measure_all(list(view.endpoints))
        scored = [replace(endpoint, latency_ms=latencies[endpoint.name]) for endpoint in view.endpoints]
        if not self._state.record_latencies(view.generation, latencies):
            logger.debug("Pool replaced during measurement; latencies kept for this selection only")

        chosen = choose_preferred(scored, self._base_threshold)
        if self._state.offer_preferred(chosen, view.generation):
            logger.info("Preferred endpoint: %s (%dms, cost %.2fx)", chosen.name, chosen.latency_ms, chosen.cost)
        else:
            logger.info("Preferred endpoint %s computed against a replaced pool; not cached", chosen.name)
        return chosen

    def refresh_preferred(self) -> bool:
        """Periodic entry point; returns False to request a backoff."""
        if self._state.view().empty:
            logger.debug("Endpoint pool is empty; skipping selection")
            return True
        try:
            self.select()
        except NoCandidateError as exc:
            logger.warning("Selecting preferred endpoint failed: %s", exc)
            return False
        return True

    def _measure_all(self, endpoints: List[Endpoint]) -> Dict[str, int]:
        results: Dict[str, int] = {}
        max_workers = max(1, min(self._max_workers, len(endpoints)))

        def _run(endpoint: Endpoint) -> Tuple[str, int]:
            return endpoint.name, self._prober.measure(endpoint, self._trials, self._trial_delay)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(_run, endpoint): endpoint.name for endpoint in endpoints}
            for future in as_completed(futures):
                try:
                    name, latency = future.result()
                except Exception:  # pylint: disable=broad-except
                    name, latency = futures[future], NO_SIGNAL
                    logger.debug("Measuring %s raised; treating as no signal", name, exc_info=True)
                results[name] = latency
        return results
