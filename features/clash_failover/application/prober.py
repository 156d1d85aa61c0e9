from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from features.clash_failover.application.ports import ControlApi, LatencyProber
from features.clash_failover.domain.errors import ProbeError
from features.clash_failover.domain.models import NO_SIGNAL, Endpoint


logger = logging.getLogger(__name__)


@dataclass
class ControlApiLatencyProber(LatencyProber):
    api: ControlApi
    test_url: str
    timeout_ms: int = 5000
    sleep: Callable[[float], None] = time.sleep

    def probe(self, endpoint: Optional[Endpoint]) -> int:
        if endpoint is None:
            return NO_SIGNAL
        try:
            delay = self.api.probe_delay(endpoint.name, self.test_url, self.timeout_ms)
        except ProbeError as exc:
            logger.debug("No signal from %s: %s", endpoint.name, exc)
            return NO_SIGNAL
        return delay if delay >= 0 else NO_SIGNAL

    def measure(self, endpoint: Endpoint, trials: int, trial_delay: float) -> int:
        total = 0
        successes = 0
        for _ in range(trials):
            latency = self.probe(endpoint)
            if latency > 0:
                total += latency
                successes += 1
            self.sleep(trial_delay)
        if not successes:
            return NO_SIGNAL
        return total // successes
