from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from features.clash_failover.application.ports import ControlApi, LatencyProber, PreferredSource
from features.clash_failover.application.pool_state import PoolState
from features.clash_failover.domain.errors import NoCandidateError, SwitchError
from features.clash_failover.domain.models import NO_SIGNAL


logger = logging.getLogger(__name__)


class FailoverOutcome(str, enum.Enum):
    IDLE = "idle"
    HEALTHY = "healthy"
    SWITCHED = "switched"
    NO_CANDIDATE = "no_candidate"
    SWITCH_FAILED = "switch_failed"


@dataclass
class FailoverController:
    state: PoolState
    prober: LatencyProber
    selector: PreferredSource
    api: ControlApi
    selector_name: str
    base_threshold: int

    @property
    def degraded_above(self) -> int:
        return self.base_threshold * 2

    def is_healthy(self, delay: int) -> bool:
        return delay != NO_SIGNAL and delay <= self.degraded_above

    def check(self) -> FailoverOutcome:
        view = self.state.view()
        if view.empty:
            return FailoverOutcome.IDLE

        active = view.active
        delay = self.prober.probe(active)
        if self.is_healthy(delay):
            logger.debug("Active endpoint %s healthy (%dms)", active.name, delay)
            return FailoverOutcome.HEALTHY

        active_name = active.name if active else None
        if active is None:
            logger.warning("Active endpoint is unresolved; switching to the preferred endpoint")
        else:
            logger.warning("Active endpoint %s degraded (delay %d); switching", active_name, delay)

        preferred = self.state.view().preferred
        if preferred is None or preferred.name == active_name:
            try:
                preferred = self.selector.select()
            except NoCandidateError as exc:
                logger.warning("No endpoint to fail over to: %s", exc)
                return FailoverOutcome.NO_CANDIDATE

        try:
            self.api.switch(self.selector_name, preferred.name)
        except SwitchError as exc:
            logger.warning("Switch failed: %s", exc)
            return FailoverOutcome.SWITCH_FAILED

        if not self.state.set_active(preferred.name):
            logger.debug("%s is not in the current pool; active stays unresolved until refresh", preferred.name)
        logger.info("Switched %s to %s", self.selector_name, preferred.name)
        return FailoverOutcome.SWITCHED

    def tick(self) -> bool:
        self.check()
        return True
