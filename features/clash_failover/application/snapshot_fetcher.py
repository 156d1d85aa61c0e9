from __future__ import annotations

import logging
from dataclasses import dataclass

from features.clash_failover.application.ports import ControlApi, SnapshotSource
from features.clash_failover.application.pool_state import PoolState
from features.clash_failover.domain.errors import NoCandidateError, TransientError
from features.clash_failover.domain.models import Snapshot
from features.clash_failover.infrastructure.parser import EndpointFilter, parse_directory


logger = logging.getLogger(__name__)


@dataclass
class EndpointSnapshotFetcher(SnapshotSource):
    api: ControlApi
    selector_name: str
    endpoint_filter: EndpointFilter

    def fetch(self) -> Snapshot:
        payload = self.api.list_proxies()
        endpoints, active_name = parse_directory(payload, self.selector_name)
        filtered = self.endpoint_filter.apply(endpoints)
        snapshot = Snapshot(endpoints=tuple(filtered), active_name=active_name)
        if active_name is not None and snapshot.find(active_name) is None:
            logger.debug("Active endpoint %r is not in the filtered pool", active_name)
            snapshot = Snapshot(endpoints=snapshot.endpoints, active_name=None)
        return snapshot


@dataclass
class PoolRefresher:
    """Replaces the shared pool with a fresh snapshot; keeps the old one on failure."""

    source: SnapshotSource
    state: PoolState

    def refresh(self) -> int:
        snapshot = self.source.fetch()
        if not snapshot.endpoints:
            raise NoCandidateError("filtered endpoint pool is empty")
        generation = self.state.replace(snapshot)
        view = self.state.view()
        logger.info(
            "Endpoint pool refreshed: %d endpoints, active=%s (generation %d)",
            len(view.endpoints),
            view.active.name if view.active else "unresolved",
            generation,
        )
        return generation

    def tick(self) -> bool:
        try:
            self.refresh()
        except TransientError as exc:
            logger.warning("Updating endpoint pool failed: %s", exc)
            return False
        except NoCandidateError as exc:
            logger.warning("Endpoint pool not updated: %s", exc)
            return False
        return True
