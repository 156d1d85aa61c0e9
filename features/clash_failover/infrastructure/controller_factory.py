from __future__ import annotations

from dataclasses import dataclass

from features.clash_failover.application.failover import FailoverController
from features.clash_failover.application.pool_state import PoolState
from features.clash_failover.application.prober import ControlApiLatencyProber
from features.clash_failover.application.scheduler import FailoverSupervisor, PeriodicTask
from features.clash_failover.application.selector import EndpointSelector
from features.clash_failover.application.snapshot_fetcher import EndpointSnapshotFetcher, PoolRefresher
from features.clash_failover.domain.config import ControllerConfig

from .control_api import RequestsControlApi
from .parser import EndpointFilter


@dataclass
class FailoverComponents:
    state: PoolState
    api: RequestsControlApi
    refresher: PoolRefresher
    selector: EndpointSelector
    failover: FailoverController
    supervisor: FailoverSupervisor


def build_components(config: ControllerConfig) -> FailoverComponents:
    # raises PatternError before any loop starts
    endpoint_filter = EndpointFilter(config.include_regex, config.exclude_regex)

    state = PoolState()
    api = RequestsControlApi(
        base_url=config.api_endpoint,
        secret=config.api_key,
        timeout=config.request_timeout,
    )
    fetcher = EndpointSnapshotFetcher(
        api=api,
        selector_name=config.select_node,
        endpoint_filter=endpoint_filter,
    )
    refresher = PoolRefresher(source=fetcher, state=state)
    prober = ControlApiLatencyProber(
        api=api,
        test_url=config.test_url,
        timeout_ms=config.probe_timeout_ms,
    )
    selector = EndpointSelector(
        state,
        prober,
        trials=config.test_times,
        base_threshold=config.latency_threshold,
        trial_delay=config.trial_delay,
        max_workers=config.max_probe_workers,
    )
    failover = FailoverController(
        state=state,
        prober=prober,
        selector=selector,
        api=api,
        selector_name=config.select_node,
        base_threshold=config.latency_threshold,
    )
    supervisor = FailoverSupervisor(
        tasks=[
            PeriodicTask(
                name="pool-refresh",
                interval=config.retrieve_interval,
                action=refresher.tick,
                backoff=config.retry_backoff,
            ),
            PeriodicTask(
                name="preferred-selection",
                interval=config.best_interval,
                action=selector.refresh_preferred,
                backoff=config.retry_backoff,
            ),
            PeriodicTask(
                name="health-check",
                interval=config.current_interval,
                action=failover.tick,
                backoff=config.current_interval,
                run_immediately=False,
            ),
        ]
    )
    return FailoverComponents(
        state=state,
        api=api,
        refresher=refresher,
        selector=selector,
        failover=failover,
        supervisor=supervisor,
    )


def build_supervisor(config: ControllerConfig) -> FailoverSupervisor:
    return build_components(config).supervisor
