import pytest

from conftest import FakeProber, endpoint
from features.clash_failover.application.pool_state import PoolState
from features.clash_failover.application.selector import EndpointSelector
from features.clash_failover.domain.errors import NoCandidateError
from features.clash_failover.domain.models import Snapshot


def _selector(state, prober, threshold=120):
    return EndpointSelector(state, prober, trials=1, base_threshold=threshold, trial_delay=0, max_workers=4)


def test_select_measures_every_endpoint_and_caches_preferred(seeded_state):
    prober = FakeProber({"HK 01": 100, "JP 01": 50, "US 01 (2x)": 10})

    chosen = _selector(seeded_state, prober).select()

    assert chosen.name == "JP 01"
    assert chosen.latency_ms == 50
    assert sorted(prober.probed) == ["HK 01", "JP 01", "US 01 (2x)"]
    view = seeded_state.view()
    assert view.preferred.name == "JP 01"
    assert {e.name: e.latency_ms for e in view.endpoints} == {"HK 01": 100, "JP 01": 50, "US 01 (2x)": 10}


class _ExplodingProber(FakeProber):
    def measure(self, endpoint, trials, trial_delay):
        if endpoint.name == "JP 01":
            raise RuntimeError("boom")
        return super().measure(endpoint, trials, trial_delay)


def test_one_failing_probe_does_not_abort_batch(seeded_state):
    chosen = _selector(seeded_state, _ExplodingProber({"HK 01": 100, "JP 01": 50})).select()

    assert chosen.name == "HK 01"
    assert {e.name: e.latency_ms for e in seeded_state.view().endpoints}["JP 01"] == -1


def test_select_on_empty_pool_fails(state):
    with pytest.raises(NoCandidateError):
        _selector(state, FakeProber()).select()


def test_select_without_candidate_leaves_preferred_unset(seeded_state):
    with pytest.raises(NoCandidateError):
        _selector(seeded_state, FakeProber({"HK 01": 900})).select()
    assert seeded_state.view().preferred is None


class _RefreshingProber(FakeProber):
    """Replaces the pool while the batch is running."""

    def __init__(self, state, latencies):
        super().__init__(latencies)
        self._state = state

    def measure(self, endpoint, trials, trial_delay):
        if endpoint.name == "HK 01":
            self._state.replace(Snapshot(endpoints=(endpoint,), active_name="HK 01"))
        return super().measure(endpoint, trials, trial_delay)


def test_batch_finishes_against_the_generation_it_started_with(seeded_state):
    prober = _RefreshingProber(seeded_state, {"HK 01": 100, "JP 01": 50})

    chosen = _selector(seeded_state, prober).select()

    assert chosen.name == "JP 01"
    view = seeded_state.view()
    assert view.generation == 2
    assert view.preferred is None
    assert view.endpoints[0].latency_ms == -1


def test_refresh_preferred_reports_backoff(seeded_state):
    assert _selector(PoolState(), FakeProber()).refresh_preferred()
    assert not _selector(seeded_state, FakeProber()).refresh_preferred()
    assert _selector(seeded_state, FakeProber({"HK 01": 30})).refresh_preferred()
