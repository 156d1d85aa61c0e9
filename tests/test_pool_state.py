import threading

from conftest import endpoint
from features.clash_failover.domain.models import EndpointRef, Snapshot


def test_replace_bumps_generation_and_resolves_active(state):
    assert state.view().generation == 0
    assert state.view().empty

    generation = state.replace(Snapshot(endpoints=(endpoint("HK 01"), endpoint("JP 01")), active_name="JP 01"))

    view = state.view()
    assert generation == view.generation == 1
    assert view.active.name == "JP 01"
    assert view.preferred is None


def test_replace_keeps_active_identity_with_unmeasured_latency(seeded_state):
    seeded_state.record_latencies(seeded_state.generation, {"HK 01": 80})
    assert seeded_state.view().active.latency_ms == 80

    seeded_state.replace(Snapshot(endpoints=(endpoint("HK 01"), endpoint("SG 01")), active_name="HK 01"))

    view = seeded_state.view()
    assert view.active.name == "HK 01"
    assert view.active.latency_ms == -1


def test_replace_without_reported_active_leaves_it_unresolved(seeded_state):
    seeded_state.replace(Snapshot(endpoints=(endpoint("HK 01"), endpoint("SG 01")), active_name=None))
    assert seeded_state.view().active is None


def test_replace_drops_active_that_left_the_pool(seeded_state):
    seeded_state.replace(Snapshot(endpoints=(endpoint("SG 01"),), active_name="HK 01"))
    assert seeded_state.view().active is None


def test_replace_prefers_reported_active(seeded_state):
    seeded_state.replace(Snapshot(endpoints=(endpoint("HK 01"), endpoint("JP 01")), active_name="JP 01"))
    assert seeded_state.view().active.name == "JP 01"


def test_preferred_goes_stale_after_replace(seeded_state):
    generation = seeded_state.generation
    assert seeded_state.offer_preferred(endpoint("JP 01"), generation)
    assert seeded_state.view().preferred.name == "JP 01"

    seeded_state.replace(Snapshot(endpoints=(endpoint("HK 01"), endpoint("JP 01")), active_name="HK 01"))

    assert seeded_state.view().preferred is None
    assert not seeded_state.offer_preferred(endpoint("JP 01"), generation)


def test_offer_preferred_rejects_unknown_name(seeded_state):
    assert not seeded_state.offer_preferred(endpoint("SG 01"), seeded_state.generation)


def test_record_latencies_only_for_current_generation(seeded_state):
    old = seeded_state.generation
    assert seeded_state.record_latencies(old, {"JP 01": 42})
    assert {e.name: e.latency_ms for e in seeded_state.view().endpoints}["JP 01"] == 42

    seeded_state.replace(Snapshot(endpoints=(endpoint("JP 01"),), active_name="JP 01"))
    assert not seeded_state.record_latencies(old, {"JP 01": 7})
    assert seeded_state.view().endpoints[0].latency_ms == -1


def test_set_active_compare_and_set(seeded_state):
    assert not seeded_state.set_active("JP 01", expected="US 01 (2x)")
    assert seeded_state.view().active.name == "HK 01"

    assert seeded_state.set_active("JP 01", expected="HK 01")
    assert seeded_state.view().active.name == "JP 01"

    assert not seeded_state.set_active("SG 01")
    assert seeded_state.view().active is None


def test_refs_resolve_to_absent_once_generation_is_replaced(seeded_state):
    ref = EndpointRef("JP 01", seeded_state.generation)
    assert seeded_state.resolve(ref).name == "JP 01"

    seeded_state.replace(Snapshot(endpoints=(endpoint("JP 01"),)))

    assert seeded_state.resolve(ref) is None
    assert seeded_state.resolve(EndpointRef("JP 01", seeded_state.generation)).name == "JP 01"


def test_views_never_mix_generations(state):
    stop = threading.Event()
    errors = []

    def writer():
        i = 0
        while not stop.is_set():
            names = (f"A{i}", f"B{i}")
            state.replace(Snapshot(endpoints=tuple(endpoint(n) for n in names), active_name=names[i % 2]))
            i += 1

    def reader():
        for _ in range(2000):
            view = state.view()
            if view.active is not None and view.active not in view.endpoints:
                errors.append(view)

    threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads[1:]:
        t.join()
    stop.set()
    threads[0].join()

    assert errors == []
