"""
Tests for RateGate: minimum spacing between upstream call starts.
"""
import threading

from catalog_gateway.rate_gate import RateGate


def test_first_admission_does_not_wait(gate, clock):
    waited = gate.admit()
    assert waited == 0.0
    assert clock.sleeps == []
    assert gate.last_request_at == clock.now


def test_back_to_back_admissions_are_spaced_by_interval(gate, clock):
    gate.admit()
    gate.admit()
    gate.admit()
    assert clock.sleeps == [1.0, 1.0]


def test_interval_measured_from_call_start(gate, clock):
    gate.admit()
    # Upstream call took 0.4s; only the remainder is waited
    clock.advance(0.4)
    waited = gate.admit()
    assert abs(waited - 0.6) < 1e-9


def test_no_wait_once_interval_has_passed(gate, clock):
    gate.admit()
    clock.advance(5)
    assert gate.admit() == 0.0


def test_reset_forgets_last_admission(gate, clock):
    gate.admit()
    gate.reset()
    assert gate.last_request_at is None
    assert gate.admit() == 0.0
    assert gate.get_stats()["admitted"] == 1


def test_concurrent_callers_are_admitted_one_interval_apart(clock):
    gate = RateGate(interval=1.0, clock=clock, sleep=clock.sleep)
    start = clock()

    threads = [threading.Thread(target=gate.admit) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # Every caller after the first waited one full interval
    assert clock.sleeps == [1.0] * 4
    assert clock() - start == 4.0
    assert gate.get_stats()["admitted"] == 5
