"""Station queues, role policies, and the per-station processor threads."""

from __future__ import annotations

import threading
import time

import pytest

from conftest import customers, fill, layout, make_cfg
from svcsim.errors import CapacityViolation, ConfigError
from svcsim.queues import Station, StationProcessor
from svcsim.stations import StationPolicy, StationRole, find_role, make_stations


def wait_until(pred, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if pred():
            return True
        time.sleep(0.005)
    return pred()


class TestStationPolicy:

    def test_round_robin_admits_only_when_empty(self):
        p = StationPolicy.for_role(StationRole.ROUND_ROBIN, 5)
        assert p.admits(0)
        assert not p.admits(1)
        assert p.has_room(4)
        assert not p.has_room(5)

    def test_single_queue_admits_below_capacity(self):
        p = StationPolicy.for_role(StationRole.SINGLE_QUEUE, 15)
        assert p.admits(14)
        assert not p.admits(15)

    def test_unbounded_label_and_admission(self):
        p = StationPolicy.for_role(StationRole.OVERFLOW)
        assert p.label() == "unbounded"
        assert p.admits(10_000)

    def test_display_wait_max_for_round_robin_sum_otherwise(self):
        assert StationPolicy.for_role(StationRole.ROUND_ROBIN, 5).display_wait([3, 9, 4]) == 9
        assert StationPolicy.for_role(StationRole.SHORTEST_QUEUE).display_wait([3, 9, 4]) == 16
        assert StationPolicy.for_role(StationRole.ROUND_ROBIN, 5).display_wait([]) == 0

    def test_negative_capacity_rejected(self):
        with pytest.raises(ConfigError):
            StationPolicy.for_role(StationRole.SINGLE_QUEUE, -1)

    def test_role_parse(self):
        assert StationRole.parse("Round_Robin") is StationRole.ROUND_ROBIN
        with pytest.raises(ConfigError):
            StationRole.parse("vip")


class TestMakeStations:

    def test_default_layout_order_and_capacities(self, stations):
        assert [(s.name, s.capacity) for s in stations] == [
            ("SingleQueue", 15), ("RoundRobinQueue", 5), ("ShortestQueue", None),
            ("RegularQ1", None), ("RegularQ2", None),
        ]
        assert find_role(stations, StationRole.SHORTEST_QUEUE).name == "ShortestQueue"

    def test_duplicate_names_rejected(self):
        lay = layout()
        lay[4]["name"] = "RegularQ1"
        with pytest.raises(ConfigError):
            make_stations(make_cfg(stations=lay))

    def test_two_shortest_queue_stations_rejected(self):
        lay = layout()
        lay[3]["role"] = "shortest_queue"
        with pytest.raises(ConfigError):
            make_stations(make_cfg(stations=lay))


class TestStation:

    def test_fifo_and_occupancy(self, by_name):
        st = by_name["RegularQ1"]
        fill(st, 3, start=1)
        assert st.customer_ids() == [1, 2, 3]
        assert st.occupancy == len(st) == 3
        assert st.serve_one().cid == 1
        assert st.occupancy == len(st) == 2

    def test_serve_empty_keeps_occupancy_at_zero(self, by_name):
        st = by_name["RegularQ2"]
        assert st.serve_one() is None
        assert st.occupancy == 0

    def test_enqueue_past_capacity_is_a_violation(self, by_name):
        st = by_name["RoundRobinQueue"]
        fill(st, 5)
        with pytest.raises(CapacityViolation):
            st.enqueue(customers(1)[0])
        assert len(st) == 5

    def test_display_and_total_wait(self, by_name):
        rr = by_name["RoundRobinQueue"]
        for c, svc in zip(customers(3), (2, 7, 4)):
            rr.enqueue(c.__class__(c.cid, c.arrival, svc))
        assert rr.display_wait() == 7
        assert rr.total_service_minutes() == 13

    def test_take_returns_none_once_stopped(self, by_name):
        st = by_name["RegularQ1"]
        fill(st, 1)
        stop = threading.Event()
        stop.set()
        assert st.take(stop, timeout=0.01) is None
        assert len(st) == 1

    def test_take_times_out_when_empty(self, by_name):
        assert by_name["RegularQ1"].take(threading.Event(), timeout=0.01) is None


class TestStationProcessor:

    def test_drains_queue_one_at_a_time(self):
        st = Station("X", StationPolicy.for_role(StationRole.OVERFLOW))
        served = []
        p = StationProcessor(st, service_delay=0.0, idle_interval=0.05,
                             on_served=lambda name, c: served.append((name, c.cid)))
        fill(st, 4, start=1)
        p.start()
        try:
            assert wait_until(lambda: len(served) == 4)
        finally:
            p.stop()
            p.join(2.0)
        assert served == [("X", 1), ("X", 2), ("X", 3), ("X", 4)]
        assert st.occupancy == len(st) == 0
        assert p.served == 4

    def test_parked_processor_wakes_on_enqueue(self):
        st = Station("Y", StationPolicy.for_role(StationRole.OVERFLOW))
        p = StationProcessor(st, service_delay=0.0, idle_interval=None)
        p.start()
        try:
            time.sleep(0.05)
            fill(st, 1)
            assert wait_until(lambda: p.served == 1)
        finally:
            p.stop()
            p.join(2.0)
        assert not p.is_alive()

    def test_stop_interrupts_service_delay(self):
        st = Station("Z", StationPolicy.for_role(StationRole.OVERFLOW))
        fill(st, 3)
        p = StationProcessor(st, service_delay=30.0, idle_interval=None)
        p.start()
        assert wait_until(lambda: p.served == 1)
        t0 = time.monotonic()
        p.stop()
        p.join(2.0)
        assert not p.is_alive()
        assert time.monotonic() - t0 < 2.0
        # the remaining customers were never touched
        assert len(st) == 2
        assert st.occupancy == 2

    def test_no_dequeue_after_stop(self):
        st = Station("W", StationPolicy.for_role(StationRole.OVERFLOW))
        p = StationProcessor(st, service_delay=0.0, idle_interval=0.01)
        p.start()
        p.stop()
        p.join(2.0)
        fill(st, 2)
        time.sleep(0.05)
        assert len(st) == 2
