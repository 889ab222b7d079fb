"""Round-based driver: control signals, state machine, processors, headless runs."""

from __future__ import annotations

import time

import pytest

from conftest import ScriptedRandom, layout, make_cfg
from svcsim.metrics import EfficiencyResponse, StatusReport
from svcsim.simulation import ControlSignal, SchedulerState, Simulation, SimState, run_headless
from svcsim.entities import TimeOfDay


class TestControlSignal:

    @pytest.mark.parametrize("text,signal", [
        ("0", ControlSignal.STOP),
        ("stop", ControlSignal.STOP),
        ("1", ControlSignal.QUERY_EFFICIENCY),
        ("query-efficiency", ControlSignal.QUERY_EFFICIENCY),
        ("", ControlSignal.CONTINUE),
        ("x", ControlSignal.CONTINUE),
        (None, ControlSignal.CONTINUE),
    ])
    def test_parse(self, text, signal):
        assert ControlSignal.parse(text) is signal


class TestSchedulerState:

    def test_owns_stations_tracker_and_metrics(self, cfg):
        st = SchedulerState.from_cfg(cfg, ScriptedRandom())
        names = [s.name for s in st.stations]
        assert list(st.tracker.counts()) == names
        assert st.metrics.names == names
        assert st.elapsed_minutes == 0 and st.pending == []


class TestSimulation:

    def test_start_places_initial_batch(self):
        sim = Simulation(make_cfg(), ScriptedRandom(ints=[8, 30, 0, 12]))
        info = sim.start()
        assert info.initial_batch == 12
        assert info.total_waiting_minutes == 60
        assert info.first_arrival == TimeOfDay(8, 30, 0)
        assert info.average_service_minutes == 5.0
        assert info.initial_report.total_customers == 12
        assert info.stations[1] == ("RoundRobinQueue", "round_robin", "capacity 5")
        assert sim.phase is SimState.AWAITING_INPUT
        sim.stop()

    def test_query_efficiency_is_read_only(self):
        sim = Simulation(make_cfg(), ScriptedRandom(ints=[0, 0, 0, 12]))
        sim.start()
        before = sim.state.tracker.counts()
        for _ in range(3):
            resp = sim.step(ControlSignal.QUERY_EFFICIENCY)
        assert isinstance(resp, EfficiencyResponse)
        assert (resp.name, resp.count) == ("SingleQueue", 3)
        assert sim.state.tracker.counts() == before
        assert sim.phase is SimState.AWAITING_INPUT
        assert sim.state.round_no == 0
        sim.stop()

    def test_continue_runs_one_round(self):
        sim = Simulation(make_cfg(), ScriptedRandom(ints=[0, 0, 0, 1, 3, 4]))
        sim.start()
        report = sim.step(ControlSignal.CONTINUE)
        assert isinstance(report, StatusReport)
        assert (report.round_no, report.elapsed_minutes) == (1, 4)
        assert report.assigned == {"RegularQ1": 1, "RegularQ2": 1}
        # per-round processing served the front customer of every busy station
        assert sum(sim.state.metrics.served.values()) == 3
        assert report.total_customers == 0
        assert sim.state.metrics.arrivals == 3
        assert sim.phase is SimState.AWAITING_INPUT
        sim.stop()

    def test_stops_when_total_time_reached(self):
        cfg = make_cfg(sim={"total_minutes": 10, "round_minutes_range": [5, 5]})
        sim = Simulation(cfg, ScriptedRandom())
        sim.start()
        sim.step(ControlSignal.CONTINUE)
        assert not sim.stopped
        sim.step(ControlSignal.CONTINUE)
        assert sim.stopped
        assert sim.step(ControlSignal.CONTINUE) is None

    def test_stop_signal(self):
        sim = Simulation(make_cfg(), ScriptedRandom())
        sim.start()
        assert sim.step(ControlSignal.STOP) is None
        assert sim.phase is SimState.STOPPED
        sim.stop()

    def test_start_twice_is_an_error(self):
        sim = Simulation(make_cfg(), ScriptedRandom())
        sim.start()
        with pytest.raises(RuntimeError):
            sim.start()
        sim.stop()

    def test_unassigned_customers_retried_next_round(self):
        cfg = make_cfg(stations=layout(single=1, rr=1, shortest=1, r1=1, r2=1))
        sim = Simulation(cfg, ScriptedRandom(ints=[0, 0, 0, 8]))
        info = sim.start()
        assert info.initial_report.unassigned == 3
        assert [c.cid for c in sim.state.pending] == [6, 7, 8]

        report = sim.step(ControlSignal.CONTINUE)
        # every station was full at assignment time; the new customer queues behind
        assert report.unassigned == 4
        assert [c.cid for c in sim.state.pending] == [6, 7, 8, 9]

        report = sim.step(ControlSignal.CONTINUE)
        assert report.unassigned == 0
        assert sorted(cid for s in report.stations for cid in s.customer_ids) == []
        assert sum(sim.state.metrics.served.values()) == 10
        sim.stop()

    def test_unassigned_dropped_when_retry_disabled(self):
        cfg = make_cfg(stations=layout(single=1, rr=1, shortest=1, r1=1, r2=1),
                       sim={"retry_unassigned": False})
        sim = Simulation(cfg, ScriptedRandom(ints=[0, 0, 0, 8]))
        info = sim.start()
        assert info.initial_report.unassigned == 3
        assert sim.state.pending == []
        sim.stop()

    def test_threaded_processors_drain_queues(self):
        cfg = make_cfg(processing={"mode": "threaded", "service_delay_seconds": 0.0,
                                   "idle_interval_seconds": 0.01})
        with Simulation(cfg, ScriptedRandom(ints=[0, 0, 0, 12])) as sim:
            sim.start()
            assert len(sim.processors) == 5
            deadline = time.monotonic() + 3.0
            while time.monotonic() < deadline and any(len(s) for s in sim.stations):
                time.sleep(0.01)
            assert all(len(s) == 0 and s.occupancy == 0 for s in sim.stations)
            assert sum(sim.state.metrics.served.values()) == 12
        assert sim.stopped
        assert not any(p.is_alive() for p in sim.processors)


class TestRunHeadless:

    def test_summary_accounts_for_every_customer(self):
        cfg = make_cfg(sim={"seed": 3, "total_minutes": 120})
        out = run_headless(cfg)
        assert out["elapsed_minutes"] >= 120
        assert out["customers_issued"] == out["arrivals"]
        assert sum(out["served"].values()) + sum(out["still_queued"].values()) == out["arrivals"]
        assert out["rounds"] == len(out["queue_length_series"])
        assert out["unassigned_total"] == 0

    def test_same_seed_same_result(self):
        cfg = make_cfg(sim={"seed": 21, "total_minutes": 90})
        assert run_headless(cfg) == run_headless(cfg)

    def test_max_rounds_caps_the_run(self):
        out = run_headless(make_cfg(sim={"seed": 1}), max_rounds=3)
        assert out["rounds"] == 3
