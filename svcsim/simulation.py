# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   Drive a run round by round: build stations, router, tracker, metrics and
#   processors, accept control signals, generate batches, assign them, and
#   produce status reports.
#
# Design notes:
#   - All run state lives in SchedulerState; nothing is module-global.
#   - "threaded" processing starts one StationProcessor per station; the
#     "per_round" mode serves a fixed number per station after each round and
#     needs no threads (used by experiments and deterministic tests).
#
# Usage:
#   from svcsim.simulation import Simulation, run_headless
#   sim = Simulation(cfg); sim.start(); sim.step(ControlSignal.CONTINUE)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging, threading
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Tuple
from .arrivals import CustomerFactory, RandomSource, SeededRandomSource, batch_size_for, draw, random_time_of_day
from .entities import Customer, TimeOfDay
from .metrics import EfficiencyResponse, EfficiencyTracker, Metrics, StatusReport, build_status
from .network import AssignmentResult, Router
from .queues import Station, StationProcessor
from .stations import make_stations

log = logging.getLogger(__name__)

class SimState(Enum):
    AWAITING_INPUT = auto()
    GENERATING_BATCH = auto()
    ASSIGNING = auto()
    REPORTING = auto()
    STOPPED = auto()

class ControlSignal(Enum):
    CONTINUE = auto()
    STOP = auto()
    QUERY_EFFICIENCY = auto()

    @classmethod
    def parse(cls, text: Optional[str]) -> "ControlSignal":
        # anything unrecognized means "continue"
        t = (text or "").strip().lower()
        if t in ("0", "stop", "q", "quit", "exit"):
            return cls.STOP
        if t in ("1", "query", "efficiency", "query-efficiency"):
            return cls.QUERY_EFFICIENCY
        return cls.CONTINUE

@dataclass
class SchedulerState:
    """Everything a run mutates, owned by the Simulation."""
    stations: Tuple[Station, ...]
    tracker: EfficiencyTracker
    metrics: Metrics
    rng: RandomSource
    elapsed_minutes: int = 0
    round_no: int = 0
    pending: List[Customer] = field(default_factory=list)

    @classmethod
    def from_cfg(cls, cfg: dict, rng: Optional[RandomSource] = None) -> "SchedulerState":
        stations = make_stations(cfg)
        names = [s.name for s in stations]
        if rng is None:
            rng = SeededRandomSource(cfg["sim"].get("seed"))
        return cls(stations, EfficiencyTracker(names), Metrics(names), rng)

@dataclass
class StartingInfo:
    stations: List[Tuple[str, str, str]]       # (name, role, capacity label)
    initial_batch: int
    total_waiting_minutes: int
    first_arrival: TimeOfDay
    average_service_minutes: float
    initial_report: Optional[StatusReport] = None

class Simulation:
    """
    Round-based driver.

    Parameters
    ----------
    cfg : dict
        Validated config (see svcsim.config).
    rng : RandomSource, optional
        Injected random source; defaults to SeededRandomSource(sim.seed).
    """
    def __init__(self, cfg: dict, rng: Optional[RandomSource] = None):
        self.cfg = cfg
        self.state = SchedulerState.from_cfg(cfg, rng)
        sim = cfg["sim"]
        self.total_minutes = int(sim["total_minutes"])
        self.round_range = tuple(sim["round_minutes_range"])
        self.minutes_per_customer = float(sim["minutes_per_customer"])
        self.pacing_delay = float(sim.get("pacing_delay_seconds", 0.0))
        self.retry_unassigned = bool(sim.get("retry_unassigned", True))
        proc = cfg["processing"]
        self.mode = proc.get("mode", "threaded")
        self.per_round = int(proc.get("per_round", 1))
        self.router = Router(cfg, self.state.stations, self.state.tracker, self.state.metrics, self.state.rng)
        self.opened_at = random_time_of_day(self.state.rng)
        self.factory = CustomerFactory(self.state.rng, cfg, opened_at=self.opened_at)
        self.phase = SimState.AWAITING_INPUT
        self.processors: List[StationProcessor] = []
        self.last_report: Optional[StatusReport] = None
        self._halt = threading.Event()
        self._started = False

    @property
    def stations(self) -> Tuple[Station, ...]:
        return self.state.stations

    @property
    def stopped(self) -> bool:
        return self.phase is SimState.STOPPED

    def start(self) -> StartingInfo:
        """Start processors and place the initial batch."""
        if self._started:
            raise RuntimeError("simulation already started")
        self._started = True
        if self.mode == "threaded":
            self._start_processors()
        size = draw(self.state.rng, self.cfg["sim"]["initial_batch_range"])
        batch = self.factory.make_batch(size, self.state.elapsed_minutes)
        self.state.metrics.note_arrivals(len(batch))
        result = self.router.assign_batch(batch)
        self._carry(result)
        report = self._report(result)
        return StartingInfo(
            stations=[(s.name, s.role.value, s.policy.label()) for s in self.stations],
            initial_batch=size,
            total_waiting_minutes=size * self.factory.display_wait,
            first_arrival=self.opened_at,
            average_service_minutes=self.router.average_minutes,
            initial_report=report,
        )

    def step(self, signal: ControlSignal):
        """
        Handle one control signal.

        Returns an EfficiencyResponse for QUERY_EFFICIENCY, a StatusReport for
        CONTINUE, and None for STOP (or when already stopped).
        """
        if self.stopped:
            return None
        if signal is ControlSignal.STOP:
            self.stop()
            return None
        if signal is ControlSignal.QUERY_EFFICIENCY:
            return EfficiencyResponse.from_tracker(self.state.tracker)
        return self._run_round()

    def next_quickest(self) -> Optional[Tuple[str, float]]:
        peek = self.router.peek_next_quickest()
        return None if peek is None else (peek[0].name, peek[1])

    def _run_round(self) -> StatusReport:
        st = self.state
        if self.pacing_delay > 0:
            self._halt.wait(self.pacing_delay)

        self.phase = SimState.GENERATING_BATCH
        round_minutes = draw(st.rng, self.round_range)
        st.elapsed_minutes += round_minutes
        st.round_no += 1
        batch = self.factory.make_batch(batch_size_for(round_minutes, self.minutes_per_customer),
                                        st.elapsed_minutes)
        st.metrics.note_arrivals(len(batch))
        if self.retry_unassigned and st.pending:
            batch = st.pending + batch
            st.pending = []

        self.phase = SimState.ASSIGNING
        result = self.router.assign_batch(batch)
        self._carry(result)
        if self.mode == "per_round":
            self._serve_round()

        self.phase = SimState.REPORTING
        report = self._report(result)
        st.metrics.note_round(self.stations, result.unassigned_count)
        if st.elapsed_minutes >= self.total_minutes:
            log.info("simulated time reached %d minutes, stopping", st.elapsed_minutes)
            self.stop()
        else:
            self.phase = SimState.AWAITING_INPUT
        return report

    def _carry(self, result: AssignmentResult):
        if self.retry_unassigned:
            self.state.pending = list(result.unassigned)

    def _serve_round(self):
        for s in self.stations:
            for _ in range(self.per_round):
                cust = s.serve_one()
                if cust is None:
                    break
                self.state.metrics.note_served(s.name, cust)

    def _report(self, result: AssignmentResult) -> StatusReport:
        self.last_report = build_status(
            self.stations,
            round_no=self.state.round_no,
            elapsed_minutes=self.state.elapsed_minutes,
            unassigned=result.unassigned_count,
            next_quickest=self.next_quickest(),
            assigned=result.by_station(),
        )
        return self.last_report

    def _start_processors(self):
        proc = self.cfg["processing"]
        for s in self.stations:
            p = StationProcessor(
                s,
                service_delay=float(proc.get("service_delay_seconds", 1.0)),
                idle_interval=proc.get("idle_interval_seconds", 0.5),
                on_served=self.state.metrics.note_served,
            )
            p.start()
            self.processors.append(p)

    def stop(self, timeout: float = 5.0):
        """Signal every processor and wait for it to exit. Safe to call twice."""
        self._halt.set()
        for p in self.processors:
            p.stop()
        for p in self.processors:
            p.join(timeout)
            if p.is_alive():
                log.warning("%s did not exit within %.1fs", p.name, timeout)
        self.phase = SimState.STOPPED

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.stop()
        return False

def run_headless(cfg: dict, max_rounds: Optional[int] = None, rng: Optional[RandomSource] = None) -> Dict:
    """Run CONTINUE rounds until time runs out (or max_rounds); return a summary."""
    with Simulation(cfg, rng) as sim:
        sim.start()
        n = 0
        while not sim.stopped and (max_rounds is None or n < max_rounds):
            sim.step(ControlSignal.CONTINUE)
            n += 1
        summary = sim.state.metrics.summary(sim.state.tracker)
        summary["elapsed_minutes"] = sim.state.elapsed_minutes
        summary["customers_issued"] = sim.factory.issued
        summary["still_queued"] = {s.name: len(s) for s in sim.stations}
    return summary
