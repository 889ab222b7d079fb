# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   Collect and summarize KPIs: next-quickest selection frequencies, served
#   and assigned counts, unassigned customers, and per-round status reports.
#
# Design notes:
#   - Keep side-effect methods (note_*) for instrumentation from the router
#     and the station processors. Processors run on their own threads, so the
#     counters sit behind a lock.
#   - Summaries return JSON-serializable dicts for easy tabulation.
#
# Usage:
#   M = Metrics([s.name for s in stations]); M.summary()
# -----------------------------------------------------------------------------

from __future__ import annotations
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from .errors import NoSelectionYet
from .queues import Station

class EfficiencyTracker:
    """
    Per-station count of how often each station was chosen as next quickest.

    Counts only grow. Reads (counts, most_frequent) never change them, so a
    display can query as often as it likes.
    """
    def __init__(self, names: Sequence[str] = ()):
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {n: 0 for n in names}

    def record(self, name: str, times: int = 1):
        if times < 0:
            raise ValueError("selection counts cannot decrease")
        with self._lock:
            self._counts[name] = self._counts.get(name, 0) + times

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def most_frequent(self) -> Tuple[str, int]:
        """Station with the strictly greatest count; first seen wins a tie."""
        best, best_n = None, 0
        with self._lock:
            for name, n in self._counts.items():
                if n > best_n:
                    best, best_n = name, n
        if best is None:
            raise NoSelectionYet("no station has been selected yet")
        return best, best_n

@dataclass
class EfficiencyResponse:
    name: Optional[str] = None
    count: int = 0

    @property
    def no_selection(self) -> bool:
        return self.name is None

    @classmethod
    def from_tracker(cls, tracker: EfficiencyTracker) -> "EfficiencyResponse":
        try:
            name, count = tracker.most_frequent()
        except NoSelectionYet:
            return cls()
        return cls(name, count)

@dataclass
class StationStatus:
    name: str
    customer_ids: List[int]
    display_wait_minutes: int
    capacity_label: str
    occupancy_pct: float = 0.0

    @property
    def size(self) -> int:
        return len(self.customer_ids)

@dataclass
class StatusReport:
    round_no: int
    elapsed_minutes: int
    stations: List[StationStatus]
    unassigned: int = 0
    next_quickest: Optional[Tuple[str, float]] = None
    assigned: Dict[str, int] = field(default_factory=dict)

    @property
    def total_customers(self) -> int:
        return sum(s.size for s in self.stations)

    @property
    def total_wait_minutes(self) -> int:
        return sum(s.display_wait_minutes for s in self.stations)

def occupancy_pct(station_wait: float, total_wait: float) -> float:
    if total_wait <= 0:
        return 0.0
    return station_wait / total_wait * 100.0

def build_status(stations: Sequence[Station], round_no: int = 0, elapsed_minutes: int = 0,
                 unassigned: int = 0, next_quickest: Optional[Tuple[str, float]] = None,
                 assigned: Optional[Dict[str, int]] = None) -> StatusReport:
    rows = []
    for st in stations:
        snap = st.snapshot()
        rows.append(StationStatus(
            name=st.name,
            customer_ids=[c.cid for c in snap],
            display_wait_minutes=st.policy.display_wait(c.service_minutes for c in snap),
            capacity_label=st.policy.label(),
        ))
    total = sum(r.display_wait_minutes for r in rows)
    for r in rows:
        r.occupancy_pct = occupancy_pct(r.display_wait_minutes, total)
    return StatusReport(round_no, elapsed_minutes, rows, unassigned, next_quickest, dict(assigned or {}))

class Metrics:
    def __init__(self, names: Sequence[str] = ()):
        self._lock = threading.Lock()
        self.names = list(names)
        self.rounds = 0
        self.arrivals = 0
        self.served = defaultdict(int)        # customers finished per station
        self.assigned = defaultdict(int)      # placements per station (all phases)
        self.fallback_assigned = defaultdict(int)
        self.unassigned_total = 0             # leftovers summed over rounds
        self.unassigned_last = 0
        self.queue_lengths: List[Dict[str, int]] = []   # one snapshot per round

    def note_arrivals(self, n: int):
        with self._lock:
            self.arrivals += n

    def note_served(self, station: str, customer=None):
        with self._lock:
            self.served[station] += 1

    def note_assignment(self, station: str, fallback: bool = False):
        with self._lock:
            self.assigned[station] += 1
            if fallback:
                self.fallback_assigned[station] += 1

    def note_round(self, stations: Sequence[Station], unassigned: int):
        with self._lock:
            self.rounds += 1
            self.unassigned_total += unassigned
            self.unassigned_last = unassigned
            self.queue_lengths.append({s.name: len(s) for s in stations})

    def mean_queue_lengths(self) -> Dict[str, float]:
        with self._lock:
            if not self.queue_lengths:
                return {n: 0.0 for n in self.names}
            k = len(self.queue_lengths)
            return {n: sum(row.get(n, 0) for row in self.queue_lengths) / k for n in self.names}

    def summary(self, tracker: Optional[EfficiencyTracker] = None) -> Dict:
        mean_q = self.mean_queue_lengths()
        with self._lock:
            out = {
                "rounds": self.rounds,
                "arrivals": self.arrivals,
                "served": {n: self.served.get(n, 0) for n in self.names},
                "assigned": {n: self.assigned.get(n, 0) for n in self.names},
                "fallback_assigned": {n: self.fallback_assigned.get(n, 0) for n in self.names},
                "unassigned_total": self.unassigned_total,
                "unassigned_last": self.unassigned_last,
                "mean_queue_length": mean_q,
                "queue_length_series": [dict(r) for r in self.queue_lengths],
            }
        if tracker is not None:
            out["selection_counts"] = tracker.counts()
            resp = EfficiencyResponse.from_tracker(tracker)
            out["most_efficient"] = None if resp.no_selection else resp.name
        return out
