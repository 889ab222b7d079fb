# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# network.py
# -----------------------------------------------------------------------------
# Purpose:
#   Router and station wiring. Places each batch of new customers: first by
#   the next-quickest rule, then through the fallback cascade, and reports
#   whatever could not be placed.
#
# Design notes:
#   - Decisions come from policies.py; the router only applies them and
#     records what happened (efficiency tracker + metrics).
#   - Every insertion is preceded by an admission check, so Station.enqueue
#     never sees a full bounded station.
#
# Usage:
#   router = Router(cfg, stations, tracker, metrics, rng)
#   result = router.assign_batch(customers)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from .arrivals import RandomSource
from .entities import Customer
from .errors import NoStationAvailable
from .metrics import EfficiencyTracker, Metrics
from .queues import Station
from .stations import StationRole, find_role
from . import policies

log = logging.getLogger(__name__)

@dataclass
class AssignmentResult:
    placements: List[Tuple[int, str]] = field(default_factory=list)   # (customer id, station)
    unassigned: List[Customer] = field(default_factory=list)

    @property
    def assigned_count(self) -> int:
        return len(self.placements)

    @property
    def unassigned_count(self) -> int:
        return len(self.unassigned)

    def by_station(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for _, name in self.placements:
            out[name] = out.get(name, 0) + 1
        return out

class Router:
    def __init__(self, cfg: dict, stations: Sequence[Station], tracker: EfficiencyTracker,
                 metrics: Optional[Metrics], rng: RandomSource):
        svc = cfg.get("service", {})
        self.S = tuple(stations)
        self.tracker = tracker
        self.M = metrics
        self.rng = rng
        self.average_minutes = float(svc.get("average_minutes", policies.DEFAULT_AVERAGE_MINUTES))
        self.empty_wait_minutes = float(svc.get("empty_wait_minutes", policies.DEFAULT_EMPTY_WAIT_MINUTES))

    def select_destination(self) -> Station:
        return policies.select_destination(self.S, self.average_minutes, self.empty_wait_minutes)

    def peek_next_quickest(self) -> Optional[Tuple[Station, float]]:
        # Display only: nothing is recorded in the tracker
        return policies.next_quickest(self.S, self.average_minutes, self.empty_wait_minutes)

    def assign_batch(self, customers: Sequence[Customer]) -> AssignmentResult:
        """
        Place `customers` (front first) into station queues.

        Returns the placements made and the customers left over once every
        stage of the cascade has run out of room.
        """
        pending = list(customers)
        result = AssignmentResult()

        # Primary: next-quickest station, re-evaluated after every placement
        while pending:
            try:
                dest = self.select_destination()
            except NoStationAvailable:
                log.debug("primary routing exhausted with %d pending", len(pending))
                break
            self._place(dest, pending.pop(0), result)
            self.tracker.record(dest.name)

        if pending:
            self.apply_fallback(pending, result)

        result.unassigned = pending
        if pending:
            log.info("%d customer(s) left unassigned: every station is full", len(pending))
        return result

    def apply_fallback(self, pending: List[Customer], result: Optional[AssignmentResult] = None) -> AssignmentResult:
        """
        Run the fallback cascade on `pending` (consumed from the front, in
        place). Fallback placements are not counted as next-quickest picks.
        """
        if result is None:
            result = AssignmentResult()
        # a. start a new round-robin round if the previous one drained
        rr = find_role(self.S, StationRole.ROUND_ROBIN)
        if rr is not None and pending and len(rr) == 0:
            while pending and rr.has_room():
                self._place(rr, pending.pop(0), result, fallback=True)

        # b. top up the single queue to its capacity
        sq = find_role(self.S, StationRole.SINGLE_QUEUE)
        if sq is not None:
            while pending and sq.has_room():
                self._place(sq, pending.pop(0), result, fallback=True)

        # c. random pick among stations tied at the global minimum
        while pending:
            pool = policies.fallback_pool(self.S)
            if not pool:
                break
            self._place(self.rng.choice(pool), pending.pop(0), result, fallback=True)

        result.unassigned = pending
        return result

    def _place(self, station: Station, cust: Customer, result: AssignmentResult, fallback: bool = False):
        station.enqueue(cust)
        result.placements.append((cust.cid, station.name))
        if self.M is not None:
            self.M.note_assignment(station.name, fallback=fallback)
