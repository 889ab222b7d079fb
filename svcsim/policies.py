# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# policies.py
# -----------------------------------------------------------------------------
# Purpose:
#   Routing decisions for new customers: which stations are available, which
#   one is the "next quickest", and which ones form the fallback pool.
#
# Design notes:
#   - Keep pure functions to ease testing (stations -> decision). Nothing in
#     here mutates a queue or the efficiency tracker; network.Router does.
#   - Ties in the primary path go to the first station in list order so runs
#     are reproducible; only the last fallback stage breaks ties at random.
#
# Usage:
#   from svcsim.policies import select_destination
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import List, Optional, Sequence, Tuple
from .errors import NoStationAvailable
from .queues import Station
from .stations import StationRole

DEFAULT_AVERAGE_MINUTES = 5.0
DEFAULT_EMPTY_WAIT_MINUTES = 5.0

def availability_set(stations: Sequence[Station]) -> List[Station]:
    """Stations that can take one more customer under their admission rule."""
    return [s for s in stations if s.admits()]

def estimated_wait(station: Station, average_minutes: float = DEFAULT_AVERAGE_MINUTES,
                   empty_wait_minutes: float = DEFAULT_EMPTY_WAIT_MINUTES) -> float:
    return station.policy.estimate(len(station), average_minutes, empty_wait_minutes)

def select_destination(stations: Sequence[Station],
                       average_minutes: float = DEFAULT_AVERAGE_MINUTES,
                       empty_wait_minutes: float = DEFAULT_EMPTY_WAIT_MINUTES) -> Station:
    """
    Pick the station a new customer should join.

    1. Restrict to available stations (raise NoStationAvailable if none).
    2. The shortest-queue station wins whenever it is tied for the minimum
       queue length among available stations.
    3. Otherwise the lowest estimated wait wins; first in list order on ties.
    """
    available = availability_set(stations)
    if not available:
        raise NoStationAvailable("no station can accept a customer")
    sizes = [(s, len(s)) for s in available]
    min_size = min(n for _, n in sizes)
    for s, n in sizes:
        if s.role is StationRole.SHORTEST_QUEUE and n == min_size:
            return s
    best, best_est = None, None
    for s, n in sizes:
        est = s.policy.estimate(n, average_minutes, empty_wait_minutes)
        if best_est is None or est < best_est:
            best, best_est = s, est
    return best

def next_quickest(stations: Sequence[Station],
                  average_minutes: float = DEFAULT_AVERAGE_MINUTES,
                  empty_wait_minutes: float = DEFAULT_EMPTY_WAIT_MINUTES) -> Optional[Tuple[Station, float]]:
    """Display helper: (station, estimate) or None when nothing is available."""
    try:
        best = select_destination(stations, average_minutes, empty_wait_minutes)
    except NoStationAvailable:
        return None
    return best, estimated_wait(best, average_minutes, empty_wait_minutes)

def fallback_pool(stations: Sequence[Station]) -> List[Station]:
    """
    Stations tied at the global minimum queue length among those that still
    pass admission. Capacity and the round rule are both re-applied, so a
    full station or a round-robin station mid-round never lands in the pool.
    """
    open_ = availability_set(stations)
    if not open_:
        return []
    sizes = [(s, len(s)) for s in open_]
    min_size = min(n for _, n in sizes)
    return [s for s, n in sizes if n == min_size]
