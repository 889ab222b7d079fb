# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# stations.py
# -----------------------------------------------------------------------------
# Purpose:
#   Station roles and their admission / estimation rules, plus the factory
#   that builds the fixed station list from config.
#
# Design notes:
#   - Policy branching is driven by StationRole, never by station name.
#   - StationPolicy is plain data plus small pure helpers, so the routing
#     code in policies.py can stay free of role-specific if/else chains.
#   - The order of the returned tuple is the tie-break order everywhere.
#
# Usage:
#   from svcsim.stations import make_stations, StationRole
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple
from .errors import ConfigError
from .queues import Station

class StationRole(Enum):
    SINGLE_QUEUE = "single_queue"
    ROUND_ROBIN = "round_robin"
    SHORTEST_QUEUE = "shortest_queue"
    OVERFLOW = "overflow"

    @classmethod
    def parse(cls, value) -> "StationRole":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigError(f"unknown station role: {value!r}") from None

@dataclass(frozen=True)
class StationPolicy:
    """
    Admission and waiting-time rules for one station.

    Attributes
    ----------
    role : StationRole
    capacity : int | None
        Maximum queue length; None means unbounded.
    round_based : bool
        Admit new customers only when the queue is empty (a new round). Only
        the fallback cascade may fill a round past its first customer.
    display_max : bool
        Report the largest queued service duration instead of the sum.
    """
    role: StationRole
    capacity: Optional[int] = None
    round_based: bool = False
    display_max: bool = False

    @classmethod
    def for_role(cls, role: StationRole, capacity: Optional[int] = None) -> "StationPolicy":
        if capacity is not None and capacity < 0:
            raise ConfigError(f"capacity must be >= 0, got {capacity}")
        rr = role is StationRole.ROUND_ROBIN
        return cls(role=role, capacity=capacity, round_based=rr, display_max=rr)

    @property
    def bounded(self) -> bool:
        return self.capacity is not None

    def has_room(self, size: int) -> bool:
        return self.capacity is None or size < self.capacity

    def admits(self, size: int) -> bool:
        """Can one more customer join a queue currently holding `size`?"""
        if self.round_based and size > 0:
            return False
        return self.has_room(size)

    def estimate(self, size: int, average_minutes: float, empty_wait_minutes: float) -> float:
        # bounded + empty -> fixed minimum wait; else linear in queue length
        if self.bounded and size == 0:
            return float(empty_wait_minutes)
        return size * float(average_minutes)

    def display_wait(self, durations: Iterable[int]) -> int:
        durations = list(durations)
        if self.display_max:
            return max(durations, default=0)
        return sum(durations)

    def label(self) -> str:
        if self.capacity is None:
            return "unbounded"
        return f"capacity {self.capacity}"

def make_stations(cfg: dict) -> Tuple[Station, ...]:
    """
    Create the fixed station list from config.

    Parameters
    ----------
    cfg : dict
        Parsed config with a 'stations' list of {name, role, capacity}.

    Returns
    -------
    tuple[Station, ...]
        Stations in configured order (this order breaks ties).
    """
    S = []
    seen = set()
    for entry in cfg["stations"]:
        name = entry["name"]
        if name in seen:
            raise ConfigError(f"duplicate station name: {name}")
        seen.add(name)
        role = StationRole.parse(entry.get("role", "overflow"))
        cap = entry.get("capacity")
        S.append(Station(name, StationPolicy.for_role(role, None if cap is None else int(cap))))
    if sum(1 for s in S if s.role is StationRole.SHORTEST_QUEUE) > 1:
        raise ConfigError("at most one shortest_queue station is allowed")
    return tuple(S)

def find_role(stations: Iterable[Station], role: StationRole) -> Optional[Station]:
    for s in stations:
        if s.role is role:
            return s
    return None
