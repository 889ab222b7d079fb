# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# entities.py
# -----------------------------------------------------------------------------
# Purpose:
#   Entity definitions for the service-station simulation: TimeOfDay and
#   Customer. These records carry the attributes needed for routing and for
#   the waiting-time figures shown in status reports.
#
# Design notes:
#   - Customers are frozen; once drawn, the service duration never changes.
#   - TimeOfDay wraps at 24h so arrival stamps stay printable as HH:MM:SS.
#
# Usage:
#   from svcsim.entities import Customer, TimeOfDay
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass

SECONDS_PER_DAY = 24 * 60 * 60

@dataclass(frozen=True)
class TimeOfDay:
    hours: int
    minutes: int
    seconds: int

    @classmethod
    def from_seconds(cls, total: int) -> "TimeOfDay":
        total %= SECONDS_PER_DAY
        h, rem = divmod(total, 3600)
        m, s = divmod(rem, 60)
        return cls(h, m, s)

    def to_seconds(self) -> int:
        return self.hours * 3600 + self.minutes * 60 + self.seconds

    def plus_minutes(self, minutes: int) -> "TimeOfDay":
        return TimeOfDay.from_seconds(self.to_seconds() + minutes * 60)

    def __str__(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}"

@dataclass(frozen=True)
class Customer:
    cid: int                          # sequential, never reused within a run
    arrival: TimeOfDay
    service_minutes: int              # drawn once, 1..10 by default
    waiting_minutes: int = 5          # display constant shown at startup

    def __post_init__(self):
        if self.service_minutes <= 0:
            raise ValueError(f"service duration must be positive, got {self.service_minutes}")
