# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Generate exogenous arrivals: random time-of-day stamps, round lengths,
#   service durations, and batches of sequentially numbered customers.
#
# Design notes:
#   - All randomness flows through a RandomSource so tests can swap in a
#     scripted sequence; SeededRandomSource wraps random.Random(seed).
#   - Batch size follows elapsed time: one customer per `minutes_per_customer`
#     simulated minutes, rounded up.
#
# Usage:
#   rng = SeededRandomSource(cfg["sim"]["seed"])
#   factory = CustomerFactory(rng, cfg)
#   batch = factory.make_batch(batch_size_for(round_minutes, 2), elapsed)
# -----------------------------------------------------------------------------

from __future__ import annotations
import math, random
from typing import List, Optional, Protocol, Sequence, Tuple, TypeVar
from .entities import Customer, TimeOfDay

T = TypeVar("T")

class RandomSource(Protocol):
    """Uniform integer draws plus a uniform pick from a sequence."""

    def randint(self, lo: int, hi: int) -> int: ...

    def choice(self, seq: Sequence[T]) -> T: ...

class SeededRandomSource:
    """RandomSource backed by a private random.Random instance."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def randint(self, lo: int, hi: int) -> int:
        return self._rng.randint(lo, hi)

    def choice(self, seq):
        return self._rng.choice(seq)

def draw(rng: RandomSource, bounds: Tuple[int, int]) -> int:
    # inclusive [lo, hi] range lookup from config pairs
    lo, hi = bounds
    return rng.randint(int(lo), int(hi))

def random_time_of_day(rng: RandomSource) -> TimeOfDay:
    return TimeOfDay(rng.randint(0, 23), rng.randint(0, 59), rng.randint(0, 59))

def batch_size_for(round_minutes: int, minutes_per_customer: float) -> int:
    """Customers arriving during a round: ceil(round_minutes / minutes_per_customer)."""
    if round_minutes <= 0:
        return 0
    return int(math.ceil(round_minutes / float(minutes_per_customer)))

class CustomerFactory:
    """
    Manufacture customers with sequential identifiers.

    Parameters
    ----------
    rng : RandomSource
        Source for service durations.
    cfg : dict
        Parsed config; reads service.duration_range and
        service.display_wait_minutes.
    opened_at : TimeOfDay
        Time of day at which simulated minute 0 happens; arrivals are stamped
        relative to it.
    """
    def __init__(self, rng: RandomSource, cfg: dict, opened_at: Optional[TimeOfDay] = None):
        svc = cfg["service"]
        self.rng = rng
        self.duration_range = tuple(svc["duration_range"])
        self.display_wait = int(svc["display_wait_minutes"])
        self.opened_at = opened_at if opened_at is not None else TimeOfDay(0, 0, 0)
        self._next_id = 1

    @property
    def issued(self) -> int:
        return self._next_id - 1

    def make_customer(self, elapsed_minutes: int = 0) -> Customer:
        cust = Customer(
            cid=self._next_id,
            arrival=self.opened_at.plus_minutes(elapsed_minutes),
            service_minutes=draw(self.rng, self.duration_range),
            waiting_minutes=self.display_wait,
        )
        self._next_id += 1
        return cust

    def make_batch(self, size: int, elapsed_minutes: int = 0) -> List[Customer]:
        return [self.make_customer(elapsed_minutes) for _ in range(size)]
