"""Shared fixtures: configs, scripted random sources, and station builders."""

from __future__ import annotations

import copy

import pytest

from svcsim.arrivals import CustomerFactory
from svcsim.config import DEFAULT_CONFIG, apply_overrides, validate
from svcsim.entities import Customer, TimeOfDay
from svcsim.metrics import EfficiencyTracker, Metrics
from svcsim.network import Router
from svcsim.stations import make_stations


class ScriptedRandom:
    """RandomSource returning queued integers, else the low bound; choice() takes the first item."""

    def __init__(self, ints=(), picks=()):
        self.ints = list(ints)
        self.picks = list(picks)
        self.choices_seen = []

    def randint(self, lo, hi):
        if self.ints:
            v = self.ints.pop(0)
            assert lo <= v <= hi, f"scripted {v} outside [{lo}, {hi}]"
            return v
        return lo

    def choice(self, seq):
        self.choices_seen.append([getattr(s, "name", s) for s in seq])
        idx = self.picks.pop(0) if self.picks else 0
        return seq[idx]


def layout(single=15, rr=5, shortest=None, r1=None, r2=None):
    return [
        {"name": "SingleQueue", "role": "single_queue", "capacity": single},
        {"name": "RoundRobinQueue", "role": "round_robin", "capacity": rr},
        {"name": "ShortestQueue", "role": "shortest_queue", "capacity": shortest},
        {"name": "RegularQ1", "role": "overflow", "capacity": r1},
        {"name": "RegularQ2", "role": "overflow", "capacity": r2},
    ]


def make_cfg(**overrides):
    base = copy.deepcopy(DEFAULT_CONFIG)
    base = apply_overrides(base, {"sim": {"pacing_delay_seconds": 0.0}, "processing": {"mode": "per_round"}})
    return validate(apply_overrides(base, overrides))


def customers(n, start=1, service=3):
    return [Customer(cid=i, arrival=TimeOfDay(8, 0, 0), service_minutes=service) for i in range(start, start + n)]


def fill(station, n, start=1000, service=3):
    for c in customers(n, start=start, service=service):
        station.enqueue(c)


@pytest.fixture
def cfg():
    return make_cfg()


@pytest.fixture
def rng():
    return ScriptedRandom()


@pytest.fixture
def stations(cfg):
    return make_stations(cfg)


@pytest.fixture
def by_name(stations):
    return {s.name: s for s in stations}


@pytest.fixture
def tracker(stations):
    return EfficiencyTracker([s.name for s in stations])


@pytest.fixture
def router(cfg, stations, tracker, rng):
    return Router(cfg, stations, tracker, Metrics([s.name for s in stations]), rng)


@pytest.fixture
def factory(cfg, rng):
    return CustomerFactory(rng, cfg, opened_at=TimeOfDay(9, 0, 0))
