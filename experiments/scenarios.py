"""
experiments/scenarios.py

Holds scenario definitions (station layouts and service settings) to sweep
during experiments. Add capacity levels, station mixes, and service flags here.
"""

from __future__ import annotations

BASELINE = {
    "name": "baseline",
    "overrides": {},  # override config keys here per scenario
}

TIGHT_CAPACITY = {
    "name": "tight_capacity",
    "overrides": {
        "stations": [
            {"name": "SingleQueue", "role": "single_queue", "capacity": 5},
            {"name": "RoundRobinQueue", "role": "round_robin", "capacity": 5},
            {"name": "ShortestQueue", "role": "shortest_queue", "capacity": None},
            {"name": "RegularQ1", "role": "overflow", "capacity": None},
            {"name": "RegularQ2", "role": "overflow", "capacity": None},
        ],
    },
}

# Every station bounded: the only layout where customers can end up unassigned
ALL_BOUNDED = {
    "name": "all_bounded",
    "overrides": {
        "stations": [
            {"name": "SingleQueue", "role": "single_queue", "capacity": 15},
            {"name": "RoundRobinQueue", "role": "round_robin", "capacity": 5},
            {"name": "ShortestQueue", "role": "shortest_queue", "capacity": 10},
            {"name": "RegularQ1", "role": "overflow", "capacity": 10},
            {"name": "RegularQ2", "role": "overflow", "capacity": 10},
        ],
    },
}

EXTRA_OVERFLOW = {
    "name": "extra_overflow",
    "overrides": {
        "stations": [
            {"name": "SingleQueue", "role": "single_queue", "capacity": 15},
            {"name": "RoundRobinQueue", "role": "round_robin", "capacity": 5},
            {"name": "ShortestQueue", "role": "shortest_queue", "capacity": None},
            {"name": "RegularQ1", "role": "overflow", "capacity": None},
            {"name": "RegularQ2", "role": "overflow", "capacity": None},
            {"name": "RegularQ3", "role": "overflow", "capacity": None},
        ],
    },
}

SLOW_SERVICE = {
    "name": "slow_service",
    "overrides": {
        "processing": {"per_round": 1},
        "sim": {"minutes_per_customer": 1},
        "service": {"average_minutes": 8, "duration_range": [3, 12]},
    },
}

SCENARIOS = [BASELINE, TIGHT_CAPACITY, ALL_BOUNDED, EXTRA_OVERFLOW, SLOW_SERVICE]
