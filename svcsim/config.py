# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# config.py
# -----------------------------------------------------------------------------
# Purpose:
#   Load the YAML configuration, fill gaps from DEFAULT_CONFIG, and apply
#   scenario overrides (recursive merge).
#
# Design notes:
#   - Config stays a plain nested dict; components read the sections they
#     need (cfg["sim"], cfg["service"], ...).
#   - Durations are simulated MINUTES; processing delays are wall-clock
#     SECONDS.
#
# Usage:
#   cfg = load_cfg("config/baseline.yaml")
#   cfg = apply_overrides(cfg, {"sim": {"seed": 7}})
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, os
from typing import Dict, Optional
import yaml
from .errors import ConfigError

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BASELINE_PATH = os.path.join(ROOT, "config", "baseline.yaml")

DEFAULT_CONFIG: Dict = {
    "sim": {
        "seed": None,
        "total_minutes": 480,            # one 8h shift of simulated time
        "round_minutes_range": [1, 15],
        "minutes_per_customer": 2,
        "initial_batch_range": [1, 15],
        "pacing_delay_seconds": 2.0,     # pause between suggestion and new batch
        "retry_unassigned": True,
    },
    "stations": [
        {"name": "SingleQueue", "role": "single_queue", "capacity": 15},
        {"name": "RoundRobinQueue", "role": "round_robin", "capacity": 5},
        {"name": "ShortestQueue", "role": "shortest_queue", "capacity": None},
        {"name": "RegularQ1", "role": "overflow", "capacity": None},
        {"name": "RegularQ2", "role": "overflow", "capacity": None},
    ],
    "service": {
        "average_minutes": 5,
        "empty_wait_minutes": 5,
        "duration_range": [1, 10],
        "display_wait_minutes": 5,
    },
    "processing": {
        "mode": "threaded",              # threaded | per_round
        "service_delay_seconds": 1.0,
        "idle_interval_seconds": 0.5,
        "per_round": 1,
    },
    "experiments": {
        "replications": 10,
        "confidence": 0.95,
        "max_rounds": None,
        "plots": True,
        "crn_compare": [],
    },
}

def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """
    Return a copy of `cfg` with `overrides` merged in.

    Nested sections merge key by key, so {"sim": {"seed": 3}} keeps the rest
    of `sim`. Anything else replaces the base value outright: a `stations`
    override is the complete new station list, not a patch of the default
    one, and a `None` capacity or range is taken as given. Neither input is
    modified.
    """
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides or {})
    return new

def load_cfg(path: Optional[str] = None) -> Dict:
    """
    Read a YAML config and merge it over DEFAULT_CONFIG.

    With no path, the bundled config/baseline.yaml is used when present,
    otherwise the defaults alone.
    """
    if path is None:
        path = BASELINE_PATH if os.path.exists(BASELINE_PATH) else None
    if path is None:
        return validate(copy.deepcopy(DEFAULT_CONFIG))
    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return validate(apply_overrides(DEFAULT_CONFIG, raw))

def _pair(cfg: Dict, section: str, key: str, minimum: int):
    val = cfg[section].get(key)
    if not isinstance(val, (list, tuple)) or len(val) != 2:
        raise ConfigError(f"{section}.{key} must be a [lo, hi] pair, got {val!r}")
    lo, hi = int(val[0]), int(val[1])
    if lo < minimum or hi < lo:
        raise ConfigError(f"{section}.{key} must satisfy {minimum} <= lo <= hi, got {val!r}")

def validate(cfg: Dict) -> Dict:
    for section in ("sim", "stations", "service", "processing"):
        if section not in cfg:
            raise ConfigError(f"missing config section: {section}")
    _pair(cfg, "sim", "round_minutes_range", 1)
    _pair(cfg, "sim", "initial_batch_range", 0)
    _pair(cfg, "service", "duration_range", 1)
    if float(cfg["sim"]["minutes_per_customer"]) <= 0:
        raise ConfigError("sim.minutes_per_customer must be positive")
    if not cfg["stations"]:
        raise ConfigError("at least one station is required")
    for entry in cfg["stations"]:
        if "name" not in entry:
            raise ConfigError(f"station entry without a name: {entry!r}")
    if cfg["processing"].get("mode") not in ("threaded", "per_round"):
        raise ConfigError(f"processing.mode must be threaded or per_round, got {cfg['processing'].get('mode')!r}")
    return cfg
