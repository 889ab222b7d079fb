# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# __main__.py
# -----------------------------------------------------------------------------
# Purpose:
#   Console entry point: parse flags, load the config, then alternate between
#   prompting for a control signal and printing the resulting report.
#
# Usage:
#   python -m svcsim --config config/baseline.yaml --seed 7
# -----------------------------------------------------------------------------

"""
Interactive console run.

    python -m svcsim [--config PATH] [--seed N] [--mode threaded|per_round]

Each prompt accepts: 0 to stop, 1 to show the most efficient station,
anything else to run another round.
"""

from __future__ import annotations
import argparse, logging, sys
from typing import List, Optional
from .config import apply_overrides, load_cfg, validate
from .errors import ConfigError
from .metrics import EfficiencyResponse
from .report import render_efficiency, render_next_quickest, render_starting_info, render_status
from .simulation import ControlSignal, Simulation

PROMPT = ("\nPress any key to continue simulation, type 0 to exit, "
          "or type 1 to display the most efficient service station:")

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="svcsim", description="Multi-station customer service simulation")
    p.add_argument("--config", help="YAML config (defaults to config/baseline.yaml)")
    p.add_argument("--seed", type=int, help="override sim.seed")
    p.add_argument("--mode", choices=["threaded", "per_round"], help="override processing.mode")
    p.add_argument("--pacing", type=float, help="override sim.pacing_delay_seconds")
    p.add_argument("--log-level", default="WARNING")
    return p.parse_args(argv)

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    try:
        cfg = load_cfg(args.config)
    except ConfigError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2
    overrides = {"sim": {}, "processing": {}}
    if args.seed is not None:
        overrides["sim"]["seed"] = args.seed
    if args.pacing is not None:
        overrides["sim"]["pacing_delay_seconds"] = args.pacing
    if args.mode:
        overrides["processing"]["mode"] = args.mode
    cfg = validate(apply_overrides(cfg, overrides))

    with Simulation(cfg) as sim:
        print(render_starting_info(sim.start()))
        while not sim.stopped:
            print(PROMPT)
            try:
                line = input()
            except (EOFError, KeyboardInterrupt):
                break
            signal = ControlSignal.parse(line)
            if signal is ControlSignal.CONTINUE:
                print(render_next_quickest(sim.next_quickest()))
            out = sim.step(signal)
            if isinstance(out, EfficiencyResponse):
                print(render_efficiency(out))
            elif out is not None:
                print(render_status(out))
                if sim.stopped:
                    print(f"\nSimulated time reached {sim.state.elapsed_minutes} minutes.")
    return 0

if __name__ == "__main__":
    sys.exit(main())
