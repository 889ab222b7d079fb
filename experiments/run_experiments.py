"""
experiments/run_experiments.py

Experiment harness that loads the baseline config, applies scenario overrides,
runs multiple headless replications, and reports KPIs with confidence
intervals. Replications run in per-round processing mode with no pacing delay,
so a full sweep finishes in seconds.
"""

from __future__ import annotations
import copy, os, math
from typing import Callable, Dict, List, Optional
from statistics import mean, stdev
from scipy.stats import t
from experiments.scenarios import SCENARIOS
from svcsim.config import ROOT, apply_overrides, load_cfg, validate
from svcsim.simulation import run_headless

HEADLESS = {
    "sim": {"pacing_delay_seconds": 0.0},
    "processing": {"mode": "per_round"},
}

def mean_ci(values: List[float], confidence_level: float) -> tuple[float, float]:
    """Return (mean, half-width) using a t-distribution critical value."""
    if not values:
        return 0.0, 0.0
    mu = mean(values)
    n = len(values)
    if n < 2:
        return mu, 0.0
    level = min(max(confidence_level, 0.0), 0.999999)
    alpha = 1.0 - level
    tcrit = t.ppf(1 - alpha / 2.0, n - 1)
    half = tcrit * (stdev(values) / math.sqrt(n))
    return mu, half

def series(results: List[Dict], extractor: Callable[[Dict], float]) -> List[float]:
    """Collect a numeric series from each replication result."""
    return [float(extractor(res)) for res in results]

def avg_nested(results: List[Dict], key: str) -> Dict[str, float]:
    """Average nested dictionaries (e.g., selection_counts) across replications."""
    if not results:
        return {}
    totals: Dict[str, float] = {}
    for res in results:
        for subk, val in res.get(key, {}).items():
            totals[subk] = totals.get(subk, 0.0) + float(val)
    return {subk: totals[subk] / len(results) for subk in totals}

def mean_queue_by_round(results: List[Dict]) -> Dict[str, List[float]]:
    """Average queue length per station at each round index across replications."""
    by_station: Dict[str, List[List[float]]] = {}
    for res in results:
        for idx, row in enumerate(res.get("queue_length_series", [])):
            for name, n in row.items():
                cols = by_station.setdefault(name, [])
                while len(cols) <= idx:
                    cols.append([])
                cols[idx].append(float(n))
    return {name: [mean(c) for c in cols if c] for name, cols in by_station.items()}

def run_scenario(cfg: Dict, sc: Dict, replications: int, base_seed: int,
                 max_rounds: Optional[int]) -> List[Dict]:
    sc_cfg = validate(apply_overrides(apply_overrides(cfg, sc["overrides"]), HEADLESS))
    results = []
    for rep in range(replications):
        run_cfg = copy.deepcopy(sc_cfg)
        run_cfg["sim"]["seed"] = base_seed + rep
        results.append(run_headless(run_cfg, max_rounds=max_rounds))
    return results

def run_crn(cfg: Dict, sc_a: Dict, sc_b: Dict, replications: int, base_seed: int,
            confidence: float, max_rounds: Optional[int]):
    """
    Common-random-number comparison of total unassigned customers between two
    scenarios: same seed per replication, paired differences, CI of the mean.
    """
    res_a = run_scenario(cfg, sc_a, replications, base_seed, max_rounds)
    res_b = run_scenario(cfg, sc_b, replications, base_seed, max_rounds)
    diffs = [b["unassigned_total"] - a["unassigned_total"] for a, b in zip(res_a, res_b)]
    mu, half = mean_ci(diffs, confidence)
    print(f"\nCRN comparison: {sc_b['name']} - {sc_a['name']} (unassigned customers, {replications} seeds)")
    for idx, d in enumerate(diffs):
        print(f"    seed {base_seed + idx:4d}: {d:+.0f}")
    print(f"  {confidence*100:.1f}% CI of mean diff: {mu - half:.2f} to {mu + half:.2f}")

def plot_queue_lengths(curves: Dict[str, List[float]], scenario_name: str):
    """Persist a PNG plot of mean queue length per station versus round."""
    if not curves:
        return None
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    plt.figure(figsize=(9, 5))
    for name, ys in curves.items():
        plt.plot(range(1, len(ys) + 1), ys, linewidth=1.5, label=name)
    plt.xlabel("Round")
    plt.ylabel("Mean queue length")
    plt.title(f"{scenario_name}: queue length by round")
    plt.grid(True, linestyle="--", alpha=0.4)
    plt.legend()
    out_dir = os.path.join(ROOT, "experiments", "output")
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, f"{scenario_name.lower().replace(' ', '_')}_queue_lengths.png")
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path

def main():
    """Entry point: drive all scenarios, replications, and report KPIs."""
    cfg = load_cfg()
    exp_cfg = cfg.get("experiments", {})
    replications = max(1, int(exp_cfg.get("replications", 1)))
    confidence = float(exp_cfg.get("confidence", 0.95))
    max_rounds = exp_cfg.get("max_rounds")
    base_seed = cfg["sim"].get("seed") or 0

    for sc in SCENARIOS:
        results = run_scenario(cfg, sc, replications, base_seed, max_rounds)
        unassigned = mean_ci(series(results, lambda r: r["unassigned_total"]), confidence)
        rounds = mean_ci(series(results, lambda r: r["rounds"]), confidence)
        arrivals = mean_ci(series(results, lambda r: r["arrivals"]), confidence)
        served = mean_ci(series(results, lambda r: sum(r["served"].values())), confidence)
        winners: Dict[str, int] = {}
        for r in results:
            if r.get("most_efficient"):
                winners[r["most_efficient"]] = winners.get(r["most_efficient"], 0) + 1
        print(f"Scenario: {sc['name']} (replications={replications}, {confidence*100:.1f}% CI, "
              f"seeds {base_seed}-{base_seed + replications - 1})")
        print(f"  Rounds/run: {rounds[0]:.1f} ± {rounds[1]:.1f}")
        print(f"  Arrivals/run: {arrivals[0]:.1f} ± {arrivals[1]:.1f}")
        print(f"  Served/run: {served[0]:.1f} ± {served[1]:.1f}")
        print(f"  Unassigned/run: {unassigned[0]:.2f} ± {unassigned[1]:.2f}")
        print(f"  Mean selection counts: { {k: round(v, 1) for k, v in avg_nested(results, 'selection_counts').items()} }")
        print(f"  Mean queue length: { {k: round(v, 2) for k, v in avg_nested(results, 'mean_queue_length').items()} }")
        print(f"  Most efficient station (runs won): {winners}")
        if exp_cfg.get("plots", True):
            path = plot_queue_lengths(mean_queue_by_round(results), sc["name"])
            if path:
                print(f"  Queue length plot saved to: {path}")
        print("-")

    sc_index = {s["name"]: s for s in SCENARIOS}
    for pair in exp_cfg.get("crn_compare", []) or []:
        if len(pair) != 2:
            print(f"[warn] skipping CRN entry (needs 2 names): {pair}")
            continue
        sc_a, sc_b = sc_index.get(pair[0]), sc_index.get(pair[1])
        if sc_a and sc_b:
            run_crn(cfg, sc_a, sc_b, replications, base_seed, confidence, max_rounds)
        else:
            print(f"[warn] CRN pair not found: {pair}")

if __name__ == "__main__":
    main()
