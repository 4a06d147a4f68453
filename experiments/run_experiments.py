"""
experiments/run_experiments.py

Experiment harness that loads the baseline config, applies scenario overrides,
runs independent replications of an example system (optionally in parallel
worker processes), and reports KPIs with confidence intervals. The `sweep`
mode walks one parameter over a grid, prints a CSV table and saves a plot.

    python -m experiments.run_experiments grocery
    python -m experiments.run_experiments portapotty --sweep --plot --workers 4
"""

from __future__ import annotations
import argparse, copy, logging, math, os
from concurrent.futures import ProcessPoolExecutor
from statistics import mean, stdev
from typing import Callable, Dict, List, Optional

import yaml
from scipy.stats import t

import qsim
from . import bloodbank, grocery, portapotty, utilization
from .scenarios import SCENARIOS, SWEEPS

# package data, so it is found from an installed copy too
DEFAULT_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), "baseline.yaml")

log = logging.getLogger(__name__)

SYSTEMS: Dict[str, Callable[[Dict], Dict]] = {
    "grocery": grocery.run_one,
    "portapotty": portapotty.run_one,
    "bloodbank": bloodbank.run_one,
    "utilization": utilization.run_one,
}


def load_cfg(path: str = DEFAULT_CONFIG) -> Dict:
    with open(path, "r") as f:
        return yaml.safe_load(f)


def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """Apply scenario overrides (recursive merge) on top of the base config."""
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides)
    return new


def find_scenario(system: str, name: str) -> Dict:
    for sc in SCENARIOS.get(system, []):
        if sc["name"] == name:
            return sc
    raise KeyError(f"unknown scenario {name!r} for system {system!r}")


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
    """Average nested dictionaries (e.g., age_counts) across replications."""
    if not results:
        return {}
    totals: Dict[str, float] = {}
    for res in results:
        nested = res.get(key, {})
        for subk, val in nested.items():
            totals[subk] = totals.get(subk, 0.0) + float(val)
    return {subk: totals[subk] / len(results) for subk in totals}


def replicate_cfgs(cfg: Dict, replications: int) -> List[Dict]:
    """One config per replication; seeds advance from the configured seed."""
    base_seed = cfg.get("sim", {}).get("seed", 0)
    cfgs = []
    for rep in range(replications):
        rep_cfg = copy.deepcopy(cfg)
        rep_cfg.setdefault("sim", {})["seed"] = base_seed + rep
        cfgs.append(rep_cfg)
    return cfgs


def run_replications(run_fn: Callable[[Dict], Dict], cfg: Dict, replications: int, workers: int = 1) -> List[Dict]:
    """
    Run independent replications. Each replication is a separate kernel
    instance with its own seed, so they can run in separate processes.
    """
    cfgs = replicate_cfgs(cfg, replications)
    if workers > 1:
        with ProcessPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(run_fn, cfgs))
    return [run_fn(c) for c in cfgs]


def summarize(results: List[Dict], confidence: float) -> Dict[str, tuple[float, float]]:
    """Mean and CI half-width for every numeric KPI shared by the results."""
    if not results:
        return {}
    out: Dict[str, tuple[float, float]] = {}
    for key, val in results[0].items():
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            continue
        out[key] = mean_ci(series(results, lambda r: r.get(key, 0.0)), confidence)
    return out


def report(system: str, scenario: str, results: List[Dict], confidence: float):
    print(f"System: {system} / scenario: {scenario} (replications={len(results)}, {confidence * 100:.1f}% CI)")
    for key, (mu, half) in summarize(results, confidence).items():
        print(f"  {key}: {mu:,.4f} ± {half:,.4f}")
    for key, val in results[0].items() if results else ():
        if isinstance(val, dict):
            nested = {k: round(v, 2) for k, v in avg_nested(results, key).items()}
            print(f"  {key} (mean): {nested}")
    print("-")


def run_sweep(system: str, cfg: Dict, replications: int, workers: int, confidence: float) -> List[Dict]:
    """Run the configured parameter sweep; returns one row per grid point."""
    sweep = SWEEPS[system]
    run_fn = SYSTEMS[system]
    rows = []
    print(",".join([sweep["param"]] + sweep["metrics"]))
    for value in sweep["values"]:
        point_cfg = apply_overrides(cfg, {sweep["section"]: {sweep["param"]: value}})
        results = run_replications(run_fn, point_cfg, replications, workers)
        stats = summarize(results, confidence)
        row = {"value": value}
        for metric in sweep["metrics"]:
            row[metric] = stats.get(metric, (0.0, 0.0))
        rows.append(row)
        print(",".join([str(value)] + [f"{row[m][0]:.3f}" for m in sweep["metrics"]]))
    return rows


def plot_sweep(system: str, rows: List[Dict], out_dir: str) -> Optional[str]:
    """
    Persist a PNG with one line (and CI band) per swept metric against the
    swept parameter.
    """
    if not rows:
        return None
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    sweep = SWEEPS[system]
    x = [row["value"] for row in rows]
    fig, axes = plt.subplots(len(sweep["metrics"]), 1, figsize=(9, 3 * len(sweep["metrics"])), sharex=True, squeeze=False)
    for ax, metric in zip(axes[:, 0], sweep["metrics"]):
        mu = [row[metric][0] for row in rows]
        half = [row[metric][1] for row in rows]
        ax.plot(x, mu, marker="o", color="#2563eb", label=metric)
        ax.fill_between(x, [m - h for m, h in zip(mu, half)], [m + h for m, h in zip(mu, half)],
                        color="#2563eb", alpha=0.2)
        ax.set_ylabel(metric)
        ax.grid(True, linestyle="--", alpha=0.4)
    axes[-1, 0].set_xlabel(sweep["param"])
    fig.suptitle(f"{system}: sweep over {sweep['param']}")
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, f"{system}_{sweep['param']}_sweep.png")
    fig.tight_layout()
    fig.savefig(out_path, dpi=160)
    plt.close(fig)
    return out_path


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Run replicated queueing experiments on the example systems.")
    ap.add_argument("system", choices=sorted(SYSTEMS))
    ap.add_argument("--scenario", default=None, help="scenario name from experiments/scenarios.py (default: all)")
    ap.add_argument("--config", default=DEFAULT_CONFIG)
    ap.add_argument("--replications", type=int, default=None)
    ap.add_argument("--workers", type=int, default=None)
    ap.add_argument("--sweep", action="store_true", help="run the parameter sweep for this system")
    ap.add_argument("--plot", action="store_true", help="save a PNG of the sweep")
    ap.add_argument("--debug", action="store_true", help="trace kernel events (very verbose)")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Entry point: drive scenarios or a sweep for one system and report KPIs."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")
    qsim.set_debug(args.debug)

    cfg = load_cfg(args.config)
    exp_cfg = cfg.get("experiments", {})
    replications = max(1, int(args.replications or exp_cfg.get("replications", 1)))
    workers = max(1, int(args.workers or exp_cfg.get("workers", 1)))
    confidence = float(exp_cfg.get("confidence_level", 0.95))
    # relative output paths resolve against the working directory
    out_dir = os.path.abspath(exp_cfg.get("output_dir", os.path.join("experiments", "output")))

    if args.sweep:
        if args.system not in SWEEPS:
            raise SystemExit(f"no sweep defined for {args.system}")
        rows = run_sweep(args.system, cfg, replications, workers, confidence)
        if args.plot:
            path = plot_sweep(args.system, rows, out_dir)
            if path:
                print(f"Sweep plot saved to: {path}")
        return

    scenarios = [find_scenario(args.system, args.scenario)] if args.scenario else SCENARIOS[args.system]
    for sc in scenarios:
        sc_cfg = apply_overrides(cfg, sc["overrides"])
        log.info("running %s/%s: %d replications on %d worker(s)", args.system, sc["name"], replications, workers)
        results = run_replications(SYSTEMS[args.system], sc_cfg, replications, workers)
        report(args.system, sc["name"], results, confidence)


if __name__ == "__main__":
    main()
