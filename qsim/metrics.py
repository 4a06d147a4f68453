# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   Small statistics accumulators for System callbacks: time-weighted
#   averages of a state variable and time-in-system of finished jobs.
#
# Design notes:
#   - TimeWeightedStat is meant to be fed from before_events(clock): the value
#     observed there is the state that held since the previous event tick.
#   - Summaries are plain numbers/dicts so replicates can be aggregated by
#     experiments/run_experiments.py.
#
# Usage:
#   occ = TimeWeightedStat(); occ.observe(clock, n_in_system)
#   soj = SojournStats(); soj.record(job, clock)
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from typing import Dict, List, Sequence


class TimeWeightedStat:
    """Integral of a piecewise-constant quantity over the simulated clock."""
    def __init__(self, start: int = 0):
        self.start = start
        self.last_clock = start
        self.total = 0
        self.maximum = 0

    def observe(self, clock: int, value: int):
        """Accumulate value over (last_clock, clock]; value held since last_clock."""
        dt = clock - self.last_clock
        if dt > 0:
            self.total += value * dt
        if value > self.maximum:
            self.maximum = value
        self.last_clock = clock

    def mean(self, until: int | None = None) -> float:
        end = self.last_clock if until is None else until
        span = end - self.start
        return self.total / span if span > 0 else 0.0


class SojournStats:
    """Time spent in the system by finished jobs, in ticks."""
    def __init__(self, keep_samples: bool = False):
        self.count = 0
        self.total = 0
        self.keep_samples = keep_samples
        self.samples: List[int] = []

    def record(self, job, clock: int) -> int:
        sojourn = clock - job.arr_time
        self.count += 1
        self.total += sojourn
        if self.keep_samples:
            self.samples.append(sojourn)
        return sojourn

    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0

    def summary(self) -> Dict[str, float]:
        return {"count": self.count, "total": self.total, "mean": self.mean()}


def percentile(values: Sequence[float], q: float) -> float:
    """Nearest-rank percentile, q in [0, 1]. Returns 0.0 for an empty sample."""
    if not values:
        return 0.0
    ordered = sorted(values)
    idx = int(math.ceil(q * len(ordered))) - 1
    idx = max(0, min(idx, len(ordered) - 1))
    return ordered[idx]
