# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# grocery.py
# -----------------------------------------------------------------------------
# Purpose:
#   A small grocery checkout: customers arrive by a Poisson process, join the
#   shortest line (or walk straight up to an empty register), and are checked
#   out in a normally distributed time.
#
# Design notes:
#   - Each tick is a millisecond so truncating continuous draws to integer
#     ticks costs almost nothing.
#   - Occupancy is sampled in before_events (state held since the previous
#     event tick) and time in system is accumulated in after_events, which
#     is what makes the Little's Law check in the tests hold on a single
#     sample path.
#
# Usage:
#   from experiments.grocery import run_one
#   summary = run_one(cfg)
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Dict, List

from qsim import (
    OneToOneFIFODiscipline, PoissonArrProc, Processor, Queue,
    ShortestQueueArrBeh, System, run_simulation,
)
from qsim.metrics import SojournStats, TimeWeightedStat


class GrocerySystem(System):
    def __init__(self, registers: int = 3, mean_interarrival: float = 30000.0,
                 service_mean: float = 60000.0, service_sd: float = 10000.0, seed=None):
        self.registers = registers
        self.mean_interarrival = mean_interarrival
        self.service_mean = service_mean
        self.service_sd = service_sd
        self.seed = seed

        self.arrivals = 0
        self.queued = TimeWeightedStat()      # customers waiting in line
        self.in_system = TimeWeightedStat()   # waiting + being checked out
        self.sojourn = SojournStats()
        self._finished: List = []

    def init(self):
        self.rng = random.Random(self.seed)
        # Checkout time ~ Normal(service_mean, service_sd), never negative
        def checkout_time(job):
            return max(0, int(self.rng.gauss(self.service_mean, self.service_sd)))

        self.queues = [Queue(queue_id=i) for i in range(self.registers)]
        self._processors = [Processor(checkout_time, processor_id=i) for i in range(self.registers)]
        for p in self._processors:
            p.after_finish.register(self._on_finish)

        self._arr_proc = PoissonArrProc(self.mean_interarrival, rng=self.rng)
        self._arr_proc.after_arrive.register(self._on_arrive)
        # Empty register -> go straight there; otherwise join the shortest line
        self._arr_beh = ShortestQueueArrBeh(self.queues, self._processors, self._arr_proc, rng=self.rng)
        # Customers stay in the line they joined; each line leads to one register
        OneToOneFIFODiscipline(self.queues, self._processors)

    def _on_arrive(self, ap, jobs, interval):
        self.arrivals += len(jobs)

    def _on_finish(self, proc, job):
        if job is not None:
            self._finished.append(job)

    def arr_proc(self):
        return self._arr_proc

    def arr_beh(self):
        return self._arr_beh

    def processors(self):
        return self._processors

    def n_queued(self) -> int:
        return sum(len(q) for q in self.queues)

    def occupancy(self) -> int:
        return self.n_queued() + sum(1 for p in self._processors if not p.is_idle())

    def before_events(self, clock: int):
        self.queued.observe(clock, self.n_queued())
        self.in_system.observe(clock, self.occupancy())

    def after_events(self, clock: int):
        for job in self._finished:
            self.sojourn.record(job, clock)
        self._finished.clear()

    def summary(self, final_tick: int) -> Dict[str, float]:
        arrival_rate = self.arrivals / final_tick if final_tick > 0 else 0.0
        avg_in_system = self.in_system.mean(final_tick)
        mean_sojourn = self.sojourn.mean()
        return {
            "final_tick": final_tick,
            "arrivals": self.arrivals,
            "checked_out": self.sojourn.count,
            "avg_queued": self.queued.mean(final_tick),
            "max_queued": self.queued.maximum,
            "avg_time_in_system_s": mean_sojourn / 1000.0,
            "arrival_rate_per_s": arrival_rate * 1000.0,
            "avg_in_system": avg_in_system,
            # Little's Law: lambda * W / L should be ~1
            "littles_law_ratio": (arrival_rate * mean_sojourn / avg_in_system) if avg_in_system else 0.0,
        }


def build(cfg: Dict) -> GrocerySystem:
    g = cfg.get("grocery", {})
    return GrocerySystem(
        registers=int(g.get("registers", 3)),
        mean_interarrival=float(g.get("mean_interarrival", 30000.0)),
        service_mean=float(g.get("service_mean", 60000.0)),
        service_sd=float(g.get("service_sd", 10000.0)),
        seed=cfg.get("sim", {}).get("seed", 0),
    )


def run_one(cfg: Dict) -> Dict:
    system = build(cfg)
    final_tick = run_simulation(system, int(cfg.get("grocery", {}).get("horizon_ticks", 86400 * 1000)))
    return system.summary(final_tick)
