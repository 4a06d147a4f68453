# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# utilization.py
# -----------------------------------------------------------------------------
# Purpose:
#   A single M/M/1 server used to show how queue length explodes as
#   utilization approaches 1. Sweep arrival_interval to draw the curve.
#
# Design notes:
#   - Ticks are milliseconds; service times are exponential.
#   - Idle time and queue length are both time-weighted.
#
# Usage:
#   from experiments.utilization import run_one
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Dict

from qsim import (
    OneToOneFIFODiscipline, PoissonArrProc, Processor, Queue,
    ShortestQueueArrBeh, System, run_simulation,
)
from qsim.metrics import TimeWeightedStat


class UtilizationSystem(System):
    def __init__(self, arrival_interval: float = 1500.0, service_mean: float = 1000.0, seed=None):
        self.arrival_interval = arrival_interval
        self.service_mean = service_mean
        self.seed = seed
        self.idle = TimeWeightedStat()
        self.queue_len = TimeWeightedStat()

    def init(self):
        self.rng = random.Random(self.seed)
        self.queue = Queue()
        self.server = Processor(lambda job: int(self.rng.expovariate(1.0 / self.service_mean)))
        self._arr_proc = PoissonArrProc(self.arrival_interval, rng=self.rng)
        self._arr_beh = ShortestQueueArrBeh([self.queue], [self.server], self._arr_proc, rng=self.rng)
        OneToOneFIFODiscipline([self.queue], [self.server])

    def arr_proc(self):
        return self._arr_proc

    def arr_beh(self):
        return self._arr_beh

    def processors(self):
        return [self.server]

    def before_events(self, clock: int):
        self.idle.observe(clock, 1 if self.server.is_idle() else 0)
        self.queue_len.observe(clock, len(self.queue))

    def summary(self, final_tick: int) -> Dict[str, float]:
        return {
            "final_tick": final_tick,
            "arrival_interval": self.arrival_interval,
            "utilization": 1.0 - self.idle.mean(final_tick),
            "avg_queue": self.queue_len.mean(final_tick),
        }


def build(cfg: Dict) -> UtilizationSystem:
    u = cfg.get("utilization", {})
    return UtilizationSystem(
        arrival_interval=float(u.get("arrival_interval", 1500.0)),
        service_mean=float(u.get("service_mean", 1000.0)),
        seed=cfg.get("sim", {}).get("seed", 0),
    )


def run_one(cfg: Dict) -> Dict:
    system = build(cfg)
    final_tick = run_simulation(system, int(cfg.get("utilization", {}).get("horizon_ticks", 86400 * 1000)))
    return system.summary(final_tick)
