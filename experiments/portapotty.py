# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# portapotty.py
# -----------------------------------------------------------------------------
# Purpose:
#   A line of porta-potties at a big concert. Does picking the short line with
#   the most men in it beat picking any short line at random?
#
# Design notes:
#   - Every unit has its own bounded queue; people who find every line full
#     leave (observed through after_append with job=None).
#   - Usage time is normal with a different mean per sex, so the processing
#     time generator reads job.str_attrs["sex"].
#   - Arrival hooks tag sex and use_strategy BEFORE the ArrBeh is built, so
#     the before_assign override sees the tags.
#   - Ticks are milliseconds.
#
# Usage:
#   from experiments.portapotty import run_one
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Dict, List, Optional

from qsim import (
    Assignment, OneToOneFIFODiscipline, PoissonArrProc, Processor, Queue,
    ShortestQueueArrBeh, System, run_simulation,
)
from qsim.metrics import SojournStats

SEXES = ("male", "female")


class PortaPottySystem(System):
    def __init__(self, p_strategy: float = 0.0, stats_start: int = 0, units: int = 15,
                 max_queue: int = 8, male_mean: float = 40000.0, female_mean: float = 60000.0,
                 sd: float = 5000.0, seed=None):
        self.p_strategy = p_strategy
        self.stats_start = stats_start
        self.units = units
        self.max_queue = max_queue
        self.male_mean = male_mean
        self.female_mean = female_mean
        self.sd = sd
        self.seed = seed

        self.strategizers = SojournStats()
        self.non_strategizers = SojournStats()
        self.balked = 0
        self.stats_started = False
        self._finished: List = []

    def init(self):
        self.rng = random.Random(self.seed)

        def usage_time(job):
            mean = self.male_mean if job.str_attrs.get("sex") == "male" else self.female_mean
            return max(0, int(self.rng.gauss(mean, self.sd)))

        self.queues = [Queue(queue_id=i, max_length=self.max_queue) for i in range(self.units)]
        self._processors = [Processor(usage_time, processor_id=i) for i in range(self.units)]
        for q in self.queues:
            q.after_append.register(self._on_append)
        for p in self._processors:
            p.after_finish.register(self._on_finish)

        # Mean interval = the fastest rate units can be vacated, so lines are usually long
        self._arr_proc = PoissonArrProc((self.male_mean + self.female_mean) / 2.0 / self.units, rng=self.rng)
        self._arr_proc.after_arrive.register(self._tag_sex)
        self._arr_proc.after_arrive.register(self._tag_strategy)

        self._arr_beh = ShortestQueueArrBeh(self.queues, self._processors, self._arr_proc, rng=self.rng)
        self._arr_beh.before_assign.register(self._strategy_override)
        OneToOneFIFODiscipline(self.queues, self._processors)

    def _tag_sex(self, ap, jobs, interval):
        for job in jobs:
            job.str_attrs["sex"] = self.rng.choice(SEXES)

    def _tag_strategy(self, ap, jobs, interval):
        for job in jobs:
            job.int_attrs["use_strategy"] = 1 if self.rng.random() < self.p_strategy else 0

    def _strategy_override(self, ab, job) -> Optional[Assignment]:
        if job.int_attrs.get("use_strategy") == 1:
            return self.strategic_assignment()
        return None

    def _on_append(self, q, job):
        if job is None and self.stats_started:
            self.balked += 1

    def _on_finish(self, proc, job):
        if job is not None and self.stats_started:
            self._finished.append(job)

    def strategic_assignment(self) -> Optional[Assignment]:
        """
        Among the shortest queues, join the one with the most men in it
        (random among ties). Defers to the default when a unit is free.
        """
        if any(p.is_idle() for p in self._processors):
            return None
        shortest = min(len(q) for q in self.queues)
        short_queues = [q for q in self.queues if len(q) == shortest]
        counts = [sum(1 for j in q if j.str_attrs.get("sex") == "male") for q in short_queues]
        most = max(counts)
        candidates = [q for q, c in zip(short_queues, counts) if c == most]
        return Assignment(queue=self.rng.choice(candidates))

    def arr_proc(self):
        return self._arr_proc

    def arr_beh(self):
        return self._arr_beh

    def processors(self):
        return self._processors

    def occupancy(self) -> int:
        return sum(len(q) for q in self.queues) + sum(1 for p in self._processors if not p.is_idle())

    def after_events(self, clock: int):
        # Ignore the initial transient
        if clock < self.stats_start:
            return
        self.stats_started = True
        for job in self._finished:
            if job.int_attrs.get("use_strategy") == 1:
                self.strategizers.record(job, clock)
            else:
                self.non_strategizers.record(job, clock)
        self._finished.clear()

    def summary(self, final_tick: int) -> Dict[str, float]:
        n = self.strategizers.count + self.non_strategizers.count
        total = self.strategizers.total + self.non_strategizers.total
        return {
            "final_tick": final_tick,
            "p_strategy": self.p_strategy,
            "strategizers": self.strategizers.count,
            "non_strategizers": self.non_strategizers.count,
            "avg_strategizer_wait_s": self.strategizers.mean() / 1000.0,
            "avg_non_strategizer_wait_s": self.non_strategizers.mean() / 1000.0,
            "avg_wait_s": (total / n / 1000.0) if n else 0.0,
            "balked": self.balked,
        }


def build(cfg: Dict) -> PortaPottySystem:
    pp = cfg.get("portapotty", {})
    return PortaPottySystem(
        p_strategy=float(pp.get("p_strategy", 0.0)),
        stats_start=int(pp.get("stats_start", 0)),
        units=int(pp.get("units", 15)),
        max_queue=int(pp.get("max_queue", 8)),
        male_mean=float(pp.get("male_mean", 40000.0)),
        female_mean=float(pp.get("female_mean", 60000.0)),
        sd=float(pp.get("sd", 5000.0)),
        seed=cfg.get("sim", {}).get("seed", 0),
    )


def run_one(cfg: Dict) -> Dict:
    system = build(cfg)
    final_tick = run_simulation(system, int(cfg.get("portapotty", {}).get("horizon_ticks", 86400 * 1000)))
    return system.summary(final_tick)
