# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Arrival processes: generate batches of new Jobs and the number of ticks
#   until the next arrival.
#
# Design notes:
#   - ArrProc.arrive() wraps generate() with before/after hooks. after_arrive
#     receives the batch and the interval, which is where scenario code tags
#     arriving jobs (category, strategy, ...) and where the simulation driver
#     schedules the next arrival.
#   - Ticks are integers, so the exponential draw of PoissonArrProc is
#     truncated. Choose a tick much finer than the mean interval (the
#     example systems use milliseconds) to keep that error negligible.
#
# Usage:
#   ap = PoissonArrProc(30000.0, rng=random.Random(7))
#   jobs, interval = ap.arrive(clock)
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import List, Tuple

from .entities import Job, new_job_id
from .hooks import Hook


class ArrProc:
    """Base arrival process. Subclasses implement generate(clock).

    Hooks
    -----
    before_arrive(ap), after_arrive(ap, jobs, interval)
    """
    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self.before_arrive = Hook("before_arrive")
        self.after_arrive = Hook("after_arrive")

    def new_job(self, clock: int) -> Job:
        return Job(arr_time=clock, job_id=new_job_id(self.rng))

    def generate(self, clock: int) -> Tuple[List[Job], int]:
        raise NotImplementedError

    def arrive(self, clock: int) -> Tuple[List[Job], int]:
        self.before_arrive.fire(self)
        jobs, interval = self.generate(clock)
        self.after_arrive.fire(self, jobs, interval)
        return jobs, interval


class ConstantArrProc(ArrProc):
    """One Job every `interval` ticks (at least 1, so the clock always advances)."""
    def __init__(self, interval: int, rng: random.Random | None = None):
        if interval < 1:
            raise ValueError(f"interval must be at least 1 tick, got {interval}")
        super().__init__(rng)
        self.interval = int(interval)

    def generate(self, clock: int) -> Tuple[List[Job], int]:
        return [self.new_job(clock)], self.interval


class PoissonArrProc(ArrProc):
    """One Job per call with exponentially distributed intervals.

    Parameters
    ----------
    mean : float
        Mean interval between arrivals, in ticks.
    rng : random.Random
        Shared pseudo-random source for the run.
    """
    def __init__(self, mean: float, rng: random.Random | None = None):
        if mean <= 0:
            raise ValueError(f"mean interval must be positive, got {mean}")
        super().__init__(rng)
        self.mean = float(mean)

    def generate(self, clock: int) -> Tuple[List[Job], int]:
        interval = int(self.rng.expovariate(1.0 / self.mean))
        return [self.new_job(clock)], interval
