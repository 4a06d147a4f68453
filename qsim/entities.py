# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# entities.py
# -----------------------------------------------------------------------------
# Purpose:
#   The Job entity: the unit of work that flows through queues and processors.
#
# Design notes:
#   - job_id is a random non-negative 63-bit integer so it fits a signed
#     64-bit slot; collisions are possible in principle but not checked.
#   - int_attrs / str_attrs let scenario code stash per-job data (category,
#     strategy flags, ...) without the kernel knowing its shape.
#   - arr_time is set once at creation and never changes.
#
# Usage:
#   from qsim.entities import Job
#   job = Job(arr_time=clock, job_id=rng.getrandbits(63))
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from dataclasses import dataclass, field
from typing import Dict

JOB_ID_BITS = 63


def new_job_id(rng: random.Random | None = None) -> int:
    """Draw a fresh job id from rng (or the module-level generator)."""
    return (rng or random).getrandbits(JOB_ID_BITS)


@dataclass(eq=False)
class Job:
    arr_time: int
    job_id: int = field(default_factory=new_job_id)
    int_attrs: Dict[str, int] = field(default_factory=dict)   # e.g. {'use_strategy': 1}
    str_attrs: Dict[str, str] = field(default_factory=dict)   # e.g. {'sex': 'male'}

    def __setattr__(self, name, value):
        if name == "arr_time" and "arr_time" in self.__dict__:
            raise AttributeError("Job.arr_time is fixed at creation")
        super().__setattr__(name, value)

    def __eq__(self, other):
        if not isinstance(other, Job):
            return NotImplemented
        return self.job_id == other.job_id

    def __hash__(self):
        return hash(self.job_id)

    def age(self, clock: int) -> int:
        """Ticks elapsed since this job arrived."""
        return clock - self.arr_time
