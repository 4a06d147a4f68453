# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# policies.py
# -----------------------------------------------------------------------------
# Purpose:
#   Arrival behaviors (ArrBeh): decide, for each arriving Job, whether it goes
#   straight to a Processor or joins a Queue.
#
# Design notes:
#   - before_assign is an OverrideHook. Every callback runs in registration
#     order; the last one returning an Assignment replaces the default
#     choice entirely. Returning None delegates to the default.
#   - Tie-breaks draw from the shared rng of the run, so replicates are
#     reproducible from their seed.
#   - Passing arr_proc wires the behavior to the arrival process: each Job of
#     every arriving batch is assigned from an after_arrive hook. Register
#     job-tagging after_arrive hooks BEFORE building the ArrBeh so routing
#     sees the tags.
#
# Usage:
#   ab = ShortestQueueArrBeh(queues, processors, arr_proc, rng=rng)
#   ab.before_assign.register(lambda ab, job: Assignment(queue=queues[0]))
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .arrivals import ArrProc
from .entities import Job
from .hooks import Hook, OverrideHook
from .queues import Queue
from .stations import Processor


@dataclass(frozen=True)
class Assignment:
    """Destination for one Job: exactly one of processor or queue."""
    processor: Optional[Processor] = None
    queue: Optional[Queue] = None

    def __post_init__(self):
        if (self.processor is None) == (self.queue is None):
            raise ValueError("an Assignment needs exactly one of processor or queue")

    @property
    def kind(self) -> str:
        return "processor" if self.processor is not None else "queue"

    def apply(self, job: Job) -> None:
        if self.processor is not None:
            self.processor.start(job)
        else:
            self.queue.append(job)


class ArrBeh:
    """Base arrival behavior; subclasses implement default_assignment(job).

    Hooks
    -----
    before_assign(ab, job) -> Assignment | None
    after_assign(ab, job, assignment)
    """
    def __init__(self, arr_proc: Optional[ArrProc] = None):
        self.before_assign = OverrideHook("before_assign")
        self.after_assign = Hook("after_assign")
        if arr_proc is not None:
            arr_proc.after_arrive.register(self._on_arrive)

    def _on_arrive(self, _ap: ArrProc, jobs: List[Job], _interval: int):
        for job in jobs:
            self.assign(job)

    def default_assignment(self, job: Job) -> Assignment:
        raise NotImplementedError

    def assign(self, job: Job) -> Assignment:
        assignment = self.before_assign.resolve(self, job)
        if assignment is None:
            assignment = self.default_assignment(job)
        assignment.apply(job)
        self.after_assign.fire(self, job, assignment)
        return assignment


class ShortestQueueArrBeh(ArrBeh):
    """Supermarket-checkout routing.

    - If any Processor is idle, pick one of the idle ones at random and start
      the Job on it.
    - Otherwise append the Job to the shortest Queue, picking at random among
      queues tied at the minimum length.
    """
    def __init__(
        self,
        queues: Sequence[Queue],
        processors: Sequence[Processor],
        arr_proc: Optional[ArrProc] = None,
        rng: random.Random | None = None,
    ):
        if not queues:
            raise ValueError("ShortestQueueArrBeh needs at least one queue")
        super().__init__(arr_proc)
        self.queues = list(queues)
        self.processors = list(processors)
        self.rng = rng or (arr_proc.rng if arr_proc is not None else random.Random())

    def idle_processors(self) -> List[Processor]:
        return [p for p in self.processors if p.is_idle()]

    def shortest_queues(self) -> List[Queue]:
        shortest = min(len(q) for q in self.queues)
        return [q for q in self.queues if len(q) == shortest]

    def default_assignment(self, job: Job) -> Assignment:
        idle = self.idle_processors()
        if idle:
            return Assignment(processor=self.rng.choice(idle))
        return Assignment(queue=self.rng.choice(self.shortest_queues()))


class AlwaysQueueArrBeh(ArrBeh):
    """Append every Job to one fixed Queue, ignoring Processors.

    Used when a custom discipline decides how jobs leave the shared buffer.
    """
    def __init__(self, queue: Queue, arr_proc: Optional[ArrProc] = None):
        super().__init__(arr_proc)
        self.queue = queue

    def default_assignment(self, job: Job) -> Assignment:
        return Assignment(queue=self.queue)
