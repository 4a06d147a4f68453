# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# queues.py
# -----------------------------------------------------------------------------
# Purpose:
#   FIFO holding area for Jobs waiting on a Processor, with an optional
#   length bound and before/after hooks around every mutation.
#
# Design notes:
#   - max_length defaults to math.inf (unbounded). Appending at the bound is
#     a normal drop, not an error: after_append fires with job=None so
#     observers can count balks.
#   - Lowering max_length never evicts; it only blocks appends until the
#     queue drains below the new bound.
#   - remove() matches on job_id and only fires its hooks on a match.
#
# Usage:
#   from qsim.queues import Queue
#   q = Queue(queue_id=3, max_length=8)
#   q.append(job); job, remaining = q.shift()
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import math
from typing import List, Optional, Tuple

from .entities import Job
from .hooks import Hook

log = logging.getLogger(__name__)


class Queue:
    """Ordered, optionally bounded list of Jobs (oldest at the front).

    Parameters
    ----------
    queue_id : int
        Identifier printed in debug output. Not required to be unique.
    max_length : float
        Maximum number of queued Jobs (default math.inf for unlimited).

    Hooks
    -----
    before_append(q, job), after_append(q, job_or_None),
    before_shift(q, job_or_None), after_shift(q, job_or_None),
    before_remove(q, job), after_remove(q, job)
    """
    def __init__(self, queue_id: int = 0, max_length: float = math.inf):
        self.queue_id = queue_id
        self.max_length = max_length
        self.jobs: List[Job] = []
        self.before_append = Hook("before_append")
        self.after_append = Hook("after_append")
        self.before_shift = Hook("before_shift")
        self.after_shift = Hook("after_shift")
        self.before_remove = Hook("before_remove")
        self.after_remove = Hook("after_remove")

    def __len__(self) -> int:
        return len(self.jobs)

    def __iter__(self):
        return iter(self.jobs)

    def __repr__(self) -> str:
        return f"<Queue {self.queue_id} len={len(self.jobs)} max={self.max_length}>"

    def length(self) -> int:
        return len(self.jobs)

    def can_join(self) -> bool:
        return len(self.jobs) < self.max_length

    def append(self, job: Job) -> bool:
        """Add job to the tail. Returns False if it was dropped at the bound."""
        self.before_append.fire(self, job)
        if not self.can_join():
            log.debug("queue %s full (%s); dropped job %s", self.queue_id, self.max_length, job.job_id)
            self.after_append.fire(self, None)
            return False
        self.jobs.append(job)
        self.after_append.fire(self, job)
        return True

    def shift(self) -> Tuple[Optional[Job], int]:
        """Remove the head Job. Returns (job, remaining), or (None, 0) if empty."""
        if not self.jobs:
            self.before_shift.fire(self, None)
            self.after_shift.fire(self, None)
            return None, 0
        job = self.jobs[0]
        self.before_shift.fire(self, job)
        del self.jobs[0]
        self.after_shift.fire(self, job)
        return job, len(self.jobs)

    def remove(self, job: Job) -> Tuple[Optional[Job], int]:
        """Remove the Job with job's id. Returns (job, remaining) or (None, remaining)."""
        for idx, queued in enumerate(self.jobs):
            if queued.job_id == job.job_id:
                self.before_remove.fire(self, queued)
                del self.jobs[idx]
                self.after_remove.fire(self, queued)
                return queued, len(self.jobs)
        return None, len(self.jobs)
