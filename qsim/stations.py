# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# stations.py
# -----------------------------------------------------------------------------
# Purpose:
#   Processor: a single-capacity server that holds at most one Job and uses a
#   pluggable function to compute each Job's service duration.
#
# Design notes:
#   - The processing time is drawn once, at start, from
#     proc_time_generator(job); it may depend on job attributes (e.g. a
#     per-category distribution).
#   - Starting a Job on a busy Processor raises ProcessorBusyError. Both start
#     hooks still fire first; after_start receives job=None to signal the
#     rejection. The held Job is never replaced.
#   - finish() on an idle Processor is routine and returns None.
#
# Usage:
#   from qsim.stations import Processor
#   p = Processor(lambda job: 293, processor_id=1)
#   proc_time = p.start(job); done = p.finish()
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from typing import Callable, Optional

from .entities import Job
from .errors import ProcessorBusyError
from .hooks import Hook

log = logging.getLogger(__name__)

ProcTimeGenerator = Callable[[Job], int]


class Processor:
    """Single-capacity server.

    Parameters
    ----------
    proc_time_generator : callable
        Maps the Job being started to an integer service duration in ticks.
    processor_id : int
        Identifier printed in debug output.

    Hooks
    -----
    before_start(p, job), after_start(p, job_or_None, proc_time),
    before_finish(p, job_or_None), after_finish(p, job_or_None)
    """
    def __init__(self, proc_time_generator: ProcTimeGenerator, processor_id: int = 0):
        self.proc_time_generator = proc_time_generator
        self.processor_id = processor_id
        self.current_job: Optional[Job] = None
        self.before_start = Hook("before_start")
        self.after_start = Hook("after_start")
        self.before_finish = Hook("before_finish")
        self.after_finish = Hook("after_finish")

    def __repr__(self) -> str:
        state = "idle" if self.current_job is None else f"busy({self.current_job.job_id})"
        return f"<Processor {self.processor_id} {state}>"

    def is_idle(self) -> bool:
        return self.current_job is None

    def start(self, job: Job) -> int:
        """Begin processing job and return its service duration in ticks."""
        self.before_start.fire(self, job)
        if self.current_job is not None:
            self.after_start.fire(self, None, 0)
            raise ProcessorBusyError(self, job)
        self.current_job = job
        proc_time = int(self.proc_time_generator(job))
        log.debug("processor %s started job %s for %d ticks", self.processor_id, job.job_id, proc_time)
        self.after_start.fire(self, job, proc_time)
        return proc_time

    def finish(self) -> Optional[Job]:
        """Stop processing and return the Job that was held (None if idle)."""
        job = self.current_job
        self.before_finish.fire(self, job)
        self.current_job = None
        if job is not None:
            log.debug("processor %s finished job %s", self.processor_id, job.job_id)
        self.after_finish.fire(self, job)
        return job
