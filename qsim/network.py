# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# network.py
# -----------------------------------------------------------------------------
# Purpose:
#   Disciplines: rules that bind Queues to Processors and feed a waiting Job
#   to a Processor as soon as it frees up.
#
# Design notes:
#   - A discipline is just an after_finish hook installed on each Processor.
#     Other routing rules (one queue feeding several processors, priority
#     picks, youngest-first withdrawal) follow the same pattern from scenario
#     code; see experiments/bloodbank.py.
#
# Usage:
#   OneToOneFIFODiscipline(queues, processors)
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Optional, Sequence

from .entities import Job
from .queues import Queue
from .stations import Processor


class OneToOneFIFODiscipline:
    """Queue i feeds Processor i, oldest Job first.

    When a Processor finishes a Job, the head of its Queue is started on it.
    If that Queue is empty the Processor stays idle.
    """
    def __init__(self, queues: Sequence[Queue], processors: Sequence[Processor]):
        if len(queues) != len(processors):
            raise ValueError(
                f"need one queue per processor, got {len(queues)} queues "
                f"and {len(processors)} processors"
            )
        self.queues = list(queues)
        self.processors = list(processors)
        for q, p in zip(self.queues, self.processors):
            p.after_finish.register(self._feeder(q))

    @staticmethod
    def _feeder(queue: Queue):
        def feed(proc: Processor, _finished: Optional[Job]):
            job, _ = queue.shift()
            if job is not None:
                proc.start(job)
        return feed

    def queue_for(self, processor: Processor) -> Queue:
        return self.queues[self.processors.index(processor)]
