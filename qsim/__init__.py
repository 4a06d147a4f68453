"""
qsim package initializer.

This package contains the discrete-event kernel for queueing networks: jobs,
queues, processors, disciplines, arrival processes, arrival behaviors, the
event schedule and the simulation driver. Example systems built on it live in
experiments/.
"""
from __future__ import annotations
import logging

from .entities import Job
from .errors import ProcessorBusyError, QSimError, ScheduleEmptyError
from .queues import Queue
from .stations import Processor
from .network import OneToOneFIFODiscipline
from .arrivals import ArrProc, ConstantArrProc, PoissonArrProc
from .policies import AlwaysQueueArrBeh, ArrBeh, Assignment, ShortestQueueArrBeh
from .simulation import Schedule, Simulation, System, run_simulation

logging.getLogger(__name__).addHandler(logging.NullHandler())


def set_debug(enabled: bool = True) -> None:
    """Toggle DEBUG tracing (schedule additions, tick boundaries) for qsim."""
    logging.getLogger(__name__).setLevel(logging.DEBUG if enabled else logging.NOTSET)


__all__ = [
    "entities", "errors", "hooks", "queues", "stations", "network",
    "arrivals", "policies", "metrics", "simulation",
    "Job", "Queue", "Processor", "OneToOneFIFODiscipline",
    "ArrProc", "ConstantArrProc", "PoissonArrProc",
    "ArrBeh", "Assignment", "ShortestQueueArrBeh", "AlwaysQueueArrBeh",
    "Schedule", "Simulation", "System", "run_simulation",
    "QSimError", "ProcessorBusyError", "ScheduleEmptyError", "set_debug",
]
