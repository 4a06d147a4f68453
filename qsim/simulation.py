# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   The event Schedule, the System interface that scenarios implement, and the
#   driver that advances the integer clock tick by tick.
#
# Design notes:
#   - Events landing on the same tick are returned together by next_tick()
#     and run in the order they were added. The system's before/after hooks
#     see each such batch as one instant.
#   - The driver wires two feedback loops: every Processor's after_start
#     schedules its own finish, and the ArrProc's after_arrive schedules the
#     next arrival.
#   - The horizon is checked between batches only, so the tick returned by
#     run() can exceed max_ticks.
#
# Usage:
#   from qsim.simulation import run_simulation
#   final_tick = run_simulation(MySystem(), 86400 * 1000)
# -----------------------------------------------------------------------------

from __future__ import annotations
import heapq
import itertools
import logging
from typing import Callable, List, Optional, Tuple

from .arrivals import ArrProc
from .entities import Job
from .errors import ScheduleEmptyError
from .policies import ArrBeh
from .stations import Processor

log = logging.getLogger(__name__)

EventFn = Callable[[int], None]


class Event:
    """Scheduled callback; ordered by tick, then by insertion sequence."""
    __slots__ = ("t", "seq", "fn")
    def __init__(self, t: int, seq: int, fn: EventFn):
        self.t = t; self.seq = seq; self.fn = fn
    def __lt__(self, other: "Event"):
        return (self.t, self.seq) < (other.t, other.seq)
    def __call__(self, clock: int):
        self.fn(clock)
    def __repr__(self):
        return f"<Event t={self.t} seq={self.seq}>"


class Schedule:
    """Time-ordered list of pending events.

    Adding an event for a tick that has already been popped is not guarded
    against; the driver only ever schedules at or after the current tick.
    """
    def __init__(self):
        self._heap: List[Event] = []
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def add(self, tick: int, fn: EventFn) -> Event:
        ev = Event(tick, next(self._seq), fn)
        log.debug("added event for tick %d", tick)
        heapq.heappush(self._heap, ev)
        return ev

    def peek_tick(self) -> Optional[int]:
        return self._heap[0].t if self._heap else None

    def next_tick(self) -> Tuple[List[Event], int]:
        """Remove and return every event at the earliest tick, plus that tick."""
        if not self._heap:
            raise ScheduleEmptyError("next Schedule event requested but Schedule is empty")
        first = heapq.heappop(self._heap)
        events = [first]
        while self._heap and self._heap[0].t == first.t:
            events.append(heapq.heappop(self._heap))
        return events, first.t


class System:
    """The thing being simulated. Subclass it and pass it to run_simulation().

    init() builds the queues, processors, arrival process, arrival behavior
    and discipline. The three tick callbacks are optional.
    """
    def init(self) -> None:
        raise NotImplementedError

    def arr_proc(self) -> ArrProc:
        raise NotImplementedError

    def arr_beh(self) -> ArrBeh:
        raise NotImplementedError

    def processors(self) -> List[Processor]:
        raise NotImplementedError

    def before_first_tick(self) -> None:
        """Called once after wiring, before tick 0 runs."""

    def before_events(self, clock: int) -> None:
        """Called at each event tick before that tick's events run."""

    def after_events(self, clock: int) -> None:
        """Called at each event tick after that tick's events have run."""


class Simulation:
    """Drives one System: owns the clock and the Schedule.

    Attributes
    ----------
    clock : int
        Tick of the batch being processed (0 before the first batch).
    schedule : Schedule
        Pending finish and arrival events.
    """
    def __init__(self, system: System):
        self.system = system
        self.clock: int = 0
        self.schedule = Schedule()

    def _wire(self):
        system = self.system
        sch = self.schedule

        def schedule_finish(proc: Processor, job: Optional[Job], proc_time: int):
            if job is None:
                # rejected start; nothing to finish
                return
            sch.add(self.clock + proc_time, lambda _clock: proc.finish())

        for p in system.processors():
            p.after_start.register(schedule_finish)

        arr_proc = system.arr_proc()
        log.debug("arrivals from %r routed by %r", arr_proc, system.arr_beh())

        def schedule_arrival(_ap: ArrProc, _jobs: List[Job], interval: int):
            sch.add(self.clock + interval, arr_proc.arrive)

        arr_proc.after_arrive.register(schedule_arrival)
        sch.add(0, arr_proc.arrive)

    def run(self, max_ticks: int) -> int:
        """Run until the popped tick exceeds max_ticks; return the last tick run."""
        self.system.init()
        self._wire()
        self.system.before_first_tick()
        while self.clock <= max_ticks:
            events, self.clock = self.schedule.next_tick()
            log.debug("BEGIN TICK %d (%d events)", self.clock, len(events))
            self.system.before_events(self.clock)
            for ev in events:
                ev(self.clock)
            self.system.after_events(self.clock)
            log.debug("END TICK %d", self.clock)
        return self.clock


def run_simulation(system: System, max_ticks: int) -> int:
    """Simulate system for max_ticks ticks and return the final tick."""
    return Simulation(system).run(max_ticks)
