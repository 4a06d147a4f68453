"""
Schedule and driver tests

- tick grouping and stable ordering of same-tick events
- schedule underflow is an error
- driver: callback order, tick sequence, horizon straddling, wiring of
  processor finishes and arrivals
"""

import pytest

from qsim import (
    ConstantArrProc, Job, OneToOneFIFODiscipline, Processor, Queue, Schedule,
    ScheduleEmptyError, ShortestQueueArrBeh, Simulation, System, run_simulation,
)


class TestSchedule:
    def test_tick_grouping(self):
        sch = Schedule()
        for tick in [3, 5, 5, 2, 10, 8]:
            sch.add(tick, lambda clock: None)
        batches = []
        while len(sch):
            events, tick = sch.next_tick()
            batches.append((tick, len(events)))
        assert batches == [(2, 1), (3, 1), (5, 2), (8, 1), (10, 1)]

    def test_same_tick_events_keep_insertion_order(self):
        sch = Schedule()
        ran = []
        for name, tick in [("a", 4), ("x", 1), ("b", 4), ("y", 9), ("c", 4)]:
            sch.add(tick, lambda clock, name=name: ran.append((name, clock)))
        sch.next_tick()
        events, tick = sch.next_tick()
        assert tick == 4
        for ev in events:
            ev(tick)
        assert ran == [("a", 4), ("b", 4), ("c", 4)]
        assert sch.peek_tick() == 9

    def test_empty_schedule_is_an_error(self):
        sch = Schedule()
        with pytest.raises(ScheduleEmptyError):
            sch.next_tick()
        with pytest.raises(RuntimeError):
            sch.next_tick()
        assert sch.peek_tick() is None


class ToySystem(System):
    """One queue, one processor, an arrival every 10 ticks, 25-tick service."""
    def __init__(self, start_job_first=False):
        self.calls = []
        self.finished = []
        self.start_job_first = start_job_first

    def init(self):
        self.calls.append("init")
        self.queue = Queue()
        self.proc = Processor(lambda job: 25)
        self.proc.after_finish.register(lambda p, j: j and self.finished.append(j))
        self._arr_proc = ConstantArrProc(10)
        self._arr_beh = ShortestQueueArrBeh([self.queue], [self.proc], self._arr_proc)
        OneToOneFIFODiscipline([self.queue], [self.proc])

    def arr_proc(self):
        return self._arr_proc

    def arr_beh(self):
        return self._arr_beh

    def processors(self):
        return [self.proc]

    def before_first_tick(self):
        self.calls.append("before_first_tick")
        if self.start_job_first:
            self.proc.start(Job(arr_time=0))

    def before_events(self, clock):
        self.calls.append(("before", clock))

    def after_events(self, clock):
        self.calls.append(("after", clock))


class TestRunSimulation:
    def test_callback_order_and_ticks(self):
        system = ToySystem()
        final_tick = run_simulation(system, 100)

        assert system.calls[:3] == ["init", "before_first_tick", ("before", 0)]
        befores = [c[1] for c in system.calls if isinstance(c, tuple) and c[0] == "before"]
        afters = [c[1] for c in system.calls if isinstance(c, tuple) and c[0] == "after"]
        assert befores == [0, 10, 20, 25, 30, 40, 50, 60, 70, 75, 80, 90, 100, 110]
        assert afters == befores
        # horizon is only checked between batches
        assert final_tick == 110

    def test_finishes_are_scheduled_from_service_time(self):
        system = ToySystem()
        run_simulation(system, 100)
        # single server busy from tick 0: completions at 25, 50, 75, 100
        assert len(system.finished) == 4
        assert [j.arr_time for j in system.finished] == [0, 10, 20, 30]

    def test_job_started_before_first_tick_gets_finished(self):
        system = ToySystem(start_job_first=True)
        sim = Simulation(system)
        sim.run(30)
        # the seeded job holds the server until 25, so arrivals at 0, 10 and 20
        # queue up; one leaves the line at 25, two more arrive at 30 and 40
        assert len(system.finished) == 1
        assert system.finished[0].arr_time == 0
        assert system.proc.current_job.arr_time == 0
        assert len(system.queue) == 4
        assert sim.clock == 40

    def test_system_base_requires_topology(self):
        with pytest.raises(NotImplementedError):
            run_simulation(System(), 10)
