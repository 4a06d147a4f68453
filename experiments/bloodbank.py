# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# bloodbank.py
# -----------------------------------------------------------------------------
# Purpose:
#   A hospital blood bank. Units are drawn once a day to top the fridge up,
#   units older than the shelf life are thrown out, and each transfusion takes
#   the youngest unit available (or is aborted if the fridge is empty).
#
# Design notes:
#   - Ticks are minutes.
#   - The fridge is the only Queue the ArrBeh sees (AlwaysQueueArrBeh); its
#     max_length is the target occupancy.
#   - Transfusions are a Processor whose "service time" is the gap until the
#     next transfusion. Its after_finish hook is a custom discipline that
#     withdraws the youngest unit. An aborted transfusion keeps the processor
#     busy with a placeholder job so the next one still gets scheduled.
#   - Stale units are aged out from before_events and routed through a
#     zero-time trash processor with its own FIFO queue, so several units
#     expiring on the same tick never collide on a busy processor.
#
# Usage:
#   from experiments.bloodbank import run_one
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Dict, List, Optional, Sequence, Tuple

from qsim import (
    AlwaysQueueArrBeh, ArrProc, Job, OneToOneFIFODiscipline, Processor, Queue,
    System, run_simulation,
)
from qsim.metrics import percentile

DAY = 1440
PLACEHOLDER = "placeholder"


def is_placeholder(job: Optional[Job]) -> bool:
    return job is not None and job.int_attrs.get(PLACEHOLDER) == 1


class BloodDrawArrProc(ArrProc):
    """Daily draw: fill the fridge up to max_occupancy, capped by the draw rate."""
    def __init__(self, system: "BloodBankSystem", rng: random.Random | None = None):
        super().__init__(rng)
        self.system = system
        self.last_draw: Optional[int] = None

    def generate(self, clock: int) -> Tuple[List[Job], int]:
        bank = self.system
        days = 1 if self.last_draw is None else (clock - self.last_draw) // DAY
        jobs: List[Job] = []
        if days >= 1:
            n = min(bank.max_occupancy - len(bank.fridge), bank.max_draw_rate * days)
            jobs = [self.new_job(clock) for _ in range(max(0, n))]
            self.last_draw = clock
        return jobs, DAY


class BloodBankSystem(System):
    def __init__(self, max_draw_rate: int = 20, max_occupancy: int = 200,
                 mean_transfusion_rate: float = 15.0, stats_start: int = 0,
                 thresholds: Sequence[int] = (), max_age: int = 35 * DAY, seed=None):
        self.max_draw_rate = max_draw_rate
        self.max_occupancy = max_occupancy
        self.mean_transfusion_rate = mean_transfusion_rate     # units/day
        self.stats_start = stats_start
        self.thresholds = list(thresholds)                     # ages (ticks) to count units over
        self.max_age = max_age
        self.seed = seed

        self.num_used = 0
        self.num_tossed = 0
        self.num_aborted = 0
        self.unit_ages: List[int] = []
        self.age_counts = [0] * len(self.thresholds)
        self.stats_started = False
        self.clock = 0
        self._used: List[Job] = []

    def init(self):
        self.rng = random.Random(self.seed)
        # mean ticks between transfusions
        proc_mean = DAY / self.mean_transfusion_rate

        def transfusion_interval(job):
            return int(self.rng.expovariate(1.0 / proc_mean))

        self.fridge = Queue(queue_id=0, max_length=self.max_occupancy)
        self.trash_queue = Queue(queue_id=1)
        self.transfusion = Processor(transfusion_interval, processor_id=0)
        self.trash = Processor(lambda job: 0, processor_id=1)

        self.transfusion.after_start.register(self._on_transfusion_start)
        self.transfusion.after_finish.register(self._withdraw_youngest)
        self.trash.after_finish.register(self._on_tossed)

        self._arr_proc = BloodDrawArrProc(self, rng=self.rng)
        self._arr_beh = AlwaysQueueArrBeh(self.fridge, self._arr_proc)
        OneToOneFIFODiscipline([self.trash_queue], [self.trash])

    def placeholder(self) -> Job:
        job = Job(arr_time=self.clock, job_id=self.rng.getrandbits(63))
        job.int_attrs[PLACEHOLDER] = 1
        return job

    def _on_transfusion_start(self, proc, job, proc_time):
        if self.stats_started and job is not None and not is_placeholder(job):
            self.num_used += 1
            self._used.append(job)

    def _on_tossed(self, proc, job):
        if self.stats_started and job is not None:
            self.num_tossed += 1

    def _withdraw_youngest(self, proc, finished):
        if len(self.fridge) == 0:
            if self.stats_started:
                self.num_aborted += 1
            # keep the transfusion clock running until the next request
            proc.start(self.placeholder())
            return
        youngest = max(self.fridge.jobs, key=lambda j: j.arr_time)
        self.fridge.remove(youngest)
        proc.start(youngest)

    def arr_proc(self):
        return self._arr_proc

    def arr_beh(self):
        return self._arr_beh

    def processors(self):
        return [self.transfusion, self.trash]

    def before_first_tick(self):
        self.transfusion.start(self.placeholder())

    def before_events(self, clock: int):
        self.clock = clock
        # Throw out units past their shelf life
        for job in list(self.fridge.jobs):
            if clock - job.arr_time >= self.max_age:
                self.fridge.remove(job)
                if self.trash.is_idle():
                    self.trash.start(job)
                else:
                    self.trash_queue.append(job)

    def after_events(self, clock: int):
        if clock >= self.stats_start:
            self.stats_started = True
        if not self.stats_started:
            return
        for job in self._used:
            age = clock - job.arr_time
            self.unit_ages.append(age)
            for i, thresh in enumerate(self.thresholds):
                if age > thresh:
                    self.age_counts[i] += 1
        self._used.clear()

    def summary(self, final_tick: int) -> Dict:
        return {
            "final_tick": final_tick,
            "ticks_collected": max(0, final_tick - self.stats_start),
            "units_used": self.num_used,
            "units_tossed": self.num_tossed,
            "transfusions_aborted": self.num_aborted,
            "p90_unit_age_days": percentile(self.unit_ages, 0.9) / DAY,
            "age_counts": dict(zip((t // DAY for t in self.thresholds), self.age_counts)),
        }


def build(cfg: Dict) -> BloodBankSystem:
    bb = cfg.get("bloodbank", {})
    return BloodBankSystem(
        max_draw_rate=int(bb.get("max_draw_rate", 20)),
        max_occupancy=int(bb.get("max_occupancy", 200)),
        mean_transfusion_rate=float(bb.get("mean_transfusion_rate", 15.0)),
        stats_start=int(bb.get("stats_start_days", 0)) * DAY,
        thresholds=[int(d) * DAY for d in bb.get("threshold_days", [5, 10, 15, 20, 25, 30])],
        max_age=int(bb.get("max_age_days", 35)) * DAY,
        seed=cfg.get("sim", {}).get("seed", 0),
    )


def run_one(cfg: Dict) -> Dict:
    system = build(cfg)
    final_tick = run_simulation(system, int(cfg.get("bloodbank", {}).get("horizon_days", 730)) * DAY)
    return system.summary(final_tick)
