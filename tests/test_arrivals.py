"""
Arrival process tests

- constant intervals
- Poisson intervals: non-negative integers with roughly the configured mean
- before/after hooks and job stamping
"""

import random

import pytest

from qsim import ConstantArrProc, PoissonArrProc


class TestConstantArrProc:
    def test_constant_interval(self):
        ap = ConstantArrProc(72)
        elapsed = 0
        for _ in range(10):
            jobs, interval = ap.arrive(elapsed)
            assert len(jobs) == 1
            elapsed += interval
        assert elapsed == 720

    def test_jobs_stamped_with_clock(self):
        jobs, _ = ConstantArrProc(5).arrive(1234)
        assert jobs[0].arr_time == 1234

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValueError):
            ConstantArrProc(-1)
        # a zero interval would reschedule every arrival at the same tick forever
        with pytest.raises(ValueError):
            ConstantArrProc(0)
        assert ConstantArrProc(1).interval == 1

    def test_hooks(self):
        ap = ConstantArrProc(72)
        before, after = [], []
        ap.before_arrive.register(lambda cb_ap: before.append(cb_ap))
        ap.after_arrive.register(lambda cb_ap, jobs, interval: after.append((cb_ap, jobs, interval)))
        jobs, interval = ap.arrive(0)
        assert before == [ap]
        assert after == [(ap, jobs, interval)]

    def test_after_arrive_can_tag_jobs(self):
        ap = ConstantArrProc(1)
        ap.after_arrive.register(lambda cb_ap, jobs, interval: jobs[0].str_attrs.update(category="gold"))
        jobs, _ = ap.arrive(0)
        assert jobs[0].str_attrs["category"] == "gold"


class TestPoissonArrProc:
    def test_intervals_are_truncated_exponential(self):
        ap = PoissonArrProc(30000.0, rng=random.Random(3))
        intervals = [ap.arrive(0)[1] for _ in range(20000)]
        assert all(isinstance(i, int) and i >= 0 for i in intervals)
        # truncation shifts the mean down by ~0.5 tick
        assert sum(intervals) / len(intervals) == pytest.approx(30000.0, rel=0.03)

    def test_reproducible_with_seed(self):
        a = PoissonArrProc(100.0, rng=random.Random(9))
        b = PoissonArrProc(100.0, rng=random.Random(9))
        ra = [a.arrive(0) for _ in range(5)]
        rb = [b.arrive(0) for _ in range(5)]
        assert [i for _, i in ra] == [i for _, i in rb]
        assert [j[0].job_id for j, _ in ra] == [j[0].job_id for j, _ in rb]

    def test_mean_must_be_positive(self):
        with pytest.raises(ValueError):
            PoissonArrProc(0)
