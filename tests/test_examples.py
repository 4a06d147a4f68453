"""
Example system tests

- grocery: Little's Law on a long single sample path
- portapotty: strategy tagging, balking, determinism under a seed
- bloodbank: fridge capacity, aging out, aborted transfusions
- utilization: M/M/1 utilization close to the offered load
"""

import pytest

from qsim import run_simulation
from experiments import bloodbank, grocery, portapotty, utilization
from experiments.bloodbank import DAY, BloodBankSystem
from experiments.grocery import GrocerySystem
from experiments.portapotty import PortaPottySystem
from experiments.utilization import UtilizationSystem

HOUR_MS = 3600 * 1000


class TestGrocery:
    def test_littles_law(self):
        system = GrocerySystem(seed=7)
        final_tick = run_simulation(system, 10 * 24 * HOUR_MS)
        summary = system.summary(final_tick)
        assert summary["checked_out"] > 20000
        assert summary["littles_law_ratio"] == pytest.approx(1.0, rel=1e-3)

    def test_run_one_reads_config(self):
        cfg = {"sim": {"seed": 3}, "grocery": {"horizon_ticks": HOUR_MS, "registers": 2}}
        summary = grocery.run_one(cfg)
        assert summary["final_tick"] > HOUR_MS
        assert summary["arrivals"] >= summary["checked_out"] > 0
        assert grocery.build(cfg).registers == 2


class TestPortaPotty:
    def _run(self, **kwargs):
        system = PortaPottySystem(seed=11, **kwargs)
        final_tick = run_simulation(system, 2 * HOUR_MS)
        return system, system.summary(final_tick)

    def test_nobody_strategizes(self):
        _, summary = self._run(p_strategy=0.0)
        assert summary["strategizers"] == 0
        assert summary["non_strategizers"] > 0

    def test_everybody_strategizes(self):
        _, summary = self._run(p_strategy=1.0)
        assert summary["non_strategizers"] == 0
        assert summary["strategizers"] > 0
        assert summary["avg_wait_s"] == pytest.approx(summary["avg_strategizer_wait_s"])

    def test_lines_never_exceed_bound(self):
        system, summary = self._run(units=1, max_queue=1, p_strategy=0.5)
        longest = max(len(q) for q in system.queues)
        assert longest <= 1
        assert summary["balked"] > 0

    def test_seed_is_reproducible(self):
        cfg = {"sim": {"seed": 5}, "portapotty": {"horizon_ticks": HOUR_MS, "p_strategy": 0.5}}
        assert portapotty.run_one(cfg) == portapotty.run_one(cfg)


class TestBloodBank:
    def test_fridge_is_bounded(self):
        system = BloodBankSystem(max_occupancy=30, max_draw_rate=20, mean_transfusion_rate=5.0, seed=1)
        peak = []
        system_init = system.init

        def init():
            system_init()
            system.fridge.after_append.register(lambda q, job: peak.append(len(q)))
        system.init = init

        final_tick = run_simulation(system, 60 * DAY)
        assert max(peak) <= 30
        summary = system.summary(final_tick)
        assert summary["units_used"] > 0

    def test_old_units_are_tossed(self):
        system = BloodBankSystem(max_occupancy=10, max_draw_rate=10, mean_transfusion_rate=1.0,
                                 max_age=3 * DAY, seed=2)
        final_tick = run_simulation(system, 30 * DAY)
        summary = system.summary(final_tick)
        assert summary["units_tossed"] > 0
        assert summary["p90_unit_age_days"] < 3
        assert all(job.age(final_tick) < 3 * DAY + DAY for job in system.fridge)

    def test_demand_over_supply_aborts(self):
        system = BloodBankSystem(max_occupancy=200, max_draw_rate=20, mean_transfusion_rate=30.0, seed=3)
        final_tick = run_simulation(system, 30 * DAY)
        summary = system.summary(final_tick)
        assert summary["transfusions_aborted"] > 0
        assert summary["units_tossed"] == 0

    def test_run_one_reports_age_thresholds(self):
        cfg = {"sim": {"seed": 4},
               "bloodbank": {"horizon_days": 40, "stats_start_days": 10, "threshold_days": [5, 10]}}
        summary = bloodbank.run_one(cfg)
        assert set(summary["age_counts"]) == {5, 10}
        assert summary["ticks_collected"] > 0


class TestUtilization:
    def test_utilization_near_offered_load(self):
        system = UtilizationSystem(arrival_interval=1500.0, service_mean=1000.0, seed=9)
        final_tick = run_simulation(system, 4 * HOUR_MS)
        summary = system.summary(final_tick)
        assert 0.0 < summary["utilization"] < 1.0
        assert summary["utilization"] == pytest.approx(2 / 3, abs=0.08)

    def test_queue_grows_near_saturation(self):
        light = utilization.run_one({"sim": {"seed": 1},
                                     "utilization": {"horizon_ticks": HOUR_MS, "arrival_interval": 3000.0}})
        heavy = utilization.run_one({"sim": {"seed": 1},
                                     "utilization": {"horizon_ticks": HOUR_MS, "arrival_interval": 1050.0}})
        assert heavy["avg_queue"] > light["avg_queue"]
