"""
experiments/scenarios.py

Holds scenario definitions (config overrides) and parameter sweeps for each
example system. Add register counts, capacities and policy mixes here.
"""

from __future__ import annotations

BASELINE = {
    "name": "baseline",
    "overrides": {},  # override config keys here per scenario
}

SCENARIOS = {
    "grocery": [
        BASELINE,
        {
            "name": "two_registers",
            "overrides": {"grocery": {"registers": 2}},
        },
        {
            "name": "rush_hour",
            "overrides": {"grocery": {"mean_interarrival": 22000.0}},
        },
    ],
    "portapotty": [
        BASELINE,
        {
            "name": "everyone_strategizes",
            "overrides": {"portapotty": {"p_strategy": 1.0}},
        },
        {
            "name": "short_lines",
            "overrides": {"portapotty": {"max_queue": 4}},
        },
    ],
    "bloodbank": [
        BASELINE,
        {
            "name": "small_fridge",
            "overrides": {"bloodbank": {"max_occupancy": 100}},
        },
        {
            "name": "high_demand",
            "overrides": {"bloodbank": {"mean_transfusion_rate": 19.0}},
        },
    ],
    "utilization": [
        BASELINE,
        {
            "name": "near_saturation",
            "overrides": {"utilization": {"arrival_interval": 1050.0}},
        },
    ],
}

# One parameter swept over a grid; each point runs the full replication set.
SWEEPS = {
    "portapotty": {
        "section": "portapotty",
        "param": "p_strategy",
        "values": [round(0.1 * i, 1) for i in range(0, 11)],
        "metrics": ["avg_strategizer_wait_s", "avg_non_strategizer_wait_s", "avg_wait_s"],
    },
    "utilization": {
        "section": "utilization",
        "param": "arrival_interval",
        "values": list(range(1050, 3000, 150)),
        "metrics": ["utilization", "avg_queue"],
    },
    "bloodbank": {
        "section": "bloodbank",
        "param": "max_occupancy",
        "values": [50, 100, 150, 200, 250, 300],
        "metrics": ["units_tossed", "transfusions_aborted", "p90_unit_age_days"],
    },
}
