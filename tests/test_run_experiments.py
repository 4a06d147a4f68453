"""
Experiment harness tests

- config merging and scenario lookup
- confidence intervals and replicate seeding
- end-to-end CLI run against a tiny config
"""

import math
import os

import pytest
import yaml

import experiments
from experiments import run_experiments as rx
from experiments.scenarios import SCENARIOS, SWEEPS


class TestConfig:
    def test_baseline_config_loads(self):
        cfg = rx.load_cfg()
        assert cfg["sim"]["seed"] == 0
        for system in rx.SYSTEMS:
            assert system in cfg

    def test_baseline_config_ships_inside_the_package(self):
        pkg_dir = os.path.dirname(os.path.abspath(experiments.__file__))
        assert os.path.dirname(rx.DEFAULT_CONFIG) == pkg_dir
        assert os.path.isfile(rx.DEFAULT_CONFIG)

    def test_baseline_config_is_declared_package_data(self):
        root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        with open(os.path.join(root, "pyproject.toml")) as f:
            text = f.read()
        assert "[tool.setuptools.package-data]\nexperiments = [\"*.yaml\"]" in text

    def test_apply_overrides_is_deep_and_non_destructive(self):
        base = {"sim": {"seed": 1}, "grocery": {"registers": 3, "service_sd": 10.0}}
        new = rx.apply_overrides(base, {"grocery": {"registers": 2}, "extra": {"x": 1}})
        assert new["grocery"] == {"registers": 2, "service_sd": 10.0}
        assert new["extra"] == {"x": 1}
        assert base["grocery"]["registers"] == 3

    def test_find_scenario(self):
        assert rx.find_scenario("grocery", "two_registers")["overrides"] == {"grocery": {"registers": 2}}
        with pytest.raises(KeyError):
            rx.find_scenario("grocery", "nope")

    def test_every_system_has_scenarios_and_sweeps_name_real_sections(self):
        assert set(SCENARIOS) == set(rx.SYSTEMS)
        for system, sweep in SWEEPS.items():
            assert system in rx.SYSTEMS
            assert sweep["section"] in rx.load_cfg()


class TestStats:
    def test_mean_ci(self):
        mu, half = rx.mean_ci([1.0, 2.0, 3.0], 0.95)
        assert mu == pytest.approx(2.0)
        assert half == pytest.approx(4.302653 / math.sqrt(3), rel=1e-5)

    def test_mean_ci_degenerate(self):
        assert rx.mean_ci([], 0.95) == (0.0, 0.0)
        assert rx.mean_ci([4.0], 0.95) == (4.0, 0.0)

    def test_replicate_cfgs_advance_seed(self):
        cfgs = rx.replicate_cfgs({"sim": {"seed": 10}}, 3)
        assert [c["sim"]["seed"] for c in cfgs] == [10, 11, 12]

    def test_summarize_skips_non_numeric(self):
        results = [{"a": 1, "flag": True, "nested": {"x": 1}}, {"a": 3, "flag": False, "nested": {"x": 3}}]
        stats = rx.summarize(results, 0.95)
        assert set(stats) == {"a"}
        assert stats["a"][0] == pytest.approx(2.0)
        assert rx.avg_nested(results, "nested") == {"x": 2.0}


class TestMain:
    @pytest.fixture
    def tiny_cfg(self, tmp_path):
        cfg = rx.load_cfg()
        cfg["experiments"]["replications"] = 2
        cfg["experiments"]["output_dir"] = str(tmp_path / "out")
        cfg["utilization"]["horizon_ticks"] = 60 * 1000
        path = tmp_path / "tiny.yaml"
        path.write_text(yaml.safe_dump(cfg))
        return str(path)

    def test_scenario_report(self, tiny_cfg, capsys):
        rx.main(["utilization", "--scenario", "near_saturation", "--config", tiny_cfg])
        out = capsys.readouterr().out
        assert "System: utilization / scenario: near_saturation (replications=2" in out
        assert "utilization:" in out

    def test_sweep_writes_csv_and_plot(self, tiny_cfg, tmp_path, capsys):
        rx.main(["utilization", "--sweep", "--plot", "--replications", "1", "--config", tiny_cfg])
        out = capsys.readouterr().out
        assert out.splitlines()[0] == "arrival_interval,utilization,avg_queue"
        assert (tmp_path / "out" / "utilization_arrival_interval_sweep.png").exists()

    def test_relative_output_dir_resolves_against_cwd(self, tmp_path, monkeypatch, capsys):
        cfg = rx.load_cfg()
        cfg["experiments"]["output_dir"] = "plots"
        cfg["utilization"]["horizon_ticks"] = 60 * 1000
        path = tmp_path / "rel.yaml"
        path.write_text(yaml.safe_dump(cfg))
        monkeypatch.chdir(tmp_path)
        rx.main(["utilization", "--sweep", "--plot", "--replications", "1", "--config", str(path)])
        capsys.readouterr()
        assert (tmp_path / "plots" / "utilization_arrival_interval_sweep.png").exists()

    def test_unknown_system_is_rejected(self):
        with pytest.raises(SystemExit):
            rx.parse_args(["airport"])
