"""Tests for the offline progression simulator."""
from __future__ import annotations

import json
from pathlib import Path

from chimera_engine.tools.simulate_offline import (
    HireScenario,
    SimulationConfig,
    run_simulation,
)


def build_config() -> SimulationConfig:
    return SimulationConfig(
        days=3,
        seed=5,
        hires=[HireScenario("knight", 2), HireScenario("seer", 1)],
        settings={"catch_up_min_seconds": 120},
    )


def test_run_simulation_generates_summary() -> None:
    config = build_config()
    result = run_simulation(config=config)

    assert len(result["timeline"]) == config.days
    summary = result["summary"]
    assert summary["members"] == 3
    assert summary["total_kills"] > 0
    assert summary["altar_level"] > 1
    assert result["timeline"][0]["kills"] > 0


def test_same_seed_replays_identically() -> None:
    first = run_simulation(config=build_config())
    second = run_simulation(config=build_config())

    assert first == second


def test_config_from_mapping_overrides_defaults() -> None:
    config = SimulationConfig.from_mapping(
        {"days": 2, "hires": [{"role": "archer", "count": 3}], "hunt_enemy": None}
    )

    assert config.days == 2
    assert config.hires[0].role == "archer"
    assert config.hires[0].count == 3
    assert config.hunt_enemy is None
    assert config.seed == 42


def test_cli_output(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"days": 2, "hires": [{"role": "rogue", "count": 1}]}))

    def fake_parse_args():
        return type(
            "Args",
            (),
            {
                "config": config_path,
                "days": None,
                "seed": 9,
                "output_dir": tmp_path / "runs",
                "verbose": False,
            },
        )()

    from chimera_engine.tools import simulate_offline

    monkeypatch.setattr(simulate_offline, "_parse_args", fake_parse_args)
    simulate_offline.main()

    output_files = list((tmp_path / "runs").glob("offline_simulation_*.json"))
    assert output_files, "Expected CLI to produce an output file"
    payload = json.loads(output_files[0].read_text())
    assert payload["config"]["seed"] == 9
    assert len(payload["timeline"]) == 2
