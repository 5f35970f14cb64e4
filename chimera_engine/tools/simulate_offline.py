"""Offline progression balance simulator.

Replays a seeded, multi-day scenario (hires, daily habit tasks, one visit per
day applying offline catch-up, a standing hunt) and reports how resources
accumulate, so cost curves and idle rates can be tuned without a client.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import Settings, get_settings
from ..models import Actor, AltarTrack, GuildRole, ResourceKind, SkillCategory
from ..rng import DeterministicRNG
from ..service import EngineService
from ..state import serialize_actor

logger = logging.getLogger(__name__)

DEFAULT_START = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)


@dataclass
class HireScenario:
    role: str
    count: int = 1


@dataclass
class SimulationConfig:
    days: int = 7
    seed: int = 42
    starting_gold: float = 1000.0
    hires: List[HireScenario] = field(
        default_factory=lambda: [HireScenario("knight", 2), HireScenario("seer", 1)]
    )
    hunt_enemy: Optional[str] = "enemy_goblin"
    tasks_per_day: int = 3
    task_xp: int = 40
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, payload: Dict[str, Any]) -> "SimulationConfig":
        config = cls()
        hires = payload.get("hires")
        if hires is not None:
            config.hires = [
                HireScenario(role=entry["role"], count=int(entry.get("count", 1)))
                for entry in hires
            ]
        return replace(
            config,
            days=int(payload.get("days", config.days)),
            seed=int(payload.get("seed", config.seed)),
            starting_gold=float(payload.get("starting_gold", config.starting_gold)),
            hunt_enemy=payload.get("hunt_enemy", config.hunt_enemy),
            tasks_per_day=int(payload.get("tasks_per_day", config.tasks_per_day)),
            task_xp=int(payload.get("task_xp", config.task_xp)),
            settings=payload.get("settings", {}),
        )


def _apply_settings_overrides(settings: Settings, overrides: Dict[str, Any]) -> Settings:
    valid_overrides = {
        key: value for key, value in overrides.items() if hasattr(settings, key)
    }
    if not valid_overrides:
        return settings
    return replace(settings, **valid_overrides)


def _balances(actor: Actor) -> Dict[str, float]:
    return {
        kind.value: round(float(actor.ledger.balance(kind)), 4) for kind in ResourceKind
    }


def _setup_guild(service: EngineService, actor: Actor, config: SimulationConfig, now: datetime) -> None:
    for hire in config.hires:
        result = service.bulk_hire(actor, GuildRole(hire.role), hire.count, now)
        if not result.ok:
            logger.warning("Hire of %s x%d failed: %s", hire.role, hire.count, result.failure.message)
    if config.hunt_enemy is None:
        return
    hunters = [
        member.id
        for member in actor.members
        if not member.busy and service.catalog.role(member.role).is_combatant
    ]
    if hunters:
        service.start_hunt(actor, config.hunt_enemy, hunters, now)


def run_simulation(
    *,
    config: SimulationConfig,
    output_dir: Optional[Path] = None,
    start: datetime = DEFAULT_START,
) -> Dict[str, Any]:
    """Run the offline scenario returning timeline + summary."""

    settings = _apply_settings_overrides(get_settings(), config.settings)
    service = EngineService(settings=settings, rng=DeterministicRNG(config.seed))
    actor = service.new_actor("simulated", start)
    actor.ledger.add(ResourceKind.GOLD, config.starting_gold)
    _setup_guild(service, actor, config, start)

    timeline: List[Dict[str, Any]] = []
    for day in range(1, config.days + 1):
        now = start + timedelta(days=day)
        levels_gained = 0
        for _ in range(config.tasks_per_day):
            outcome = service.complete_task(actor, SkillCategory.STRENGTH, config.task_xp, now)
            levels_gained += outcome.xp.player.levels_gained
        report = service.apply_offline_catch_up(actor, now)
        claimed = service.claim_hunt_rewards(actor)
        upgrade = service.upgrade_altar(actor, AltarTrack.LEVEL)
        timeline.append(
            {
                "day": day,
                "timestamp": now.isoformat(),
                "idle_accrued": report.idle.accrued,
                "kills": report.total_kills,
                "hunt_claimed": claimed,
                "altar_upgraded": upgrade.ok,
                "levels_gained": levels_gained,
                "balances": _balances(actor),
            }
        )

    result = {
        "config": {
            "days": config.days,
            "seed": config.seed,
            "starting_gold": config.starting_gold,
            "hires": [hire.__dict__ for hire in config.hires],
            "hunt_enemy": config.hunt_enemy,
            "settings": config.settings,
        },
        "timeline": timeline,
        "summary": {
            "level": actor.level,
            "total_xp": actor.total_xp,
            "members": len(actor.members),
            "altar_level": actor.altar.level if actor.altar else 0,
            "total_kills": sum(hunt.kills_accumulated for hunt in actor.hunts),
            "balances": _balances(actor),
        },
        "actor": serialize_actor(actor),
    }

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        output_path = output_dir / f"offline_simulation_{timestamp}.json"
        output_path.write_text(json.dumps(result, indent=2), encoding="utf-8")
        result["output_path"] = str(output_path)

    return result


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run an offline progression balance simulation."
    )
    parser.add_argument(
        "--config", type=Path, help="JSON file describing simulation scenario."
    )
    parser.add_argument(
        "--days", type=int, help="Simulation horizon in days (overrides config)."
    )
    parser.add_argument("--seed", type=int, help="RNG seed (overrides config).")
    parser.add_argument("--output-dir", type=Path, default=Path("simulation_runs"))
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def main() -> None:  # pragma: no cover - CLI entry point
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    config_payload = json.loads(args.config.read_text()) if args.config else {}
    config = SimulationConfig.from_mapping(config_payload)
    if args.days:
        config.days = args.days
    if args.seed is not None:
        config.seed = args.seed
    result = run_simulation(config=config, output_dir=args.output_dir)
    logger.info("Simulation written to %s", result["output_path"])


if __name__ == "__main__":
    main()
