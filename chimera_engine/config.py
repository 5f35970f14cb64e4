"""Configuration loading utilities for the Chimera engine."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml


DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    max_level: int
    level_up_gold: int
    level_up_runes: int
    skill_xp_per_level: int
    permanent_xp_boost: float
    buff_default_duration_seconds: float
    buff_duration_bonus: float
    discount_cap: float
    hire_base_cost: float
    hire_growth_rate: float
    upgrade_base_cost: float
    upgrade_growth_rate: float
    catch_up_min_seconds: float
    echo_rate_per_level: float
    echo_multiplier_step: float
    rune_rate_per_level: float
    gold_rate_per_level: float
    altar_cost_growth: Dict[str, float]
    kill_divisor: float
    default_gold_per_kill: int
    loot_chance_per_kill: float
    loot_chance_cap: float
    expedition_base_gold: int
    expedition_gold_per_member: int
    guild_xp_per_level: int
    guild_perk_bonuses: Dict[str, float]

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        leveling = data.get("leveling", {})
        reward = leveling.get("level_up_reward", {})
        buffs = data.get("buffs", {})
        economy = data.get("economy", {})
        hire = economy.get("hire", {})
        upgrade = economy.get("upgrade", {})
        idle = data.get("idle", {})
        altar_costs = idle.get("upgrade_cost_growth", {})
        combat = data.get("combat", {})
        expeditions = data.get("expeditions", {})
        guild = data.get("guild", {})
        perks = guild.get("perk_bonuses", {})
        return Settings(
            max_level=int(leveling.get("max_level", 99)),
            level_up_gold=int(reward.get("gold", 100)),
            level_up_runes=int(reward.get("runes", 1)),
            skill_xp_per_level=int(leveling.get("skill_xp_per_level", 100)),
            permanent_xp_boost=float(leveling.get("permanent_xp_boost", 0.01)),
            buff_default_duration_seconds=float(buffs.get("default_duration_seconds", 600)),
            buff_duration_bonus=float(buffs.get("duration_bonus", 0.10)),
            discount_cap=float(economy.get("discount_cap", 0.95)),
            hire_base_cost=float(hire.get("base_cost", 250)),
            hire_growth_rate=float(hire.get("growth_rate", 1.5)),
            upgrade_base_cost=float(upgrade.get("base_cost", 100)),
            upgrade_growth_rate=float(upgrade.get("growth_rate", 2.0)),
            catch_up_min_seconds=float(idle.get("catch_up_min_seconds", 60)),
            echo_rate_per_level=float(idle.get("echo_rate_per_level", 0.1)),
            echo_multiplier_step=float(idle.get("echo_multiplier_step", 0.25)),
            rune_rate_per_level=float(idle.get("rune_rate_per_level", 0.001)),
            gold_rate_per_level=float(idle.get("gold_rate_per_level", 0.5)),
            altar_cost_growth={
                "level": float(altar_costs.get("level", 10)),
                "echo_multiplier": float(altar_costs.get("echo_multiplier", 25)),
                "rune_generation": float(altar_costs.get("rune_generation", 100)),
                "gold_generation": float(altar_costs.get("gold_generation", 50)),
            },
            kill_divisor=float(combat.get("kill_divisor", 10.0)),
            default_gold_per_kill=int(combat.get("default_gold_per_kill", 5)),
            loot_chance_per_kill=float(combat.get("loot_chance_per_kill", 0.1)),
            loot_chance_cap=float(combat.get("loot_chance_cap", 0.8)),
            expedition_base_gold=int(expeditions.get("base_gold", 50)),
            expedition_gold_per_member=int(expeditions.get("gold_per_member", 25)),
            guild_xp_per_level=int(guild.get("xp_per_level", 1000)),
            guild_perk_bonuses={
                "increased_guild_xp": float(perks.get("increased_guild_xp", 0.10)),
                "reduced_upgrade_cost": float(perks.get("reduced_upgrade_cost", 0.05)),
                "increased_bounty_rewards": float(perks.get("increased_bounty_rewards", 0.10)),
            },
        )


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self._cache = Settings.from_dict(data)
        return self._cache


def get_settings() -> Settings:
    """Convenience accessor for default settings."""

    return SettingsLoader().load()


__all__ = ["Settings", "SettingsLoader", "get_settings"]
