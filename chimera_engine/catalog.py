"""Read-only reference data: roles, enemies, expeditions, spells and more."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .models import (
    BountyTemplate,
    BuffKind,
    ChimeraStat,
    EnemyDefinition,
    ExpeditionDefinition,
    GuildRole,
    LootDrop,
    PermanentBonus,
    RoleCoefficients,
    SpellDefinition,
    StatueTemplate,
)

logger = logging.getLogger(__name__)

_DATA_PATH = Path(__file__).parent / "data"


def _parse_loot(entries: Any) -> List[LootDrop]:
    if not isinstance(entries, list):
        return []
    return [
        LootDrop(
            item_id=str(entry["item_id"]),
            drop_rate=max(0.0, min(1.0, float(entry["drop_rate"]))),
            min_quantity=int(entry.get("min_quantity", 1)),
            max_quantity=int(entry.get("max_quantity", entry.get("min_quantity", 1))),
        )
        for entry in entries
    ]


class Catalog:
    """Loads catalog YAML once and answers lookups by stable string ID.

    Lookups never raise for unknown IDs. Role lookups fall back to neutral
    coefficients, enemy loot falls back to the default pool, and everything
    else returns ``None`` for the caller to handle. Each miss is logged.
    """

    def __init__(self, data_path: Path | None = None) -> None:
        self._path = data_path or _DATA_PATH
        self._roles = self._load_roles(self._load_yaml("roles.yaml").get("roles", {}))
        enemy_data = self._load_yaml("enemies.yaml")
        self._enemies = self._load_enemies(enemy_data.get("enemies", {}))
        self._default_loot = _parse_loot(enemy_data.get("default_loot", []))
        self._expeditions = self._load_expeditions(
            self._load_yaml("expeditions.yaml").get("expeditions", {})
        )
        self._spells = self._load_spells(self._load_yaml("spells.yaml").get("spells", []))
        self._bounties = [
            BountyTemplate(
                title=entry["title"],
                description=entry.get("description", ""),
                required_progress=int(entry["required_progress"]),
                guild_xp_reward=int(entry.get("guild_xp_reward", 0)),
                guild_seal_reward=int(entry.get("guild_seal_reward", 0)),
                target_enemy_id=entry.get("target_enemy_id"),
            )
            for entry in self._load_yaml("bounties.yaml").get("daily_bounties", [])
        ]
        self._statues = [
            StatueTemplate(
                id=entry["id"],
                name=entry["name"],
                description=entry.get("description", ""),
                required_willpower=int(entry["required_willpower"]),
                reward=PermanentBonus(entry["reward"]),
            )
            for entry in self._load_yaml("statues.yaml").get("statues", [])
        ]

    def _load_yaml(self, name: str) -> Dict:
        path = self._path / name
        if not path.exists():
            return {}
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}

    @staticmethod
    def _load_roles(raw: Dict[str, Dict[str, Any]]) -> Dict[GuildRole, RoleCoefficients]:
        roles: Dict[GuildRole, RoleCoefficients] = {}
        for name, entry in raw.items():
            role = GuildRole(name)
            entry = entry or {}
            roles[role] = RoleCoefficients(
                role=role,
                dps_base=float(entry.get("dps_base", 0.0)),
                dps_per_level=float(entry.get("dps_per_level", 0.0)),
                hire_multiplier=float(entry.get("hire_multiplier", 1.0)),
                upgrade_multiplier=float(entry.get("upgrade_multiplier", 1.0)),
                echo_bonus_per_level=float(entry.get("echo_bonus_per_level", 0.0)),
            )
        return roles

    @staticmethod
    def _load_enemies(raw: Dict[str, Dict[str, Any]]) -> Dict[str, EnemyDefinition]:
        return {
            enemy_id: EnemyDefinition(
                id=enemy_id,
                name=entry.get("name", enemy_id),
                health=float(entry.get("health", 1.0)),
                gold_per_kill=int(entry["gold_per_kill"]),
                loot=_parse_loot(entry.get("loot")),
            )
            for enemy_id, entry in raw.items()
        }

    @staticmethod
    def _load_expeditions(raw: Dict[str, Dict[str, Any]]) -> Dict[str, ExpeditionDefinition]:
        return {
            expedition_id: ExpeditionDefinition(
                id=expedition_id,
                name=entry["name"],
                description=entry.get("description", ""),
                duration_seconds=float(entry["duration_seconds"]),
                min_members=int(entry.get("min_members", 1)),
                xp_reward=int(entry.get("xp_reward", 0)),
                loot_table={k: int(v) for k, v in (entry.get("loot_table") or {}).items()},
                required_roles=[GuildRole(r) for r in entry.get("required_roles") or []],
            )
            for expedition_id, entry in raw.items()
        }

    @staticmethod
    def _load_spells(raw: List[Dict[str, Any]]) -> Dict[str, SpellDefinition]:
        spells: Dict[str, SpellDefinition] = {}
        for entry in raw:
            stat = entry.get("stat")
            duration = entry.get("duration_seconds")
            spells[entry["id"]] = SpellDefinition(
                id=entry["id"],
                name=entry["name"],
                description=entry.get("description", ""),
                required_level=int(entry.get("required_level", 1)),
                rune_cost=int(entry.get("rune_cost", 0)),
                effect=BuffKind(entry["effect"]),
                magnitude=float(entry.get("magnitude", 0.0)),
                stat=ChimeraStat(stat) if stat else None,
                duration_seconds=float(duration) if duration is not None else None,
            )
        return spells

    def role(self, role: GuildRole) -> RoleCoefficients:
        coefficients = self._roles.get(role)
        if coefficients is None:
            logger.warning("No coefficients for role %s; using neutral defaults", role)
            return RoleCoefficients(role=role)
        return coefficients

    def enemy(self, enemy_id: str) -> Optional[EnemyDefinition]:
        enemy = self._enemies.get(enemy_id)
        if enemy is None:
            logger.warning("Unknown enemy id %s", enemy_id)
        return enemy

    def loot_pool(self, enemy_id: str) -> List[LootDrop]:
        enemy = self._enemies.get(enemy_id)
        if enemy is None or not enemy.loot:
            return list(self._default_loot)
        return list(enemy.loot)

    def expedition(self, expedition_id: str) -> Optional[ExpeditionDefinition]:
        expedition = self._expeditions.get(expedition_id)
        if expedition is None:
            logger.warning("Unknown expedition id %s", expedition_id)
        return expedition

    def spell(self, spell_id: str) -> Optional[SpellDefinition]:
        spell = self._spells.get(spell_id)
        if spell is None:
            logger.warning("Unknown spell id %s", spell_id)
        return spell

    def spells(self) -> List[SpellDefinition]:
        return list(self._spells.values())

    def bounty_templates(self) -> List[BountyTemplate]:
        return list(self._bounties)

    def statue_templates(self) -> List[StatueTemplate]:
        return list(self._statues)


__all__ = ["Catalog"]
