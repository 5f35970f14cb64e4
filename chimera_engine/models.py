"""Core data models for the Chimera engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from .ledger import ResourceLedger


class ResourceKind(str, Enum):
    GOLD = "gold"
    RUNES = "runes"
    WILLPOWER = "willpower"
    GUILD_SEALS = "guild_seals"
    ECHOES = "echoes"


class SkillCategory(str, Enum):
    STRENGTH = "strength"
    MIND = "mind"
    JOY = "joy"
    VITALITY = "vitality"
    AWARENESS = "awareness"
    FLOW = "flow"
    FINANCE = "finance"
    OTHER = "other"


class ChimeraStat(str, Enum):
    DISCIPLINE = "discipline"
    MINDFULNESS = "mindfulness"
    INTELLECT = "intellect"
    CREATIVITY = "creativity"
    RESILIENCE = "resilience"


class BuffKind(str, Enum):
    """Time-expiring effect categories."""

    DOUBLE_XP = "double_xp"
    DOUBLE_GOLD = "double_gold"
    XP_BOOST = "xp_boost"
    GOLD_BOOST = "gold_boost"
    RUNE_BOOST = "rune_boost"
    WILLPOWER_GEN = "willpower_gen"
    REDUCED_UPGRADE_COST = "reduced_upgrade_cost"
    GUILD_XP_BOOST = "guild_xp_boost"
    PLANT_GROWTH_SPEED = "plant_growth_speed"


class PermanentBonus(str, Enum):
    XP_BOOST = "xp_boost"
    NEW_DAILY_QUEST = "new_daily_quest"
    BUFF_DURATION_INCREASE = "buff_duration_increase"


class GuildPerk(str, Enum):
    INCREASED_GUILD_XP = "increased_guild_xp"
    REDUCED_UPGRADE_COST = "reduced_upgrade_cost"
    INCREASED_BOUNTY_REWARDS = "increased_bounty_rewards"


class GuildRole(str, Enum):
    FORAGER = "forager"
    GARDENER = "gardener"
    ALCHEMIST = "alchemist"
    SEER = "seer"
    BLACKSMITH = "blacksmith"
    KNIGHT = "knight"
    ARCHER = "archer"
    WIZARD = "wizard"
    ROGUE = "rogue"
    CLERIC = "cleric"


class HuntStatus(str, Enum):
    ACTIVE = "active"
    STOPPED = "stopped"


class ExpeditionStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    READY_TO_COMPLETE = "ready_to_complete"
    COMPLETED = "completed"


class AltarTrack(str, Enum):
    LEVEL = "level"
    ECHO_MULTIPLIER = "echo_multiplier"
    RUNE_GENERATION = "rune_generation"
    GOLD_GENERATION = "gold_generation"


# --- Catalog reference data -------------------------------------------------


@dataclass(frozen=True)
class RoleCoefficients:
    """Every per-role number lives here; nothing else branches on role."""

    role: GuildRole
    dps_base: float = 0.0
    dps_per_level: float = 0.0
    hire_multiplier: float = 1.0
    upgrade_multiplier: float = 1.0
    echo_bonus_per_level: float = 0.0

    @property
    def is_combatant(self) -> bool:
        return self.dps_base > 0 or self.dps_per_level > 0


@dataclass(frozen=True)
class LootDrop:
    item_id: str
    drop_rate: float
    min_quantity: int = 1
    max_quantity: int = 1


@dataclass(frozen=True)
class EnemyDefinition:
    id: str
    name: str
    health: float
    gold_per_kill: int
    loot: List[LootDrop] = field(default_factory=list)


@dataclass(frozen=True)
class ExpeditionDefinition:
    id: str
    name: str
    description: str
    duration_seconds: float
    min_members: int
    xp_reward: int
    loot_table: Dict[str, int] = field(default_factory=dict)
    required_roles: List[GuildRole] = field(default_factory=list)


@dataclass(frozen=True)
class SpellDefinition:
    id: str
    name: str
    description: str
    required_level: int
    rune_cost: int
    effect: BuffKind
    magnitude: float = 0.0
    stat: Optional[ChimeraStat] = None
    duration_seconds: Optional[float] = None


@dataclass(frozen=True)
class BountyTemplate:
    title: str
    description: str
    required_progress: int
    guild_xp_reward: int
    guild_seal_reward: int
    target_enemy_id: Optional[str] = None


@dataclass(frozen=True)
class StatueTemplate:
    id: str
    name: str
    description: str
    required_willpower: int
    reward: PermanentBonus


# --- Actor state -------------------------------------------------------------


@dataclass
class ActiveBuff:
    kind: BuffKind
    expires_at: datetime
    magnitude: float = 0.0
    stat: Optional[ChimeraStat] = None

    @property
    def key(self) -> str:
        return buff_key(self.kind, self.stat)

    def is_active(self, now: datetime) -> bool:
        return now < self.expires_at


def buff_key(kind: BuffKind, stat: Optional[ChimeraStat] = None) -> str:
    """Registry key: one slot per kind, XP boosts get one slot per stat."""

    if kind is BuffKind.XP_BOOST and stat is not None:
        return f"{kind.value}:{stat.value}"
    return kind.value


@dataclass
class SkillTrack:
    xp: int = 0
    level: int = 1


@dataclass
class GuildMember:
    id: str
    name: str
    role: GuildRole
    level: int = 1
    busy: bool = False


@dataclass
class Altar:
    """The idle generator. ``last_updated`` only ever moves forward."""

    last_updated: datetime
    level: int = 1
    echo_multiplier_level: int = 1
    rune_generation_level: int = 0
    gold_generation_level: int = 0

    def sub_level(self, track: AltarTrack) -> int:
        return int(getattr(self, _ALTAR_FIELDS[track]))

    def increment(self, track: AltarTrack, amount: int = 1) -> int:
        name = _ALTAR_FIELDS[track]
        setattr(self, name, getattr(self, name) + amount)
        return getattr(self, name)


_ALTAR_FIELDS: Dict[AltarTrack, str] = {
    AltarTrack.LEVEL: "level",
    AltarTrack.ECHO_MULTIPLIER: "echo_multiplier_level",
    AltarTrack.RUNE_GENERATION: "rune_generation_level",
    AltarTrack.GOLD_GENERATION: "gold_generation_level",
}


@dataclass
class ActiveHunt:
    id: str
    enemy_id: str
    member_ids: List[str]
    last_updated: datetime
    kills_accumulated: int = 0
    status: HuntStatus = HuntStatus.ACTIVE


@dataclass
class ActiveExpedition:
    id: str
    expedition_id: str
    member_ids: List[str]
    start_time: datetime


@dataclass
class Guild:
    name: str = "The Rising Stars"
    level: int = 1
    xp: int = 0
    unlocked_perks: List[GuildPerk] = field(default_factory=list)

    def has_perk(self, perk: GuildPerk) -> bool:
        return perk in self.unlocked_perks


@dataclass
class Bounty:
    id: str
    title: str
    description: str
    required_progress: int
    guild_xp_reward: int
    guild_seal_reward: int
    target_enemy_id: Optional[str] = None
    progress: int = 0

    @property
    def is_complete(self) -> bool:
        return self.progress >= self.required_progress


@dataclass
class Statue:
    id: str
    name: str
    description: str
    required_willpower: int
    reward: PermanentBonus
    current_willpower: int = 0

    @property
    def is_complete(self) -> bool:
        return self.current_willpower >= self.required_willpower

    @property
    def progress(self) -> float:
        if self.required_willpower <= 0:
            return 0.0
        return self.current_willpower / self.required_willpower


def _default_skills() -> Dict[SkillCategory, SkillTrack]:
    return {category: SkillTrack() for category in SkillCategory}


@dataclass
class Actor:
    """A player and everything they exclusively own."""

    id: str
    level: int = 1
    total_xp: int = 0
    skills: Dict[SkillCategory, SkillTrack] = field(default_factory=_default_skills)
    ledger: ResourceLedger = field(default_factory=ResourceLedger)
    hunt_rewards: ResourceLedger = field(default_factory=ResourceLedger)
    buffs: Dict[str, ActiveBuff] = field(default_factory=dict)
    permanent_bonuses: List[PermanentBonus] = field(default_factory=list)
    members: List[GuildMember] = field(default_factory=list)
    hunts: List[ActiveHunt] = field(default_factory=list)
    expeditions: List[ActiveExpedition] = field(default_factory=list)
    altar: Optional[Altar] = None
    guild: Guild = field(default_factory=Guild)
    bounties: List[Bounty] = field(default_factory=list)
    statues: List[Statue] = field(default_factory=list)
    current_statue_id: Optional[str] = None
    unlocked_spell_ids: List[str] = field(default_factory=list)
    id_counter: int = 0

    def next_id(self, prefix: str) -> str:
        """Sequential IDs keep replays of the same intents identical."""

        self.id_counter += 1
        return f"{prefix}-{self.id_counter}"

    def has_bonus(self, bonus: PermanentBonus) -> bool:
        return bonus in self.permanent_bonuses

    def member(self, member_id: str) -> Optional[GuildMember]:
        return next((m for m in self.members if m.id == member_id), None)

    def members_with_role(self, role: GuildRole) -> List[GuildMember]:
        return [m for m in self.members if m.role == role]

    def hunt(self, hunt_id: str) -> Optional[ActiveHunt]:
        return next((h for h in self.hunts if h.id == hunt_id), None)

    def expedition(self, record_id: str) -> Optional[ActiveExpedition]:
        return next((e for e in self.expeditions if e.id == record_id), None)

    def bounty(self, bounty_id: str) -> Optional[Bounty]:
        return next((b for b in self.bounties if b.id == bounty_id), None)


__all__ = [
    "ResourceKind",
    "SkillCategory",
    "ChimeraStat",
    "BuffKind",
    "PermanentBonus",
    "GuildPerk",
    "GuildRole",
    "HuntStatus",
    "ExpeditionStatus",
    "AltarTrack",
    "RoleCoefficients",
    "LootDrop",
    "EnemyDefinition",
    "ExpeditionDefinition",
    "SpellDefinition",
    "BountyTemplate",
    "StatueTemplate",
    "ActiveBuff",
    "buff_key",
    "SkillTrack",
    "GuildMember",
    "Altar",
    "ActiveHunt",
    "ActiveExpedition",
    "Guild",
    "Bounty",
    "Statue",
    "Actor",
]
