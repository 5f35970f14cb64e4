"""XP thresholds and level-up evaluation for players and skill tracks."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .buffs import BuffRegistry
from .config import Settings, get_settings
from .errors import Failure
from .models import Actor, PermanentBonus, ResourceKind, SkillCategory, SkillTrack

logger = logging.getLogger(__name__)


@dataclass
class LevelUpResult:
    leveled_up: bool = False
    levels_gained: int = 0
    new_level: int = 1
    gold_granted: float = 0.0
    runes_granted: int = 0
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class SkillLevelResult:
    skill: SkillCategory
    leveled_up: bool = False
    new_level: int = 1
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class TaskXPResult:
    xp_awarded: int = 0
    willpower_granted: int = 0
    player: LevelUpResult = field(default_factory=LevelUpResult)
    skill: Optional[SkillLevelResult] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def build_xp_table(max_level: int) -> List[int]:
    """Cumulative XP needed to reach each level; index 0 is unused."""

    table = [0]
    points = 0.0
    for level in range(1, max_level + 1):
        points += math.floor(level + 300.0 * 2.0 ** (level / 7.0))
        table.append(int(math.floor(points / 4.0)))
    return table


class LevelCurve:
    """Player XP curve plus the flat per-level skill curve."""

    def __init__(
        self, settings: Settings | None = None, buffs: BuffRegistry | None = None
    ) -> None:
        self.settings = settings or get_settings()
        self.buffs = buffs or BuffRegistry(self.settings)
        self._table = build_xp_table(self.settings.max_level)

    @property
    def max_level(self) -> int:
        return len(self._table) - 1

    def xp_required(self, level: int) -> int:
        """Total XP required to hold ``level``; clamps past the table."""

        if 0 < level < len(self._table):
            return self._table[level]
        return self._table[-1]

    def level_for_xp(self, total_xp: int) -> int:
        level = 1
        while level < self.max_level and total_xp >= self.xp_required(level + 1):
            level += 1
        return level

    def xp_into_level(self, actor: Actor) -> int:
        if actor.level <= 1:
            return actor.total_xp
        return actor.total_xp - self.xp_required(actor.level)

    def award_xp(self, actor: Actor, amount: int, now: datetime | None = None) -> LevelUpResult:
        """Add ``amount`` to total XP and apply every level-up it unlocks.

        Each level grants the configured gold and runes. Gold is fixed; when
        ``now`` is given the runes are scaled by the rune buffs active then.
        """

        if amount < 0:
            return LevelUpResult(
                new_level=actor.level,
                failure=Failure.invalid_input("XP amount must not be negative"),
            )
        actor.total_xp += int(amount)
        rune_multiplier = 1.0
        if now is not None:
            rune_multiplier = self.buffs.rune_multiplier(actor, now)

        result = LevelUpResult(new_level=actor.level)
        while actor.level < self.max_level and actor.total_xp >= self.xp_required(actor.level + 1):
            actor.level += 1
            gold = self.settings.level_up_gold
            runes = int(self.settings.level_up_runes * rune_multiplier)
            actor.ledger.add(ResourceKind.GOLD, gold)
            actor.ledger.add(ResourceKind.RUNES, runes)
            result.levels_gained += 1
            result.gold_granted += gold
            result.runes_granted += runes
        result.leveled_up = result.levels_gained > 0
        result.new_level = actor.level
        if result.leveled_up:
            logger.info("Actor %s reached level %d", actor.id, actor.level)
        return result

    def award_skill_xp(self, actor: Actor, skill: SkillCategory, amount: int) -> SkillLevelResult:
        track = actor.skills.setdefault(skill, SkillTrack())
        if amount < 0:
            return SkillLevelResult(
                skill=skill,
                new_level=track.level,
                failure=Failure.invalid_input("XP amount must not be negative"),
            )
        per_level = self.settings.skill_xp_per_level
        track.xp += int(amount)
        leveled = False
        while track.xp >= per_level:
            track.xp -= per_level
            track.level += 1
            leveled = True
        return SkillLevelResult(skill=skill, leveled_up=leveled, new_level=track.level)

    def boosted_task_xp(self, actor: Actor, amount: int, now: datetime) -> int:
        xp = float(amount)
        if actor.has_bonus(PermanentBonus.XP_BOOST):
            xp *= 1.0 + self.settings.permanent_xp_boost
        xp *= self.buffs.xp_multiplier(actor, now)
        return int(xp)

    def award_task_xp(
        self, actor: Actor, skill: SkillCategory, amount: int, now: datetime
    ) -> TaskXPResult:
        """Credit a completed habit task to the player, its skill and willpower."""

        if amount < 0:
            return TaskXPResult(failure=Failure.invalid_input("XP amount must not be negative"))
        boosted = self.boosted_task_xp(actor, amount, now)
        willpower = 0
        if skill is SkillCategory.STRENGTH:
            willpower = int(amount)
            actor.ledger.add(ResourceKind.WILLPOWER, willpower)
        skill_result = self.award_skill_xp(actor, skill, amount)
        player_result = self.award_xp(actor, boosted, now)
        return TaskXPResult(
            xp_awarded=boosted,
            willpower_granted=willpower,
            player=player_result,
            skill=skill_result,
        )


__all__ = [
    "LevelCurve",
    "LevelUpResult",
    "SkillLevelResult",
    "TaskXPResult",
    "build_xp_table",
]
