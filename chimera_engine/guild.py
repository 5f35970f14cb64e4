"""Guild levels, perk unlocks and daily bounties."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .buffs import BuffRegistry
from .catalog import Catalog
from .config import Settings, get_settings
from .errors import Failure
from .models import Actor, Bounty, GuildPerk, ResourceKind
from .rng import RandomSource

logger = logging.getLogger(__name__)


@dataclass
class GuildXPResult:
    xp_awarded: int = 0
    levels_gained: int = 0
    new_level: int = 1
    perks_unlocked: List[GuildPerk] = field(default_factory=list)


@dataclass
class BountyResult:
    bounty_id: str
    seals_granted: int = 0
    guild: Optional[GuildXPResult] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class GuildService:
    """Guild XP curve (``level * xp_per_level`` per level) and bounty board."""

    def __init__(
        self,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
        buffs: BuffRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or Catalog()
        self.buffs = buffs or BuffRegistry(self.settings)

    def xp_to_next_level(self, actor: Actor) -> int:
        return actor.guild.level * self.settings.guild_xp_per_level

    def add_guild_xp(
        self, actor: Actor, amount: int, now: datetime, rng: RandomSource
    ) -> GuildXPResult:
        guild = actor.guild
        multiplier = self.buffs.guild_xp_multiplier(actor, now)
        if guild.has_perk(GuildPerk.INCREASED_GUILD_XP):
            multiplier += self.settings.guild_perk_bonuses["increased_guild_xp"]
        awarded = int(max(0, amount) * multiplier)
        guild.xp += awarded
        result = GuildXPResult(xp_awarded=awarded, new_level=guild.level)
        while guild.xp >= self.xp_to_next_level(actor):
            guild.xp -= self.xp_to_next_level(actor)
            guild.level += 1
            result.levels_gained += 1
            perk = self._roll_perk(actor, rng)
            if perk is not None:
                guild.unlocked_perks.append(perk)
                result.perks_unlocked.append(perk)
        result.new_level = guild.level
        if result.levels_gained:
            logger.info("Guild of %s reached level %d", actor.id, guild.level)
        return result

    @staticmethod
    def _roll_perk(actor: Actor, rng: RandomSource) -> Optional[GuildPerk]:
        remaining = [perk for perk in GuildPerk if not actor.guild.has_perk(perk)]
        if not remaining:
            return None
        return rng.choice(remaining)

    # -- bounties -------------------------------------------------------

    def generate_daily_bounties(self, actor: Actor) -> List[Bounty]:
        """Post the daily board, unless bounties from an earlier board are still open."""

        if actor.bounties:
            return []
        posted = [
            Bounty(
                id=actor.next_id("bounty"),
                title=template.title,
                description=template.description,
                required_progress=template.required_progress,
                guild_xp_reward=template.guild_xp_reward,
                guild_seal_reward=template.guild_seal_reward,
                target_enemy_id=template.target_enemy_id,
            )
            for template in self.catalog.bounty_templates()
        ]
        actor.bounties.extend(posted)
        return posted

    def record_kills(self, actor: Actor, enemy_id: str, kills: int) -> List[Bounty]:
        if kills <= 0:
            return []
        advanced = [b for b in actor.bounties if b.target_enemy_id == enemy_id]
        for bounty in advanced:
            bounty.progress += kills
        return advanced

    def record_progress(self, actor: Actor, bounty_id: str, amount: int) -> BountyResult:
        bounty = actor.bounty(bounty_id)
        if bounty is None:
            return BountyResult(bounty_id=bounty_id, failure=Failure.invalid_reference("bounty", bounty_id))
        if amount < 0:
            return BountyResult(
                bounty_id=bounty_id, failure=Failure.invalid_input("Progress must not be negative")
            )
        bounty.progress += amount
        return BountyResult(bounty_id=bounty_id)

    def seal_reward(self, actor: Actor, bounty: Bounty) -> int:
        seals = float(bounty.guild_seal_reward)
        if actor.guild.has_perk(GuildPerk.INCREASED_BOUNTY_REWARDS):
            seals *= 1.0 + self.settings.guild_perk_bonuses["increased_bounty_rewards"]
        return int(seals)

    def complete_bounty(
        self, actor: Actor, bounty_id: str, now: datetime, rng: RandomSource
    ) -> BountyResult:
        bounty = actor.bounty(bounty_id)
        if bounty is None:
            return BountyResult(bounty_id=bounty_id, failure=Failure.invalid_reference("bounty", bounty_id))
        if not bounty.is_complete:
            return BountyResult(
                bounty_id=bounty_id,
                failure=Failure.invalid_input(
                    f"{bounty.title} is at {bounty.progress}/{bounty.required_progress}"
                ),
            )
        seals = self.seal_reward(actor, bounty)
        actor.ledger.add(ResourceKind.GUILD_SEALS, seals)
        actor.bounties.remove(bounty)
        guild_result = self.add_guild_xp(actor, bounty.guild_xp_reward, now, rng)
        logger.info("Actor %s completed bounty %s", actor.id, bounty.title)
        return BountyResult(bounty_id=bounty_id, seals_granted=seals, guild=guild_result)


__all__ = ["BountyResult", "GuildService", "GuildXPResult"]
