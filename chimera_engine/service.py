"""High-level engine service combining the progression and economy systems."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List

from .buffs import BuffRegistry
from .catalog import Catalog
from .combat import CombatSimulator, HuntResult, HuntTick
from .config import Settings, get_settings
from .economy import EconomyScaler, HireResult, PurchaseResult
from .expeditions import ExpeditionLaunch, ExpeditionResolver, ExpeditionReward
from .guild import BountyResult, GuildService
from .idle import CatchUpResult, IdleProducer
from .leveling import LevelCurve, TaskXPResult
from .ledger import Number
from .models import (
    ActiveBuff,
    ActiveExpedition,
    Actor,
    AltarTrack,
    Bounty,
    GuildRole,
    SkillCategory,
    SpellDefinition,
)
from .monuments import ChiselResult, MonumentService, StatueResult
from .rng import DeterministicRNG, RandomSource
from .spells import CastResult, Spellbook

logger = logging.getLogger(__name__)


@dataclass
class TaskOutcome:
    xp: TaskXPResult
    spells_unlocked: List[SpellDefinition] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.xp.ok


@dataclass
class OfflineReport:
    """Everything credited by one offline catch-up."""

    idle: CatchUpResult
    hunt_ticks: List[HuntTick] = field(default_factory=list)
    expired_buffs: List[ActiveBuff] = field(default_factory=list)
    ready_expeditions: List[ActiveExpedition] = field(default_factory=list)

    @property
    def total_kills(self) -> int:
        return sum(tick.kills for tick in self.hunt_ticks)


class EngineService:
    """Coordinates the component services around a single actor at a time.

    Every intent takes the actor to mutate and the current time. Components
    share one :class:`Settings`, one :class:`Catalog` and one
    :class:`BuffRegistry`, so modifiers are read the same way everywhere.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or Catalog()
        self._rng = rng or DeterministicRNG(seed=42)
        self.buffs = BuffRegistry(self.settings)
        self.levels = LevelCurve(self.settings, self.buffs)
        self.economy = EconomyScaler(self.settings, self.catalog, self.buffs)
        self.idle = IdleProducer(self.settings, self.catalog, self.buffs, self.economy)
        self.combat = CombatSimulator(self.settings, self.catalog, self.buffs)
        self.expeditions = ExpeditionResolver(self.settings, self.catalog, self.buffs, self.levels)
        self.spellbook = Spellbook(self.settings, self.catalog, self.buffs)
        self.guild = GuildService(self.settings, self.catalog, self.buffs)
        self.monuments = MonumentService(self.catalog)

    # -- actor lifecycle ------------------------------------------------

    def new_actor(self, actor_id: str, now: datetime) -> Actor:
        actor = Actor(id=actor_id)
        self.idle.ensure_altar(actor, now)
        self.monuments.initialize_statues(actor)
        self.guild.generate_daily_bounties(actor)
        self.spellbook.unlock_spells(actor)
        return actor

    def complete_task(
        self, actor: Actor, skill: SkillCategory, xp: int, now: datetime
    ) -> TaskOutcome:
        result = self.levels.award_task_xp(actor, skill, xp, now)
        outcome = TaskOutcome(xp=result)
        if result.ok and result.player.leveled_up:
            outcome.spells_unlocked = self.spellbook.unlock_spells(actor)
        return outcome

    # -- economy --------------------------------------------------------

    def hire(self, actor: Actor, role: GuildRole, now: datetime) -> HireResult:
        return self.economy.hire(actor, role, 1, now)

    def bulk_hire(self, actor: Actor, role: GuildRole, desired: int, now: datetime) -> HireResult:
        return self.economy.hire(actor, role, desired, now)

    def upgrade_member(
        self, actor: Actor, member_id: str, now: datetime, levels: int = 1
    ) -> PurchaseResult:
        return self.economy.upgrade_member(actor, member_id, levels, now)

    def upgrade_altar(self, actor: Actor, track: AltarTrack) -> PurchaseResult:
        return self.idle.upgrade(actor, track)

    # -- time ------------------------------------------------------------

    def apply_offline_catch_up(self, actor: Actor, now: datetime) -> OfflineReport:
        """Credit idle generation and hunts for the span since the last visit."""

        expired = self.buffs.purge_expired(actor, now)
        self.idle.ensure_altar(actor, now)
        report = OfflineReport(idle=self.idle.catch_up(actor, now), expired_buffs=expired)
        report.hunt_ticks = self.tick_hunts(actor, now)
        report.ready_expeditions = self.expeditions.ready(actor, now)
        logger.debug(
            "Catch-up for %s: %.0fs idle, %d kills, %d expeditions ready",
            actor.id,
            report.idle.elapsed_seconds,
            report.total_kills,
            len(report.ready_expeditions),
        )
        return report

    # -- hunts -----------------------------------------------------------

    def start_hunt(
        self, actor: Actor, enemy_id: str, member_ids: Iterable[str], now: datetime
    ) -> HuntResult:
        return self.combat.start_hunt(actor, enemy_id, member_ids, now)

    def stop_hunt(self, actor: Actor, hunt_id: str, now: datetime | None = None) -> HuntResult:
        if now is not None:
            self.tick_hunts(actor, now)
        return self.combat.stop_hunt(actor, hunt_id)

    def resume_hunt(self, actor: Actor, hunt_id: str, now: datetime) -> HuntResult:
        return self.combat.resume_hunt(actor, hunt_id, now)

    def tick_hunts(self, actor: Actor, now: datetime) -> List[HuntTick]:
        ticks = self.combat.tick_hunts(actor, now, self._rng)
        for tick in ticks:
            self.guild.record_kills(actor, tick.enemy_id, tick.kills)
        return ticks

    def claim_hunt_rewards(self, actor: Actor) -> Dict[str, Number]:
        return self.combat.claim_hunt_rewards(actor)

    # -- expeditions -----------------------------------------------------

    def launch_expedition(
        self, actor: Actor, expedition_id: str, member_ids: Iterable[str], now: datetime
    ) -> ExpeditionLaunch:
        return self.expeditions.launch_expedition(actor, expedition_id, member_ids, now)

    def claim_expedition(self, actor: Actor, record_id: str, now: datetime) -> ExpeditionReward:
        reward = self.expeditions.complete(actor, record_id, now)
        if reward.level_up is not None and reward.level_up.leveled_up:
            self.spellbook.unlock_spells(actor)
        return reward

    # -- spells, guild, monuments ---------------------------------------

    def cast_spell(self, actor: Actor, spell_id: str, now: datetime) -> CastResult:
        return self.spellbook.cast(actor, spell_id, now)

    def complete_bounty(self, actor: Actor, bounty_id: str, now: datetime) -> BountyResult:
        return self.guild.complete_bounty(actor, bounty_id, now, self._rng)

    def record_bounty_progress(self, actor: Actor, bounty_id: str, amount: int) -> BountyResult:
        return self.guild.record_progress(actor, bounty_id, amount)

    def refresh_bounties(self, actor: Actor) -> List[Bounty]:
        return self.guild.generate_daily_bounties(actor)

    def chisel_statue(self, actor: Actor, amount: int) -> ChiselResult:
        return self.monuments.chisel(actor, amount)

    def complete_statue(self, actor: Actor) -> StatueResult:
        return self.monuments.complete_statue(actor)


__all__ = ["EngineService", "OfflineReport", "TaskOutcome"]
