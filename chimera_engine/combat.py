"""Guild hunts: DPS aggregation, kill accrual and loot resolution."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .buffs import BuffRegistry
from .catalog import Catalog
from .config import Settings, get_settings
from .errors import Failure
from .ledger import Number
from .models import Actor, ActiveHunt, GuildMember, HuntStatus, ResourceKind
from .rng import RandomSource

logger = logging.getLogger(__name__)


def reserve_members(
    actor: Actor, member_ids: Iterable[str]
) -> Tuple[List[GuildMember], Optional[Failure]]:
    """Resolve ``member_ids`` to idle members without marking them busy."""

    ids = list(member_ids)
    if not ids:
        return [], Failure.invalid_input("At least one guild member is required")
    if len(set(ids)) != len(ids):
        return [], Failure.invalid_input("A guild member may only be assigned once")
    members: List[GuildMember] = []
    for member_id in ids:
        member = actor.member(member_id)
        if member is None:
            return [], Failure.invalid_reference("guild member", member_id)
        if member.busy:
            return [], Failure.invalid_input(f"{member.name} is already on assignment")
        members.append(member)
    return members, None


def release_members(actor: Actor, member_ids: Iterable[str]) -> None:
    for member_id in member_ids:
        member = actor.member(member_id)
        if member is not None:
            member.busy = False


@dataclass
class HuntTick:
    hunt_id: str
    enemy_id: str
    kills: int = 0
    gold: float = 0.0
    loot: Dict[str, int] = field(default_factory=dict)


@dataclass
class HuntResult:
    hunt: Optional[ActiveHunt] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class CombatSimulator:
    """Turns guild member DPS into kills, gold and item drops."""

    def __init__(
        self,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
        buffs: BuffRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or Catalog()
        self.buffs = buffs or BuffRegistry(self.settings)

    def combat_dps(self, member: GuildMember) -> float:
        coefficients = self.catalog.role(member.role)
        if not coefficients.is_combatant:
            return 0.0
        return coefficients.dps_base + coefficients.dps_per_level * member.level

    def aggregate_dps(self, members: Iterable[GuildMember]) -> float:
        return sum(self.combat_dps(member) for member in members)

    def kills_per_second(self, members: Iterable[GuildMember]) -> float:
        return self.aggregate_dps(members) / self.settings.kill_divisor

    def gold_per_kill(self, enemy_id: str) -> int:
        enemy = self.catalog.enemy(enemy_id)
        if enemy is None:
            return self.settings.default_gold_per_kill
        return enemy.gold_per_kill

    def roll_loot(self, enemy_id: str, kills: int, rng: RandomSource) -> Dict[str, int]:
        """One independent trial per loot-pool entry for a batch of kills."""

        if kills <= 0:
            return {}
        base_chance = min(kills * self.settings.loot_chance_per_kill, self.settings.loot_chance_cap)
        loot: Dict[str, int] = {}
        for drop in self.catalog.loot_pool(enemy_id):
            if rng.random() < base_chance * drop.drop_rate:
                quantity = rng.randint(drop.min_quantity, drop.max_quantity)
                loot[drop.item_id] = loot.get(drop.item_id, 0) + quantity
        return loot

    def tick(
        self,
        hunt: ActiveHunt,
        members: Iterable[GuildMember],
        delta_seconds: float,
        now: datetime,
        rng: RandomSource,
        gold_multiplier: float = 1.0,
    ) -> HuntTick:
        # Round away float noise before flooring; 2.3 * 100 is 229.99999999999997.
        raw_kills = self.kills_per_second(members) * max(0.0, delta_seconds)
        new_kills = max(0, math.floor(round(raw_kills, 9)))
        hunt.kills_accumulated += new_kills
        hunt.last_updated = now
        return HuntTick(
            hunt_id=hunt.id,
            enemy_id=hunt.enemy_id,
            kills=new_kills,
            gold=new_kills * self.gold_per_kill(hunt.enemy_id) * gold_multiplier,
            loot=self.roll_loot(hunt.enemy_id, new_kills, rng),
        )

    # -- hunt lifecycle -------------------------------------------------

    def start_hunt(
        self, actor: Actor, enemy_id: str, member_ids: Iterable[str], now: datetime
    ) -> HuntResult:
        members, failure = reserve_members(actor, member_ids)
        if failure is not None:
            return HuntResult(failure=failure)
        if self.catalog.enemy(enemy_id) is None:
            logger.warning("Starting hunt against unresolved enemy %s with defaults", enemy_id)
        for member in members:
            member.busy = True
        hunt = ActiveHunt(
            id=actor.next_id("hunt"),
            enemy_id=enemy_id,
            member_ids=[member.id for member in members],
            last_updated=now,
        )
        actor.hunts.append(hunt)
        return HuntResult(hunt=hunt)

    def stop_hunt(self, actor: Actor, hunt_id: str) -> HuntResult:
        hunt = actor.hunt(hunt_id)
        if hunt is None:
            return HuntResult(failure=Failure.invalid_reference("hunt", hunt_id))
        if hunt.status is HuntStatus.ACTIVE:
            release_members(actor, hunt.member_ids)
            hunt.status = HuntStatus.STOPPED
        return HuntResult(hunt=hunt)

    def resume_hunt(self, actor: Actor, hunt_id: str, now: datetime) -> HuntResult:
        hunt = actor.hunt(hunt_id)
        if hunt is None:
            return HuntResult(failure=Failure.invalid_reference("hunt", hunt_id))
        if hunt.status is HuntStatus.ACTIVE:
            return HuntResult(hunt=hunt)
        members, failure = reserve_members(actor, hunt.member_ids)
        if failure is not None:
            return HuntResult(hunt=hunt, failure=failure)
        for member in members:
            member.busy = True
        hunt.status = HuntStatus.ACTIVE
        # The stopped span earns nothing.
        hunt.last_updated = now
        return HuntResult(hunt=hunt)

    def tick_hunts(self, actor: Actor, now: datetime, rng: RandomSource) -> List[HuntTick]:
        """Advance every active hunt to ``now`` and bank rewards as unclaimed."""

        gold_multiplier = self.buffs.gold_multiplier(actor, now)
        ticks: List[HuntTick] = []
        for hunt in actor.hunts:
            if hunt.status is not HuntStatus.ACTIVE:
                continue
            delta = (now - hunt.last_updated).total_seconds()
            if delta <= 0:
                continue
            members = [m for m in (actor.member(i) for i in hunt.member_ids) if m is not None]
            # One stream per hunt and tick.
            hunt_rng = rng.fork(f"{hunt.id}:{now.isoformat()}")
            tick = self.tick(hunt, members, delta, now, hunt_rng, gold_multiplier)
            if tick.gold:
                actor.hunt_rewards.add(ResourceKind.GOLD, tick.gold)
            for item_id, quantity in tick.loot.items():
                actor.hunt_rewards.add(item_id, quantity)
            ticks.append(tick)
        return ticks

    def claim_hunt_rewards(self, actor: Actor) -> Dict[str, Number]:
        claimed = actor.hunt_rewards.drain()
        for resource, amount in claimed.items():
            actor.ledger.add(resource, amount)
        return claimed


__all__ = [
    "CombatSimulator",
    "HuntResult",
    "HuntTick",
    "release_members",
    "reserve_members",
]
