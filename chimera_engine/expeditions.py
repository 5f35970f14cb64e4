"""Timed guild expeditions: launch, evaluate and claim."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .buffs import BuffRegistry
from .catalog import Catalog
from .combat import release_members, reserve_members
from .config import Settings, get_settings
from .errors import Failure
from .leveling import LevelCurve, LevelUpResult
from .models import (
    ActiveExpedition,
    Actor,
    ExpeditionDefinition,
    ExpeditionStatus,
    ResourceKind,
)

logger = logging.getLogger(__name__)


@dataclass
class ExpeditionLaunch:
    expedition: Optional[ActiveExpedition] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class ExpeditionReward:
    record_id: str = ""
    expedition_id: str = ""
    xp: int = 0
    gold: float = 0.0
    items: Dict[str, int] = field(default_factory=dict)
    level_up: Optional[LevelUpResult] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class ExpeditionResolver:
    """Runs the ``PENDING -> ACTIVE -> READY_TO_COMPLETE -> COMPLETED`` cycle.

    Status is derived from ``now`` on every call rather than stored, so an
    expedition that finished while the app was closed is simply ready.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
        buffs: BuffRegistry | None = None,
        levels: LevelCurve | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or Catalog()
        self.buffs = buffs or BuffRegistry(self.settings)
        self.levels = levels or LevelCurve(self.settings, self.buffs)

    def launch_expedition(
        self,
        actor: Actor,
        expedition_id: str,
        member_ids: Iterable[str],
        now: datetime,
        start_time: datetime | None = None,
    ) -> ExpeditionLaunch:
        definition = self.catalog.expedition(expedition_id)
        if definition is None:
            return ExpeditionLaunch(
                failure=Failure.invalid_reference("expedition", expedition_id)
            )
        members, failure = reserve_members(actor, member_ids)
        if failure is not None:
            return ExpeditionLaunch(failure=failure)
        if len(members) < definition.min_members:
            return ExpeditionLaunch(
                failure=Failure.invalid_input(
                    f"{definition.name} needs at least {definition.min_members} members"
                )
            )
        roles = {member.role for member in members}
        missing = [role.value for role in definition.required_roles if role not in roles]
        if missing:
            return ExpeditionLaunch(
                failure=Failure.invalid_input(
                    f"{definition.name} requires roles: {', '.join(missing)}"
                )
            )
        for member in members:
            member.busy = True
        record = ActiveExpedition(
            id=actor.next_id("expedition"),
            expedition_id=expedition_id,
            member_ids=[member.id for member in members],
            start_time=start_time or now,
        )
        actor.expeditions.append(record)
        return ExpeditionLaunch(expedition=record)

    def evaluate(self, record: ActiveExpedition, now: datetime) -> ExpeditionStatus:
        if now < record.start_time:
            return ExpeditionStatus.PENDING
        definition = self.catalog.expedition(record.expedition_id)
        if definition is None:
            # Nothing to wait for; completing releases the members.
            return ExpeditionStatus.READY_TO_COMPLETE
        elapsed = (now - record.start_time).total_seconds()
        if elapsed >= definition.duration_seconds:
            return ExpeditionStatus.READY_TO_COMPLETE
        return ExpeditionStatus.ACTIVE

    def ready(self, actor: Actor, now: datetime) -> List[ActiveExpedition]:
        return [
            record
            for record in actor.expeditions
            if self.evaluate(record, now) is ExpeditionStatus.READY_TO_COMPLETE
        ]

    def gold_reward(self, definition: ExpeditionDefinition, member_count: int) -> int:
        return (
            self.settings.expedition_base_gold
            + definition.xp_reward // 10
            + member_count * self.settings.expedition_gold_per_member
        )

    def complete(self, actor: Actor, record_id: str, now: datetime) -> ExpeditionReward:
        record = actor.expedition(record_id)
        if record is None:
            return ExpeditionReward(
                record_id=record_id,
                failure=Failure.invalid_reference("expedition record", record_id),
            )
        status = self.evaluate(record, now)
        if status is not ExpeditionStatus.READY_TO_COMPLETE:
            return ExpeditionReward(
                record_id=record_id,
                expedition_id=record.expedition_id,
                failure=Failure.invalid_input(f"Expedition is still {status.value}"),
            )
        reward = ExpeditionReward(record_id=record.id, expedition_id=record.expedition_id)
        definition = self.catalog.expedition(record.expedition_id)
        if definition is not None:
            reward.xp = definition.xp_reward
            reward.gold = self.gold_reward(definition, len(record.member_ids)) * (
                self.buffs.gold_multiplier(actor, now)
            )
            reward.items = dict(definition.loot_table)
            actor.ledger.add(ResourceKind.GOLD, reward.gold)
            for item_id, quantity in reward.items.items():
                actor.ledger.add(item_id, quantity)
            reward.level_up = self.levels.award_xp(actor, reward.xp, now)
            logger.info("Actor %s completed expedition %s", actor.id, definition.id)
        release_members(actor, record.member_ids)
        actor.expeditions.remove(record)
        return reward


__all__ = ["ExpeditionLaunch", "ExpeditionResolver", "ExpeditionReward"]
