"""Altar of Whispers: per-second generation and offline catch-up."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from .buffs import BuffRegistry
from .catalog import Catalog
from .config import Settings, get_settings
from .economy import EconomyScaler, PurchaseResult
from .errors import Failure
from .models import Actor, Altar, AltarTrack, ResourceKind

logger = logging.getLogger(__name__)


@dataclass
class CatchUpResult:
    """What a catch-up credited.

    A window shorter than the minimum is skipped, not failed: ``skipped``
    then carries the ``STALE_WINDOW`` reason and ``ok`` stays true.
    """

    elapsed_seconds: float = 0.0
    accrued: Dict[str, float] = field(default_factory=dict)
    skipped: Optional[Failure] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class IdleProducer:
    """Pull-based resource generation.

    Nothing runs in the background. ``catch_up`` credits everything earned
    between ``altar.last_updated`` and ``now`` and then moves
    ``last_updated`` to ``now``, so the same span is never credited twice.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
        buffs: BuffRegistry | None = None,
        economy: EconomyScaler | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or Catalog()
        self.buffs = buffs or BuffRegistry(self.settings)
        self.economy = economy or EconomyScaler(self.settings, self.catalog, self.buffs)

    def ensure_altar(self, actor: Actor, now: datetime) -> Altar:
        if actor.altar is None:
            actor.altar = Altar(last_updated=now)
        return actor.altar

    def seer_bonus(self, actor: Actor) -> float:
        return sum(
            member.level * self.catalog.role(member.role).echo_bonus_per_level
            for member in actor.members
        )

    def echo_rate(self, actor: Actor) -> float:
        altar = actor.altar
        if altar is None:
            return 0.0
        base = self.settings.echo_rate_per_level * altar.level
        multiplier = 1.0 + self.settings.echo_multiplier_step * (altar.echo_multiplier_level - 1)
        return base * multiplier * (1.0 + self.seer_bonus(actor))

    def rates(self, actor: Actor, now: datetime) -> Dict[str, float]:
        """Per-second rates, with gold and rune buffs sampled at ``now``."""

        altar = actor.altar
        if altar is None:
            return {}
        return {
            ResourceKind.ECHOES.value: self.echo_rate(actor),
            ResourceKind.GOLD.value: self.settings.gold_rate_per_level
            * altar.gold_generation_level
            * self.buffs.gold_multiplier(actor, now),
            ResourceKind.RUNES.value: self.settings.rune_rate_per_level
            * altar.rune_generation_level
            * self.buffs.rune_multiplier(actor, now),
        }

    def catch_up(self, actor: Actor, now: datetime) -> CatchUpResult:
        altar = actor.altar
        if altar is None:
            return CatchUpResult(failure=Failure.invalid_reference("altar", actor.id))
        elapsed = (now - altar.last_updated).total_seconds()
        minimum = self.settings.catch_up_min_seconds
        if elapsed < minimum:
            logger.debug("Skipping catch-up for %s: %.1fs elapsed", actor.id, elapsed)
            return CatchUpResult(
                elapsed_seconds=max(0.0, elapsed),
                skipped=Failure.stale_window(elapsed, minimum),
            )
        accrued: Dict[str, float] = {}
        for resource, rate in self.rates(actor, now).items():
            amount = rate * elapsed
            if amount <= 0:
                continue
            actor.ledger.add(resource, amount)
            accrued[resource] = amount
        altar.last_updated = now
        return CatchUpResult(elapsed_seconds=elapsed, accrued=accrued)

    def upgrade_cost(self, altar: Altar, track: AltarTrack) -> float:
        return self.economy.altar_curve(track).unit_cost(altar.sub_level(track))

    def upgrade(self, actor: Actor, track: AltarTrack) -> PurchaseResult:
        """Buy one level of ``track``, paid in echoes."""

        altar = actor.altar
        if altar is None:
            return PurchaseResult(
                resource=ResourceKind.ECHOES.value,
                failure=Failure.invalid_reference("altar", actor.id),
            )
        cost = self.upgrade_cost(altar, track)
        failure = actor.ledger.spend(ResourceKind.ECHOES, cost)
        if failure is not None:
            return PurchaseResult(resource=ResourceKind.ECHOES.value, failure=failure)
        new_level = altar.increment(track)
        logger.info("Actor %s raised altar %s to %d", actor.id, track.value, new_level)
        return PurchaseResult(units=1, spent=cost, resource=ResourceKind.ECHOES.value)


__all__ = ["CatchUpResult", "IdleProducer"]
