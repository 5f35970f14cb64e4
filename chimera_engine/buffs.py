"""Time-expiring modifiers computed purely from a supplied ``now``."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from .config import Settings, get_settings
from .errors import Failure
from .models import Actor, ActiveBuff, BuffKind, ChimeraStat, PermanentBonus, buff_key

logger = logging.getLogger(__name__)


@dataclass
class BuffResult:
    buff: Optional[ActiveBuff] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class BuffRegistry:
    """Reads and writes the buff slots stored on an :class:`Actor`.

    Expired entries are purged lazily at the start of every read that depends
    on what is active, so no read ever observes an expired-but-present buff.
    Percentage boosts of the same kind add together; ``DOUBLE_XP`` and
    ``DOUBLE_GOLD`` are separate x2 factors.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def effective_duration(self, actor: Actor, base_seconds: float) -> float:
        if actor.has_bonus(PermanentBonus.BUFF_DURATION_INCREASE):
            return base_seconds * (1.0 + self.settings.buff_duration_bonus)
        return base_seconds

    def apply(
        self,
        actor: Actor,
        kind: BuffKind,
        base_seconds: float,
        now: datetime,
        *,
        magnitude: float = 0.0,
        stat: Optional[ChimeraStat] = None,
    ) -> BuffResult:
        """Set (or overwrite) the expiry for ``kind``; durations never stack."""

        if base_seconds <= 0:
            return BuffResult(failure=Failure.invalid_input("Buff duration must be positive"))
        duration = self.effective_duration(actor, base_seconds)
        buff = ActiveBuff(
            kind=kind,
            expires_at=now + timedelta(seconds=duration),
            magnitude=magnitude,
            stat=stat if kind is BuffKind.XP_BOOST else None,
        )
        actor.buffs[buff.key] = buff
        return BuffResult(buff=buff)

    def purge_expired(self, actor: Actor, now: datetime) -> List[ActiveBuff]:
        expired = [buff for buff in actor.buffs.values() if not buff.is_active(now)]
        for buff in expired:
            del actor.buffs[buff.key]
        if expired:
            logger.debug(
                "Purged %d expired buffs for %s", len(expired), actor.id
            )
        return expired

    def dismiss(self, actor: Actor, kind: BuffKind, stat: Optional[ChimeraStat] = None) -> bool:
        return actor.buffs.pop(buff_key(kind, stat), None) is not None

    def is_active(
        self, actor: Actor, kind: BuffKind, now: datetime, stat: Optional[ChimeraStat] = None
    ) -> bool:
        self.purge_expired(actor, now)
        return buff_key(kind, stat) in actor.buffs

    def aggregate(self, actor: Actor, kind: BuffKind, now: datetime) -> float:
        """Sum of magnitudes over every active buff of ``kind``."""

        self.purge_expired(actor, now)
        return sum(buff.magnitude for buff in actor.buffs.values() if buff.kind is kind)

    def _any_active(self, actor: Actor, kind: BuffKind, now: datetime) -> bool:
        self.purge_expired(actor, now)
        return any(buff.kind is kind for buff in actor.buffs.values())

    def xp_multiplier(self, actor: Actor, now: datetime) -> float:
        multiplier = 1.0 + self.aggregate(actor, BuffKind.XP_BOOST, now)
        if self._any_active(actor, BuffKind.DOUBLE_XP, now):
            multiplier *= 2.0
        return multiplier

    def gold_multiplier(self, actor: Actor, now: datetime) -> float:
        multiplier = 1.0 + self.aggregate(actor, BuffKind.GOLD_BOOST, now)
        if self._any_active(actor, BuffKind.DOUBLE_GOLD, now):
            multiplier *= 2.0
        return multiplier

    def rune_multiplier(self, actor: Actor, now: datetime) -> float:
        return 1.0 + self.aggregate(actor, BuffKind.RUNE_BOOST, now)

    def guild_xp_multiplier(self, actor: Actor, now: datetime) -> float:
        return 1.0 + self.aggregate(actor, BuffKind.GUILD_XP_BOOST, now)

    def upgrade_discount(self, actor: Actor, now: datetime) -> float:
        """Unclamped discount fraction from active cost-reduction buffs."""

        return self.aggregate(actor, BuffKind.REDUCED_UPGRADE_COST, now)


__all__ = ["BuffRegistry", "BuffResult"]
