"""Spell unlocks and casting: runes in, timed buffs out."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .buffs import BuffRegistry
from .catalog import Catalog
from .config import Settings, get_settings
from .errors import Failure
from .models import ActiveBuff, Actor, BuffKind, ResourceKind, SpellDefinition

logger = logging.getLogger(__name__)


@dataclass
class CastResult:
    spell_id: str
    runes_spent: int = 0
    buff: Optional[ActiveBuff] = None
    willpower_granted: int = 0
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class Spellbook:
    def __init__(
        self,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
        buffs: BuffRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or Catalog()
        self.buffs = buffs or BuffRegistry(self.settings)

    def unlock_spells(self, actor: Actor) -> List[SpellDefinition]:
        """Unlock every spell the actor's level qualifies for; returns new ones."""

        unlocked: List[SpellDefinition] = []
        for spell in self.catalog.spells():
            if spell.required_level <= actor.level and spell.id not in actor.unlocked_spell_ids:
                actor.unlocked_spell_ids.append(spell.id)
                unlocked.append(spell)
        if unlocked:
            logger.info(
                "Actor %s unlocked spells: %s", actor.id, ", ".join(s.id for s in unlocked)
            )
        return unlocked

    def cast(self, actor: Actor, spell_id: str, now: datetime) -> CastResult:
        spell = self.catalog.spell(spell_id)
        if spell is None:
            return CastResult(spell_id=spell_id, failure=Failure.invalid_reference("spell", spell_id))
        if spell_id not in actor.unlocked_spell_ids:
            return CastResult(
                spell_id=spell_id,
                failure=Failure.invalid_input(
                    f"{spell.name} unlocks at level {spell.required_level}"
                ),
            )
        duration = spell.duration_seconds or self.settings.buff_default_duration_seconds
        if spell.rune_cost > 0:
            failure = actor.ledger.spend(ResourceKind.RUNES, spell.rune_cost)
            if failure is not None:
                return CastResult(spell_id=spell_id, failure=failure)
        applied = self.buffs.apply(
            actor, spell.effect, duration, now, magnitude=spell.magnitude, stat=spell.stat
        )
        result = CastResult(spell_id=spell_id, runes_spent=spell.rune_cost, buff=applied.buff)
        if spell.effect is BuffKind.WILLPOWER_GEN:
            # Paid once on cast; catch-up never credits willpower from the buff.
            result.willpower_granted = int(spell.magnitude)
            actor.ledger.add(ResourceKind.WILLPOWER, result.willpower_granted)
        logger.info("Actor %s cast %s", actor.id, spell.id)
        return result


__all__ = ["CastResult", "Spellbook"]
