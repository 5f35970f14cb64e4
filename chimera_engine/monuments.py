"""Willpower-funded statues that grant permanent bonuses."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .catalog import Catalog
from .errors import Failure
from .models import Actor, PermanentBonus, ResourceKind, Statue

logger = logging.getLogger(__name__)


@dataclass
class ChiselResult:
    statue_id: Optional[str] = None
    willpower_spent: int = 0
    progress: float = 0.0
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class StatueResult:
    statue_id: Optional[str] = None
    bonus: Optional[PermanentBonus] = None
    next_statue_id: Optional[str] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class MonumentService:
    """Statues are worked on strictly in catalog order."""

    def __init__(self, catalog: Catalog | None = None) -> None:
        self.catalog = catalog or Catalog()

    def initialize_statues(self, actor: Actor) -> List[Statue]:
        if actor.statues:
            return []
        templates = self.catalog.statue_templates()
        actor.statues = [
            Statue(
                id=template.id,
                name=template.name,
                description=template.description,
                required_willpower=template.required_willpower,
                reward=template.reward,
            )
            for template in templates
        ]
        actor.current_statue_id = templates[0].id if templates else None
        return list(actor.statues)

    def current_statue(self, actor: Actor) -> Optional[Statue]:
        if actor.current_statue_id is None:
            return None
        return next((s for s in actor.statues if s.id == actor.current_statue_id), None)

    def chisel(self, actor: Actor, amount: int) -> ChiselResult:
        statue = self.current_statue(actor)
        if statue is None:
            return ChiselResult(failure=Failure.invalid_reference("statue", str(actor.current_statue_id)))
        if statue.is_complete:
            return ChiselResult(
                statue_id=statue.id,
                progress=statue.progress,
                failure=Failure.invalid_input(f"{statue.name} is already complete"),
            )
        spend = min(int(amount), int(actor.ledger.balance(ResourceKind.WILLPOWER)))
        if spend <= 0:
            return ChiselResult(
                statue_id=statue.id,
                progress=statue.progress,
                failure=Failure.invalid_input("No willpower to chisel with"),
            )
        actor.ledger.spend(ResourceKind.WILLPOWER, spend)
        statue.current_willpower += spend
        return ChiselResult(statue_id=statue.id, willpower_spent=spend, progress=statue.progress)

    def complete_statue(self, actor: Actor) -> StatueResult:
        statue = self.current_statue(actor)
        if statue is None:
            return StatueResult(failure=Failure.invalid_reference("statue", str(actor.current_statue_id)))
        if not statue.is_complete:
            return StatueResult(
                statue_id=statue.id,
                failure=Failure.invalid_input(
                    f"{statue.name} needs {statue.required_willpower - statue.current_willpower} more willpower"
                ),
            )
        if not actor.has_bonus(statue.reward):
            actor.permanent_bonuses.append(statue.reward)
        order = [template.id for template in self.catalog.statue_templates()]
        next_id: Optional[str] = None
        if statue.id in order:
            index = order.index(statue.id)
            if index + 1 < len(order):
                next_id = order[index + 1]
        actor.current_statue_id = next_id
        logger.info("Actor %s completed %s", actor.id, statue.name)
        return StatueResult(statue_id=statue.id, bonus=statue.reward, next_statue_id=next_id)


__all__ = ["ChiselResult", "MonumentService", "StatueResult"]
