"""Cost curves for hires and upgrades, including bulk purchase sizing."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from .buffs import BuffRegistry
from .catalog import Catalog
from .config import Settings, get_settings
from .errors import Failure
from .ledger import ResourceLedger
from .models import Actor, AltarTrack, GuildMember, GuildPerk, GuildRole, ResourceKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostCurve:
    """``cost(n) = base * multiplier * growth ** n`` for the n-th owned unit."""

    base: float
    growth: float
    multiplier: float = 1.0

    def unit_cost(self, existing: int) -> float:
        try:
            return self.base * self.multiplier * self.growth ** existing
        except OverflowError:
            return math.inf

    def series_cost(self, existing: int, count: int) -> float:
        """Closed-form sum of ``count`` consecutive units after ``existing``.

        Sums too large for a float are ``inf``, which no balance can cover.
        """

        if count <= 0:
            return 0.0
        first = self.unit_cost(existing)
        if self.growth == 1.0:
            return first * count
        try:
            return first * (self.growth ** count - 1.0) / (self.growth - 1.0)
        except OverflowError:
            return math.inf

    def units_within(self, existing: int, budget: float) -> Optional[int]:
        """Upper bound on how many units ``budget`` could cover, or None if unbounded."""

        first = self.unit_cost(existing)
        if first <= 0 or not math.isfinite(budget) or self.growth < 1.0:
            return None
        if first > budget:
            return 0
        if self.growth == 1.0:
            return int(budget // first)
        ratio = budget * (self.growth - 1.0) / first
        if not math.isfinite(ratio):
            return None
        return int(math.log1p(ratio) / math.log(self.growth))


@dataclass
class PurchaseResult:
    units: int = 0
    spent: float = 0.0
    resource: str = ResourceKind.GOLD.value
    discount: float = 0.0
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class HireResult(PurchaseResult):
    members: List[GuildMember] = field(default_factory=list)


def apply_discount(raw_cost: float, discount: float) -> float:
    return raw_cost * (1.0 - discount)


class EconomyScaler:
    """Prices hires, member upgrades and altar upgrades.

    The discount for a transaction is sampled once, before sizing it; a buff
    that lapses halfway through a bulk purchase does not reprice later units.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
        buffs: BuffRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or Catalog()
        self.buffs = buffs or BuffRegistry(self.settings)

    # -- curves ---------------------------------------------------------

    def hire_curve(self, role: GuildRole) -> CostCurve:
        return CostCurve(
            base=self.settings.hire_base_cost,
            growth=self.settings.hire_growth_rate,
            multiplier=self.catalog.role(role).hire_multiplier,
        )

    def upgrade_curve(self, role: GuildRole) -> CostCurve:
        return CostCurve(
            base=self.settings.upgrade_base_cost,
            growth=self.settings.upgrade_growth_rate,
            multiplier=self.catalog.role(role).upgrade_multiplier,
        )

    def altar_curve(self, track: AltarTrack) -> CostCurve:
        growth = self.settings.altar_cost_growth[track.value]
        # Generation tracks start at 0, so their first purchase costs growth ** 1.
        base = growth if track in (AltarTrack.RUNE_GENERATION, AltarTrack.GOLD_GENERATION) else 1.0
        return CostCurve(base=base, growth=growth)

    # -- discounting ----------------------------------------------------

    def discount(self, actor: Actor, now: datetime) -> float:
        total = self.buffs.upgrade_discount(actor, now)
        if actor.guild.has_perk(GuildPerk.REDUCED_UPGRADE_COST):
            total += self.settings.guild_perk_bonuses["reduced_upgrade_cost"]
        return max(0.0, min(self.settings.discount_cap, total))

    def hire_cost(self, actor: Actor, role: GuildRole, now: datetime) -> float:
        existing = len(actor.members_with_role(role))
        raw = self.hire_curve(role).unit_cost(existing)
        return apply_discount(raw, self.discount(actor, now))

    def upgrade_cost(self, actor: Actor, member: GuildMember, now: datetime) -> float:
        raw = self.upgrade_curve(member.role).unit_cost(member.level - 1)
        return apply_discount(raw, self.discount(actor, now))

    # -- bulk sizing ----------------------------------------------------

    def bulk_cost(self, curve: CostCurve, existing: int, count: int, discount: float = 0.0) -> float:
        return apply_discount(curve.series_cost(existing, count), discount)

    def max_affordable(
        self,
        curve: CostCurve,
        existing: int,
        desired: int,
        balance: float,
        discount: float = 0.0,
    ) -> int:
        """Largest ``k <= desired`` whose bulk cost fits in ``balance``.

        Binary search is valid because the series cost strictly increases in
        ``k`` for any positive unit cost. The search is capped just above what
        the balance could ever cover, so a huge ``desired`` never prices an
        overflowing power.
        """

        high = desired
        if discount < 1.0:
            ceiling = curve.units_within(existing, balance / (1.0 - discount))
            if ceiling is not None:
                high = min(desired, ceiling + 1)
        low = 0
        while low < high:
            mid = (low + high + 1) // 2
            if self.bulk_cost(curve, existing, mid, discount) <= balance:
                low = mid
            else:
                high = mid - 1
        return low

    def bulk_buy(
        self,
        ledger: ResourceLedger,
        resource: Union[str, Enum],
        curve: CostCurve,
        existing: int,
        desired: int,
        discount: float = 0.0,
    ) -> PurchaseResult:
        """Buy as many units as affordable, up to ``desired``, in one spend."""

        resource_name = resource.value if isinstance(resource, Enum) else str(resource)
        if isinstance(desired, bool) or not isinstance(desired, int) or desired <= 0:
            return PurchaseResult(
                resource=resource_name,
                failure=Failure.invalid_input("Desired count must be a positive integer"),
            )
        balance = ledger.balance(resource)
        units = self.max_affordable(curve, existing, desired, balance, discount)
        if units == 0:
            required = self.bulk_cost(curve, existing, 1, discount)
            return PurchaseResult(
                resource=resource_name,
                discount=discount,
                failure=Failure.insufficient_funds(resource_name, required, balance),
            )
        cost = self.bulk_cost(curve, existing, units, discount)
        failure = ledger.spend(resource, cost)
        if failure is not None:
            return PurchaseResult(resource=resource_name, discount=discount, failure=failure)
        return PurchaseResult(units=units, spent=cost, resource=resource_name, discount=discount)

    # -- guild purchases ------------------------------------------------

    def hire(self, actor: Actor, role: GuildRole, desired: int, now: datetime) -> HireResult:
        existing = len(actor.members_with_role(role))
        discount = self.discount(actor, now)
        purchase = self.bulk_buy(
            actor.ledger, ResourceKind.GOLD, self.hire_curve(role), existing, desired, discount
        )
        result = HireResult(
            units=purchase.units,
            spent=purchase.spent,
            resource=purchase.resource,
            discount=purchase.discount,
            failure=purchase.failure,
        )
        if not purchase.ok:
            return result
        label = role.value.capitalize()
        for _ in range(purchase.units):
            member = GuildMember(id=actor.next_id("member"), name=f"New {label}", role=role)
            actor.members.append(member)
            result.members.append(member)
        logger.info(
            "Actor %s hired %d %s for %.2f gold", actor.id, purchase.units, role.value, purchase.spent
        )
        return result

    def upgrade_member(
        self, actor: Actor, member_id: str, levels: int, now: datetime
    ) -> PurchaseResult:
        member = actor.member(member_id)
        if member is None:
            return PurchaseResult(failure=Failure.invalid_reference("guild member", member_id))
        purchase = self.bulk_buy(
            actor.ledger,
            ResourceKind.GOLD,
            self.upgrade_curve(member.role),
            member.level - 1,
            levels,
            self.discount(actor, now),
        )
        if purchase.ok:
            member.level += purchase.units
            logger.info(
                "Actor %s upgraded %s to level %d", actor.id, member.id, member.level
            )
        return purchase


__all__ = ["CostCurve", "EconomyScaler", "HireResult", "PurchaseResult", "apply_discount"]
