"""Mutable resource counters with clamped grants and fail-closed spends."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

from .errors import Failure

Number = Union[int, float]


def _key(kind: Union[str, Enum]) -> str:
    if isinstance(kind, Enum):
        return str(kind.value)
    return str(kind)


class ResourceLedger:
    """Holds currency balances and inventory quantities keyed by name.

    ``add`` is the passive path: it accepts negative deltas and clamps the
    result at zero. ``spend`` is the purchase path: it either removes the full
    amount or nothing at all.
    """

    def __init__(self, balances: Optional[Mapping[str, Number]] = None) -> None:
        self._balances: Dict[str, Number] = {}
        for kind, amount in (balances or {}).items():
            if amount < 0:
                raise ValueError(f"Negative balance for {kind}: {amount}")
            self._balances[_key(kind)] = amount

    def balance(self, kind: Union[str, Enum]) -> Number:
        return self._balances.get(_key(kind), 0)

    def add(self, kind: Union[str, Enum], amount: Number) -> Number:
        """Apply ``amount`` (possibly negative) and return the new balance."""

        key = _key(kind)
        updated = max(0, self._balances.get(key, 0) + amount)
        self._balances[key] = updated
        return updated

    def spend(self, kind: Union[str, Enum], amount: Number) -> Optional[Failure]:
        """Remove exactly ``amount``; returns ``None`` on success."""

        key = _key(kind)
        if amount <= 0:
            return Failure.invalid_input(f"Spend amount of {key} must be positive")
        available = self._balances.get(key, 0)
        if available < amount:
            return Failure.insufficient_funds(key, amount, available)
        self._balances[key] = available - amount
        return None

    def can_afford(self, costs: Mapping[str, Number]) -> Optional[Failure]:
        for kind, amount in costs.items():
            available = self.balance(kind)
            if available < amount:
                return Failure.insufficient_funds(_key(kind), amount, available)
        return None

    def spend_many(self, costs: Mapping[str, Number]) -> Optional[Failure]:
        """Spend several resources at once, all-or-nothing."""

        if any(amount <= 0 for amount in costs.values()):
            return Failure.invalid_input("Spend amounts must be positive")
        failure = self.can_afford(costs)
        if failure is not None:
            return failure
        for kind, amount in costs.items():
            self.spend(kind, amount)
        return None

    def drain(self) -> Dict[str, Number]:
        """Empty the ledger, returning what it held."""

        contents = {key: value for key, value in self._balances.items() if value > 0}
        self._balances.clear()
        return contents

    def snapshot(self) -> Dict[str, Number]:
        return dict(self._balances)

    def items(self) -> Iterator[Tuple[str, Number]]:
        return iter(self._balances.items())

    def __contains__(self, kind: object) -> bool:
        if not isinstance(kind, (str, Enum)):
            return False
        return _key(kind) in self._balances

    def __repr__(self) -> str:
        return f"ResourceLedger({self._balances!r})"


__all__ = ["ResourceLedger", "Number"]
