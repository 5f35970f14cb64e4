"""Tests for clamped grants and fail-closed spends."""
from __future__ import annotations

import pytest

from chimera_engine.errors import ErrorKind
from chimera_engine.ledger import ResourceLedger
from chimera_engine.models import ResourceKind


def test_add_negative_clamps_at_zero():
    ledger = ResourceLedger({"gold": 30})

    assert ledger.add(ResourceKind.GOLD, -100) == 0
    assert ledger.balance("gold") == 0


def test_spend_more_than_balance_leaves_balance_unchanged():
    ledger = ResourceLedger({"runes": 4})

    failure = ledger.spend(ResourceKind.RUNES, 10)

    assert failure is not None
    assert failure.kind == ErrorKind.INSUFFICIENT_FUNDS
    assert failure.resource == "runes"
    assert failure.shortfall == pytest.approx(6)
    assert ledger.balance(ResourceKind.RUNES) == 4


def test_spend_exact_amount_succeeds():
    ledger = ResourceLedger({"gold": 250.0})

    assert ledger.spend("gold", 250.0) is None
    assert ledger.balance("gold") == 0


@pytest.mark.parametrize("amount", [0, -5])
def test_spend_rejects_non_positive_amount(amount):
    ledger = ResourceLedger({"gold": 10})

    failure = ledger.spend("gold", amount)

    assert failure is not None
    assert failure.kind == ErrorKind.INVALID_INPUT
    assert ledger.balance("gold") == 10


def test_spend_many_is_all_or_nothing():
    ledger = ResourceLedger({"gold": 100, "runes": 1})

    failure = ledger.spend_many({"gold": 50, "runes": 2})

    assert failure is not None
    assert failure.resource == "runes"
    assert ledger.snapshot() == {"gold": 100, "runes": 1}

    assert ledger.spend_many({"gold": 50, "runes": 1}) is None
    assert ledger.snapshot() == {"gold": 50, "runes": 0}


def test_enum_and_string_keys_share_a_balance():
    ledger = ResourceLedger()
    ledger.add(ResourceKind.GUILD_SEALS, 3)
    ledger.add("guild_seals", 2)

    assert ledger.balance(ResourceKind.GUILD_SEALS) == 5
    assert ResourceKind.GUILD_SEALS in ledger
    assert "echoes" not in ledger


def test_inventory_items_are_counted_alongside_currency():
    ledger = ResourceLedger()
    ledger.add("material_essence", 2)
    ledger.add("material_essence", 1)

    assert ledger.balance("material_essence") == 3


def test_drain_empties_and_returns_positive_balances():
    ledger = ResourceLedger({"gold": 12, "item_herb": 0})

    assert ledger.drain() == {"gold": 12}
    assert ledger.snapshot() == {}


def test_negative_initial_balance_raises():
    with pytest.raises(ValueError):
        ResourceLedger({"gold": -1})
