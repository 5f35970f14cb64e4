"""Tests for time-expiring buffs."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chimera_engine.buffs import BuffRegistry
from chimera_engine.errors import ErrorKind
from chimera_engine.models import Actor, BuffKind, ChimeraStat, PermanentBonus

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_double_gold_expires_after_duration():
    registry = BuffRegistry()
    actor = Actor(id="p1")

    registry.apply(actor, BuffKind.DOUBLE_GOLD, 600, T0)

    assert registry.is_active(actor, BuffKind.DOUBLE_GOLD, T0 + timedelta(seconds=599))
    assert not registry.is_active(actor, BuffKind.DOUBLE_GOLD, T0 + timedelta(seconds=601))


def test_expiry_boundary_is_exclusive():
    registry = BuffRegistry()
    actor = Actor(id="p1")
    registry.apply(actor, BuffKind.DOUBLE_XP, 600, T0)

    assert not registry.is_active(actor, BuffKind.DOUBLE_XP, T0 + timedelta(seconds=600))
    assert actor.buffs == {}


def test_reapplying_overwrites_instead_of_stacking():
    registry = BuffRegistry()
    actor = Actor(id="p1")

    registry.apply(actor, BuffKind.DOUBLE_GOLD, 600, T0)
    registry.apply(actor, BuffKind.DOUBLE_GOLD, 600, T0 + timedelta(seconds=100))

    assert len(actor.buffs) == 1
    assert actor.buffs["double_gold"].expires_at == T0 + timedelta(seconds=700)


def test_permanent_duration_bonus_extends_buffs():
    registry = BuffRegistry()
    actor = Actor(id="p1", permanent_bonuses=[PermanentBonus.BUFF_DURATION_INCREASE])

    result = registry.apply(actor, BuffKind.RUNE_BOOST, 600, T0, magnitude=0.1)

    assert result.ok
    assert result.buff.expires_at == T0 + timedelta(seconds=660)


@pytest.mark.parametrize("duration", [0, -30])
def test_non_positive_duration_is_rejected(duration):
    registry = BuffRegistry()
    actor = Actor(id="p1")

    result = registry.apply(actor, BuffKind.GOLD_BOOST, duration, T0, magnitude=0.1)

    assert result.failure.kind == ErrorKind.INVALID_INPUT
    assert actor.buffs == {}


def test_percentage_boosts_add_and_double_multiplies():
    registry = BuffRegistry()
    actor = Actor(id="p1")
    registry.apply(actor, BuffKind.GOLD_BOOST, 3600, T0, magnitude=0.15)
    registry.apply(actor, BuffKind.DOUBLE_GOLD, 600, T0)

    assert registry.gold_multiplier(actor, T0 + timedelta(minutes=5)) == pytest.approx(2.3)
    # Double gold has lapsed; the percentage boost remains.
    assert registry.gold_multiplier(actor, T0 + timedelta(minutes=20)) == pytest.approx(1.15)


def test_xp_boosts_for_different_stats_occupy_separate_slots():
    registry = BuffRegistry()
    actor = Actor(id="p1")
    registry.apply(actor, BuffKind.XP_BOOST, 3600, T0, magnitude=0.2, stat=ChimeraStat.RESILIENCE)
    registry.apply(actor, BuffKind.XP_BOOST, 300, T0, magnitude=0.5, stat=ChimeraStat.INTELLECT)

    assert len(actor.buffs) == 2
    assert registry.xp_multiplier(actor, T0) == pytest.approx(1.7)
    assert registry.is_active(actor, BuffKind.XP_BOOST, T0, stat=ChimeraStat.INTELLECT)


def test_purge_removes_only_expired_entries():
    registry = BuffRegistry()
    actor = Actor(id="p1")
    registry.apply(actor, BuffKind.DOUBLE_XP, 60, T0)
    registry.apply(actor, BuffKind.GUILD_XP_BOOST, 3600, T0, magnitude=0.25)

    expired = registry.purge_expired(actor, T0 + timedelta(minutes=2))

    assert [buff.kind for buff in expired] == [BuffKind.DOUBLE_XP]
    assert list(actor.buffs) == ["guild_xp_boost"]


def test_dismiss_takes_effect_immediately():
    registry = BuffRegistry()
    actor = Actor(id="p1")
    registry.apply(actor, BuffKind.REDUCED_UPGRADE_COST, 3600, T0, magnitude=0.1)

    assert registry.dismiss(actor, BuffKind.REDUCED_UPGRADE_COST)
    assert registry.upgrade_discount(actor, T0) == 0
    assert not registry.dismiss(actor, BuffKind.REDUCED_UPGRADE_COST)
