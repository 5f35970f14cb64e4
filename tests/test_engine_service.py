"""Tests covering the engine service orchestration."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chimera_engine.errors import ErrorKind
from chimera_engine.models import (
    BuffKind,
    ExpeditionStatus,
    GuildRole,
    ResourceKind,
    SkillCategory,
)
from chimera_engine.rng import DeterministicRNG
from chimera_engine.service import EngineService

T0 = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)


def build_service() -> EngineService:
    return EngineService(rng=DeterministicRNG(42))


def test_new_actor_is_ready_to_play():
    service = build_service()

    actor = service.new_actor("p1", T0)

    assert actor.altar is not None
    assert actor.altar.last_updated == T0
    assert len(actor.statues) == 3
    assert len(actor.bounties) == 3
    assert actor.unlocked_spell_ids == []


def test_completing_tasks_unlocks_spells_on_level_up():
    service = build_service()
    actor = service.new_actor("p1", T0)

    outcome = service.complete_task(
        actor, SkillCategory.MIND, service.levels.xp_required(5), T0
    )

    assert outcome.ok
    assert actor.level == 5
    assert {spell.id for spell in outcome.spells_unlocked} == {
        "spell_double_xp",
        "spell_double_gold",
    }


def test_bulk_hire_end_to_end():
    service = build_service()
    actor = service.new_actor("p1", T0)
    actor.ledger.add(ResourceKind.GOLD, 1000)

    result = service.bulk_hire(actor, GuildRole.KNIGHT, 5, T0)

    curve = service.economy.hire_curve(GuildRole.KNIGHT)
    assert result.units == 2
    assert curve.series_cost(0, 2) <= 1000 < curve.series_cost(0, 3)
    assert len(actor.members_with_role(GuildRole.KNIGHT)) == 2


def test_offline_catch_up_runs_idle_hunts_and_bounties():
    service = build_service()
    actor = service.new_actor("p1", T0)
    actor.ledger.add(ResourceKind.GOLD, 1000)
    knights = service.bulk_hire(actor, GuildRole.KNIGHT, 2, T0).members
    forager = service.hire(actor, GuildRole.FORAGER, T0).members[0]
    service.start_hunt(actor, "enemy_goblin", [k.id for k in knights], T0)
    service.launch_expedition(actor, "exp_forest_1", [forager.id], T0)
    service.buffs.apply(actor, BuffKind.DOUBLE_XP, 60, T0)

    report = service.apply_offline_catch_up(actor, T0 + timedelta(hours=2))

    assert report.idle.ok
    assert report.idle.accrued["echoes"] == pytest.approx(720)
    # Two level 1 knights: 6 dps -> 0.6 kills/s over 7200s
    assert report.total_kills == 4320
    assert [buff.kind for buff in report.expired_buffs] == [BuffKind.DOUBLE_XP]
    assert [r.expedition_id for r in report.ready_expeditions] == ["exp_forest_1"]
    goblins = next(b for b in actor.bounties if b.target_enemy_id == "enemy_goblin")
    assert goblins.is_complete

    claimed = service.claim_hunt_rewards(actor)
    assert claimed["gold"] == pytest.approx(8640)


def test_catch_up_twice_is_idempotent():
    service = build_service()
    actor = service.new_actor("p1", T0)
    later = T0 + timedelta(hours=1)

    service.apply_offline_catch_up(actor, later)
    echoes = actor.ledger.balance(ResourceKind.ECHOES)
    again = service.apply_offline_catch_up(actor, later)

    assert again.idle.ok
    assert again.idle.skipped.kind == ErrorKind.STALE_WINDOW
    assert actor.ledger.balance(ResourceKind.ECHOES) == echoes


def test_stop_hunt_settles_progress_first():
    service = build_service()
    actor = service.new_actor("p1", T0)
    actor.ledger.add(ResourceKind.GOLD, 250)
    knight = service.hire(actor, GuildRole.KNIGHT, T0).members[0]
    hunt = service.start_hunt(actor, "enemy_wolf", [knight.id], T0).hunt

    service.stop_hunt(actor, hunt.id, T0 + timedelta(seconds=100))

    assert hunt.kills_accumulated == 30
    assert not knight.busy


def test_claim_expedition_and_spells_flow():
    service = build_service()
    actor = service.new_actor("p1", T0)
    actor.ledger.add(ResourceKind.GOLD, 250)
    forager = service.hire(actor, GuildRole.FORAGER, T0).members[0]
    record = service.launch_expedition(actor, "exp_forest_1", [forager.id], T0).expedition

    assert service.expeditions.evaluate(record, T0) == ExpeditionStatus.ACTIVE
    reward = service.claim_expedition(actor, record.id, T0 + timedelta(hours=1))

    assert reward.ok
    assert actor.ledger.balance(ResourceKind.GOLD) == pytest.approx(85)
    assert actor.expeditions == []


def test_complete_bounty_and_statue_through_service():
    service = build_service()
    actor = service.new_actor("p1", T0)
    steps = next(b for b in actor.bounties if b.title == "Walk 5000 Steps")
    service.record_bounty_progress(actor, steps.id, 5000)

    result = service.complete_bounty(actor, steps.id, T0)

    assert result.ok
    assert actor.ledger.balance(ResourceKind.GUILD_SEALS) == 8

    actor.ledger.add(ResourceKind.WILLPOWER, 1000)
    service.chisel_statue(actor, 1000)
    assert service.complete_statue(actor).ok
    assert service.cast_spell(actor, "spell_double_xp", T0).failure.kind == ErrorKind.INVALID_INPUT


def test_bulk_hire_and_upgrade_with_huge_counts():
    service = build_service()
    actor = service.new_actor("p1", T0)
    actor.ledger.add(ResourceKind.GOLD, 1000)

    hired = service.bulk_hire(actor, GuildRole.KNIGHT, 5000, T0)

    assert hired.ok
    assert hired.units == 2

    upgraded = service.upgrade_member(actor, hired.members[0].id, T0, levels=3000)

    assert upgraded.ok
    assert upgraded.units == 2
    assert actor.ledger.balance(ResourceKind.GOLD) == pytest.approx(75)


def test_willpower_spell_pays_out_once_on_cast():
    service = build_service()
    actor = service.new_actor("p1", T0)
    actor.level = 15
    service.spellbook.unlock_spells(actor)
    actor.ledger.add(ResourceKind.RUNES, 15)

    cast = service.cast_spell(actor, "spell_surge_of_will", T0)
    report = service.apply_offline_catch_up(actor, T0 + timedelta(minutes=5))

    assert cast.willpower_granted == 100
    assert report.idle.ok
    assert "willpower" not in report.idle.accrued
    assert actor.ledger.balance(ResourceKind.WILLPOWER) == 100
