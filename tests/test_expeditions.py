"""Tests for timed guild expeditions."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chimera_engine.errors import ErrorKind
from chimera_engine.expeditions import ExpeditionResolver
from chimera_engine.models import (
    ActiveExpedition,
    Actor,
    ExpeditionStatus,
    GuildMember,
    GuildRole,
    ResourceKind,
)

T0 = datetime(2025, 3, 1, 7, 30, tzinfo=timezone.utc)


def build_actor() -> Actor:
    actor = Actor(id="p1")
    actor.members.extend(
        [
            GuildMember(id="f1", name="Forager", role=GuildRole.FORAGER),
            GuildMember(id="f2", name="Forager Two", role=GuildRole.FORAGER),
            GuildMember(id="g1", name="Gardener", role=GuildRole.GARDENER),
        ]
    )
    return actor


def test_status_follows_elapsed_time():
    resolver = ExpeditionResolver()
    actor = build_actor()

    launch = resolver.launch_expedition(actor, "exp_forest_1", ["f1"], T0)

    assert launch.ok
    record = launch.expedition
    assert actor.member("f1").busy
    assert resolver.evaluate(record, T0 - timedelta(seconds=1)) == ExpeditionStatus.PENDING
    assert resolver.evaluate(record, T0 + timedelta(minutes=30)) == ExpeditionStatus.ACTIVE
    assert resolver.evaluate(record, T0 + timedelta(hours=1)) == ExpeditionStatus.READY_TO_COMPLETE


def test_scheduled_start_is_pending_until_reached():
    resolver = ExpeditionResolver()
    actor = build_actor()
    start = T0 + timedelta(hours=2)

    record = resolver.launch_expedition(actor, "exp_forest_1", ["f1"], T0, start_time=start).expedition

    assert resolver.evaluate(record, T0 + timedelta(hours=1)) == ExpeditionStatus.PENDING
    assert resolver.ready(actor, T0 + timedelta(hours=2, minutes=59)) == []
    assert resolver.ready(actor, T0 + timedelta(hours=3)) == [record]


def test_complete_grants_rewards_and_frees_members():
    resolver = ExpeditionResolver()
    actor = build_actor()
    record = resolver.launch_expedition(actor, "exp_forest_1", ["f1"], T0).expedition

    reward = resolver.complete(actor, record.id, T0 + timedelta(hours=1))

    assert reward.ok
    assert reward.xp == 100
    # 50 base + 100 / 10 + 25 per member
    assert reward.gold == pytest.approx(85)
    assert actor.total_xp == 100
    assert actor.ledger.balance(ResourceKind.GOLD) == pytest.approx(85)
    assert actor.ledger.balance("item_herb") == 3
    assert actor.ledger.balance("item_wood") == 5
    assert not actor.member("f1").busy
    assert actor.expeditions == []


def test_complete_before_duration_is_rejected():
    resolver = ExpeditionResolver()
    actor = build_actor()
    record = resolver.launch_expedition(actor, "exp_forest_1", ["f1"], T0).expedition

    reward = resolver.complete(actor, record.id, T0 + timedelta(minutes=59))

    assert reward.failure.kind == ErrorKind.INVALID_INPUT
    assert actor.expeditions == [record]
    assert actor.member("f1").busy


def test_launch_checks_member_count_and_roles():
    resolver = ExpeditionResolver()
    actor = build_actor()

    too_few = resolver.launch_expedition(actor, "exp_cave_1", ["f1"], T0)
    wrong_roles = resolver.launch_expedition(actor, "exp_cave_1", ["f1", "f2"], T0)

    assert too_few.failure.kind == ErrorKind.INVALID_INPUT
    assert wrong_roles.failure.kind == ErrorKind.INVALID_INPUT
    assert "gardener" in wrong_roles.failure.message
    assert not any(member.busy for member in actor.members)

    launched = resolver.launch_expedition(actor, "exp_cave_1", ["f1", "g1"], T0)

    assert launched.ok
    assert actor.member("g1").busy


def test_launch_unknown_expedition_is_invalid_reference():
    resolver = ExpeditionResolver()
    actor = build_actor()

    launch = resolver.launch_expedition(actor, "exp_atlantis", ["f1"], T0)

    assert launch.failure.kind == ErrorKind.INVALID_REFERENCE
    assert actor.expeditions == []


def test_busy_member_cannot_join_second_expedition():
    resolver = ExpeditionResolver()
    actor = build_actor()
    resolver.launch_expedition(actor, "exp_forest_1", ["f1"], T0)

    second = resolver.launch_expedition(actor, "exp_forest_1", ["f1"], T0)

    assert second.failure.kind == ErrorKind.INVALID_INPUT
    assert len(actor.expeditions) == 1


def test_record_for_removed_catalog_entry_completes_without_reward():
    resolver = ExpeditionResolver()
    actor = build_actor()
    actor.member("f1").busy = True
    actor.expeditions.append(
        ActiveExpedition(id="expedition-9", expedition_id="exp_retired", member_ids=["f1"], start_time=T0)
    )

    assert resolver.evaluate(actor.expeditions[0], T0) == ExpeditionStatus.READY_TO_COMPLETE

    reward = resolver.complete(actor, "expedition-9", T0)

    assert reward.ok
    assert reward.xp == 0
    assert reward.gold == 0
    assert actor.ledger.snapshot() == {}
    assert not actor.member("f1").busy
    assert actor.expeditions == []
