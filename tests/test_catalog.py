"""Tests for catalog loading and unresolved-ID fallbacks."""
from __future__ import annotations

import logging

from chimera_engine.catalog import Catalog
from chimera_engine.models import BuffKind, ChimeraStat, GuildRole, PermanentBonus


def test_packaged_catalog_loads_every_section():
    catalog = Catalog()

    assert catalog.enemy("enemy_dragon").gold_per_kill == 25
    assert catalog.expedition("exp_cave_1").required_roles == [GuildRole.FORAGER, GuildRole.GARDENER]
    assert len(catalog.spells()) == 9
    assert len(catalog.bounty_templates()) == 3
    assert catalog.statue_templates()[-1].reward == PermanentBonus.BUFF_DURATION_INCREASE


def test_spell_entries_are_typed():
    spell = Catalog().spell("spell_resilience_boost")

    assert spell.effect == BuffKind.XP_BOOST
    assert spell.stat == ChimeraStat.RESILIENCE
    assert spell.duration_seconds == 3600


def test_role_table_is_single_source_of_coefficients():
    catalog = Catalog()

    assert catalog.role(GuildRole.ARCHER).dps_base == 2.5
    assert catalog.role(GuildRole.ARCHER).upgrade_multiplier == 1.2
    assert not catalog.role(GuildRole.GARDENER).is_combatant
    assert catalog.role(GuildRole.SEER).echo_bonus_per_level == 0.1


def test_unknown_ids_fall_back_and_log(caplog):
    catalog = Catalog()

    with caplog.at_level(logging.WARNING, logger="chimera_engine.catalog"):
        assert catalog.enemy("enemy_kraken") is None
        assert catalog.expedition("exp_moon") is None
        assert catalog.spell("spell_nope") is None

    assert "enemy_kraken" in caplog.text
    assert [drop.item_id for drop in catalog.loot_pool("enemy_kraken")] == ["material_essence"]


def test_custom_data_path_with_missing_files(tmp_path, caplog):
    (tmp_path / "roles.yaml").write_text("roles:\n  knight:\n    dps_base: 9\n", encoding="utf-8")

    catalog = Catalog(tmp_path)

    assert catalog.role(GuildRole.KNIGHT).dps_base == 9
    assert catalog.spells() == []
    with caplog.at_level(logging.WARNING, logger="chimera_engine.catalog"):
        neutral = catalog.role(GuildRole.WIZARD)
    assert neutral.dps_base == 0
    assert neutral.hire_multiplier == 1.0
    assert "wizard" in caplog.text.lower()
