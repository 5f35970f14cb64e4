"""Conversion between typed actor state and plain, JSON-safe records.

The host owns storage. These helpers only turn an :class:`Actor` into nested
dicts of strings and numbers and back; timestamps travel as ISO-8601 strings.
Malformed records raise :class:`ValueError` so corrupt saves fail loudly at
load time rather than during play.
"""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Optional

from .ledger import ResourceLedger
from .models import (
    ActiveBuff,
    ActiveExpedition,
    ActiveHunt,
    Actor,
    Altar,
    Bounty,
    BuffKind,
    ChimeraStat,
    Guild,
    GuildMember,
    GuildPerk,
    GuildRole,
    HuntStatus,
    PermanentBonus,
    SkillCategory,
    SkillTrack,
    Statue,
)

SCHEMA_VERSION = 1


def _timestamp(value: datetime) -> str:
    return value.isoformat()


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO timestamp, got {value!r}")
    return datetime.fromisoformat(value)


def serialize_actor(actor: Actor) -> Dict[str, Any]:
    altar = None
    if actor.altar is not None:
        altar = asdict(actor.altar)
        altar["last_updated"] = _timestamp(actor.altar.last_updated)
    return {
        "version": SCHEMA_VERSION,
        "id": actor.id,
        "level": actor.level,
        "total_xp": actor.total_xp,
        "skills": {
            category.value: {"xp": track.xp, "level": track.level}
            for category, track in actor.skills.items()
        },
        "ledger": actor.ledger.snapshot(),
        "hunt_rewards": actor.hunt_rewards.snapshot(),
        "buffs": [
            {
                "kind": buff.kind.value,
                "expires_at": _timestamp(buff.expires_at),
                "magnitude": buff.magnitude,
                "stat": buff.stat.value if buff.stat else None,
            }
            for buff in actor.buffs.values()
        ],
        "permanent_bonuses": [bonus.value for bonus in actor.permanent_bonuses],
        "members": [
            {
                "id": member.id,
                "name": member.name,
                "role": member.role.value,
                "level": member.level,
                "busy": member.busy,
            }
            for member in actor.members
        ],
        "hunts": [
            {
                "id": hunt.id,
                "enemy_id": hunt.enemy_id,
                "member_ids": list(hunt.member_ids),
                "last_updated": _timestamp(hunt.last_updated),
                "kills_accumulated": hunt.kills_accumulated,
                "status": hunt.status.value,
            }
            for hunt in actor.hunts
        ],
        "expeditions": [
            {
                "id": record.id,
                "expedition_id": record.expedition_id,
                "member_ids": list(record.member_ids),
                "start_time": _timestamp(record.start_time),
            }
            for record in actor.expeditions
        ],
        "altar": altar,
        "guild": {
            "name": actor.guild.name,
            "level": actor.guild.level,
            "xp": actor.guild.xp,
            "unlocked_perks": [perk.value for perk in actor.guild.unlocked_perks],
        },
        "bounties": [asdict(bounty) for bounty in actor.bounties],
        "statues": [
            {**asdict(statue), "reward": statue.reward.value} for statue in actor.statues
        ],
        "current_statue_id": actor.current_statue_id,
        "unlocked_spell_ids": list(actor.unlocked_spell_ids),
        "id_counter": actor.id_counter,
    }


def _deserialize_buff(data: Dict[str, Any]) -> ActiveBuff:
    stat = data.get("stat")
    return ActiveBuff(
        kind=BuffKind(data["kind"]),
        expires_at=_parse_timestamp(data["expires_at"]),
        magnitude=float(data.get("magnitude", 0.0)),
        stat=ChimeraStat(stat) if stat else None,
    )


def _deserialize_altar(data: Optional[Dict[str, Any]]) -> Optional[Altar]:
    if data is None:
        return None
    return Altar(
        last_updated=_parse_timestamp(data["last_updated"]),
        level=int(data.get("level", 1)),
        echo_multiplier_level=int(data.get("echo_multiplier_level", 1)),
        rune_generation_level=int(data.get("rune_generation_level", 0)),
        gold_generation_level=int(data.get("gold_generation_level", 0)),
    )


def _build_actor(data: Dict[str, Any]) -> Actor:
    version = data.get("version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported actor record version {version}")
    skills = {category: SkillTrack() for category in SkillCategory}
    for name, track in (data.get("skills") or {}).items():
        skills[SkillCategory(name)] = SkillTrack(xp=int(track["xp"]), level=int(track["level"]))
    buffs = [_deserialize_buff(entry) for entry in data.get("buffs", [])]
    guild_data = data.get("guild") or {}
    return Actor(
        id=data["id"],
        level=int(data.get("level", 1)),
        total_xp=int(data.get("total_xp", 0)),
        skills=skills,
        ledger=ResourceLedger(data.get("ledger") or {}),
        hunt_rewards=ResourceLedger(data.get("hunt_rewards") or {}),
        buffs={buff.key: buff for buff in buffs},
        permanent_bonuses=[PermanentBonus(b) for b in data.get("permanent_bonuses", [])],
        members=[
            GuildMember(
                id=entry["id"],
                name=entry["name"],
                role=GuildRole(entry["role"]),
                level=int(entry.get("level", 1)),
                busy=bool(entry.get("busy", False)),
            )
            for entry in data.get("members", [])
        ],
        hunts=[
            ActiveHunt(
                id=entry["id"],
                enemy_id=entry["enemy_id"],
                member_ids=list(entry["member_ids"]),
                last_updated=_parse_timestamp(entry["last_updated"]),
                kills_accumulated=int(entry.get("kills_accumulated", 0)),
                status=HuntStatus(entry.get("status", HuntStatus.ACTIVE.value)),
            )
            for entry in data.get("hunts", [])
        ],
        expeditions=[
            ActiveExpedition(
                id=entry["id"],
                expedition_id=entry["expedition_id"],
                member_ids=list(entry["member_ids"]),
                start_time=_parse_timestamp(entry["start_time"]),
            )
            for entry in data.get("expeditions", [])
        ],
        altar=_deserialize_altar(data.get("altar")),
        guild=Guild(
            name=guild_data.get("name", Guild().name),
            level=int(guild_data.get("level", 1)),
            xp=int(guild_data.get("xp", 0)),
            unlocked_perks=[GuildPerk(p) for p in guild_data.get("unlocked_perks", [])],
        ),
        bounties=[Bounty(**entry) for entry in data.get("bounties", [])],
        statues=[
            Statue(**{**entry, "reward": PermanentBonus(entry["reward"])})
            for entry in data.get("statues", [])
        ],
        current_statue_id=data.get("current_statue_id"),
        unlocked_spell_ids=list(data.get("unlocked_spell_ids", [])),
        id_counter=int(data.get("id_counter", 0)),
    )


def deserialize_actor(data: Dict[str, Any]) -> Actor:
    """Rebuild an :class:`Actor`; raises ``ValueError`` for malformed records."""

    try:
        return _build_actor(data)
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Malformed actor record: {exc}") from exc


__all__ = ["SCHEMA_VERSION", "deserialize_actor", "serialize_actor"]
