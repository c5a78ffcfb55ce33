"""Enumerations and lookup helpers for the Monarchy rules engine."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import TypeVar

T = TypeVar("T")


class Race(StrEnum):
    """Playable races. Used purely as a key into per-race tables."""

    HUMAN = "human"
    ELVEN = "elven"
    GOBLIN = "goblin"
    DROBEN = "droben"
    VAMPIRE = "vampire"
    ELEMENTAL = "elemental"
    CENTAUR = "centaur"
    SIDHE = "sidhe"
    DWARVEN = "dwarven"
    FAE = "fae"

    @classmethod
    def parse(cls, value: str | Race | None) -> Race | None:
        """Resolve a race identifier case-insensitively, ``None`` if unknown."""

        if value is None:
            return None
        if isinstance(value, Race):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


def lookup_by_race(table: Mapping[Race, T], race: str | Race | None, default: T) -> T:
    """Total lookup into a race-keyed table.

    Unknown identifiers and races missing from ``table`` resolve to ``default``.
    """

    parsed = Race.parse(race)
    if parsed is None:
        return default
    return table.get(parsed, default)


class Age(StrEnum):
    """Phases of a game round."""

    EARLY = "early"
    MIDDLE = "middle"
    LATE = "late"


class CostType(StrEnum):
    BUILDING = "building"
    TRAINING = "training"


class TransitionWarning(StrEnum):
    NONE = "none"
    APPROACHING = "approaching"
    IMMINENT = "imminent"


class ResultTier(StrEnum):
    """Narrated outcome of a resolved attack."""

    WITH_EASE = "with_ease"
    GOOD_FIGHT = "good_fight"
    FAILED = "failed"


class AttackType(StrEnum):
    FULL_ATTACK = "full_attack"
    CONTROLLED_STRIKE = "controlled_strike"
    AMBUSH = "ambush"
    GUERILLA_RAID = "guerilla_raid"
    MOB_ASSAULT = "mob_assault"


class ScumOperationType(StrEnum):
    """Thievery operations a kingdom can send its scum on."""

    SCOUT = "scout"
    STEAL = "steal"
    SABOTAGE = "sabotage"
    INTERCEPT = "intercept"
    BURN = "burn"


class ScumTier(StrEnum):
    GREEN = "green"
    ELITE = "elite"


class ThreatLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FaithAlignment(StrEnum):
    ANGELIQUE = "angelique"
    NEUTRAL = "neutral"
    ELEMENTAL = "elemental"


class FocusAbility(StrEnum):
    """Abilities purchasable with focus points."""

    ENHANCED_RACIAL_ABILITY = "ENHANCED_RACIAL_ABILITY"
    SPELL_POWER_BOOST = "SPELL_POWER_BOOST"
    COMBAT_FOCUS = "COMBAT_FOCUS"
    ECONOMIC_FOCUS = "ECONOMIC_FOCUS"
    EMERGENCY_ACTION = "EMERGENCY_ACTION"


class FocusEffectType(StrEnum):
    """Timed effects produced by focus abilities."""

    RACIAL_ABILITY_BOOST = "RACIAL_ABILITY_BOOST"
    SPELL_POWER_BOOST = "SPELL_POWER_BOOST"
    COMBAT_FOCUS_BONUS = "COMBAT_FOCUS_BONUS"
    ECONOMIC_FOCUS_BONUS = "ECONOMIC_FOCUS_BONUS"


class SafetyLevel(StrEnum):
    SAFE = "safe"
    MODERATE = "moderate"
    DANGEROUS = "dangerous"


class GuildStatus(StrEnum):
    MAJOR = "major"
    MINOR = "minor"
    INDEPENDENT = "independent"


class Comparison(StrEnum):
    BETTER = "better"
    WORSE = "worse"
    EQUAL = "equal"


class BuildingCategory(StrEnum):
    INCOME = "income"
    PEASANT = "peasant"
    TROOP = "troop"
    BUILDRATE = "buildrate"
    MAGIC = "magic"
    FORTRESS = "fortress"


class EncampType(StrEnum):
    ENCAMP_24 = "encamp_24"
    ENCAMP_16 = "encamp_16"


class TurnAction(StrEnum):
    """Action categories with a documented turn cost."""

    BUILDING = "BUILDING"
    TRAINING = "TRAINING"
    COMBAT_ATTACK = "COMBAT_ATTACK"
    SORCERY_CAST = "SORCERY_CAST"
    ESPIONAGE_OPERATION = "ESPIONAGE_OPERATION"
    CARAVAN_SEND = "CARAVAN_SEND"
    DIPLOMATIC_ACTION = "DIPLOMATIC_ACTION"


class Spell(StrEnum):
    ROUSING_WIND = "ROUSING_WIND"
    SHATTERING_CALM = "SHATTERING_CALM"
    HURRICANE = "HURRICANE"
    LIGHTNING_LANCE = "LIGHTNING_LANCE"
    BANSHEE_DELUGE = "BANSHEE_DELUGE"
    FOUL_LIGHT = "FOUL_LIGHT"


class ReportKind(StrEnum):
    """Kinds of action reports recorded on a game."""

    ATTACK = "attack"
    THIEVERY = "thievery"
    FOCUS = "focus"
    CONSTRUCTION = "construction"


class Difficulty(StrEnum):
    """Expected resistance of a bounty target."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class RestorationType(StrEnum):
    NONE = "none"
    DAMAGE_BASED = "damage_based"
    DEATH_BASED = "death_based"


class GuildWarStatus(StrEnum):
    ACTIVE = "active"
    PLANNING = "planning"
    RECOVERY = "recovery"


class WarPhase(StrEnum):
    PREPARATION = "preparation"
    ACTIVE_COMBAT = "active_combat"
    RESOLUTION = "resolution"
