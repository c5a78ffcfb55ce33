"""Sorcery rules: elan economy, spell success and damage, backlash."""

from __future__ import annotations

from dataclasses import dataclass

from monarchy.utils.numeric import ceil_int, floor_int, safe_ratio

from .enums import Race, Spell, ThreatLevel, lookup_by_race
from .rules_config import DEFAULT_RULES, RulesConfig

# ---------------------------------------------------------------------------
# Static tables


@dataclass(frozen=True, slots=True)
class SpellDefinition:
    tier: int
    elan_cost: int


@dataclass(frozen=True, slots=True)
class SpellDamageRates:
    structures: float = 0.0
    forts: float = 0.0
    backlash: float = 0.0
    peasant_kill_rate: float = 0.0


SPELL_DEFINITIONS: dict[Spell, SpellDefinition] = {
    Spell.ROUSING_WIND: SpellDefinition(tier=1, elan_cost=1),
    Spell.SHATTERING_CALM: SpellDefinition(tier=1, elan_cost=2),
    Spell.HURRICANE: SpellDefinition(tier=2, elan_cost=3),
    Spell.LIGHTNING_LANCE: SpellDefinition(tier=2, elan_cost=3),
    Spell.BANSHEE_DELUGE: SpellDefinition(tier=3, elan_cost=5),
    Spell.FOUL_LIGHT: SpellDefinition(tier=4, elan_cost=8),
}

_TIER_TWO_CASTERS = {
    Spell.HURRICANE: SpellDamageRates(structures=0.0438, forts=0.0625, backlash=0.13),
    Spell.LIGHTNING_LANCE: SpellDamageRates(forts=0.0875, backlash=0.11),
    Spell.BANSHEE_DELUGE: SpellDamageRates(structures=0.05, backlash=0.11),
}
_WOODLAND_CASTERS = {
    Spell.HURRICANE: SpellDamageRates(structures=0.0438, forts=0.0625, backlash=0.10),
    Spell.LIGHTNING_LANCE: SpellDamageRates(forts=0.0875, backlash=0.08),
    Spell.BANSHEE_DELUGE: SpellDamageRates(structures=0.05, backlash=0.08),
}

RACIAL_SPELL_DAMAGE: dict[Race, dict[Spell, SpellDamageRates]] = {
    Race.SIDHE: {
        Spell.HURRICANE: SpellDamageRates(structures=0.0563, forts=0.075, backlash=0.09),
        Spell.LIGHTNING_LANCE: SpellDamageRates(forts=0.10, backlash=0.07),
        Spell.BANSHEE_DELUGE: SpellDamageRates(structures=0.0625, backlash=0.07),
        Spell.FOUL_LIGHT: SpellDamageRates(backlash=0.07, peasant_kill_rate=0.08),
    },
    Race.ELEMENTAL: _TIER_TWO_CASTERS,
    Race.VAMPIRE: _TIER_TWO_CASTERS,
    Race.ELVEN: _WOODLAND_CASTERS,
    Race.FAE: _WOODLAND_CASTERS,
    Race.HUMAN: {
        Spell.HURRICANE: SpellDamageRates(structures=0.0313, forts=0.05, backlash=0.11),
        Spell.LIGHTNING_LANCE: SpellDamageRates(forts=0.075, backlash=0.09),
        Spell.BANSHEE_DELUGE: SpellDamageRates(structures=0.0375, backlash=0.09),
    },
}

HIGH_MAGIC_RACES = frozenset({Race.SIDHE, Race.VAMPIRE})

RACIAL_ELAN_MULTIPLIERS: dict[Race, float] = {
    Race.SIDHE: 1.5,
    Race.VAMPIRE: 1.3,
    Race.ELEMENTAL: 1.2,
    Race.ELVEN: 1.2,
    Race.FAE: 1.2,
    Race.HUMAN: 1.0,
    Race.GOBLIN: 1.0,
    Race.DROBEN: 0.9,
    Race.CENTAUR: 1.0,
    Race.DWARVEN: 0.9,
}

BACKLASH_RATES: dict[Race, float] = {
    Race.SIDHE: 0.09,
    Race.ELVEN: 0.10,
    Race.FAE: 0.10,
    Race.VAMPIRE: 0.13,
    Race.ELEMENTAL: 0.11,
    Race.HUMAN: 0.12,
    Race.GOBLIN: 0.12,
    Race.DROBEN: 0.15,
    Race.CENTAUR: 0.12,
    Race.DWARVEN: 0.15,
}
DEFAULT_BACKLASH_RATE = 0.12

THREAT_TEMPLE_MULTIPLIERS: dict[ThreatLevel, float] = {
    ThreatLevel.LOW: 1.0,
    ThreatLevel.MEDIUM: 1.5,
    ThreatLevel.HIGH: 2.0,
}
MAX_TEMPLE_SHARE = 0.20


# ---------------------------------------------------------------------------
# Result types


@dataclass(slots=True)
class SpellEffect:
    structure_damage: int
    fort_damage: int
    peasant_kills: int
    backlash_chance: float
    elan_cost: int


@dataclass(slots=True)
class ElanStatus:
    current_elan: int
    max_elan: int
    temple_count: int
    temple_percentage: float
    generation_rate: int


@dataclass(slots=True)
class BacklashResult:
    temples_destroyed: int
    elan_lost: int
    turns_cost: int


@dataclass(slots=True)
class SpellCast:
    """Outcome of weighing one cast against a target."""

    spell: Spell | None
    affordable: bool
    success: bool
    effect: SpellEffect
    elan_after: int
    reason: str | None = None


@dataclass(slots=True)
class KillStep:
    cast: int
    peasants_remaining: int
    percentage_killed: float


def _parse_spell(spell: Spell | str) -> Spell | None:
    try:
        return Spell(str(spell).upper())
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Elan


def calculate_elan_generation(
    race: str | Race | None, temple_count: int, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    sorcery = rules.sorcery
    parsed = Race.parse(race)
    rate = sorcery.high_magic_elan_rate if parsed in HIGH_MAGIC_RACES else sorcery.standard_elan_rate
    return ceil_int(max(0, temple_count) * rate)


def calculate_max_elan(
    race: str | Race | None, temple_count: int, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    base = max(0, temple_count) * rules.sorcery.elan_per_temple
    return floor_int(base * lookup_by_race(RACIAL_ELAN_MULTIPLIERS, race, 1.0))


def calculate_elan_status(
    race: str | Race | None,
    temple_count: int,
    land: int,
    current_elan: int | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> ElanStatus:
    max_elan = calculate_max_elan(race, temple_count, rules=rules)
    current = 0 if current_elan is None else max(0, min(current_elan, max_elan))
    return ElanStatus(
        current_elan=current,
        max_elan=max_elan,
        temple_count=temple_count,
        temple_percentage=safe_ratio(temple_count * 100, land),
        generation_rate=calculate_elan_generation(race, temple_count, rules=rules),
    )


def can_afford_spell(current_elan: int, elan_cost: int) -> bool:
    return current_elan >= elan_cost


def has_required_temples(temple_share: float, required: float) -> bool:
    return temple_share >= required


def calculate_elan_after_cast(current: int, cost: int, max_elan: int) -> int:
    return max(0, min(current - cost, max_elan))


def calculate_backlash(
    race: str | Race | None, temple_count: int, *, rules: RulesConfig = DEFAULT_RULES
) -> BacklashResult:
    """Temples lost when a spell backfires on its caster."""

    rate = lookup_by_race(BACKLASH_RATES, race, DEFAULT_BACKLASH_RATE)
    destroyed = floor_int(max(0, temple_count) * rate)
    return BacklashResult(
        temples_destroyed=destroyed,
        elan_lost=destroyed * rules.sorcery.backlash_elan_per_temple,
        turns_cost=rules.sorcery.spell_turn_cost,
    )


# ---------------------------------------------------------------------------
# Spells


def calculate_spell_success(
    caster_temples: int,
    caster_structures: int,
    target_temples: int,
    target_structures: int,
    spell_tier: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> bool:
    """Whether a caster's temple share overpowers the target's.

    The caster must reach the tier's temple threshold; kingdoms without
    structures have no temple share at all.
    """

    sorcery = rules.sorcery
    caster_share = safe_ratio(caster_temples, caster_structures)
    target_share = safe_ratio(target_temples, target_structures)
    thresholds = sorcery.tier_thresholds
    if 1 <= spell_tier <= len(thresholds):
        required = thresholds[spell_tier - 1]
    else:
        required = thresholds[0]
    if not has_required_temples(caster_share, required):
        return False
    return caster_share * sorcery.attacker_advantage > target_share


def calculate_spell_damage(
    spell: Spell | str,
    caster_race: str | Race | None,
    target_structures: int,
    target_forts: int,
    target_peasants: int,
) -> SpellEffect:
    parsed = _parse_spell(spell)
    table = lookup_by_race(RACIAL_SPELL_DAMAGE, caster_race, {})
    rates = table.get(parsed) if parsed is not None else None
    if rates is None:
        return SpellEffect(0, 0, 0, 0.0, 0)
    return SpellEffect(
        structure_damage=floor_int(max(0, target_structures) * rates.structures),
        fort_damage=floor_int(max(0, target_forts) * rates.forts),
        peasant_kills=floor_int(max(0, target_peasants) * rates.peasant_kill_rate),
        backlash_chance=rates.backlash,
        elan_cost=SPELL_DEFINITIONS[parsed].elan_cost,
    )


def calculate_sorcery_kill_progression(
    initial_peasants: int,
    caster_race: str | Race | None,
    kill_spell: Spell | str = Spell.FOUL_LIGHT,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[KillStep]:
    """Peasants left after each successive kill spell, bounded in casts."""

    remaining = max(0, initial_peasants)
    steps: list[KillStep] = []
    cast = 0
    while remaining > 0 and cast < rules.sorcery.max_kill_casts:
        cast += 1
        killed = calculate_spell_damage(kill_spell, caster_race, 0, 0, remaining).peasant_kills
        killed = min(killed, remaining)
        if killed == 0:
            break
        remaining -= killed
        steps.append(
            KillStep(
                cast=cast,
                peasants_remaining=remaining,
                percentage_killed=safe_ratio((initial_peasants - remaining) * 100, initial_peasants),
            )
        )
    return steps


def calculate_optimal_temple_percentage(
    role: str, threat: ThreatLevel | str, *, rules: RulesConfig = DEFAULT_RULES
) -> float:
    """Temple share of structures to aim for, by role and threat."""

    thresholds = rules.sorcery.tier_thresholds
    base = {
        "offensive_sorcerer": thresholds[2],
        "defensive_target": rules.sorcery.optimal_defense,
        "balanced": thresholds[1],
    }.get(role, thresholds[1])
    return min(MAX_TEMPLE_SHARE, base * THREAT_TEMPLE_MULTIPLIERS.get(threat, 1.0))



def plan_spell_cast(
    spell: Spell | str,
    caster_race: str | Race | None,
    *,
    current_elan: int,
    caster_temples: int,
    caster_structures: int,
    target_temples: int,
    target_structures: int,
    target_forts: int = 0,
    target_peasants: int = 0,
    rules: RulesConfig = DEFAULT_RULES,
) -> SpellCast:
    """Check elan, temple share and racial damage for a single cast.

    Casts that cannot be paid for neither succeed nor spend elan.
    """

    parsed = _parse_spell(spell)
    if parsed is None:
        return SpellCast(
            None, False, False, SpellEffect(0, 0, 0, 0.0, 0), current_elan, f"Unknown spell '{spell}'"
        )
    definition = SPELL_DEFINITIONS[parsed]
    effect = calculate_spell_damage(
        parsed, caster_race, target_structures, target_forts, target_peasants
    )
    if not can_afford_spell(current_elan, definition.elan_cost):
        return SpellCast(
            parsed,
            False,
            False,
            effect,
            current_elan,
            f"Insufficient elan: need {definition.elan_cost}, have {current_elan}",
        )
    success = calculate_spell_success(
        caster_temples,
        caster_structures,
        target_temples,
        target_structures,
        definition.tier,
        rules=rules,
    )
    max_elan = calculate_max_elan(caster_race, caster_temples, rules=rules)
    return SpellCast(
        spell=parsed,
        affordable=True,
        success=success,
        effect=effect,
        elan_after=calculate_elan_after_cast(current_elan, definition.elan_cost, max_elan),
    )
