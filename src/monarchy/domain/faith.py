"""Faith alignments and the focus point economy."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime

from monarchy.utils.numeric import floor_int

from .enums import FaithAlignment, FocusAbility, FocusEffectType, Race, lookup_by_race
from .models import FaithState, FocusEffect, FocusState
from .rules_config import DEFAULT_RULES, RulesConfig

# ---------------------------------------------------------------------------
# Static tables


@dataclass(frozen=True, slots=True)
class AlignmentDefinition:
    name: str
    bonuses: dict[str, float]
    compatible_races: frozenset[Race]


FAITH_ALIGNMENTS: dict[FaithAlignment, AlignmentDefinition] = {
    FaithAlignment.ANGELIQUE: AlignmentDefinition(
        name="Angelique",
        bonuses={"spell_effectiveness": 0.1, "combat_bonus": 0.05},
        compatible_races=frozenset({Race.VAMPIRE, Race.HUMAN, Race.ELVEN, Race.FAE}),
    ),
    FaithAlignment.NEUTRAL: AlignmentDefinition(
        name="Neutral",
        bonuses={},
        compatible_races=frozenset({Race.HUMAN, Race.GOBLIN, Race.DWARVEN, Race.CENTAUR}),
    ),
    FaithAlignment.ELEMENTAL: AlignmentDefinition(
        name="Elemental",
        bonuses={"spell_effectiveness": 0.08, "economic_bonus": 0.05},
        compatible_races=frozenset({Race.ELEMENTAL, Race.ELVEN, Race.CENTAUR}),
    ),
}

FOCUS_RACIAL_MODIFIERS: dict[Race, float] = {
    Race.VAMPIRE: 1.2,
    Race.SIDHE: 1.15,
    Race.ELEMENTAL: 1.1,
    Race.HUMAN: 1.0,
}

FOCUS_ABILITY_COSTS: dict[FocusAbility, int] = {
    FocusAbility.ENHANCED_RACIAL_ABILITY: 10,
    FocusAbility.SPELL_POWER_BOOST: 15,
    FocusAbility.COMBAT_FOCUS: 8,
    FocusAbility.ECONOMIC_FOCUS: 6,
    FocusAbility.EMERGENCY_ACTION: 20,
}

# Emergency actions spend focus without leaving a timed effect behind.
ABILITY_EFFECTS: dict[FocusAbility, FocusEffectType] = {
    FocusAbility.ENHANCED_RACIAL_ABILITY: FocusEffectType.RACIAL_ABILITY_BOOST,
    FocusAbility.SPELL_POWER_BOOST: FocusEffectType.SPELL_POWER_BOOST,
    FocusAbility.COMBAT_FOCUS: FocusEffectType.COMBAT_FOCUS_BONUS,
    FocusAbility.ECONOMIC_FOCUS: FocusEffectType.ECONOMIC_FOCUS_BONUS,
}


# ---------------------------------------------------------------------------
# Result types


@dataclass(slots=True)
class AlignmentCheck:
    can_use: bool
    reason: str | None = None


@dataclass(slots=True)
class FocusCheck:
    can_use: bool
    cost: int
    reason: str | None = None


@dataclass(slots=True)
class FocusUse:
    """Outcome of spending focus on an ability."""

    check: FocusCheck
    state: FocusState
    effect: FocusEffect | None = None


# ---------------------------------------------------------------------------
# Faith


def _parse_alignment(alignment: FaithAlignment | str | None) -> FaithAlignment | None:
    if alignment is None:
        return None
    try:
        return FaithAlignment(str(alignment).lower())
    except ValueError:
        return None


def calculate_faith_level(points: int, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Faith level 0..5 reached with ``points``."""

    level = 0
    for threshold in rules.faith.level_thresholds:
        if points >= threshold:
            level += 1
    return level


def get_faith_bonuses(
    alignment: FaithAlignment | str | None, level: int, *, rules: RulesConfig = DEFAULT_RULES
) -> dict[str, float]:
    parsed = _parse_alignment(alignment)
    if parsed is None:
        return {}
    multiplier = max(0.0, 1 + level * rules.faith.bonus_per_level)
    return {key: value * multiplier for key, value in FAITH_ALIGNMENTS[parsed].bonuses.items()}


def can_use_faith_alignment(
    race: str | Race | None, alignment: FaithAlignment | str | None
) -> AlignmentCheck:
    parsed = _parse_alignment(alignment)
    if parsed is None:
        return AlignmentCheck(False, f"Unknown faith alignment '{alignment}'")
    definition = FAITH_ALIGNMENTS[parsed]
    parsed_race = Race.parse(race)
    if parsed_race is None:
        return AlignmentCheck(False, f"Unknown race '{race}'")
    if parsed_race not in definition.compatible_races:
        return AlignmentCheck(
            False, f"{parsed_race.capitalize()} kingdoms cannot follow the {definition.name} faith"
        )
    return AlignmentCheck(True)


def enhance_racial_ability_with_faith(
    effectiveness: float, alignment: FaithAlignment | str | None, level: int
) -> float:
    bonus = get_faith_bonuses(alignment, level).get("racial_ability_enhancement", 0.0)
    return effectiveness * (1 + bonus)


def enhance_spell_with_faith(
    damage: float, alignment: FaithAlignment | str | None, level: int
) -> float:
    bonus = get_faith_bonuses(alignment, level).get("spell_effectiveness", 0.0)
    return damage * (1 + bonus)


def add_faith_points(
    state: FaithState, points: int, *, rules: RulesConfig = DEFAULT_RULES
) -> FaithState:
    """Return a new faith state with ``points`` added and the level recomputed."""

    total = max(0, state.faith_points + points)
    return replace(state, faith_points=total, faith_level=calculate_faith_level(total, rules=rules))


# ---------------------------------------------------------------------------
# Focus


def calculate_focus_generation(
    race: str | Race | None, base: int | None = None, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    base_rate = rules.focus.points_per_hour if base is None else base
    return floor_int(base_rate * lookup_by_race(FOCUS_RACIAL_MODIFIERS, race, 1.0))


def calculate_max_focus_points(
    race: str | Race | None, base: int | None = None, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    base_max = rules.focus.max_storage_base if base is None else base
    return floor_int(base_max * lookup_by_race(FOCUS_RACIAL_MODIFIERS, race, 1.0))


def focus_points_generated(last_update: datetime, rate: float, now: datetime | None = None) -> int:
    """Whole focus points accrued since ``last_update``, ignoring storage caps."""

    if now is None:
        now = datetime.now(UTC)
    hours = max(0.0, (now - last_update).total_seconds() / 3600.0)
    return floor_int(hours * max(0.0, rate))


def update_focus_points(
    current: int,
    max_points: int,
    last_update: datetime,
    rate: float,
    now: datetime | None = None,
) -> int:
    """Points after regenerating since ``last_update``, capped at ``max_points``."""

    generated = focus_points_generated(last_update, rate, now)
    return max(0, min(max_points, current + generated))


def can_use_focus_ability(ability: FocusAbility | str, points: int) -> FocusCheck:
    try:
        parsed = FocusAbility(str(ability).upper())
    except ValueError:
        return FocusCheck(False, 0, f"Unknown focus ability '{ability}'")
    cost = FOCUS_ABILITY_COSTS[parsed]
    if points >= cost:
        return FocusCheck(True, cost)
    return FocusCheck(False, cost, f"Insufficient focus points: need {cost}, have {points}")


def apply_focus_effect(
    effect_type: FocusEffectType | str,
    base_value: float,
    *,
    applied_at: int = 0,
    rules: RulesConfig = DEFAULT_RULES,
) -> FocusEffect | None:
    """Build the timed effect for ``effect_type`` enhancing ``base_value``.

    Unknown effect types produce no effect.
    """

    focus = rules.focus
    try:
        kind = FocusEffectType(str(effect_type).upper())
    except ValueError:
        return None
    if kind == FocusEffectType.RACIAL_ABILITY_BOOST:
        enhanced = base_value * focus.racial_ability_boost
    elif kind == FocusEffectType.SPELL_POWER_BOOST:
        enhanced = base_value * focus.spell_power_boost
    elif kind == FocusEffectType.COMBAT_FOCUS_BONUS:
        enhanced = base_value * (1 + focus.combat_focus_bonus)
    else:
        enhanced = base_value * (1 + focus.economic_focus_bonus)
    return FocusEffect(
        effect_type=kind,
        enhanced_value=enhanced,
        duration=focus.effect_duration,
        applied_at=applied_at,
    )


def is_effect_expired(effect: FocusEffect, current_turn: int) -> bool:
    return current_turn - effect.applied_at >= effect.duration


def prune_expired_effects(state: FocusState, current_turn: int) -> FocusState:
    active = [e for e in state.active_effects if not is_effect_expired(e, current_turn)]
    return replace(state, active_effects=active)


def use_focus_ability(
    state: FocusState,
    ability: FocusAbility | str,
    base_value: float,
    current_turn: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> FocusUse:
    """Spend focus on ``ability`` and record its effect.

    The returned state is unchanged when the ability cannot be afforded.
    """

    check = can_use_focus_ability(ability, state.points)
    if not check.can_use:
        return FocusUse(check=check, state=state)

    parsed = FocusAbility(str(ability).upper())
    effect_type = ABILITY_EFFECTS.get(parsed)
    pruned = prune_expired_effects(state, current_turn)
    effects = list(pruned.active_effects)
    effect = None
    if effect_type is not None:
        effect = apply_focus_effect(effect_type, base_value, applied_at=current_turn, rules=rules)
        if effect is not None:
            effects.append(effect)

    new_state = replace(pruned, points=state.points - check.cost, active_effects=effects)
    return FocusUse(check=check, state=new_state, effect=effect)
