"""Age rules: the early/middle/late phases of a round and their modifiers.

A round lasts ``total_game_hours``. The current age is selected by the
elapsed fraction of the round, while the reported age window is laid end to
end from the configured per-age durations. The two do not line up exactly
(early nominally lasts 168 h but the switch happens at 25% of 1008 h), so
``remaining_time`` can sit at zero for a while before the next age starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from monarchy.utils.numeric import ceil_int, floor_int

from .enums import Age, CostType, Race, TransitionWarning
from .rules_config import DEFAULT_RULES, RulesConfig

# ---------------------------------------------------------------------------
# Static tables


@dataclass(frozen=True, slots=True)
class EconomicModifiers:
    building_cost_multiplier: float
    training_cost_multiplier: float
    income_multiplier: float


@dataclass(frozen=True, slots=True)
class CombatModifiers:
    offense_multiplier: float
    defense_multiplier: float


@dataclass(frozen=True, slots=True)
class RacialAgeTrigger:
    """Racial ability that is only active during one age."""

    key: str
    race: Race
    ability: str
    active_age: Age
    affected_units: tuple[str, ...]
    bonus_multiplier: float


ECONOMIC_AGE_EFFECTS: dict[Age, EconomicModifiers] = {
    Age.EARLY: EconomicModifiers(0.8, 1.0, 1.2),
    Age.MIDDLE: EconomicModifiers(1.0, 0.9, 1.0),
    Age.LATE: EconomicModifiers(1.2, 0.8, 0.9),
}

COMBAT_AGE_EFFECTS: dict[Age, CombatModifiers] = {
    Age.EARLY: CombatModifiers(0.9, 1.1),
    Age.MIDDLE: CombatModifiers(1.0, 1.0),
    Age.LATE: CombatModifiers(1.1, 0.9),
}

RACIAL_AGE_TRIGGERS: tuple[RacialAgeTrigger, ...] = (
    RacialAgeTrigger(
        key="goblin_kobold_rage",
        race=Race.GOBLIN,
        ability="kobold_rage",
        active_age=Age.MIDDLE,
        affected_units=("kobolds",),
        bonus_multiplier=1.5,
    ),
)

_NEXT_AGE: dict[Age, Age | None] = {
    Age.EARLY: Age.MIDDLE,
    Age.MIDDLE: Age.LATE,
    Age.LATE: None,
}


# ---------------------------------------------------------------------------
# Result types


@dataclass(slots=True)
class AgeStatus:
    """Derived view of where a round currently stands. Never persisted."""

    current_age: Age
    age_start_time: datetime
    age_end_time: datetime
    age_duration: int
    remaining_time: float


@dataclass(slots=True)
class AgeEffects:
    economic: EconomicModifiers
    combat: CombatModifiers
    racial_ability_modifiers: dict[str, float] = field(default_factory=dict)
    unit_effectiveness_modifiers: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class AgeTransitionWarning:
    warning_type: TransitionWarning
    next_age: Age | None = None
    hours_remaining: float | None = None


# ---------------------------------------------------------------------------
# Core calculations


def _hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600.0


def calculate_current_age(
    game_start: datetime, now: datetime | None = None, *, rules: RulesConfig = DEFAULT_RULES
) -> AgeStatus:
    """Determine the age of a round started at ``game_start``."""

    age_rules = rules.age
    if now is None:
        now = datetime.now(UTC)

    elapsed = max(0.0, _hours_between(game_start, now))
    progress = elapsed / age_rules.total_game_hours

    if progress < age_rules.early_to_middle:
        current = Age.EARLY
        offset = 0
        duration = age_rules.early_age_hours
    elif progress < age_rules.middle_to_late:
        current = Age.MIDDLE
        offset = age_rules.early_age_hours
        duration = age_rules.middle_age_hours
    else:
        current = Age.LATE
        offset = age_rules.early_age_hours + age_rules.middle_age_hours
        duration = age_rules.late_age_hours

    age_start = game_start + timedelta(hours=offset)
    age_end = age_start + timedelta(hours=duration)
    remaining = max(0.0, _hours_between(now, age_end))

    return AgeStatus(
        current_age=current,
        age_start_time=age_start,
        age_end_time=age_end,
        age_duration=duration,
        remaining_time=remaining,
    )


def calculate_age_effects(age: Age) -> AgeEffects:
    """Return every modifier that applies during ``age``."""

    racial: dict[str, float] = {}
    units: dict[str, float] = {}
    for trigger in RACIAL_AGE_TRIGGERS:
        if trigger.active_age == age:
            racial[trigger.key] = trigger.bonus_multiplier
            for unit in trigger.affected_units:
                units[unit] = trigger.bonus_multiplier
        else:
            racial[trigger.key] = 1.0

    return AgeEffects(
        economic=ECONOMIC_AGE_EFFECTS[age],
        combat=COMBAT_AGE_EFFECTS[age],
        racial_ability_modifiers=racial,
        unit_effectiveness_modifiers=units,
    )


def _find_trigger(race: str | Race | None, ability: str) -> RacialAgeTrigger | None:
    parsed = Race.parse(race)
    for trigger in RACIAL_AGE_TRIGGERS:
        if trigger.race == parsed and trigger.ability == ability:
            return trigger
    return None


def racial_age_modifier(race: str | Race | None, ability: str, age: Age) -> float:
    """Multiplier for a racial ability in ``age``; ``1.0`` when no trigger applies."""

    trigger = _find_trigger(race, ability)
    if trigger is None or trigger.active_age != age:
        return 1.0
    return trigger.bonus_multiplier


def is_racial_ability_active(race: str | Race | None, ability: str, age: Age) -> bool:
    """Age-gated abilities are active only in their age; all others always are."""

    trigger = _find_trigger(race, ability)
    if trigger is None:
        return True
    return trigger.active_age == age


def calculate_age_based_unit_effectiveness(unit: str, base: float, age: Age) -> float:
    effects = calculate_age_effects(age)
    unit_modifier = effects.unit_effectiveness_modifiers.get(unit, 1.0)
    return base * unit_modifier * effects.combat.offense_multiplier


def calculate_age_based_costs(base_cost: float, cost_type: CostType | str, age: Age) -> int:
    """Scale a building or training cost by the age's economic modifier."""

    economic = ECONOMIC_AGE_EFFECTS[age]
    if cost_type == CostType.BUILDING:
        multiplier = economic.building_cost_multiplier
    else:
        multiplier = economic.training_cost_multiplier
    return ceil_int(max(0.0, base_cost) * multiplier)


def calculate_age_based_income(base_income: float, age: Age) -> int:
    return floor_int(max(0.0, base_income) * ECONOMIC_AGE_EFFECTS[age].income_multiplier)


def get_age_transition_warning(
    game_start: datetime, now: datetime | None = None, *, rules: RulesConfig = DEFAULT_RULES
) -> AgeTransitionWarning:
    """Warn when the current age window is about to close."""

    status = calculate_current_age(game_start, now, rules=rules)
    remaining = status.remaining_time
    if remaining <= 0:
        return AgeTransitionWarning(TransitionWarning.NONE)

    if remaining <= rules.age.imminent_warning_hours:
        level = TransitionWarning.IMMINENT
    elif remaining <= rules.age.approaching_warning_hours:
        level = TransitionWarning.APPROACHING
    else:
        return AgeTransitionWarning(TransitionWarning.NONE)

    return AgeTransitionWarning(
        warning_type=level,
        next_age=_NEXT_AGE[status.current_age],
        hours_remaining=remaining,
    )
