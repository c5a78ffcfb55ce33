"""Turn generation, encamp bonuses, and per-action turn costs."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from monarchy.utils.numeric import ceil_int, floor_int

from .enums import EncampType, TurnAction
from .rules_config import DEFAULT_RULES, RulesConfig

ACTION_TURN_COSTS: dict[TurnAction, int] = {
    TurnAction.BUILDING: 1,
    TurnAction.TRAINING: 1,
    TurnAction.COMBAT_ATTACK: 1,
    TurnAction.SORCERY_CAST: 1,
    TurnAction.ESPIONAGE_OPERATION: 2,
    TurnAction.CARAVAN_SEND: 1,
    TurnAction.DIPLOMATIC_ACTION: 1,
}

# Actions that cost the same no matter how many things they cover.
FLAT_COST_ACTIONS = frozenset(
    {
        TurnAction.BUILDING,
        TurnAction.TRAINING,
        TurnAction.COMBAT_ATTACK,
        TurnAction.SORCERY_CAST,
        TurnAction.ESPIONAGE_OPERATION,
    }
)

# Standard, bonus and penalty generation speeds.
TURN_ACCELERATION: dict[str, float] = {"standard": 1.0, "bonus": 1.5, "penalty": 0.5}

# Value of one unit of each accomplishment when rating turn usage.
EFFICIENCY_WEIGHTS: dict[str, float] = {
    "land_gained": 10.0,
    "structures_built": 5.0,
    "units_trained": 3.0,
    "enemies_defeated": 8.0,
}


@dataclass(slots=True)
class EncampStatus:
    type: EncampType
    start_time: datetime
    end_time: datetime
    bonus_turns: int
    remaining_hours: float
    is_active: bool = True


@dataclass(slots=True)
class TurnStatus:
    current_turns: int
    max_stored_turns: int
    turns_per_hour: int
    next_turn_time: datetime
    encamp: EncampStatus | None = None
    generated_turns: int = 0


@dataclass(slots=True)
class TurnGeneration:
    base_turns_per_hour: float
    encamp_bonuses: dict[EncampType, int]
    max_turn_storage: int
    turn_acceleration: float


@dataclass(slots=True)
class TurnEfficiency:
    efficiency: float
    breakdown: dict[str, float] = field(default_factory=dict)

@dataclass(slots=True)
class PlannedAction:
    action: TurnAction
    quantity: int = 1


@dataclass(slots=True)
class EncampRecommendation:
    recommend_encamp: bool
    encamp_type: EncampType | None
    reasoning: list[str] = field(default_factory=list)


def _hours(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600.0


def calculate_current_turns(
    last_update: datetime,
    stored_turns: int,
    now: datetime | None = None,
    encamp: EncampStatus | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> TurnStatus:
    """Turns available after regenerating since ``last_update``.

    Turns beyond the storage cap are lost; an active encamp raises the cap
    by its bonus and grants the bonus turns.
    """

    turn_rules = rules.turns
    if now is None:
        now = datetime.now(UTC)

    elapsed = max(0.0, _hours(last_update, now))
    generated = floor_int(elapsed * turn_rules.turns_per_hour)

    bonus = 0
    if encamp is not None and encamp.is_active and now <= encamp.end_time:
        bonus = encamp.bonus_turns

    cap = turn_rules.max_stored_turns + bonus
    total = min(max(0, stored_turns) + generated + bonus, cap)
    return TurnStatus(
        current_turns=total,
        max_stored_turns=cap,
        turns_per_hour=turn_rules.turns_per_hour,
        next_turn_time=now + timedelta(minutes=turn_rules.minutes_per_turn),
        encamp=encamp,
        generated_turns=generated,
    )


def calculate_turn_generation(
    base_rate: float | None = None,
    acceleration: float = 1.0,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> TurnGeneration:
    """Hourly generation with the encamp bonuses and storage limit in force."""

    turn_rules = rules.turns
    base = turn_rules.turns_per_hour if base_rate is None else base_rate
    return TurnGeneration(
        base_turns_per_hour=base * acceleration,
        encamp_bonuses={
            EncampType.ENCAMP_24: turn_rules.encamp_24_bonus,
            EncampType.ENCAMP_16: turn_rules.encamp_16_bonus,
        },
        max_turn_storage=turn_rules.max_stored_turns,
        turn_acceleration=acceleration,
    )


def calculate_turn_efficiency(turns_spent: int, results: Mapping[str, float]) -> TurnEfficiency:
    """Weighted value produced per turn spent.

    ``results`` may hold ``land_gained``, ``structures_built``,
    ``units_trained`` and ``enemies_defeated``; other keys are ignored.
    """

    if turns_spent <= 0:
        return TurnEfficiency(efficiency=0.0)
    breakdown: dict[str, float] = {}
    total = 0.0
    for key, weight in EFFICIENCY_WEIGHTS.items():
        amount = results.get(key)
        if amount is None:
            continue
        breakdown[key] = amount / turns_spent
        total += amount * weight
    return TurnEfficiency(efficiency=total / turns_spent, breakdown=breakdown)


def start_encamp(
    encamp_type: EncampType | str,
    start: datetime | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> EncampStatus:
    turn_rules = rules.turns
    if start is None:
        start = datetime.now(UTC)
    kind = EncampType(encamp_type)
    if kind == EncampType.ENCAMP_24:
        hours, bonus = turn_rules.encamp_24_hours, turn_rules.encamp_24_bonus
    else:
        hours, bonus = turn_rules.encamp_16_hours, turn_rules.encamp_16_bonus
    return EncampStatus(
        type=kind,
        start_time=start,
        end_time=start + timedelta(hours=hours),
        bonus_turns=bonus,
        remaining_hours=float(hours),
    )


def update_encamp_status(encamp: EncampStatus, now: datetime | None = None) -> EncampStatus:
    if now is None:
        now = datetime.now(UTC)
    remaining = max(0.0, _hours(now, encamp.end_time))
    return replace(encamp, remaining_hours=remaining, is_active=remaining > 0)


def calculate_action_turn_cost(
    action: TurnAction | str,
    quantity: int = 1,
    modifiers: Mapping[str, float] | None = None,
) -> int:
    """Turn cost of an action; only non-flat actions scale with quantity."""

    try:
        kind = TurnAction(str(action).upper())
    except ValueError:
        kind = None
    base = ACTION_TURN_COSTS.get(kind, 1) if kind is not None else 1
    modifier = (modifiers or {}).get(str(action).upper(), 1.0)
    if kind in FLAT_COST_ACTIONS:
        return ceil_int(base * modifier)
    return ceil_int(base * max(0, quantity) * modifier)


def calculate_optimal_encamp_timing(
    current_turns: int,
    planned: Iterable[PlannedAction],
    hours_until_critical: float,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> EncampRecommendation:
    turn_rules = rules.turns
    total_cost = sum(calculate_action_turn_cost(p.action, p.quantity) for p in planned)
    needed = total_cost - current_turns
    if needed <= 0:
        return EncampRecommendation(False, None, ["Sufficient turns available for planned actions"])

    natural_hours = needed / turn_rules.turns_per_hour
    if hours_until_critical > natural_hours:
        return EncampRecommendation(
            False,
            None,
            [f"Natural generation ({natural_hours:.1f}h) is faster than encamping"],
        )
    if hours_until_critical >= turn_rules.encamp_24_hours:
        return EncampRecommendation(
            True, EncampType.ENCAMP_24, ["24-hour encamp provides maximum bonus turns"]
        )
    if hours_until_critical >= turn_rules.encamp_16_hours:
        return EncampRecommendation(
            True, EncampType.ENCAMP_16, ["16-hour encamp fits the available time window"]
        )
    return EncampRecommendation(False, None, ["Insufficient time for an effective encamp"])
