"""Espionage rules: detection, scum sizing, casualties, and operations."""

from __future__ import annotations

from dataclasses import dataclass, field

from monarchy.utils.numeric import ceil_int, clamp, floor_int, safe_ratio
from monarchy.utils.rng import RandomSource, SystemRandomSource, check_success

from .enums import Race, ScumOperationType, ScumTier, ThreatLevel, lookup_by_race
from .rules_config import DEFAULT_RULES, RulesConfig

# ---------------------------------------------------------------------------
# Static tables


@dataclass(frozen=True, slots=True)
class ScumProfile:
    """Racial aptitude for espionage."""

    effectiveness: float
    training_cost: float
    survival_rate: float


DEFAULT_SCUM_PROFILE = ScumProfile(1.0, 1.0, 1.0)

RACIAL_SCUM_PROFILES: dict[Race, ScumProfile] = {
    Race.CENTAUR: ScumProfile(1.005, 1.0, 1.0),
    Race.HUMAN: ScumProfile(1.0, 1.0, 1.0),
    Race.VAMPIRE: ScumProfile(1.0, 1.1, 1.1),
    Race.SIDHE: ScumProfile(1.0, 1.2, 1.0),
    Race.ELVEN: ScumProfile(0.9, 1.0, 1.0),
    Race.GOBLIN: ScumProfile(0.8, 1.25, 0.9),
    Race.DWARVEN: ScumProfile(0.8, 1.3, 0.9),
    Race.DROBEN: ScumProfile(0.75, 1.3, 0.85),
    Race.ELEMENTAL: ScumProfile(0.85, 1.2, 0.9),
    Race.FAE: ScumProfile(0.95, 1.1, 0.95),
}

OPERATION_RISK: dict[ScumOperationType, float] = {
    ScumOperationType.SCOUT: 0.5,
    ScumOperationType.STEAL: 1.0,
    ScumOperationType.SABOTAGE: 1.2,
    ScumOperationType.INTERCEPT: 0.8,
    ScumOperationType.BURN: 1.5,
}

OPERATION_TURN_COSTS: dict[ScumOperationType, int] = {
    ScumOperationType.SCOUT: 2,
    ScumOperationType.STEAL: 3,
    ScumOperationType.SABOTAGE: 3,
    ScumOperationType.INTERCEPT: 2,
    ScumOperationType.BURN: 4,
}

PROTECTION_RATIOS: dict[ThreatLevel, float] = {
    ThreatLevel.LOW: 0.1,
    ThreatLevel.MEDIUM: 0.4,
    ThreatLevel.HIGH: 0.8,
}


def scum_profile(race: str | Race | None) -> ScumProfile:
    return lookup_by_race(RACIAL_SCUM_PROFILES, race, DEFAULT_SCUM_PROFILE)


def _parse_operation(operation: ScumOperationType | str) -> ScumOperationType | None:
    try:
        return ScumOperationType(str(operation).strip().lower())
    except ValueError:
        return None


def _parse_threat(threat: ThreatLevel | str) -> ThreatLevel:
    """Threat level by name; unknown levels plan for a medium threat."""

    try:
        return ThreatLevel(str(threat).strip().lower())
    except ValueError:
        return ThreatLevel.MEDIUM


# ---------------------------------------------------------------------------
# Data structures


@dataclass(slots=True)
class ScumForce:
    """One side of an espionage exchange."""

    race: Race | str
    green: int = 0
    elite: int = 0
    gold: int = 0
    land: int = 0
    structures: int = 0

    @property
    def total(self) -> int:
        return max(0, self.green) + max(0, self.elite)


@dataclass(slots=True)
class ProtectionLevels:
    minimum: int
    recommended: int
    optimal: int


@dataclass(slots=True)
class LayeredDefense:
    scum_percentage: float
    military_percentage: float
    effectiveness: float


@dataclass(slots=True)
class TheftOutcome:
    success: bool
    stolen: int
    casualties: int
    detection_rate: float


@dataclass(slots=True)
class ScumCostEffectiveness:
    protection_value: float
    cost_per_protection: float
    efficiency: float


@dataclass(slots=True)
class OperationCheck:
    can_perform: bool
    turn_cost: int
    reason: str | None = None


@dataclass(slots=True)
class ThieveryOperation:
    """Outcome of a resolved espionage operation."""

    type: ScumOperationType | None
    turn_cost: int
    success: bool
    detection_rate: float
    casualties: int
    result: dict[str, object] = field(default_factory=dict)
    reason: str | None = None


# ---------------------------------------------------------------------------
# Detection and sizing


def calculate_detection_rate(
    attacker_scum: int,
    attacker_race: str | Race | None,
    defender_scum: int,
    defender_race: str | Race | None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Chance the attacker's scum see through the defender's.

    Returns 0 below the minimum scum count and never exceeds the cap.
    """

    thievery = rules.thievery
    if attacker_scum < thievery.minimum_scum:
        return 0.0

    mine = max(0, attacker_scum) * scum_profile(attacker_race).effectiveness
    theirs = max(0, defender_scum) * scum_profile(defender_race).effectiveness
    rate = safe_ratio(mine, mine + theirs)
    return clamp(rate, 0.0, thievery.max_detection)


def calculate_optimal_scum_count(
    enemy_scum: int,
    enemy_race: str | Race | None,
    my_race: str | Race | None,
    target_detection: float | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> int:
    """Scum needed to reach ``target_detection`` against an expected enemy force."""

    thievery = rules.thievery
    target = thievery.optimal_detection if target_detection is None else target_detection
    target = clamp(target, 0.0, thievery.max_detection)

    mine = scum_profile(my_race).effectiveness
    theirs = scum_profile(enemy_race).effectiveness
    denominator = mine * (1 - target)
    if denominator <= 0:
        return thievery.minimum_scum
    required = max(0, enemy_scum) * theirs * target / denominator
    return max(thievery.minimum_scum, ceil_int(required))


def calculate_scum_casualties(
    scum_count: int,
    tier: ScumTier | str,
    operation: ScumOperationType | str,
    race: str | Race | None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> int:
    """Scum lost on an operation, by tier, operation risk, and racial survival."""

    thievery = rules.thievery
    if tier == ScumTier.ELITE:
        base = (thievery.elite_death_min + thievery.elite_death_max) / 2
    else:
        base = (thievery.green_death_min + thievery.green_death_max) / 2

    adjusted = base / scum_profile(race).survival_rate
    kind = _parse_operation(operation)
    risk = OPERATION_RISK[kind] if kind is not None else 1.0
    return floor_int(max(0, scum_count) * adjusted * risk)


def calculate_protection_levels(
    land: int,
    threat: ThreatLevel | str,
    race: str | Race | None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> ProtectionLevels:
    thievery = rules.thievery
    land = max(0, land)
    ratio = PROTECTION_RATIOS[_parse_threat(threat)]
    ratio /= scum_profile(race).effectiveness
    return ProtectionLevels(
        minimum=max(thievery.minimum_scum, floor_int(land * thievery.protection_floor_ratio)),
        recommended=floor_int(land * ratio),
        optimal=floor_int(land * ratio * thievery.protection_buffer),
    )


def calculate_layered_defense(
    land: int, military: int, scum: int, *, rules: RulesConfig = DEFAULT_RULES
) -> LayeredDefense:
    """Score the scum/military split for a kingdom of the given size.

    Small kingdoms do best with an even split; past the land threshold the
    scum need a larger military screen.
    """

    thievery = rules.thievery
    scum = max(0, scum)
    military = max(0, military)
    scum_share = safe_ratio(scum, scum + military)
    if land < thievery.layered_defense_land_threshold:
        deviation = abs(scum_share - thievery.small_kingdom_scum_ratio)
        effectiveness = max(0.5, 1 - deviation * 2)
    else:
        deviation = abs(scum_share - thievery.large_kingdom_scum_ratio)
        effectiveness = max(0.6, 1 - deviation * 1.5)
    return LayeredDefense(
        scum_percentage=scum_share,
        military_percentage=1 - scum_share,
        effectiveness=effectiveness,
    )


# ---------------------------------------------------------------------------
# Theft and cost effectiveness


def _theft_cap(cash: int, rules: RulesConfig) -> int:
    thievery = rules.thievery
    return min(thievery.base_theft_amount, floor_int(max(0, cash) * thievery.max_theft_share))


def calculate_theft_amount(
    attacker_scum: int,
    attacker_race: str | Race | None,
    defender_scum: int,
    defender_race: str | Race | None,
    target_cash: int,
    *,
    rng: RandomSource | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> TheftOutcome:
    """Attempt a cash theft; the defender's detection of the thief sets the odds."""

    thievery = rules.thievery
    detection = calculate_detection_rate(
        defender_scum, defender_race, attacker_scum, attacker_race, rules=rules
    )
    roll = check_success(rng or SystemRandomSource(), 1 - detection)
    scum = max(0, attacker_scum)
    if not roll["success"]:
        return TheftOutcome(
            success=False,
            stolen=0,
            casualties=floor_int(scum * thievery.failure_casualties),
            detection_rate=detection,
        )
    return TheftOutcome(
        success=True,
        stolen=_theft_cap(target_cash, rules),
        casualties=floor_int(scum * thievery.theft_success_casualties),
        detection_rate=detection,
    )


def calculate_scum_cost_effectiveness(
    scum_count: int,
    race: str | Race | None,
    training_cost: float,
    maintenance_cost: float,
) -> ScumCostEffectiveness:
    profile = scum_profile(race)
    total_cost = max(0.0, training_cost) * profile.training_cost + max(0.0, maintenance_cost)
    protection = max(0, scum_count) * profile.effectiveness * profile.survival_rate
    return ScumCostEffectiveness(
        protection_value=protection,
        cost_per_protection=safe_ratio(total_cost, protection),
        efficiency=safe_ratio(protection, total_cost),
    )


# ---------------------------------------------------------------------------
# Operations


def check_operation(
    operation: ScumOperationType | str,
    scum_count: int,
    available_turns: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> OperationCheck:
    """Decide whether an operation can be launched, without raising."""

    kind = _parse_operation(operation)
    if kind is None:
        return OperationCheck(False, 0, f"Unknown operation '{operation}'")

    cost = OPERATION_TURN_COSTS[kind]
    if scum_count < rules.thievery.minimum_scum:
        return OperationCheck(
            False, cost, f"At least {rules.thievery.minimum_scum} scum are required"
        )
    if available_turns < cost:
        return OperationCheck(
            False, cost, f"Insufficient turns: {kind} needs {cost}, {available_turns} available"
        )
    return OperationCheck(True, cost)


def _operation_casualties(
    attacker: ScumForce, kind: ScumOperationType, rules: RulesConfig
) -> int:
    return calculate_scum_casualties(
        attacker.green, ScumTier.GREEN, kind, attacker.race, rules=rules
    ) + calculate_scum_casualties(attacker.elite, ScumTier.ELITE, kind, attacker.race, rules=rules)


def resolve_operation(
    operation: ScumOperationType | str,
    attacker: ScumForce,
    defender: ScumForce,
    *,
    rng: RandomSource | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> ThieveryOperation:
    """Resolve one operation with a single success draw.

    The defender's detection of the attacking scum sets the failure odds.
    Failed operations cost the attacker the failure casualty share and
    deliver no payload. Unknown operations are rejected without a draw.
    """

    thievery = rules.thievery
    kind = _parse_operation(operation)
    if kind is None:
        return ThieveryOperation(
            type=None,
            turn_cost=0,
            success=False,
            detection_rate=0.0,
            casualties=0,
            reason=f"Unknown operation '{operation}'",
        )
    detection = calculate_detection_rate(
        defender.total, defender.race, attacker.total, attacker.race, rules=rules
    )
    roll = check_success(rng or SystemRandomSource(), 1 - detection)
    turn_cost = OPERATION_TURN_COSTS[kind]

    if not roll["success"]:
        return ThieveryOperation(
            type=kind,
            turn_cost=turn_cost,
            success=False,
            detection_rate=detection,
            casualties=floor_int(attacker.total * thievery.failure_casualties),
            result={"detected": True},
        )

    casualties = _operation_casualties(attacker, kind, rules)
    result: dict[str, object]
    if kind == ScumOperationType.SCOUT:
        result = {
            "intelligence": {
                "gold": defender.gold,
                "land": defender.land,
                "structures": defender.structures,
                "scum": defender.total,
            }
        }
    elif kind == ScumOperationType.STEAL:
        casualties = floor_int(attacker.total * thievery.theft_success_casualties)
        result = {"gold_stolen": _theft_cap(defender.gold, rules)}
    elif kind == ScumOperationType.SABOTAGE:
        result = {"scum_killed": floor_int(defender.total * thievery.sabotage_kill_rate)}
    elif kind == ScumOperationType.BURN:
        result = {
            "structures_burned": floor_int(max(0, defender.structures) * thievery.burn_structure_rate)
        }
    else:
        intercepted = floor_int(max(0, defender.gold) * thievery.intercept_cash_share)
        result = {"gold_intercepted": min(thievery.base_theft_amount, intercepted)}

    return ThieveryOperation(
        type=kind,
        turn_cost=turn_cost,
        success=True,
        detection_rate=detection,
        casualties=min(casualties, attacker.total),
        result=result,
    )
