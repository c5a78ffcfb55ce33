"""Combat resolution rules.

Resolves a single attack into a result tier, casualties, and spoils, plus
the supporting calculations around it (turn costs, summons, forts, and
coordinated "pass the plate" land grabs). All randomness is drawn from an
injected :class:`~monarchy.utils.rng.RandomSource`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from monarchy.utils.numeric import floor_int, safe_ratio
from monarchy.utils.rng import RandomSource, SystemRandomSource

from .enums import AttackType, Race, ResultTier, lookup_by_race
from .rules_config import DEFAULT_RULES, RulesConfig

# ---------------------------------------------------------------------------
# Static tables


@dataclass(frozen=True, slots=True)
class UnitStats:
    attack: int
    defense: int


UNIT_STATS: dict[str, UnitStats] = {
    "peasant": UnitStats(1, 1),
    "infantry": UnitStats(3, 2),
    "cavalry": UnitStats(5, 3),
    "archer": UnitStats(4, 2),
    "knight": UnitStats(6, 4),
    "mage": UnitStats(3, 1),
    "scout": UnitStats(2, 1),
    "militia": UnitStats(2, 3),
    "tier1": UnitStats(1, 1),
    "tier2": UnitStats(3, 2),
    "tier3": UnitStats(5, 3),
    "tier4": UnitStats(7, 4),
}
DEFAULT_UNIT_STATS = UnitStats(2, 2)

SUMMON_RATES: dict[Race, float] = {
    Race.DROBEN: 0.0304,
    Race.ELEMENTAL: 0.0284,
    Race.GOBLIN: 0.0275,
    Race.DWARVEN: 0.0275,
    Race.HUMAN: 0.025,
}

FORT_DEFENSE: dict[Race, int] = {
    Race.DWARVEN: 300,
    Race.GOBLIN: 285,
    Race.HUMAN: 250,
}


# ---------------------------------------------------------------------------
# Data structures


@dataclass(slots=True)
class AttackForce:
    """Forces committed by the attacker."""

    units: dict[str, int]
    total_offense: float
    total_defense: float = 0.0


@dataclass(slots=True)
class DefenseForce:
    """Forces available to the defender."""

    units: dict[str, int]
    total_defense: float
    forts: int = 0
    ambush_active: bool = False


@dataclass(slots=True)
class CombatResult:
    success: bool
    result_type: ResultTier
    attack_type: AttackType
    land_gained: int
    attacker_losses: int
    defender_losses: int
    gold_looted: int
    structures_destroyed: int
    power_ratio: float
    effective_offense: float


@dataclass(slots=True)
class AttackValidation:
    valid: bool
    warning: str | None = None


@dataclass(slots=True)
class ArmyPower:
    offense: float
    defense: float
    unit_count: int
    breakdown: dict[str, tuple[float, float]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Warrior:
    """Participant in a coordinated land grab."""

    offense: float
    land_capacity: int


@dataclass(slots=True)
class PassThePlateResult:
    total_land_gained: int
    turns_required: int
    efficiency: float
    claims: list[int] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Turn costs and war declarations


def calculate_turn_cost(
    attacker_networth: float, defender_networth: float, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    """Turns an attack costs given the target's size relative to the attacker.

    Much smaller targets cost 6 turns, much larger ones 8, everything in
    between (both boundaries included) costs the base 4.
    """

    combat = rules.combat
    ratio = defender_networth / max(1, attacker_networth)
    if ratio < combat.networth_threshold:
        return floor_int(combat.base_turn_cost * combat.easy_target_multiplier)
    if ratio > 1 / combat.networth_threshold:
        return floor_int(combat.base_turn_cost * combat.hard_target_multiplier)
    return combat.base_turn_cost


def requires_war_declaration(
    prior_attack_count: int, *, rules: RulesConfig = DEFAULT_RULES
) -> bool:
    return prior_attack_count >= rules.combat.attacks_before_war


def validate_attack_type(attack_type: AttackType | str, has_peasants: bool) -> AttackValidation:
    """Check the restrictions attached to an attack type."""

    try:
        kind = AttackType(attack_type)
    except ValueError:
        return AttackValidation(False, f"Unknown attack type '{attack_type}'")

    if kind == AttackType.GUERILLA_RAID:
        return AttackValidation(
            True, "Guerilla Raid: no land will be taken, only troops and peasants are killed"
        )
    if kind == AttackType.MOB_ASSAULT:
        if not has_peasants:
            return AttackValidation(False, "Mob Assault requires peasants, you have none to send")
        return AttackValidation(
            True, "Mob Assault: your peasants will be at risk and less land is taken"
        )
    return AttackValidation(True)


# ---------------------------------------------------------------------------
# Army strength


def calculate_army_power(
    units: Mapping[str, int], unit_modifiers: Mapping[str, float] | None = None
) -> ArmyPower:
    """Sum unit weights times counts, scaled by optional per-unit modifiers."""

    modifiers = unit_modifiers or {}
    offense = 0.0
    defense = 0.0
    count = 0
    breakdown: dict[str, tuple[float, float]] = {}
    for unit, raw_count in units.items():
        amount = max(0, raw_count)
        if amount == 0:
            continue
        stats = UNIT_STATS.get(unit.lower(), DEFAULT_UNIT_STATS)
        modifier = modifiers.get(unit, 1.0)
        unit_offense = stats.attack * amount * modifier
        unit_defense = stats.defense * amount * modifier
        breakdown[unit] = (unit_offense, unit_defense)
        offense += unit_offense
        defense += unit_defense
        count += amount
    return ArmyPower(offense=offense, defense=defense, unit_count=count, breakdown=breakdown)


def calculate_networth(
    land: int, gold: int, units: Mapping[str, int], *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    unit_total = sum(max(0, amount) for amount in units.values())
    return (
        max(0, land) * rules.combat.land_networth_value
        + max(0, gold)
        + unit_total * rules.combat.unit_networth_value
    )


def calculate_fort_defense(
    race: str | Race | None, fort_count: int, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    per_fort = lookup_by_race(FORT_DEFENSE, race, rules.combat.default_fort_value)
    return max(0, fort_count) * per_fort


# ---------------------------------------------------------------------------
# Resolution


def determine_result_tier(ratio: float, *, rules: RulesConfig = DEFAULT_RULES) -> ResultTier:
    if ratio >= rules.combat.with_ease_ratio:
        return ResultTier.WITH_EASE
    if ratio >= rules.combat.good_fight_ratio:
        return ResultTier.GOOD_FIGHT
    return ResultTier.FAILED


def _land_percentage_range(
    tier: ResultTier, rules: RulesConfig
) -> tuple[float, float]:
    combat = rules.combat
    if tier == ResultTier.WITH_EASE:
        return combat.with_ease_land_min, combat.with_ease_land_max
    if tier == ResultTier.GOOD_FIGHT:
        return combat.good_fight_land_min, combat.good_fight_land_max
    return 0.0, 0.0


def land_gain_range(
    tier: ResultTier, target_land: int, *, rules: RulesConfig = DEFAULT_RULES
) -> tuple[int, int]:
    """Inclusive bounds of the acres a full attack of ``tier`` can take."""

    low, high = _land_percentage_range(tier, rules)
    land = max(0, target_land)
    return floor_int(land * low), floor_int(land * high)


def calculate_land_gained(
    tier: ResultTier,
    target_land: int,
    *,
    attack_type: AttackType = AttackType.FULL_ATTACK,
    cs_percentage: float | None = None,
    rng: RandomSource | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> int:
    """Acres taken by a successful attack of ``tier``.

    Controlled strikes take a fixed share of the target; every other attack
    draws a share uniformly from the tier's range.
    """

    if tier == ResultTier.FAILED or target_land <= 0:
        return 0
    combat = rules.combat
    if attack_type == AttackType.GUERILLA_RAID:
        return 0

    if attack_type == AttackType.CONTROLLED_STRIKE:
        # Zero or missing strike shares fall back to CS1.
        pct = cs_percentage if cs_percentage else combat.cs1_percentage
        pct = max(0.0, min(1.0, pct))
        land = floor_int(target_land * pct)
    else:
        source = rng or SystemRandomSource()
        low, high = _land_percentage_range(tier, rules)
        land = floor_int(target_land * source.uniform(low, high))
        if attack_type == AttackType.MOB_ASSAULT:
            land = floor_int(land * combat.mob_assault_land_factor)

    return max(0, min(land, target_land))


def loss_rates(tier: ResultTier, rules: RulesConfig) -> tuple[float, float]:
    combat = rules.combat
    if tier == ResultTier.WITH_EASE:
        return combat.with_ease_attacker_loss, combat.with_ease_defender_loss
    if tier == ResultTier.GOOD_FIGHT:
        return combat.good_fight_attacker_loss, combat.good_fight_defender_loss
    return combat.failed_attacker_loss, combat.failed_defender_loss


def calculate_combat_result(
    attacker: AttackForce,
    defender: DefenseForce,
    target_total_land: int,
    *,
    attack_type: AttackType = AttackType.FULL_ATTACK,
    cs_percentage: float | None = None,
    rng: RandomSource | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> CombatResult:
    """Resolve one attack into a tier, casualties, and spoils."""

    combat = rules.combat
    committed_offense = max(0.0, attacker.total_offense)
    committed_defense = max(0.0, defender.total_defense)

    effective_offense = committed_offense
    if defender.ambush_active:
        effective_offense *= 1 - combat.ambush_negation

    ratio = effective_offense / max(1.0, committed_defense)
    tier = determine_result_tier(ratio, rules=rules)

    land = calculate_land_gained(
        tier,
        target_total_land,
        attack_type=attack_type,
        cs_percentage=cs_percentage,
        rng=rng,
        rules=rules,
    )
    attacker_rate, defender_rate = loss_rates(tier, rules)

    return CombatResult(
        success=tier != ResultTier.FAILED,
        result_type=tier,
        attack_type=attack_type,
        land_gained=land,
        attacker_losses=floor_int(committed_offense * attacker_rate),
        defender_losses=floor_int(committed_defense * defender_rate),
        gold_looted=land * combat.gold_per_acre,
        structures_destroyed=floor_int(land * combat.structures_per_acre),
        power_ratio=ratio,
        effective_offense=effective_offense,
    )


# ---------------------------------------------------------------------------
# Supporting calculations


def calculate_combat_summon_troops(
    race: str | Race | None,
    networth: float,
    cash_multiplier: float = 1.0,
    guildhall_bonus: float = 0.0,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> int:
    """Troops summoned from networth, inflated by cash and guildhalls."""

    rate = lookup_by_race(SUMMON_RATES, race, rules.combat.default_summon_rate)
    inflated = max(0.0, networth * cash_multiplier + guildhall_bonus)
    return floor_int(inflated * rate)


def calculate_optimal_army_reduction(
    army_size: int, tier: ResultTier, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    """Army worth sending next time: trimmed after an easy win, unchanged otherwise."""

    if tier == ResultTier.WITH_EASE:
        return floor_int(army_size * (1 - rules.combat.army_reduction_rate))
    return army_size


def calculate_pass_the_plate_efficiency(
    warriors: Iterable[Warrior], total_land: int, *, max_share: float | None = None
) -> PassThePlateResult:
    """Greedy sequential land grab by several warriors on one target."""

    remaining = max(0, total_land)
    gained = 0
    turns = 0
    claims: list[int] = []
    for warrior in warriors:
        if remaining <= 0:
            break
        claim = min(max(0, warrior.land_capacity), remaining)
        if max_share is not None:
            claim = min(claim, floor_int(remaining * max_share))
        claims.append(claim)
        gained += claim
        remaining -= claim
        turns += 1

    return PassThePlateResult(
        total_land_gained=gained,
        turns_required=turns,
        efficiency=safe_ratio(gained, turns),
        claims=claims,
    )
