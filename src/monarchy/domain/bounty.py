"""Bounty valuation, shared kills, and hunting environment screens.

A bounty is the land and structures a hunter collects by finishing off a
kingdom that sorcery has already gutted. The functions below value such
kills, split them between a sorcerer and a finishing warrior, and screen
whether the diplomatic climate makes hunting safe.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from monarchy.utils.numeric import floor_int, safe_ratio

from .enums import Comparison, Difficulty, GuildStatus, Race, SafetyLevel, lookup_by_race
from .rules_config import DEFAULT_RULES, RulesConfig

# Turn value by hunter build rate, in percent of the base turn value.
BUILD_RATE_TURN_VALUE: dict[int, int] = {16: 90, 17: 95, 18: 100, 19: 105, 20: 110}

TITHING_EFFICIENCY: dict[Race, float] = {
    Race.HUMAN: 1.2,
    Race.FAE: 1.15,
    Race.DWARVEN: 1.1,
    Race.VAMPIRE: 0.8,
}


@dataclass(slots=True)
class BountyReward:
    land_gained: int
    structures_gained: int
    turns_saved: int
    total_value: int


@dataclass(slots=True)
class BountyTarget:
    kingdom_id: str
    total_land: int
    total_structures: int
    build_ratio: float
    difficulty: Difficulty = Difficulty.MEDIUM
    estimated_turns: int = 1


@dataclass(slots=True)
class RankedBountyTarget:
    target: BountyTarget
    reward: BountyReward
    efficiency: float


@dataclass(slots=True)
class SharedKillBenefit:
    sorcerer: BountyReward
    warrior: BountyReward
    total_efficiency: float


@dataclass(slots=True)
class TithingStatus:
    is_exhausted: bool
    optimal_bounty_timing: bool
    threshold: float


@dataclass(slots=True)
class BountyEnvironment:
    safety_level: SafetyLevel
    recommend_bounty_hunting: bool


@dataclass(slots=True)
class BountyEfficiency:
    efficiency: float
    comparison: Comparison
    advantage: float


@dataclass(slots=True)
class NpcBountyAdvantage:
    npc_advantage: float
    recommend_npc: bool
    reasons: list[str] = field(default_factory=list)


def calculate_bounty_value(
    target_land: float,
    target_structures: int,
    build_ratio: float,
    hunter_build_rate: int = 18,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> BountyReward:
    """Value of a sorcery kill on a target of ``target_land`` acres.

    ``target_structures`` is accepted for symmetry with the target record;
    structures gained derive from the build ratio instead.
    """

    bounty = rules.bounty
    land = floor_int(max(0.0, target_land) * bounty.sorcery_kill_rate)
    base_structures = floor_int(land * max(0.0, build_ratio) / 100)
    bonus_structures = floor_int(base_structures * bounty.structure_bonus_rate)
    structures = base_structures + bonus_structures

    br_value = BUILD_RATE_TURN_VALUE.get(hunter_build_rate, bounty.default_build_rate_value)
    turns_saved = floor_int(
        bounty.base_turn_value * br_value / 100 + structures * bounty.structure_turn_value
    )
    return BountyReward(
        land_gained=land,
        structures_gained=structures,
        turns_saved=turns_saved,
        total_value=land + structures + turns_saved,
    )


def calculate_shared_kill_benefit(
    target_land: int,
    target_structures: int,
    sorcerer_turns: int,
    warrior_turns: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> SharedKillBenefit:
    """Split a kill between a sorcerer who guts the target and a finishing warrior."""

    bounty = rules.bounty
    sorcerer = calculate_bounty_value(
        target_land * bounty.sorcerer_reduction,
        target_structures,
        bounty.sorcerer_build_ratio,
        rules=rules,
    )
    warrior_land = floor_int(max(0, target_land) * bounty.warrior_finish_share)
    warrior_structures = floor_int(warrior_land * bounty.warrior_structure_share)
    warrior = BountyReward(
        land_gained=warrior_land,
        structures_gained=warrior_structures,
        turns_saved=bounty.warrior_turns_saved,
        # Finishing structures are reported but not counted in the warrior total.
        total_value=warrior_land + bounty.warrior_turns_saved,
    )
    total_turns = max(0, sorcerer_turns) + max(0, warrior_turns)
    return SharedKillBenefit(
        sorcerer=sorcerer,
        warrior=warrior,
        total_efficiency=safe_ratio(sorcerer.total_value + warrior.total_value, total_turns),
    )


def calculate_tithing_exhaustion_threshold(
    race: str | Race | None,
    land: int,
    tithing_bonus: float,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> TithingStatus:
    bounty = rules.bounty
    threshold = bounty.tithing_exhaustion_max * lookup_by_race(TITHING_EFFICIENCY, race, 1.0)
    exhausted = land >= threshold or tithing_bonus < bounty.minimum_tithing_bonus
    return TithingStatus(
        is_exhausted=exhausted,
        optimal_bounty_timing=exhausted and land >= bounty.tithing_exhaustion_min,
        threshold=threshold,
    )


def assess_bounty_environment(
    major_at_war: int,
    minor_at_war: int,
    guild_status: GuildStatus | str,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> BountyEnvironment:
    """Screen the diplomatic climate by how many major guilds are busy at war.

    Minor guilds are reported but do not change the verdict.
    """

    bounty = rules.bounty
    engaged = max(0, min(major_at_war, bounty.major_guild_count))
    if engaged >= bounty.safe_engaged_major_guilds:
        return BountyEnvironment(SafetyLevel.SAFE, True)
    if engaged >= bounty.moderate_engaged_major_guilds:
        return BountyEnvironment(SafetyLevel.MODERATE, guild_status != GuildStatus.MAJOR)
    return BountyEnvironment(SafetyLevel.DANGEROUS, False)


def calculate_bounty_efficiency(
    reward: BountyReward,
    turns_invested: int,
    alternative_war_gains: float | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> BountyEfficiency:
    """Compare a bounty's value per turn with ordinary warfare."""

    bounty = rules.bounty
    war_gains = bounty.alternative_war_gains if alternative_war_gains is None else alternative_war_gains
    efficiency = safe_ratio(reward.total_value, turns_invested)
    advantage = efficiency - safe_ratio(war_gains, turns_invested)
    if advantage > bounty.efficiency_margin:
        comparison = Comparison.BETTER
    elif advantage < -bounty.efficiency_margin:
        comparison = Comparison.WORSE
    else:
        comparison = Comparison.EQUAL
    return BountyEfficiency(efficiency=efficiency, comparison=comparison, advantage=advantage)


def identify_optimal_bounty_targets(
    targets: Iterable[BountyTarget],
    max_turns: int,
    build_rate: int = 18,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[RankedBountyTarget]:
    """Best targets by reward per turn that fit the hunter's turn budget."""

    ranked: list[RankedBountyTarget] = []
    for target in targets:
        if target.estimated_turns > max_turns:
            continue
        reward = calculate_bounty_value(
            target.total_land, target.total_structures, target.build_ratio, build_rate, rules=rules
        )
        ranked.append(
            RankedBountyTarget(
                target=target,
                reward=reward,
                efficiency=safe_ratio(reward.total_value, target.estimated_turns),
            )
        )
    ranked.sort(key=lambda item: item.efficiency, reverse=True)
    return ranked[: rules.bounty.top_targets]


def calculate_npc_bounty_advantage(
    npc_target: BountyTarget, player_target: BountyTarget, *, rules: RulesConfig = DEFAULT_RULES
) -> NpcBountyAdvantage:
    npc = calculate_bounty_value(
        npc_target.total_land, npc_target.total_structures, npc_target.build_ratio, rules=rules
    )
    player = calculate_bounty_value(
        player_target.total_land,
        player_target.total_structures,
        player_target.build_ratio,
        rules=rules,
    )
    advantage = safe_ratio(npc.total_value, npc_target.estimated_turns) - safe_ratio(
        player.total_value, player_target.estimated_turns
    )

    reasons: list[str] = []
    if npc_target.difficulty == Difficulty.EASY:
        reasons.append("Lower resistance")
    if npc_target.estimated_turns < player_target.estimated_turns:
        reasons.append("Faster completion")
    if npc.land_gained > player.land_gained:
        reasons.append("More land gained")
    if npc.structures_gained > player.structures_gained:
        reasons.append("Better structures")

    return NpcBountyAdvantage(npc_advantage=advantage, recommend_npc=advantage > 0, reasons=reasons)
