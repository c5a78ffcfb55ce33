"""Declarative rule configuration for the Monarchy engine.

Per-race lookup tables live next to the rules that read them; this module
only carries the scalar tuning constants of each subsystem.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AgeRules:
    """Round length, age boundaries, and transition warnings."""

    early_age_hours: int = 168
    middle_age_hours: int = 336
    late_age_hours: int = 504
    total_game_hours: int = 1008
    early_to_middle: float = 0.25
    middle_to_late: float = 0.67
    approaching_warning_hours: int = 72
    imminent_warning_hours: int = 24


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Turn costs, result tiers, losses, and spoils."""

    base_turn_cost: int = 4
    networth_threshold: float = 0.5
    easy_target_multiplier: float = 1.5  # 6 turns
    hard_target_multiplier: float = 2.0  # 8 turns
    attacks_before_war: int = 3
    with_ease_ratio: float = 2.0
    good_fight_ratio: float = 1.2
    with_ease_land_min: float = 0.070
    with_ease_land_max: float = 0.0735
    good_fight_land_min: float = 0.0679
    good_fight_land_max: float = 0.070
    cs1_percentage: float = 0.01
    mob_assault_land_factor: float = 0.8
    ambush_negation: float = 0.95
    with_ease_attacker_loss: float = 0.05
    with_ease_defender_loss: float = 0.20
    good_fight_attacker_loss: float = 0.15
    good_fight_defender_loss: float = 0.15
    failed_attacker_loss: float = 0.25
    failed_defender_loss: float = 0.05
    gold_per_acre: int = 1000
    structures_per_acre: float = 0.10
    army_reduction_rate: float = 0.25
    default_summon_rate: float = 0.025
    default_fort_value: int = 250
    land_networth_value: int = 1000
    unit_networth_value: int = 100


@dataclass(frozen=True, slots=True)
class ThieveryRules:
    """Detection, casualties, theft, and operation tuning."""

    minimum_scum: int = 100
    optimal_detection: float = 0.85
    max_detection: float = 0.95
    green_death_min: float = 0.01
    green_death_max: float = 0.025
    elite_death_min: float = 0.0088
    elite_death_max: float = 0.0094
    base_theft_amount: int = 3_500_000
    max_theft_share: float = 0.1
    theft_success_casualties: float = 0.015
    failure_casualties: float = 0.05
    protection_floor_ratio: float = 0.1
    protection_buffer: float = 1.2
    layered_defense_land_threshold: int = 20_000
    small_kingdom_scum_ratio: float = 0.5
    large_kingdom_scum_ratio: float = 0.4
    sabotage_kill_rate: float = 0.02
    burn_structure_rate: float = 0.01
    intercept_cash_share: float = 0.05


@dataclass(frozen=True, slots=True)
class FaithRules:
    """Faith level thresholds and per-level scaling."""

    level_thresholds: tuple[int, ...] = (10, 50, 200, 500, 1000)
    bonus_per_level: float = 0.1


@dataclass(frozen=True, slots=True)
class FocusRules:
    """Focus point economy."""

    points_per_hour: int = 2
    max_storage_base: int = 100
    racial_ability_boost: float = 1.5
    spell_power_boost: float = 1.3
    combat_focus_bonus: float = 0.2
    economic_focus_bonus: float = 0.15
    effect_duration: int = 5


@dataclass(frozen=True, slots=True)
class BountyRules:
    """Bounty valuation and environment screening."""

    sorcery_kill_rate: float = 0.30
    structure_bonus_rate: float = 0.20
    base_turn_value: int = 100
    default_build_rate_value: int = 100
    structure_turn_value: float = 0.5
    sorcerer_reduction: float = 0.95
    sorcerer_build_ratio: float = 20
    warrior_finish_share: float = 0.15
    warrior_structure_share: float = 0.1
    warrior_turns_saved: int = 20
    tithing_exhaustion_min: int = 11_000
    tithing_exhaustion_max: int = 15_000
    minimum_tithing_bonus: float = 0.1
    major_guild_count: int = 3
    safe_engaged_major_guilds: int = 2
    moderate_engaged_major_guilds: int = 1
    alternative_war_gains: int = 2000
    efficiency_margin: float = 5.0
    top_targets: int = 5


@dataclass(frozen=True, slots=True)
class BuildingRules:
    """Construction limits."""

    min_quarry_percentage: float = 0.0
    max_quarry_percentage: float = 100.0
    structure_gold_cost: int = 100


@dataclass(frozen=True, slots=True)
class TurnRules:
    """Turn generation and encamp bonuses."""

    turns_per_hour: int = 3
    minutes_per_turn: int = 20
    max_stored_turns: int = 72
    encamp_24_hours: int = 24
    encamp_24_bonus: int = 10
    encamp_16_hours: int = 16
    encamp_16_bonus: int = 7


@dataclass(frozen=True, slots=True)
class SorceryRules:
    """Elan generation, temple thresholds, and spell limits."""

    high_magic_elan_rate: float = 0.005
    standard_elan_rate: float = 0.003
    elan_per_temple: int = 10
    attacker_advantage: float = 1.15
    tier_thresholds: tuple[float, ...] = (0.02, 0.04, 0.08, 0.12)
    optimal_defense: float = 0.16
    max_shield_layers: int = 5
    spell_turn_cost: int = 2
    backlash_elan_per_temple: int = 2
    max_kill_casts: int = 100


@dataclass(frozen=True, slots=True)
class RestorationRules:
    """Protection windows granted after severe damage."""

    damage_based_hours: int = 48
    death_based_hours: int = 72
    grace_period_minutes: int = 15
    structure_loss_minimum: float = 0.70
    population_loss_minimum: float = 0.80


@dataclass(frozen=True, slots=True)
class KingdomRules:
    """Starting position of a newly founded kingdom."""

    starting_gold: int = 2000
    starting_population: int = 1000
    starting_land: int = 500
    starting_turns: int = 50
    starting_structures: int = 0
    starting_scum: int = 0


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    age: AgeRules = AgeRules()
    combat: CombatRules = CombatRules()
    thievery: ThieveryRules = ThieveryRules()
    faith: FaithRules = FaithRules()
    focus: FocusRules = FocusRules()
    bounty: BountyRules = BountyRules()
    building: BuildingRules = BuildingRules()
    turns: TurnRules = TurnRules()
    sorcery: SorceryRules = SorceryRules()
    restoration: RestorationRules = RestorationRules()
    kingdom: KingdomRules = KingdomRules()


DEFAULT_RULES = RulesConfig()
