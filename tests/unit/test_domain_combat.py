"""Unit tests for combat resolution."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from monarchy.domain import combat
from monarchy.domain.enums import AttackType, Race, ResultTier
from monarchy.utils.rng import FixedRandomSource, SeededRandomSource


def _forces(offense: float, defense: float, *, ambush: bool = False):
    return (
        combat.AttackForce(units={}, total_offense=offense),
        combat.DefenseForce(units={}, total_defense=defense, ambush_active=ambush),
    )


def test_turn_cost_follows_networth_ratio():
    assert combat.calculate_turn_cost(1000, 1000) == 4
    assert combat.calculate_turn_cost(1000, 400) == 6
    assert combat.calculate_turn_cost(1000, 2500) == 8


def test_turn_cost_boundaries_use_base_cost():
    assert combat.calculate_turn_cost(1000, 500) == 4
    assert combat.calculate_turn_cost(1000, 2000) == 4


def test_turn_cost_tolerates_zero_attacker_networth():
    assert combat.calculate_turn_cost(0, 5000) == 8


def test_result_tier_boundaries():
    assert combat.determine_result_tier(2.0) == ResultTier.WITH_EASE
    assert combat.determine_result_tier(1.99) == ResultTier.GOOD_FIGHT
    assert combat.determine_result_tier(1.2) == ResultTier.GOOD_FIGHT
    assert combat.determine_result_tier(1.19) == ResultTier.FAILED


def test_overwhelming_attack_wins_with_ease():
    attacker, defender = _forces(4000, 1000)

    result = combat.calculate_combat_result(
        attacker, defender, 10_000, rng=FixedRandomSource(0.0)
    )

    assert result.success
    assert result.result_type == ResultTier.WITH_EASE
    assert result.attacker_losses == 200
    assert result.defender_losses == 200
    assert result.land_gained == 700
    assert result.gold_looted == 700 * 1000
    assert result.structures_destroyed == 70
    assert result.power_ratio == pytest.approx(4.0)


def test_top_of_land_range_is_reachable():
    attacker, defender = _forces(4000, 1000)

    result = combat.calculate_combat_result(
        attacker, defender, 10_000, rng=FixedRandomSource(1.0)
    )

    assert result.land_gained == 735


@given(value=st.floats(min_value=0.0, max_value=1.0))
def test_with_ease_land_stays_in_range(value):
    attacker, defender = _forces(4000, 1000)

    result = combat.calculate_combat_result(
        attacker, defender, 10_000, rng=FixedRandomSource(value)
    )

    assert 700 <= result.land_gained <= 735
    assert result.gold_looted == result.land_gained * 1000


def test_ambush_negates_offense():
    attacker, defender = _forces(10_000, 1000, ambush=True)

    result = combat.calculate_combat_result(
        attacker, defender, 10_000, rng=FixedRandomSource(0.5)
    )

    assert result.effective_offense == pytest.approx(500)
    assert result.result_type == ResultTier.FAILED
    assert not result.success
    assert result.land_gained == 0
    assert result.gold_looted == 0


def test_failed_attack_losses():
    attacker, defender = _forces(1000, 1000)

    result = combat.calculate_combat_result(attacker, defender, 5000)

    assert result.result_type == ResultTier.FAILED
    assert result.attacker_losses == 250
    assert result.defender_losses == 50


def test_ratio_just_below_good_fight_fails():
    attacker, defender = _forces(1199.9, 1000)

    result = combat.calculate_combat_result(
        attacker, defender, 10_000, rng=FixedRandomSource(0.0)
    )

    assert result.power_ratio == pytest.approx(1.1999)
    assert result.result_type == ResultTier.FAILED
    assert not result.success
    assert result.land_gained == 0
    assert result.gold_looted == 0


def test_guerilla_raid_takes_no_land():
    attacker, defender = _forces(4000, 1000)

    result = combat.calculate_combat_result(
        attacker,
        defender,
        10_000,
        attack_type=AttackType.GUERILLA_RAID,
        rng=FixedRandomSource(1.0),
    )

    assert result.success
    assert result.land_gained == 0


def test_mob_assault_takes_reduced_land():
    land = combat.calculate_land_gained(
        ResultTier.WITH_EASE,
        10_000,
        attack_type=AttackType.MOB_ASSAULT,
        rng=FixedRandomSource(0.0),
    )

    assert land == 560


def test_controlled_strike_uses_fixed_share():
    assert (
        combat.calculate_land_gained(
            ResultTier.GOOD_FIGHT, 10_000, attack_type=AttackType.CONTROLLED_STRIKE
        )
        == 100
    )
    assert (
        combat.calculate_land_gained(
            ResultTier.WITH_EASE,
            10_000,
            attack_type=AttackType.CONTROLLED_STRIKE,
            cs_percentage=0.03,
        )
        == 300
    )
    assert (
        combat.calculate_land_gained(
            ResultTier.WITH_EASE,
            10_000,
            attack_type=AttackType.CONTROLLED_STRIKE,
            cs_percentage=0.0,
        )
        == 100
    )


def test_land_never_exceeds_target():
    land = combat.calculate_land_gained(
        ResultTier.WITH_EASE, 3, rng=SeededRandomSource("tiny-target")
    )
    assert 0 <= land <= 3


def test_land_gain_range_per_tier():
    assert combat.land_gain_range(ResultTier.WITH_EASE, 10_000) == (700, 735)
    assert combat.land_gain_range(ResultTier.GOOD_FIGHT, 10_000) == (679, 700)
    assert combat.land_gain_range(ResultTier.FAILED, 10_000) == (0, 0)


def test_validate_attack_type():
    assert combat.validate_attack_type(AttackType.FULL_ATTACK, True).valid
    mob = combat.validate_attack_type(AttackType.MOB_ASSAULT, False)
    assert not mob.valid
    assert "peasants" in (mob.warning or "")
    raid = combat.validate_attack_type("guerilla_raid", False)
    assert raid.valid
    assert raid.warning is not None
    assert not combat.validate_attack_type("siege", True).valid


def test_war_declaration_after_three_attacks():
    assert not combat.requires_war_declaration(2)
    assert combat.requires_war_declaration(3)


def test_army_power_sums_unit_weights():
    power = combat.calculate_army_power({"infantry": 10, "cavalry": 2, "golem": 1})

    assert power.offense == pytest.approx(30 + 10 + 2)
    assert power.defense == pytest.approx(20 + 6 + 2)
    assert power.unit_count == 13
    assert set(power.breakdown) == {"infantry", "cavalry", "golem"}


def test_army_power_applies_unit_modifiers():
    power = combat.calculate_army_power({"kobolds": 10}, {"kobolds": 1.5})
    assert power.offense == pytest.approx(30)


def test_networth_and_forts():
    assert combat.calculate_networth(100, 5000, {"infantry": 10}) == 106_000
    assert combat.calculate_fort_defense(Race.DWARVEN, 2) == 600
    assert combat.calculate_fort_defense("unknown", 2) == 500


def test_summons_and_army_reduction():
    assert combat.calculate_combat_summon_troops(Race.HUMAN, 100_000) == 2500
    assert combat.calculate_combat_summon_troops("mystery", 100_000) == 2500
    assert combat.calculate_optimal_army_reduction(1000, ResultTier.WITH_EASE) == 750
    assert combat.calculate_optimal_army_reduction(1000, ResultTier.GOOD_FIGHT) == 1000


def test_pass_the_plate_takes_remaining_land_in_order():
    warriors = [combat.Warrior(offense=100, land_capacity=300) for _ in range(3)]

    result = combat.calculate_pass_the_plate_efficiency(warriors, 700)

    assert result.claims == [300, 300, 100]
    assert result.total_land_gained == 700
    assert result.turns_required == 3


def test_pass_the_plate_share_cap():
    warriors = [combat.Warrior(offense=100, land_capacity=300) for _ in range(3)]

    result = combat.calculate_pass_the_plate_efficiency(warriors, 700, max_share=0.5)

    assert result.claims == [300, 200, 100]
    assert result.total_land_gained == 600


def test_pass_the_plate_without_warriors():
    result = combat.calculate_pass_the_plate_efficiency([], 700)
    assert result.total_land_gained == 0
    assert result.efficiency == 0.0


def test_combat_rules_carry_no_unread_limits():
    from dataclasses import fields

    from monarchy.domain.rules_config import CombatRules

    names = {field.name for field in fields(CombatRules)}
    assert "full_strike_max" not in names
    assert "minimum_land_gain" not in names
