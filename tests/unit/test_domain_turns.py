"""Unit tests for turn generation and encamping."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from monarchy.domain import turns
from monarchy.domain.enums import EncampType, TurnAction

START = datetime(2024, 1, 1, tzinfo=UTC)


def test_turns_accrue_per_hour():
    status = turns.calculate_current_turns(START, 10, START + timedelta(hours=2))

    assert status.current_turns == 16
    assert status.max_stored_turns == 72
    assert status.next_turn_time == START + timedelta(hours=2, minutes=20)


def test_turns_are_capped():
    status = turns.calculate_current_turns(START, 70, START + timedelta(hours=10))
    assert status.current_turns == 72


def test_partial_hours_round_down():
    status = turns.calculate_current_turns(START, 0, START + timedelta(minutes=50))
    assert status.current_turns == 2


def test_active_encamp_grants_bonus_and_raises_cap():
    encamp = turns.start_encamp(EncampType.ENCAMP_24, START)
    assert encamp.end_time == START + timedelta(hours=24)
    assert encamp.bonus_turns == 10

    status = turns.calculate_current_turns(
        START, 70, START + timedelta(hours=1), encamp=encamp
    )

    assert status.max_stored_turns == 82
    assert status.current_turns == 82


def test_encamp_expires():
    encamp = turns.start_encamp("encamp_16", START)

    later = turns.update_encamp_status(encamp, START + timedelta(hours=17))

    assert not later.is_active
    assert later.remaining_hours == 0.0
    status = turns.calculate_current_turns(START, 0, START + timedelta(hours=17), encamp=later)
    assert status.max_stored_turns == 72


def test_action_turn_costs():
    assert turns.calculate_action_turn_cost(TurnAction.BUILDING, 10) == 1
    assert turns.calculate_action_turn_cost("espionage_operation") == 2
    assert turns.calculate_action_turn_cost(TurnAction.CARAVAN_SEND, 3) == 3
    assert turns.calculate_action_turn_cost("dance", 2) == 2
    assert turns.calculate_action_turn_cost(TurnAction.TRAINING, 1, {"TRAINING": 1.5}) == 2


def test_encamp_recommendations():
    plan = [turns.PlannedAction(TurnAction.CARAVAN_SEND, 40)]

    enough = turns.calculate_optimal_encamp_timing(50, plan, 5)
    assert not enough.recommend_encamp

    natural = turns.calculate_optimal_encamp_timing(10, plan, 48)
    assert not natural.recommend_encamp

    long_window = turns.calculate_optimal_encamp_timing(0, plan, 12)
    assert not long_window.recommend_encamp

    big_plan = [turns.PlannedAction(TurnAction.CARAVAN_SEND, 200)]
    assert (
        turns.calculate_optimal_encamp_timing(0, big_plan, 30).encamp_type
        == EncampType.ENCAMP_24
    )
    assert (
        turns.calculate_optimal_encamp_timing(0, big_plan, 20).encamp_type
        == EncampType.ENCAMP_16
    )


def test_generated_turns_ignore_cap():
    status = turns.calculate_current_turns(START, 70, START + timedelta(hours=2))

    assert status.current_turns == 72
    assert status.generated_turns == 6


def test_turn_generation_summary():
    standard = turns.calculate_turn_generation()
    assert standard.base_turns_per_hour == 3
    assert standard.max_turn_storage == 72
    assert standard.encamp_bonuses == {EncampType.ENCAMP_24: 10, EncampType.ENCAMP_16: 7}

    bonus = turns.calculate_turn_generation(acceleration=turns.TURN_ACCELERATION["bonus"])
    assert bonus.base_turns_per_hour == pytest.approx(4.5)
    assert bonus.turn_acceleration == 1.5


def test_turn_efficiency():
    assert turns.calculate_turn_efficiency(0, {"land_gained": 100}) == turns.TurnEfficiency(0.0)

    efficiency = turns.calculate_turn_efficiency(
        10, {"land_gained": 50, "structures_built": 20, "gold": 999}
    )
    assert efficiency.efficiency == pytest.approx(60.0)
    assert efficiency.breakdown == {"land_gained": 5.0, "structures_built": 2.0}
