"""Unit tests for restoration eligibility and protection windows."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from monarchy.domain import restoration
from monarchy.domain.enums import GuildWarStatus, RestorationType, ThreatLevel, WarPhase

START = datetime(2024, 1, 1, tzinfo=UTC)


def _condition(structures: int, population: int, *critical: str) -> restoration.KingdomCondition:
    return restoration.KingdomCondition(structures, population, frozenset(critical))


def test_heavy_structure_loss_is_damage_based():
    assessment = restoration.assess_damage(_condition(1000, 5000), _condition(250, 4000))

    assert assessment.structure_loss == pytest.approx(0.75)
    assert assessment.population_loss == pytest.approx(0.20)
    assert assessment.qualifies
    assert assessment.restoration_type == RestorationType.DAMAGE_BASED


def test_population_and_critical_losses_qualify():
    famine = restoration.assess_damage(_condition(1000, 5000), _condition(900, 900))
    assert famine.restoration_type == RestorationType.DAMAGE_BASED

    palace = restoration.assess_damage(
        _condition(1000, 5000, "palace", "fortress"), _condition(990, 5000, "fortress")
    )
    assert palace.critical_infrastructure_destroyed
    assert palace.restoration_type == RestorationType.DAMAGE_BASED


def test_light_damage_does_not_qualify():
    assessment = restoration.assess_damage(_condition(1000, 5000), _condition(400, 1100))

    assert not assessment.qualifies
    assert assessment.restoration_type == RestorationType.NONE


def test_elimination_is_death_based():
    assessment = restoration.assess_damage(_condition(1000, 5000), _condition(0, 5000))
    assert assessment.restoration_type == RestorationType.DEATH_BASED


def test_empty_kingdom_cannot_be_eliminated():
    assessment = restoration.assess_damage(_condition(0, 5000), _condition(0, 5000))

    assert assessment.structure_loss == 0.0
    assert not assessment.qualifies


def test_restoration_status_windows():
    damage = restoration.calculate_restoration_status(
        START, RestorationType.DAMAGE_BASED, START + timedelta(hours=12)
    )
    assert damage.end_time == START + timedelta(hours=48)
    assert damage.remaining_hours == pytest.approx(36)
    assert damage.is_active

    death = restoration.calculate_restoration_status(
        START, "death_based", START + timedelta(hours=80)
    )
    assert death.end_time == START + timedelta(hours=72)
    assert death.remaining_hours == 0
    assert not death.is_active


def test_actions_during_restoration():
    status = restoration.calculate_restoration_status(
        START, RestorationType.DAMAGE_BASED, START + timedelta(hours=1)
    )

    assert restoration.is_action_allowed(status, "building_construction")
    assert not restoration.is_action_allowed(status, "combat_attacks")
    assert not restoration.is_action_allowed(status, "espionage_targeting")
    assert restoration.is_action_allowed(None, "combat_attacks")


def test_grace_period():
    assert restoration.within_grace_period(START, START + timedelta(minutes=15))
    assert not restoration.within_grace_period(START, START + timedelta(minutes=16))


def test_strategic_restoration_value():
    value = restoration.calculate_strategic_restoration_value(
        RestorationType.DEATH_BASED, GuildWarStatus.ACTIVE, ThreatLevel.HIGH
    )

    assert value.protection_hours == 72
    assert value.rebuilding_capability == 0.6
    assert value.total_strategic_worth == pytest.approx(72 * 0.3 + 60 + 45 + 60)

    quiet = restoration.calculate_strategic_restoration_value("damage_based", "recovery", "low")
    assert quiet.guild_coordination_value == 0.5
    assert quiet.enemy_denial_value == 0.3


def test_sorcery_kill_efficiency():
    kill = restoration.calculate_sorcery_kill_efficiency(24, 72, 30)
    assert kill.recommend_kill
    assert kill.efficiency == pytest.approx(3.0)
    assert len(kill.reasoning) == 2

    skip = restoration.calculate_sorcery_kill_efficiency(24, 48, 100)
    assert not skip.recommend_kill

    assert restoration.calculate_sorcery_kill_efficiency(0, 72, 30).efficiency == 0.0


def test_guild_restoration_coordination():
    plan = restoration.calculate_guild_restoration_coordination(2, 8, 1000)

    assert plan.resource_reallocation == pytest.approx(200)
    assert plan.coordination_efficiency == pytest.approx(0.94)
    assert plan.strategic_advantage == pytest.approx(0.8)

    empty = restoration.calculate_guild_restoration_coordination(0, 0, 1000)
    assert empty.resource_reallocation == 0.0


def test_optimal_restoration_timing():
    assert restoration.calculate_optimal_restoration_timing(WarPhase.ACTIVE_COMBAT).optimal_trigger
    assert not restoration.calculate_optimal_restoration_timing("resolution").optimal_trigger

    preparing = restoration.calculate_optimal_restoration_timing(
        WarPhase.PREPARATION, ["rebuilding", "coordination"]
    )
    assert preparing.optimal_trigger
    assert preparing.strategic_benefit == pytest.approx(1.4)

    idle = restoration.calculate_optimal_restoration_timing(WarPhase.PREPARATION)
    assert not idle.optimal_trigger
