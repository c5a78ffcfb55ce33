"""Unit tests for faith alignments and focus points."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from monarchy.domain import faith
from monarchy.domain import models as dm
from monarchy.domain.enums import FaithAlignment, FocusAbility, FocusEffectType, Race


def test_faith_levels():
    assert faith.calculate_faith_level(0) == 0
    assert faith.calculate_faith_level(10) == 1
    assert faith.calculate_faith_level(49) == 1
    assert faith.calculate_faith_level(50) == 2
    assert faith.calculate_faith_level(1000) == 5
    assert faith.calculate_faith_level(10**9) == 5


def test_faith_bonuses_scale_with_level():
    base = faith.get_faith_bonuses(FaithAlignment.ANGELIQUE, 0)
    assert base == {"spell_effectiveness": 0.1, "combat_bonus": 0.05}

    scaled = faith.get_faith_bonuses("angelique", 2)
    assert scaled["combat_bonus"] == pytest.approx(0.06)

    assert faith.get_faith_bonuses(None, 3) == {}
    assert faith.get_faith_bonuses("chaos", 3) == {}
    assert faith.get_faith_bonuses(FaithAlignment.NEUTRAL, 5) == {}


def test_alignment_compatibility():
    assert faith.can_use_faith_alignment(Race.HUMAN, FaithAlignment.NEUTRAL).can_use
    assert faith.can_use_faith_alignment("ELVEN", "elemental").can_use

    refused = faith.can_use_faith_alignment(Race.GOBLIN, FaithAlignment.ANGELIQUE)
    assert not refused.can_use
    assert "Angelique" in (refused.reason or "")

    assert not faith.can_use_faith_alignment(Race.HUMAN, "chaos").can_use
    assert not faith.can_use_faith_alignment("atlantean", "neutral").can_use


def test_faith_enhancements():
    assert faith.enhance_spell_with_faith(100, FaithAlignment.ANGELIQUE, 0) == pytest.approx(110)
    assert faith.enhance_racial_ability_with_faith(2.0, FaithAlignment.ANGELIQUE, 0) == 2.0


def test_add_faith_points_recomputes_level():
    state = dm.FaithState(alignment=FaithAlignment.NEUTRAL, faith_points=45, faith_level=1)

    updated = faith.add_faith_points(state, 10)

    assert updated.faith_points == 55
    assert updated.faith_level == 2
    assert state.faith_points == 45


def test_focus_generation_and_storage():
    assert faith.calculate_focus_generation(Race.VAMPIRE) == 2
    assert faith.calculate_focus_generation(Race.SIDHE, 10) == 11
    assert faith.calculate_max_focus_points(Race.VAMPIRE) == 120
    assert faith.calculate_max_focus_points("unknown") == 100


def test_focus_points_regenerate_up_to_cap():
    start = datetime(2024, 1, 1, tzinfo=UTC)
    assert faith.update_focus_points(10, 100, start, 2, start + timedelta(hours=5)) == 20
    assert faith.update_focus_points(95, 100, start, 2, start + timedelta(hours=5)) == 100
    assert faith.update_focus_points(10, 100, start, 2, start - timedelta(hours=5)) == 10


def test_can_use_focus_ability():
    check = faith.can_use_focus_ability(FocusAbility.COMBAT_FOCUS, 7)
    assert not check.can_use
    assert check.cost == 8

    assert faith.can_use_focus_ability("combat_focus", 8).can_use

    unknown = faith.can_use_focus_ability("TIME_STOP", 100)
    assert not unknown.can_use
    assert unknown.cost == 0


def test_apply_focus_effect():
    effect = faith.apply_focus_effect(FocusEffectType.COMBAT_FOCUS_BONUS, 1.0, applied_at=4)

    assert effect.enhanced_value == pytest.approx(1.2)
    assert effect.duration == 5
    assert effect.applied_at == 4

    racial = faith.apply_focus_effect("racial_ability_boost", 2.0)
    assert racial.enhanced_value == pytest.approx(3.0)


def test_unknown_focus_effect_produces_nothing():
    assert faith.apply_focus_effect("TIME_DILATION", 1.0) is None


def test_focus_points_generated_counts_whole_points():
    start = datetime(2024, 1, 1, tzinfo=UTC)
    assert faith.focus_points_generated(start, 2, start + timedelta(minutes=45)) == 1
    assert faith.focus_points_generated(start, 2, start + timedelta(hours=3)) == 6
    assert faith.focus_points_generated(start, 2, start - timedelta(hours=1)) == 0


def test_effect_expiry():
    effect = dm.FocusEffect(FocusEffectType.SPELL_POWER_BOOST, 1.3, duration=5, applied_at=0)
    assert not faith.is_effect_expired(effect, 4)
    assert faith.is_effect_expired(effect, 5)


def test_use_focus_ability_records_effect():
    state = dm.FocusState(points=20)

    use = faith.use_focus_ability(state, FocusAbility.COMBAT_FOCUS, 1.0, current_turn=3)

    assert use.check.can_use
    assert use.state.points == 12
    assert use.effect is not None
    assert use.effect.applied_at == 3
    assert use.state.active_effects == [use.effect]
    assert state.points == 20


def test_emergency_action_leaves_no_effect():
    use = faith.use_focus_ability(dm.FocusState(points=25), "EMERGENCY_ACTION", 1.0, 0)

    assert use.state.points == 5
    assert use.effect is None
    assert use.state.active_effects == []


def test_unaffordable_ability_keeps_state():
    state = dm.FocusState(points=3)

    use = faith.use_focus_ability(state, FocusAbility.SPELL_POWER_BOOST, 1.0, 0)

    assert not use.check.can_use
    assert use.state is state


def test_prune_expired_effects():
    state = dm.FocusState(
        points=0,
        active_effects=[
            dm.FocusEffect(FocusEffectType.COMBAT_FOCUS_BONUS, 1.2, duration=5, applied_at=0),
            dm.FocusEffect(FocusEffectType.ECONOMIC_FOCUS_BONUS, 1.15, duration=5, applied_at=4),
        ],
    )

    pruned = faith.prune_expired_effects(state, 6)

    assert [e.effect_type for e in pruned.active_effects] == [FocusEffectType.ECONOMIC_FOCUS_BONUS]
