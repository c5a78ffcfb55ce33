"""Tests for the JSON game repository."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from monarchy.domain import models as dm
from monarchy.domain.enums import FaithAlignment, FocusEffectType, Race, ReportKind
from monarchy.repository import JsonGameRepository


def _game() -> dm.GameState:
    game = dm.GameState(
        id=dm.GameID(1),
        name="Test Round",
        started_at=datetime(2024, 1, 1, tzinfo=UTC),
        current_turn=12,
    )
    kingdom = dm.Kingdom(
        id=dm.KingdomID(1),
        name="Avalon",
        race=Race.HUMAN,
        resources=dm.Resources(gold=5000, population=1000, land=500, turns=30),
        units={"infantry": 100},
        forts=2,
        scum_green=150,
        faith=dm.FaithState(alignment=FaithAlignment.NEUTRAL, faith_points=60, faith_level=2),
        focus=dm.FocusState(
            points=40,
            active_effects=[
                dm.FocusEffect(FocusEffectType.COMBAT_FOCUS_BONUS, 1.2, duration=5, applied_at=10)
            ],
        ),
        attack_counts={dm.KingdomID(2): 3},
        wars=[dm.KingdomID(2)],
    )
    game.kingdoms[kingdom.id] = kingdom
    game.reports.append(
        dm.ActionReport(
            turn=12,
            kind=ReportKind.ATTACK,
            actor_id=kingdom.id,
            target_id=dm.KingdomID(2),
            summary="Avalon attacked Mordor",
            payload={"land_gained": 35},
        )
    )
    return game


def test_save_and_load_game(tmp_path):
    repo = JsonGameRepository(tmp_path)
    game = _game()

    path = repo.save(game)
    assert path.name == "game_1.json"

    loaded = repo.load(dm.GameID(1))

    assert loaded.name == "Test Round"
    assert loaded.current_turn == 12
    kingdom = loaded.kingdoms[dm.KingdomID(1)]
    assert kingdom.race == Race.HUMAN
    assert kingdom.resources.gold == 5000
    assert kingdom.units == {"infantry": 100}
    assert kingdom.faith.alignment == FaithAlignment.NEUTRAL
    assert kingdom.focus.active_effects[0].effect_type == FocusEffectType.COMBAT_FOCUS_BONUS
    assert kingdom.attack_counts == {dm.KingdomID(2): 3}
    assert loaded.reports[0].kind == ReportKind.ATTACK
    assert loaded.reports[0].payload == {"land_gained": 35}


def test_list_and_delete_games(tmp_path):
    repo = JsonGameRepository(tmp_path)
    repo.save(_game())
    (tmp_path / "game_notanumber.json").write_text("{}")

    assert repo.list_games() == [dm.GameID(1)]
    assert repo.exists(dm.GameID(1))

    repo.delete(dm.GameID(1))

    assert not repo.exists(dm.GameID(1))
    assert repo.list_games() == []
    repo.delete(dm.GameID(1))


def test_missing_game_raises(tmp_path):
    repo = JsonGameRepository(tmp_path)
    with pytest.raises(FileNotFoundError):
        repo.load(dm.GameID(99))
