"""Tests for API runtime helpers (shared state and rules export)."""

from __future__ import annotations

import pytest

from monarchy.api.runtime import ApiState, rules_as_dict
from monarchy.config import Settings
from monarchy.domain import models as dm
from monarchy.domain.rules_config import DEFAULT_RULES
from monarchy.repository import JsonGameRepository
from monarchy.services import KingdomDraft


def test_rules_as_dict_exposes_every_subsystem():
    payload = rules_as_dict(DEFAULT_RULES)

    assert payload["combat"]["with_ease_ratio"] == 2.0
    assert payload["thievery"]["minimum_scum"] == 100
    assert payload["building"]["structure_gold_cost"] == 100
    assert payload["age"]["total_game_hours"] == 1008


def test_state_wires_repository_and_service(tmp_path):
    state = ApiState(settings=Settings(data_dir=tmp_path, rng_seed="wired"))

    assert state.repository.base_path == tmp_path
    assert state.games.rules is DEFAULT_RULES
    game = state.games.create_game("Round")
    assert (tmp_path / f"game_{game.id}.json").exists()


@pytest.mark.asyncio
async def test_shutdown_flushes_cached_games(tmp_path):
    state = ApiState(settings=Settings(data_dir=tmp_path))
    game = state.games.create_game("Round")
    kingdom = state.games.add_kingdom(game.id, KingdomDraft(name="Avalon", race="human"))

    # Mutations made outside a service action only reach disk on shutdown.
    kingdom.forts = 7
    await state.shutdown()

    reloaded = JsonGameRepository(tmp_path).load(game.id)
    assert reloaded.kingdoms[dm.KingdomID(kingdom.id)].forts == 7


def test_settings_read_prefixed_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("MONARCHY_PORT", "9001")
    monkeypatch.setenv("MONARCHY_DATA_DIR", str(tmp_path))

    settings = Settings()

    assert settings.port == 9001
    assert settings.data_dir == tmp_path
    assert settings.cors_origins == []
