"""Integration tests for the FastAPI layer."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from monarchy.api.app import create_app
from monarchy.api.runtime import ApiState
from monarchy.config import Settings


def _make_app(tmp_path):
    def factory() -> ApiState:
        settings = Settings(data_dir=tmp_path, rng_seed="api-tests")
        return ApiState(settings=settings)

    app = create_app(state_factory=factory)
    transport = ASGITransport(app=app)
    return app, transport


async def _create_game(client: AsyncClient) -> int:
    started = datetime.now(UTC) - timedelta(hours=1)
    response = await client.post(
        "/games", json={"name": "Spring Round", "started_at": started.isoformat()}
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["kingdoms"] == []
    return payload["id"]


async def _create_kingdoms(client: AsyncClient, game_id: int) -> tuple[int, int]:
    attacker = await client.post(
        f"/games/{game_id}/kingdoms",
        json={
            "name": "Avalon",
            "race": "human",
            "units": {"infantry": 1000},
            "scum_green": 1000,
        },
    )
    assert attacker.status_code == 201
    defender = await client.post(
        f"/games/{game_id}/kingdoms",
        json={"name": "Mordor", "race": "goblin", "units": {"infantry": 300}},
    )
    assert defender.status_code == 201
    return attacker.json()["id"], defender.json()["id"]


@pytest.mark.asyncio
async def test_health_and_rules(tmp_path):
    app, transport = _make_app(tmp_path)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            health = await client.get("/health")
            assert health.status_code == 200
            assert health.json()["status"] == "ok"
            assert health.json()["seeded"] is True

            rules = await client.get("/rules")
            assert rules.status_code == 200
            payload = rules.json()
            assert payload["combat"]["base_turn_cost"] == 4
            assert payload["faith"]["level_thresholds"] == [10, 50, 200, 500, 1000]


@pytest.mark.asyncio
async def test_game_lifecycle(tmp_path):
    app, transport = _make_app(tmp_path)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            game_id = await _create_game(client)
            attacker_id, defender_id = await _create_kingdoms(client, game_id)

            age = await client.get(f"/games/{game_id}/age")
            assert age.status_code == 200
            assert age.json()["current_age"] == "early"

            attack = await client.post(
                f"/games/{game_id}/attacks",
                json={"attacker_id": attacker_id, "defender_id": defender_id},
            )
            assert attack.status_code == 200
            body = attack.json()
            assert body["result"]["result_type"] == "with_ease"
            assert 35 <= body["result"]["land_gained"] <= 36
            assert body["turn_cost"] == 4
            assert body["report"]["kind"] == "attack"

            detail = await client.get(f"/games/{game_id}")
            assert detail.status_code == 200
            kingdoms = {k["id"]: k for k in detail.json()["kingdoms"]}
            land = body["result"]["land_gained"]
            assert kingdoms[attacker_id]["land"] == 500 + land
            assert kingdoms[defender_id]["land"] == 500 - land
            assert kingdoms[attacker_id]["turns"] == 46
            assert len(detail.json()["reports"]) == 1

            theft = await client.post(
                f"/games/{game_id}/thievery",
                json={
                    "attacker_id": attacker_id,
                    "defender_id": defender_id,
                    "operation": "scout",
                },
            )
            assert theft.status_code == 200
            assert theft.json()["turn_cost"] == 2
            assert theft.json()["type"] == "scout"

            build = await client.post(
                f"/games/{game_id}/kingdoms/{attacker_id}/build",
                json={"category": "buildrate", "count": 10},
            )
            assert build.status_code == 200
            assert build.json()["brt"] == 4
            assert build.json()["building_name"] == "Quarries"
            assert build.json()["kingdom"]["quarries"] == 10

            regen = await client.post(f"/games/{game_id}/kingdoms/{attacker_id}/regenerate")
            assert regen.status_code == 200
            assert regen.json()["id"] == attacker_id


@pytest.mark.asyncio
async def test_error_mapping(tmp_path):
    app, transport = _make_app(tmp_path)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            missing = await client.get("/games/999")
            assert missing.status_code == 404

            game_id = await _create_game(client)
            attacker_id, _ = await _create_kingdoms(client, game_id)

            invalid_race = await client.post(
                f"/games/{game_id}/kingdoms", json={"name": "X", "race": "atlantean"}
            )
            assert invalid_race.status_code == 422

            incompatible = await client.post(
                f"/games/{game_id}/kingdoms",
                json={"name": "X", "race": "goblin", "alignment": "angelique"},
            )
            assert incompatible.status_code == 409

            self_attack = await client.post(
                f"/games/{game_id}/attacks",
                json={"attacker_id": attacker_id, "defender_id": attacker_id},
            )
            assert self_attack.status_code == 409
            assert "own kingdom" in self_attack.json()["detail"]

            no_target = await client.post(
                f"/games/{game_id}/attacks",
                json={"attacker_id": attacker_id, "defender_id": 77},
            )
            assert no_target.status_code == 404

            no_focus = await client.post(
                f"/games/{game_id}/kingdoms/{attacker_id}/focus",
                json={"ability": "COMBAT_FOCUS"},
            )
            assert no_focus.status_code == 409

            bad_count = await client.post(
                f"/games/{game_id}/kingdoms/{attacker_id}/build",
                json={"category": "income", "count": 0},
            )
            assert bad_count.status_code == 422


@pytest.mark.asyncio
async def test_calculators(tmp_path):
    app, transport = _make_app(tmp_path)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            combat = await client.post(
                "/calculators/combat",
                json={
                    "attacker_offense": 4000,
                    "defender_defense": 1000,
                    "target_land": 10_000,
                    "attacker_networth": 1000,
                    "defender_networth": 400,
                    "seed": "calc",
                },
            )
            assert combat.status_code == 200
            body = combat.json()
            assert body["result_type"] == "with_ease"
            assert body["attacker_losses"] == 200
            assert body["defender_losses"] == 200
            assert 700 <= body["land_gained"] <= 735
            assert body["gold_looted"] == body["land_gained"] * 1000
            assert body["land_range"] == [700, 735]
            assert body["turn_cost"] == 6

            ambush = await client.post(
                "/calculators/combat",
                json={
                    "attacker_offense": 10_000,
                    "defender_defense": 1000,
                    "target_land": 10_000,
                    "ambush_active": True,
                },
            )
            assert ambush.json()["result_type"] == "failed"
            assert ambush.json()["land_gained"] == 0
            assert ambush.json()["effective_offense"] == pytest.approx(500)
            assert ambush.json()["turn_cost"] is None

            brt = await client.get("/calculators/brt", params={"quarry_percentage": 100})
            assert brt.status_code == 200
            assert brt.json()["brt"] == 31

            brt_plan = await client.get(
                "/calculators/brt", params={"quarry_percentage": 4, "count": 10}
            )
            assert brt_plan.json()["turns"] == 3
            assert brt_plan.json()["warning"] is not None

            bounty = await client.post(
                "/calculators/bounty",
                json={
                    "targets": [
                        {
                            "kingdom_id": "slow",
                            "total_land": 20_000,
                            "total_structures": 10_000,
                            "build_ratio": 20,
                            "estimated_turns": 40,
                        },
                        {
                            "kingdom_id": "quick",
                            "total_land": 10_000,
                            "total_structures": 5000,
                            "build_ratio": 20,
                            "estimated_turns": 2,
                        },
                    ],
                    "max_turns": 50,
                },
            )
            assert bounty.status_code == 200
            ranked = bounty.json()["ranked"]
            assert [item["kingdom_id"] for item in ranked] == ["quick", "slow"]
            assert ranked[0]["total_value"] == 4180


@pytest.mark.asyncio
async def test_spell_and_restoration_calculators(tmp_path):
    app, transport = _make_app(tmp_path)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            spell = await client.post(
                "/calculators/spell",
                json={
                    "spell": "HURRICANE",
                    "caster_race": "human",
                    "current_elan": 10,
                    "caster_temples": 50,
                    "caster_structures": 1000,
                    "target_temples": 20,
                    "target_structures": 1000,
                    "target_forts": 100,
                },
            )
            assert spell.status_code == 200
            body = spell.json()
            assert body["success"] is True
            assert body["structure_damage"] == 31
            assert body["elan_after"] == 7

            broke = await client.post(
                "/calculators/spell",
                json={
                    "spell": "HURRICANE",
                    "caster_race": "human",
                    "current_elan": 1,
                    "caster_temples": 50,
                    "caster_structures": 1000,
                },
            )
            assert broke.json()["affordable"] is False

            unknown = await client.post(
                "/calculators/spell",
                json={
                    "spell": "METEOR",
                    "caster_race": "human",
                    "current_elan": 1,
                    "caster_temples": 0,
                    "caster_structures": 0,
                },
            )
            assert unknown.status_code == 422

            damage = await client.post(
                "/calculators/restoration",
                json={
                    "structures_before": 1000,
                    "structures_after": 0,
                    "population_before": 5000,
                    "population_after": 4000,
                },
            )
            assert damage.status_code == 200
            assert damage.json()["restoration_type"] == "death_based"
            assert damage.json()["protection_hours"] == 72
