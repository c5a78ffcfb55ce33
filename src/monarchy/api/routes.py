"""HTTP routes for the Monarchy API."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from monarchy.api.runtime import ApiState, rules_as_dict
from monarchy.domain import bounty, building, combat, restoration, sorcery
from monarchy.domain import models as dm
from monarchy.domain.enums import (
    AttackType,
    BuildingCategory,
    Difficulty,
    FaithAlignment,
    FocusAbility,
    Race,
    ScumOperationType,
    Spell,
)
from monarchy.services import (
    ActionRejected,
    AttackOrder,
    GameNotFound,
    KingdomDraft,
    KingdomNotFound,
    ThieveryOrder,
)
from monarchy.utils.rng import SeededRandomSource, SystemRandomSource

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0])


def _conflict(exc: ActionRejected) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


# ---------------------------------------------------------------------------
# Schemas


class KingdomDetail(BaseModel):
    id: int
    name: str
    race: str
    gold: int
    population: int
    land: int
    turns: int
    units: dict[str, int]
    forts: int
    structures: int
    quarries: int
    scum_green: int
    scum_elite: int
    faith_alignment: str | None
    faith_level: int
    focus_points: int
    focus_max_points: int
    active_effects: list[dict[str, object]]
    restoration: dict[str, object] | None = None
    wars: list[int]
    attack_counts: dict[str, int]


class ReportDetail(BaseModel):
    turn: int
    kind: str
    actor_id: int
    target_id: int | None
    summary: str
    payload: dict[str, object]


class GameDetail(BaseModel):
    id: int
    name: str
    started_at: datetime
    current_turn: int
    kingdoms: list[KingdomDetail]
    reports: list[ReportDetail]


class CreateGameRequest(BaseModel):
    name: str = Field(min_length=1)
    started_at: datetime | None = None


class CreateKingdomRequest(BaseModel):
    name: str = Field(min_length=1)
    race: Race
    alignment: FaithAlignment | None = None
    units: dict[str, Annotated[int, Field(ge=0)]] = Field(default_factory=dict)
    scum_green: int | None = Field(default=None, ge=0)
    scum_elite: int = Field(default=0, ge=0)
    forts: int = Field(default=0, ge=0)


class AgeResponse(BaseModel):
    current_age: str
    age_start_time: datetime
    age_end_time: datetime
    age_duration: int
    remaining_time: float
    effects: dict[str, object]
    warning: dict[str, object]


class AttackRequest(BaseModel):
    attacker_id: int
    defender_id: int
    attack_type: AttackType = AttackType.FULL_ATTACK
    units: dict[str, Annotated[int, Field(ge=0)]] | None = None
    cs_percentage: float | None = Field(default=None, ge=0.0, le=1.0)


class CombatResultResponse(BaseModel):
    success: bool
    result_type: str
    attack_type: str
    land_gained: int
    attacker_losses: int
    defender_losses: int
    gold_looted: int
    structures_destroyed: int
    power_ratio: float
    effective_offense: float


class AttackResponse(BaseModel):
    result: CombatResultResponse
    turn_cost: int
    war_declared: bool
    report: ReportDetail


class ThieveryRequest(BaseModel):
    attacker_id: int
    defender_id: int
    operation: ScumOperationType


class ThieveryResponse(BaseModel):
    type: str
    turn_cost: int
    success: bool
    detection_rate: float
    casualties: int
    result: dict[str, object]
    report: ReportDetail


class FocusRequest(BaseModel):
    ability: FocusAbility
    base_value: float = Field(default=1.0, ge=0.0)


class FocusResponse(BaseModel):
    can_use: bool
    cost: int
    reason: str | None
    points_remaining: int
    effect: dict[str, object] | None


class BuildRequest(BaseModel):
    category: BuildingCategory
    count: int = Field(gt=0)


class BuildResponse(BaseModel):
    building_name: str
    count: int
    brt: int
    turns: int
    wasted_capacity: int
    warning: str | None
    gold_cost: int
    kingdom: KingdomDetail


class CombatCalculatorRequest(BaseModel):
    attacker_offense: float = Field(ge=0.0)
    defender_defense: float = Field(ge=0.0)
    target_land: int = Field(ge=0)
    attack_type: AttackType = AttackType.FULL_ATTACK
    ambush_active: bool = False
    cs_percentage: float | None = Field(default=None, ge=0.0, le=1.0)
    attacker_networth: int | None = Field(default=None, ge=0)
    defender_networth: int | None = Field(default=None, ge=0)
    seed: str | None = None


class CombatCalculatorResponse(CombatResultResponse):
    land_range: tuple[int, int]
    turn_cost: int | None


class BrtResponse(BaseModel):
    quarry_percentage: float
    count: int
    brt: int
    turns: int
    wasted_capacity: int
    warning: str | None


class BountyTargetRequest(BaseModel):
    kingdom_id: str
    total_land: int = Field(ge=0)
    total_structures: int = Field(ge=0)
    build_ratio: float = Field(ge=0.0)
    difficulty: Difficulty = Difficulty.MEDIUM
    estimated_turns: int = Field(default=1, ge=1)


class BountyCalculatorRequest(BaseModel):
    targets: list[BountyTargetRequest] = Field(min_length=1)
    max_turns: int = Field(default=50, ge=0)
    hunter_build_rate: int = Field(default=18, ge=1)


class RankedTargetResponse(BaseModel):
    kingdom_id: str
    land_gained: int
    structures_gained: int
    turns_saved: int
    total_value: int
    efficiency: float


class BountyCalculatorResponse(BaseModel):
    ranked: list[RankedTargetResponse]


class SpellCalculatorRequest(BaseModel):
    spell: Spell
    caster_race: Race
    current_elan: int = Field(ge=0)
    caster_temples: int = Field(ge=0)
    caster_structures: int = Field(ge=0)
    target_temples: int = Field(default=0, ge=0)
    target_structures: int = Field(default=0, ge=0)
    target_forts: int = Field(default=0, ge=0)
    target_peasants: int = Field(default=0, ge=0)


class SpellCalculatorResponse(BaseModel):
    spell: str
    affordable: bool
    success: bool
    elan_after: int
    reason: str | None
    structure_damage: int
    fort_damage: int
    peasant_kills: int
    backlash_chance: float
    elan_cost: int


class RestorationCalculatorRequest(BaseModel):
    structures_before: int = Field(ge=0)
    structures_after: int = Field(ge=0)
    population_before: int = Field(ge=0)
    population_after: int = Field(ge=0)


class RestorationCalculatorResponse(BaseModel):
    structure_loss: float
    population_loss: float
    qualifies: bool
    restoration_type: str
    protection_hours: int


# ---------------------------------------------------------------------------
# Service endpoints


@router.get("/health", tags=["service"])
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "rules_version": state.settings.rules_version,
        "seeded": state.settings.rng_seed is not None,
    }


@router.get("/rules", tags=["service"])
async def get_rules(state: ApiStateDep) -> dict[str, object]:
    return rules_as_dict(state.rules)


# ---------------------------------------------------------------------------
# Games and kingdoms


@router.post(
    "/games",
    response_model=GameDetail,
    status_code=status.HTTP_201_CREATED,
    tags=["games"],
)
async def create_game(request: CreateGameRequest, state: ApiStateDep) -> GameDetail:
    game = state.games.create_game(request.name, started_at=request.started_at)
    return GameDetail.model_validate(state.games.to_game_dict(game))


@router.get("/games/{game_id}", response_model=GameDetail, tags=["games"])
async def get_game(game_id: int, state: ApiStateDep) -> GameDetail:
    try:
        game = state.games.get_game(dm.GameID(game_id))
    except GameNotFound as exc:
        raise _not_found(exc) from exc
    return GameDetail.model_validate(state.games.to_game_dict(game))


@router.post(
    "/games/{game_id}/kingdoms",
    response_model=KingdomDetail,
    status_code=status.HTTP_201_CREATED,
    tags=["games"],
)
async def create_kingdom(
    game_id: int, request: CreateKingdomRequest, state: ApiStateDep
) -> KingdomDetail:
    draft = KingdomDraft(
        name=request.name,
        race=request.race,
        alignment=request.alignment,
        units=dict(request.units),
        scum_green=request.scum_green,
        scum_elite=request.scum_elite,
        forts=request.forts,
    )
    try:
        kingdom = state.games.add_kingdom(dm.GameID(game_id), draft)
    except GameNotFound as exc:
        raise _not_found(exc) from exc
    except ActionRejected as exc:
        raise _conflict(exc) from exc
    return KingdomDetail.model_validate(state.games.to_kingdom_dict(kingdom))


@router.get("/games/{game_id}/age", response_model=AgeResponse, tags=["games"])
async def get_age(game_id: int, state: ApiStateDep) -> AgeResponse:
    try:
        snapshot = state.games.age_snapshot(dm.GameID(game_id))
    except GameNotFound as exc:
        raise _not_found(exc) from exc
    return AgeResponse(
        current_age=str(snapshot.status.current_age),
        age_start_time=snapshot.status.age_start_time,
        age_end_time=snapshot.status.age_end_time,
        age_duration=snapshot.status.age_duration,
        remaining_time=snapshot.status.remaining_time,
        effects=asdict(snapshot.effects),
        warning=asdict(snapshot.warning),
    )


# ---------------------------------------------------------------------------
# Actions


@router.post("/games/{game_id}/attacks", response_model=AttackResponse, tags=["actions"])
async def launch_attack(game_id: int, request: AttackRequest, state: ApiStateDep) -> AttackResponse:
    order = AttackOrder(
        attacker_id=dm.KingdomID(request.attacker_id),
        defender_id=dm.KingdomID(request.defender_id),
        attack_type=request.attack_type,
        units=dict(request.units) if request.units is not None else None,
        cs_percentage=request.cs_percentage,
    )
    try:
        outcome = state.games.attack(dm.GameID(game_id), order)
    except (GameNotFound, KingdomNotFound) as exc:
        raise _not_found(exc) from exc
    except ActionRejected as exc:
        raise _conflict(exc) from exc
    return AttackResponse(
        result=CombatResultResponse.model_validate(asdict(outcome.result)),
        turn_cost=outcome.turn_cost,
        war_declared=outcome.war_declared,
        report=ReportDetail.model_validate(state.games.to_report_dict(outcome.report)),
    )


@router.post("/games/{game_id}/thievery", response_model=ThieveryResponse, tags=["actions"])
async def launch_operation(
    game_id: int, request: ThieveryRequest, state: ApiStateDep
) -> ThieveryResponse:
    order = ThieveryOrder(
        attacker_id=dm.KingdomID(request.attacker_id),
        defender_id=dm.KingdomID(request.defender_id),
        operation=request.operation,
    )
    try:
        outcome = state.games.thievery(dm.GameID(game_id), order)
    except (GameNotFound, KingdomNotFound) as exc:
        raise _not_found(exc) from exc
    except ActionRejected as exc:
        raise _conflict(exc) from exc
    operation = outcome.operation
    return ThieveryResponse(
        type=str(operation.type),
        turn_cost=operation.turn_cost,
        success=operation.success,
        detection_rate=operation.detection_rate,
        casualties=operation.casualties,
        result=operation.result,
        report=ReportDetail.model_validate(state.games.to_report_dict(outcome.report)),
    )


@router.post(
    "/games/{game_id}/kingdoms/{kingdom_id}/focus",
    response_model=FocusResponse,
    tags=["actions"],
)
async def use_focus(
    game_id: int, kingdom_id: int, request: FocusRequest, state: ApiStateDep
) -> FocusResponse:
    try:
        use = state.games.use_focus(
            dm.GameID(game_id), dm.KingdomID(kingdom_id), request.ability, request.base_value
        )
    except (GameNotFound, KingdomNotFound) as exc:
        raise _not_found(exc) from exc
    except ActionRejected as exc:
        raise _conflict(exc) from exc
    return FocusResponse(
        can_use=use.check.can_use,
        cost=use.check.cost,
        reason=use.check.reason,
        points_remaining=use.state.points,
        effect=asdict(use.effect) if use.effect is not None else None,
    )


@router.post(
    "/games/{game_id}/kingdoms/{kingdom_id}/build",
    response_model=BuildResponse,
    tags=["actions"],
)
async def build(
    game_id: int, kingdom_id: int, request: BuildRequest, state: ApiStateDep
) -> BuildResponse:
    game_key = dm.GameID(game_id)
    kingdom_key = dm.KingdomID(kingdom_id)
    try:
        outcome = state.games.build(game_key, kingdom_key, request.category, request.count)
    except (GameNotFound, KingdomNotFound) as exc:
        raise _not_found(exc) from exc
    except ActionRejected as exc:
        raise _conflict(exc) from exc
    kingdom = state.games.get_kingdom(game_key, kingdom_key)
    return BuildResponse(
        building_name=outcome.building_name,
        count=outcome.plan.count,
        brt=outcome.plan.brt,
        turns=outcome.plan.turns,
        wasted_capacity=outcome.plan.wasted_capacity,
        warning=outcome.plan.warning,
        gold_cost=outcome.gold_cost,
        kingdom=KingdomDetail.model_validate(state.games.to_kingdom_dict(kingdom)),
    )


@router.post(
    "/games/{game_id}/kingdoms/{kingdom_id}/regenerate",
    response_model=KingdomDetail,
    tags=["actions"],
)
async def regenerate(game_id: int, kingdom_id: int, state: ApiStateDep) -> KingdomDetail:
    try:
        kingdom = state.games.regenerate(dm.GameID(game_id), dm.KingdomID(kingdom_id))
    except (GameNotFound, KingdomNotFound) as exc:
        raise _not_found(exc) from exc
    return KingdomDetail.model_validate(state.games.to_kingdom_dict(kingdom))


# ---------------------------------------------------------------------------
# Stateless calculators


@router.post("/calculators/combat", response_model=CombatCalculatorResponse, tags=["calculators"])
async def combat_calculator(
    request: CombatCalculatorRequest, state: ApiStateDep
) -> CombatCalculatorResponse:
    rng = SeededRandomSource(request.seed) if request.seed is not None else SystemRandomSource()
    result = combat.calculate_combat_result(
        combat.AttackForce(units={}, total_offense=request.attacker_offense),
        combat.DefenseForce(
            units={},
            total_defense=request.defender_defense,
            ambush_active=request.ambush_active,
        ),
        request.target_land,
        attack_type=request.attack_type,
        cs_percentage=request.cs_percentage,
        rng=rng,
        rules=state.rules,
    )
    turn_cost = None
    if request.attacker_networth is not None and request.defender_networth is not None:
        turn_cost = combat.calculate_turn_cost(
            request.attacker_networth, request.defender_networth, rules=state.rules
        )
    return CombatCalculatorResponse(
        **asdict(result),
        land_range=combat.land_gain_range(result.result_type, request.target_land, rules=state.rules),
        turn_cost=turn_cost,
    )


@router.get("/calculators/brt", response_model=BrtResponse, tags=["calculators"])
async def brt_calculator(
    state: ApiStateDep,
    quarry_percentage: Annotated[float, Query(ge=0.0, le=100.0)],
    count: Annotated[int, Query(ge=0)] = 0,
) -> BrtResponse:
    plan = building.plan_construction(count, quarry_percentage, rules=state.rules)
    return BrtResponse(
        quarry_percentage=quarry_percentage,
        count=plan.count,
        brt=plan.brt,
        turns=plan.turns,
        wasted_capacity=plan.wasted_capacity,
        warning=plan.warning,
    )


@router.post("/calculators/bounty", response_model=BountyCalculatorResponse, tags=["calculators"])
async def bounty_calculator(
    request: BountyCalculatorRequest, state: ApiStateDep
) -> BountyCalculatorResponse:
    targets = [bounty.BountyTarget(**target.model_dump()) for target in request.targets]
    ranked = bounty.identify_optimal_bounty_targets(
        targets, request.max_turns, request.hunter_build_rate, rules=state.rules
    )
    return BountyCalculatorResponse(
        ranked=[
            RankedTargetResponse(
                kingdom_id=item.target.kingdom_id,
                land_gained=item.reward.land_gained,
                structures_gained=item.reward.structures_gained,
                turns_saved=item.reward.turns_saved,
                total_value=item.reward.total_value,
                efficiency=item.efficiency,
            )
            for item in ranked
        ]
    )



@router.post("/calculators/spell", response_model=SpellCalculatorResponse, tags=["calculators"])
async def spell_calculator(
    request: SpellCalculatorRequest, state: ApiStateDep
) -> SpellCalculatorResponse:
    cast = sorcery.plan_spell_cast(
        request.spell,
        request.caster_race,
        current_elan=request.current_elan,
        caster_temples=request.caster_temples,
        caster_structures=request.caster_structures,
        target_temples=request.target_temples,
        target_structures=request.target_structures,
        target_forts=request.target_forts,
        target_peasants=request.target_peasants,
        rules=state.rules,
    )
    return SpellCalculatorResponse(
        spell=str(request.spell),
        affordable=cast.affordable,
        success=cast.success,
        elan_after=cast.elan_after,
        reason=cast.reason,
        **asdict(cast.effect),
    )


@router.post(
    "/calculators/restoration",
    response_model=RestorationCalculatorResponse,
    tags=["calculators"],
)
async def restoration_calculator(
    request: RestorationCalculatorRequest, state: ApiStateDep
) -> RestorationCalculatorResponse:
    assessment = restoration.assess_damage(
        restoration.KingdomCondition(request.structures_before, request.population_before),
        restoration.KingdomCondition(request.structures_after, request.population_after),
        rules=state.rules,
    )
    return RestorationCalculatorResponse(
        structure_loss=assessment.structure_loss,
        population_loss=assessment.population_loss,
        qualifies=assessment.qualifies,
        restoration_type=str(assessment.restoration_type),
        protection_hours=restoration.protection_hours(
            assessment.restoration_type, rules=state.rules
        ),
    )
