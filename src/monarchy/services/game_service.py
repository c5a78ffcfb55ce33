"""Orchestration of rule engines over the canonical game state.

The service owns the in-memory :class:`~monarchy.domain.models.GameState`
aggregates, serializes actions per kingdom, asks the pure rule modules what
an action does, and writes the clamped results back before persisting a
snapshot.

Locking: every kingdom has its own ``threading.Lock``. An action acquires
the locks of all kingdoms it touches in ascending id order before reading
their state, then takes the per-game lock only to apply results and save.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from monarchy.domain import age as age_rules
from monarchy.domain import building, combat, faith, restoration, thievery, turns
from monarchy.domain import models as dm
from monarchy.domain.enums import (
    AttackType,
    BuildingCategory,
    CostType,
    FaithAlignment,
    FocusAbility,
    FocusEffectType,
    Race,
    ReportKind,
    ScumOperationType,
)
from monarchy.domain.rules_config import DEFAULT_RULES, RulesConfig
from monarchy.repository import JsonGameRepository
from monarchy.utils.numeric import floor_int
from monarchy.utils.rng import RandomSource, SeededRandomSource, SystemRandomSource, generate_seed

logger = logging.getLogger(__name__)

# Mob assaults draw this "unit" from the attacker's population.
PEASANT_UNIT = "peasant"


class ActionRejected(ValueError):
    """An action cannot proceed; the message carries the rule's reason."""


class GameNotFound(KeyError):
    pass


class KingdomNotFound(KeyError):
    pass


RandomFactory = Callable[[str], RandomSource]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class KingdomDraft:
    """API-facing initializer for new kingdoms."""

    name: str
    race: Race | str
    alignment: FaithAlignment | str | None = None
    units: dict[str, int] = field(default_factory=dict)
    scum_green: int | None = None
    scum_elite: int = 0
    forts: int = 0


@dataclass(slots=True)
class AttackOrder:
    attacker_id: dm.KingdomID
    defender_id: dm.KingdomID
    attack_type: AttackType = AttackType.FULL_ATTACK
    units: dict[str, int] | None = None
    cs_percentage: float | None = None


@dataclass(slots=True)
class ThieveryOrder:
    attacker_id: dm.KingdomID
    defender_id: dm.KingdomID
    operation: ScumOperationType


@dataclass(slots=True)
class AttackOutcome:
    result: combat.CombatResult
    turn_cost: int
    war_declared: bool
    report: dm.ActionReport


@dataclass(slots=True)
class ThieveryOutcome:
    operation: thievery.ThieveryOperation
    report: dm.ActionReport


@dataclass(slots=True)
class ConstructionOutcome:
    plan: building.ConstructionPlan
    gold_cost: int
    building_name: str
    report: dm.ActionReport


@dataclass(slots=True)
class AgeSnapshot:
    status: age_rules.AgeStatus
    effects: age_rules.AgeEffects
    warning: age_rules.AgeTransitionWarning


class GameService:
    """Utilities for creating games and resolving kingdom actions."""

    def __init__(
        self,
        repository: JsonGameRepository,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        rng_seed: str | None = None,
        random_factory: RandomFactory | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._repository = repository
        self._rules = rules
        self._rng_seed = rng_seed
        self._random_factory = random_factory
        self._clock = clock
        self._games: dict[dm.GameID, dm.GameState] = {}
        self._game_locks: dict[dm.GameID, threading.Lock] = {}
        self._kingdom_locks: dict[tuple[dm.GameID, dm.KingdomID], threading.Lock] = {}
        self._registry_lock = threading.Lock()

    @property
    def rules(self) -> RulesConfig:
        return self._rules

    # ------------------------------------------------------------------
    # Aggregate access

    def create_game(self, name: str, *, started_at: datetime | None = None) -> dm.GameState:
        """Create and persist an empty game."""

        with self._registry_lock:
            existing = set(self._repository.list_games()) | set(self._games)
            next_id = dm.GameID(max((int(gid) for gid in existing), default=0) + 1)
            game = dm.GameState(id=next_id, name=name, started_at=started_at or self._clock())
            self._games[next_id] = game
            self._game_locks[next_id] = threading.Lock()
        self._repository.save(game)
        logger.info("created game %s (%s)", int(next_id), name)
        return game

    def list_games(self) -> list[dm.GameState]:
        games: list[dm.GameState] = []
        for game_id in sorted(set(self._repository.list_games()) | set(self._games), key=int):
            games.append(self.get_game(game_id))
        return games

    def get_game(self, game_id: dm.GameID) -> dm.GameState:
        """Return the live aggregate, loading its snapshot on first access."""

        with self._registry_lock:
            game = self._games.get(game_id)
            if game is not None:
                return game
            try:
                game = self._repository.load(game_id)
            except FileNotFoundError as exc:
                raise GameNotFound(f"Game {int(game_id)} not found") from exc
            self._games[game_id] = game
            self._game_locks[game_id] = threading.Lock()
            return game

    def cached_games(self) -> list[dm.GameState]:
        with self._registry_lock:
            return list(self._games.values())

    def get_kingdom(self, game_id: dm.GameID, kingdom_id: dm.KingdomID) -> dm.Kingdom:
        game = self.get_game(game_id)
        return self._kingdom(game, kingdom_id)

    @staticmethod
    def _kingdom(game: dm.GameState, kingdom_id: dm.KingdomID) -> dm.Kingdom:
        kingdom = game.kingdoms.get(kingdom_id)
        if kingdom is None:
            raise KingdomNotFound(
                f"Kingdom {int(kingdom_id)} not found in game {int(game.id)}"
            )
        return kingdom

    def _kingdom_lock(self, game_id: dm.GameID, kingdom_id: dm.KingdomID) -> threading.Lock:
        key = (game_id, kingdom_id)
        with self._registry_lock:
            lock = self._kingdom_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._kingdom_locks[key] = lock
            return lock

    @contextmanager
    def _locked(self, game: dm.GameState, *kingdom_ids: dm.KingdomID) -> Iterator[None]:
        """Hold the locks of ``kingdom_ids`` in ascending id order."""

        with ExitStack() as stack:
            for kingdom_id in sorted(set(kingdom_ids), key=int):
                stack.enter_context(self._kingdom_lock(game.id, kingdom_id))
            yield

    def _commit(self, game: dm.GameState, report: dm.ActionReport | None = None) -> None:
        with self._game_locks[game.id]:
            if report is not None:
                game.reports.append(report)
            self._repository.save(game)

    def _sync_turn(self, game: dm.GameState, now: datetime) -> int:
        elapsed = max(0.0, (now - game.started_at).total_seconds() / 3600.0)
        turn = floor_int(elapsed * self._rules.turns.turns_per_hour)
        if turn > game.current_turn:
            game.current_turn = turn
        return game.current_turn

    def _random_source(self, game: dm.GameState, action: str, context: str) -> RandomSource:
        seed = generate_seed(int(game.id), game.current_turn, action, context)
        if self._random_factory is not None:
            return self._random_factory(seed)
        if self._rng_seed is not None:
            return SeededRandomSource(f"{self._rng_seed}:{seed}")
        return SystemRandomSource()

    # ------------------------------------------------------------------
    # Kingdoms

    def add_kingdom(self, game_id: dm.GameID, draft: KingdomDraft) -> dm.Kingdom:
        """Found a kingdom with the starting resources of the ruleset."""

        game = self.get_game(game_id)
        race = Race.parse(draft.race)
        if race is None:
            raise ActionRejected(f"Unknown race '{draft.race}'")

        faith_state = dm.FaithState()
        if draft.alignment is not None:
            check = faith.can_use_faith_alignment(race, draft.alignment)
            if not check.can_use:
                raise ActionRejected(check.reason or "Faith alignment not allowed")
            faith_state = dm.FaithState(alignment=FaithAlignment(str(draft.alignment).lower()))

        start = self._rules.kingdom
        now = self._clock()
        focus_state = dm.FocusState(
            points=0,
            max_points=faith.calculate_max_focus_points(race, rules=self._rules),
            regen_rate=faith.calculate_focus_generation(race, rules=self._rules),
            last_regen_at=now,
        )
        with self._game_locks[game.id]:
            kingdom = dm.Kingdom(
                id=game.next_kingdom_id(),
                name=draft.name,
                race=race,
                resources=dm.Resources(
                    gold=start.starting_gold,
                    population=start.starting_population,
                    land=start.starting_land,
                    turns=start.starting_turns,
                ),
                units={unit: max(0, count) for unit, count in draft.units.items()},
                forts=max(0, draft.forts),
                structures=start.starting_structures,
                scum_green=max(0, start.starting_scum if draft.scum_green is None else draft.scum_green),
                scum_elite=max(0, draft.scum_elite),
                faith=faith_state,
                focus=focus_state,
                last_turn_update=now,
            )
            game.kingdoms[kingdom.id] = kingdom
            self._repository.save(game)
        logger.info("kingdom %s (%s) joined game %s", int(kingdom.id), race, int(game.id))
        return kingdom

    def regenerate(self, game_id: dm.GameID, kingdom_id: dm.KingdomID) -> dm.Kingdom:
        """Credit turns and focus points accumulated since the last update."""

        game = self.get_game(game_id)
        now = self._clock()
        with self._locked(game, kingdom_id):
            kingdom = self._kingdom(game, kingdom_id)
            current_turn = self._sync_turn(game, now)
            last = kingdom.last_turn_update or game.started_at
            status = turns.calculate_current_turns(
                last, kingdom.resources.turns, now, rules=self._rules
            )
            kingdom.resources = kingdom.resources.with_turns(status.current_turns)
            # Only whole credited turns move the clock; a full store drops the remainder.
            if status.current_turns >= status.max_stored_turns:
                kingdom.last_turn_update = max(last, now)
            elif status.generated_turns:
                kingdom.last_turn_update = last + timedelta(
                    hours=status.generated_turns / self._rules.turns.turns_per_hour
                )

            focus_state = kingdom.focus
            if focus_state.last_regen_at is None:
                focus_state = replace(focus_state, last_regen_at=now)
            else:
                generated = faith.focus_points_generated(
                    focus_state.last_regen_at, focus_state.regen_rate, now
                )
                points = faith.update_focus_points(
                    focus_state.points,
                    focus_state.max_points,
                    focus_state.last_regen_at,
                    focus_state.regen_rate,
                    now,
                )
                if points >= focus_state.max_points:
                    regen_at = max(focus_state.last_regen_at, now)
                elif generated:
                    regen_at = focus_state.last_regen_at + timedelta(
                        hours=generated / focus_state.regen_rate
                    )
                else:
                    regen_at = focus_state.last_regen_at
                focus_state = replace(focus_state, points=points, last_regen_at=regen_at)
            focus_state = faith.prune_expired_effects(focus_state, current_turn)
            kingdom.focus = focus_state
            self._commit(game)
        return kingdom

    # ------------------------------------------------------------------
    # Age

    def age_snapshot(self, game_id: dm.GameID, now: datetime | None = None) -> AgeSnapshot:
        game = self.get_game(game_id)
        moment = now or self._clock()
        status = age_rules.calculate_current_age(game.started_at, moment, rules=self._rules)
        return AgeSnapshot(
            status=status,
            effects=age_rules.calculate_age_effects(status.current_age),
            warning=age_rules.get_age_transition_warning(
                game.started_at, moment, rules=self._rules
            ),
        )

    # ------------------------------------------------------------------
    # Combat

    def _active_multiplier(
        self, kingdom: dm.Kingdom, effect_type: FocusEffectType, current_turn: int
    ) -> float:
        multiplier = 1.0
        for effect in kingdom.focus.active_effects:
            if effect.effect_type == effect_type and not faith.is_effect_expired(
                effect, current_turn
            ):
                multiplier *= effect.enhanced_value
        return multiplier

    def _networth(self, kingdom: dm.Kingdom) -> int:
        return combat.calculate_networth(
            kingdom.resources.land, kingdom.resources.gold, kingdom.units, rules=self._rules
        )

    def attack(self, game_id: dm.GameID, order: AttackOrder) -> AttackOutcome:
        """Resolve one attack and apply casualties, spoils, and turn costs."""

        if order.attacker_id == order.defender_id:
            raise ActionRejected("Cannot attack your own kingdom")

        game = self.get_game(game_id)
        now = self._clock()
        with self._locked(game, order.attacker_id, order.defender_id):
            attacker = self._kingdom(game, order.attacker_id)
            defender = self._kingdom(game, order.defender_id)
            current_turn = self._sync_turn(game, now)

            self._check_protection(game, attacker, defender, now)

            mob = order.attack_type == AttackType.MOB_ASSAULT
            if order.units is None:
                committed = dict(attacker.units)
                if mob:
                    committed[PEASANT_UNIT] = attacker.resources.population
            else:
                committed = dict(order.units)

            validation = combat.validate_attack_type(
                order.attack_type, committed.get(PEASANT_UNIT, 0) > 0
            )
            if not validation.valid:
                self._reject(game, attacker, validation.warning or "Invalid attack type")
            if committed.get(PEASANT_UNIT, 0) > 0 and not mob:
                self._reject(game, attacker, "Only a Mob Assault can send peasants")

            for unit, count in committed.items():
                owned = self._available(attacker, unit)
                if count < 0 or count > owned:
                    self._reject(
                        game, attacker, f"Insufficient {unit}: sending {count}, but only have {owned}"
                    )

            turn_cost = combat.calculate_turn_cost(
                self._networth(attacker), self._networth(defender), rules=self._rules
            )
            if attacker.resources.turns < turn_cost:
                self._reject(
                    game,
                    attacker,
                    f"Insufficient turns: attack needs {turn_cost}, {attacker.resources.turns} available",
                )

            age = age_rules.calculate_current_age(game.started_at, now, rules=self._rules)
            effects = age_rules.calculate_age_effects(age.current_age)
            offense = combat.calculate_army_power(
                committed, effects.unit_effectiveness_modifiers
            ).offense
            offense *= effects.combat.offense_multiplier
            offense *= self._active_multiplier(
                attacker, FocusEffectType.COMBAT_FOCUS_BONUS, current_turn
            )
            faith_bonus = faith.get_faith_bonuses(
                attacker.faith.alignment, attacker.faith.faith_level, rules=self._rules
            ).get("combat_bonus", 0.0)
            offense *= 1 + faith_bonus

            defense = combat.calculate_army_power(defender.units).defense
            defense += combat.calculate_fort_defense(defender.race, defender.forts, rules=self._rules)
            defense *= effects.combat.defense_multiplier

            rng = self._random_source(
                game, "attack", f"{int(attacker.id)}_vs_{int(defender.id)}_{attacker.actions_taken}"
            )
            result = combat.calculate_combat_result(
                combat.AttackForce(units=committed, total_offense=offense),
                combat.DefenseForce(units=dict(defender.units), total_defense=defense),
                defender.resources.land,
                attack_type=AttackType(order.attack_type),
                cs_percentage=order.cs_percentage,
                rng=rng,
                rules=self._rules,
            )

            prior_attacks = attacker.attack_counts.get(defender.id, 0)
            war_declared = False
            if combat.requires_war_declaration(
                prior_attacks, rules=self._rules
            ) and not attacker.is_at_war_with(defender.id):
                attacker.wars.append(defender.id)
                defender.wars.append(attacker.id)
                war_declared = True

            before = self._condition(defender)
            self._apply_attack(attacker, defender, committed, result, turn_cost)
            self._start_restoration(game, defender, before, now)
            attacker.attack_counts[defender.id] = prior_attacks + 1
            attacker.actions_taken += 1

            report = dm.ActionReport(
                turn=current_turn,
                kind=ReportKind.ATTACK,
                actor_id=attacker.id,
                target_id=defender.id,
                summary=(
                    f"{attacker.name} attacked {defender.name}: {result.result_type}, "
                    f"{result.land_gained} land gained, {result.gold_looted} gold looted"
                ),
                payload={
                    "attack_type": str(result.attack_type),
                    "result_type": str(result.result_type),
                    "land_gained": result.land_gained,
                    "gold_looted": result.gold_looted,
                    "attacker_losses": result.attacker_losses,
                    "defender_losses": result.defender_losses,
                    "power_ratio": result.power_ratio,
                    "turn_cost": turn_cost,
                    "war_declared": war_declared,
                },
            )
            self._commit(game, report)

        logger.info(
            "game %s: kingdom %s attacked %s (%s, %s land)",
            int(game.id),
            int(order.attacker_id),
            int(order.defender_id),
            result.result_type,
            result.land_gained,
        )
        return AttackOutcome(
            result=result, turn_cost=turn_cost, war_declared=war_declared, report=report
        )

    def _apply_attack(
        self,
        attacker: dm.Kingdom,
        defender: dm.Kingdom,
        committed: Mapping[str, int],
        result: combat.CombatResult,
        turn_cost: int,
    ) -> None:
        attacker_rate, defender_rate = combat.loss_rates(result.result_type, self._rules)
        for unit, count in committed.items():
            lost = floor_int(count * attacker_rate)
            if unit == PEASANT_UNIT:
                attacker.resources = attacker.resources.apply(dm.ResourceDelta(population=-lost))
            else:
                attacker.units[unit] = max(0, attacker.units.get(unit, 0) - lost)
        for unit, count in list(defender.units.items()):
            lost = floor_int(count * defender_rate)
            defender.units[unit] = max(0, count - lost)

        gold = min(result.gold_looted, defender.resources.gold)
        attacker.resources = attacker.resources.apply(
            dm.ResourceDelta(gold=gold, land=result.land_gained, turns=-turn_cost)
        )
        defender.resources = defender.resources.apply(
            dm.ResourceDelta(gold=-gold, land=-result.land_gained)
        )
        defender.structures = max(0, defender.structures - result.structures_destroyed)
        defender.structures = min(defender.structures, defender.resources.land)
        defender.quarries = min(defender.quarries, defender.structures)

    @staticmethod
    def _available(kingdom: dm.Kingdom, unit: str) -> int:
        if unit == PEASANT_UNIT:
            return kingdom.resources.population
        return kingdom.units.get(unit, 0)

    # ------------------------------------------------------------------
    # Restoration

    @staticmethod
    def _condition(kingdom: dm.Kingdom) -> restoration.KingdomCondition:
        return restoration.KingdomCondition(
            structures=kingdom.structures, population=kingdom.resources.population
        )

    def _check_protection(
        self, game: dm.GameState, actor: dm.Kingdom, target: dm.Kingdom, now: datetime
    ) -> None:
        if actor.is_protected(now):
            self._reject(game, actor, f"{actor.name} is under restoration and cannot strike")
        if target.is_protected(now):
            self._reject(game, actor, f"{target.name} is under restoration protection")

    def _start_restoration(
        self,
        game: dm.GameState,
        kingdom: dm.Kingdom,
        before: restoration.KingdomCondition,
        now: datetime,
    ) -> None:
        """Open a protection window when the damage just dealt qualifies."""

        assessment = restoration.assess_damage(before, self._condition(kingdom), rules=self._rules)
        if not assessment.qualifies or kingdom.is_protected(now):
            return
        status = restoration.calculate_restoration_status(
            now, assessment.restoration_type, now, rules=self._rules
        )
        kingdom.restoration = dm.RestorationWindow(
            type=status.type, started_at=status.start_time, ends_at=status.end_time
        )
        logger.info(
            "game %s: kingdom %s entered %s restoration until %s",
            int(game.id),
            int(kingdom.id),
            status.type,
            status.end_time.isoformat(),
        )

    # ------------------------------------------------------------------
    # Espionage

    def thievery(self, game_id: dm.GameID, order: ThieveryOrder) -> ThieveryOutcome:
        """Launch a scum operation and apply its casualties and payload."""

        if order.attacker_id == order.defender_id:
            raise ActionRejected("Cannot target your own kingdom")

        game = self.get_game(game_id)
        now = self._clock()
        with self._locked(game, order.attacker_id, order.defender_id):
            attacker = self._kingdom(game, order.attacker_id)
            defender = self._kingdom(game, order.defender_id)
            current_turn = self._sync_turn(game, now)
            self._check_protection(game, attacker, defender, now)

            check = thievery.check_operation(
                order.operation, attacker.total_scum, attacker.resources.turns, rules=self._rules
            )
            if not check.can_perform:
                self._reject(game, attacker, check.reason or "Operation not possible")

            rng = self._random_source(
                game,
                "thievery",
                f"{int(attacker.id)}_vs_{int(defender.id)}_{attacker.actions_taken}",
            )
            operation = thievery.resolve_operation(
                order.operation,
                self._scum_force(attacker),
                self._scum_force(defender),
                rng=rng,
                rules=self._rules,
            )
            before = self._condition(defender)
            self._apply_operation(attacker, defender, operation)
            self._start_restoration(game, defender, before, now)
            attacker.actions_taken += 1

            outcome_word = "succeeded" if operation.success else "failed"
            report = dm.ActionReport(
                turn=current_turn,
                kind=ReportKind.THIEVERY,
                actor_id=attacker.id,
                target_id=defender.id,
                summary=f"{attacker.name} {operation.type} on {defender.name} {outcome_word}",
                payload={
                    "operation": str(operation.type),
                    "success": operation.success,
                    "detection_rate": operation.detection_rate,
                    "casualties": operation.casualties,
                    "turn_cost": operation.turn_cost,
                    **operation.result,
                },
            )
            self._commit(game, report)

        logger.info(
            "game %s: kingdom %s ran %s on %s (%s)",
            int(game.id),
            int(order.attacker_id),
            operation.type,
            int(order.defender_id),
            outcome_word,
        )
        return ThieveryOutcome(operation=operation, report=report)

    @staticmethod
    def _scum_force(kingdom: dm.Kingdom) -> thievery.ScumForce:
        return thievery.ScumForce(
            race=kingdom.race,
            green=kingdom.scum_green,
            elite=kingdom.scum_elite,
            gold=kingdom.resources.gold,
            land=kingdom.resources.land,
            structures=kingdom.structures,
        )

    @staticmethod
    def _remove_scum(kingdom: dm.Kingdom, count: int) -> None:
        from_green = min(kingdom.scum_green, max(0, count))
        kingdom.scum_green -= from_green
        kingdom.scum_elite = max(0, kingdom.scum_elite - (count - from_green))

    def _apply_operation(
        self, attacker: dm.Kingdom, defender: dm.Kingdom, operation: thievery.ThieveryOperation
    ) -> None:
        attacker.resources = attacker.resources.apply(dm.ResourceDelta(turns=-operation.turn_cost))
        self._remove_scum(attacker, operation.casualties)
        if not operation.success:
            return

        result = operation.result
        gold = int(result.get("gold_stolen", 0)) + int(result.get("gold_intercepted", 0))
        if gold:
            gold = min(gold, defender.resources.gold)
            defender.resources = defender.resources.apply(dm.ResourceDelta(gold=-gold))
            attacker.resources = attacker.resources.apply(dm.ResourceDelta(gold=gold))
        if "scum_killed" in result:
            self._remove_scum(defender, int(result["scum_killed"]))
        if "structures_burned" in result:
            defender.structures = max(0, defender.structures - int(result["structures_burned"]))
            defender.quarries = min(defender.quarries, defender.structures)

    # ------------------------------------------------------------------
    # Focus and construction

    def use_focus(
        self,
        game_id: dm.GameID,
        kingdom_id: dm.KingdomID,
        ability: FocusAbility,
        base_value: float = 1.0,
    ) -> faith.FocusUse:
        """Spend focus points on an ability and record the resulting effect."""

        game = self.get_game(game_id)
        now = self._clock()
        with self._locked(game, kingdom_id):
            kingdom = self._kingdom(game, kingdom_id)
            current_turn = self._sync_turn(game, now)
            use = faith.use_focus_ability(
                kingdom.focus, ability, base_value, current_turn, rules=self._rules
            )
            if not use.check.can_use:
                self._reject(game, kingdom, use.check.reason or "Focus ability unavailable")
            kingdom.focus = use.state
            kingdom.actions_taken += 1
            report = dm.ActionReport(
                turn=current_turn,
                kind=ReportKind.FOCUS,
                actor_id=kingdom.id,
                summary=f"{kingdom.name} used {ability} for {use.check.cost} focus",
                payload={"ability": str(ability), "cost": use.check.cost},
            )
            self._commit(game, report)
        logger.info(
            "game %s: kingdom %s used focus ability %s", int(game.id), int(kingdom_id), ability
        )
        return use

    def build(
        self,
        game_id: dm.GameID,
        kingdom_id: dm.KingdomID,
        category: BuildingCategory,
        count: int,
    ) -> ConstructionOutcome:
        """Construct ``count`` structures of ``category`` on unbuilt land."""

        if count <= 0:
            raise ActionRejected("Structure count must be positive")

        game = self.get_game(game_id)
        now = self._clock()
        with self._locked(game, kingdom_id):
            kingdom = self._kingdom(game, kingdom_id)
            current_turn = self._sync_turn(game, now)

            free_land = kingdom.resources.land - kingdom.structures
            if count > free_land:
                self._reject(
                    game, kingdom, f"Not enough unbuilt land: {count} requested, {free_land} free"
                )
            plan = building.plan_construction(count, kingdom.quarry_percentage, rules=self._rules)
            if kingdom.resources.turns < plan.turns:
                self._reject(
                    game,
                    kingdom,
                    f"Insufficient turns: construction needs {plan.turns}, "
                    f"{kingdom.resources.turns} available",
                )
            age = age_rules.calculate_current_age(game.started_at, now, rules=self._rules)
            gold_cost = age_rules.calculate_age_based_costs(
                count * self._rules.building.structure_gold_cost, CostType.BUILDING, age.current_age
            )
            if kingdom.resources.gold < gold_cost:
                self._reject(
                    game,
                    kingdom,
                    f"Insufficient gold: construction costs {gold_cost}, "
                    f"{kingdom.resources.gold} available",
                )

            kingdom.resources = kingdom.resources.apply(
                dm.ResourceDelta(gold=-gold_cost, turns=-plan.turns)
            )
            kingdom.structures += count
            if category == BuildingCategory.BUILDRATE:
                kingdom.quarries += count
            elif category == BuildingCategory.FORTRESS:
                kingdom.forts += count
            kingdom.actions_taken += 1

            name = building.get_building_name(kingdom.race, category)
            report = dm.ActionReport(
                turn=current_turn,
                kind=ReportKind.CONSTRUCTION,
                actor_id=kingdom.id,
                summary=f"{kingdom.name} built {count} {name} in {plan.turns} turns",
                payload={
                    "category": str(category),
                    "count": count,
                    "brt": plan.brt,
                    "turns": plan.turns,
                    "gold_cost": gold_cost,
                    "warning": plan.warning,
                },
            )
            self._commit(game, report)
        logger.info(
            "game %s: kingdom %s built %s %s", int(game.id), int(kingdom_id), count, category
        )
        return ConstructionOutcome(plan=plan, gold_cost=gold_cost, building_name=name, report=report)

    # ------------------------------------------------------------------
    # Serialization

    @staticmethod
    def to_kingdom_dict(kingdom: dm.Kingdom) -> dict[str, object]:
        resources = kingdom.resources
        return {
            "id": int(kingdom.id),
            "name": kingdom.name,
            "race": str(kingdom.race),
            "gold": resources.gold,
            "population": resources.population,
            "land": resources.land,
            "turns": resources.turns,
            "units": dict(kingdom.units),
            "forts": kingdom.forts,
            "structures": kingdom.structures,
            "quarries": kingdom.quarries,
            "scum_green": kingdom.scum_green,
            "scum_elite": kingdom.scum_elite,
            "faith_alignment": str(kingdom.faith.alignment) if kingdom.faith.alignment else None,
            "faith_level": kingdom.faith.faith_level,
            "focus_points": kingdom.focus.points,
            "focus_max_points": kingdom.focus.max_points,
            "active_effects": [
                {
                    "effect_type": str(effect.effect_type),
                    "enhanced_value": effect.enhanced_value,
                    "duration": effect.duration,
                    "applied_at": effect.applied_at,
                }
                for effect in kingdom.focus.active_effects
            ],
            "restoration": (
                {
                    "type": str(kingdom.restoration.type),
                    "started_at": kingdom.restoration.started_at,
                    "ends_at": kingdom.restoration.ends_at,
                }
                if kingdom.restoration is not None
                else None
            ),
            "wars": [int(kid) for kid in kingdom.wars],
            "attack_counts": {str(int(kid)): n for kid, n in kingdom.attack_counts.items()},
        }

    @staticmethod
    def to_report_dict(report: dm.ActionReport) -> dict[str, object]:
        return {
            "turn": report.turn,
            "kind": str(report.kind),
            "actor_id": int(report.actor_id),
            "target_id": int(report.target_id) if report.target_id is not None else None,
            "summary": report.summary,
            "payload": report.payload,
        }

    @staticmethod
    def to_game_dict(game: dm.GameState) -> dict[str, object]:
        """Return a JSON-compatible representation for clients."""

        return {
            "id": int(game.id),
            "name": game.name,
            "started_at": game.started_at,
            "current_turn": game.current_turn,
            "kingdoms": [
                GameService.to_kingdom_dict(kingdom)
                for _, kingdom in sorted(game.kingdoms.items(), key=lambda item: int(item[0]))
            ],
            "reports": [GameService.to_report_dict(report) for report in game.reports],
        }

    # ------------------------------------------------------------------

    def _reject(self, game: dm.GameState, kingdom: dm.Kingdom, reason: str) -> None:
        logger.warning(
            "game %s: rejected action by kingdom %s: %s", int(game.id), int(kingdom.id), reason
        )
        raise ActionRejected(reason)
