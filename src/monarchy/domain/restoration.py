"""Restoration: protection windows for kingdoms that suffered severe damage.

A kingdom that loses most of its structures or population, or a critical
building, enters a damage-based restoration. One left with no structures
or no population enters the longer death-based restoration. While
protected it may rebuild but neither strikes nor is struck.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from monarchy.utils.numeric import safe_ratio

from .enums import GuildWarStatus, RestorationType, ThreatLevel, WarPhase
from .rules_config import DEFAULT_RULES, RulesConfig

ALLOWED_ACTIONS: tuple[str, ...] = (
    "building_construction",
    "encamp_usage",
    "resource_management",
    "guild_communication",
    "internal_affairs",
)

PROHIBITED_ACTIONS: tuple[str, ...] = (
    "combat_attacks",
    "combat_defense",
    "sorcery_casting",
    "sorcery_targeting",
    "espionage_operations",
    "espionage_targeting",
    "diplomatic_actions",
    "alliance_changes",
)


@dataclass(slots=True)
class KingdomCondition:
    """The parts of a kingdom that decide restoration eligibility."""

    structures: int
    population: int
    critical_buildings: frozenset[str] = frozenset()


@dataclass(slots=True)
class DamageAssessment:
    structure_loss: float
    population_loss: float
    critical_infrastructure_destroyed: bool
    qualifies: bool
    restoration_type: RestorationType


@dataclass(slots=True)
class RestorationStatus:
    type: RestorationType
    start_time: datetime
    end_time: datetime
    remaining_hours: float
    allowed_actions: tuple[str, ...] = ALLOWED_ACTIONS
    prohibited_actions: tuple[str, ...] = PROHIBITED_ACTIONS

    @property
    def is_active(self) -> bool:
        return self.remaining_hours > 0


@dataclass(slots=True)
class RestorationValue:
    protection_hours: int
    rebuilding_capability: float
    guild_coordination_value: float
    enemy_denial_value: float
    total_strategic_worth: float


@dataclass(slots=True)
class KillRecommendation:
    efficiency: float
    recommend_kill: bool
    reasoning: list[str] = field(default_factory=list)


@dataclass(slots=True)
class GuildRestorationPlan:
    resource_reallocation: float
    coordination_efficiency: float
    strategic_advantage: float


@dataclass(slots=True)
class RestorationTiming:
    optimal_trigger: bool
    strategic_benefit: float
    recommendations: list[str] = field(default_factory=list)


def _loss(before: int, after: int) -> float:
    if before <= 0:
        return 0.0
    return max(0.0, 1.0 - after / before)


def assess_damage(
    before: KingdomCondition,
    after: KingdomCondition,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> DamageAssessment:
    """Classify the damage between two snapshots of the same kingdom.

    Losses are shares of the earlier value; a kingdom that had nothing to
    lose records no loss for that resource and cannot be eliminated by it.
    """

    restoration = rules.restoration
    structure_loss = _loss(before.structures, after.structures)
    population_loss = _loss(before.population, after.population)
    critical_lost = bool(before.critical_buildings - after.critical_buildings)

    eliminated = (before.structures > 0 and after.structures <= 0) or (
        before.population > 0 and after.population <= 0
    )
    if eliminated:
        kind = RestorationType.DEATH_BASED
    elif (
        structure_loss >= restoration.structure_loss_minimum
        or population_loss >= restoration.population_loss_minimum
        or critical_lost
    ):
        kind = RestorationType.DAMAGE_BASED
    else:
        kind = RestorationType.NONE

    return DamageAssessment(
        structure_loss=structure_loss,
        population_loss=population_loss,
        critical_infrastructure_destroyed=critical_lost,
        qualifies=kind != RestorationType.NONE,
        restoration_type=kind,
    )


def protection_hours(
    restoration_type: RestorationType | str, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    kind = RestorationType(str(restoration_type).lower())
    if kind == RestorationType.DEATH_BASED:
        return rules.restoration.death_based_hours
    if kind == RestorationType.DAMAGE_BASED:
        return rules.restoration.damage_based_hours
    return 0


def calculate_restoration_status(
    damage_time: datetime,
    restoration_type: RestorationType | str,
    now: datetime | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> RestorationStatus:
    if now is None:
        now = datetime.now(UTC)
    kind = RestorationType(str(restoration_type).lower())
    end = damage_time + timedelta(hours=protection_hours(kind, rules=rules))
    remaining = max(0.0, (end - now).total_seconds() / 3600.0)
    return RestorationStatus(
        type=kind, start_time=damage_time, end_time=end, remaining_hours=remaining
    )


def within_grace_period(
    damage_time: datetime, now: datetime, *, rules: RulesConfig = DEFAULT_RULES
) -> bool:
    """Whether restoration can still be claimed for damage at ``damage_time``."""

    window = timedelta(minutes=rules.restoration.grace_period_minutes)
    return damage_time <= now <= damage_time + window


def is_action_allowed(status: RestorationStatus | None, action: str) -> bool:
    if status is None or not status.is_active:
        return True
    return action not in status.prohibited_actions


def calculate_strategic_restoration_value(
    restoration_type: RestorationType | str,
    guild_war_status: GuildWarStatus | str,
    threat: ThreatLevel | str,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> RestorationValue:
    kind = RestorationType(str(restoration_type).lower())
    hours = protection_hours(kind, rules=rules)
    rebuilding = 0.8 if kind == RestorationType.DAMAGE_BASED else 0.6
    coordination = {
        GuildWarStatus.ACTIVE: 0.9,
        GuildWarStatus.PLANNING: 0.7,
    }.get(str(guild_war_status).lower(), 0.5)
    denial = {ThreatLevel.HIGH: 0.8, ThreatLevel.MEDIUM: 0.6}.get(str(threat).lower(), 0.3)
    return RestorationValue(
        protection_hours=hours,
        rebuilding_capability=rebuilding,
        guild_coordination_value=coordination,
        enemy_denial_value=denial,
        total_strategic_worth=hours * 0.3 + rebuilding * 100 + coordination * 50 + denial * 75,
    )


def calculate_sorcery_kill_efficiency(
    sorcery_turns: int,
    removal_hours: float,
    alternative_value: float,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> KillRecommendation:
    """Compare hours of target removal per turn with an alternative target."""

    kill_efficiency = safe_ratio(removal_hours, sorcery_turns)
    alternative_efficiency = safe_ratio(alternative_value, sorcery_turns)
    if kill_efficiency > alternative_efficiency:
        reasoning = [f"{removal_hours:g} hours removal worth {sorcery_turns} turn investment"]
        if removal_hours >= rules.restoration.death_based_hours:
            reasoning.append("Complete elimination provides maximum strategic denial")
        return KillRecommendation(kill_efficiency, True, reasoning)
    return KillRecommendation(
        kill_efficiency,
        False,
        [
            f"Alternative target provides {alternative_value:g} immediate value",
            "Sorcery kill turn investment not justified by removal duration",
        ],
    )


def calculate_guild_restoration_coordination(
    restored_realms: int, active_realms: int, resource_pool: float
) -> GuildRestorationPlan:
    share = safe_ratio(restored_realms, restored_realms + active_realms)
    return GuildRestorationPlan(
        resource_reallocation=resource_pool * share,
        coordination_efficiency=1 - share * 0.3,
        strategic_advantage=restored_realms * 0.4,
    )


def calculate_optimal_restoration_timing(
    war_phase: WarPhase | str, needs: Iterable[str] = ()
) -> RestorationTiming:
    """Whether entering restoration now pays off for the guild.

    ``needs`` may name ``rebuilding`` and ``coordination``.
    """

    phase = WarPhase(str(war_phase).lower())
    wanted = set(needs)
    if phase == WarPhase.ACTIVE_COMBAT:
        return RestorationTiming(
            True, 0.9, ["Remove target from enemy options during critical phase"]
        )
    if phase == WarPhase.RESOLUTION:
        return RestorationTiming(
            False, 0.4, ["Consider alternative targets for better immediate gains"]
        )

    benefit = 0.0
    recommendations: list[str] = []
    if "rebuilding" in wanted:
        benefit += 0.8
        recommendations.append("Use restoration time for infrastructure rebuilding")
    if "coordination" in wanted:
        benefit += 0.6
        recommendations.append("Coordinate guild strategy during protection period")
    return RestorationTiming(benefit > 0.7, benefit, recommendations)
