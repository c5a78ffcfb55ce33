"""Dataclasses describing the canonical Monarchy game state.

The rules engine modules operate on plain numbers and the small result types
they define themselves; the dataclasses below are the single state shape the
orchestration service reads from and writes engine results back into. They
are serialized as JSON snapshots by the repository adapter.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import NewType

from .enums import FaithAlignment, FocusEffectType, Race, ReportKind, RestorationType

# --- Strongly typed identifiers -------------------------------------------------

GameID = NewType("GameID", int)
KingdomID = NewType("KingdomID", int)


# --- Core dataclasses -----------------------------------------------------------


@dataclass(slots=True)
class ResourceDelta:
    """Signed change to apply to a kingdom's resources."""

    gold: int = 0
    population: int = 0
    land: int = 0
    turns: int = 0


@dataclass(frozen=True, slots=True)
class Resources:
    """Non-negative stockpile of a kingdom."""

    gold: int = 0
    population: int = 0
    land: int = 0
    turns: int = 0

    def apply(self, delta: ResourceDelta) -> Resources:
        """Return new resources with ``delta`` added and every field clamped to ``>= 0``."""

        return Resources(
            gold=max(0, self.gold + delta.gold),
            population=max(0, self.population + delta.population),
            land=max(0, self.land + delta.land),
            turns=max(0, self.turns + delta.turns),
        )

    def with_turns(self, turns: int) -> Resources:
        return replace(self, turns=max(0, turns))


@dataclass(slots=True)
class FaithState:
    """Faith alignment and accumulated points. ``faith_level`` is derived."""

    alignment: FaithAlignment | None = None
    faith_points: int = 0
    faith_level: int = 0


@dataclass(slots=True)
class FocusEffect:
    """Timed bonus produced by a focus ability.

    ``applied_at`` is the game turn on which the effect started.
    """

    effect_type: FocusEffectType
    enhanced_value: float
    duration: int
    applied_at: int = 0


@dataclass(slots=True)
class FocusState:
    """Focus point pool and the effects it currently sustains."""

    points: int = 0
    max_points: int = 100
    regen_rate: int = 2
    last_regen_at: datetime | None = None
    active_effects: list[FocusEffect] = field(default_factory=list)


@dataclass(slots=True)
class RestorationWindow:
    """Protection granted after severe damage, from ``started_at`` to ``ends_at``."""

    type: RestorationType
    started_at: datetime
    ends_at: datetime

    def covers(self, moment: datetime) -> bool:
        return self.started_at <= moment < self.ends_at


@dataclass(slots=True)
class Kingdom:
    """A single player kingdom inside a game."""

    id: KingdomID
    name: str
    race: Race
    resources: Resources = field(default_factory=Resources)
    units: dict[str, int] = field(default_factory=dict)
    forts: int = 0
    structures: int = 0
    quarries: int = 0
    scum_green: int = 0
    scum_elite: int = 0
    faith: FaithState = field(default_factory=FaithState)
    focus: FocusState = field(default_factory=FocusState)
    attack_counts: dict[KingdomID, int] = field(default_factory=dict)
    wars: list[KingdomID] = field(default_factory=list)
    actions_taken: int = 0
    last_turn_update: datetime | None = None
    restoration: RestorationWindow | None = None

    @property
    def total_scum(self) -> int:
        return self.scum_green + self.scum_elite

    @property
    def quarry_percentage(self) -> float:
        """Share of land covered by quarries, in percent."""

        if self.resources.land <= 0:
            return 0.0
        return min(100.0, self.quarries * 100.0 / self.resources.land)

    def is_protected(self, moment: datetime) -> bool:
        return self.restoration is not None and self.restoration.covers(moment)

    def is_at_war_with(self, other_id: KingdomID) -> bool:
        return other_id in self.wars


@dataclass(slots=True)
class ActionReport:
    """Narrated record of a resolved action."""

    turn: int
    kind: ReportKind
    actor_id: KingdomID
    summary: str
    target_id: KingdomID | None = None
    payload: dict[str, object] = field(default_factory=dict)


@dataclass(slots=True)
class GameState:
    """Aggregate root for a running game round."""

    id: GameID
    name: str
    started_at: datetime
    current_turn: int = 0
    kingdoms: dict[KingdomID, Kingdom] = field(default_factory=dict)
    reports: list[ActionReport] = field(default_factory=list)

    def next_kingdom_id(self) -> KingdomID:
        if not self.kingdoms:
            return KingdomID(1)
        return KingdomID(max(int(kid) for kid in self.kingdoms) + 1)
