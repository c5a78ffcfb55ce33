"""Construction throughput: build rate tiers, build turns, and waste warnings."""

from __future__ import annotations

from dataclasses import dataclass

from monarchy.utils.numeric import clamp

from .enums import BuildingCategory, Race, lookup_by_race
from .rules_config import DEFAULT_RULES, RulesConfig

# Upper bound (exclusive) of each quarry percentage band and its build rate.
BRT_STEPS: tuple[tuple[float, int], ...] = (
    (5, 4),
    (10, 6),
    (15, 8),
    (20, 10),
    (25, 12),
    (30, 14),
    (35, 16),
    (40, 18),
    (45, 19),
    (50, 20),
    (55, 21),
    (60, 22),
    (65, 23),
    (70, 24),
    (75, 25),
    (80, 26),
    (85, 27),
    (90, 28),
    (95, 29),
    (100, 30),
)
MAX_BRT = 31

RACE_BUILDING_NAMES: dict[Race, dict[BuildingCategory, str]] = {
    Race.HUMAN: {
        BuildingCategory.INCOME: "Guildhalls",
        BuildingCategory.PEASANT: "Hovels",
        BuildingCategory.TROOP: "Barracks",
        BuildingCategory.BUILDRATE: "Quarries",
        BuildingCategory.MAGIC: "Temples",
        BuildingCategory.FORTRESS: "Fortresses",
    },
    Race.ELVEN: {
        BuildingCategory.INCOME: "Markets",
        BuildingCategory.PEASANT: "Lodges",
        BuildingCategory.TROOP: "Garrisons",
        BuildingCategory.BUILDRATE: "Mills",
        BuildingCategory.MAGIC: "Groves",
        BuildingCategory.FORTRESS: "Towers",
    },
    Race.GOBLIN: {
        BuildingCategory.INCOME: "Smithies",
        BuildingCategory.PEASANT: "Dens",
        BuildingCategory.TROOP: "Barrak",
        BuildingCategory.BUILDRATE: "Mines",
        BuildingCategory.MAGIC: "Shrines",
        BuildingCategory.FORTRESS: "Tunnels",
    },
    Race.DROBEN: {
        BuildingCategory.INCOME: "TimoTon",
        BuildingCategory.PEASANT: "Baklavs",
        BuildingCategory.TROOP: "RumaNa",
        BuildingCategory.BUILDRATE: "Waterfalls",
        BuildingCategory.MAGIC: "Enclaves",
        BuildingCategory.FORTRESS: "Arches",
    },
    Race.VAMPIRE: {
        BuildingCategory.INCOME: "Underwoods",
        BuildingCategory.PEASANT: "Tombs",
        BuildingCategory.TROOP: "Great Halls",
        BuildingCategory.BUILDRATE: "Bloodbaths",
        BuildingCategory.MAGIC: "Focus Points",
        BuildingCategory.FORTRESS: "Centrocs",
    },
    Race.ELEMENTAL: {
        BuildingCategory.INCOME: "Slave Markets",
        BuildingCategory.PEASANT: "Charging Cells",
        BuildingCategory.TROOP: "Cages",
        BuildingCategory.BUILDRATE: "Spectral Mists",
        BuildingCategory.MAGIC: "Casting Pits",
        BuildingCategory.FORTRESS: "Altars",
    },
    Race.CENTAUR: {
        BuildingCategory.INCOME: "Trinket Shops",
        BuildingCategory.PEASANT: "Hollowed Oaks",
        BuildingCategory.TROOP: "Thickets",
        BuildingCategory.BUILDRATE: "Forges",
        BuildingCategory.MAGIC: "Fires",
        BuildingCategory.FORTRESS: "Briars",
    },
    Race.SIDHE: {
        BuildingCategory.INCOME: "Wagons",
        BuildingCategory.PEASANT: "Tents",
        BuildingCategory.TROOP: "Sacred Fields",
        BuildingCategory.BUILDRATE: "Looms",
        BuildingCategory.MAGIC: "Magick Circles",
        BuildingCategory.FORTRESS: "Spires",
    },
    Race.DWARVEN: {
        BuildingCategory.INCOME: "Gem Mines",
        BuildingCategory.PEASANT: "Caves",
        BuildingCategory.TROOP: "Caverns",
        BuildingCategory.BUILDRATE: "Ore Mines",
        BuildingCategory.MAGIC: "Sanctums",
        BuildingCategory.FORTRESS: "Strongholds",
    },
    Race.FAE: {
        BuildingCategory.INCOME: "Dolmen",
        BuildingCategory.PEASANT: "Brambles",
        BuildingCategory.TROOP: "Henges",
        BuildingCategory.BUILDRATE: "Wishing Wells",
        BuildingCategory.MAGIC: "Cairns",
        BuildingCategory.FORTRESS: "Ringforts",
    },
}


@dataclass(slots=True)
class ConstructionPlan:
    """Outcome of planning a construction order."""

    count: int
    brt: int
    turns: int
    wasted_capacity: int
    warning: str | None


def calculate_brt(quarry_percentage: float, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Structures built per turn for the given quarry coverage (percent)."""

    pct = clamp(
        quarry_percentage,
        rules.building.min_quarry_percentage,
        rules.building.max_quarry_percentage,
    )
    for upper, brt in BRT_STEPS:
        if pct < upper:
            return brt
    return MAX_BRT


def calculate_build_turns(count: int, brt: int) -> int:
    if count <= 0:
        return 0
    # integer ceil division, brt is always >= 1 in practice
    return -(-count // max(1, brt))


def get_build_efficiency_warning(count: int, brt: int) -> str | None:
    """Flag orders that leave part of the final turn's build capacity unused."""

    turns = calculate_build_turns(count, brt)
    wasted = turns * brt - count
    if 0 < wasted < brt:
        plural = "s" if turns > 1 else ""
        return (
            f"Building {count} uses {turns} turn{plural} but could build "
            f"{wasted} more structures for the same cost"
        )
    return None


def plan_construction(
    count: int, quarry_percentage: float, *, rules: RulesConfig = DEFAULT_RULES
) -> ConstructionPlan:
    brt = calculate_brt(quarry_percentage, rules=rules)
    turns = calculate_build_turns(count, brt)
    wasted = max(0, turns * brt - max(0, count))
    return ConstructionPlan(
        count=max(0, count),
        brt=brt,
        turns=turns,
        wasted_capacity=wasted,
        warning=get_build_efficiency_warning(count, brt),
    )


def get_building_name(race: str | Race | None, category: BuildingCategory | str) -> str:
    """Race-specific display name, falling back to the category identifier."""

    names = lookup_by_race(RACE_BUILDING_NAMES, race, {})
    return names.get(category, str(category))
