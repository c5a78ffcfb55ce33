"""Pure rules engine for Monarchy.

This package hosts every game rule as side-effect-free calculations. It
exposes:

* Dataclasses describing the canonical game state (see :mod:`models`).
* Enumerations and the total race lookup used across the rules layer.
* Rule configuration objects (see :mod:`rules_config`).
* One module of rule functions per subsystem: ages, construction, combat,
  espionage, faith and focus, bounties, turns, sorcery, and restoration.

No rule module calls another for its own decisions; composition happens in
:mod:`monarchy.services`.
"""

from . import (
    age,
    bounty,
    building,
    combat,
    enums,
    faith,
    models,
    restoration,
    rules_config,
    sorcery,
    thievery,
    turns,
)

__all__ = [
    "age",
    "bounty",
    "building",
    "combat",
    "enums",
    "faith",
    "models",
    "restoration",
    "rules_config",
    "sorcery",
    "thievery",
    "turns",
]
