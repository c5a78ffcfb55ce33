"""Service layer composing the rule engines over live game state."""

from monarchy.services.game_service import (
    ActionRejected,
    AttackOrder,
    GameNotFound,
    GameService,
    KingdomDraft,
    KingdomNotFound,
    ThieveryOrder,
)

__all__ = [
    "ActionRejected",
    "AttackOrder",
    "GameNotFound",
    "GameService",
    "KingdomDraft",
    "KingdomNotFound",
    "ThieveryOrder",
]
