"""Runtime primitives backing the Monarchy HTTP API."""

from __future__ import annotations

import logging
from dataclasses import asdict

from monarchy.config import Settings, get_settings
from monarchy.domain.rules_config import DEFAULT_RULES, RulesConfig
from monarchy.repository import JsonGameRepository
from monarchy.services import GameService

logger = logging.getLogger(__name__)


def rules_as_dict(rules: RulesConfig) -> dict[str, object]:
    """Flatten the frozen rules tree for ``GET /rules``."""

    return asdict(rules)


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self, *, settings: Settings | None = None, rules: RulesConfig = DEFAULT_RULES
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = JsonGameRepository(self.settings.data_dir)
        self.rules = rules
        self.games = GameService(
            self.repository,
            rules=rules,
            rng_seed=self.settings.rng_seed,
        )
        logger.info(
            "rules %s loaded; snapshots in %s", self.settings.rules_version, self.settings.data_dir
        )

    async def shutdown(self) -> None:
        for game in self.games.cached_games():
            self.repository.save(game)
        logger.info("flushed game snapshots on shutdown")


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
