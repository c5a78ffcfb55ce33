"""FastAPI application wiring for Monarchy.

Games and kingdoms are stateful aggregates served from the JSON repository;
the ``/calculators`` routes are stateless and only read the active ruleset.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from monarchy.api import routes
from monarchy.api.runtime import ApiState, build_state
from monarchy.config import get_settings

DESCRIPTION = (
    "Rules engine for a turn-based kingdom strategy round: ages, combat, "
    "espionage, faith and focus, construction, bounties, and restoration."
)

OPENAPI_TAGS = [
    {"name": "service", "description": "Health and the active ruleset."},
    {"name": "games", "description": "Rounds, their kingdoms, and the current age."},
    {"name": "actions", "description": "Turn-consuming kingdom actions."},
    {"name": "calculators", "description": "Stateless what-if calculations."},
]


def create_app(*, state_factory: Callable[[], ApiState] = build_state) -> FastAPI:
    """Build the API; ``state_factory`` runs once per application lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.api_state = state_factory()
        try:
            yield
        finally:
            await app.state.api_state.shutdown()

    settings = get_settings()
    app = FastAPI(
        title="Monarchy",
        summary="Kingdom strategy rules service",
        description=DESCRIPTION,
        version=settings.rules_version,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    app.include_router(routes.router)
    return app


app = create_app()
