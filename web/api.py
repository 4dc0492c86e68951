"""FastAPI application for the debate moderation control plane."""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import AppConfig, get_default_config
from web.services import build_services

from web.endpoints.system import router as system_router
from web.endpoints.moderation import ws_router as moderation_ws_router
from web.endpoints.audience import ws_router as audience_ws_router

logger: logging.Logger = logging.getLogger(__name__)


def get_allowed_origins() -> list[str] | None:
    """Get CORS origins from environment or use development defaults."""
    env_origins: str | None = os.environ.get("ALLOWED_ORIGINS")
    if env_origins:
        return [origin.strip() for origin in env_origins.split(",")]
    return None


def create_app(config: AppConfig | None = None, bcrypt_rounds: int | None = None) -> FastAPI:
    """Build the application. Services are created when the lifespan starts."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage application lifespan - startup and shutdown."""
        app_config = config if config is not None else get_default_config()
        app.state.services = build_services(app_config, bcrypt_rounds=bcrypt_rounds)
        logger.info("Moderation services started")

        yield

        logger.info(
            f"Shutting down with {len(app.state.services.store.debates)} open debate(s)"
        )

    app = FastAPI(
        title="Debate Moderation Control Plane",
        description="Privileged WebSocket channel for debate moderators",
        version="1.0.0",
        lifespan=lifespan,
    )

    allowed_origins = get_allowed_origins()
    if allowed_origins:
        logger.info(f"Setting CORS allowed origins: {allowed_origins}")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        # Development: Allow any localhost/127.0.0.1
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(system_router, prefix="/v1")
    app.include_router(moderation_ws_router, prefix="/v1")
    app.include_router(audience_ws_router, prefix="/v1")

    return app


app: FastAPI = create_app()
