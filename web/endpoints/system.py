"""System health endpoints."""

import logging

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint to verify API is running."""
    services = request.app.state.services
    return {
        "isAlive": True,
        "openDebates": len(services.store.debates),
        "moderators": len(services.store.sessions),
    }
