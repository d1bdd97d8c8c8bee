"""Liveness endpoint reporting environment and build version."""
from fastapi import APIRouter

from .. import __version__
from ..config import get_settings

router = APIRouter(prefix="/v1", tags=["system"])


@router.get("/healthcheck")
async def healthcheck() -> dict:
    """Readiness check for uptime monitors."""

    return {
        "status": "available",
        "system_info": {
            "environment": get_settings().env,
            "version": __version__,
        },
    }
