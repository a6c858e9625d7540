"""Health check endpoint"""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends

from battle_core import TurnEngine
from .battle import get_engine

router = APIRouter()

VERSION = "1.0.0"


@router.get("/health")
async def health_check(match_engine: TurnEngine = Depends(get_engine)):
    """Health status with timestamp, version and the current match phase"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "version": VERSION,
        "match_phase": match_engine.phase.value,
    }
