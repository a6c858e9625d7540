"""API routes"""

from .health import router as health_router
from .battle import router as battle_router

__all__ = ["health_router", "battle_router"]
