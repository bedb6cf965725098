from __future__ import annotations

from termhunt.api.routes.csrf import router as csrf_router
from termhunt.api.routes.health import router as health_router

__all__ = ["csrf_router", "health_router"]
