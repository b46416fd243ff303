"""Route modules public API."""

from program_clone_worker.api.routes.health import router as health_router
from program_clone_worker.api.routes.push import router as push_router

__all__ = ["health_router", "push_router"]
