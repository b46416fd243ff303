"""Top-level API router composition."""

from fastapi import APIRouter

from program_clone_worker.api.routes import health_router, push_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(push_router)

__all__ = ["api_router"]
