"""HTTP API public API."""

from program_clone_worker.api.router import api_router

__all__ = ["api_router"]
