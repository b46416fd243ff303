"""Dependency providers for FastAPI routes."""

from functools import lru_cache

from program_clone_worker.application.services import CloneJobDeliveryHandler
from program_clone_worker.bootstrap import build_delivery_handler
from program_clone_worker.config import Settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return singleton settings."""

    return Settings()


@lru_cache(maxsize=1)
def get_delivery_handler() -> CloneJobDeliveryHandler:
    """Return singleton delivery handler and its service graph."""

    return build_delivery_handler(get_settings())


__all__ = ["get_delivery_handler", "get_settings"]
