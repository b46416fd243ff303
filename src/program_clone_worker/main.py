"""FastAPI application entrypoint."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from program_clone_worker import __version__
from program_clone_worker.api import api_router
from program_clone_worker.api.dependencies import get_delivery_handler, get_settings
from program_clone_worker.bootstrap import build_pull_subscriber

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build FastAPI application."""

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        """Build the delivery handler and start pull delivery when enabled."""

        handler = get_delivery_handler()
        subscriber = build_pull_subscriber(get_settings(), handler)
        start_task: asyncio.Task[bool] | None = None
        if subscriber is not None:
            # Waiting for the subscription must not block push delivery.
            start_task = asyncio.create_task(
                subscriber.start(),
                name="pubsub-pull-subscriber-start",
            )
        try:
            yield
        finally:
            if subscriber is not None:
                assert start_task is not None
                if not start_task.done():
                    start_task.cancel()
                try:
                    await start_task
                except asyncio.CancelledError:
                    pass
                except Exception:  # noqa: BLE001
                    logger.exception("Pull subscriber failed to start.")
                await subscriber.stop()
            await handler.shutdown()

    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()


def run() -> None:
    """Run the worker server."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "program_clone_worker.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        reload=False,
    )


__all__ = ["app", "create_app", "run"]
