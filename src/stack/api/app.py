"""FastAPI application factory.

Serves the uploads directory out of the configured blob store and exposes
health probes. Run with ``stack serve`` or
``uvicorn stack.api.app:create_app --factory``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from stack.api.middleware.correlation import CorrelationMiddleware
from stack.api.routers import health, media
from stack.config import Settings, settings as default_settings
from stack.media.storage import MediaStorage
from stack.observability.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app(config: Settings | None = None, storage: MediaStorage | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The media storage controller is built eagerly so an invalid storage
    URI stops the server before it accepts requests.

    Args:
        config: Settings; the process-wide settings when omitted
        storage: Preconfigured controller, mainly for tests

    Raises:
        ConfigurationError: If the storage URI scheme is not supported
    """
    config = config or default_settings
    media_storage = storage or MediaStorage(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(json_format=config.log_json, level=config.log_level)
        logger.info(f"Starting {config.app_name} ({config.env})")
        logger.info(f"Serving /{media_storage.rel_uploads_dir} from {media_storage.uploads_dir}")
        yield
        media_storage.close()

    app = FastAPI(
        title=config.app_name,
        description="Media library storage over pluggable blob stores",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.media_storage = media_storage
    app.state.settings = config

    app.add_middleware(CorrelationMiddleware)

    app.include_router(health.router)
    app.include_router(media.router, prefix=f"/{media_storage.rel_uploads_dir}")

    return app
