"""FastAPI application factory for tiercache.

Creates the application with:
- Post and user routers backed by tiered lookups
- Health, readiness and Prometheus endpoints
- Correlation IDs and request logging
- Error envelopes for domain errors
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from tiercache.api.errors import generic_exception_handler, tiercache_exception_handler
from tiercache.api.middleware import CorrelationMiddleware
from tiercache.api.routers import health, posts, users
from tiercache.cache.redis import close_redis
from tiercache.config import settings
from tiercache.errors import TierCacheError
from tiercache.factory import Services, build_services
from tiercache.observability import configure_logging, get_metrics

logger = logging.getLogger(__name__)


def create_app(services: Services | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    When ``services`` is given the caller owns them and the lifespan neither
    builds nor closes them.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(json_format=settings.log_json, level=settings.log_level)
        get_metrics()

        logger.info(f"Starting {settings.app_name} ({settings.env})")
        owned = services is None
        app.state.services = services if services is not None else await build_services()
        if owned:
            await app.state.services.start()
        logger.info(f"{settings.app_name} startup complete")

        yield

        logger.info(f"Shutting down {settings.app_name}")
        if owned:
            await app.state.services.aclose()
            await close_redis()
        logger.info(f"{settings.app_name} shutdown complete")

    app = FastAPI(
        title="tiercache",
        description="Cache-aside lookups for posts and users",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(TierCacheError, cast(ExceptionHandler, tiercache_exception_handler))
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    app.include_router(posts.router)
    app.include_router(users.router)

    return app
