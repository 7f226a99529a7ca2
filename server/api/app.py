from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from backend.errors import AppError
from server.api.deps import Services, build_services
from server.api.logging_config import configure_logging
from server.api.middleware import (
    build_app_error_handler,
    build_exception_handler,
    build_request_id_middleware,
)
from server.api.routers.health import router as health_router
from server.api.routers.search import router as search_router
from server.api.routers.suggest import router as suggest_router
from server.api.settings import Settings


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    settings = settings if settings is not None else Settings.from_env()
    services = services if services is not None else build_services(settings)
    logger = configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("startup omdb_credentials=%s", bool(getattr(services.client, "has_credentials", True)))
        try:
            yield
        finally:
            close = getattr(services.client, "close", None)
            if callable(close):
                close()

    app = FastAPI(title="Season Rank API", version="1.0.0", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(GZipMiddleware, minimum_size=max(0, settings.gzip_min_size))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "X-Request-ID", "ETag"],
    )

    app.middleware("http")(build_request_id_middleware(settings))
    app.add_exception_handler(AppError, build_app_error_handler(settings))
    app.add_exception_handler(Exception, build_exception_handler(settings))

    app.include_router(health_router)
    app.include_router(search_router)
    app.include_router(suggest_router)

    return app


app = create_app()
