"""FastAPI application exposing the budgetbook endpoints."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .config import Settings
from .database import Database
from .errors import install_exception_handlers
from .logging import setup_logger
from .middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from .routers import API_PREFIX, ROUTE_GROUPS

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application.

    When ``database`` is omitted one is created from ``settings`` and disposed
    at shutdown; a caller-supplied database stays owned by the caller.
    """
    settings = settings or Settings.from_env()
    setup_logger("budgetbook")
    owns_database = database is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.database is None:
            app.state.database = Database.from_url(settings.database_url)
        app.state.database.create_all()
        logger.info("budgetbook started in %s mode", settings.environment)
        yield
        if owns_database:
            app.state.database.dispose()
        logger.info("budgetbook stopped")

    app = FastAPI(title="budgetbook API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    # Starlette runs the last added middleware first.
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware)
    if settings.rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware, limit=settings.rate_limit, window_seconds=settings.rate_window_seconds)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_exception_handlers(app)

    for prefix, router, tag in ROUTE_GROUPS:
        app.include_router(router, prefix=prefix, tags=[tag])

    @app.get(f"{API_PREFIX}/health", tags=["system"])
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


def main() -> None:
    """Entrypoint for running the API with uvicorn."""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
