"""Main entry point for the Vied API server."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from vied import __version__
from vied.api.deps import get_job_manager, init_services
from vied.api.handlers import register_exception_handlers
from vied.api.routes import exports, health, media, timeline
from vied.config import settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize resources on startup, clean up on shutdown."""
    init_services(settings)
    yield
    await get_job_manager().shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Vied",
        description="Clip sequencing and export for a lightweight video editor",
        version=__version__,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(health.router)
    app.include_router(media.router)
    app.include_router(timeline.router)
    app.include_router(exports.router)

    return app


app = create_app()


def main() -> None:
    """Run the application."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings.ensure_directories()
    uvicorn.run(
        "vied.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
