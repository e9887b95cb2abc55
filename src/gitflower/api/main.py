"""FastAPI application factory."""

import threading
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from gitflower import __version__
from gitflower.api.routers import health, repositories, web
from gitflower.config import Settings, get_settings
from gitflower.config.logging import configure_logging
from gitflower.core.exceptions import GitFlowerError

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs or settings.is_production,
    )
    logger.info("Serving repositories", directory=str(settings.repos_path))

    yield


async def _gitflower_error_handler(request: Request, exc: GitFlowerError) -> JSONResponse:
    logger.error("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": exc.message},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="GitFlower",
        description="Browse and create bare git repositories",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.write_lock = threading.Lock()

    app.add_exception_handler(GitFlowerError, _gitflower_error_handler)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(repositories.router, prefix="/api/v1", tags=["Repositories"])
    app.include_router(web.router, tags=["Web"])

    return app


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.web_host,
        port=settings.web_port,
    )


if __name__ == "__main__":
    run()
