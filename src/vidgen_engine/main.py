"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from vidgen_engine import __version__
from vidgen_engine.api.errors import register_exception_handlers
from vidgen_engine.api.routes import generate, health, jobs, projects, queue, webhooks
from vidgen_engine.config import settings
from vidgen_engine.db.session import init_db
from vidgen_engine.logging import get_logger, setup_logging

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("application_starting", version=__version__)

    try:
        init_db()
        logger.info("database_connected")
    except SQLAlchemyError as e:
        # Readiness checks report the outage
        logger.error("database_connection_failed", error=str(e))

    yield

    logger.info("application_shutting_down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="VidGen Engine",
        description="Prompt-to-video generation with a durable render queue",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(generate.router, prefix="/api/v1")
    app.include_router(jobs.router, prefix="/api/v1")
    app.include_router(projects.router, prefix="/api/v1")
    app.include_router(webhooks.router, prefix="/api/v1")
    app.include_router(queue.router, prefix="/api/v1")

    # Serves narration and final renders written by the local storage service
    app.mount(
        "/media",
        StaticFiles(directory=settings.storage_path, check_dir=False),
        name="media",
    )

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"name": "VidGen Engine", "version": __version__, "docs": "/docs"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vidgen_engine.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
