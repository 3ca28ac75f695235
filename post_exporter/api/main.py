"""FastAPI application with lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from post_exporter import __version__
from post_exporter.adapters.content_fetcher import HttpContentFetcher
from post_exporter.api.exports import router as exports_router
from post_exporter.config.logging import configure_logging, get_logger
from post_exporter.config.settings import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager.

    Initializes the shared HTTP fetcher on startup and closes it on shutdown.
    """
    # Startup
    settings = get_settings()
    configure_logging(json_logs=settings.LOG_JSON, level=settings.LOG_LEVEL)
    logger = get_logger()

    logger.info(
        "Starting application",
        max_concurrent_fetches=settings.EXPORT_MAX_CONCURRENT_FETCHES,
        embed_images=settings.EXPORT_EMBED_IMAGES,
    )

    app.state.settings = settings
    app.state.fetcher = HttpContentFetcher(
        timeout_seconds=settings.EXPORT_FETCH_TIMEOUT_SECONDS,
        user_agent=settings.EXPORT_USER_AGENT,
    )

    logger.info("Application started successfully")

    yield

    # Shutdown
    logger.info("Application shutting down")
    await app.state.fetcher.aclose()


app = FastAPI(
    title="Post Exporter",
    description="퍼블리케이션 포스트를 EPUB/TXT로 내보내는 엔진",
    version=__version__,
    lifespan=lifespan,
)

# Register routers
app.include_router(exports_router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Health status.
    """
    return {"status": "healthy"}
