"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from eligibility import __version__
from eligibility.api import get_loader, router
from eligibility.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info("Starting %s...", settings.app_name)
    logger.info("Rules directory: %s", settings.rules_dir)
    logger.info("Strict validation: %s", settings.strict)

    loader = get_loader()
    logger.info("Loaded %d rules", len(loader.get_all_rules()))

    yield

    logger.info("Shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Offline benefit eligibility rule evaluation and verification",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=get_settings().log_level)
    uvicorn.run("eligibility.main:app", host="0.0.0.0", port=8000, reload=get_settings().debug)
