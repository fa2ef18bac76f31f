"""FastAPI app factory for Metadata Engine."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from metadata_engine import __version__
from metadata_engine.config import Settings, get_settings
from metadata_engine.routers import health_router, resources_router
from metadata_engine.service import build_service

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to build the service from. Defaults to the config file.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Metadata Engine",
        description="Embedded file metadata extraction and crosswalk mapping API",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.service = build_service(settings)

    app.include_router(health_router)
    app.include_router(resources_router)

    logger.info(f"Registered extractors: {', '.join(app.state.service.registry.names()) or 'none'}")

    return app
