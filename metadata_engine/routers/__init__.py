"""API routers for Metadata Engine."""

from metadata_engine.routers.health import router as health_router
from metadata_engine.routers.resources import router as resources_router

__all__ = [
    "health_router",
    "resources_router",
]
