"""Health, extractor and settings endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends

from metadata_engine import __version__
from metadata_engine.config import Settings
from metadata_engine.dispatcher import available_actions
from metadata_engine.routers.deps import get_app_settings, get_service
from metadata_engine.schemas import (
    ACTION_LABELS,
    ActionInfo,
    ActionsResponse,
    ExtractorInfo,
    ExtractorsResponse,
    HealthResponse,
)
from metadata_engine.service import MetadataService

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(status="ok", version=__version__)


@router.get("/extractors", response_model=ExtractorsResponse)
async def list_extractors(service: MetadataService = Depends(get_service)):
    """List registered extractors in run order and whether each is usable right now."""
    # Availability checks may look up binaries on PATH
    availability = await asyncio.to_thread(service.registry.availability)
    return ExtractorsResponse(
        extractors=[
            ExtractorInfo(name=name, available=availability.get(name, False)) for name in service.registry.names()
        ]
    )


@router.get("/actions", response_model=ActionsResponse)
async def list_actions(service: MetadataService = Depends(get_service)):
    """List the actions that can be requested with the configured file storage."""
    return ActionsResponse(
        actions=[
            ActionInfo(name=action, label=ACTION_LABELS[action]) for action in available_actions(service.file_store)
        ]
    )


@router.get("/settings")
async def get_settings_endpoint(settings: Settings = Depends(get_app_settings)):
    """Get current settings."""
    return settings.model_dump()
