"""Item and media endpoints: ingest, actions, metadata records and values."""

import asyncio
import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException

from metadata_engine.config import Settings
from metadata_engine.dispatcher import ActionResult
from metadata_engine.resources import ResourceKind
from metadata_engine.routers.deps import (
    get_app_settings,
    get_resource,
    get_service,
    resource_response,
    value_response,
)
from metadata_engine.schemas import (
    ActionRequest,
    ActionResponse,
    IngestRequest,
    ItemCreate,
    MediaCreate,
    MetadataRecord,
    ResourceResponse,
    ValuesResponse,
)
from metadata_engine.service import MetadataService

router = APIRouter(tags=["resources"])
logger = logging.getLogger(__name__)


def _action_response(result: ActionResult) -> ActionResponse:
    return ActionResponse(
        action=result.action,
        media_ids=result.media_ids,
        records=result.records,
        values_added=[value_response(v) for v in result.values_added],
        deleted=result.deleted,
    )


@router.post("/items", response_model=ResourceResponse)
async def create_item(request: ItemCreate, service: MetadataService = Depends(get_service)):
    """Register an item."""
    try:
        item = service.repository.create_item(request.id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return resource_response(item)


@router.post("/media", response_model=ResourceResponse)
async def create_media(request: MediaCreate, service: MetadataService = Depends(get_service)):
    """Register a media attached to an existing item."""
    item = get_resource(service, request.item_id, ResourceKind.ITEM)
    try:
        media = service.repository.create_media(item, request.media_type, request.filename, request.id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return resource_response(media)


@router.get("/resources/{resource_id}", response_model=ResourceResponse)
async def get_resource_endpoint(resource_id: int, service: MetadataService = Depends(get_service)):
    return resource_response(get_resource(service, resource_id))


@router.delete("/resources/{resource_id}")
async def delete_resource(resource_id: int, service: MetadataService = Depends(get_service)) -> dict[str, list[int]]:
    """Delete an item or media. Metadata records of deleted media go with them."""
    get_resource(service, resource_id)
    deleted = service.repository.delete(resource_id)
    for resource in deleted:
        if resource.is_media:
            await asyncio.to_thread(service.on_media_deleted, resource)
    return {"deleted": [r.id for r in deleted]}


@router.get("/resources/{resource_id}/values", response_model=ValuesResponse)
async def get_values(resource_id: int, service: MetadataService = Depends(get_service)):
    """Property values currently attached to a resource."""
    resource = get_resource(service, resource_id)
    with resource.lock:
        values = [value_response(v) for v in resource.values]
    return ValuesResponse(resource_id=resource.id, values=values)


@router.post("/media/{media_id}/ingest", response_model=MetadataRecord | None)
async def ingest_media_file(
    media_id: int,
    request: IngestRequest,
    service: MetadataService = Depends(get_service),
    settings: Settings = Depends(get_app_settings),
):
    """Extract (and map) metadata from a file being ingested for a media.

    Returns the stored record, or null when nothing could be extracted.
    """
    media = get_resource(service, media_id, ResourceKind.MEDIA)
    if settings.ingest_dir and not Path(request.file).resolve().is_relative_to(Path(settings.ingest_dir).resolve()):
        raise HTTPException(status_code=403, detail=f"File is outside the ingest directory: {request.file}")
    if not Path(request.file).exists():
        raise HTTPException(status_code=404, detail=f"File not found: {request.file}")

    # Extractors block on external tools
    return await asyncio.to_thread(service.on_media_ingested, media, request.file, request.media_type)


@router.post("/media/{media_id}/action", response_model=ActionResponse)
async def media_action(media_id: int, request: ActionRequest, service: MetadataService = Depends(get_service)):
    """Perform an extract metadata action on a media."""
    media = get_resource(service, media_id, ResourceKind.MEDIA)
    result = await asyncio.to_thread(service.on_resource_updated, media, request.action)
    return _action_response(result)


@router.post("/items/{item_id}/action", response_model=ActionResponse)
async def item_action(item_id: int, request: ActionRequest, service: MetadataService = Depends(get_service)):
    """Perform an extract metadata action on every media of an item."""
    item = get_resource(service, item_id, ResourceKind.ITEM)
    result = await asyncio.to_thread(service.on_resource_updated, item, request.action)
    return _action_response(result)


@router.get("/media/{media_id}/metadata", response_model=MetadataRecord)
async def get_metadata(media_id: int, service: MetadataService = Depends(get_service)):
    """Get the stored metadata record of a media."""
    media = get_resource(service, media_id, ResourceKind.MEDIA)
    record = await asyncio.to_thread(service.store.find, media.id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No metadata extracted for media {media_id}")
    return record


@router.delete("/media/{media_id}/metadata")
async def delete_metadata(media_id: int, service: MetadataService = Depends(get_service)) -> dict[str, bool]:
    """Delete the stored metadata record of a media."""
    media = get_resource(service, media_id, ResourceKind.MEDIA)
    deleted = await asyncio.to_thread(service.delete_metadata, media)
    return {"deleted": deleted}
