"""Shared router dependencies and converters."""

from fastapi import HTTPException, Request

from metadata_engine.config import Settings
from metadata_engine.resources import PropertyValue, Resource, ResourceKind
from metadata_engine.schemas import ResourceResponse, ValueResponse
from metadata_engine.service import MetadataService


def get_service(request: Request) -> MetadataService:
    """The service created by the app factory."""
    return request.app.state.service


def get_resource(service: MetadataService, resource_id: int, kind: ResourceKind | None = None) -> Resource:
    """Look up a resource or raise 404."""
    resource = service.repository.get(resource_id)
    if resource is None or (kind is not None and resource.kind != kind):
        label = kind.value if kind else "resource"
        raise HTTPException(status_code=404, detail=f"{label.capitalize()} not found: {resource_id}")
    return resource


def value_response(value: PropertyValue) -> ValueResponse:
    return ValueResponse(
        resource_id=value.resource_id,
        term=value.property.term,
        type=value.type,
        value=value.value,
        is_public=value.is_public,
    )


def resource_response(resource: Resource) -> ResourceResponse:
    item = resource.parent_item()
    return ResourceResponse(
        id=resource.id,
        kind=resource.kind,
        media_type=resource.media_type,
        filename=resource.filename,
        item_id=item.id if item else None,
        media_ids=[m.id for m in resource.media],
    )


def get_app_settings(request: Request) -> Settings:
    """The settings the app was created with."""
    return request.app.state.settings
