"""Pydantic schemas for records, crosswalk rules and request/response models."""

import json
import logging
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class TargetResource(StrEnum):
    """Resource a mapped value attaches to."""

    MEDIA = "media"
    ITEM = "item"


class Action(StrEnum):
    """Extract metadata actions requested on a resource update."""

    REFRESH = "refresh"
    REFRESH_MAP_ADD = "refresh_map_add"
    REFRESH_MAP_REPLACE = "refresh_map_replace"
    MAP_ADD = "map_add"
    MAP_REPLACE = "map_replace"
    DELETE = "delete"
    DEFAULT = "default"


# Human-readable labels, as offered in an action select
ACTION_LABELS: dict[Action, str] = {
    Action.REFRESH: "Refresh metadata",
    Action.REFRESH_MAP_ADD: "Refresh and map metadata (add values)",
    Action.REFRESH_MAP_REPLACE: "Refresh and map metadata (replace values)",
    Action.MAP_ADD: "Map metadata (add values)",
    Action.MAP_REPLACE: "Map metadata (replace values)",
    Action.DELETE: "Delete extracted metadata",
}


def pointer_segments(pointer: str) -> list[str] | None:
    """Split an RFC 6901 pointer into unescaped segments.

    Returns None for malformed pointers (non-empty and not starting with "/").
    """
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        return None
    return [part.replace("~1", "/").replace("~0", "~") for part in pointer.split("/")[1:]]


# === Configuration Models ===


class CrosswalkRule(BaseModel):
    """One JSON Pointer crosswalk mapping.

    The first pointer segment names the metadata type the value comes from,
    e.g. "/exif/Artist" reads the "Artist" tag of the "exif" metadata.
    """

    model_config = ConfigDict(frozen=True)

    resource: TargetResource
    pointer: str
    term: str  # vocabPrefix:propertyLocalName
    replace: bool = False
    extractor: str | None = None  # Only apply when this extractor produced the data

    @property
    def metadata_type(self) -> str | None:
        segments = pointer_segments(self.pointer)
        if not segments:
            return None
        return segments[0]


# === Record Models ===


class MetadataRecord(BaseModel):
    """Latest extraction result for one media resource."""

    resource_id: int
    extracted_at: datetime
    extractors: dict[str, str] = {}  # metadata type -> extractor name
    payload: dict[str, Any] = {}  # metadata type -> tag -> value

    @field_validator("payload", mode="before")
    @classmethod
    def decode_legacy_entries(cls, payload: Any) -> Any:
        """Decode metadata types stored as raw JSON strings by older records."""
        if not isinstance(payload, dict):
            return payload
        decoded: dict[str, Any] = {}
        for metadata_type, entry in payload.items():
            if isinstance(entry, str):
                try:
                    entry = json.loads(entry)
                except json.JSONDecodeError:
                    logger.debug(f"Dropping undecodable legacy entry for {metadata_type}")
                    continue
                if not isinstance(entry, (dict, list)):
                    continue
            decoded[metadata_type] = entry
        return decoded


# === Request Models ===


class ItemCreate(BaseModel):
    """Register an item."""

    id: int | None = None


class MediaCreate(BaseModel):
    """Register a media attached to an item."""

    id: int | None = None
    item_id: int
    media_type: str
    filename: str | None = None


class IngestRequest(BaseModel):
    """Ingest a (temporary) file for an existing media."""

    file: str
    media_type: str | None = None  # Defaults to the media's own media type


class ActionRequest(BaseModel):
    """Perform an extract metadata action.

    Kept as a plain string: unknown actions are a no-op, not a validation error.
    """

    action: str = Action.DEFAULT


# === Response Models ===


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ExtractorInfo(BaseModel):
    """Registered extractor."""

    name: str
    available: bool


class ExtractorsResponse(BaseModel):
    extractors: list[ExtractorInfo]


class ActionInfo(BaseModel):
    name: str
    label: str


class ActionsResponse(BaseModel):
    actions: list[ActionInfo]


class ResourceResponse(BaseModel):
    """Item or media summary."""

    id: int
    kind: str
    media_type: str | None = None
    filename: str | None = None
    item_id: int | None = None
    media_ids: list[int] = []


class ValueResponse(BaseModel):
    """Property value attached to a resource."""

    resource_id: int
    term: str
    type: str = "literal"
    value: str
    is_public: bool = True


class ValuesResponse(BaseModel):
    resource_id: int
    values: list[ValueResponse]


class ActionResponse(BaseModel):
    """Outcome of an action, reported for callers that want it."""

    action: str
    media_ids: list[int] = Field(default_factory=list)
    records: list[MetadataRecord] = Field(default_factory=list)
    values_added: list[ValueResponse] = Field(default_factory=list)
    deleted: int = 0
