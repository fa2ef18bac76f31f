"""Host resource model: items, media, property values and file storage.

These are the collaborators the extraction pipeline talks to. The
in-memory implementations here back the HTTP service and the tests; a host
application can provide its own objects with the same shape.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

from metadata_engine.config import DEFAULT_MEDIA_TYPES, Settings

logger = logging.getLogger(__name__)


class ResourceKind(StrEnum):
    """Kind of content resource."""

    ITEM = "item"
    MEDIA = "media"


# Dublin Core terms (http://purl.org/dc/terms/)
DCTERMS_LOCAL_NAMES = [
    "title", "creator", "subject", "description", "publisher", "contributor",
    "date", "type", "format", "identifier", "source", "language", "relation",
    "coverage", "rights", "audience", "alternative", "tableOfContents",
    "abstract", "created", "valid", "available", "issued", "modified",
    "extent", "medium", "isVersionOf", "hasVersion", "isReplacedBy",
    "replaces", "isRequiredBy", "requires", "isPartOf", "hasPart",
    "isReferencedBy", "references", "isFormatOf", "hasFormat", "conformsTo",
    "spatial", "temporal", "mediator", "dateAccepted", "dateCopyrighted",
    "dateSubmitted", "educationLevel", "accessRights", "bibliographicCitation",
    "license", "rightsHolder", "provenance", "instructionalMethod",
    "accrualMethod", "accrualPeriodicity", "accrualPolicy",
]

# Vocabulary whose local names are the metadata types
EXTRACT_METADATA_PREFIX = "extractmetadata"


@dataclass(frozen=True)
class Property:
    """A vocabulary property."""

    id: int
    vocabulary_prefix: str
    local_name: str

    @property
    def term(self) -> str:
        return f"{self.vocabulary_prefix}:{self.local_name}"


@dataclass(eq=False)
class PropertyValue:
    """A literal value of a property on a resource.

    Compared by identity: two values with the same text are still distinct.
    """

    resource_id: int
    property: Property
    value: str
    type: str = "literal"
    is_public: bool = True


@dataclass(eq=False)
class Resource:
    """An item or a media file attached to an item.

    ``lock`` guards ``values``; hold it across reading and replacing them.
    """

    id: int
    kind: ResourceKind
    media_type: str | None = None
    filename: str | None = None
    item: "Resource | None" = None
    values: list[PropertyValue] = field(default_factory=list)
    media: list["Resource"] = field(default_factory=list)
    lock: Any = field(default_factory=threading.RLock, repr=False)

    @property
    def is_media(self) -> bool:
        return self.kind == ResourceKind.MEDIA

    def parent_item(self) -> "Resource | None":
        """The item a media belongs to (None for items)."""
        return self.item if self.is_media else None

    def values_of(self, prop: Property) -> list[PropertyValue]:
        with self.lock:
            return [v for v in self.values if v.property == prop]

    def apply_value_changes(
        self, remove: list[PropertyValue], add: list[PropertyValue]
    ) -> None:
        """Apply removals then additions as one batch."""
        remove_ids = {id(v) for v in remove}
        with self.lock:
            self.values[:] = [v for v in self.values if id(v) not in remove_ids] + list(add)


class PropertyCatalog:
    """Lookup of properties by term (vocabularyPrefix:localName)."""

    def __init__(self, vocabularies: dict[str, list[str]]):
        self._by_term: dict[str, Property] = {}
        next_id = 1
        for prefix, local_names in vocabularies.items():
            for local_name in local_names:
                prop = Property(id=next_id, vocabulary_prefix=prefix, local_name=local_name)
                if prop.term in self._by_term:
                    continue
                self._by_term[prop.term] = prop
                next_id += 1

    @classmethod
    def default(cls, media_types: dict[str, dict[str, str]] | None = None) -> "PropertyCatalog":
        """Dublin Core plus one extractmetadata property per metadata type."""
        table = media_types if media_types is not None else DEFAULT_MEDIA_TYPES
        metadata_types: list[str] = []
        for types in table.values():
            for metadata_type in types:
                if metadata_type not in metadata_types:
                    metadata_types.append(metadata_type)
        return cls({"dcterms": DCTERMS_LOCAL_NAMES, EXTRACT_METADATA_PREFIX: metadata_types})

    def find_by_term(self, term: str) -> Property | None:
        prefix, sep, local_name = term.partition(":")
        if not sep or not prefix or not local_name:
            return None
        return self._by_term.get(term)

    def __len__(self) -> int:
        return len(self._by_term)


# =============================================================================
# File storage
# =============================================================================


def is_local_file(path: str | os.PathLike | None) -> bool:
    """Check that a path is an existing, readable regular file."""
    if not path:
        return False
    try:
        return os.path.isfile(path) and os.access(path, os.R_OK)
    except (OSError, ValueError):
        return False


class FileStore(Protocol):
    """Where original media files live."""

    is_local: bool

    def local_path(self, media: Resource) -> Path | None:
        """Local path of the media's original file, if addressable."""
        ...


class LocalFileStore:
    """Files stored under ``<base_dir>/original/<filename>``."""

    is_local = True

    def __init__(self, base_dir: str | os.PathLike):
        self.base_dir = Path(base_dir)

    def local_path(self, media: Resource) -> Path | None:
        if not media.filename:
            return None
        original_dir = (self.base_dir / "original").resolve()
        path = (original_dir / media.filename).resolve()
        if not path.is_relative_to(original_dir):
            logger.warning(f"Media {media.id} filename {media.filename!r} is outside the file store")
            return None
        return path


class RemoteFileStore:
    """Files stored on a backend without local paths (S3 and the like)."""

    is_local = False

    def local_path(self, media: Resource) -> Path | None:
        return None


def build_file_store(settings: Settings) -> FileStore:
    if settings.files_dir:
        return LocalFileStore(settings.files_dir)
    return RemoteFileStore()


# =============================================================================
# Resource repository
# =============================================================================


class ResourceRepository:
    """In-memory items and media.

    Items and media share one id sequence, like resources in the host.
    """

    def __init__(self) -> None:
        self._resources: dict[int, Resource] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def _allocate_id(self, requested: int | None) -> int:
        if requested is None:
            while self._next_id in self._resources:
                self._next_id += 1
            requested = self._next_id
        elif requested in self._resources:
            raise ValueError(f"Resource {requested} already exists")
        self._next_id = max(self._next_id, requested + 1)
        return requested

    def create_item(self, resource_id: int | None = None) -> Resource:
        with self._lock:
            item = Resource(id=self._allocate_id(resource_id), kind=ResourceKind.ITEM)
            self._resources[item.id] = item
        return item

    def create_media(
        self,
        item: Resource,
        media_type: str,
        filename: str | None = None,
        resource_id: int | None = None,
    ) -> Resource:
        if item.kind != ResourceKind.ITEM:
            raise ValueError(f"Resource {item.id} is not an item")
        with self._lock:
            media = Resource(
                id=self._allocate_id(resource_id),
                kind=ResourceKind.MEDIA,
                media_type=media_type,
                filename=filename,
                item=item,
            )
            self._resources[media.id] = media
            item.media.append(media)
        return media

    def get(self, resource_id: int) -> Resource | None:
        return self._resources.get(resource_id)

    def delete(self, resource_id: int) -> list[Resource]:
        """Delete a resource; deleting an item deletes its media too.

        Returns:
            Deleted resources, media first
        """
        with self._lock:
            resource = self._resources.pop(resource_id, None)
            if resource is None:
                return []
            deleted = []
            if resource.is_media:
                if resource.item is not None and resource in resource.item.media:
                    resource.item.media.remove(resource)
            else:
                for media in resource.media:
                    self._resources.pop(media.id, None)
                    deleted.append(media)
                resource.media = []
            deleted.append(resource)
        return deleted
