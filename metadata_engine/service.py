"""Host-facing metadata service.

Wires the extractor registry, orchestrator, record store, crosswalk mapper
and action dispatcher together, and exposes the hooks a host calls when
media are ingested, updated or deleted.
"""

import logging

from metadata_engine.config import Settings
from metadata_engine.dispatcher import ActionDispatcher, ActionResult
from metadata_engine.extractors import ExtractorRegistry, build_default_registry
from metadata_engine.mapper import CrosswalkMapper
from metadata_engine.orchestrator import MetadataOrchestrator
from metadata_engine.resources import (
    FileStore,
    PropertyCatalog,
    PropertyValue,
    Resource,
    ResourceRepository,
    build_file_store,
)
from metadata_engine.schemas import CrosswalkRule, MetadataRecord
from metadata_engine.store import MetadataStore, build_store

logger = logging.getLogger(__name__)


class MetadataService:
    """Extraction, storage and mapping of embedded file metadata."""

    def __init__(
        self,
        registry: ExtractorRegistry,
        store: MetadataStore,
        media_types: dict[str, dict[str, str]],
        rules: list[CrosswalkRule],
        catalog: PropertyCatalog,
        file_store: FileStore,
        repository: ResourceRepository | None = None,
        map_on_ingest: bool = True,
    ):
        self.registry = registry
        self.store = store
        self.catalog = catalog
        self.file_store = file_store
        self.repository = repository or ResourceRepository()
        self.map_on_ingest = map_on_ingest
        self.orchestrator = MetadataOrchestrator(registry, store, media_types)
        self.mapper = CrosswalkMapper(rules, catalog)
        self.dispatcher = ActionDispatcher(self.orchestrator, store, self.mapper, file_store)

    # -- operations ---------------------------------------------------------

    def extract_metadata(self, file_path: str, media_type: str, media: Resource) -> MetadataRecord | None:
        return self.orchestrator.extract(file_path, media_type, media)

    def map_metadata(
        self,
        media: Resource,
        records: list[MetadataRecord],
        replace: bool | None = None,
    ) -> list[PropertyValue]:
        return self.mapper.map(media, records, replace=replace)

    def perform_action(self, resource: Resource, action: str | None) -> ActionResult:
        return self.dispatcher.perform(resource, action)

    def delete_metadata(self, media: Resource) -> bool:
        return self.store.delete(media.id)

    # -- host hooks ---------------------------------------------------------

    def on_media_ingested(
        self, media: Resource, file_path: str, media_type: str | None = None
    ) -> MetadataRecord | None:
        """Extract metadata before the ingested file is moved to storage.

        Maps with each rule's own replace flag.
        """
        record = self.extract_metadata(file_path, media_type or media.media_type or "", media)
        if record is not None and self.map_on_ingest:
            self.map_metadata(media, [record])
        return record

    def on_resource_updated(self, resource: Resource, action: str | None) -> ActionResult:
        """Perform the action requested with an item or media update."""
        return self.perform_action(resource, action)

    def on_media_deleted(self, media: Resource) -> None:
        """Cascade a media deletion to its metadata record."""
        if self.delete_metadata(media):
            logger.debug(f"Deleted metadata record of media {media.id}")


def build_service(settings: Settings, repository: ResourceRepository | None = None) -> MetadataService:
    """Build a service from settings."""
    return MetadataService(
        registry=build_default_registry(settings),
        store=build_store(settings),
        media_types=settings.media_types,
        rules=settings.crosswalk_rules(),
        catalog=PropertyCatalog.default(settings.media_types),
        file_store=build_file_store(settings),
        repository=repository,
        map_on_ingest=settings.map_on_ingest,
    )
