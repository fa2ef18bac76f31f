"""Extraction orchestration.

Given a file and its media type, run every configured extractor for every
metadata type registered for that media type, merge the results into one
payload and upsert the resource's metadata record.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from metadata_engine.extractors.base import normalize_payload
from metadata_engine.extractors.registry import ExtractorNotFoundError, ExtractorRegistry
from metadata_engine.resources import Resource, is_local_file
from metadata_engine.schemas import MetadataRecord
from metadata_engine.store import MetadataStore

logger = logging.getLogger(__name__)


class MetadataOrchestrator:
    """Runs extractors for a file and stores the merged result.

    Args:
        registry: Extractors by name
        store: Record store
        media_types: media type -> {metadata type: extractor name}, in run order
    """

    def __init__(
        self,
        registry: ExtractorRegistry,
        store: MetadataStore,
        media_types: dict[str, dict[str, str]],
    ):
        self.registry = registry
        self.store = store
        self.media_types = media_types

    def collect(self, file_path: str, media_type: str) -> tuple[dict[str, Any], dict[str, str]]:
        """Run all applicable extractors without touching the store.

        Returns:
            (payload, extractors) where payload maps metadata type -> tags and
            extractors maps metadata type -> extractor name
        """
        table = self.media_types.get(media_type)
        if not table:
            logger.debug(f"No metadata types registered for media type {media_type}")
            return {}, {}

        payload: dict[str, Any] = {}
        provenance: dict[str, str] = {}
        # Availability is memoized for this pass only
        available: dict[str, bool] = {}

        for metadata_type, extractor_name in table.items():
            try:
                extractor = self.registry.get(extractor_name)
            except ExtractorNotFoundError:
                logger.debug(f"Extractor {extractor_name} is not registered, skipping {metadata_type}")
                continue

            if extractor_name not in available:
                try:
                    available[extractor_name] = bool(extractor.is_available())
                except Exception as e:
                    logger.warning(f"Extractor {extractor_name} is_available() failed: {e}")
                    available[extractor_name] = False
            if not available[extractor_name]:
                logger.debug(f"Extractor {extractor_name} is unavailable, skipping {metadata_type}")
                continue

            if not extractor.supports(media_type, metadata_type):
                logger.debug(f"Extractor {extractor_name} does not support {media_type}/{metadata_type}")
                continue

            try:
                result = extractor.extract(file_path, metadata_type)
            except Exception as e:
                logger.warning(f"Extractor {extractor_name} failed on {metadata_type}: {e}")
                continue

            if not isinstance(result, dict):
                # Unsupported or failed
                continue

            payload[metadata_type] = result
            provenance[metadata_type] = extractor_name

        return payload, provenance

    def extract(self, file_path: str, media_type: str, resource: Resource) -> MetadataRecord | None:
        """Extract metadata from a file and upsert the resource's record.

        Args:
            file_path: Local path to the file
            media_type: MIME type of the file
            resource: Media the metadata belongs to

        Returns:
            The stored record, or None when nothing was extracted (missing
            file, unregistered media type, no extractor produced a result)
        """
        if not is_local_file(file_path):
            # The file does not exist (anymore) or is unreadable
            logger.debug(f"Not extracting metadata: {file_path} is not a readable file")
            return None

        payload, provenance = self.collect(file_path, media_type)
        if not payload:
            return None

        normalized = normalize_payload(payload)
        if normalized is None:
            return None

        record = self.store.upsert(
            resource.id,
            normalized,
            datetime.now(timezone.utc),
            provenance,
        )
        logger.info(f"Extracted {', '.join(sorted(provenance))} metadata for media {resource.id}")
        return record
