"""Extractor registry.

This module provides a registry for metadata extractors. Each extractor
wraps one external tool or library and is looked up by name from the
media type table in the settings.

To add a new extractor:
1. Create a new module (e.g., mediainfo.py)
2. Implement is_available(), supports() and extract()
3. Register it in build_default_registry() in __init__.py
"""

import logging
from collections.abc import Iterator
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ExtractorNotFoundError(KeyError):
    """No extractor is registered under the requested name."""


class MetadataExtractor(Protocol):
    """Protocol for metadata extractors."""

    name: str

    def is_available(self) -> bool:
        """Check runtime preconditions (binary on PATH, library importable).

        Must be cheap and side-effect free. Callers may memoize the answer
        for one extraction pass, never longer.
        """
        ...

    def supports(self, media_type: str, metadata_type: str) -> bool:
        """Check whether this extractor handles the media/metadata type pair."""
        ...

    def extract(self, file_path: str, metadata_type: str) -> dict[str, Any] | None:
        """Extract one metadata type from a file.

        Args:
            file_path: Path to a readable local file
            metadata_type: Metadata type name (exif, xmp, iptc, ...)

        Returns:
            Mapping of tag -> value ({} when the file has none of this type),
            or None when the type is unsupported or extraction failed
        """
        ...


class ExtractorRegistry:
    """Name -> extractor mapping that keeps registration order."""

    def __init__(self) -> None:
        self._extractors: dict[str, MetadataExtractor] = {}

    def register(self, name: str, extractor: MetadataExtractor) -> None:
        """Register a metadata extractor.

        Re-registering a name replaces the extractor but keeps its position.

        Args:
            name: Extractor name (e.g., "exiftool", "exif")
            extractor: Extractor instance implementing the protocol
        """
        self._extractors[name] = extractor
        logger.debug(f"Registered metadata extractor: {name}")

    def get(self, name: str) -> MetadataExtractor:
        try:
            return self._extractors[name]
        except KeyError:
            raise ExtractorNotFoundError(name) from None

    def names(self) -> list[str]:
        """List all registered extractor names in registration order."""
        return list(self._extractors)

    def availability(self) -> dict[str, bool]:
        """Check every extractor's availability (never cached)."""
        result = {}
        for name, extractor in self._extractors.items():
            try:
                result[name] = bool(extractor.is_available())
            except Exception as e:
                logger.warning(f"Extractor {name} is_available() failed: {e}")
                result[name] = False
        return result

    def __contains__(self, name: object) -> bool:
        return name in self._extractors

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._extractors)
