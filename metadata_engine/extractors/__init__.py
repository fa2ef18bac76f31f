"""Metadata extractors.

Usage:
    from metadata_engine.extractors import build_default_registry

    registry = build_default_registry(settings)
    registry.get("exiftool").extract("/path/to/image.jpg", "exif")

Registration order is the order extractors are listed and checked in.
"""

import logging

from metadata_engine.config import Settings

from .base import CommandResult, normalize_payload, run_command, to_json_safe
from .exif import PillowExifExtractor
from .exiftool import EXIFTOOL_GROUP_FLAGS, ExiftoolExtractor
from .registry import ExtractorNotFoundError, ExtractorRegistry, MetadataExtractor

logger = logging.getLogger(__name__)

__all__ = [
    "EXIFTOOL_GROUP_FLAGS",
    "CommandResult",
    "ExiftoolExtractor",
    "ExtractorNotFoundError",
    "ExtractorRegistry",
    "MetadataExtractor",
    "PillowExifExtractor",
    "build_default_registry",
    "normalize_payload",
    "run_command",
    "to_json_safe",
]


def build_default_registry(settings: Settings) -> ExtractorRegistry:
    """Register the built-in extractors allowed by the settings."""
    candidates: list[MetadataExtractor] = [
        ExiftoolExtractor(
            command=settings.exiftool_path,
            timeout=settings.extractor_timeout,
        ),
        PillowExifExtractor(),
    ]

    registry = ExtractorRegistry()
    for extractor in candidates:
        if settings.enabled_extractors is not None and extractor.name not in settings.enabled_extractors:
            logger.info(f"Extractor {extractor.name} disabled by settings")
            continue
        registry.register(extractor.name, extractor)
    return registry
