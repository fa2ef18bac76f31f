"""Configuration settings for Metadata Engine."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from metadata_engine.schemas import CrosswalkRule, TargetResource

logger = logging.getLogger(__name__)

# =============================================================================
# Default Constants
# =============================================================================

# Config file location (override with METADATA_ENGINE_CONFIG)
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "metadata-engine" / "config.json"
CONFIG_PATH_ENV = "METADATA_ENGINE_CONFIG"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE = "/tmp/metadata_engine.log"

# Extractors
DEFAULT_EXIFTOOL_PATH = "exiftool"
DEFAULT_EXTRACTOR_TIMEOUT = 30.0  # seconds per external tool call

# File media types and all their possible metadata types/extractors.
# Metadata types run in the listed order; the metadata type names double as
# local names of the "extractmetadata" vocabulary.
DEFAULT_MEDIA_TYPES: dict[str, dict[str, str]] = {
    # JPEG (image)
    "image/jpeg": {
        "exif": "exiftool",
        "iccprofile": "exiftool",
        "photoshop": "exiftool",
        "iptc": "exiftool",
        "xmp": "exiftool",
        "app14": "exiftool",
    },
    # PNG (image)
    "image/png": {
        "xmp": "exiftool",
        "png": "exiftool",
        "iptc": "exiftool",
        "exif": "exiftool",
    },
    # GIF (image)
    "image/gif": {
        "xmp": "exiftool",
        "gif": "exiftool",
        "iptc": "exiftool",
    },
    # SVG (image)
    "image/svg+xml": {
        "svg": "exiftool",
        "iptc": "exiftool",
    },
    # TIFF (image)
    "image/tiff": {
        "exif": "exiftool",
        "iccprofile": "exiftool",
        "iptc": "exiftool",
    },
    # PSD (image)
    "application/vnd.adobe.photoshop": {
        "photoshop": "exiftool",
        "iptc": "exiftool",
        "xmp": "exiftool",
        "iccprofile": "exiftool",
        "exif": "exiftool",
    },
    # PDF (page layout)
    "application/pdf": {
        "xmp": "exiftool",
        "pdf": "exiftool",
    },
    # DOC (text)
    "application/msword": {
        "flashpix": "exiftool",
    },
    # DOCX (text)
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": {
        "zip": "exiftool",
        "xmp": "exiftool",
        "xml": "exiftool",
    },
    # ODT (text)
    "application/vnd.oasis.opendocument.text": {
        "xmp": "exiftool",
    },
    # RTF (text)
    "application/rtf": {
        "rtf": "exiftool",
    },
    # AVI (video)
    "video/x-msvideo": {
        "riff": "exiftool",
    },
    # MP4 (video)
    "video/mp4": {
        "quicktime": "exiftool",
    },
    # MPG (video)
    "video/mpeg": {
        "mpeg": "exiftool",
    },
    # WMV (video)
    "video/x-ms-wmv": {
        "asf": "exiftool",
    },
    "video/x-ms-asf": {
        "asf": "exiftool",
    },
    # MP3 (audio)
    "audio/mpeg": {
        "mpeg": "exiftool",
        "id3": "exiftool",
    },
    # OGG (audio)
    "audio/ogg": {
        "vorbis": "exiftool",
    },
    # WAV (audio)
    "audio/wav": {
        "riff": "exiftool",
    },
    "audio/x-wav": {
        "riff": "exiftool",
    },
}


# =============================================================================
# Settings (loaded from JSON config file)
# =============================================================================


class Settings(BaseModel):
    """Application settings loaded from JSON config file.

    Config file location: ~/.config/metadata-engine/config.json

    Storage:
    - files_dir: local file store base directory ("<files_dir>/original/<filename>").
      None means files are not locally addressable and refresh actions are disabled.
    - store_dir: directory for persisted metadata records. None keeps them in memory.
    - ingest_dir: directory ingested files must live in (the host's upload
      temp dir). None accepts any path the server can read.

    Crosswalk:
    - crosswalk: list of JSON Pointer rules
      ({"resource", "pointer", "term", "replace", "extractor"?})
    - legacy_crosswalk: {metadataType: {tagName: term}}, mapped to the media
      with add semantics
    """

    # Logging
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str | None = DEFAULT_LOG_FILE

    # Extractors
    exiftool_path: str = DEFAULT_EXIFTOOL_PATH
    extractor_timeout: float = DEFAULT_EXTRACTOR_TIMEOUT
    enabled_extractors: list[str] | None = None  # None = all registered extractors

    # Storage
    files_dir: str | None = None
    store_dir: str | None = None
    ingest_dir: str | None = None

    # Mapping
    map_on_ingest: bool = True
    media_types: dict[str, dict[str, str]] = {k: dict(v) for k, v in DEFAULT_MEDIA_TYPES.items()}
    crosswalk: list[dict[str, Any]] = []
    legacy_crosswalk: dict[str, dict[str, str]] = {}

    def crosswalk_rules(self) -> list[CrosswalkRule]:
        """Parse the configured crosswalk, skipping malformed rules.

        JSON Pointer rules come first, followed by rules converted from the
        legacy crosswalk.
        """
        rules: list[CrosswalkRule] = []
        for index, raw_rule in enumerate(self.crosswalk):
            try:
                rules.append(CrosswalkRule.model_validate(raw_rule))
            except ValidationError as e:
                logger.warning(f"Skipping invalid crosswalk rule #{index}: {e.error_count()} error(s)")
        rules.extend(rules_from_legacy(self.legacy_crosswalk))
        return rules


def rules_from_legacy(crosswalk: dict[str, dict[str, str]]) -> list[CrosswalkRule]:
    """Convert a {metadataType: {tagName: term}} crosswalk to rules.

    Example:
        {"exif": {"Artist": "dcterms:creator"}} becomes a media rule with
        pointer "/exif/Artist" adding to dcterms:creator.
    """
    rules = []
    for metadata_type, tags in crosswalk.items():
        for tag, term in tags.items():
            pointer = "/" + "/".join(
                part.replace("~", "~0").replace("/", "~1") for part in (metadata_type, tag)
            )
            rules.append(
                CrosswalkRule(
                    resource=TargetResource.MEDIA,
                    pointer=pointer,
                    term=term,
                    replace=False,
                )
            )
    return rules


def get_config_path() -> Path:
    """Get the config file path."""
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config_from_file(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from JSON file.

    Args:
        config_path: Optional path to config file. Defaults to get_config_path()

    Returns:
        Dictionary of settings (empty if file doesn't exist)
    """
    path = config_path or get_config_path()

    if not path.exists():
        return {}

    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config at {path}: top level must be an object")
        return {}
    return data


def save_config_to_file(settings: Settings, config_path: Path | None = None) -> None:
    """Save configuration to JSON file.

    Args:
        settings: Settings instance to save
        config_path: Optional path to config file. Defaults to get_config_path()
    """
    path = config_path or get_config_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(settings.model_dump(), f, indent=2)

    logger.info(f"Saved config to {path}")


# Cached settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get settings instance (loaded from config file on first call)."""
    global _settings

    if _settings is None:
        config_data = load_config_from_file()
        try:
            _settings = Settings(**config_data)
        except ValidationError as e:
            logger.warning(f"Invalid config at {get_config_path()}, using defaults: {e}")
            _settings = Settings()
            return _settings
        if config_data:
            logger.info(f"Loaded settings from {get_config_path()}")
        else:
            logger.info("Using default settings")

    return _settings


def reload_settings() -> Settings:
    """Reload settings from config file."""
    global _settings
    _settings = None
    return get_settings()
