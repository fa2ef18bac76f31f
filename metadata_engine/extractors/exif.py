"""Built-in Exif reader using Pillow.

Reads only the Exif block of common raster images, without any external
binary. Useful where exiftool is not installed.
"""

import importlib.util
import logging
from typing import Any

from .base import to_json_safe

logger = logging.getLogger(__name__)

# Media types Pillow reads Exif from
SUPPORTED_MEDIA_TYPES = {"image/jpeg", "image/tiff", "image/png", "image/webp"}

# Sub-IFDs flattened into the top-level tag mapping
_EXIF_IFD_POINTER = 0x8769
_GPS_IFD_POINTER = 0x8825


class PillowExifExtractor:
    """Exif extractor backed by Pillow."""

    name = "exif"

    def is_available(self) -> bool:
        return importlib.util.find_spec("PIL") is not None

    def supports(self, media_type: str, metadata_type: str) -> bool:
        return metadata_type == "exif" and media_type in SUPPORTED_MEDIA_TYPES

    def extract(self, file_path: str, metadata_type: str) -> dict[str, Any] | None:
        if metadata_type != "exif":
            return None

        from PIL import ExifTags, Image, UnidentifiedImageError

        try:
            with Image.open(file_path) as img:
                exif = img.getexif()
                tags: dict[str, Any] = {}
                for tag_id, value in exif.items():
                    if tag_id in (_EXIF_IFD_POINTER, _GPS_IFD_POINTER):
                        continue
                    tags[ExifTags.TAGS.get(tag_id, f"Tag{tag_id:#06x}")] = value

                for tag_id, value in exif.get_ifd(_EXIF_IFD_POINTER).items():
                    tags[ExifTags.TAGS.get(tag_id, f"Tag{tag_id:#06x}")] = value

                gps = {
                    ExifTags.GPSTAGS.get(tag_id, f"Tag{tag_id:#06x}"): value
                    for tag_id, value in exif.get_ifd(_GPS_IFD_POINTER).items()
                }
                if gps:
                    tags["GPSInfo"] = gps
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            logger.warning(f"Pillow could not read Exif from {file_path}: {e}")
            return None

        logger.debug(f"Read {len(tags)} Exif tags from {file_path}")
        return to_json_safe(tags)
