"""ExifTool metadata extraction.

Runs ``exiftool -json -<group>:all`` once per metadata type.

See https://exiftool.org/exiftool_pod.html
"""

import json
import logging
from collections.abc import Callable
from typing import Any

from .base import DEFAULT_TIMEOUT, CommandResult, resolve_command, run_command

logger = logging.getLogger(__name__)

# Closed table of metadata type -> exiftool group flag.
# Caller-supplied metadata types are only ever used as keys into this table.
EXIFTOOL_GROUP_FLAGS: dict[str, str] = {
    "exif": "-exif:all",
    "iptc": "-iptc:all",
    "xmp": "-xmp:all",
    "pdf": "-pdf:all",
    "photoshop": "-photoshop:all",
    "gif": "-gif:all",
    "icc_profile": "-icc_profile:all",
    "iccprofile": "-icc_profile:all",
    "png": "-png:all",
    "app14": "-app14:all",
    "riff": "-riff:all",
    "mpeg": "-mpeg:all",
    "id3": "-id3:all",
    "svg": "-svg:all",
    "quicktime": "-quicktime:all",
    "vorbis": "-vorbis:all",
    "asf": "-asf:all",
    "flashpix": "-flashpix:all",
    "zip": "-zip:all",
    "xml": "-xml:all",
    "rtf": "-rtf:all",
    "aiff": "-aiff:all",
    "flac": "-flac:all",
    "exe": "-exe:all",
    "theora": "-theora:all",
    "opus": "-opus:all",
    "flash": "-flash:all",
}

CommandRunner = Callable[[list[str], float], CommandResult]


class ExiftoolExtractor:
    """Metadata extractor backed by the exiftool binary."""

    name = "exiftool"

    def __init__(
        self,
        command: str = "exiftool",
        timeout: float = DEFAULT_TIMEOUT,
        runner: CommandRunner = run_command,
    ):
        self.command = command
        self.timeout = timeout
        self.runner = runner

    def is_available(self) -> bool:
        return resolve_command(self.command) is not None

    def supports(self, media_type: str, metadata_type: str) -> bool:
        return metadata_type in EXIFTOOL_GROUP_FLAGS

    def build_args(self, command_path: str, file_path: str, metadata_type: str) -> list[str] | None:
        """Build the exiftool argument vector, or None for unsupported types."""
        flag = EXIFTOOL_GROUP_FLAGS.get(metadata_type)
        if flag is None:
            return None
        # Use options that maximize machine-readability.
        #   -json: Output a JSON list of descriptions/values
        #   --: End of options, so file names starting with "-" stay file names
        return [command_path, "-json", flag, "--", file_path]

    def extract(self, file_path: str, metadata_type: str) -> dict[str, Any] | None:
        command_path = resolve_command(self.command)
        if command_path is None:
            return None

        args = self.build_args(command_path, file_path, metadata_type)
        if args is None:
            logger.debug(f"exiftool does not support metadata type {metadata_type!r}")
            return None

        result = self.runner(args, self.timeout)
        if not result.ok:
            logger.warning(f"exiftool failed for {file_path} ({metadata_type}): {result.error}")
            return None

        return parse_exiftool_output(result.stdout)


def parse_exiftool_output(stdout: str) -> dict[str, Any] | None:
    """Parse ``exiftool -json`` output for a single file.

    Returns:
        Tag mapping without the "SourceFile" key, or None if malformed
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse exiftool output: {e}")
        return None

    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        logger.warning("Unexpected exiftool output shape")
        return None

    metadata = dict(data[0])
    # "SourceFile" is added by exiftool, not read from the file
    metadata.pop("SourceFile", None)
    return metadata
