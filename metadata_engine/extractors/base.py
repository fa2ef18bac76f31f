"""Base utilities for metadata extraction."""

import json
import logging
import math
import shutil
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from numbers import Number
from typing import Any

logger = logging.getLogger(__name__)

# Timeout for external tool calls (seconds)
DEFAULT_TIMEOUT = 30.0


@dataclass
class CommandResult:
    """Outcome of an external tool call."""

    stdout: str
    returncode: int | None  # None when the process never finished
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0


def resolve_command(command: str) -> str | None:
    """Resolve a command name or path to an executable path."""
    return shutil.which(command)


def run_command(args: list[str], timeout: float = DEFAULT_TIMEOUT) -> CommandResult:
    """Run an external tool and capture its output.

    The command is an argument vector and never goes through a shell.
    On timeout the child is killed by subprocess.run before returning.

    Args:
        args: Executable followed by its arguments
        timeout: Seconds before the process is killed

    Returns:
        CommandResult; failures are reported in ``error``, never raised
    """
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"{args[0]} timed out after {timeout}s")
        return CommandResult(stdout="", returncode=None, error="timeout")
    except OSError as e:
        logger.warning(f"Failed to run {args[0]}: {e}")
        return CommandResult(stdout="", returncode=None, error=str(e))

    stdout = result.stdout.decode("utf-8", errors="replace")
    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        logger.debug(f"{args[0]} exited with {result.returncode}: {stderr}")
        return CommandResult(stdout=stdout, returncode=result.returncode, error=stderr or None)

    return CommandResult(stdout=stdout, returncode=0)


def _clean_string(value: str) -> str:
    # Lone surrogates cannot be encoded as UTF-8
    return value.encode("utf-8", errors="replace").decode("utf-8")


def to_json_safe(value: Any) -> Any:
    """Convert an extracted value into a JSON-compatible tree.

    - bytes are decoded as UTF-8 with invalid sequences replaced
    - tuples, lists and sets become lists
    - other numbers (Fraction, PIL IFDRational) become floats
    - non-finite floats become None
    - mapping keys become strings
    - anything else is stringified
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        return _clean_string(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace").replace("\x00", "")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Mapping):
        return {_clean_string(str(k)): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_safe(v) for v in value]
    if isinstance(value, Number):
        try:
            as_float = float(value)
        except (TypeError, ValueError, ZeroDivisionError):
            return str(value)
        return as_float if math.isfinite(as_float) else None
    return _clean_string(str(value))


def normalize_payload(payload: dict[str, Any]) -> dict[str, Any] | None:
    """Make a payload round-trip safe through JSON.

    Returns:
        The normalized payload, or None when it still cannot be encoded
    """
    safe = to_json_safe(payload)
    try:
        return json.loads(json.dumps(safe, allow_nan=False))
    except (TypeError, ValueError) as e:
        logger.warning(f"Extracted metadata is not serializable: {e}")
        return None
