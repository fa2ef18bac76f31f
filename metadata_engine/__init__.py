"""Metadata Engine - embedded file metadata extraction and crosswalk mapping."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("metadata-engine")
except PackageNotFoundError:
    # Not installed, running from source without build
    __version__ = "0.0.0.dev0"
