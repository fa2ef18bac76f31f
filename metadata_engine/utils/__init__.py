"""Utility functions for Metadata Engine."""

from metadata_engine.utils.logging import setup_logging

__all__ = ["setup_logging"]
