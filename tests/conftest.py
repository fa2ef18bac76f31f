"""Pytest configuration and fixtures."""

import shutil
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from metadata_engine.app import create_app
from metadata_engine.config import Settings
from metadata_engine.extractors import ExtractorRegistry
from metadata_engine.resources import PropertyCatalog, ResourceRepository
from metadata_engine.store import InMemoryMetadataStore

# Exif tag ids
ARTIST = 0x013B
IMAGE_DESCRIPTION = 0x010E
COPYRIGHT = 0x8298


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "exiftool: needs the exiftool binary on PATH")


def pytest_collection_modifyitems(config, items):
    if shutil.which("exiftool"):
        return
    skip = pytest.mark.skip(reason="exiftool not installed")
    for item in items:
        if "exiftool" in item.keywords:
            item.add_marker(skip)


class FakeExtractor:
    """Extractor returning canned results per metadata type."""

    def __init__(
        self,
        name: str,
        results: dict[str, Any] | None = None,
        available: bool = True,
        supported: set[str] | None = None,
        error: Exception | None = None,
    ):
        self.name = name
        self.results = results or {}
        self.available = available
        self.supported = supported
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.availability_checks = 0

    def is_available(self) -> bool:
        self.availability_checks += 1
        return self.available

    def supports(self, media_type: str, metadata_type: str) -> bool:
        return self.supported is None or metadata_type in self.supported

    def extract(self, file_path: str, metadata_type: str) -> dict[str, Any] | None:
        self.calls.append((file_path, metadata_type))
        if self.error is not None:
            raise self.error
        return self.results.get(metadata_type)


@pytest.fixture
def fake_extractor_factory():
    """Build FakeExtractor instances."""
    return FakeExtractor


@pytest.fixture
def registry():
    return ExtractorRegistry()


@pytest.fixture
def store():
    return InMemoryMetadataStore()


@pytest.fixture
def catalog():
    return PropertyCatalog.default()


@pytest.fixture
def repository():
    return ResourceRepository()


@pytest.fixture
def item(repository):
    return repository.create_item()


@pytest.fixture
def media(repository, item):
    return repository.create_media(item, "image/jpeg", filename="photo.jpg")


@pytest.fixture
def sample_file(tmp_path) -> Path:
    """A readable file whose content extractors never look at."""
    path = tmp_path / "sample.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0 not really a jpeg")
    return path


def write_jpeg_with_exif(path: Path, artist: str = "Jane Doe", description: str = "A test image") -> Path:
    exif = Image.Exif()
    exif[ARTIST] = artist
    exif[IMAGE_DESCRIPTION] = description
    exif[COPYRIGHT] = "CC BY 4.0"
    Image.new("RGB", (8, 8), color=(200, 30, 30)).save(path, format="JPEG", exif=exif.tobytes())
    return path


@pytest.fixture
def jpeg_writer():
    """Write a JPEG carrying Exif tags to a given path."""
    return write_jpeg_with_exif


@pytest.fixture
def jpeg_with_exif(tmp_path) -> Path:
    """A small JPEG carrying Artist, ImageDescription and Copyright Exif tags."""
    return write_jpeg_with_exif(tmp_path / "exif.jpg")


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings using only the built-in Pillow Exif reader."""
    files_dir = tmp_path / "files"
    (files_dir / "original").mkdir(parents=True)
    return Settings(
        log_file=None,
        files_dir=str(files_dir),
        enabled_extractors=["exif"],
        media_types={"image/jpeg": {"exif": "exif"}},
        crosswalk=[
            {"resource": "item", "pointer": "/exif/Artist", "term": "dcterms:creator", "replace": False},
            {"resource": "media", "pointer": "/exif/ImageDescription", "term": "dcterms:description", "replace": True},
            {"resource": "media", "pointer": "/exif/Copyright", "term": "dcterms:rights", "replace": True},
        ],
    )


@pytest.fixture
def client(settings):
    """FastAPI test client."""
    return TestClient(create_app(settings))
