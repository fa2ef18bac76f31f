"""Tests for the Pillow Exif extractor and payload normalization."""

import json
from fractions import Fraction

import pytest
from PIL import TiffImagePlugin

from metadata_engine.extractors import PillowExifExtractor, normalize_payload, to_json_safe


class TestPillowExifExtractor:
    """Built-in Exif reader."""

    def test_available(self):
        assert PillowExifExtractor().is_available()

    def test_reads_tags_by_name(self, jpeg_with_exif):
        result = PillowExifExtractor().extract(str(jpeg_with_exif), "exif")

        assert result["Artist"] == "Jane Doe"
        assert result["ImageDescription"] == "A test image"
        assert result["Copyright"] == "CC BY 4.0"

    def test_result_is_json_safe(self, jpeg_with_exif):
        result = PillowExifExtractor().extract(str(jpeg_with_exif), "exif")
        assert json.loads(json.dumps(result)) == result

    @pytest.mark.parametrize(
        "media_type,metadata_type,expected",
        [
            ("image/jpeg", "exif", True),
            ("image/tiff", "exif", True),
            ("image/png", "exif", True),
            ("image/jpeg", "xmp", False),
            ("application/pdf", "exif", False),
        ],
    )
    def test_supports(self, media_type, metadata_type, expected):
        assert PillowExifExtractor().supports(media_type, metadata_type) is expected

    def test_other_metadata_types_unsupported(self, jpeg_with_exif):
        assert PillowExifExtractor().extract(str(jpeg_with_exif), "iptc") is None

    def test_unreadable_image(self, sample_file):
        assert PillowExifExtractor().extract(str(sample_file), "exif") is None

    def test_image_without_exif(self, tmp_path):
        from PIL import Image

        path = tmp_path / "plain.png"
        Image.new("L", (4, 4)).save(path)

        assert PillowExifExtractor().extract(str(path), "exif") == {}


class TestNormalization:
    """JSON-safe conversion of extracted values."""

    def test_bytes_are_decoded_with_replacement(self):
        assert to_json_safe(b"ok\xff") == "ok\ufffd"

    def test_nul_bytes_dropped(self):
        assert to_json_safe(b"ASCII\x00\x00\x00") == "ASCII"

    def test_lone_surrogates_replaced(self):
        assert to_json_safe("a\udc80b") == "a?b"

    def test_containers(self):
        assert to_json_safe({1: (1, 2), "s": {3}}) == {"1": [1, 2], "s": [3]}

    def test_rationals(self):
        assert to_json_safe(Fraction(1, 4)) == 0.25
        assert to_json_safe(TiffImagePlugin.IFDRational(72, 1)) == 72.0

    def test_non_finite_floats(self):
        assert to_json_safe(float("nan")) is None
        assert to_json_safe(float("inf")) is None

    def test_scalars_pass_through(self):
        assert to_json_safe(True) is True
        assert to_json_safe(None) is None
        assert to_json_safe(7) == 7
        assert to_json_safe(1.5) == 1.5

    def test_unknown_objects_stringified(self):
        class Thing:
            def __str__(self):
                return "thing"

        assert to_json_safe(Thing()) == "thing"

    def test_normalize_payload_round_trips(self):
        payload = {"exif": {"Artist": b"Jane", "XResolution": Fraction(300, 1), "Bits": (8, 8, 8)}}

        normalized = normalize_payload(payload)

        assert normalized == {"exif": {"Artist": "Jane", "XResolution": 300.0, "Bits": [8, 8, 8]}}
        assert json.loads(json.dumps(normalized)) == normalized
