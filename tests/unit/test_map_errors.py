"""Tests for uploader and geo-parser error mapping.

Covers:
- Ordered substring rules, first match wins
- File-type specific and size-limit messages
- Geo-parser code lookup with a safe default
- ErrorDetail builders
"""

from __future__ import annotations

import unittest

import pytest

from site_upload.activities.map_errors import (
    DEFAULT_GEO_PARSER_ERROR_MESSAGE,
    DEFAULT_UPLOAD_ERROR_MESSAGE,
    GEO_PARSER_ERROR_MESSAGES,
    build_geo_parser_error_detail,
    build_upload_error_detail,
    classify_upload_error,
    is_known_geo_parser_code,
    map_geo_parser_error,
    map_upload_error,
)


class TestMapUploadError:
    def test_virus(self) -> None:
        message = map_upload_error("The selected file contains a virus", "kml")
        assert message == "The selected file contains a virus"

    def test_empty(self) -> None:
        assert map_upload_error("The selected file is empty", "kml") == "The selected file is empty"

    def test_too_large_uses_configured_limit(self) -> None:
        raw = "The selected file must be smaller than 50 MB"
        assert map_upload_error(raw, "kml") == "The selected file must be smaller than 50 MB"
        assert (
            map_upload_error(raw, "kml", max_file_size_mb=10)
            == "The selected file must be smaller than 10 MB"
        )

    @pytest.mark.parametrize(
        ("file_type", "expected"),
        [
            ("kml", "The selected file must be a KML file"),
            ("shapefile", "The selected file must be a Shapefile"),
            ("other", DEFAULT_UPLOAD_ERROR_MESSAGE),
        ],
    )
    def test_wrong_type_depends_on_file_type(self, file_type: str, expected: str) -> None:
        assert map_upload_error("The selected file must be a PDF", file_type) == expected

    def test_no_file_selected(self) -> None:
        assert map_upload_error("Select a file to upload", "kml") == "Select a file to upload"

    def test_first_matching_rule_wins(self) -> None:
        """A message matching several rules maps by the earliest rule."""
        raw = "The selected file is empty and must be a KML file"
        assert map_upload_error(raw, "shapefile") == "The selected file is empty"

        raw = "virus found; file must be smaller than 50 MB"
        assert map_upload_error(raw, "kml") == "The selected file contains a virus"

    @pytest.mark.parametrize("raw", [None, "", "Something odd happened", 42])
    def test_unrecognised_falls_back_to_default(self, raw: object) -> None:
        assert map_upload_error(raw, "kml") == DEFAULT_UPLOAD_ERROR_MESSAGE

    @pytest.mark.parametrize(
        ("raw", "code"),
        [
            ("The selected file contains a virus", "VIRUS_DETECTED"),
            ("The selected file is empty", "FILE_EMPTY"),
            ("must be smaller than 50 MB", "FILE_TOO_LARGE"),
            ("The selected file must be a KML file", "INVALID_FILE_TYPE"),
            ("Upload a KML file", "INVALID_FILE_TYPE"),
            ("Choose a Shapefile", "INVALID_FILE_TYPE"),
            ("The selected file could not be uploaded", "UPLOAD_ERROR"),
            ("Select a file to upload", "UPLOAD_ERROR"),
            ("???", "UPLOAD_ERROR"),
            (None, "UPLOAD_ERROR"),
        ],
    )
    def test_classify(self, raw: object, code: str) -> None:
        assert classify_upload_error(raw) == code

    def test_classify_keywords_differ_from_message_rules(self) -> None:
        assert classify_upload_error("Upload a KML file") == "INVALID_FILE_TYPE"
        assert map_upload_error("Upload a KML file", "kml") == DEFAULT_UPLOAD_ERROR_MESSAGE
        assert map_upload_error("Select a file to upload", "kml") == "Select a file to upload"


class TestMapGeoParserError(unittest.TestCase):
    def test_every_known_code_has_a_message(self) -> None:
        for code, message in GEO_PARSER_ERROR_MESSAGES.items():
            assert map_geo_parser_error(code) == message

    def test_lookup_normalises_case(self) -> None:
        assert map_geo_parser_error(" zip_too_large ") == "The selected file is too large"

    def test_missing_prj(self) -> None:
        assert (
            map_geo_parser_error("SHAPEFILE_MISSING_PRJ_FILE")
            == "The selected file must include a .prj file"
        )

    def test_unknown_code_is_default(self) -> None:
        assert map_geo_parser_error("SOMETHING_NEW") == DEFAULT_GEO_PARSER_ERROR_MESSAGE
        assert map_geo_parser_error(None) == DEFAULT_GEO_PARSER_ERROR_MESSAGE

    def test_is_known(self) -> None:
        assert is_known_geo_parser_code("ZIP_TOO_MANY_FILES")
        assert not is_known_geo_parser_code("error")
        assert not is_known_geo_parser_code(None)


class TestErrorDetailBuilders:
    def test_upload_detail(self) -> None:
        detail = build_upload_error_detail("contains a virus", "shapefile")
        assert detail.message == "The selected file contains a virus"
        assert detail.file_type == "shapefile"
        assert detail.field_name == "file"

    def test_geo_parser_detail(self) -> None:
        detail = build_geo_parser_error_detail("UNSUPPORTED_FILE_TYPE", "kml")
        assert detail.message == "The selected file type is not supported"
        assert detail.file_type == "kml"
