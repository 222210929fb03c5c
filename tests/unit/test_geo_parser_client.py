"""Tests for the geo-parser client.

Covers:
- Request shape (``POST /extract`` with bucket, key, fileType)
- Success envelope returns the GeoJSON value
- Every other envelope, status, body or transport failure raises
  ``GeoParserError`` with the most specific code available
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from site_upload.clients.geo_parser import (
    GeoParserClient,
    GeoParserContractError,
    GeoParserError,
    GeoParserRejectedError,
    GeoParserUnavailableError,
    error_code_from_envelope,
)
from tests.factories import BUCKET, KEY, feature_collection, polygon_feature

BASE_URL = "http://geo-parser.test/"


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> GeoParserClient:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return GeoParserClient(BASE_URL, timeout_s=5.0, http_client=http_client)


def _json_client(envelope: Any, status_code: int = 200) -> GeoParserClient:
    return _client(lambda request: httpx.Response(status_code, json=envelope))


class TestGeoParserRequest:
    def test_extract_url_joins_base(self) -> None:
        assert GeoParserClient(BASE_URL).extract_url == "http://geo-parser.test/extract"

    def test_posts_bucket_key_and_file_type(self) -> None:
        seen: list[httpx.Request] = []
        value = feature_collection(polygon_feature())

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"message": "success", "value": value})

        result = _client(handler).extract(BUCKET, KEY, "kml")

        assert result == value
        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == "http://geo-parser.test/extract"
        assert json.loads(seen[0].content) == {"bucket": BUCKET, "key": KEY, "fileType": "kml"}


class TestGeoParserFailures:
    def test_error_message_envelope(self) -> None:
        with pytest.raises(GeoParserRejectedError) as exc_info:
            _json_client({"message": "error"}).extract(BUCKET, KEY, "kml")
        assert exc_info.value.code == "GEO_PARSER_FAILED"
        assert exc_info.value.retryable is False
        assert exc_info.value.category == "permanent"

    def test_service_code_is_kept(self) -> None:
        envelope = {"message": "error", "code": "SHAPEFILE_MISSING_PRJ_FILE"}
        with pytest.raises(GeoParserError) as exc_info:
            _json_client(envelope, status_code=400).extract(BUCKET, KEY, "shapefile")
        assert exc_info.value.code == "SHAPEFILE_MISSING_PRJ_FILE"

    def test_success_message_with_error_status(self) -> None:
        envelope = {"message": "success", "value": feature_collection()}
        with pytest.raises(GeoParserError):
            _json_client(envelope, status_code=500).extract(BUCKET, KEY, "kml")

    def test_success_without_value(self) -> None:
        with pytest.raises(GeoParserContractError, match="no GeoJSON value"):
            _json_client({"message": "success"}).extract(BUCKET, KEY, "kml")

    def test_unreadable_body(self) -> None:
        client = _client(lambda request: httpx.Response(502, content=b"Bad gateway"))
        with pytest.raises(GeoParserContractError, match="unreadable body"):
            client.extract(BUCKET, KEY, "kml")

    def test_non_object_envelope(self) -> None:
        with pytest.raises(GeoParserContractError, match="must be an object"):
            _json_client(["success"]).extract(BUCKET, KEY, "kml")

    def test_timeout_is_transient_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(GeoParserUnavailableError) as exc_info:
            _client(handler).extract(BUCKET, KEY, "kml")
        assert exc_info.value.code == "GEO_PARSER_UNAVAILABLE"
        assert exc_info.value.retryable is True
        assert exc_info.value.category == "transient"

    def test_connection_error_is_transient_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(GeoParserUnavailableError) as exc_info:
            _client(handler).extract(BUCKET, KEY, "kml")
        assert exc_info.value.code == "GEO_PARSER_UNAVAILABLE"
        assert exc_info.value.category == "transient"

    def test_every_failure_is_a_geo_parser_error(self) -> None:
        for error_class in (
            GeoParserRejectedError,
            GeoParserUnavailableError,
            GeoParserContractError,
        ):
            assert issubclass(error_class, GeoParserError)


class TestErrorCodeFromEnvelope:
    @pytest.mark.parametrize(
        ("envelope", "expected"),
        [
            ({"code": "ZIP_TOO_LARGE"}, "ZIP_TOO_LARGE"),
            ({"errorCode": "zip_too_many_files"}, "ZIP_TOO_MANY_FILES"),
            ({"error": {"code": "SHAPEFILE_NOT_FOUND"}}, "SHAPEFILE_NOT_FOUND"),
            ({"message": "UNSUPPORTED_FILE_TYPE"}, "UNSUPPORTED_FILE_TYPE"),
            ({"code": "BRAND_NEW_CODE"}, "BRAND_NEW_CODE"),
            ({"message": "error"}, "GEO_PARSER_FAILED"),
            ({}, "GEO_PARSER_FAILED"),
        ],
    )
    def test_code_lookup(self, envelope: dict[str, Any], expected: str) -> None:
        assert error_code_from_envelope(envelope) == expected

    def test_known_code_preferred_over_unknown(self) -> None:
        envelope = {"code": "SOMETHING", "error": {"code": "ZIP_TOO_LARGE"}}
        assert error_code_from_envelope(envelope) == "ZIP_TOO_LARGE"
