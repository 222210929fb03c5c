"""Tests for the coordinate extraction activity.

Covers:
- Malformed features are dropped and never counted
- No valid features → GeoParserError(NO_VALID_FEATURES)
- Extractor logging and ``try_extract`` outcomes
- Multi-site policy: one boundary per feature and per Multi* member
"""

from __future__ import annotations

import logging
import unittest
from typing import Any
from unittest.mock import MagicMock

import pytest

from site_upload.activities.extract_coordinates import (
    GeoCoordinateExtractor,
    build_extraction_result,
    count_site_boundaries,
    filter_valid_features,
    is_multiple_sites,
)
from site_upload.clients.geo_parser import (
    GeoParserContractError,
    GeoParserError,
    GeoParserRejectedError,
    GeoParserUnavailableError,
)
from site_upload.models.geo import ExtractionResult
from tests.factories import BUCKET, KEY, feature_collection, polygon_feature, square


def _result(*features: dict[str, Any]) -> ExtractionResult:
    return build_extraction_result(feature_collection(*features))


def _feature(geometry_type: str, coordinates: Any) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": geometry_type, "coordinates": coordinates},
        "properties": {},
    }


# ---------------------------------------------------------------------------
# Filtering and summary
# ---------------------------------------------------------------------------


class TestBuildExtractionResult(unittest.TestCase):
    def test_single_polygon(self) -> None:
        result = _result(polygon_feature(name="Orchard"))
        assert result.feature_count == 1
        assert len(result.geo_json.features) == 1
        assert result.geo_json.features[0].properties == {"name": "Orchard"}
        assert result.extracted_coordinates[0].type == "Polygon"
        assert result.coordinate_count == 5

    def test_malformed_features_dropped(self) -> None:
        result = _result(
            polygon_feature(),
            _feature("Polygon", []),
            _feature("Polygon", None),
            {"type": "Feature", "geometry": None},
            _feature("", [[0, 0]]),
            "not-a-feature",
        )
        assert result.feature_count == 1
        assert len(result.extracted_coordinates) == 1

    def test_feature_count_matches_geo_json(self) -> None:
        result = _result(polygon_feature(), polygon_feature(5, 5), _feature("Point", []))
        assert result.feature_count == len(result.geo_json.features) == 2

    def test_no_features_list(self) -> None:
        with pytest.raises(GeoParserContractError) as exc_info:
            build_extraction_result({"type": "FeatureCollection"})
        assert exc_info.value.code == "GEO_PARSER_FAILED"
        assert exc_info.value.category == "contract"

    def test_only_malformed_features(self) -> None:
        with pytest.raises(GeoParserError) as exc_info:
            _result(_feature("Polygon", []), _feature("Point", None))
        assert exc_info.value.code == "NO_VALID_FEATURES"

    def test_empty_collection(self) -> None:
        with pytest.raises(GeoParserError) as exc_info:
            _result()
        assert exc_info.value.code == "NO_VALID_FEATURES"

    def test_filter_valid_features(self) -> None:
        kept = filter_valid_features([polygon_feature(), _feature("Point", []), None])
        assert [f.geometry_type for f in kept] == ["Polygon"]


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class TestGeoCoordinateExtractor:
    def test_extract_calls_client(self, single_site_geojson: dict[str, Any]) -> None:
        client = MagicMock()
        client.extract.return_value = single_site_geojson

        result = GeoCoordinateExtractor(client).extract(BUCKET, KEY, "kml")

        client.extract.assert_called_once_with(BUCKET, KEY, "kml")
        assert result.feature_count == 1

    def test_extract_logs_and_reraises(self, caplog: pytest.LogCaptureFixture) -> None:
        client = MagicMock()
        client.extract.side_effect = GeoParserError("bad zip", code="ZIP_TOO_LARGE")

        with (
            caplog.at_level(logging.ERROR, logger="site_upload.activities.extract_coordinates"),
            pytest.raises(GeoParserError),
        ):
            GeoCoordinateExtractor(client).extract(BUCKET, KEY, "shapefile")

        assert "Coordinate extraction failed" in caplog.text
        assert f"bucket={BUCKET}" in caplog.text
        assert f"key={KEY}" in caplog.text
        assert "'code': 'ZIP_TOO_LARGE'" in caplog.text
        assert "'category': 'permanent'" in caplog.text

    def test_try_extract_success(self, single_site_geojson: dict[str, Any]) -> None:
        client = MagicMock()
        client.extract.return_value = single_site_geojson
        outcome = GeoCoordinateExtractor(client).try_extract(BUCKET, KEY, "kml")
        assert outcome.ok
        assert outcome.error is None

    def test_try_extract_failure(self) -> None:
        client = MagicMock()
        client.extract.return_value = feature_collection(_feature("Polygon", []))
        outcome = GeoCoordinateExtractor(client).try_extract(BUCKET, KEY, "kml")
        assert not outcome.ok
        assert outcome.result is None
        assert isinstance(outcome.error, GeoParserError)
        assert outcome.error.code == "NO_VALID_FEATURES"
        assert outcome.error.category == "permanent"

    def test_failure_carries_upload_id(self, caplog: pytest.LogCaptureFixture) -> None:
        client = MagicMock()
        client.extract.side_effect = GeoParserUnavailableError("timed out")

        with caplog.at_level(logging.ERROR, logger="site_upload.activities.extract_coordinates"):
            outcome = GeoCoordinateExtractor(client).try_extract(
                BUCKET, KEY, "kml", correlation_id="upload-123"
            )

        assert outcome.error is not None
        assert outcome.error.correlation_id == "upload-123"
        assert outcome.error.retryable is True
        assert "'correlation_id': 'upload-123'" in caplog.text
        assert "'category': 'transient'" in caplog.text

    def test_existing_correlation_id_is_kept(self) -> None:
        client = MagicMock()
        client.extract.side_effect = GeoParserRejectedError("no", correlation_id="earlier")
        outcome = GeoCoordinateExtractor(client).try_extract(
            BUCKET, KEY, "kml", correlation_id="upload-123"
        )
        assert outcome.error is not None
        assert outcome.error.correlation_id == "earlier"


# ---------------------------------------------------------------------------
# Multi-site policy
# ---------------------------------------------------------------------------


class TestMultiSitePolicy:
    def test_single_polygon_is_single_site(self) -> None:
        assert not is_multiple_sites(_result(polygon_feature()))

    def test_single_point_is_single_site(self) -> None:
        assert not is_multiple_sites(_result(_feature("Point", [1.0, 51.0])))

    def test_three_separate_polygons(self, three_site_geojson: dict[str, Any]) -> None:
        result = build_extraction_result(three_site_geojson)
        assert count_site_boundaries(result) == 3
        assert is_multiple_sites(result)

    def test_overlapping_polygons_count_separately(self) -> None:
        result = _result(polygon_feature(0, 0, size=2), polygon_feature(1, 1, size=2))
        assert count_site_boundaries(result) == 2
        assert is_multiple_sites(result)

    def test_touching_polygons_count_separately(self) -> None:
        result = _result(polygon_feature(0, 0), polygon_feature(1, 0))
        assert count_site_boundaries(result) == 2
        assert is_multiple_sites(result)

    def test_coincident_points_count_separately(self) -> None:
        result = _result(_feature("Point", [1.0, 51.0]), _feature("Point", [1.0, 51.0]))
        assert count_site_boundaries(result) == 2
        assert is_multiple_sites(result)

    def test_multipolygon_members_count_individually(self) -> None:
        multi = _feature("MultiPolygon", [square(0, 0), square(5, 5)])
        assert count_site_boundaries(_result(multi)) == 2
        assert is_multiple_sites(_result(multi))

    def test_self_intersecting_polygon_is_one_site(self) -> None:
        bowtie = _feature("Polygon", [[[0, 0], [2, 2], [2, 0], [0, 2], [0, 0]]])
        assert count_site_boundaries(_result(bowtie)) == 1
        assert not is_multiple_sites(_result(bowtie))

    def test_multipolygon_with_one_member_is_single_site(self) -> None:
        assert not is_multiple_sites(_result(_feature("MultiPolygon", [square(0, 0)])))

    def test_unbuildable_geometry_counts_as_one(self) -> None:
        result = _result(_feature("Polygon", [[[0, 0]]]), polygon_feature(10, 10))
        assert count_site_boundaries(result) == 2
