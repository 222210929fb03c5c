"""Shared pytest fixtures for the site-upload test suite."""

from __future__ import annotations

from typing import Any

import pytest

from site_upload.models.upload import UploadConfig
from tests.factories import (
    STATUS_URL,
    feature_collection,
    native_status_payload,
    polygon_feature,
)

# ---------------------------------------------------------------------------
# Upload config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def kml_upload_config() -> UploadConfig:
    """Upload config for a KML upload in progress."""
    return UploadConfig(upload_id="upload-123", status_url=STATUS_URL, file_type="kml")


@pytest.fixture()
def shapefile_upload_config() -> UploadConfig:
    return UploadConfig(upload_id="upload-789", status_url=STATUS_URL, file_type="shapefile")


# ---------------------------------------------------------------------------
# Payload fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def single_site_geojson() -> dict[str, Any]:
    """FeatureCollection with one polygon."""
    return feature_collection(polygon_feature(name="Orchard"))


@pytest.fixture()
def three_site_geojson() -> dict[str, Any]:
    """FeatureCollection with three well-separated polygons."""
    return feature_collection(
        polygon_feature(0.0, 0.0, name="Site A"),
        polygon_feature(10.0, 10.0, name="Site B"),
        polygon_feature(20.0, 20.0, name="Site C"),
    )


@pytest.fixture()
def ready_payload() -> dict[str, Any]:
    """Native uploader response for a scanned, stored ``site.kml``."""
    return native_status_payload()
