"""Coordinate extraction activity.

Asks the geo-parser to read a stored KML / Shapefile, validates the
returned FeatureCollection and derives the normalised summary the
site-details wizard stores:

- malformed features (no geometry type, null or empty coordinates) are
  dropped and never counted;
- at least one valid feature must remain, otherwise extraction fails;
- ``is_multiple_sites`` classifies the result as one site or several.

This activity never touches the session; the orchestrator decides what
to write.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from shapely.errors import ShapelyError
from shapely.geometry import shape

from site_upload.clients.geo_parser import (
    GeoParserContractError,
    GeoParserError,
    GeoParserRejectedError,
)
from site_upload.core.constants import ERROR_CODE_NO_FEATURES
from site_upload.models.geo import (
    Coordinate,
    ExtractionOutcome,
    ExtractionResult,
    GeoFeature,
    GeoJSON,
)

if TYPE_CHECKING:
    from shapely.geometry.base import BaseGeometry

    from site_upload.clients.geo_parser import GeoParserClient

logger = logging.getLogger("site_upload.activities.extract_coordinates")


class GeoCoordinateExtractor:
    """Extract and summarise geometry from an uploaded file.

    Args:
        client: Geo-parser HTTP client.
    """

    def __init__(self, client: GeoParserClient) -> None:
        self._client = client

    def extract(
        self,
        bucket: str,
        key: str,
        file_type: str,
        *,
        correlation_id: str = "",
    ) -> ExtractionResult:
        """Extract valid features from the file at ``s3://bucket/key``.

        Args:
            correlation_id: Upload the file belongs to; stamped on any error.

        Raises:
            GeoParserError: If the geo-parser fails or its envelope is not a
                success, the payload has no ``features`` list, or no valid
                feature remains after filtering.
        """
        try:
            geo_json_raw = self._client.extract(bucket, key, file_type)
            result = build_extraction_result(geo_json_raw)
        except GeoParserError as exc:
            if not exc.correlation_id:
                exc.correlation_id = correlation_id
            logger.error(
                "Coordinate extraction failed | bucket=%s | key=%s | file_type=%s | error=%s",
                bucket,
                key,
                file_type,
                exc.to_error_dict(),
            )
            raise

        logger.info(
            "Coordinate extraction completed | bucket=%s | key=%s | file_type=%s | "
            "features=%d | coordinates=%d",
            bucket,
            key,
            file_type,
            result.feature_count,
            result.coordinate_count,
        )
        return result

    def try_extract(
        self,
        bucket: str,
        key: str,
        file_type: str,
        *,
        correlation_id: str = "",
    ) -> ExtractionOutcome:
        """Like ``extract`` but returns the failure instead of raising it."""
        try:
            result = self.extract(bucket, key, file_type, correlation_id=correlation_id)
        except GeoParserError as exc:
            return ExtractionOutcome(error=exc)
        return ExtractionOutcome(result=result)


# ---------------------------------------------------------------------------
# Payload → ExtractionResult
# ---------------------------------------------------------------------------


def build_extraction_result(geo_json_raw: dict[str, Any]) -> ExtractionResult:
    """Filter a raw FeatureCollection down to valid features and summarise it.

    Raises:
        GeoParserError: If there is no ``features`` list or no valid feature.
    """
    raw_features = geo_json_raw.get("features")
    if not isinstance(raw_features, list):
        msg = "Geo-parser payload has no features array"
        raise GeoParserContractError(msg)

    features = filter_valid_features(raw_features)
    dropped = len(raw_features) - len(features)
    if dropped:
        logger.warning(
            "Dropped malformed features | dropped=%d | kept=%d",
            dropped,
            len(features),
        )

    if not features:
        msg = f"No valid features in geo-parser payload ({len(raw_features)} received)"
        raise GeoParserRejectedError(msg, code=ERROR_CODE_NO_FEATURES)

    return ExtractionResult(
        geo_json=GeoJSON(features=features),
        extracted_coordinates=[
            Coordinate(type=f.geometry_type, coordinates=f.coordinates) for f in features
        ],
        feature_count=len(features),
    )


def filter_valid_features(raw_features: list[Any]) -> list[GeoFeature]:
    """Return only features with a geometry type and non-empty coordinates."""
    valid: list[GeoFeature] = []
    for raw in raw_features:
        feature = GeoFeature.from_dict(raw)
        if feature is not None and feature.is_valid:
            valid.append(feature)
    return valid


# ---------------------------------------------------------------------------
# Multi-site policy
# ---------------------------------------------------------------------------


def is_multiple_sites(result: ExtractionResult) -> bool:
    """Whether *result* describes more than one independent site boundary.

    Every feature is one boundary, and every extra member of a ``Multi*``
    geometry is one more.  Overlapping, touching and coincident features
    still count separately.  A self-intersecting polygon is one boundary.
    """
    return count_site_boundaries(result) > 1


def count_site_boundaries(result: ExtractionResult) -> int:
    """Number of independent site boundaries in *result*."""
    return sum(_boundary_count(feature) for feature in result.geo_json.features)


def _boundary_count(feature: GeoFeature) -> int:
    try:
        geometry = shape({"type": feature.geometry_type, "coordinates": feature.coordinates})
    except (ShapelyError, ValueError, TypeError, IndexError, KeyError, AttributeError) as exc:
        logger.debug(
            "Cannot build %s geometry for multi-site check | error=%s",
            feature.geometry_type,
            exc,
        )
        return _raw_part_count(feature)
    return _part_count(geometry)


def _part_count(geometry: BaseGeometry) -> int:
    parts = getattr(geometry, "geoms", None)
    if parts is None:
        return 1
    return max(len(parts), 1)


def _raw_part_count(feature: GeoFeature) -> int:
    if feature.geometry_type.startswith("Multi"):
        return max(len(feature.coordinates), 1)
    return 1
