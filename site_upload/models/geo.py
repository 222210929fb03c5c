"""GeoJSON models for geometry extracted from an uploaded file.

A ``GeoFeature`` is one geometry returned by the geo-parser.  The
collection of *valid* features, together with a display summary of
their coordinates, forms the ``ExtractionResult`` that the orchestrator
writes into the session.

References:
    RFC 7946  (The GeoJSON Format)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from site_upload.core.exceptions import SiteUploadError


@dataclass(frozen=True, slots=True)
class GeoFeature:
    """A single GeoJSON feature.

    Attributes:
        geometry_type: GeoJSON geometry type (``"Polygon"``, ``"Point"``, ...).
        coordinates: Nested coordinate array as returned by the geo-parser.
        properties: Feature properties (Placemark name, shapefile attributes).
    """

    geometry_type: str
    coordinates: list[Any]
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """Whether the feature has a geometry type and non-empty coordinates."""
        return (
            isinstance(self.geometry_type, str)
            and bool(self.geometry_type)
            and isinstance(self.coordinates, list)
            and len(self.coordinates) > 0
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise as a GeoJSON ``Feature``."""
        return {
            "type": "Feature",
            "geometry": {
                "type": self.geometry_type,
                "coordinates": self.coordinates,
            },
            "properties": dict(self.properties),
        }

    @classmethod
    def from_dict(cls, data: object) -> GeoFeature | None:
        """Build from a GeoJSON ``Feature`` dict.

        Returns ``None`` when *data* is not a dict or has no geometry;
        coordinate contents are not checked here (see ``is_valid``).
        """
        if not isinstance(data, dict):
            return None
        geometry = data.get("geometry")
        if not isinstance(geometry, dict):
            return None
        properties = data.get("properties")
        return cls(
            geometry_type=geometry.get("type") or "",
            coordinates=geometry.get("coordinates"),  # type: ignore[arg-type]
            properties=dict(properties) if isinstance(properties, dict) else {},
        )


@dataclass(frozen=True, slots=True)
class GeoJSON:
    """A GeoJSON ``FeatureCollection``."""

    features: list[GeoFeature] = field(default_factory=list)
    type: str = "FeatureCollection"

    def to_dict(self) -> dict[str, Any]:
        """Serialise as a GeoJSON ``FeatureCollection`` dict."""
        return {
            "type": self.type,
            "features": [f.to_dict() for f in self.features],
        }


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Display summary of one feature's geometry."""

    type: str
    coordinates: list[Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "coordinates": self.coordinates}


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Valid geometry extracted from an uploaded file.

    Invariant: ``feature_count == len(geo_json.features) >= 1``.

    Attributes:
        geo_json: FeatureCollection holding only valid features.
        extracted_coordinates: One ``Coordinate`` per valid feature.
        feature_count: Number of valid features.
    """

    geo_json: GeoJSON
    extracted_coordinates: list[Coordinate]
    feature_count: int

    @property
    def coordinate_count(self) -> int:
        """Total number of positions across all extracted geometries."""
        return sum(_count_positions(c.coordinates) for c in self.extracted_coordinates)


@dataclass(frozen=True, slots=True)
class ExtractionOutcome:
    """Either an ``ExtractionResult`` or the error that prevented one."""

    result: ExtractionResult | None = None
    error: SiteUploadError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None and self.error is None


def _count_positions(coordinates: object) -> int:
    """Count ``[x, y(, z)]`` positions in an arbitrarily nested array."""
    if not isinstance(coordinates, list) or not coordinates:
        return 0
    if all(isinstance(v, int | float) for v in coordinates):
        return 1
    return sum(_count_positions(c) for c in coordinates)
