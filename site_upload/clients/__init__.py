"""HTTP clients for the two upstream services.

- upload_status: Uploader status polling (never raises)
- geo_parser: Geometry extraction (raises ``GeoParserError`` subclasses)
"""

from site_upload.clients.geo_parser import (
    GeoParserClient,
    GeoParserContractError,
    GeoParserError,
    GeoParserRejectedError,
    GeoParserUnavailableError,
)
from site_upload.clients.upload_status import UploadStatusClient

__all__ = [
    "GeoParserClient",
    "GeoParserContractError",
    "GeoParserError",
    "GeoParserRejectedError",
    "GeoParserUnavailableError",
    "UploadStatusClient",
]
