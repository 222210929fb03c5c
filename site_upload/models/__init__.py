"""Data models and schemas.

Defines the data structures used throughout the upload flow:
- UploadConfig / UploadStatusSnapshot: Uploader polling inputs and outputs
- GeoFeature / GeoJSON / ExtractionResult: Geometry returned by the geo-parser
- ErrorDetail / SiteDetailsUpdate / NavigationDecision: Session and caller outputs
"""

from site_upload.models.geo import (
    Coordinate,
    ExtractionOutcome,
    ExtractionResult,
    GeoFeature,
    GeoJSON,
)
from site_upload.models.session import (
    ErrorDetail,
    NavigationDecision,
    PollResult,
    SessionMutation,
    SiteDetailsUpdate,
)
from site_upload.models.upload import (
    ModelValidationError,
    S3Location,
    UploadConfig,
    UploadStatus,
    UploadStatusSnapshot,
    ValidationResult,
)

__all__ = [
    "Coordinate",
    "ErrorDetail",
    "ExtractionOutcome",
    "ExtractionResult",
    "GeoFeature",
    "GeoJSON",
    "ModelValidationError",
    "NavigationDecision",
    "PollResult",
    "S3Location",
    "SessionMutation",
    "SiteDetailsUpdate",
    "UploadConfig",
    "UploadStatus",
    "UploadStatusSnapshot",
    "ValidationResult",
]
