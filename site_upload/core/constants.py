"""Shared upload-flow constants — single source of truth.

Centralises file types, extension mappings, uploader status strings and
error codes that are otherwise repeated across the clients, activities
and the orchestrator.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# File types selectable by the user
# ---------------------------------------------------------------------------

FILE_TYPE_KML: str = "kml"
FILE_TYPE_SHAPEFILE: str = "shapefile"

SUPPORTED_FILE_TYPES: frozenset[str] = frozenset({FILE_TYPE_KML, FILE_TYPE_SHAPEFILE})

ALLOWED_EXTENSIONS: dict[str, tuple[str, ...]] = {
    FILE_TYPE_KML: ("kml",),
    FILE_TYPE_SHAPEFILE: ("zip",),
}
"""File type → extensions accepted for that type (lower case, no dot)."""

# ---------------------------------------------------------------------------
# Uploader native status values
# ---------------------------------------------------------------------------

UPLOAD_STATUS_READY: str = "ready"

FILE_STATUS_PENDING: str = "pending"
FILE_STATUS_COMPLETE: str = "complete"
FILE_STATUS_REJECTED: str = "rejected"

# ---------------------------------------------------------------------------
# Uploader error codes
# ---------------------------------------------------------------------------

ERROR_CODE_NO_FILE_SELECTED: str = "NO_FILE_SELECTED"
ERROR_CODE_VIRUS_DETECTED: str = "VIRUS_DETECTED"
ERROR_CODE_FILE_EMPTY: str = "FILE_EMPTY"
ERROR_CODE_FILE_TOO_LARGE: str = "FILE_TOO_LARGE"
ERROR_CODE_INVALID_FILE_TYPE: str = "INVALID_FILE_TYPE"
ERROR_CODE_UPLOAD_ERROR: str = "UPLOAD_ERROR"

# ---------------------------------------------------------------------------
# Geo-parser
# ---------------------------------------------------------------------------

GEO_PARSER_EXTRACT_PATH: str = "/extract"
GEO_PARSER_SUCCESS_MESSAGE: str = "success"

ERROR_CODE_GEO_PARSER_UNAVAILABLE: str = "GEO_PARSER_UNAVAILABLE"
ERROR_CODE_GEO_PARSER_FAILED: str = "GEO_PARSER_FAILED"
ERROR_CODE_NO_FEATURES: str = "NO_VALID_FEATURES"

# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

UPLOAD_ERROR_FIELD_NAME: str = "file"
"""Form field every upload ``ErrorDetail`` is attached to."""

COORDINATES_TYPE_FILE: str = "file"

UNKNOWN_FILENAME: str = "unknown-file"
