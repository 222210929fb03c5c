"""Map uploader and geo-parser error signals onto user-facing messages.

Two vocabularies arrive here:

- **Uploader messages** are free text (``"The selected file contains a
  virus"``, ``"... must be smaller than 50 MB"``).  They are matched by an
  ordered list of substring rules; the first rule that matches wins, since
  the predicates overlap.  A second ordered table, ``UPLOADER_ERROR_CODES``,
  classifies the same text into the uploader's error codes.
- **Geo-parser codes** are stable identifiers (``ZIP_TOO_LARGE``) looked up
  in a table.

Both mappings are pure and never raise; anything unrecognised degrades to
a default "try again" message.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from site_upload.core.constants import (
    ERROR_CODE_FILE_EMPTY,
    ERROR_CODE_FILE_TOO_LARGE,
    ERROR_CODE_INVALID_FILE_TYPE,
    ERROR_CODE_UPLOAD_ERROR,
    ERROR_CODE_VIRUS_DETECTED,
    FILE_TYPE_KML,
    FILE_TYPE_SHAPEFILE,
)
from site_upload.models.session import ErrorDetail

DEFAULT_UPLOAD_ERROR_MESSAGE = "The selected file could not be uploaded – try again"
DEFAULT_GEO_PARSER_ERROR_MESSAGE = "The selected file could not be processed – try again"
DEFAULT_MAX_FILE_SIZE_MB = 50

FILE_TYPE_ERROR_MESSAGES: dict[str, str] = {
    FILE_TYPE_KML: "The selected file must be a KML file",
    FILE_TYPE_SHAPEFILE: "The selected file must be a Shapefile",
}

GEO_PARSER_ERROR_MESSAGES: dict[str, str] = {
    "SHAPEFILE_MISSING_CORE_FILES": "The selected file must include .shp .shx and .dbf files",
    "SHAPEFILE_MISSING_PRJ_FILE": "The selected file must include a .prj file",
    "SHAPEFILE_PRJ_FILE_TOO_LARGE": "The selected file's .prj file must be smaller than 50KB",
    "SHAPEFILE_NOT_FOUND": "The selected file does not contain a valid shapefile",
    "ZIP_TOO_MANY_FILES": "The selected file contains too many files",
    "ZIP_TOO_LARGE": "The selected file is too large",
    "ZIP_COMPRESSION_SUSPICIOUS": DEFAULT_GEO_PARSER_ERROR_MESSAGE,
    "COORDINATES_INVALID_LONGITUDE": "The selected file contains invalid coordinates",
    "COORDINATES_INVALID_LATITUDE": "The selected file contains invalid coordinates",
    "UNSUPPORTED_FILE_TYPE": "The selected file type is not supported",
}


# ---------------------------------------------------------------------------
# Ordered upload rules
# ---------------------------------------------------------------------------

MessageBuilder = Callable[[str, int], str]
"""``(file_type, max_file_size_mb) -> message``."""


@dataclass(frozen=True, slots=True)
class UploadErrorRule:
    """One ordered rule: any keyword in the raw message selects *build*.

    Attributes:
        keywords: Substrings tested against the raw message.
        build: Produces the user-facing message.
    """

    keywords: tuple[str, ...]
    build: MessageBuilder

    def matches(self, raw_message: str) -> bool:
        return any(keyword in raw_message for keyword in self.keywords)


def _fixed(message: str) -> MessageBuilder:
    return lambda _file_type, _max_mb: message


def _file_type_message(file_type: str, _max_mb: int) -> str:
    return FILE_TYPE_ERROR_MESSAGES.get(file_type, DEFAULT_UPLOAD_ERROR_MESSAGE)


def _size_message(_file_type: str, max_mb: int) -> str:
    return f"The selected file must be smaller than {max_mb} MB"


UPLOAD_ERROR_RULES: tuple[UploadErrorRule, ...] = (
    UploadErrorRule(("Select a file to upload",), _fixed("Select a file to upload")),
    UploadErrorRule(("virus",), _fixed("The selected file contains a virus")),
    UploadErrorRule(("empty",), _fixed("The selected file is empty")),
    UploadErrorRule(("smaller than",), _size_message),
    UploadErrorRule(("must be a",), _file_type_message),
)

# The uploader's own classification of its error text, used for the
# ``error_code`` on status snapshots.  Order matters; first match wins.
UPLOADER_ERROR_CODES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (ERROR_CODE_VIRUS_DETECTED, ("virus",)),
    (ERROR_CODE_FILE_EMPTY, ("empty",)),
    (ERROR_CODE_FILE_TOO_LARGE, ("smaller than", "must be smaller than")),
    (ERROR_CODE_INVALID_FILE_TYPE, ("must be a", "KML file", "Shapefile")),
    (ERROR_CODE_UPLOAD_ERROR, ("could not be uploaded",)),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def map_upload_error(
    raw_message: object,
    file_type: object,
    *,
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB,
) -> str:
    """Map an uploader (or extension-check) message to a user-facing message.

    Args:
        raw_message: Message from the uploader or the extension validator.
        file_type: File type the user chose (``"kml"`` / ``"shapefile"``).
        max_file_size_mb: Size limit quoted in the too-large message.

    Returns:
        The first matching rule's message, or the default upload message.
    """
    if not isinstance(raw_message, str) or not raw_message:
        return DEFAULT_UPLOAD_ERROR_MESSAGE
    file_type_str = file_type if isinstance(file_type, str) else ""
    for rule in UPLOAD_ERROR_RULES:
        if rule.matches(raw_message):
            return rule.build(file_type_str, max_file_size_mb)
    return DEFAULT_UPLOAD_ERROR_MESSAGE


def classify_upload_error(raw_message: object) -> str:
    """Return the uploader error code for *raw_message* (``UPLOAD_ERROR`` default)."""
    if not isinstance(raw_message, str) or not raw_message:
        return ERROR_CODE_UPLOAD_ERROR
    for code, keywords in UPLOADER_ERROR_CODES:
        if any(keyword in raw_message for keyword in keywords):
            return code
    return ERROR_CODE_UPLOAD_ERROR


def map_geo_parser_error(raw_code: object) -> str:
    """Map a geo-parser error code to a user-facing message."""
    if not isinstance(raw_code, str):
        return DEFAULT_GEO_PARSER_ERROR_MESSAGE
    return GEO_PARSER_ERROR_MESSAGES.get(raw_code.strip().upper(), DEFAULT_GEO_PARSER_ERROR_MESSAGE)


def is_known_geo_parser_code(raw_code: object) -> bool:
    return isinstance(raw_code, str) and raw_code.strip().upper() in GEO_PARSER_ERROR_MESSAGES


def build_upload_error_detail(
    raw_message: object,
    file_type: str,
    *,
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB,
) -> ErrorDetail:
    """Build the ``ErrorDetail`` for an uploader-side failure."""
    return ErrorDetail(
        message=map_upload_error(raw_message, file_type, max_file_size_mb=max_file_size_mb),
        file_type=file_type,
    )


def build_geo_parser_error_detail(raw_code: object, file_type: str) -> ErrorDetail:
    """Build the ``ErrorDetail`` for a geo-parser failure."""
    return ErrorDetail(message=map_geo_parser_error(raw_code), file_type=file_type)
