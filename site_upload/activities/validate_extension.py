"""Filename extension check for files that passed the uploader's scan.

The uploader checks MIME types loosely, so every ``ready`` file is
re-checked against the extensions allowed for the file type the user
picked before the geo-parser is asked to read it.

The validator fails closed: it never raises, and any input it cannot
reason about yields ``is_valid=False``.
"""

from __future__ import annotations

import logging

from site_upload.core.constants import ALLOWED_EXTENSIONS
from site_upload.models.upload import ValidationResult

logger = logging.getLogger("site_upload.activities.validate_extension")

_MISSING_FILENAME_MESSAGE = "Cannot determine file type: no filename provided"
_MISSING_EXTENSIONS_MESSAGE = "Cannot determine file type: no allowed extensions specified"

# Single-extension failures with a dedicated message.
_KNOWN_EXTENSION_MESSAGES: dict[str, str] = {
    "kml": "The selected file must be a KML file",
    "zip": "The selected file must be a Shapefile",
}


def allowed_extensions_for(file_type: str | None) -> list[str]:
    """Return the extensions accepted for *file_type* (empty if unknown)."""
    return list(ALLOWED_EXTENSIONS.get(file_type or "", ()))


def extract_extension(filename: str) -> str:
    """Return the text after the last ``.``; ``""`` if none or trailing."""
    last_dot = filename.rfind(".")
    if last_dot == -1 or last_dot == len(filename) - 1:
        return ""
    return filename[last_dot + 1 :]


class FileExtensionValidator:
    """Check a filename against a list of allowed extensions."""

    def validate(self, filename: object, allowed_extensions: object) -> ValidationResult:
        """Validate *filename* against *allowed_extensions* (case-insensitive).

        Args:
            filename: Name of the uploaded file.
            allowed_extensions: Extensions without the dot, e.g. ``["kml"]``.

        Returns:
            A ``ValidationResult``; never raises.
        """
        if not filename or not isinstance(filename, str):
            return ValidationResult(is_valid=False, error_message=_MISSING_FILENAME_MESSAGE)

        if (
            not allowed_extensions
            or not isinstance(allowed_extensions, list | tuple)
            or not all(isinstance(ext, str) for ext in allowed_extensions)
        ):
            return ValidationResult(is_valid=False, error_message=_MISSING_EXTENSIONS_MESSAGE)

        extension = extract_extension(filename).lower()
        normalised = [ext.lower().lstrip(".") for ext in allowed_extensions]
        is_valid = bool(extension) and extension in normalised

        logger.debug(
            "File extension validation | filename=%s | extension=%s | allowed=%s | valid=%s",
            filename,
            extension,
            normalised,
            is_valid,
        )

        return ValidationResult(
            is_valid=is_valid,
            extension=extension,
            error_message=None if is_valid else build_extension_message(normalised),
        )


def build_extension_message(allowed_extensions: list[str]) -> str:
    """Build the user-facing message for a refused extension."""
    if len(allowed_extensions) == 1:
        ext = allowed_extensions[0]
        known = _KNOWN_EXTENSION_MESSAGES.get(ext)
        if known:
            return known
        return f"The selected file must be a {ext.upper()} file"

    ext_list = " or ".join(ext.upper() for ext in allowed_extensions)
    return f"The selected file must be a {ext_list} file"
