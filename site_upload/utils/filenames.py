"""Filename helpers for uploader file records.

The uploader reports either ``filename`` or, when the original name
contained non-ASCII characters, an RFC 2047 ``encodedfilename``.
"""

from __future__ import annotations

import logging
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from typing import Any

from site_upload.core.constants import UNKNOWN_FILENAME

logger = logging.getLogger("site_upload.utils.filenames")


def extract_filename(file_data: dict[str, Any] | None) -> str:
    """Return the file's name, decoding ``encodedfilename`` when needed.

    Returns ``"unknown-file"`` when neither field is present.
    """
    if not file_data:
        return UNKNOWN_FILENAME

    filename = file_data.get("filename")
    if filename:
        return str(filename)

    encoded = file_data.get("encodedfilename")
    if encoded:
        return decode_rfc2047_filename(str(encoded))

    return UNKNOWN_FILENAME


def decode_rfc2047_filename(encoded_filename: str) -> str:
    """Decode an RFC 2047 encoded-word filename, or return it unchanged."""
    try:
        return str(make_header(decode_header(encoded_filename)))
    except (HeaderParseError, LookupError, UnicodeDecodeError) as exc:
        logger.warning(
            "Failed to decode RFC 2047 filename | encoded=%s | error=%s",
            encoded_filename,
            exc,
        )
        return encoded_filename
