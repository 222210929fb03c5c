"""Geo-parser client — ask the geometry-extraction service to read a file.

Contract::

    POST {base_url}/extract  {"bucket": ..., "key": ..., "fileType": ...}
    → {"message": "success", "value": <GeoJSON FeatureCollection>}

Any other envelope is a failure.  This module only moves bytes and checks
the envelope; feature filtering lives in
``site_upload.activities.extract_coordinates``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from site_upload.activities.map_errors import is_known_geo_parser_code
from site_upload.core.constants import (
    ERROR_CODE_GEO_PARSER_FAILED,
    ERROR_CODE_GEO_PARSER_UNAVAILABLE,
    GEO_PARSER_EXTRACT_PATH,
    GEO_PARSER_SUCCESS_MESSAGE,
)
from site_upload.core.exceptions import (
    ContractError,
    PermanentError,
    SiteUploadError,
    TransientError,
)

logger = logging.getLogger("site_upload.clients.geo_parser")

DEFAULT_TIMEOUT_SECONDS = 30.0


class GeoParserError(SiteUploadError):
    """Raised when the geo-parser cannot turn a file into usable geometry.

    ``code`` carries the geo-parser's own error code when it sent one
    (e.g. ``SHAPEFILE_MISSING_CORE_FILES``), otherwise a local code such
    as ``GEO_PARSER_UNAVAILABLE``.  Raise one of the subclasses below so
    the failure lands in the right category.
    """

    default_stage = "extract_coordinates"
    default_code = ERROR_CODE_GEO_PARSER_FAILED


class GeoParserRejectedError(GeoParserError, PermanentError):
    """The geo-parser read the file and refused it."""


class GeoParserUnavailableError(GeoParserError, TransientError):
    """The geo-parser could not be reached or timed out."""

    default_code = ERROR_CODE_GEO_PARSER_UNAVAILABLE


class GeoParserContractError(GeoParserError, ContractError):
    """The geo-parser answered with a body or envelope this client cannot read."""


class GeoParserClient:
    """HTTP client for the geo-parser's ``/extract`` endpoint.

    Args:
        base_url: Geo-parser base URL (no trailing ``/extract``).
        timeout_s: Timeout for the extract request, in seconds.
        http_client: Optional shared ``httpx.Client``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._extract_url = base_url.rstrip("/") + GEO_PARSER_EXTRACT_PATH
        self._timeout_s = timeout_s
        self._http_client = http_client

    @property
    def extract_url(self) -> str:
        return self._extract_url

    def extract(self, bucket: str, key: str, file_type: str) -> dict[str, Any]:
        """Request extraction and return the GeoJSON ``value`` payload.

        Raises:
            GeoParserError: On transport failure, timeout, HTTP error status,
                unreadable body, or an envelope other than
                ``{"message": "success", "value": {...}}``.
        """
        request_body = {"bucket": bucket, "key": key, "fileType": file_type}
        try:
            response = self._post(request_body)
        except httpx.TimeoutException as exc:
            msg = f"Geo-parser timed out after {self._timeout_s}s: {exc}"
            raise GeoParserUnavailableError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Geo-parser request failed: {exc}"
            raise GeoParserUnavailableError(msg) from exc

        try:
            envelope = response.json()
        except ValueError as exc:
            msg = f"Geo-parser returned an unreadable body (HTTP {response.status_code})"
            raise GeoParserContractError(msg) from exc

        if not isinstance(envelope, dict):
            msg = f"Geo-parser envelope must be an object, got {type(envelope).__name__}"
            raise GeoParserContractError(msg)

        if response.is_success and envelope.get("message") == GEO_PARSER_SUCCESS_MESSAGE:
            value = envelope.get("value")
            if not isinstance(value, dict):
                msg = "Geo-parser success envelope has no GeoJSON value"
                raise GeoParserContractError(msg)
            return value

        code = error_code_from_envelope(envelope)
        msg = (
            f"Geo-parser reported failure (HTTP {response.status_code}): "
            f"{envelope.get('message')!r}"
        )
        raise GeoParserRejectedError(msg, code=code)

    def _post(self, body: dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.post(self._extract_url, json=body, timeout=self._timeout_s)
        with httpx.Client(timeout=self._timeout_s) as client:
            return client.post(self._extract_url, json=body)


def error_code_from_envelope(envelope: dict[str, Any]) -> str:
    """Pick the geo-parser's error code out of a failure envelope.

    Looks at ``code``, ``errorCode`` and ``error.code`` in that order, then
    at ``message`` when it is itself a known code.
    """
    error = envelope.get("error")
    candidates = [
        envelope.get("code"),
        envelope.get("errorCode"),
        error.get("code") if isinstance(error, dict) else None,
        envelope.get("message"),
    ]
    for candidate in candidates:
        if is_known_geo_parser_code(candidate):
            return str(candidate).strip().upper()
    for candidate in candidates[:3]:
        if isinstance(candidate, str) and candidate:
            return candidate
    return ERROR_CODE_GEO_PARSER_FAILED
