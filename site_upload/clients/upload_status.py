"""Upload-status client — one status check against the uploader.

The uploader stores an uploaded file, virus-scans it and exposes its
progress at a per-upload status URL.  This client performs a single
bounded ``GET`` and normalises the response into an
``UploadStatusSnapshot``.

Transport failures never propagate: timeouts, connection errors, HTTP
error statuses and unreadable bodies all come back as an ``ERROR``
snapshot so the orchestrator treats "could not reach the uploader" the
same way as "the uploader reported an error".

Two response shapes are understood:

- the uploader's native shape::

    {"uploadStatus": "ready",
     "form": {"file": {"fileStatus": "complete", "filename": "site.kml",
                       "s3Bucket": "...", "s3Key": "...", "fileId": "...",
                       "checksumSha256": "...", "hasError": false}}}

- an already-normalised shape::

    {"status": "ready", "filename": "site.kml",
     "s3Location": {"bucket": "...", "key": "...", "checksum": "..."}}
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from site_upload.activities.map_errors import classify_upload_error
from site_upload.core.constants import (
    ERROR_CODE_NO_FILE_SELECTED,
    ERROR_CODE_UPLOAD_ERROR,
    FILE_STATUS_COMPLETE,
    FILE_STATUS_PENDING,
    FILE_STATUS_REJECTED,
    UPLOAD_STATUS_READY,
)
from site_upload.models.upload import S3Location, UploadStatus, UploadStatusSnapshot
from site_upload.utils.filenames import extract_filename

logger = logging.getLogger("site_upload.clients.upload_status")

DEFAULT_TIMEOUT_SECONDS = 30.0

UPLOAD_NOT_FOUND_MESSAGE = "Upload session not found"
SERVICE_UNAVAILABLE_MESSAGE = "Service temporarily unavailable"
STATUS_CHECK_FAILED_MESSAGE = "Unable to check status"
NO_FILE_SELECTED_MESSAGE = "Select a file to upload"


class UploadStatusClient:
    """Query the uploader for the current status of an upload.

    Args:
        timeout_s: Timeout for the status request, in seconds.
        http_client: Optional shared ``httpx.Client``; a short-lived client
            is created per call when omitted.
    """

    def __init__(
        self,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._http_client = http_client

    def get_status(self, upload_id: str, status_url: str) -> UploadStatusSnapshot:
        """Return the current status of *upload_id*; never raises.

        Args:
            upload_id: Uploader session identifier (for logging).
            status_url: URL of the uploader's status endpoint for this upload.
        """
        logger.debug("Checking upload status | upload_id=%s | url=%s", upload_id, status_url)

        try:
            response = self._get(status_url)
        except httpx.TimeoutException as exc:
            logger.error(
                "Request timeout when checking status | upload_id=%s | error=%s",
                upload_id,
                exc,
            )
            return _error_snapshot(STATUS_CHECK_FAILED_MESSAGE)
        except httpx.HTTPError as exc:
            logger.error(
                "Failed to check upload status | upload_id=%s | error=%s",
                upload_id,
                exc,
            )
            return _error_snapshot(STATUS_CHECK_FAILED_MESSAGE)

        if response.status_code == httpx.codes.NOT_FOUND:
            logger.warning("Upload session not found | upload_id=%s", upload_id)
            return _error_snapshot(UPLOAD_NOT_FOUND_MESSAGE)

        if response.status_code >= httpx.codes.INTERNAL_SERVER_ERROR:
            logger.error(
                "Service error when checking status | upload_id=%s | status=%d",
                upload_id,
                response.status_code,
            )
            return _error_snapshot(SERVICE_UNAVAILABLE_MESSAGE)

        if not response.is_success:
            logger.error(
                "Status check failed | upload_id=%s | status=%d",
                upload_id,
                response.status_code,
            )
            return _error_snapshot(STATUS_CHECK_FAILED_MESSAGE)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Unreadable status response | upload_id=%s | error=%s", upload_id, exc)
            return _error_snapshot(STATUS_CHECK_FAILED_MESSAGE)

        if not isinstance(payload, dict):
            logger.error(
                "Unexpected status response type | upload_id=%s | type=%s",
                upload_id,
                type(payload).__name__,
            )
            return _error_snapshot(STATUS_CHECK_FAILED_MESSAGE)

        logger.debug("Uploader response | upload_id=%s | payload=%s", upload_id, payload)
        snapshot = parse_status_payload(payload)

        if snapshot.status is UploadStatus.UNKNOWN:
            logger.warning(
                "Unrecognised upload status | upload_id=%s | raw_status=%s",
                upload_id,
                snapshot.raw_status,
            )

        logger.debug(
            "Upload status retrieved | upload_id=%s | status=%s | filename=%s",
            upload_id,
            snapshot.status.value,
            snapshot.filename,
        )
        return snapshot

    def _get(self, url: str) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.get(url, timeout=self._timeout_s)
        with httpx.Client(timeout=self._timeout_s) as client:
            return client.get(url)


# ---------------------------------------------------------------------------
# Response normalisation
# ---------------------------------------------------------------------------


def parse_status_payload(payload: dict[str, Any]) -> UploadStatusSnapshot:
    """Normalise an uploader status response into an ``UploadStatusSnapshot``."""
    if "uploadStatus" in payload or "form" in payload:
        return _parse_native(payload)
    return _parse_normalised(payload)


def _parse_normalised(payload: dict[str, Any]) -> UploadStatusSnapshot:
    raw_status = str(payload.get("status", ""))
    status = UploadStatus.parse(raw_status)
    message = payload.get("message")
    location_raw = payload.get("s3Location")
    s3_location = (
        S3Location.from_dict(location_raw)
        if status is UploadStatus.READY and isinstance(location_raw, dict)
        else None
    )
    return UploadStatusSnapshot(
        status=status,
        filename=extract_filename(payload),
        s3_location=s3_location,
        message=str(message) if message else None,
        error_code=classify_upload_error(message) if message else None,
        file_size=_as_int(payload.get("fileSize")),
        raw_status=raw_status,
    )


def _parse_native(payload: dict[str, Any]) -> UploadStatusSnapshot:
    upload_status = str(payload.get("uploadStatus", ""))
    file_data = _first_file(payload.get("form"))
    if file_data is None:
        logger.debug("No file data in uploader form, treating as no file selected")
        return _error_snapshot(NO_FILE_SELECTED_MESSAGE, code=ERROR_CODE_NO_FILE_SELECTED)

    file_status = str(file_data.get("fileStatus", ""))
    has_error = bool(file_data.get("hasError"))
    status = _determine_status(upload_status, file_status, has_error)

    logger.debug(
        "Status determination | status=%s | upload_status=%s | file_status=%s | has_error=%s",
        status.value,
        upload_status,
        file_status,
        has_error,
    )

    message: str | None = None
    error_code: str | None = None
    error_message = file_data.get("errorMessage")
    if has_error and error_message:
        message = str(error_message)
        error_code = classify_upload_error(message)

    s3_location = None
    if (
        status is UploadStatus.READY
        and file_status == FILE_STATUS_COMPLETE
        and file_data.get("fileId")
    ):
        s3_location = S3Location.from_dict(file_data)

    return UploadStatusSnapshot(
        status=status,
        filename=extract_filename(file_data),
        s3_location=s3_location,
        message=message,
        error_code=error_code,
        file_size=_as_int(file_data.get("contentLength")),
        raw_status=upload_status,
    )


def _determine_status(upload_status: str, file_status: str, has_error: bool) -> UploadStatus:
    if has_error or file_status == FILE_STATUS_REJECTED:
        return UploadStatus.REJECTED
    if file_status == FILE_STATUS_COMPLETE and upload_status == UPLOAD_STATUS_READY:
        return UploadStatus.READY
    if file_status == FILE_STATUS_PENDING:
        return UploadStatus.SCANNING
    return UploadStatus.PENDING


def _first_file(form: object) -> dict[str, Any] | None:
    if not isinstance(form, dict) or not form:
        return None
    first = next(iter(form.values()))
    return first if isinstance(first, dict) and first else None


def _error_snapshot(message: str, *, code: str = ERROR_CODE_UPLOAD_ERROR) -> UploadStatusSnapshot:
    return UploadStatusSnapshot(
        status=UploadStatus.ERROR,
        message=message,
        error_code=code,
        raw_status=UploadStatus.ERROR.value,
    )


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None
