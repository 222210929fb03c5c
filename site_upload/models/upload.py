"""Typed models for the upload-status side of the flow.

Defines the data structures exchanged between the orchestrator, the
upload-status client and the extension validator:

- ``UploadConfig``: Where to poll for an upload the user has started
- ``UploadStatus``: Normalised processing status reported by the uploader
- ``S3Location``: Where the scanned file was stored
- ``UploadStatusSnapshot``: One poll's view of the upload
- ``ValidationResult``: Outcome of the filename extension check

Design notes:
- All models are frozen dataclasses; a snapshot is rebuilt on every poll.
- No magic strings — status values are an ``UploadStatus`` enum.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from site_upload.core.constants import SUPPORTED_FILE_TYPES, UNKNOWN_FILENAME
from site_upload.core.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, ValidationError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        ValidationError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class UploadStatus(enum.Enum):
    """Processing status of an upload, as seen by this flow.

    Values:
        PENDING:  Upload accepted, file not yet received in full.
        SCANNING: File received, virus scan in progress.
        READY:    File scanned clean and stored.
        REJECTED: Uploader refused the file (virus, empty, too large, ...).
        ERROR:    Uploader could not be reached or reported a failure.
        UNKNOWN:  Any status value this flow does not recognise.
    """

    PENDING = "pending"
    SCANNING = "scanning"
    READY = "ready"
    REJECTED = "rejected"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: object) -> UploadStatus:
        """Map a raw status string onto the enum; anything else is ``UNKNOWN``."""
        if isinstance(raw, str):
            for member in cls:
                if member.value == raw.strip().lower():
                    return member
        return cls.UNKNOWN

    @property
    def is_waiting(self) -> bool:
        """Whether the upload is still being processed by the uploader."""
        return self in (UploadStatus.PENDING, UploadStatus.SCANNING)


# ---------------------------------------------------------------------------
# Upload configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UploadConfig:
    """Pointer to an upload the user was sent to the uploader for.

    Attributes:
        upload_id: Uploader session identifier.
        status_url: URL to poll for the upload's status.
        file_type: ``"kml"`` or ``"shapefile"``, as chosen by the user.
    """

    upload_id: str
    status_url: str
    file_type: str

    def __post_init__(self) -> None:
        if not self.upload_id:
            raise ModelValidationError(
                "UploadConfig", "upload_id", self.upload_id, "must not be empty"
            )
        if not self.status_url:
            raise ModelValidationError(
                "UploadConfig", "status_url", self.status_url, "must not be empty"
            )
        if self.file_type not in SUPPORTED_FILE_TYPES:
            raise ModelValidationError(
                "UploadConfig",
                "file_type",
                self.file_type,
                f"must be one of {sorted(SUPPORTED_FILE_TYPES)}",
            )

    def to_dict(self) -> dict[str, str]:
        """Serialise for the session store."""
        return {
            "upload_id": self.upload_id,
            "status_url": self.status_url,
            "file_type": self.file_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UploadConfig:
        """Deserialise from a session dict.

        Raises:
            ModelValidationError: If a field is missing or invalid.
        """
        return cls(
            upload_id=str(data.get("upload_id") or ""),
            status_url=str(data.get("status_url") or ""),
            file_type=str(data.get("file_type") or ""),
        )


# ---------------------------------------------------------------------------
# Status snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class S3Location:
    """Location of a scanned file in the upload bucket.

    Attributes:
        bucket: S3 bucket name.
        key: S3 object key.
        checksum: SHA-256 checksum reported by the uploader.
        file_id: Uploader file identifier.
        content_type: MIME type detected by the uploader.
    """

    bucket: str
    key: str
    checksum: str = ""
    file_id: str = ""
    content_type: str = ""

    @property
    def s3_url(self) -> str:
        """Return the ``s3://bucket/key`` form of this location."""
        return f"s3://{self.bucket}/{self.key}"

    def to_dict(self) -> dict[str, str]:
        """Serialise for the session store."""
        return {
            "bucket": self.bucket,
            "key": self.key,
            "checksum": self.checksum,
            "file_id": self.file_id,
            "content_type": self.content_type,
            "s3_url": self.s3_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> S3Location | None:
        """Build from a wire or session dict; ``None`` without bucket and key.

        Accepts both snake_case keys and the uploader's ``s3Bucket`` /
        ``s3Key`` / ``checksumSha256`` spelling.
        """
        bucket = data.get("bucket") or data.get("s3Bucket") or ""
        key = data.get("key") or data.get("s3Key") or ""
        if not bucket or not key:
            return None
        return cls(
            bucket=str(bucket),
            key=str(key),
            checksum=str(data.get("checksum") or data.get("checksumSha256") or ""),
            file_id=str(data.get("file_id") or data.get("fileId") or ""),
            content_type=str(data.get("content_type") or data.get("detectedContentType") or ""),
        )


@dataclass(frozen=True, slots=True)
class UploadStatusSnapshot:
    """One poll's view of an upload.  Never persisted.

    Attributes:
        status: Normalised upload status.
        filename: Original filename (``"unknown-file"`` if not reported).
        s3_location: Where the file was stored; only set when ``READY``.
        message: Uploader's error message for ``REJECTED`` / ``ERROR``.
        error_code: Uploader-side classification of ``message``.
        file_size: File size in bytes, when reported.
        raw_status: The status string exactly as received.
    """

    status: UploadStatus
    filename: str = UNKNOWN_FILENAME
    s3_location: S3Location | None = None
    message: str | None = None
    error_code: str | None = None
    file_size: int | None = None
    raw_status: str = ""


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of checking a filename's extension.

    Attributes:
        is_valid: Whether the extension is allowed.
        extension: Lower-cased extension without the dot (``""`` if none).
        error_message: Why the file was refused; ``None`` when valid.
    """

    is_valid: bool
    extension: str = ""
    error_message: str | None = None
