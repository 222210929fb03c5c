"""Models for what a poll writes to the session and tells the caller.

- ``NavigationDecision``: The single next step the wizard should take
- ``ErrorDetail``: The one user-facing error for a failed upload attempt
- ``SiteDetailsUpdate``: Site fields written after a successful extraction
- ``SessionMutation``: Every field write one poll step wants to apply
- ``PollResult``: What the caller needs to render the outcome
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from site_upload.core.constants import COORDINATES_TYPE_FILE, UPLOAD_ERROR_FIELD_NAME

if TYPE_CHECKING:
    from site_upload.models.geo import ExtractionResult
    from site_upload.models.upload import S3Location

# Session keys on the active site entry.
UPLOAD_CONFIG_KEY = "upload_config"
UPLOAD_ERROR_KEY = "upload_error"


class NavigationDecision(enum.Enum):
    """Outcome of one orchestration step.

    Values:
        WAIT: Upload still processing; poll again later.
        RETURN_TO_UPLOAD: Terminal failure; show the upload page with an error.
        CONTINUE_MULTI_SITE: File describes several sites.
        CONTINUE_SINGLE_SITE: File describes one site.
        RETURN_TO_FILE_TYPE_CHOICE: Nothing to poll, or status not understood.
    """

    WAIT = "wait"
    RETURN_TO_UPLOAD = "return_to_upload"
    CONTINUE_MULTI_SITE = "continue_multi_site"
    CONTINUE_SINGLE_SITE = "continue_single_site"
    RETURN_TO_FILE_TYPE_CHOICE = "return_to_file_type_choice"


@dataclass(frozen=True, slots=True)
class ErrorDetail:
    """User-facing error for a failed upload attempt.

    Attributes:
        message: GOV.UK-style error message shown next to the field.
        field_name: Form field the error belongs to.
        file_type: File type the user had chosen.
    """

    message: str
    file_type: str = ""
    field_name: str = UPLOAD_ERROR_FIELD_NAME

    def to_dict(self) -> dict[str, str]:
        return {
            "message": self.message,
            "field_name": self.field_name,
            "file_type": self.file_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ErrorDetail:
        return cls(
            message=str(data.get("message", "")),
            file_type=str(data.get("file_type", "")),
            field_name=str(data.get("field_name", UPLOAD_ERROR_FIELD_NAME)),
        )


@dataclass(frozen=True, slots=True)
class SiteDetailsUpdate:
    """Site fields written once per successful extraction.

    Overwrites any earlier upload state on the active site.
    """

    file_upload_type: str
    filename: str
    s3_location: S3Location
    extraction: ExtractionResult
    coordinates_type: str = COORDINATES_TYPE_FILE

    def to_dict(self) -> dict[str, Any]:
        """Return the site fields to write, all together."""
        return {
            "coordinates_type": self.coordinates_type,
            "file_upload_type": self.file_upload_type,
            "geo_json": self.extraction.geo_json.to_dict(),
            "feature_count": self.extraction.feature_count,
            "extracted_coordinates": [
                c.to_dict() for c in self.extraction.extracted_coordinates
            ],
            "uploaded_file": {"filename": self.filename},
            "s3_location": self.s3_location.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class SessionMutation:
    """Field writes produced by one poll step, applied in a single store write.

    Attributes:
        site_updates: Fields to set on the active site entry (``None`` clears).
        multiple_sites: Exemption-level multi-site flag; ``None`` leaves it alone.
    """

    site_updates: dict[str, Any] = field(default_factory=dict)
    multiple_sites: bool | None = None

    @property
    def is_empty(self) -> bool:
        return not self.site_updates and self.multiple_sites is None


@dataclass(frozen=True, slots=True)
class PollResult:
    """What the caller renders after one poll.

    Attributes:
        decision: The next wizard step.
        error: The error stored for the user, on ``RETURN_TO_UPLOAD``.
        filename: Name of the file being processed, when known.
        feature_count: Valid features extracted, on ``CONTINUE_*``.
    """

    decision: NavigationDecision
    error: ErrorDetail | None = None
    filename: str | None = None
    feature_count: int | None = None
