"""Exception hierarchy shared by the upload flow.

``SiteUploadError`` carries the context every failure log needs (stage,
code, whether a retry could help and the upload it belongs to) and
renders it with ``to_error_dict()``.  Concrete errors pick one of four
category bases:

- ``ValidationError``: bad input or configuration.
- ``TransientError``: the service was unreachable or slow; retryable.
- ``PermanentError``: the service answered and refused the file.
- ``ContractError``: the service answered with something unreadable.

None of these leave ``UploadOrchestrator.poll``; callers turn them into
an ``ErrorDetail`` for the user.
"""

from __future__ import annotations

from typing import ClassVar


class SiteUploadError(Exception):
    """Base exception for all upload-flow errors.

    Attributes:
        message: Human-readable error description.
        stage: Flow stage where the error occurred
            (e.g. ``"upload_status"``, ``"extract_coordinates"``).
        code: Machine-readable error code (e.g. ``"ZIP_TOO_LARGE"``).
        retryable: Whether a later attempt could succeed.
        correlation_id: Upload identifier the error relates to.
    """

    default_stage: ClassVar[str] = ""
    default_code: ClassVar[str] = ""
    default_retryable: ClassVar[bool] = False
    #: Empty on the base class, where ``retryable`` decides the category.
    category_name: ClassVar[str] = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool | None = None,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = self.default_retryable if retryable is None else retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        if self.category_name:
            return self.category_name
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Structured payload with stable keys for log lines."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category bases
# ---------------------------------------------------------------------------


class ValidationError(SiteUploadError):
    category_name = "validation"


class TransientError(SiteUploadError):
    category_name = "transient"
    default_retryable = True


class PermanentError(SiteUploadError):
    category_name = "permanent"


class ContractError(SiteUploadError):
    category_name = "contract"
