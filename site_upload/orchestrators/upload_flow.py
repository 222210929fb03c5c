"""Upload orchestrator — one poll of an in-flight file upload.

State machine per ``poll``::

    NO_CONFIG ─────────────────────────────────► RETURN_TO_FILE_TYPE_CHOICE
    PENDING / SCANNING ────────────────────────► WAIT (no session writes)
    READY ─► extension check ─┬─ invalid ──────► RETURN_TO_UPLOAD + error
                              └─ valid ─► extract ─┬─ failed ─► RETURN_TO_UPLOAD + error
                                                   └─ ok ─────► CONTINUE_SINGLE_SITE
                                                                / CONTINUE_MULTI_SITE
    REJECTED / ERROR ──────────────────────────► RETURN_TO_UPLOAD + error
    anything else ─────────────────────────────► RETURN_TO_FILE_TYPE_CHOICE

Every terminal outcome clears the stored ``UploadConfig`` so a dead
upload can never be polled again, and every outcome is written to the
session with one ``SessionStore.apply`` call.

``process_status`` holds the decision logic and never sleeps or loops;
``poll`` adds the session read, the status call and the session write.
Repeated polling is the caller's job (page refresh, or
``site_upload.orchestrators.polling``).  No exception escapes ``poll``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from site_upload.activities.extract_coordinates import (
    GeoCoordinateExtractor,
    is_multiple_sites,
)
from site_upload.activities.map_errors import (
    DEFAULT_MAX_FILE_SIZE_MB,
    DEFAULT_UPLOAD_ERROR_MESSAGE,
    build_geo_parser_error_detail,
    build_upload_error_detail,
)
from site_upload.activities.validate_extension import (
    FileExtensionValidator,
    allowed_extensions_for,
)
from site_upload.clients.geo_parser import GeoParserClient
from site_upload.clients.upload_status import (
    STATUS_CHECK_FAILED_MESSAGE,
    UploadStatusClient,
)
from site_upload.core.constants import ERROR_CODE_UPLOAD_ERROR
from site_upload.models.session import (
    UPLOAD_CONFIG_KEY,
    UPLOAD_ERROR_KEY,
    ErrorDetail,
    NavigationDecision,
    PollResult,
    SessionMutation,
    SiteDetailsUpdate,
)
from site_upload.models.upload import (
    ModelValidationError,
    UploadStatus,
    UploadStatusSnapshot,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from site_upload.core.config import UploadServiceConfig
    from site_upload.models.geo import ExtractionResult
    from site_upload.models.upload import UploadConfig
    from site_upload.session.store import SessionStore

logger = logging.getLogger("site_upload.orchestrators.upload_flow")


class UploadOrchestrator:
    """Decide the next wizard step for an upload and record it in the session.

    Args:
        status_client: Uploader status client.
        extractor: Geo-parser coordinate extractor.
        validator: Filename extension validator.
        multi_site_policy: Classifies an ``ExtractionResult`` as multi-site.
        max_file_size_mb: Size limit quoted in the too-large message.
    """

    def __init__(
        self,
        status_client: UploadStatusClient,
        extractor: GeoCoordinateExtractor,
        *,
        validator: FileExtensionValidator | None = None,
        multi_site_policy: Callable[[ExtractionResult], bool] = is_multiple_sites,
        max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB,
    ) -> None:
        self._status_client = status_client
        self._extractor = extractor
        self._validator = validator or FileExtensionValidator()
        self._multi_site_policy = multi_site_policy
        self._max_file_size_mb = max_file_size_mb

    @classmethod
    def from_config(
        cls,
        config: UploadServiceConfig,
        *,
        http_client: httpx.Client | None = None,
    ) -> UploadOrchestrator:
        """Build an orchestrator wired to the configured services."""
        return cls(
            UploadStatusClient(timeout_s=config.uploader_timeout_s, http_client=http_client),
            GeoCoordinateExtractor(
                GeoParserClient(
                    config.geo_parser_base_url,
                    timeout_s=config.geo_parser_timeout_s,
                    http_client=http_client,
                )
            ),
            max_file_size_mb=config.max_file_size_mb,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def poll(self, store: SessionStore) -> PollResult:
        """Run one orchestration step for the active site; never raises."""
        try:
            config = store.get_upload_config()
        except ModelValidationError as exc:
            logger.warning("Discarding malformed upload config | error=%s", exc.message)
            self._write(store, SessionMutation(site_updates={UPLOAD_CONFIG_KEY: None}))
            return PollResult(decision=NavigationDecision.RETURN_TO_FILE_TYPE_CHOICE)
        except Exception as exc:
            logger.exception("Failed to read upload config from session | error=%s", exc)
            return PollResult(
                decision=NavigationDecision.RETURN_TO_UPLOAD,
                error=ErrorDetail(message=DEFAULT_UPLOAD_ERROR_MESSAGE),
            )

        if config is None:
            logger.debug("No upload config in session, nothing to poll")
            return PollResult(decision=NavigationDecision.RETURN_TO_FILE_TYPE_CHOICE)

        logger.info(
            "poll_upload started | upload_id=%s | file_type=%s",
            config.upload_id,
            config.file_type,
        )
        try:
            snapshot = self.check_status(config)
            mutation, result = self.process_status(config, snapshot)
        except Exception as exc:
            logger.exception(
                "Upload poll failed unexpectedly | upload_id=%s | file_type=%s | error=%s",
                config.upload_id,
                config.file_type,
                exc,
            )
            error = ErrorDetail(message=DEFAULT_UPLOAD_ERROR_MESSAGE, file_type=config.file_type)
            mutation, result = _failure(error)

        if not self._write(store, mutation):
            error = ErrorDetail(message=DEFAULT_UPLOAD_ERROR_MESSAGE, file_type=config.file_type)
            return PollResult(decision=NavigationDecision.RETURN_TO_UPLOAD, error=error)

        logger.info(
            "poll_upload completed | upload_id=%s | decision=%s | filename=%s",
            config.upload_id,
            result.decision.value,
            result.filename,
        )
        return result

    def check_status(self, config: UploadConfig) -> UploadStatusSnapshot:
        """Fetch a status snapshot; any client failure becomes ``ERROR``."""
        try:
            return self._status_client.get_status(config.upload_id, config.status_url)
        except Exception as exc:
            logger.error(
                "Failed to check upload status | upload_id=%s | error=%s",
                config.upload_id,
                exc,
            )
            return UploadStatusSnapshot(
                status=UploadStatus.ERROR,
                message=STATUS_CHECK_FAILED_MESSAGE,
                error_code=ERROR_CODE_UPLOAD_ERROR,
                raw_status=UploadStatus.ERROR.value,
            )

    def process_status(
        self,
        config: UploadConfig,
        snapshot: UploadStatusSnapshot,
    ) -> tuple[SessionMutation, PollResult]:
        """Decide what to write and where to go for *snapshot*.

        Returns:
            The session writes to apply and the ``PollResult`` to return.
        """
        logger.debug(
            "Upload status check | upload_id=%s | status=%s | filename=%s",
            config.upload_id,
            snapshot.status.value,
            snapshot.filename,
        )

        if snapshot.status.is_waiting:
            return SessionMutation(), PollResult(
                decision=NavigationDecision.WAIT, filename=snapshot.filename
            )

        if snapshot.status is UploadStatus.READY:
            return self._process_ready(config, snapshot)

        if snapshot.status in (UploadStatus.REJECTED, UploadStatus.ERROR):
            logger.warning(
                "Upload %s | upload_id=%s | filename=%s | file_type=%s | code=%s | message=%s",
                snapshot.status.value,
                config.upload_id,
                snapshot.filename,
                config.file_type,
                snapshot.error_code,
                snapshot.message,
            )
            error = build_upload_error_detail(
                snapshot.message, config.file_type, max_file_size_mb=self._max_file_size_mb
            )
            return _failure(error, filename=snapshot.filename)

        logger.warning(
            "Unknown upload status | upload_id=%s | status=%s | filename=%s",
            config.upload_id,
            snapshot.raw_status,
            snapshot.filename,
        )
        return SessionMutation(
            site_updates={UPLOAD_CONFIG_KEY: None, UPLOAD_ERROR_KEY: None}
        ), PollResult(decision=NavigationDecision.RETURN_TO_FILE_TYPE_CHOICE)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _process_ready(
        self,
        config: UploadConfig,
        snapshot: UploadStatusSnapshot,
    ) -> tuple[SessionMutation, PollResult]:
        validation = self._validator.validate(
            snapshot.filename, allowed_extensions_for(config.file_type)
        )
        if not validation.is_valid:
            logger.warning(
                "File extension rejected | upload_id=%s | filename=%s | file_type=%s | "
                "extension=%s | reason=%s",
                config.upload_id,
                snapshot.filename,
                config.file_type,
                validation.extension,
                validation.error_message,
            )
            error = build_upload_error_detail(
                validation.error_message,
                config.file_type,
                max_file_size_mb=self._max_file_size_mb,
            )
            return _failure(error, filename=snapshot.filename)

        location = snapshot.s3_location
        if location is None:
            logger.error(
                "Ready upload has no S3 location | upload_id=%s | filename=%s | file_type=%s",
                config.upload_id,
                snapshot.filename,
                config.file_type,
            )
            return _failure(
                build_geo_parser_error_detail(None, config.file_type), filename=snapshot.filename
            )

        outcome = self._extractor.try_extract(
            location.bucket,
            location.key,
            config.file_type,
            correlation_id=config.upload_id,
        )
        if not outcome.ok or outcome.result is None:
            error = outcome.error
            logger.warning(
                "Extraction failed | upload_id=%s | filename=%s | file_type=%s | "
                "bucket=%s | key=%s | error=%s",
                config.upload_id,
                snapshot.filename,
                config.file_type,
                location.bucket,
                location.key,
                error.to_error_dict() if error is not None else None,
            )
            code = error.code if error is not None else None
            return _failure(
                build_geo_parser_error_detail(code, config.file_type), filename=snapshot.filename
            )

        extraction = outcome.result
        multiple_sites = bool(self._multi_site_policy(extraction))
        update = SiteDetailsUpdate(
            file_upload_type=config.file_type,
            filename=snapshot.filename,
            s3_location=location,
            extraction=extraction,
        )
        site_updates = update.to_dict()
        site_updates[UPLOAD_CONFIG_KEY] = None
        site_updates[UPLOAD_ERROR_KEY] = None

        decision = (
            NavigationDecision.CONTINUE_MULTI_SITE
            if multiple_sites
            else NavigationDecision.CONTINUE_SINGLE_SITE
        )
        logger.info(
            "Upload processed | upload_id=%s | filename=%s | file_type=%s | features=%d | "
            "multiple_sites=%s",
            config.upload_id,
            snapshot.filename,
            config.file_type,
            extraction.feature_count,
            multiple_sites,
        )
        mutation = SessionMutation(site_updates=site_updates, multiple_sites=multiple_sites)
        return mutation, PollResult(
            decision=decision,
            filename=snapshot.filename,
            feature_count=extraction.feature_count,
        )

    @staticmethod
    def _write(store: SessionStore, mutation: SessionMutation) -> bool:
        try:
            store.apply(mutation)
        except Exception as exc:
            logger.exception("Failed to write upload outcome to session | error=%s", exc)
            return False
        return True


def _failure(
    error: ErrorDetail,
    *,
    filename: str | None = None,
) -> tuple[SessionMutation, PollResult]:
    """Store *error* as the only error and drop the upload config."""
    mutation = SessionMutation(
        site_updates={UPLOAD_ERROR_KEY: error.to_dict(), UPLOAD_CONFIG_KEY: None}
    )
    return mutation, PollResult(
        decision=NavigationDecision.RETURN_TO_UPLOAD,
        error=error,
        filename=filename,
    )
