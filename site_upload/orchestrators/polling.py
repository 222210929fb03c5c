"""Bounded polling driver for background callers.

The web flow polls once per page refresh.  Workers and CLI tools that
want to block until the upload settles use ``poll_until_complete``,
which re-runs ``UploadOrchestrator.poll`` while it answers ``WAIT``.

Sleeping goes through ``threading.Event.wait`` so another thread can
cancel between polls.  A cancelled run leaves the session untouched;
a run that hits the deadline or the poll limit abandons the upload
with the default upload error.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

from site_upload.activities.map_errors import DEFAULT_UPLOAD_ERROR_MESSAGE
from site_upload.models.session import (
    UPLOAD_CONFIG_KEY,
    UPLOAD_ERROR_KEY,
    ErrorDetail,
    NavigationDecision,
    PollResult,
    SessionMutation,
)

if TYPE_CHECKING:
    from site_upload.core.config import UploadServiceConfig
    from site_upload.orchestrators.upload_flow import UploadOrchestrator
    from site_upload.session.store import SessionStore

logger = logging.getLogger("site_upload.orchestrators.polling")

DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_POLL_TIMEOUT_SECONDS = 120.0


def poll_until_complete(
    orchestrator: UploadOrchestrator,
    store: SessionStore,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    poll_timeout: float = DEFAULT_POLL_TIMEOUT_SECONDS,
    max_polls: int | None = None,
    cancel_event: threading.Event | None = None,
) -> PollResult:
    """Poll until the upload leaves the waiting states.

    Args:
        orchestrator: Orchestrator performing each poll.
        store: Session store for the user whose upload is polled.
        poll_interval: Seconds between polls.
        poll_timeout: Maximum total wait in seconds.
        max_polls: Optional cap on the number of polls.
        cancel_event: Set it to stop between polls.

    Returns:
        The first non-``WAIT`` result; ``WAIT`` if cancelled; otherwise a
        ``RETURN_TO_UPLOAD`` result once the upload has been abandoned.

    Raises:
        ValueError: If *poll_interval* or *poll_timeout* is not positive,
            or *max_polls* is less than one.
    """
    if poll_interval <= 0:
        msg = f"poll_interval must be > 0, got {poll_interval}"
        raise ValueError(msg)
    if poll_timeout <= 0:
        msg = f"poll_timeout must be > 0, got {poll_timeout}"
        raise ValueError(msg)
    if max_polls is not None and max_polls < 1:
        msg = f"max_polls must be >= 1, got {max_polls}"
        raise ValueError(msg)

    cancel = cancel_event or threading.Event()
    deadline = time.monotonic() + poll_timeout
    poll_count = 0
    last = PollResult(decision=NavigationDecision.WAIT)

    while True:
        if cancel.is_set():
            logger.info("Polling cancelled | poll_count=%d", poll_count)
            return PollResult(decision=NavigationDecision.WAIT, filename=last.filename)

        poll_count += 1
        last = orchestrator.poll(store)
        logger.debug("Poll result | poll_count=%d | decision=%s", poll_count, last.decision.value)

        if last.decision is not NavigationDecision.WAIT:
            return last

        if max_polls is not None and poll_count >= max_polls:
            reason = f"poll limit reached ({max_polls})"
            break

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            reason = f"timed out after {poll_timeout}s"
            break

        # Event.wait returns True as soon as the event is set.
        if cancel.wait(min(poll_interval, remaining)):
            logger.info("Polling cancelled | poll_count=%d", poll_count)
            return PollResult(decision=NavigationDecision.WAIT, filename=last.filename)

        if time.monotonic() >= deadline:
            reason = f"timed out after {poll_timeout}s"
            break

    return _abandon(store, reason=reason, poll_count=poll_count, filename=last.filename)


def poll_with_config(
    orchestrator: UploadOrchestrator,
    store: SessionStore,
    config: UploadServiceConfig,
    *,
    cancel_event: threading.Event | None = None,
) -> PollResult:
    """``poll_until_complete`` using the interval and timeout from *config*."""
    return poll_until_complete(
        orchestrator,
        store,
        poll_interval=config.poll_interval_s,
        poll_timeout=config.poll_timeout_s,
        cancel_event=cancel_event,
    )


def _abandon(
    store: SessionStore,
    *,
    reason: str,
    poll_count: int,
    filename: str | None,
) -> PollResult:
    """Give up on the stored upload: record the default error and clear it."""
    config = None
    try:
        config = store.get_upload_config()
    except Exception as exc:
        logger.warning("Cannot read upload config while abandoning | error=%s", exc)

    file_type = config.file_type if config is not None else ""
    logger.warning(
        "Abandoning upload | upload_id=%s | filename=%s | file_type=%s | reason=%s | "
        "poll_count=%d",
        config.upload_id if config is not None else None,
        filename,
        file_type,
        reason,
        poll_count,
    )

    error = ErrorDetail(message=DEFAULT_UPLOAD_ERROR_MESSAGE, file_type=file_type)
    try:
        store.apply(
            SessionMutation(
                site_updates={UPLOAD_ERROR_KEY: error.to_dict(), UPLOAD_CONFIG_KEY: None}
            )
        )
    except Exception as exc:
        logger.exception("Failed to record abandoned upload | error=%s", exc)

    return PollResult(
        decision=NavigationDecision.RETURN_TO_UPLOAD,
        error=error,
        filename=filename,
    )
