"""Session store for the exemption being built by the wizard.

The session holds one *exemption* document per user::

    {
        "site_details": [ {<site 0 fields>}, {<site 1 fields>}, ... ],
        "multiple_site_details": {"multiple_sites_enabled": true},
        ...
    }

All writes made by one poll go through ``apply``, which reads the
document once, updates the active site and the exemption-level flag
together, and writes it back once, so a reader never sees
``feature_count`` without ``geo_json``.

Concrete stores only implement ``get_exemption`` / ``set_exemption``;
the web layer adapts its own session (cookie, Redis, ...) behind them.
"""

from __future__ import annotations

import abc
import copy
import logging
from typing import Any

from site_upload.models.session import (
    UPLOAD_CONFIG_KEY,
    UPLOAD_ERROR_KEY,
    ErrorDetail,
    SessionMutation,
)
from site_upload.models.upload import UploadConfig

logger = logging.getLogger("site_upload.session.store")

SITE_DETAILS_KEY = "site_details"
MULTIPLE_SITE_DETAILS_KEY = "multiple_site_details"
MULTIPLE_SITES_ENABLED_KEY = "multiple_sites_enabled"


class SessionStore(abc.ABC):
    """Typed access to the active site entry of a user's exemption.

    Args:
        active_site_index: Index of the site under construction in
            ``site_details``.
    """

    def __init__(self, *, active_site_index: int = 0) -> None:
        if active_site_index < 0:
            msg = f"active_site_index must be >= 0, got {active_site_index}"
            raise ValueError(msg)
        self._active_site_index = active_site_index

    @property
    def active_site_index(self) -> int:
        return self._active_site_index

    # ------------------------------------------------------------------
    # Abstract storage
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def get_exemption(self) -> dict[str, Any]:
        """Return a copy of the exemption document (``{}`` if none)."""

    @abc.abstractmethod
    def set_exemption(self, exemption: dict[str, Any]) -> None:
        """Replace the exemption document in one write."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_site_details(self) -> dict[str, Any]:
        """Return the active site's fields (``{}`` if the site does not exist)."""
        sites = self.get_exemption().get(SITE_DETAILS_KEY) or []
        if self._active_site_index < len(sites) and isinstance(
            sites[self._active_site_index], dict
        ):
            return dict(sites[self._active_site_index])
        return {}

    def get_upload_config(self) -> UploadConfig | None:
        """Return the active site's ``UploadConfig``, if one is stored.

        Raises:
            ModelValidationError: If the stored config is malformed.
        """
        raw = self.get_site_details().get(UPLOAD_CONFIG_KEY)
        if not raw:
            return None
        if isinstance(raw, UploadConfig):
            return raw
        return UploadConfig.from_dict(raw)

    def get_upload_error(self) -> ErrorDetail | None:
        raw = self.get_site_details().get(UPLOAD_ERROR_KEY)
        if not raw:
            return None
        return ErrorDetail.from_dict(raw)

    def is_multiple_sites_enabled(self) -> bool | None:
        details = self.get_exemption().get(MULTIPLE_SITE_DETAILS_KEY) or {}
        value = details.get(MULTIPLE_SITES_ENABLED_KEY)
        return value if isinstance(value, bool) else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_upload_config(self, config: UploadConfig | None) -> None:
        """Store (or clear, with ``None``) the active site's upload config."""
        self.apply(
            SessionMutation(site_updates={UPLOAD_CONFIG_KEY: config.to_dict() if config else None})
        )

    def apply(self, mutation: SessionMutation) -> None:
        """Apply every write in *mutation* with a single ``set_exemption``.

        Site fields set to ``None`` are removed from the site entry.
        """
        if mutation.is_empty:
            return

        exemption = self.get_exemption()
        sites: list[Any] = list(exemption.get(SITE_DETAILS_KEY) or [])
        while len(sites) <= self._active_site_index:
            sites.append({})

        site = dict(sites[self._active_site_index] or {})
        for key, value in mutation.site_updates.items():
            if value is None:
                site.pop(key, None)
            else:
                site[key] = value
        sites[self._active_site_index] = site
        exemption[SITE_DETAILS_KEY] = sites

        if mutation.multiple_sites is not None:
            details = dict(exemption.get(MULTIPLE_SITE_DETAILS_KEY) or {})
            details[MULTIPLE_SITES_ENABLED_KEY] = mutation.multiple_sites
            exemption[MULTIPLE_SITE_DETAILS_KEY] = details

        self.set_exemption(exemption)
        logger.debug(
            "Session updated | site_index=%d | keys=%s | multiple_sites=%s",
            self._active_site_index,
            sorted(mutation.site_updates),
            mutation.multiple_sites,
        )


class InMemorySessionStore(SessionStore):
    """Session store backed by a plain dict (tests, CLI tools, workers)."""

    def __init__(
        self,
        exemption: dict[str, Any] | None = None,
        *,
        active_site_index: int = 0,
    ) -> None:
        super().__init__(active_site_index=active_site_index)
        self._exemption: dict[str, Any] = copy.deepcopy(exemption) if exemption else {}
        self.write_count = 0

    def get_exemption(self) -> dict[str, Any]:
        return copy.deepcopy(self._exemption)

    def set_exemption(self, exemption: dict[str, Any]) -> None:
        self._exemption = copy.deepcopy(exemption)
        self.write_count += 1
