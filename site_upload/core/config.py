"""Upload-flow configuration loaded from environment variables.

All configuration values have sensible local-development defaults; the
deployment's environment is the source of truth.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range or the geo-parser URL is empty.  This
    catches bad configuration at startup instead of on a user's upload.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from site_upload.core.exceptions import ValidationError


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Formatted description including the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class UploadServiceConfig:
    """Immutable upload-flow configuration.

    Attributes:
        uploader_timeout_s: Timeout for a single status request (seconds).
        max_file_size_mb: Upload size limit advertised to users.
        geo_parser_base_url: Base URL of the geometry-extraction service.
        geo_parser_timeout_s: Timeout for a single extract request (seconds).
        poll_interval_s: Delay between status polls (seconds).
        poll_timeout_s: Total time a background poller waits before giving up.
    """

    uploader_timeout_s: float = 30.0
    max_file_size_mb: int = 50
    geo_parser_base_url: str = "http://localhost:3001"
    geo_parser_timeout_s: float = 30.0
    poll_interval_s: float = 2.0
    poll_timeout_s: float = 120.0

    @classmethod
    def from_env(cls) -> UploadServiceConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range
                or a required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``GEO_PARSER_TIMEOUT_S=abc``).
        """
        config = cls(
            uploader_timeout_s=float(os.getenv("CDP_UPLOADER_TIMEOUT_S", "30")),
            max_file_size_mb=int(os.getenv("CDP_UPLOADER_MAX_FILE_SIZE_MB", "50")),
            geo_parser_base_url=os.getenv("GEO_PARSER_BASE_URL", "http://localhost:3001"),
            geo_parser_timeout_s=float(os.getenv("GEO_PARSER_TIMEOUT_S", "30")),
            poll_interval_s=float(os.getenv("UPLOAD_POLL_INTERVAL_S", "2")),
            poll_timeout_s=float(os.getenv("UPLOAD_POLL_TIMEOUT_S", "120")),
        )
        _validate(config)
        return config


def _validate(config: UploadServiceConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.geo_parser_base_url:
        raise ConfigValidationError(
            "GEO_PARSER_BASE_URL",
            config.geo_parser_base_url,
            "must not be empty",
        )

    if config.uploader_timeout_s <= 0:
        raise ConfigValidationError(
            "CDP_UPLOADER_TIMEOUT_S",
            config.uploader_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.geo_parser_timeout_s <= 0:
        raise ConfigValidationError(
            "GEO_PARSER_TIMEOUT_S",
            config.geo_parser_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.max_file_size_mb <= 0:
        raise ConfigValidationError(
            "CDP_UPLOADER_MAX_FILE_SIZE_MB",
            config.max_file_size_mb,
            "must be > 0 (megabytes)",
        )

    if config.poll_interval_s <= 0:
        raise ConfigValidationError(
            "UPLOAD_POLL_INTERVAL_S",
            config.poll_interval_s,
            "must be > 0 (seconds)",
        )

    if config.poll_timeout_s < config.poll_interval_s:
        raise ConfigValidationError(
            "UPLOAD_POLL_TIMEOUT_S",
            config.poll_timeout_s,
            "must be >= UPLOAD_POLL_INTERVAL_S",
        )
