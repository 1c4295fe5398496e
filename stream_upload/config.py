"""
Stream Service Configuration

Immutable configuration shared read-only by every upload on a service
instance: credentials, defaults, endpoints and transfer tuning.

Non-secret settings can be overridden from a YAML file
(config/stream.yaml). Secrets come from the caller or from .env via the
factory, never from the YAML file.
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from stream_upload.constants import (
    API_REQUEST_TIMEOUT,
    STREAM_API_BASE_URL,
    TUS_UPLOAD_PATH,
    UPLOAD_CHUNK_SIZE,
    UPLOAD_RETRY_DELAYS_MS,
    VIDEOS_API_PATH,
)
from stream_upload.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Keys accepted from the YAML settings file
_OVERRIDABLE_SETTINGS = {
    "base_url",
    "request_timeout",
    "upload_chunk_size",
    "retry_delays_ms",
    "default_preset_id",
}


def _is_int(value: Any) -> bool:
    """True for real integers (YAML booleans excluded)"""
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class StreamServiceConfig:
    """
    Service-level configuration for stream uploads.

    Attributes:
        access_token: Bearer token for the stream API
        default_project_key: Project used when a request names none
        default_preset_id: Preset used when a request names none (optional)
        upload_chunk_size: Maximum bytes per transfer chunk
        base_url: Stream service base URL
        request_timeout: Timeout for metadata calls (seconds)
        retry_delays_ms: Delay schedule for transfer retries

    Raises:
        ConfigurationError: On construction, if a value is missing or invalid

    Example:
        config = StreamServiceConfig(
            access_token="token",
            default_project_key="project",
        )
        headers = config.auth_headers
    """

    access_token: str
    default_project_key: str
    default_preset_id: Optional[str] = None
    upload_chunk_size: int = UPLOAD_CHUNK_SIZE
    base_url: str = STREAM_API_BASE_URL
    request_timeout: float = API_REQUEST_TIMEOUT
    retry_delays_ms: Tuple[int, ...] = field(default=UPLOAD_RETRY_DELAYS_MS)

    def __post_init__(self):
        """Validate configuration values"""
        if not self.access_token:
            raise ConfigurationError("access_token is required")

        if not self.default_project_key:
            raise ConfigurationError("default_project_key is required")

        if not _is_int(self.upload_chunk_size) or self.upload_chunk_size <= 0:
            raise ConfigurationError(
                f"upload_chunk_size must be a positive integer: {self.upload_chunk_size!r}"
            )

        if not isinstance(self.base_url, str) or not self.base_url:
            raise ConfigurationError(f"base_url must be a URL string: {self.base_url!r}")

        if self.default_preset_id is not None and not isinstance(self.default_preset_id, str):
            raise ConfigurationError(
                f"default_preset_id must be a string: {self.default_preset_id!r}"
            )

        if (
            not isinstance(self.request_timeout, (int, float))
            or isinstance(self.request_timeout, bool)
            or self.request_timeout <= 0
        ):
            raise ConfigurationError(
                f"request_timeout must be a positive number of seconds: {self.request_timeout!r}"
            )

        if not isinstance(self.retry_delays_ms, (list, tuple)) or not all(
            _is_int(delay) for delay in self.retry_delays_ms
        ):
            raise ConfigurationError(
                f"retry_delays_ms must be a list of integers: {self.retry_delays_ms!r}"
            )
        delays = tuple(self.retry_delays_ms)
        if any(delay < 0 for delay in delays):
            raise ConfigurationError(
                f"retry_delays_ms cannot contain negative delays: {delays}"
            )
        # Frozen dataclass - bypass __setattr__ to normalise lists to tuples
        object.__setattr__(self, "retry_delays_ms", delays)
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def auth_headers(self) -> Dict[str, str]:
        """Authorization header for every stream API request"""
        return {"Authorization": f"Bearer {self.access_token}"}

    @property
    def videos_url(self) -> str:
        """Metadata-creation endpoint"""
        return f"{self.base_url}{VIDEOS_API_PATH}"

    @property
    def upload_url(self) -> str:
        """tus upload creation endpoint"""
        return f"{self.base_url}{TUS_UPLOAD_PATH}"

    def with_overrides(self, overrides: Dict[str, Any]) -> "StreamServiceConfig":
        """
        Return a copy with non-secret settings replaced.

        Args:
            overrides: Settings to replace (unknown keys are ignored)

        Returns:
            New validated StreamServiceConfig
        """
        accepted = {
            key: value
            for key, value in overrides.items()
            if key in _OVERRIDABLE_SETTINGS and value is not None
        }
        ignored = set(overrides) - _OVERRIDABLE_SETTINGS
        if ignored:
            logger.warning(f"Ignoring unknown stream settings: {sorted(ignored)}")

        return replace(self, **accepted)

    def __repr__(self) -> str:
        """Representation without the access token"""
        return (
            f"StreamServiceConfig(base_url='{self.base_url}', "
            f"default_project_key='{self.default_project_key}', "
            f"default_preset_id={self.default_preset_id!r}, "
            f"upload_chunk_size={self.upload_chunk_size})"
        )


def load_settings_file(settings_path: Path) -> Dict[str, Any]:
    """
    Load non-secret settings from a YAML file.

    Missing file means no overrides.

    Args:
        settings_path: Path to YAML settings file

    Returns:
        Dictionary of settings (empty if the file does not exist)

    Raises:
        ConfigurationError: If the file exists but is not a YAML mapping
    """
    if not settings_path.exists():
        logger.debug(f"No stream settings file at {settings_path}, using defaults")
        return {}

    try:
        with open(settings_path, "r") as f:
            settings = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to read stream settings from {settings_path}: {e}"
        ) from e

    if not isinstance(settings, dict):
        raise ConfigurationError(
            f"Stream settings file must contain a mapping: {settings_path}"
        )

    logger.info(f"Loaded stream settings from {settings_path}")
    return settings
