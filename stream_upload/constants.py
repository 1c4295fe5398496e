"""
Stream Upload Constants

Centralized configuration for the stream upload module.
"""

from enum import Enum

# =============================================================================
# STREAM API CONFIGURATION
# =============================================================================

# Base URL of the video hosting service
# https://docs.byteark.com/docs/stream/api-reference/authentication
STREAM_API_BASE_URL = "https://stream.byteark.com"

# Metadata API: creates video resources and returns their keys
VIDEOS_API_PATH = "/api/v1/videos"

# tus resumable upload endpoint
TUS_UPLOAD_PATH = "/api/upload/v1/tus/videos"

# tus protocol version sent in every transfer request
TUS_VERSION = "1.0.0"

# HTTP request timeout for metadata calls (seconds)
API_REQUEST_TIMEOUT = 10.0

# =============================================================================
# UPLOAD CONFIGURATION
# =============================================================================

# Chunk size for resumable uploads (in bytes)
# Each chunk is one PATCH request; a failure re-sends at most one chunk
UPLOAD_CHUNK_SIZE = 100 * 1024 * 1024  # 100 MB

# Delays (milliseconds) before successive retry attempts of a transfer
# The length of this list is the maximum number of retries per upload
UPLOAD_RETRY_DELAYS_MS = (
    0,
    5000,
    5000,
    10000,
    10000,
    15000,
    15000,
    20000,
    20000,
    30000,
    30000,
)

# Content type used when the file extension has no known mapping
DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Log transfer progress every N percent
PROGRESS_LOG_STEP_PERCENT = 10

# =============================================================================
# HTTP STATUS CODES (retry classification)
# =============================================================================

# Authorization denied - retrying cannot succeed
HTTP_STATUS_FORBIDDEN = 403

# Returned while the server terminates a previously aborted upload
HTTP_STATUS_LOCKED = 423

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================

ENV_ACCESS_TOKEN = "BYTEARK_STREAM_ACCESS_TOKEN"
ENV_DEFAULT_PROJECT_KEY = "BYTEARK_STREAM_DEFAULT_PROJECT_KEY"
ENV_DEFAULT_PRESET_ID = "BYTEARK_STREAM_DEFAULT_PRESET_ID"
ENV_UPLOAD_CHUNK_SIZE = "BYTEARK_STREAM_UPLOAD_CHUNK_SIZE"

# Optional YAML file with non-secret overrides (base URL, timeouts, ...)
DEFAULT_SETTINGS_FILE = "config/stream.yaml"

# =============================================================================
# UPLOAD STAGES
# =============================================================================


class UploadStage(Enum):
    """Stages of one create-and-upload operation"""

    IDLE = "idle"
    FILE_OPENED = "file_opened"
    INSPECTED = "inspected"
    REGISTERED = "registered"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
