"""
Stream Upload Errors

Exception hierarchy for create-and-upload operations.

Every error records the stage the operation had reached and, once the
video was registered, its key. Callers use these to tell apart:
- never started (video_key is None)
- registered but not uploaded (video_key set, stage before SUCCEEDED)
"""

from typing import Optional

from stream_upload.constants import UploadStage


class StreamUploadError(Exception):
    """
    Base exception for stream upload errors.

    Attributes:
        stage: Upload stage reached when the error happened
        video_key: Key of the registered video, if registration succeeded
    """

    def __init__(
        self,
        message: str,
        stage: UploadStage = UploadStage.IDLE,
        video_key: Optional[str] = None,
    ):
        super().__init__(message)
        self.stage = stage
        self.video_key = video_key

    @property
    def was_registered(self) -> bool:
        """True if a video resource exists server-side for this failure"""
        return self.video_key is not None


class ConfigurationError(StreamUploadError):
    """Required service configuration is missing or invalid"""


class FileAccessError(StreamUploadError):
    """Local file could not be opened or inspected"""


class RegistrationError(StreamUploadError):
    """
    Metadata-creation call failed (timeout, connection, non-2xx).

    Attributes:
        status_code: HTTP status of the failed response, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        stage: UploadStage = UploadStage.INSPECTED,
    ):
        super().__init__(message, stage=stage)
        self.status_code = status_code


class ResponseShapeError(StreamUploadError):
    """
    Request or response payload failed schema validation.

    Attributes:
        path: Location of the offending field (e.g. "videos.0.title")
    """

    def __init__(
        self,
        message: str,
        path: str = "",
        stage: UploadStage = UploadStage.INSPECTED,
    ):
        super().__init__(message, stage=stage)
        self.path = path


class TransferError(StreamUploadError):
    """
    Chunked transfer failed for good.

    Raised when the retry classifier marks a failure non-retryable or when
    the retry schedule is exhausted.

    Attributes:
        status_code: HTTP status of the last failure, if any
        failure: Last observed TransferFailure
        retries: Number of retries performed before giving up
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        failure=None,
        retries: int = 0,
        stage: UploadStage = UploadStage.UPLOADING,
        video_key: Optional[str] = None,
    ):
        super().__init__(message, stage=stage, video_key=video_key)
        self.status_code = status_code
        self.failure = failure
        self.retries = retries
