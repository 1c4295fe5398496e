"""
Stream Upload Module

Resumable video uploads to ByteArk Stream: register the video, then
stream its bytes in tus chunks with retries.

Public API:
    - StreamUploadService: High-level upload coordinator
    - StreamServiceConfig: Immutable service configuration
    - UploadRequest: Upload operation input
    - UploadStage: Stages of an upload
    - StreamUploadError and subclasses: Error taxonomy
    - create_upload_service: Factory function

Usage:
    from stream_upload import StreamUploadService

    service = StreamUploadService(
        access_token="token",
        default_project_key="project",
    )
    video_key = await service.create_and_upload_video(
        local_file_path="/path/to/video.mp4",
        title="Sample video",
    )
"""

from stream_upload.config import StreamServiceConfig
from stream_upload.constants import UploadStage
from stream_upload.controllers.upload_service import StreamUploadService
from stream_upload.errors import (
    ConfigurationError,
    FileAccessError,
    RegistrationError,
    ResponseShapeError,
    StreamUploadError,
    TransferError,
)
from stream_upload.factory import StreamUploadFactory, create_upload_service
from stream_upload.models.upload_models import UploadRequest

# Public API
__all__ = [
    "ConfigurationError",
    "FileAccessError",
    "RegistrationError",
    "ResponseShapeError",
    "StreamServiceConfig",
    "StreamUploadError",
    "StreamUploadFactory",
    "StreamUploadService",
    "TransferError",
    "UploadRequest",
    "UploadStage",
    "create_upload_service",
]
