"""
Models Package

Data classes and API schemas for stream uploads.
"""

from stream_upload.models.upload_models import (
    FileDescriptor,
    TransferFailure,
    TransferSession,
    UploadRequest,
)
from stream_upload.models.video_registration import (
    VideoEntry,
    VideoRecord,
    VideoRegistration,
    cast_create_video_request,
    parse_create_video_response,
)

__all__ = [
    "FileDescriptor",
    "TransferFailure",
    "TransferSession",
    "UploadRequest",
    "VideoEntry",
    "VideoRecord",
    "VideoRegistration",
    "cast_create_video_request",
    "parse_create_video_response",
]
