"""
Controllers Package

High-level upload coordinators.
"""

from stream_upload.controllers.transfer_completion import TransferCompletion
from stream_upload.controllers.upload_service import StreamUploadService, UploadWorkflow

__all__ = [
    "StreamUploadService",
    "TransferCompletion",
    "UploadWorkflow",
]
