"""
Interfaces Package

Abstract interfaces for registrar and transfer implementations.
"""

from stream_upload.interfaces.registrar_interface import VideoRegistrarInterface
from stream_upload.interfaces.transfer_interface import (
    ShouldRetry,
    TransferAttemptError,
    TransferEngineInterface,
)

__all__ = [
    "ShouldRetry",
    "TransferAttemptError",
    "TransferEngineInterface",
    "VideoRegistrarInterface",
]
