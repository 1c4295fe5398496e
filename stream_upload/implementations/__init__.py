"""
Implementations Package

Concrete registrar and transfer implementations.
"""

from stream_upload.implementations.mock_registrar import MockVideoRegistrar
from stream_upload.implementations.mock_transfer import MockTransferEngine
from stream_upload.implementations.stream_registrar import StreamVideoRegistrar
from stream_upload.implementations.tus_transfer import TusTransferEngine

__all__ = [
    "MockTransferEngine",
    "MockVideoRegistrar",
    "StreamVideoRegistrar",
    "TusTransferEngine",
]
