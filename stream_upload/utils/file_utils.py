"""
File Utilities

Opening and inspecting local video files before upload.
"""

import logging
import mimetypes
import os
from pathlib import Path
from typing import BinaryIO, Union

from stream_upload.constants import DEFAULT_CONTENT_TYPE, UploadStage
from stream_upload.errors import FileAccessError
from stream_upload.models.upload_models import FileDescriptor

logger = logging.getLogger(__name__)


def guess_content_type(local_file_path: Union[str, Path]) -> str:
    """
    Guess MIME type from the file extension.

    Args:
        local_file_path: Path to file

    Returns:
        MIME type, or application/octet-stream if unknown

    Example:
        guess_content_type("clip.mp4")   # "video/mp4"
        guess_content_type("clip.xyz")   # "application/octet-stream"
    """
    content_type, _ = mimetypes.guess_type(str(local_file_path))
    return content_type or DEFAULT_CONTENT_TYPE


def open_video_file(local_file_path: Union[str, Path]) -> BinaryIO:
    """
    Open a local file for binary reading.

    Args:
        local_file_path: Path to video file

    Returns:
        Open binary file handle (caller closes it)

    Raises:
        FileAccessError: If the file does not exist or cannot be read
    """
    try:
        return open(local_file_path, "rb")
    except OSError as e:
        raise FileAccessError(
            f"Cannot open video file {local_file_path}: {e}",
            stage=UploadStage.IDLE,
        ) from e


def inspect_file(
    local_file_path: Union[str, Path],
    file_handle: BinaryIO,
) -> FileDescriptor:
    """
    Describe an already-open file.

    Size comes from the open handle, not the path, so it matches the bytes
    that will actually be streamed even if the path changes meanwhile.

    Args:
        local_file_path: Path the handle was opened from (name and type)
        file_handle: Open binary handle

    Returns:
        FileDescriptor with name, content type and size

    Raises:
        FileAccessError: If the handle cannot be stat'ed (closed, revoked)
    """
    try:
        size_bytes = os.fstat(file_handle.fileno()).st_size
    except (OSError, ValueError) as e:
        raise FileAccessError(
            f"Cannot read file status for {local_file_path}: {e}",
            stage=UploadStage.FILE_OPENED,
        ) from e

    descriptor = FileDescriptor(
        file_name=os.path.basename(str(local_file_path)),
        content_type=guess_content_type(local_file_path),
        size_bytes=size_bytes,
    )

    logger.debug(
        f"Inspected {descriptor.file_name}: "
        f"{descriptor.content_type}, {descriptor.size_bytes} bytes",
    )

    return descriptor
