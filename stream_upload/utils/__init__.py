"""
Utilities Package

File inspection and retry classification helpers.
"""

from stream_upload.utils.file_utils import (
    guess_content_type,
    inspect_file,
    open_video_file,
)
from stream_upload.utils.retry_policy import should_retry

__all__ = [
    "guess_content_type",
    "inspect_file",
    "open_video_file",
    "should_retry",
]
