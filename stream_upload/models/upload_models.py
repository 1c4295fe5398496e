"""
Upload Models

Data classes describing one create-and-upload operation:
request → file descriptor → transfer session, plus the failure
observations the transfer engine reports to the retry classifier.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional, Tuple, Union


@dataclass(frozen=True)
class UploadRequest:
    """
    Input to one create-and-upload operation.

    Only local_file_path is required. Missing title defaults to the file
    name; missing project key / preset come from the service configuration.
    """

    local_file_path: Union[str, Path]
    title: Optional[str] = None
    tags: Optional[Tuple[str, ...]] = None
    project_key: Optional[str] = None
    preset_id: Optional[str] = None

    def __post_init__(self):
        """Store tags as a tuple so the request stays immutable"""
        if self.tags is not None:
            object.__setattr__(self, "tags", tuple(self.tags))


@dataclass(frozen=True)
class FileDescriptor:
    """Local file metadata needed to describe an upload"""

    file_name: str
    content_type: str
    size_bytes: int

    @property
    def size_mb(self) -> float:
        """File size in megabytes"""
        return self.size_bytes / (1024 * 1024)


@dataclass(frozen=True)
class TransferFailure:
    """
    One failed transfer attempt, as seen by the retry classifier.

    Two shapes:
    - bare: network-level error, no HTTP response (status_code is None)
    - with response: the server answered with a non-success status

    Build with TransferFailure.bare() / TransferFailure.with_response().
    """

    cause: BaseException
    status_code: Optional[int] = None

    @classmethod
    def bare(cls, cause: BaseException) -> "TransferFailure":
        return cls(cause=cause)

    @classmethod
    def with_response(cls, status_code: int, cause: BaseException) -> "TransferFailure":
        return cls(cause=cause, status_code=status_code)

    @property
    def has_response(self) -> bool:
        return self.status_code is not None

    def __str__(self) -> str:
        if self.has_response:
            return f"HTTP {self.status_code}: {self.cause}"
        return f"{type(self.cause).__name__}: {self.cause}"


@dataclass
class TransferSession:
    """
    State of one chunked, resumable transfer.

    The session reads from the stream of a file handle owned by the
    orchestrator. Progress fields are updated by the transfer engine:
    - upload_url: remote upload resource, once created
    - offset: last byte offset acknowledged by the server
    - retry_attempt: index of the next delay in retry_delays_ms
    """

    video_key: str
    file_name: str
    content_type: str
    total_bytes: int
    chunk_size_bytes: int
    retry_delays_ms: Tuple[int, ...]
    stream: BinaryIO = field(repr=False)

    upload_url: Optional[str] = None
    offset: int = 0
    retry_attempt: int = 0

    def __post_init__(self):
        """Validate session invariants"""
        if self.chunk_size_bytes <= 0:
            raise ValueError(f"chunk_size_bytes must be positive: {self.chunk_size_bytes}")
        if self.total_bytes < 0:
            raise ValueError(f"total_bytes cannot be negative: {self.total_bytes}")
        self.retry_delays_ms = tuple(self.retry_delays_ms)

    @property
    def metadata(self) -> dict:
        """Metadata attached to the remote upload"""
        return {
            "videoKey": self.video_key,
            "filename": self.file_name,
            "filetype": self.content_type,
        }

    @property
    def is_complete(self) -> bool:
        """True once every byte has been acknowledged"""
        return self.upload_url is not None and self.offset >= self.total_bytes

    @property
    def retries_left(self) -> int:
        return max(len(self.retry_delays_ms) - self.retry_attempt, 0)

    @property
    def progress_percent(self) -> int:
        if self.total_bytes == 0:
            return 100
        return int(self.offset * 100 / self.total_bytes)

    def next_chunk_length(self) -> int:
        """Bytes to send in the next chunk, starting at the acknowledged offset"""
        return min(self.chunk_size_bytes, self.total_bytes - self.offset)

    def read_chunk(self) -> bytes:
        """
        Read the next chunk from the stream at the acknowledged offset.

        Raises:
            OSError / ValueError: If the stream is closed or unreadable
        """
        self.stream.seek(self.offset)
        return self.stream.read(self.next_chunk_length())
