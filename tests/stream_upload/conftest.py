"""
Stream Upload Test Configuration and Fixtures

Shared fixtures for stream upload tests.

To use pytest:
    pip install -e ".[test]"
    pytest tests/stream_upload/
"""

import io
import json
import uuid
from typing import Dict, List, Optional, Tuple, Union

import httpx
import pytest

from stream_upload.config import StreamServiceConfig
from stream_upload.constants import TUS_UPLOAD_PATH, VIDEOS_API_PATH
from stream_upload.controllers import upload_service
from stream_upload.errors import FileAccessError

MIB = 1024 * 1024

# =============================================================================
# FAKE STREAM SERVER
# =============================================================================

# Scripted PATCH failure:
#   int            -> respond with that HTTP status, data not stored
#   "network"      -> connection error, data not stored
#   "lost-response" -> data stored, then connection error (ack lost)
PatchFailure = Union[int, str]


class FakeStreamServer:
    """
    In-memory stream API and tus server for httpx.MockTransport.

    Usage:
        server = FakeStreamServer(patch_failures={3: "network"})
        engine = TusTransferEngine(config, transport=server.transport)
    """

    def __init__(
        self,
        video_key: str = "Us9cIcVMHB9U",
        registration_status: int = 201,
        registration_body=None,
        patch_failures: Optional[Dict[int, PatchFailure]] = None,
        head_statuses: Optional[List[int]] = None,
        create_status: int = 201,
    ):
        self.video_key = video_key
        self.registration_status = registration_status
        self.registration_body = (
            registration_body if registration_body is not None else [{"key": video_key}]
        )
        self.patch_failures = dict(patch_failures or {})
        self.head_statuses = list(head_statuses or [])
        self.create_status = create_status

        self.uploads: Dict[str, dict] = {}
        self.requests: List[httpx.Request] = []
        self.registrations: List[dict] = []
        self.patch_ranges: List[Tuple[int, int]] = []
        self.patch_count = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_with(self, method: str) -> List[httpx.Request]:
        return [request for request in self.requests if request.method == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == VIDEOS_API_PATH:
            return self._register(request)
        if request.method == "POST" and path == TUS_UPLOAD_PATH:
            return self._create(request)
        if request.method == "HEAD":
            return self._head(request)
        if request.method == "PATCH":
            return self._patch(request)

        return httpx.Response(405)

    def _register(self, request: httpx.Request) -> httpx.Response:
        self.registrations.append(json.loads(request.content))
        return httpx.Response(self.registration_status, json=self.registration_body)

    def _create(self, request: httpx.Request) -> httpx.Response:
        if self.create_status != 201:
            return httpx.Response(self.create_status)

        upload_path = f"{TUS_UPLOAD_PATH}/{uuid.uuid4().hex}"
        self.uploads[upload_path] = {
            "length": int(request.headers["Upload-Length"]),
            "metadata": request.headers.get("Upload-Metadata", ""),
            "data": bytearray(),
        }
        return httpx.Response(201, headers={"Location": upload_path})

    def _head(self, request: httpx.Request) -> httpx.Response:
        if self.head_statuses:
            return httpx.Response(self.head_statuses.pop(0))

        upload = self.uploads.get(request.url.path)
        if upload is None:
            return httpx.Response(404)

        return httpx.Response(
            200,
            headers={
                "Upload-Offset": str(len(upload["data"])),
                "Upload-Length": str(upload["length"]),
            },
        )

    def _patch(self, request: httpx.Request) -> httpx.Response:
        self.patch_count += 1
        scripted = self.patch_failures.pop(self.patch_count, None)

        if isinstance(scripted, int):
            return httpx.Response(scripted)
        if scripted == "network":
            raise httpx.ConnectError("Connection reset by peer", request=request)

        upload = self.uploads.get(request.url.path)
        if upload is None:
            return httpx.Response(404)

        offset = int(request.headers["Upload-Offset"])
        if offset != len(upload["data"]):
            return httpx.Response(409)

        upload["data"].extend(request.content)
        self.patch_ranges.append((offset, offset + len(request.content)))

        if scripted == "lost-response":
            raise httpx.ReadError("Connection lost before response", request=request)

        return httpx.Response(204, headers={"Upload-Offset": str(len(upload["data"]))})

    def uploaded_data(self) -> bytes:
        """Bytes of the only upload on the server"""
        assert len(self.uploads) == 1
        return bytes(next(iter(self.uploads.values()))["data"])

    def has_duplicate_ranges(self) -> bool:
        ordered = sorted(self.patch_ranges)
        return any(
            current[0] < previous[1]
            for previous, current in zip(ordered, ordered[1:])
        )


@pytest.fixture
def fake_server():
    """
    Provide a fresh FakeStreamServer.

    Usage:
        def test_upload(fake_server):
            engine = TusTransferEngine(config, transport=fake_server.transport)
    """
    return FakeStreamServer()


# =============================================================================
# CONFIG FIXTURES
# =============================================================================


@pytest.fixture
def fast_config():
    """Config with tiny chunks and zero retry delays (fast tests)"""
    return StreamServiceConfig(
        access_token="test-token",
        default_project_key="test-project",
        upload_chunk_size=4,
        retry_delays_ms=(0, 0, 0),
    )


# =============================================================================
# FILE FIXTURES
# =============================================================================


class CountingFileIO(io.FileIO):
    """Raw file that counts close() calls"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.close_calls = 0

    def close(self):
        self.close_calls += 1
        super().close()


@pytest.fixture
def opened_files(monkeypatch):
    """
    Record every file handle the upload service opens.

    Usage:
        def test_closed(opened_files):
            await service.create_and_upload_video(path)
            assert opened_files[0].close_calls == 1
    """
    handles: List[CountingFileIO] = []

    def tracking_open(local_file_path):
        try:
            handle = CountingFileIO(str(local_file_path), "r")
        except OSError as e:
            raise FileAccessError(f"Cannot open video file {local_file_path}: {e}") from e
        handles.append(handle)
        return handle

    monkeypatch.setattr(upload_service, "open_video_file", tracking_open)
    return handles


@pytest.fixture
def small_video_file(tmp_path):
    """18-byte .mp4 file with distinct content"""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"0123456789abcdefgh")
    return path


@pytest.fixture
def five_chunk_file(tmp_path):
    """File of exactly 5 chunks of 1 MiB"""
    path = tmp_path / "five-chunks.mp4"
    with open(path, "wb") as f:
        f.truncate(5 * MIB)
    return path


@pytest.fixture
def large_video_file(tmp_path):
    """
    500 MiB sparse .mp4 file.

    Sparse, so it costs no disk space; engines that only seek stay cheap.
    """
    path = tmp_path / "drone-view-by-sascha-weber.mp4"
    with open(path, "wb") as f:
        f.truncate(500 * MIB)
    return path


@pytest.fixture
def make_server():
    """
    Build a FakeStreamServer with scripted failures.

    Usage:
        def test_resume(make_server):
            server = make_server(patch_failures={3: 500})
    """
    return FakeStreamServer
