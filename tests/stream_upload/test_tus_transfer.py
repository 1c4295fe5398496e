"""
tus Transfer Engine Tests

Tests the tus engine against the in-memory FakeStreamServer:
- upload creation, metadata and chunking
- resume from the server-acknowledged offset
- retry classification and schedule exhaustion

To run these tests:
    pytest tests/stream_upload/test_tus_transfer.py -v
"""

import asyncio
import base64
import io
import logging
import time

import httpx
import pytest

from stream_upload.errors import TransferError
from stream_upload.implementations.tus_transfer import (
    TusProtocolError,
    TusTransferEngine,
    encode_upload_metadata,
)
from stream_upload.models.upload_models import TransferSession
from stream_upload.utils.retry_policy import should_retry

VIDEO_BYTES = b"0123456789abcdefgh"


def _session(config, data: bytes = VIDEO_BYTES) -> TransferSession:
    return TransferSession(
        video_key="Us9cIcVMHB9U",
        file_name="clip.mp4",
        content_type="video/mp4",
        total_bytes=len(data),
        chunk_size_bytes=config.upload_chunk_size,
        retry_delays_ms=config.retry_delays_ms,
        stream=io.BytesIO(data),
    )


def _retry_logs(caplog):
    return [r for r in caplog.records if "Retrying transfer" in r.getMessage()]


# =============================================================================
# METADATA TESTS
# =============================================================================


@pytest.mark.unit
def test_encode_upload_metadata():
    encoded = encode_upload_metadata({"filename": "a.mp4", "filetype": "video/mp4"})

    assert encoded == "filename YS5tcDQ=,filetype dmlkZW8vbXA0"


@pytest.mark.unit
def test_encode_upload_metadata_handles_unicode():
    encoded = encode_upload_metadata({"filename": "วิดีโอ.mp4"})

    key, value = encoded.split(" ")
    assert key == "filename"
    assert base64.b64decode(value).decode("utf-8") == "วิดีโอ.mp4"


# =============================================================================
# SUCCESSFUL TRANSFER TESTS
# =============================================================================


@pytest.mark.asyncio
async def test_full_upload(fast_config, fake_server):
    engine = TusTransferEngine(fast_config, transport=fake_server.transport)
    session = _session(fast_config)

    await engine.transfer(session, should_retry)

    assert session.is_complete
    assert session.retry_attempt == 0
    assert fake_server.uploaded_data() == VIDEO_BYTES
    # 18 bytes in chunks of 4: 4 + 4 + 4 + 4 + 2
    assert fake_server.patch_ranges == [(0, 4), (4, 8), (8, 12), (12, 16), (16, 18)]
    assert fake_server.requests_with("HEAD") == []


@pytest.mark.asyncio
async def test_upload_creation_request(fast_config, fake_server):
    engine = TusTransferEngine(fast_config, transport=fake_server.transport)

    await engine.transfer(_session(fast_config), should_retry)

    create = fake_server.requests_with("POST")[0]
    assert str(create.url) == "https://stream.byteark.com/api/upload/v1/tus/videos"
    assert create.headers["Upload-Length"] == "18"
    assert create.headers["Tus-Resumable"] == "1.0.0"
    assert create.headers["Authorization"] == "Bearer test-token"

    pairs = dict(item.split(" ") for item in create.headers["Upload-Metadata"].split(","))
    decoded = {key: base64.b64decode(value).decode("utf-8") for key, value in pairs.items()}
    assert decoded == {
        "videoKey": "Us9cIcVMHB9U",
        "filename": "clip.mp4",
        "filetype": "video/mp4",
    }


@pytest.mark.asyncio
async def test_chunk_requests(fast_config, fake_server):
    engine = TusTransferEngine(fast_config, transport=fake_server.transport)
    session = _session(fast_config)

    await engine.transfer(session, should_retry)

    patches = fake_server.requests_with("PATCH")
    assert [p.headers["Upload-Offset"] for p in patches] == ["0", "4", "8", "12", "16"]
    assert all(
        p.headers["Content-Type"] == "application/offset+octet-stream" for p in patches
    )
    assert all(str(p.url) == session.upload_url for p in patches)


@pytest.mark.asyncio
async def test_empty_file_creates_upload_without_chunks(fast_config, fake_server):
    engine = TusTransferEngine(fast_config, transport=fake_server.transport)
    session = _session(fast_config, data=b"")

    await engine.transfer(session, should_retry)

    assert session.is_complete
    assert fake_server.requests_with("POST")[0].headers["Upload-Length"] == "0"
    assert fake_server.patch_count == 0


class SlowStream(io.BytesIO):
    """Stream whose reads block like a large disk read"""

    def read(self, size=-1):
        time.sleep(0.15)
        return super().read(size)


@pytest.mark.asyncio
async def test_chunk_reads_do_not_block_event_loop(fast_config, fake_server):
    """Other coroutines keep running while a chunk is read from disk"""
    engine = TusTransferEngine(fast_config, transport=fake_server.transport)
    session = _session(fast_config)
    session.stream = SlowStream(VIDEO_BYTES)
    gaps = []

    async def ticker():
        loop = asyncio.get_running_loop()
        last = loop.time()
        while True:
            await asyncio.sleep(0.001)
            now = loop.time()
            gaps.append(now - last)
            last = now

    ticking = asyncio.ensure_future(ticker())
    try:
        await engine.transfer(session, should_retry)
    finally:
        ticking.cancel()

    assert fake_server.uploaded_data() == VIDEO_BYTES
    assert gaps
    assert max(gaps) < 0.1


# =============================================================================
# RESUME TESTS
# =============================================================================


@pytest.mark.asyncio
async def test_server_error_resumes_from_acknowledged_offset(fast_config, make_server, caplog):
    caplog.set_level(logging.INFO)
    server = make_server(patch_failures={3: 500})
    engine = TusTransferEngine(fast_config, transport=server.transport)
    session = _session(fast_config)

    await engine.transfer(session, should_retry)

    assert server.uploaded_data() == VIDEO_BYTES
    assert not server.has_duplicate_ranges()
    assert len(server.requests_with("HEAD")) == 1
    assert len(server.requests_with("POST")) == 1
    assert session.retry_attempt == 1
    assert len(_retry_logs(caplog)) == 1


@pytest.mark.asyncio
async def test_network_error_is_retried(fast_config, make_server):
    server = make_server(patch_failures={2: "network"})
    engine = TusTransferEngine(fast_config, transport=server.transport)
    session = _session(fast_config)

    await engine.transfer(session, should_retry)

    assert server.uploaded_data() == VIDEO_BYTES
    assert not server.has_duplicate_ranges()
    assert session.retry_attempt == 1


@pytest.mark.asyncio
async def test_lost_acknowledgement_is_not_resent(fast_config, make_server):
    """Bytes the server stored before the connection dropped are skipped"""
    server = make_server(patch_failures={2: "lost-response"})
    engine = TusTransferEngine(fast_config, transport=server.transport)
    session = _session(fast_config)

    await engine.transfer(session, should_retry)

    assert server.uploaded_data() == VIDEO_BYTES
    assert not server.has_duplicate_ranges()
    # Chunk 2 was stored once; the retry continued at offset 8
    assert server.patch_count == 5
    assert server.requests_with("PATCH")[2].headers["Upload-Offset"] == "8"


@pytest.mark.asyncio
async def test_locked_upload_is_retried(fast_config, make_server):
    server = make_server(patch_failures={1: 500}, head_statuses=[423])
    engine = TusTransferEngine(fast_config, transport=server.transport)
    session = _session(fast_config)

    await engine.transfer(session, should_retry)

    assert server.uploaded_data() == VIDEO_BYTES
    assert len(server.requests_with("HEAD")) == 2
    assert session.retry_attempt == 2


@pytest.mark.asyncio
async def test_missing_upload_is_recreated(fast_config, make_server):
    server = make_server(patch_failures={2: 500}, head_statuses=[404])
    engine = TusTransferEngine(fast_config, transport=server.transport)
    session = _session(fast_config)

    await engine.transfer(session, should_retry)

    # Upload was gone: a fresh one was created and received every byte
    assert len(server.requests_with("POST")) == 2
    first_url = str(server.requests_with("PATCH")[0].url)
    assert first_url != session.upload_url
    new_upload = server.uploads[httpx.URL(session.upload_url).path]
    assert bytes(new_upload["data"]) == VIDEO_BYTES


# =============================================================================
# FAILURE TESTS
# =============================================================================


@pytest.mark.asyncio
async def test_forbidden_fails_without_retry(fast_config, make_server, caplog):
    caplog.set_level(logging.INFO)
    server = make_server(patch_failures={1: 403})
    engine = TusTransferEngine(fast_config, transport=server.transport)

    with pytest.raises(TransferError) as exc_info:
        await engine.transfer(_session(fast_config), should_retry)

    error = exc_info.value
    assert error.status_code == 403
    assert error.retries == 0
    assert error.video_key == "Us9cIcVMHB9U"
    assert isinstance(error.__cause__, TusProtocolError)
    assert server.patch_count == 1
    assert _retry_logs(caplog) == []


@pytest.mark.asyncio
async def test_retry_schedule_exhaustion(fast_config, make_server):
    server = make_server(patch_failures={1: 500, 2: 500, 3: 500, 4: 500})
    engine = TusTransferEngine(fast_config, transport=server.transport)

    with pytest.raises(TransferError) as exc_info:
        await engine.transfer(_session(fast_config), should_retry)

    assert exc_info.value.retries == len(fast_config.retry_delays_ms) == 3
    assert exc_info.value.status_code == 500
    assert server.patch_count == 4


@pytest.mark.asyncio
async def test_failed_creation_is_retried_then_exhausted(fast_config, make_server):
    server = make_server(create_status=500)
    engine = TusTransferEngine(fast_config, transport=server.transport)

    with pytest.raises(TransferError) as exc_info:
        await engine.transfer(_session(fast_config), should_retry)

    assert exc_info.value.retries == 3
    assert len(server.requests_with("POST")) == 4
    assert server.requests_with("HEAD") == []


@pytest.mark.asyncio
async def test_missing_location_header_fails(fast_config):
    def handler(request):
        return httpx.Response(201)

    engine = TusTransferEngine(fast_config, transport=httpx.MockTransport(handler))

    with pytest.raises(TransferError) as exc_info:
        await engine.transfer(_session(fast_config), lambda failure: False)

    assert exc_info.value.status_code == 201
    assert "Location" in str(exc_info.value)


@pytest.mark.asyncio
async def test_truncated_file_is_a_bare_failure(fast_config, fake_server):
    """File shorter than announced: unexpected end of file, no HTTP status"""
    engine = TusTransferEngine(fast_config, transport=fake_server.transport)
    session = _session(fast_config)
    session.stream = io.BytesIO(VIDEO_BYTES[:6])
    observed = []

    def record(failure):
        observed.append(failure)
        return False

    with pytest.raises(TransferError) as exc_info:
        await engine.transfer(session, record)

    assert not observed[0].has_response
    assert exc_info.value.status_code is None
    assert "Unexpected end of file" in str(exc_info.value)
