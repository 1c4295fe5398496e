"""
tus Transfer Implementation

Concrete implementation of TransferEngineInterface for the tus 1.0.0
resumable upload protocol, over httpx.

One attempt:
1. POST the endpoint to create the upload (first attempt), or HEAD the
   existing upload to learn the offset the server acknowledged
2. PATCH sequential chunks from that offset until every byte is accepted

Upload URLs are kept on the session only; nothing is stored for resuming
in a later process.
"""

import asyncio
import base64
import logging
from typing import Dict, Optional

import httpx

from stream_upload.config import StreamServiceConfig
from stream_upload.constants import HTTP_STATUS_LOCKED, PROGRESS_LOG_STEP_PERCENT, TUS_VERSION
from stream_upload.interfaces.transfer_interface import (
    TransferAttemptError,
    TransferEngineInterface,
)
from stream_upload.models.upload_models import TransferFailure, TransferSession


class TusProtocolError(Exception):
    """Server response violated the tus protocol or reported an error"""


def encode_upload_metadata(metadata: Dict[str, str]) -> str:
    """
    Encode metadata for the Upload-Metadata header.

    Example:
        encode_upload_metadata({"filename": "a.mp4"})
        # Returns: "filename YS5tcDQ="
    """
    return ",".join(
        f"{key} {base64.b64encode(value.encode('utf-8')).decode('ascii')}"
        for key, value in metadata.items()
    )


class TusTransferEngine(TransferEngineInterface):
    """
    tus transfer engine.

    Features:
    - Resumes from the server-acknowledged offset after a failure
    - Sequential chunks of at most session.chunk_size_bytes
    - One httpx client per attempt, never shared between uploads
    """

    def __init__(
        self,
        config: StreamServiceConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize tus engine.

        Args:
            config: Service configuration (credentials, endpoint)
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.logger = logging.getLogger(__name__)
        self.config = config
        self._transport = transport

    async def upload_chunks(self, session: TransferSession) -> None:
        """Run one attempt, resuming from the acknowledged offset"""
        try:
            async with httpx.AsyncClient(
                headers={**self.config.auth_headers, "Tus-Resumable": TUS_VERSION},
                # Chunk bodies can be large: only bound connection setup
                timeout=httpx.Timeout(None, connect=self.config.request_timeout),
                transport=self._transport,
            ) as client:
                if session.upload_url is None:
                    await self._create_upload(client, session)
                else:
                    await self._resume_upload(client, session)

                while session.offset < session.total_bytes:
                    await self._send_chunk(client, session)

        except httpx.TransportError as e:
            raise TransferAttemptError(TransferFailure.bare(e)) from e
        except (OSError, ValueError) as e:
            # Local stream closed or unreadable
            raise TransferAttemptError(TransferFailure.bare(e)) from e

        self.logger.info(
            f"Transfer complete: {session.video_key} ({session.total_bytes} bytes)",
        )

    async def _create_upload(
        self,
        client: httpx.AsyncClient,
        session: TransferSession,
    ) -> None:
        """Create the remote upload resource"""
        response = await client.post(
            self.config.upload_url,
            headers={
                "Upload-Length": str(session.total_bytes),
                "Upload-Metadata": encode_upload_metadata(session.metadata),
            },
        )
        self._check_response(response, "create upload")

        location = response.headers.get("Location")
        if not location:
            self._fail(response, "invalid or missing Location header")

        session.upload_url = str(response.url.join(location))
        session.offset = 0

        self.logger.debug(f"Upload created at {session.upload_url}")

    async def _resume_upload(
        self,
        client: httpx.AsyncClient,
        session: TransferSession,
    ) -> None:
        """Adopt the offset the server acknowledged for an existing upload"""
        response = await client.head(session.upload_url)

        if response.status_code == HTTP_STATUS_LOCKED:
            self._fail(response, "upload is locked")

        if response.is_client_error:
            # Upload is gone server-side: bytes were not kept, start over
            self.logger.warning(
                f"Upload {session.upload_url} no longer exists "
                f"(HTTP {response.status_code}), creating a new one",
            )
            await self._create_upload(client, session)
            return

        self._check_response(response, "resume upload")
        session.offset = self._read_offset(response)

        self.logger.info(
            f"Resuming {session.video_key} at offset "
            f"{session.offset}/{session.total_bytes}",
        )

    async def _send_chunk(
        self,
        client: httpx.AsyncClient,
        session: TransferSession,
    ) -> None:
        """Send one chunk starting at the acknowledged offset"""
        # Chunks can be 100 MB: read in a worker thread so other uploads keep running
        chunk = await asyncio.get_running_loop().run_in_executor(None, session.read_chunk)
        if not chunk:
            raise OSError(
                f"Unexpected end of file at offset {session.offset} "
                f"(expected {session.total_bytes} bytes)"
            )

        response = await client.patch(
            session.upload_url,
            content=chunk,
            headers={
                "Upload-Offset": str(session.offset),
                "Content-Type": "application/offset+octet-stream",
            },
        )
        self._check_response(response, "upload chunk")

        previous_percent = session.progress_percent
        session.offset = self._read_offset(response)
        self._log_progress(session, previous_percent)

    def _log_progress(self, session: TransferSession, previous_percent: int) -> None:
        """Log progress only when it crosses a step boundary"""
        percent = session.progress_percent
        if percent // PROGRESS_LOG_STEP_PERCENT > previous_percent // PROGRESS_LOG_STEP_PERCENT:
            self.logger.info(f"Upload progress: {percent}% ({session.video_key})")

    def _read_offset(self, response: httpx.Response) -> int:
        """Parse Upload-Offset from a server response"""
        try:
            return int(response.headers["Upload-Offset"])
        except (KeyError, ValueError):
            self._fail(response, "invalid or missing offset value")

    def _check_response(self, response: httpx.Response, action: str) -> None:
        """Fail the attempt on a non-2xx response"""
        if not response.is_success:
            self._fail(response, f"unexpected response while trying to {action}")

    def _fail(self, response: httpx.Response, message: str) -> None:
        """Raise an attempt failure carrying the HTTP status"""
        raise TransferAttemptError(
            TransferFailure.with_response(
                response.status_code,
                TusProtocolError(f"tus: {message} (HTTP {response.status_code})"),
            ),
        )
