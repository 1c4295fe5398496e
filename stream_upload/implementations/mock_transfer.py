"""
Mock Transfer Implementation

Simulated transfer engine for testing without an upload server.
Similar to MockVideoRegistrar in this package.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

from stream_upload.interfaces.transfer_interface import (
    TransferAttemptError,
    TransferEngineInterface,
)
from stream_upload.models.upload_models import TransferFailure, TransferSession

# Scripted failure: None = bare network error, int = HTTP status
ScriptedFailure = Optional[int]


class MockTransferError(Exception):
    """Simulated transfer failure"""


class MockTransferEngine(TransferEngineInterface):
    """
    Mock transfer engine for testing.

    Acts as an in-memory upload server: acknowledges chunks, records every
    byte range it receives, and fails on scripted chunk numbers.
    Useful for:
    - Unit tests of retry and resume behavior
    - Dry runs without an upload server
    """

    def __init__(
        self,
        failures: Optional[Dict[int, Union[ScriptedFailure, Sequence[ScriptedFailure]]]] = None,
        read_chunks: bool = False,
    ):
        """
        Initialize mock engine.

        Args:
            failures: Chunk number (1-based) -> failure(s) to raise when that
                chunk is sent. A list fails the chunk once per entry.
            read_chunks: If True, read chunk bytes from the stream
                (default only seeks, so huge sparse files stay cheap)

        Example:
            # Chunk 3 fails once with a network error, then succeeds
            engine = MockTransferEngine(failures={3: None})

            # First chunk is rejected with 403
            engine = MockTransferEngine(failures={1: 403})
        """
        self.logger = logging.getLogger(__name__)
        self.read_chunks = read_chunks

        self._pending_failures: Dict[int, List[ScriptedFailure]] = {}
        for chunk_number, scripted in (failures or {}).items():
            if isinstance(scripted, (list, tuple)):
                self._pending_failures[chunk_number] = list(scripted)
            else:
                self._pending_failures[chunk_number] = [scripted]

        # Track transfers for testing
        self.received_ranges: List[Tuple[int, int]] = []
        self.received_bytes = bytearray()
        self.attempts = 0
        self.upload_history: List[dict] = []

    async def upload_chunks(self, session: TransferSession) -> None:
        """Simulate one attempt from the acknowledged offset"""
        self.attempts += 1

        if session.upload_url is None:
            session.upload_url = f"mock://uploads/{uuid4().hex}"
            session.offset = 0
            self.logger.debug(f"[MOCK] Upload created at {session.upload_url}")

        while session.offset < session.total_bytes:
            chunk_number = session.offset // session.chunk_size_bytes + 1
            length = session.next_chunk_length()

            try:
                if self.read_chunks:
                    data = session.read_chunk()
                    length = len(data)
                else:
                    session.stream.seek(session.offset)
                    data = b""
            except (OSError, ValueError) as e:
                raise TransferAttemptError(TransferFailure.bare(e)) from e

            scripted = self._pending_failures.get(chunk_number)
            if scripted:
                self._raise_scripted(chunk_number, scripted.pop(0))

            start = session.offset
            self.received_ranges.append((start, start + length))
            self.received_bytes.extend(data)
            session.offset = start + length

            # Cooperative yield, like a real network write
            await asyncio.sleep(0)

        self.upload_history.append(
            {
                "video_key": session.video_key,
                "metadata": session.metadata,
                "total_bytes": session.total_bytes,
                "upload_url": session.upload_url,
            },
        )
        self.logger.info(f"[MOCK] ✅ Transfer complete: {session.video_key}")

    def _raise_scripted(self, chunk_number: int, scripted: ScriptedFailure) -> None:
        """Raise the scripted failure for a chunk"""
        if scripted is None:
            failure = TransferFailure.bare(
                MockTransferError(f"Simulated network error on chunk {chunk_number}"),
            )
        else:
            failure = TransferFailure.with_response(
                scripted,
                MockTransferError(f"Simulated HTTP {scripted} on chunk {chunk_number}"),
            )

        self.logger.debug(f"[MOCK] Failing chunk {chunk_number}: {failure}")
        raise TransferAttemptError(failure)

    # =========================================================================
    # TESTING HELPER METHODS
    # =========================================================================

    def has_duplicate_ranges(self) -> bool:
        """
        Check whether any byte was received twice.

        Returns:
            True if two received ranges overlap
        """
        ordered = sorted(self.received_ranges)
        return any(
            current[0] < previous[1]
            for previous, current in zip(ordered, ordered[1:])
        )

    def get_last_upload(self) -> Optional[dict]:
        """
        Get most recent completed transfer.

        Returns:
            Last upload record, or None
        """
        return self.upload_history[-1] if self.upload_history else None
