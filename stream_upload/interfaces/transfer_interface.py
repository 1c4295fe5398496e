"""
Transfer Engine Interface

Abstract interface for chunked, resumable byte transfers.
High-level code depends on this abstraction, not on the tus wire protocol.

Implementations provide a single attempt (upload_chunks). The retry loop
and the completion callbacks are shared here so every engine follows the
same retry schedule.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable

from stream_upload.errors import TransferError
from stream_upload.models.upload_models import TransferFailure, TransferSession

# Retry decision callback: failure -> retry?
ShouldRetry = Callable[[TransferFailure], bool]


class TransferAttemptError(Exception):
    """
    One transfer attempt failed.

    Raised by upload_chunks(); consumed by the retry loop.
    """

    def __init__(self, failure: TransferFailure):
        super().__init__(str(failure))
        self.failure = failure


class TransferEngineInterface(ABC):
    """
    Abstract base class for transfer engines.

    Any engine (tus over HTTP, in-memory mock, ...) must implement
    upload_chunks(). Sessions carry all per-upload state, so one engine
    instance can serve concurrent uploads.
    """

    logger = logging.getLogger(__name__)

    @abstractmethod
    async def upload_chunks(self, session: TransferSession) -> None:
        """
        Run one transfer attempt.

        Must resume from the last offset acknowledged by the server and
        never re-send acknowledged bytes. Updates session.upload_url and
        session.offset as the server acknowledges data.

        Args:
            session: Transfer session to advance

        Raises:
            TransferAttemptError: If the attempt fails
        """

    async def transfer(self, session: TransferSession, should_retry: ShouldRetry) -> None:
        """
        Transfer the whole session, retrying per its delay schedule.

        On each failure:
        - schedule exhausted: give up without asking should_retry
        - should_retry(failure) is False: give up immediately
        - otherwise wait retry_delays_ms[retry_attempt] and resume

        Args:
            session: Transfer session
            should_retry: Retry decision callback

        Raises:
            TransferError: When the transfer fails for good
        """
        while True:
            try:
                await self.upload_chunks(session)
                return
            except TransferAttemptError as e:
                failure = e.failure

            if session.retries_left == 0:
                raise TransferError(
                    f"Upload failed after {session.retry_attempt} retries: {failure}",
                    status_code=failure.status_code,
                    failure=failure,
                    retries=session.retry_attempt,
                    video_key=session.video_key,
                ) from failure.cause

            if not should_retry(failure):
                raise TransferError(
                    f"Upload failed with non-retryable error: {failure}",
                    status_code=failure.status_code,
                    failure=failure,
                    retries=session.retry_attempt,
                    video_key=session.video_key,
                ) from failure.cause

            delay_ms = session.retry_delays_ms[session.retry_attempt]
            session.retry_attempt += 1
            self.logger.warning(
                f"Retrying transfer of {session.video_key} in {delay_ms} ms "
                f"(retry {session.retry_attempt}/{len(session.retry_delays_ms)}, "
                f"offset {session.offset}/{session.total_bytes})",
            )
            await asyncio.sleep(delay_ms / 1000)

    def start(
        self,
        session: TransferSession,
        should_retry: ShouldRetry,
        on_success: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> "asyncio.Task[None]":
        """
        Start the transfer in the background.

        Exactly one of on_success / on_error is called when it ends.
        Must be called from a running event loop.

        Returns:
            The background task running the transfer
        """

        async def _run() -> None:
            try:
                await self.transfer(session, should_retry)
            except TransferError as e:
                on_error(e)
            except Exception as e:
                error = TransferError(
                    f"Unexpected transfer error: {e}",
                    video_key=session.video_key,
                )
                error.__cause__ = e
                on_error(error)
            else:
                on_success()

        return asyncio.get_running_loop().create_task(_run())
