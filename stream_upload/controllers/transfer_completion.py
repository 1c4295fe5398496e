"""
Transfer Completion

Single-resolution bridge between the transfer engine's callbacks and the
coroutine awaiting the upload.
"""

import asyncio
import logging
from typing import Optional


class TransferCompletion:
    """
    Future resolved exactly once by either resolve() or reject().

    A second delivery is a defect in the engine and raises RuntimeError
    instead of being silently ignored.

    Usage:
        completion = TransferCompletion()
        engine.start(session, should_retry, completion.resolve, completion.reject)
        await completion.wait()
    """

    def __init__(self):
        """Create the completion on the running event loop"""
        self.logger = logging.getLogger(__name__)
        self._future: "asyncio.Future[None]" = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def resolve(self) -> None:
        """Signal a successful transfer"""
        self._deliver(None)

    def reject(self, error: Exception) -> None:
        """Signal a failed transfer"""
        self._deliver(error)

    def _deliver(self, error: Optional[Exception]) -> None:
        if self._future.done():
            self.logger.error(
                f"Transfer completion delivered twice (second: {error or 'success'})",
            )
            raise RuntimeError("Transfer completion already delivered")

        if error is None:
            self._future.set_result(None)
        else:
            self._future.set_exception(error)

    async def wait(self) -> None:
        """
        Wait for the transfer to end.

        Cancelling the waiter leaves the completion pending, so the caller
        can still tell that the transfer never delivered.

        Raises:
            Exception: The error delivered through reject()
        """
        await asyncio.shield(self._future)
