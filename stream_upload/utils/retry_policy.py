"""
Retry Policy

Decides whether a failed transfer attempt is worth retrying.
Called by the transfer engine on every failure, including failures of the
server-side finalization after all chunks were sent.
"""

import logging

from stream_upload.constants import HTTP_STATUS_FORBIDDEN, HTTP_STATUS_LOCKED
from stream_upload.models.upload_models import TransferFailure

logger = logging.getLogger(__name__)


def should_retry(failure: TransferFailure) -> bool:
    """
    Classify a transfer failure as retryable or terminal.

    - no HTTP response (network error): retry, logged
    - 403 Forbidden: terminal, authorization will not fix itself
    - 423 Locked: retry quietly; the server answers 423 while it finishes
      terminating a previously aborted upload
    - any other status: retry, logged

    Args:
        failure: Observed transfer failure

    Returns:
        True to retry, False to fail the transfer now
    """
    if not failure.has_response:
        logger.error(f"Error when uploading: {failure}")
        return True

    if failure.status_code == HTTP_STATUS_FORBIDDEN:
        logger.debug("Upload forbidden (403), not retrying")
        return False

    if failure.status_code == HTTP_STATUS_LOCKED:
        return True

    logger.error(f"Error when uploading: {failure}")
    return True
