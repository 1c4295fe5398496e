"""
Video Registrar Interface

Abstract interface for creating video resources before their bytes are
uploaded. Follows the same Dependency Inversion pattern as the transfer
engine interface.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence


class VideoRegistrarInterface(ABC):
    """
    Abstract base class for video registrars.

    Any registrar (stream API, mock, ...) must implement create_video().
    """

    @abstractmethod
    async def create_video(
        self,
        title: str,
        tags: Optional[Sequence[str]] = None,
        project_key: Optional[str] = None,
        preset_id: Optional[str] = None,
    ) -> str:
        """
        Create a video resource and return its key.

        Project key and preset default to the service configuration when
        not given. Never retried internally.

        Args:
            title: Video title
            tags: Video tags (optional)
            project_key: Target project (optional)
            preset_id: Transcoding preset (optional)

        Returns:
            Key of the created video

        Raises:
            ResponseShapeError: If the request or response fails validation
            RegistrationError: On timeout, connection error or non-2xx status

        Example:
            video_key = await registrar.create_video(title="Drone view")
        """
