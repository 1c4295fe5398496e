"""
Mock Registrar Implementation

Simulated registrar for testing without the stream API.
Similar to MockTransferEngine in this package.
"""

import logging
from typing import List, Optional, Sequence
from uuid import uuid4

from stream_upload.interfaces.registrar_interface import VideoRegistrarInterface
from stream_upload.models.video_registration import cast_create_video_request


class MockVideoRegistrar(VideoRegistrarInterface):
    """
    Mock video registrar for testing.

    Validates requests exactly like the real registrar, then returns a fake
    key instead of calling the API. Useful for:
    - Unit tests
    - Dry runs without credentials
    """

    def __init__(
        self,
        default_project_key: str = "mock-project",
        default_preset_id: Optional[str] = None,
        video_key: Optional[str] = None,
        error: Optional[Exception] = None,
    ):
        """
        Initialize mock registrar.

        Args:
            default_project_key: Project used when a request names none
            default_preset_id: Preset used when a request names none
            video_key: Fixed key to return (default: random mock key)
            error: Exception to raise on every call (test error handling)

        Example:
            registrar = MockVideoRegistrar(video_key="Us9cIcVMHB9U")
        """
        self.logger = logging.getLogger(__name__)
        self.default_project_key = default_project_key
        self.default_preset_id = default_preset_id
        self.video_key = video_key
        self.error = error

        # Track registrations for testing
        self.registration_history: List[dict] = []

    async def create_video(
        self,
        title: str,
        tags: Optional[Sequence[str]] = None,
        project_key: Optional[str] = None,
        preset_id: Optional[str] = None,
    ) -> str:
        """Simulate video creation"""
        registration = cast_create_video_request(
            {
                "projectKey": project_key if project_key is not None else self.default_project_key,
                "presetId": preset_id if preset_id is not None else self.default_preset_id,
                "videos": [{"title": title, "tags": list(tags) if tags is not None else None}],
            },
        )

        if self.error is not None:
            self.logger.error(f"[MOCK] Registration failed: {self.error}")
            raise self.error

        video_key = self.video_key or f"mock_{uuid4().hex[:12]}"
        self.registration_history.append(
            {
                "video_key": video_key,
                "body": registration.to_request_body(),
            },
        )

        self.logger.info(f"[MOCK] Video created: {video_key}")
        return video_key

    # =========================================================================
    # TESTING HELPER METHODS
    # =========================================================================

    def get_last_registration(self) -> Optional[dict]:
        """
        Get most recent registration.

        Returns:
            Last registration record, or None
        """
        return self.registration_history[-1] if self.registration_history else None
