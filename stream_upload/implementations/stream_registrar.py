"""
Stream Registrar Implementation

Concrete implementation of VideoRegistrarInterface for the stream
metadata API. Creates the video resource that the byte transfer is
attached to.
"""

import logging
from typing import Optional, Sequence

import httpx

from stream_upload.config import StreamServiceConfig
from stream_upload.errors import RegistrationError, ResponseShapeError
from stream_upload.interfaces.registrar_interface import VideoRegistrarInterface
from stream_upload.models.video_registration import (
    cast_create_video_request,
    parse_create_video_response,
)


class StreamVideoRegistrar(VideoRegistrarInterface):
    """
    Video registrar using POST /api/v1/videos.

    Features:
    - Strict request validation before anything is sent
    - Strict response parsing (list of {key})
    - Bounded request timeout, no internal retries
    """

    def __init__(
        self,
        config: StreamServiceConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize stream registrar.

        Args:
            config: Service configuration (credentials, defaults, timeout)
            transport: Custom httpx transport (tests use httpx.MockTransport)

        Example:
            config = StreamServiceConfig(access_token, project_key)
            registrar = StreamVideoRegistrar(config)
        """
        self.logger = logging.getLogger(__name__)
        self.config = config
        self._transport = transport

    async def create_video(
        self,
        title: str,
        tags: Optional[Sequence[str]] = None,
        project_key: Optional[str] = None,
        preset_id: Optional[str] = None,
    ) -> str:
        """
        Create a video and return its key.

        Raises:
            ResponseShapeError: Request or response failed validation
            RegistrationError: Timeout, connection error or non-2xx status
        """
        registration = cast_create_video_request(
            {
                "projectKey": (
                    project_key
                    if project_key is not None
                    else self.config.default_project_key
                ),
                "presetId": (
                    preset_id if preset_id is not None else self.config.default_preset_id
                ),
                "videos": [
                    {
                        "title": title,
                        "tags": list(tags) if tags is not None else None,
                    },
                ],
            },
        )

        self.logger.info(
            f"Creating video '{title}' in project {registration.project_key}",
        )

        try:
            async with httpx.AsyncClient(
                headers=self.config.auth_headers,
                timeout=self.config.request_timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.config.videos_url,
                    json=registration.to_request_body(),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise RegistrationError(
                f"Video registration timed out after {self.config.request_timeout}s",
            ) from e
        except httpx.HTTPError as e:
            raise RegistrationError(f"Video registration failed: {e}") from e

        if not response.is_success:
            raise RegistrationError(
                f"Video registration failed: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ResponseShapeError(
                "Unexpected response body; not valid JSON; objectPath=",
                path="",
            ) from e

        video_key = parse_create_video_response(body)[0].key
        self.logger.info(f"Video created: {video_key}")

        return video_key
