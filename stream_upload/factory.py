"""
Upload Service Factory

Factory pattern for creating upload services.
Automatically configures from environment variables and .env.
"""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv

from stream_upload.config import StreamServiceConfig, load_settings_file
from stream_upload.constants import (
    DEFAULT_SETTINGS_FILE,
    ENV_ACCESS_TOKEN,
    ENV_DEFAULT_PRESET_ID,
    ENV_DEFAULT_PROJECT_KEY,
    ENV_UPLOAD_CHUNK_SIZE,
)
from stream_upload.controllers.upload_service import StreamUploadService
from stream_upload.errors import ConfigurationError
from stream_upload.implementations.mock_registrar import MockVideoRegistrar
from stream_upload.implementations.mock_transfer import MockTransferEngine

# Type alias
ServiceMode = Literal["stream", "mock"]


class StreamUploadFactory:
    """
    Factory for creating upload services.

    Reads configuration from environment variables:
    - BYTEARK_STREAM_ACCESS_TOKEN: API access token (required)
    - BYTEARK_STREAM_DEFAULT_PROJECT_KEY: Default project (required)
    - BYTEARK_STREAM_DEFAULT_PRESET_ID: Default preset (optional)
    - BYTEARK_STREAM_UPLOAD_CHUNK_SIZE: Chunk size in bytes (optional)

    Usage:
        # Real uploads, configured from environment
        service = StreamUploadFactory.create_service()

        # Dry run without credentials or network
        service = StreamUploadFactory.create_service(mode="mock")
    """

    _logger = logging.getLogger(__name__)

    @classmethod
    def create_service(
        cls,
        mode: ServiceMode = "stream",
        settings_path: Optional[Path] = None,
    ) -> StreamUploadService:
        """
        Create an upload service.

        Args:
            mode: "stream" (real API, from env) or "mock" (simulated)
            settings_path: YAML file with non-secret overrides
                (default: config/stream.yaml, if present)

        Returns:
            Configured StreamUploadService

        Raises:
            ConfigurationError: If mode="stream" and credentials are missing
        """
        overrides = load_settings_file(settings_path or Path(DEFAULT_SETTINGS_FILE))

        if mode == "mock":
            cls._logger.info("Creating Mock Upload Service")
            config = StreamServiceConfig(
                access_token="mock-token",
                default_project_key="mock-project",
            ).with_overrides(overrides)
            return StreamUploadService(
                access_token=config.access_token,
                default_project_key=config.default_project_key,
                registrar=MockVideoRegistrar(
                    default_project_key=config.default_project_key,
                    default_preset_id=config.default_preset_id,
                ),
                transfer_engine=MockTransferEngine(),
                config_overrides=overrides,
            )

        if mode != "stream":
            raise ConfigurationError(f"Unknown upload service mode: {mode}")

        load_dotenv()

        access_token = os.getenv(ENV_ACCESS_TOKEN)
        if not access_token:
            raise ConfigurationError(
                f"{ENV_ACCESS_TOKEN} is not set. "
                f"Add to .env file: {ENV_ACCESS_TOKEN}=<your token>"
            )

        project_key = os.getenv(ENV_DEFAULT_PROJECT_KEY)
        if not project_key:
            raise ConfigurationError(
                f"{ENV_DEFAULT_PROJECT_KEY} is not set. "
                f"Add to .env file: {ENV_DEFAULT_PROJECT_KEY}=<project key>"
            )

        # Environment wins over the settings file
        preset_id = os.getenv(ENV_DEFAULT_PRESET_ID) or None
        if preset_id is not None:
            overrides["default_preset_id"] = preset_id

        chunk_size = cls._read_chunk_size()
        if chunk_size is not None:
            overrides["upload_chunk_size"] = chunk_size

        cls._logger.info("Creating Stream Upload Service")
        return StreamUploadService(
            access_token=access_token,
            default_project_key=project_key,
            config_overrides=overrides,
        )

    @classmethod
    def _read_chunk_size(cls) -> Optional[int]:
        """
        Read chunk size override from environment.

        Returns:
            Chunk size in bytes, or None for the default

        Raises:
            ConfigurationError: If the value is not an integer
        """
        raw_value = os.getenv(ENV_UPLOAD_CHUNK_SIZE)
        if not raw_value:
            return None

        try:
            return int(raw_value)
        except ValueError as e:
            raise ConfigurationError(
                f"{ENV_UPLOAD_CHUNK_SIZE} must be an integer number of bytes: {raw_value}"
            ) from e


# Convenience function for quick creation
def create_upload_service(force_mock: bool = False) -> StreamUploadService:
    """
    Quick service creation with simple mock override.

    Args:
        force_mock: If True, use the simulated registrar and transfer engine

    Returns:
        StreamUploadService

    Example:
        # Normal usage
        service = create_upload_service()

        # Testing
        service = create_upload_service(force_mock=True)
    """
    mode = "mock" if force_mock else "stream"
    return StreamUploadFactory.create_service(mode=mode)
