"""
Upload Service

High-level coordinator for creating and uploading videos.
Callers get one simple coroutine; stages, retries and cleanup stay inside.

One upload runs through these stages:
    IDLE → FILE_OPENED → INSPECTED → REGISTERED → UPLOADING → SUCCEEDED
and moves to FAILED from any of them.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from stream_upload.config import StreamServiceConfig
from stream_upload.constants import UPLOAD_CHUNK_SIZE, UploadStage
from stream_upload.controllers.transfer_completion import TransferCompletion
from stream_upload.errors import StreamUploadError
from stream_upload.implementations.stream_registrar import StreamVideoRegistrar
from stream_upload.implementations.tus_transfer import TusTransferEngine
from stream_upload.interfaces.registrar_interface import VideoRegistrarInterface
from stream_upload.interfaces.transfer_interface import TransferEngineInterface
from stream_upload.models.upload_models import TransferSession, UploadRequest
from stream_upload.utils.file_utils import inspect_file, open_video_file
from stream_upload.utils.retry_policy import should_retry

# Allowed transitions between upload stages
_TRANSITIONS = {
    UploadStage.IDLE: {UploadStage.FILE_OPENED, UploadStage.FAILED},
    UploadStage.FILE_OPENED: {UploadStage.INSPECTED, UploadStage.FAILED},
    UploadStage.INSPECTED: {UploadStage.REGISTERED, UploadStage.FAILED},
    UploadStage.REGISTERED: {UploadStage.UPLOADING, UploadStage.FAILED},
    UploadStage.UPLOADING: {UploadStage.SUCCEEDED, UploadStage.FAILED},
    UploadStage.SUCCEEDED: set(),
    UploadStage.FAILED: set(),
}


class UploadWorkflow:
    """
    Stage tracker for one upload.

    Created per invocation, so concurrent uploads never share it.
    """

    def __init__(self, request: UploadRequest):
        self.logger = logging.getLogger(__name__)
        self.request = request
        self.stage = UploadStage.IDLE
        self.video_key: Optional[str] = None
        self.start_time = time.time()

    @property
    def duration(self) -> float:
        return time.time() - self.start_time

    def transition_to(self, new_stage: UploadStage, reason: str = "") -> None:
        """
        Move to the next stage with logging.

        Raises:
            RuntimeError: If the transition is not allowed
        """
        if new_stage not in _TRANSITIONS[self.stage]:
            raise RuntimeError(
                f"Invalid upload transition: {self.stage.value} -> {new_stage.value}"
            )

        log_msg = (
            f"Upload {Path(self.request.local_file_path).name}: "
            f"{self.stage.value} -> {new_stage.value}"
        )
        if reason:
            log_msg += f" ({reason})"
        self.logger.info(log_msg)

        self.stage = new_stage


class StreamUploadService:
    """
    Creates a video resource and uploads a local file into it.

    This class:
    - Validates credentials before any network activity
    - Registers the video, then streams its bytes with resumable chunks
    - Retries transient transfer failures per the retry schedule
    - Always closes the local file, whatever the outcome

    Usage:
        service = StreamUploadService(
            access_token="token",
            default_project_key="project",
        )

        video_key = await service.create_and_upload_video(
            local_file_path="/path/to/video.mp4",
            title="Drone view",
        )
    """

    def __init__(
        self,
        access_token: str,
        default_project_key: str,
        default_preset_id: Optional[str] = None,
        upload_video_chunk_size: Optional[int] = None,
        registrar: Optional[VideoRegistrarInterface] = None,
        transfer_engine: Optional[TransferEngineInterface] = None,
        config_overrides: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize upload service.

        Args:
            access_token: Bearer token for the stream API (required)
            default_project_key: Project for uploads that name none (required)
            default_preset_id: Preset for uploads that name none (optional)
            upload_video_chunk_size: Transfer chunk size in bytes (default 100 MB)
            registrar: VideoRegistrarInterface, or None for the stream API
            transfer_engine: TransferEngineInterface, or None for tus
            config_overrides: Non-secret settings (base_url, retry_delays_ms, ...)

        Raises:
            ConfigurationError: If a required value is missing or invalid

        Example:
            # Normal usage
            service = StreamUploadService(token, project_key)

            # Testing
            service = StreamUploadService(
                token,
                project_key,
                registrar=MockVideoRegistrar(),
                transfer_engine=MockTransferEngine(),
            )
        """
        self.logger = logging.getLogger(__name__)

        config = StreamServiceConfig(
            access_token=access_token,
            default_project_key=default_project_key,
            default_preset_id=default_preset_id,
            upload_chunk_size=(
                upload_video_chunk_size
                if upload_video_chunk_size is not None
                else UPLOAD_CHUNK_SIZE
            ),
        )
        if config_overrides:
            config = config.with_overrides(config_overrides)
        self.config = config

        self.registrar = registrar or StreamVideoRegistrar(config)
        self.transfer_engine = transfer_engine or TusTransferEngine(config)

        self.logger.info(
            f"Stream Upload Service initialized "
            f"(project: {config.default_project_key}, "
            f"chunk: {config.upload_chunk_size / (1024 * 1024):.0f} MB)",
        )

    async def create_and_upload_video(
        self,
        local_file_path: Union[str, Path],
        title: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        project_key: Optional[str] = None,
        preset_id: Optional[str] = None,
    ) -> str:
        """
        Create a video and upload a local file into it.

        Args:
            local_file_path: Path to the video file
            title: Video title (default: file name)
            tags: Video tags (optional)
            project_key: Target project (default: service default)
            preset_id: Transcoding preset (default: service default)

        Returns:
            Key of the uploaded video

        Raises:
            FileAccessError: File cannot be opened or inspected
            RegistrationError: Metadata call failed
            ResponseShapeError: Request/response failed validation
            TransferError: Transfer failed for good

        Example:
            video_key = await service.create_and_upload_video(
                local_file_path="./resources/drone-view.mp4",
                title="Sample video",
            )
        """
        request = UploadRequest(
            local_file_path=local_file_path,
            title=title,
            tags=tuple(tags) if tags is not None else None,
            project_key=project_key,
            preset_id=preset_id,
        )
        return await self.upload(request)

    async def upload(self, request: UploadRequest) -> str:
        """
        Run one upload from a prepared request.

        Returns only once the server acknowledged every byte.
        Errors carry the stage reached and, once registered, the video key.
        """
        workflow = UploadWorkflow(request)
        self.logger.info(f"Uploading video: {request.local_file_path}")

        try:
            with open_video_file(request.local_file_path) as file_handle:
                workflow.transition_to(UploadStage.FILE_OPENED)

                descriptor = inspect_file(request.local_file_path, file_handle)
                workflow.transition_to(
                    UploadStage.INSPECTED,
                    f"{descriptor.content_type}, {descriptor.size_bytes} bytes",
                )

                workflow.video_key = await self.registrar.create_video(
                    title=request.title if request.title is not None else descriptor.file_name,
                    tags=request.tags,
                    project_key=request.project_key,
                    preset_id=request.preset_id,
                )
                workflow.transition_to(UploadStage.REGISTERED, workflow.video_key)

                session = TransferSession(
                    video_key=workflow.video_key,
                    file_name=descriptor.file_name,
                    content_type=descriptor.content_type,
                    total_bytes=descriptor.size_bytes,
                    chunk_size_bytes=self.config.upload_chunk_size,
                    retry_delays_ms=self.config.retry_delays_ms,
                    stream=file_handle,
                )
                workflow.transition_to(UploadStage.UPLOADING)
                await self._run_transfer(session)

        except StreamUploadError as e:
            e.stage = workflow.stage
            if e.video_key is None:
                e.video_key = workflow.video_key
            workflow.transition_to(UploadStage.FAILED, type(e).__name__)
            self.logger.error(
                f"❌ Upload failed at {e.stage.value}: {e}"
                + (f" (video {e.video_key} registered but not uploaded)" if e.video_key else ""),
            )
            raise

        except Exception as e:
            failed_stage = workflow.stage
            workflow.transition_to(UploadStage.FAILED, type(e).__name__)
            self.logger.error(
                f"❌ Unexpected error at {failed_stage.value}: {e}",
                exc_info=True,
            )
            raise

        workflow.transition_to(UploadStage.SUCCEEDED)
        self.logger.info(
            f"✅ Upload successful: {workflow.video_key} "
            f"({workflow.duration:.1f}s, {descriptor.size_mb:.1f} MB)",
        )

        return workflow.video_key

    async def _run_transfer(self, session: TransferSession) -> None:
        """
        Drive the transfer engine and wait for its single completion.

        Raises:
            TransferError: If the transfer fails
        """
        completion = TransferCompletion()
        task = self.transfer_engine.start(
            session,
            should_retry,
            on_success=completion.resolve,
            on_error=completion.reject,
        )

        try:
            await completion.wait()
        finally:
            if completion.done:
                # Delivered from inside the task; surfaces a double delivery
                await task
            else:
                task.cancel()
