"""
Video Registration Schemas

Strict request/response contracts for the metadata-creation call.

Requests reject unknown fields instead of dropping them, so a malformed
body is never sent to a server that might partially accept it.
"""

from typing import Any, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    TypeAdapter,
    ValidationError,
)

from stream_upload.errors import ResponseShapeError


class VideoEntry(BaseModel):
    """One video to create"""

    model_config = ConfigDict(extra="forbid")

    title: StrictStr = Field(min_length=1)
    tags: Optional[List[StrictStr]] = None


class VideoRegistration(BaseModel):
    """Body of POST /api/v1/videos"""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    project_key: StrictStr = Field(alias="projectKey", min_length=1)
    preset_id: Optional[StrictStr] = Field(default=None, alias="presetId")
    videos: List[VideoEntry] = Field(min_length=1)

    def to_request_body(self) -> dict:
        """Wire body; absent and null optionals are both omitted"""
        return self.model_dump(by_alias=True, exclude_none=True)


class VideoRecord(BaseModel):
    """One created video, as returned by the API"""

    model_config = ConfigDict(extra="ignore")

    key: StrictStr


_video_records_adapter = TypeAdapter(List[VideoRecord])


def _error_path(error: ValidationError) -> str:
    """Dotted location of the first validation error ("" for the root)"""
    first = error.errors()[0]
    return ".".join(str(part) for part in first.get("loc", ()))


def cast_create_video_request(payload: Any) -> VideoRegistration:
    """
    Validate a registration payload before it is sent.

    Args:
        payload: Wire-shaped dict (projectKey, presetId, videos)

    Returns:
        Validated VideoRegistration

    Raises:
        ResponseShapeError: If the payload has unknown, missing or mistyped fields

    Example:
        cast_create_video_request(
            {"projectKey": "p", "videos": [{"title": "t"}]}
        )
    """
    try:
        return VideoRegistration.model_validate(payload)
    except ValidationError as e:
        path = _error_path(e)
        raise ResponseShapeError(
            f"Unexpected request body; {e.errors()[0]['msg']}; objectPath={path}",
            path=path,
        ) from e


def parse_create_video_response(body: Any) -> List[VideoRecord]:
    """
    Parse the registration response.

    Args:
        body: Decoded JSON response

    Returns:
        Non-empty list of VideoRecord

    Raises:
        ResponseShapeError: If body is not a non-empty list of {key: str}
    """
    try:
        records = _video_records_adapter.validate_python(body)
    except ValidationError as e:
        path = _error_path(e)
        raise ResponseShapeError(
            f"Unexpected response body; {e.errors()[0]['msg']}; objectPath={path}",
            path=path,
        ) from e

    if not records:
        raise ResponseShapeError(
            "Unexpected response body; no video was created; objectPath=",
            path="",
        )

    return records
