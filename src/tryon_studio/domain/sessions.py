"""Domain models for try-on sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class SessionStatus(StrEnum):
    """Status of a persisted try-on session."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transitions occur after this status."""
        return self in {SessionStatus.COMPLETED, SessionStatus.FAILED}


class SubmissionState(StrEnum):
    """Client-side lifecycle of a try-on request."""

    IDLE = "idle"
    UPLOADING = "uploading"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class TryOnSession:
    """Represents a persisted try-on session."""

    id: UUID
    user_id: UUID | None
    model_image_url: str
    dress_image_url: str
    status: SessionStatus
    result_image_url: str | None
    result_message: str | None
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class ImageUpload:
    """Image bytes supplied for upload."""

    content: bytes
    filename: str
    content_type: str = "image/jpeg"


@dataclass(frozen=True)
class DressSelection:
    """Either a catalog dress id or an uploaded garment image."""

    dress_id: UUID | None = None
    upload: ImageUpload | None = None

    def __post_init__(self) -> None:
        if (self.dress_id is None) == (self.upload is None):
            raise ValueError("Select exactly one of a catalog dress or an upload")
