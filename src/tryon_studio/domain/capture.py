"""Domain models for camera capture."""

from dataclasses import dataclass
from enum import StrEnum

from tryon_studio.domain.sessions import ImageUpload


class FacingMode(StrEnum):
    """Which physical camera a capture request targets."""

    FRONT = "user"
    BACK = "environment"

    def toggled(self) -> "FacingMode":
        """Return the opposite facing mode."""
        return FacingMode.BACK if self is FacingMode.FRONT else FacingMode.FRONT


class CaptureState(StrEnum):
    """Lifecycle of a capture session."""

    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    CAPTURED = "captured"
    ERROR = "error"


@dataclass(frozen=True)
class VideoConstraints:
    """A single camera acquisition request."""

    facing_mode: FacingMode | None = None
    ideal_width: int | None = None
    ideal_height: int | None = None
    min_width: int | None = None
    min_height: int | None = None

    @property
    def is_unconstrained(self) -> bool:
        """Whether any available camera satisfies this request."""
        return self == ANY_CAMERA


ANY_CAMERA = VideoConstraints()


def constraint_ladder(facing_mode: FacingMode) -> list[VideoConstraints]:
    """Return acquisition requests ordered from most to least specific."""
    return [
        VideoConstraints(
            facing_mode=facing_mode,
            ideal_width=1280,
            ideal_height=720,
            min_width=640,
            min_height=480,
        ),
        VideoConstraints(facing_mode=facing_mode, ideal_width=640, ideal_height=480),
        VideoConstraints(facing_mode=facing_mode),
        ANY_CAMERA,
    ]


@dataclass(frozen=True)
class CapturedPhoto:
    """A still image taken from the live camera."""

    content: bytes
    filename: str
    width: int
    height: int
    preview_ref: str
    content_type: str = "image/jpeg"

    def as_upload(self) -> ImageUpload:
        """Return the photo as an upload payload."""
        return ImageUpload(
            content=self.content, filename=self.filename, content_type=self.content_type
        )
