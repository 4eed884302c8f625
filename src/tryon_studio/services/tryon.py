"""Try-on submission lifecycle: upload, create, observe, notify."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from tryon_studio.domain.capture import CapturedPhoto
from tryon_studio.domain.sessions import (
    DressSelection,
    ImageUpload,
    SessionStatus,
    SubmissionState,
    TryOnSession,
)
from tryon_studio.errors import ObservationTimeoutError, SessionError, UploadError
from tryon_studio.services.capture import CaptureSession
from tryon_studio.services.observers import SessionObserver
from tryon_studio.services.submission import SubmissionService
from tryon_studio.services.validation import (
    REJECTION_MESSAGE,
    PhotoValidationService,
)

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Virtual try-on completed!"
DEFAULT_FAILURE_MESSAGE = "Something went wrong. Please try again."


class Notifier(Protocol):
    """User-facing notifications."""

    def success(self, message: str) -> None:
        """Report a successful outcome."""

    def failure(self, message: str) -> None:
        """Report a failed outcome."""


@dataclass(frozen=True)
class TryOnOutcome:
    """Result of one try-on attempt."""

    state: SubmissionState
    session: TryOnSession | None = None
    message: str | None = None

    @property
    def result_image_url(self) -> str | None:
        if self.state is SubmissionState.COMPLETED and self.session is not None:
            return self.session.result_image_url
        return None


_STATE_BY_STATUS = {
    SessionStatus.PENDING: SubmissionState.PENDING,
    SessionStatus.PROCESSING: SubmissionState.PROCESSING,
    SessionStatus.COMPLETED: SubmissionState.COMPLETED,
    SessionStatus.FAILED: SubmissionState.FAILED,
}


@dataclass
class TryOnService:
    """Drives one try-on request from upload to a terminal session."""

    submission: SubmissionService
    observer: SessionObserver
    notifier: Notifier
    state: SubmissionState = field(default=SubmissionState.IDLE, init=False)

    async def run(
        self,
        photo: ImageUpload,
        dress: DressSelection,
        user_id: UUID | None = None,
    ) -> TryOnOutcome:
        """Submit a validated photo and wait for the composite result."""
        self.state = SubmissionState.UPLOADING
        try:
            session = await asyncio.to_thread(
                self.submission.submit, photo, dress, user_id
            )
            self.state = SubmissionState.PENDING
            final = await self.observer.observe(session.id, self._track)
        except (UploadError, SessionError, ObservationTimeoutError) as exc:
            logger.exception("Try-on attempt aborted")
            self.state = SubmissionState.IDLE
            message = str(exc) or DEFAULT_FAILURE_MESSAGE
            self.notifier.failure(message)
            return TryOnOutcome(state=SubmissionState.IDLE, message=message)

        self.state = _STATE_BY_STATUS[final.status]
        if final.status is SessionStatus.COMPLETED:
            self.notifier.success(SUCCESS_MESSAGE)
            return TryOnOutcome(
                state=self.state, session=final, message=SUCCESS_MESSAGE
            )
        message = final.result_message or DEFAULT_FAILURE_MESSAGE
        self.notifier.failure(message)
        return TryOnOutcome(state=self.state, session=final, message=message)

    def _track(self, session: TryOnSession) -> None:
        self.state = _STATE_BY_STATUS[session.status]


class CaptureControls(Protocol):
    """Source of user actions while the camera preview is live."""

    async def next_action(self) -> str:
        """Return "capture", "switch" or "cancel"."""


async def capture_validated_photo(
    session: CaptureSession,
    validator: PhotoValidationService,
    controls: CaptureControls,
    notifier: Notifier,
) -> CapturedPhoto | None:
    """Run the camera until a captured photo passes validation or the user quits.

    Device and playback errors propagate to the caller; the camera is released
    before they do.
    """
    await session.start()
    while True:
        action = await controls.next_action()
        if action == "cancel":
            session.cancel()
            return None
        if action == "switch":
            await session.switch_camera()
            continue
        if action != "capture":
            session.cancel()
            raise ValueError(f"Unknown capture action: {action!r}")
        photo = session.capture()
        result = await validator.validate(photo.content)
        if result.is_valid:
            notifier.success("Photo validated!")
            return session.confirm()
        notifier.failure(result.reason or REJECTION_MESSAGE)
        await session.retake()
