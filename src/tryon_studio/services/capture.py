"""Frame capture and the capture session state machine."""

import logging
import time
from dataclasses import dataclass, field
from types import TracebackType
from uuid import uuid4

import cv2

from tryon_studio.domain.capture import CapturedPhoto, CaptureState, FacingMode
from tryon_studio.errors import CaptureStateError, DeviceError, PlaybackError
from tryon_studio.services.media import (
    MediaAcquirer,
    MediaStream,
    live_track_count,
    stop_stream,
)
from tryon_studio.services.playback import PlaybackGate, VideoSurface

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 640
DEFAULT_HEIGHT = 480
JPEG_QUALITY = 90


class PreviewRegistry:
    """Issues and revokes local preview references for image bytes."""

    def __init__(self) -> None:
        self._previews: dict[str, bytes] = {}

    def create(self, content: bytes) -> str:
        """Register image bytes and return a preview reference."""
        ref = f"blob:{uuid4()}"
        self._previews[ref] = content
        return ref

    def resolve(self, ref: str) -> bytes | None:
        """Return the bytes behind a preview reference, if still valid."""
        return self._previews.get(ref)

    def revoke(self, ref: str) -> None:
        """Release a preview reference."""
        self._previews.pop(ref, None)

    @property
    def outstanding(self) -> int:
        """Number of references not yet revoked."""
        return len(self._previews)


@dataclass
class FrameCapture:
    """Copies the visible video frame into an encoded still."""

    previews: PreviewRegistry
    quality: int = JPEG_QUALITY

    def capture(self, surface: VideoSurface) -> CapturedPhoto:
        """Snapshot the surface at its native resolution as a JPEG."""
        frame = surface.read_frame()
        if frame is None:
            raise CaptureStateError("No video frame available to capture")
        width = surface.video_width or DEFAULT_WIDTH
        height = surface.video_height or DEFAULT_HEIGHT
        if frame.shape[1] != width or frame.shape[0] != height:
            frame = cv2.resize(frame, (width, height))
        ok, encoded = cv2.imencode(
            ".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self.quality]
        )
        if not ok:
            raise CaptureStateError("Failed to encode captured frame")
        content = encoded.tobytes()
        return CapturedPhoto(
            content=content,
            filename=f"camera-capture-{int(time.time() * 1000)}.jpg",
            width=width,
            height=height,
            preview_ref=self.previews.create(content),
        )


@dataclass
class CaptureSession:
    """Owns one camera stream and at most one captured preview."""

    acquirer: MediaAcquirer
    gate: PlaybackGate
    frames: FrameCapture
    facing_mode: FacingMode = FacingMode.FRONT
    state: CaptureState = field(default=CaptureState.IDLE, init=False)
    error: DeviceError | PlaybackError | None = field(default=None, init=False)
    captured: CapturedPhoto | None = field(default=None, init=False)
    _stream: MediaStream | None = field(default=None, init=False)

    @property
    def previews(self) -> PreviewRegistry:
        return self.frames.previews

    @property
    def is_ready(self) -> bool:
        """Whether the capture control may be used."""
        return self.state is CaptureState.ACTIVE and self.gate.ready

    @property
    def active_tracks(self) -> int:
        return live_track_count(self._stream)

    async def start(self) -> None:
        """Acquire a stream and wait for the preview to play."""
        self._release_stream()
        self.state = CaptureState.STARTING
        self.error = None
        try:
            acquired = await self.acquirer.acquire(self.facing_mode)
            self._stream = acquired.stream
            await self.gate.open(acquired.stream)
        except (DeviceError, PlaybackError) as exc:
            logger.exception("Camera start failed")
            self._release_stream()
            self.error = exc
            self.state = CaptureState.ERROR
            raise
        except BaseException:
            self._release_stream()
            self.state = CaptureState.IDLE
            raise
        self.state = CaptureState.ACTIVE

    def capture(self) -> CapturedPhoto:
        """Take a still from the live preview and release the camera."""
        if not self.is_ready:
            raise CaptureStateError("Camera preview is not ready")
        self._revoke_preview()
        try:
            photo = self.frames.capture(self.gate.surface)
        except BaseException:
            self.state = CaptureState.IDLE
            raise
        finally:
            self._release_stream()
        self.captured = photo
        self.state = CaptureState.CAPTURED
        return photo

    async def retake(self) -> None:
        """Discard the current capture and restart the camera."""
        self._revoke_preview()
        await self.start()

    async def switch_camera(self) -> None:
        """Toggle facing mode, re-acquiring if the camera is running."""
        self.facing_mode = self.facing_mode.toggled()
        if self.state in {CaptureState.ACTIVE, CaptureState.STARTING}:
            self._release_stream()
            await self.start()

    def confirm(self) -> CapturedPhoto:
        """Hand out the captured photo and release its preview."""
        if self.captured is None:
            raise CaptureStateError("Nothing has been captured")
        photo = self.captured
        self._revoke_preview()
        self.state = CaptureState.IDLE
        return photo

    def stop(self) -> None:
        """Stop the camera from any state."""
        self._release_stream()
        if self.state in {CaptureState.ACTIVE, CaptureState.STARTING}:
            self.state = CaptureState.IDLE

    def cancel(self) -> None:
        """Stop the camera and drop any captured preview."""
        self._release_stream()
        self._revoke_preview()
        self.error = None
        self.state = CaptureState.IDLE

    async def __aenter__(self) -> "CaptureSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cancel()

    def _release_stream(self) -> None:
        if self._stream is not None:
            stop_stream(self._stream)
            logger.info("Camera tracks stopped")
        self._stream = None
        self.gate.close()

    def _revoke_preview(self) -> None:
        if self.captured is not None:
            self.previews.revoke(self.captured.preview_ref)
        self.captured = None
