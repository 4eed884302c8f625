"""OpenCV-backed camera devices and preview surface."""

import asyncio
import logging
from dataclasses import dataclass, field

import cv2
import numpy as np

from tryon_studio.domain.capture import FacingMode, VideoConstraints
from tryon_studio.services.media import MediaAccessError, MediaDevices, MediaStream

logger = logging.getLogger(__name__)


@dataclass
class OpenCVTrack:
    """Video track wrapping a cv2.VideoCapture."""

    capture: cv2.VideoCapture
    ready_state: str = "live"

    def stop(self) -> None:
        """Release the camera device."""
        if self.ready_state == "live":
            self.capture.release()
        self.ready_state = "ended"


@dataclass
class OpenCVStream:
    """Single-track stream from one OpenCV device."""

    track: OpenCVTrack

    def get_tracks(self) -> list[OpenCVTrack]:
        return [self.track]


@dataclass
class OpenCVMediaDevices(MediaDevices):
    """Opens cameras by device index, mapping facing modes to indexes."""

    device_indexes: dict[FacingMode, int]
    max_scan: int = 4

    async def get_user_media(self, constraints: VideoConstraints) -> OpenCVStream:
        """Open a camera satisfying the constraints."""
        return await asyncio.to_thread(self._open, constraints)

    def _open(self, constraints: VideoConstraints) -> OpenCVStream:
        if constraints.facing_mode is not None:
            candidates = [self.device_indexes[constraints.facing_mode]]
        else:
            candidates = list(range(self.max_scan))
        for index in candidates:
            capture = cv2.VideoCapture(index)
            if not capture.isOpened():
                capture.release()
                continue
            try:
                _apply_constraints(capture, constraints)
            except MediaAccessError:
                capture.release()
                raise
            logger.info("Opened camera %s", index)
            return OpenCVStream(track=OpenCVTrack(capture=capture))
        raise MediaAccessError("NotFoundError", f"No camera at indexes {candidates}")


def _apply_constraints(
    capture: cv2.VideoCapture, constraints: VideoConstraints
) -> None:
    if constraints.ideal_width:
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.ideal_width)
    if constraints.ideal_height:
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.ideal_height)
    width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
    height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
    if (constraints.min_width and width < constraints.min_width) or (
        constraints.min_height and height < constraints.min_height
    ):
        raise MediaAccessError(
            "OverconstrainedError", f"Camera resolution {width}x{height} too small"
        )


@dataclass
class OpenCVVideoSurface:
    """Preview surface that pulls frames from the attached OpenCV stream."""

    _capture: cv2.VideoCapture | None = field(default=None, init=False)
    _last_frame: np.ndarray | None = field(default=None, init=False)

    @property
    def video_width(self) -> int:
        if self._capture is None:
            return 0
        return int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)

    @property
    def video_height(self) -> int:
        if self._capture is None:
            return 0
        return int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)

    def attach(self, stream: MediaStream | None) -> None:
        """Attach the first track of a stream, or detach."""
        self._last_frame = None
        if stream is None:
            self._capture = None
            return
        track = stream.get_tracks()[0]
        self._capture = track.capture

    async def play(self) -> None:
        """Read one frame to confirm the device is delivering."""
        if self._capture is None:
            raise RuntimeError("No stream attached")
        ok, frame = await asyncio.to_thread(self._capture.read)
        if not ok or frame is None:
            raise RuntimeError("Camera delivered no frames")
        self._last_frame = frame

    def read_frame(self) -> np.ndarray | None:
        """Return the newest frame, falling back to the last one seen."""
        if self._capture is None:
            return self._last_frame
        ok, frame = self._capture.read()
        if ok and frame is not None:
            self._last_frame = frame
        return self._last_frame
