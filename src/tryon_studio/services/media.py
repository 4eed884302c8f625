"""Camera stream acquisition with constraint fallback."""

import logging
from dataclasses import dataclass
from typing import Protocol

from tryon_studio.domain.capture import (
    ANY_CAMERA,
    FacingMode,
    VideoConstraints,
    constraint_ladder,
)
from tryon_studio.errors import DeviceError, DeviceErrorKind

logger = logging.getLogger(__name__)


class MediaTrack(Protocol):
    """A single track of a media stream."""

    @property
    def ready_state(self) -> str:
        """Return "live" while the track holds the device, else "ended"."""

    def stop(self) -> None:
        """Release the underlying device."""


class MediaStream(Protocol):
    """A live camera stream."""

    def get_tracks(self) -> list[MediaTrack]:
        """Return the tracks that make up the stream."""


class MediaDevices(Protocol):
    """Interface to the host's camera devices."""

    async def get_user_media(self, constraints: VideoConstraints) -> MediaStream:
        """Open a stream satisfying the constraints or raise."""


class MediaAccessError(Exception):
    """Failure reported by a media device adapter, tagged with a failure name."""

    def __init__(self, name: str, message: str = "") -> None:
        self.name = name
        super().__init__(message or name)


_NAMED_KINDS: dict[str, DeviceErrorKind] = {
    "NotAllowedError": DeviceErrorKind.PERMISSION_DENIED,
    "PermissionDeniedError": DeviceErrorKind.PERMISSION_DENIED,
    "SecurityError": DeviceErrorKind.PERMISSION_DENIED,
    "NotFoundError": DeviceErrorKind.NO_DEVICE,
    "DevicesNotFoundError": DeviceErrorKind.NO_DEVICE,
    "NotReadableError": DeviceErrorKind.NO_DEVICE,
    "NotSupportedError": DeviceErrorKind.UNSUPPORTED,
    "OverconstrainedError": DeviceErrorKind.OVERCONSTRAINED,
    "ConstraintNotSatisfiedError": DeviceErrorKind.OVERCONSTRAINED,
}


def classify_device_error(exc: BaseException) -> DeviceError:
    """Map an acquisition failure onto a DeviceError kind."""
    if isinstance(exc, DeviceError):
        return exc
    if isinstance(exc, MediaAccessError):
        kind = _NAMED_KINDS.get(exc.name, DeviceErrorKind.UNKNOWN)
    elif isinstance(exc, PermissionError):
        kind = DeviceErrorKind.PERMISSION_DENIED
    elif isinstance(exc, FileNotFoundError | LookupError):
        kind = DeviceErrorKind.NO_DEVICE
    elif isinstance(exc, NotImplementedError):
        kind = DeviceErrorKind.UNSUPPORTED
    else:
        kind = DeviceErrorKind.UNKNOWN
    return DeviceError(kind, detail=str(exc) or None)


@dataclass(frozen=True)
class AcquiredStream:
    """A stream together with the constraints that produced it."""

    stream: MediaStream
    constraints: VideoConstraints


@dataclass
class MediaAcquirer:
    """Requests a camera stream, falling back to less specific constraints."""

    devices: MediaDevices

    async def acquire(self, facing_mode: FacingMode) -> AcquiredStream:
        """Return the first stream the constraint ladder yields."""
        ladder = constraint_ladder(facing_mode)
        last_error: DeviceError | None = None
        index = 0
        relaxed = False
        while index < len(ladder):
            constraints = ladder[index]
            try:
                stream = await self.devices.get_user_media(constraints)
            except Exception as exc:  # noqa: BLE001
                error = classify_device_error(exc)
                logger.warning(
                    "Camera request failed (%s) with constraints %s",
                    error.kind,
                    constraints,
                )
                if error.is_terminal:
                    raise error from exc
                last_error = error
                if (
                    error.kind is DeviceErrorKind.OVERCONSTRAINED
                    and not relaxed
                    and not constraints.is_unconstrained
                ):
                    relaxed = True
                    index = ladder.index(ANY_CAMERA)
                    continue
                index += 1
                continue
            logger.info("Camera stream acquired with constraints %s", constraints)
            return AcquiredStream(stream=stream, constraints=constraints)

        raise last_error or DeviceError(
            DeviceErrorKind.UNKNOWN, "Could not access camera with any configuration"
        )


def stop_stream(stream: MediaStream | None) -> None:
    """Stop every track of a stream."""
    if stream is None:
        return
    for track in stream.get_tracks():
        track.stop()


def live_track_count(stream: MediaStream | None) -> int:
    """Return how many tracks of a stream still hold the device."""
    if stream is None:
        return 0
    return sum(1 for track in stream.get_tracks() if track.ready_state == "live")
