"""Error taxonomy for the try-on flow."""

from enum import StrEnum


class TryOnError(Exception):
    """Base class for errors scoped to a single user action."""


class DeviceErrorKind(StrEnum):
    """Closed set of camera acquisition failure categories."""

    PERMISSION_DENIED = "permission-denied"
    NO_DEVICE = "no-device"
    UNSUPPORTED = "unsupported"
    OVERCONSTRAINED = "overconstrained"
    UNKNOWN = "unknown"


_DEVICE_MESSAGES: dict[DeviceErrorKind, str] = {
    DeviceErrorKind.PERMISSION_DENIED: (
        "Camera access denied. Please allow camera permissions and try again."
    ),
    DeviceErrorKind.NO_DEVICE: (
        "No camera found. Please connect a camera and try again."
    ),
    DeviceErrorKind.UNSUPPORTED: "Camera not supported on this device.",
    DeviceErrorKind.OVERCONSTRAINED: (
        "Camera constraints not supported. Trying basic camera access..."
    ),
    DeviceErrorKind.UNKNOWN: (
        "Failed to access camera. Check permissions and try again."
    ),
}


class DeviceError(TryOnError):
    """Camera acquisition failure with a classified kind."""

    def __init__(self, kind: DeviceErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(detail or kind.value)

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the user."""
        return _DEVICE_MESSAGES[self.kind]

    @property
    def is_terminal(self) -> bool:
        """Whether the acquisition attempt should stop immediately."""
        return self.kind in {
            DeviceErrorKind.PERMISSION_DENIED,
            DeviceErrorKind.UNSUPPORTED,
        }


class PlaybackError(TryOnError):
    """Video playback never started on the attached stream."""


class CaptureStateError(TryOnError):
    """A capture operation was requested in a state that does not allow it."""


class ValidationError(TryOnError):
    """A captured photo was rejected or could not be analyzed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class UploadError(TryOnError):
    """Object storage rejected an upload."""


class SessionError(TryOnError):
    """A try-on session could not be created or read."""


class ObservationTimeoutError(TryOnError):
    """A session did not reach a terminal state within the configured bound."""


class CatalogError(TryOnError):
    """The garment catalog could not be updated."""
