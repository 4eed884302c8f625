"""Tests for camera acquisition and error classification."""

import asyncio

import pytest

from tryon_studio.domain.capture import ANY_CAMERA, FacingMode, constraint_ladder
from tryon_studio.errors import DeviceError, DeviceErrorKind
from tryon_studio.services.media import (
    MediaAccessError,
    MediaAcquirer,
    classify_device_error,
    live_track_count,
    stop_stream,
)
from tests.conftest import FakeMediaDevices, FakeStream


def test_first_success_stops_the_ladder() -> None:
    stream = FakeStream()
    devices = FakeMediaDevices(outcomes=[stream])

    acquired = asyncio.run(MediaAcquirer(devices).acquire(FacingMode.BACK))

    assert acquired.stream is stream
    assert devices.requests == [constraint_ladder(FacingMode.BACK)[0]]


def test_fallback_tries_decreasing_specificity() -> None:
    devices = FakeMediaDevices(
        outcomes=[
            MediaAccessError("NotFoundError"),
            MediaAccessError("NotReadableError"),
            FakeStream(),
        ]
    )

    acquired = asyncio.run(MediaAcquirer(devices).acquire(FacingMode.FRONT))

    ladder = constraint_ladder(FacingMode.FRONT)
    assert devices.requests == ladder[:3]
    assert acquired.constraints == ladder[2]


def test_permission_denied_is_terminal() -> None:
    devices = FakeMediaDevices(outcomes=[MediaAccessError("NotAllowedError")])

    with pytest.raises(DeviceError) as excinfo:
        asyncio.run(MediaAcquirer(devices).acquire(FacingMode.FRONT))

    assert excinfo.value.kind is DeviceErrorKind.PERMISSION_DENIED
    assert len(devices.requests) == 1


def test_unsupported_is_terminal() -> None:
    devices = FakeMediaDevices(outcomes=[NotImplementedError("no camera api")])

    with pytest.raises(DeviceError) as excinfo:
        asyncio.run(MediaAcquirer(devices).acquire(FacingMode.FRONT))

    assert excinfo.value.kind is DeviceErrorKind.UNSUPPORTED
    assert len(devices.requests) == 1


def test_overconstrained_retries_once_with_any_camera() -> None:
    devices = FakeMediaDevices(
        outcomes=[MediaAccessError("OverconstrainedError"), FakeStream()]
    )

    acquired = asyncio.run(MediaAcquirer(devices).acquire(FacingMode.BACK))

    assert devices.requests == [constraint_ladder(FacingMode.BACK)[0], ANY_CAMERA]
    assert acquired.constraints == ANY_CAMERA


def test_all_attempts_failing_raises_last_error() -> None:
    devices = FakeMediaDevices(
        outcomes=[MediaAccessError("NotFoundError") for _ in range(4)]
    )

    with pytest.raises(DeviceError) as excinfo:
        asyncio.run(MediaAcquirer(devices).acquire(FacingMode.FRONT))

    assert excinfo.value.kind is DeviceErrorKind.NO_DEVICE
    assert len(devices.requests) == 4


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (MediaAccessError("NotAllowedError"), DeviceErrorKind.PERMISSION_DENIED),
        (PermissionError("denied"), DeviceErrorKind.PERMISSION_DENIED),
        (MediaAccessError("NotFoundError"), DeviceErrorKind.NO_DEVICE),
        (FileNotFoundError("/dev/video0"), DeviceErrorKind.NO_DEVICE),
        (MediaAccessError("NotSupportedError"), DeviceErrorKind.UNSUPPORTED),
        (MediaAccessError("OverconstrainedError"), DeviceErrorKind.OVERCONSTRAINED),
        (MediaAccessError("AbortError"), DeviceErrorKind.UNKNOWN),
        (RuntimeError("boom"), DeviceErrorKind.UNKNOWN),
    ],
)
def test_classify_device_error(error: Exception, kind: DeviceErrorKind) -> None:
    assert classify_device_error(error).kind is kind


def test_device_error_has_user_message() -> None:
    error = DeviceError(DeviceErrorKind.PERMISSION_DENIED)

    assert "allow camera permissions" in error.user_message
    assert error.is_terminal


def test_stop_stream_ends_every_track() -> None:
    stream = FakeStream(tracks=[*FakeStream().tracks, *FakeStream().tracks])

    stop_stream(stream)

    assert live_track_count(stream) == 0
