"""Command-line client for camera capture and the garment catalog."""

import argparse
import asyncio
import logging
import mimetypes
from collections.abc import Callable, Sequence
from pathlib import Path
from uuid import UUID

from tryon_studio.adapters.opencv_camera import OpenCVMediaDevices, OpenCVVideoSurface
from tryon_studio.adapters.supabase_change_feed import SupabaseSessionChangeFeed
from tryon_studio.app_logging import configure_logging
from tryon_studio.config import Settings
from tryon_studio.containers import AppContainer, build_container
from tryon_studio.domain.capture import CapturedPhoto, FacingMode
from tryon_studio.domain.sessions import DressSelection, ImageUpload, SubmissionState
from tryon_studio.errors import CaptureStateError, DeviceError, PlaybackError
from tryon_studio.services.capture import CaptureSession, FrameCapture, PreviewRegistry
from tryon_studio.services.media import MediaAcquirer
from tryon_studio.services.observers import (
    RealtimeSessionObserver,
    SessionChangeFeed,
    SessionObserver,
)
from tryon_studio.services.playback import PlaybackGate
from tryon_studio.services.tryon import (
    CaptureControls,
    TryOnService,
    capture_validated_photo,
)

_ACTIONS = {"": "capture", "c": "capture", "s": "switch", "q": "cancel"}

CaptureFactory = Callable[[Settings, FacingMode], CaptureSession]


class ConsoleNotifier:
    """Prints notifications to stdout."""

    def success(self, message: str) -> None:
        print(message)

    def failure(self, message: str) -> None:
        print(f"Error: {message}")


class ConsoleControls:
    """Reads capture actions from the terminal."""

    def __init__(self, reader: Callable[[str], str] = input) -> None:
        self._reader = reader

    async def next_action(self) -> str:
        while True:
            raw = await asyncio.to_thread(
                self._reader, "[Enter] capture, [s] switch camera, [q] cancel: "
            )
            action = _ACTIONS.get(raw.strip().lower())
            if action:
                return action


def build_parser() -> argparse.ArgumentParser:
    """Return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="tryon-studio", description="Virtual Try-On Studio client."
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logs")
    commands = parser.add_subparsers(dest="command", required=True)

    capture = commands.add_parser("capture", help="Capture a photo and try on a dress")
    dress = capture.add_mutually_exclusive_group(required=True)
    dress.add_argument("--dress-id", type=UUID, help="Catalog dress id")
    dress.add_argument("--dress-file", type=Path, help="Custom garment image")
    capture.add_argument(
        "--facing", choices=["front", "back"], default="front", help="Camera to use"
    )
    capture.add_argument("--user-id", type=UUID, default=None)
    capture.add_argument(
        "--realtime",
        action="store_true",
        help="Wait for change notifications instead of polling",
    )

    commands.add_parser("dresses", help="List the garment catalog")

    seed = commands.add_parser(
        "seed-dresses", help="Upload catalog images named after each dress"
    )
    seed.add_argument("directory", type=Path)
    return parser


def build_capture_session(
    settings: Settings, facing_mode: FacingMode
) -> CaptureSession:
    """Create a capture session on the local OpenCV cameras."""
    return CaptureSession(
        acquirer=MediaAcquirer(
            OpenCVMediaDevices(
                device_indexes={
                    FacingMode.FRONT: settings.front_camera_index,
                    FacingMode.BACK: settings.back_camera_index,
                }
            )
        ),
        gate=PlaybackGate(OpenCVVideoSurface()),
        frames=FrameCapture(PreviewRegistry()),
        facing_mode=facing_mode,
    )


def main(
    argv: Sequence[str] | None = None,
    container: AppContainer | None = None,
    capture_factory: CaptureFactory = build_capture_session,
    controls: CaptureControls | None = None,
) -> int:
    """Entry point for the tryon-studio command."""
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    resolved = container or build_container()
    return asyncio.run(
        _dispatch(args, resolved, capture_factory, controls or ConsoleControls())
    )


async def _dispatch(
    args: argparse.Namespace,
    container: AppContainer,
    capture_factory: CaptureFactory,
    controls: CaptureControls,
) -> int:
    try:
        if args.command == "dresses":
            return _list_dresses(container)
        if args.command == "seed-dresses":
            return _seed_dresses(container, args.directory)
        return await _capture(container, args, capture_factory, controls)
    finally:
        await container.close_resources()


def _list_dresses(container: AppContainer) -> int:
    dresses = container.catalog_service.list_dresses()
    if not dresses:
        print("No dresses in the catalog.")
        return 0
    for dress in dresses:
        print(f"{dress.id}  {dress.name}  {dress.image_url}")
    return 0


def _seed_dresses(container: AppContainer, directory: Path) -> int:
    if not directory.is_dir():
        print(f"Error: {directory} is not a directory")
        return 1
    updated = container.catalog_service.seed_from_directory(directory)
    print(f"Updated {len(updated)} dress images.")
    for name in updated:
        print(f"- {name}")
    return 0


async def _capture(
    container: AppContainer,
    args: argparse.Namespace,
    capture_factory: CaptureFactory,
    controls: CaptureControls,
) -> int:
    facing = FacingMode.BACK if args.facing == "back" else FacingMode.FRONT
    session = capture_factory(container.settings, facing)
    notifier = ConsoleNotifier()
    async with session:
        try:
            photo = await capture_validated_photo(
                session, container.validation_service, controls, notifier
            )
        except DeviceError as exc:
            notifier.failure(exc.user_message)
            return 1
        except (PlaybackError, CaptureStateError) as exc:
            notifier.failure(str(exc))
            return 1
    if photo is None:
        print("Capture cancelled.")
        return 1

    if args.dress_file is not None:
        dress = DressSelection(
            upload=ImageUpload(
                content=args.dress_file.read_bytes(),
                filename=args.dress_file.name,
                content_type=mimetypes.guess_type(args.dress_file.name)[0]
                or "image/png",
            )
        )
    else:
        dress = DressSelection(dress_id=args.dress_id)

    if args.realtime:
        feed = await SupabaseSessionChangeFeed.create(
            container.settings.supabase_url, container.settings.supabase_service_key
        )
        try:
            return await _submit(container, notifier, photo, dress, args, feed)
        finally:
            await feed.close()
    return await _submit(container, notifier, photo, dress, args)


async def _submit(
    container: AppContainer,
    notifier: ConsoleNotifier,
    photo: CapturedPhoto,
    dress: DressSelection,
    args: argparse.Namespace,
    feed: SessionChangeFeed | None = None,
) -> int:
    observer: SessionObserver = container.polling_observer
    if feed is not None:
        observer = RealtimeSessionObserver(
            feed=feed,
            repository=container.session_repository,
            timeout_seconds=container.settings.observe_timeout_seconds,
        )
    service = TryOnService(
        submission=container.submission_service,
        observer=observer,
        notifier=notifier,
    )
    print("Generating your look... this may take 1 to 2 minutes.")
    outcome = await service.run(photo.as_upload(), dress, args.user_id)
    if outcome.state is SubmissionState.COMPLETED:
        print(f"Result: {outcome.result_image_url}")
        return 0
    return 1
