"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import numpy as np
import pytest

from tryon_studio.config import Settings
from tryon_studio.containers import AppContainer
from tryon_studio.domain.capture import VideoConstraints
from tryon_studio.domain.dresses import DressOption
from tryon_studio.domain.sessions import SessionStatus, TryOnSession
from tryon_studio.errors import SessionError, UploadError
from tryon_studio.services.dresses import DressCatalogService, DressRepository
from tryon_studio.services.media import MediaDevices, MediaStream
from tryon_studio.services.observers import (
    ErrorCallback,
    PollingSessionObserver,
    SessionCallback,
    SessionChangeFeed,
    Unsubscribe,
)
from tryon_studio.services.submission import (
    ImageStorage,
    SubmissionService,
    TryOnSessionRepository,
)
from tryon_studio.services.validation import PhotoValidationService, VisionClient


@dataclass
class FakeTrack:
    """Media track that records whether it was stopped."""

    ready_state: str = "live"

    def stop(self) -> None:
        self.ready_state = "ended"


@dataclass
class FakeStream:
    """Single-track media stream."""

    tracks: list[FakeTrack] = field(default_factory=lambda: [FakeTrack()])

    def get_tracks(self) -> list[FakeTrack]:
        return self.tracks

    @property
    def live(self) -> int:
        return sum(1 for track in self.tracks if track.ready_state == "live")


@dataclass
class FakeMediaDevices(MediaDevices):
    """Returns scripted outcomes for each camera request."""

    outcomes: list[object] = field(default_factory=list)
    requests: list[VideoConstraints] = field(default_factory=list)
    streams: list[FakeStream] = field(default_factory=list)

    async def get_user_media(self, constraints: VideoConstraints) -> FakeStream:
        self.requests.append(constraints)
        outcome = self.outcomes.pop(0) if self.outcomes else FakeStream()
        if isinstance(outcome, BaseException):
            raise outcome
        self.streams.append(outcome)
        return outcome


@dataclass
class FakeSurface:
    """Preview surface whose play() fails a fixed number of times."""

    play_failures: int = 0
    width: int = 640
    height: int = 480
    frame: np.ndarray | None = field(
        default_factory=lambda: np.zeros((480, 640, 3), dtype=np.uint8)
    )
    attached: MediaStream | None = None
    play_calls: int = 0

    @property
    def video_width(self) -> int:
        return self.width

    @property
    def video_height(self) -> int:
        return self.height

    def attach(self, stream: MediaStream | None) -> None:
        self.attached = stream

    async def play(self) -> None:
        self.play_calls += 1
        if self.play_calls <= self.play_failures:
            raise RuntimeError("autoplay blocked")

    def read_frame(self) -> np.ndarray | None:
        return self.frame


@dataclass
class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@dataclass
class InMemoryStorage(ImageStorage):
    """Storage that keeps uploads in memory."""

    objects: dict[str, bytes] = field(default_factory=dict)
    fail: bool = False

    def upload(
        self, path: str, content: bytes, content_type: str, upsert: bool = False
    ) -> str:
        if self.fail:
            raise UploadError("Failed to upload image: bucket unavailable")
        self.objects[path] = content
        return f"https://storage.test/tryon-images/{path}"


@dataclass
class InMemoryTryOnSessionRepository(TryOnSessionRepository):
    """Session repository whose reads walk through scripted statuses."""

    sessions: dict[UUID, TryOnSession] = field(default_factory=dict)
    scripted: list[dict[str, object]] = field(default_factory=list)
    reads: int = 0

    def create_session(
        self,
        user_id: UUID | None,
        model_image_url: str,
        dress_image_url: str,
        status: SessionStatus,
    ) -> TryOnSession:
        now = datetime.now(tz=UTC)
        session = TryOnSession(
            id=uuid4(),
            user_id=user_id,
            model_image_url=model_image_url,
            dress_image_url=dress_image_url,
            status=status,
            result_image_url=None,
            result_message=None,
            created_at=now,
            updated_at=now,
        )
        self.sessions[session.id] = session
        return session

    def get_session(self, session_id: UUID) -> TryOnSession | None:
        self.reads += 1
        session = self.sessions.get(session_id)
        if session is None:
            return None
        if self.scripted:
            changes = self.scripted.pop(0)
            session = replace(session, **changes)
            self.sessions[session_id] = session
        return session


@dataclass
class InMemoryDressRepository(DressRepository):
    """In-memory garment catalog."""

    dresses: list[DressOption] = field(default_factory=list)

    def add(self, name: str, image_url: str = "") -> DressOption:
        dress = DressOption(
            id=uuid4(),
            name=name,
            image_url=image_url,
            created_at=datetime.now(tz=UTC),
            updated_at=None,
        )
        self.dresses.append(dress)
        return dress

    def list_dresses(self) -> list[DressOption]:
        return list(self.dresses)

    def get_dress(self, dress_id: UUID) -> DressOption | None:
        return next((dress for dress in self.dresses if dress.id == dress_id), None)

    def update_image_url(self, dress_id: UUID, image_url: str) -> None:
        self.dresses = [
            DressOption(
                id=dress.id,
                name=dress.name,
                image_url=image_url,
                created_at=dress.created_at,
                updated_at=datetime.now(tz=UTC),
            )
            if dress.id == dress_id
            else dress
            for dress in self.dresses
        ]


def vision_payload(
    labels: list[str] | None = None,
    faces: int = 1,
    pan: float = 0.0,
    tilt: float = 0.0,
    roll: float = 0.0,
    safe_search: dict[str, str] | None = None,
) -> dict[str, object]:
    """Build a vision response in the service's wire format."""
    return {
        "responses": [
            {
                "labelAnnotations": [
                    {"description": label, "score": 0.9}
                    for label in (labels if labels is not None else ["Baby", "Dress"])
                ],
                "faceAnnotations": [
                    {"panAngle": pan, "tiltAngle": tilt, "rollAngle": roll}
                    for _ in range(faces)
                ],
                "safeSearchAnnotation": safe_search
                or {"adult": "VERY_UNLIKELY", "violence": "UNLIKELY", "racy": "UNLIKELY"},
            }
        ]
    }


@dataclass
class FakeVisionClient(VisionClient):
    """Vision client returning queued payloads or raising."""

    payloads: list[object] = field(default_factory=lambda: [vision_payload()])
    calls: list[tuple[str, list[dict[str, object]]]] = field(default_factory=list)

    async def annotate(
        self, image_content: str, features: list[dict[str, object]]
    ) -> dict[str, object]:
        self.calls.append((image_content, features))
        payload = self.payloads.pop(0) if len(self.payloads) > 1 else self.payloads[0]
        if isinstance(payload, BaseException):
            raise payload
        return payload


class ScriptedControls:
    """Capture controls that replay a fixed list of actions."""

    def __init__(self, actions: list[str]) -> None:
        self.actions = actions

    async def next_action(self) -> str:
        return self.actions.pop(0)


@dataclass
class RecordingNotifier:
    """Notifier that keeps every message."""

    successes: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    def success(self, message: str) -> None:
        self.successes.append(message)

    def failure(self, message: str) -> None:
        self.failures.append(message)


@dataclass
class FakeChangeFeed(SessionChangeFeed):
    """Change feed that pushes scripted sessions after subscribing."""

    pushes: list[TryOnSession | SessionError] = field(default_factory=list)
    subscribe_error: SessionError | None = None
    subscribed: list[UUID] = field(default_factory=list)
    unsubscribed: int = 0

    async def subscribe(
        self, session_id: UUID, callback: SessionCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.subscribed.append(session_id)
        for push in self.pushes:
            if isinstance(push, SessionError):
                on_error(push)
            else:
                callback(push)

        async def unsubscribe() -> None:
            self.unsubscribed += 1

        return unsubscribe


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        google_vision_api_key="vision-key",
    )


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def session_repository() -> InMemoryTryOnSessionRepository:
    return InMemoryTryOnSessionRepository()


@pytest.fixture
def dress_repository() -> InMemoryDressRepository:
    return InMemoryDressRepository()


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def container(
    settings: Settings,
    storage: InMemoryStorage,
    session_repository: InMemoryTryOnSessionRepository,
    dress_repository: InMemoryDressRepository,
    vision_client: FakeVisionClient,
) -> AppContainer:
    catalog_service = DressCatalogService(repository=dress_repository, storage=storage)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        storage=storage,
        session_repository=session_repository,
        catalog_service=catalog_service,
        validation_service=PhotoValidationService(client=vision_client),
        submission_service=SubmissionService(
            storage=storage,
            session_repository=session_repository,
            catalog=catalog_service,
        ),
        polling_observer=PollingSessionObserver(
            repository=session_repository,
            interval_seconds=0,
            max_attempts=5,
            sleep=RecordingSleep(),
        ),
        close_resources=close_resources,
    )
