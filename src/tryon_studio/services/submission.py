"""Upload a validated photo and create the try-on session."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID, uuid4

from tryon_studio.domain.sessions import (
    DressSelection,
    ImageUpload,
    SessionStatus,
    TryOnSession,
)
from tryon_studio.errors import SessionError
from tryon_studio.services.dresses import DressCatalogService

logger = logging.getLogger(__name__)


class ImageStorage(Protocol):
    """Object storage for user and catalog images."""

    def upload(
        self, path: str, content: bytes, content_type: str, upsert: bool = False
    ) -> str:
        """Store bytes at a path and return the public URL."""


class TryOnSessionRepository(Protocol):
    """Persistence interface for try-on sessions."""

    def create_session(
        self,
        user_id: UUID | None,
        model_image_url: str,
        dress_image_url: str,
        status: SessionStatus,
    ) -> TryOnSession:
        """Create a session row and return it."""

    def get_session(self, session_id: UUID) -> TryOnSession | None:
        """Return a session by id, if present."""


@dataclass
class SubmissionService:
    """Stores both images and creates a pending session."""

    storage: ImageStorage
    session_repository: TryOnSessionRepository
    catalog: DressCatalogService

    def submit(
        self,
        photo: ImageUpload,
        dress: DressSelection,
        user_id: UUID | None = None,
    ) -> TryOnSession:
        """Upload inputs and return the newly created pending session."""
        model_url = self.storage.upload(
            f"model-images/{uuid4()}-{photo.filename}",
            photo.content,
            photo.content_type,
        )
        dress_url = self._resolve_dress_url(dress)
        session = self.session_repository.create_session(
            user_id=user_id,
            model_image_url=model_url,
            dress_image_url=dress_url,
            status=SessionStatus.PENDING,
        )
        logger.info("Created try-on session %s", session.id)
        return session

    def _resolve_dress_url(self, dress: DressSelection) -> str:
        if dress.upload is not None:
            return self.storage.upload(
                f"dress-uploads/{uuid4()}-{dress.upload.filename}",
                dress.upload.content,
                dress.upload.content_type,
            )
        option = self.catalog.get_dress(dress.dress_id)
        if option is None:
            raise SessionError(f"Unknown dress option {dress.dress_id}")
        return option.image_url
