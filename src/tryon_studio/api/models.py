"""Response models for the HTTP API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from tryon_studio.domain.dresses import DressOption
from tryon_studio.domain.sessions import TryOnSession


class DressOut(BaseModel):
    """Catalog entry."""

    id: UUID
    name: str
    image_url: str

    @classmethod
    def from_domain(cls, dress: DressOption) -> "DressOut":
        return cls(id=dress.id, name=dress.name, image_url=dress.image_url)


class ValidationOut(BaseModel):
    """Photo validation outcome."""

    is_valid: bool
    reason: str | None = None


class SessionOut(BaseModel):
    """Try-on session as returned to clients."""

    id: UUID
    user_id: UUID | None
    model_image_url: str
    dress_image_url: str
    status: str
    result_image_url: str | None
    result_message: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_domain(cls, session: TryOnSession) -> "SessionOut":
        return cls(
            id=session.id,
            user_id=session.user_id,
            model_image_url=session.model_image_url,
            dress_image_url=session.dress_image_url,
            status=session.status.value,
            result_image_url=session.result_image_url,
            result_message=session.result_message,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )
