"""Supabase-backed try-on session repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from tryon_studio.domain.sessions import SessionStatus, TryOnSession
from tryon_studio.errors import SessionError
from tryon_studio.services.submission import TryOnSessionRepository

_COLUMNS = (
    "id, user_id, model_image_url, dress_image_url, result_image_url, "
    "result_message, status, created_at, updated_at"
)


@dataclass
class SupabaseTryOnSessionRepository(TryOnSessionRepository):
    """Supabase implementation for try-on sessions."""

    client: Client

    def create_session(
        self,
        user_id: UUID | None,
        model_image_url: str,
        dress_image_url: str,
        status: SessionStatus,
    ) -> TryOnSession:
        """Insert a session row and return it."""
        try:
            response = (
                self.client.table("tryon_sessions")
                .insert(
                    {
                        "user_id": str(user_id) if user_id else None,
                        "model_image_url": model_image_url,
                        "dress_image_url": dress_image_url,
                        "status": status.value,
                    }
                )
                .execute()
            )
        except Exception as exc:
            raise SessionError(f"Failed to create session: {exc}") from exc
        if not response.data:
            raise SessionError("Failed to create session")
        return session_from_row(response.data[0])

    def get_session(self, session_id: UUID) -> TryOnSession | None:
        """Return a session by id, if present."""
        try:
            response = (
                self.client.table("tryon_sessions")
                .select(_COLUMNS)
                .eq("id", str(session_id))
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise SessionError(f"Failed to fetch session: {exc}") from exc
        if not response.data:
            return None
        return session_from_row(response.data[0])


def session_from_row(row: dict[str, object]) -> TryOnSession:
    """Build a session from a table row or change payload."""
    return TryOnSession(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])) if row.get("user_id") else None,
        model_image_url=str(row["model_image_url"]),
        dress_image_url=str(row["dress_image_url"]),
        status=SessionStatus(row["status"]),
        result_image_url=_optional_str(row.get("result_image_url")),
        result_message=_optional_str(row.get("result_message")),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def _optional_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
