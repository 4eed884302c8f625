"""Supabase Realtime change feed for try-on sessions."""

import logging
from dataclasses import dataclass
from uuid import UUID

from supabase import AsyncClient, acreate_client

from tryon_studio.adapters.supabase_session_repository import session_from_row
from tryon_studio.errors import SessionError
from tryon_studio.services.observers import (
    ErrorCallback,
    SessionCallback,
    SessionChangeFeed,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


@dataclass
class SupabaseSessionChangeFeed(SessionChangeFeed):
    """Delivers UPDATE notifications for one tryon_sessions row."""

    client: AsyncClient

    @classmethod
    async def create(cls, url: str, key: str) -> "SupabaseSessionChangeFeed":
        """Create a change feed with its own async Supabase client."""
        return cls(client=await acreate_client(url, key))

    async def subscribe(
        self, session_id: UUID, callback: SessionCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        """Subscribe to updates of a session row."""

        def handle(payload: dict[str, object]) -> None:
            record = _extract_record(payload)
            if record is None:
                logger.warning("Ignoring change payload without a record")
                return
            try:
                session = session_from_row(record)
            except (KeyError, TypeError, ValueError) as exc:
                on_error(SessionError(f"Malformed session update: {exc}"))
                return
            callback(session)

        try:
            channel = self.client.channel(f"session-updates-{session_id}")
            channel.on_postgres_changes(
                "UPDATE",
                schema="public",
                table="tryon_sessions",
                filter=f"id=eq.{session_id}",
                callback=handle,
            )
            await channel.subscribe()
        except Exception as exc:
            raise SessionError(
                f"Failed to subscribe to session updates: {exc}"
            ) from exc

        async def unsubscribe() -> None:
            await self.client.remove_channel(channel)

        return unsubscribe

    async def close(self) -> None:
        """Drop all channels and the realtime connection."""
        await self.client.remove_all_channels()


def _extract_record(payload: dict[str, object]) -> dict[str, object] | None:
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("record"), dict):
        return data["record"]
    new = payload.get("new")
    if isinstance(new, dict):
        return new
    return None
