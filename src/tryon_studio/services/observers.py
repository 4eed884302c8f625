"""Strategies for observing a try-on session until it reaches a terminal state."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from tryon_studio.domain.sessions import TryOnSession
from tryon_studio.errors import ObservationTimeoutError, SessionError
from tryon_studio.services.submission import TryOnSessionRepository

logger = logging.getLogger(__name__)

SessionCallback = Callable[[TryOnSession], None]
ErrorCallback = Callable[[SessionError], None]
Unsubscribe = Callable[[], Awaitable[None]]


class SessionObserver(Protocol):
    """Observe a session until it completes or fails."""

    async def observe(
        self, session_id: UUID, on_update: SessionCallback | None = None
    ) -> TryOnSession:
        """Return the session once it is in a terminal state."""


class SessionChangeFeed(Protocol):
    """Push notifications for changes to a session row."""

    async def subscribe(
        self, session_id: UUID, callback: SessionCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        """Start delivering updates for a session; return an unsubscriber.

        Raises SessionError when the subscription cannot be established.
        Failures after that are passed to on_error.
        """


async def _fetch(repository: TryOnSessionRepository, session_id: UUID) -> TryOnSession:
    session = await asyncio.to_thread(repository.get_session, session_id)
    if session is None:
        raise SessionError(f"Session {session_id} not found")
    return session


@dataclass
class PollingSessionObserver(SessionObserver):
    """Reads the session on a fixed interval."""

    repository: TryOnSessionRepository
    interval_seconds: float = 3.0
    max_attempts: int | None = None
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    async def observe(
        self, session_id: UUID, on_update: SessionCallback | None = None
    ) -> TryOnSession:
        """Poll until the session is terminal or the attempt bound is hit."""
        attempts = 0
        while True:
            session = await _fetch(self.repository, session_id)
            attempts += 1
            if on_update is not None:
                on_update(session)
            if session.status.is_terminal:
                logger.info("Session %s finished as %s", session_id, session.status)
                return session
            if self.max_attempts is not None and attempts >= self.max_attempts:
                raise ObservationTimeoutError(
                    f"Session {session_id} still {session.status} "
                    f"after {attempts} checks"
                )
            await self.sleep(self.interval_seconds)


@dataclass
class RealtimeSessionObserver(SessionObserver):
    """Waits for pushed change notifications on the session row."""

    feed: SessionChangeFeed
    repository: TryOnSessionRepository
    timeout_seconds: float | None = None

    async def observe(
        self, session_id: UUID, on_update: SessionCallback | None = None
    ) -> TryOnSession:
        """Wait for a terminal update, always unsubscribing on exit."""
        updates: asyncio.Queue[TryOnSession | SessionError] = asyncio.Queue()
        unsubscribe = await self.feed.subscribe(
            session_id, updates.put_nowait, updates.put_nowait
        )
        try:
            # A row that turned terminal before the subscription would never notify.
            session = await _fetch(self.repository, session_id)
            try:
                async with asyncio.timeout(self.timeout_seconds):
                    while True:
                        if on_update is not None:
                            on_update(session)
                        if session.status.is_terminal:
                            return session
                        update = await updates.get()
                        if isinstance(update, SessionError):
                            raise update
                        session = update
            except TimeoutError as exc:
                raise ObservationTimeoutError(
                    f"Session {session_id} did not finish within "
                    f"{self.timeout_seconds} seconds"
                ) from exc
        finally:
            await unsubscribe()
