"""Playback readiness gate for a camera preview surface."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

import numpy as np

from tryon_studio.errors import PlaybackError
from tryon_studio.services.media import MediaStream

logger = logging.getLogger(__name__)


class VideoSurface(Protocol):
    """A preview surface a camera stream is rendered to."""

    @property
    def video_width(self) -> int:
        """Native frame width, or 0 when unknown."""

    @property
    def video_height(self) -> int:
        """Native frame height, or 0 when unknown."""

    def attach(self, stream: MediaStream | None) -> None:
        """Attach a stream to the surface, or detach with None."""

    async def play(self) -> None:
        """Start playback, raising if frames do not flow."""

    def read_frame(self) -> np.ndarray | None:
        """Return the currently visible frame as a BGR array."""


@dataclass
class PlaybackGate:
    """Confirms frames are flowing before capture is allowed."""

    surface: VideoSurface
    max_retries: int = 3
    base_delay_seconds: float = 0.2
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)
    ready: bool = field(default=False, init=False)

    async def open(self, stream: MediaStream) -> None:
        """Attach the stream and start playback, retrying with linear backoff."""
        self.ready = False
        self.surface.attach(stream)
        try:
            await self.surface.play()
        except Exception as first_error:  # noqa: BLE001
            logger.warning("Camera preview did not start: %s", first_error)
            for attempt in range(1, self.max_retries + 1):
                await self.sleep(self.base_delay_seconds * attempt)
                try:
                    await self.surface.play()
                except Exception as retry_error:  # noqa: BLE001
                    logger.warning("Retry %s failed: %s", attempt, retry_error)
                    continue
                logger.info("Camera preview started on retry %s", attempt)
                self.ready = True
                return
            raise PlaybackError("Camera preview could not be started") from first_error
        logger.info("Camera preview started")
        self.ready = True

    def close(self) -> None:
        """Detach the surface and drop readiness."""
        self.surface.attach(None)
        self.ready = False
