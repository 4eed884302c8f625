"""Tests for container wiring."""

import asyncio

from tryon_studio.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.submission_service is not None
    assert container.polling_observer.interval_seconds == 3.0
    assert container.polling_observer.max_attempts == 200
    asyncio.run(container.close_resources())
