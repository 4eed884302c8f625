"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from tryon_studio.adapters.google_vision_client import HttpxGoogleVisionClient
from tryon_studio.services.validation import VisionServiceError


def test_google_vision_client_posts_annotate_request() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["payload"] = json.loads(request.content.decode())
        return httpx.Response(200, json={"responses": [{}]})

    transport = httpx.MockTransport(handler)
    client = HttpxGoogleVisionClient(
        api_key="vision-key", http_client=httpx.AsyncClient(transport=transport)
    )

    result = asyncio.run(
        client.annotate("YWJj", [{"type": "LABEL_DETECTION", "maxResults": 20}])
    )

    assert result == {"responses": [{}]}
    assert seen["key"] == "vision-key"
    assert "key=" not in str(seen["url"])
    payload = seen["payload"]
    assert isinstance(payload, dict)
    assert payload["requests"][0]["image"] == {"content": "YWJj"}


def test_google_vision_client_raises_with_error_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": {"message": "API key invalid"}})

    transport = httpx.MockTransport(handler)
    client = HttpxGoogleVisionClient(
        api_key="bad", http_client=httpx.AsyncClient(transport=transport)
    )

    with pytest.raises(VisionServiceError, match="403 API key invalid"):
        asyncio.run(client.annotate("YWJj", []))


def test_google_vision_client_rejects_invalid_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    transport = httpx.MockTransport(handler)
    client = HttpxGoogleVisionClient(
        api_key="key", http_client=httpx.AsyncClient(transport=transport)
    )

    with pytest.raises(VisionServiceError):
        asyncio.run(client.annotate("YWJj", []))
