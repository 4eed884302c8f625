"""Google Cloud Vision images:annotate client."""

from dataclasses import dataclass

import httpx

from tryon_studio.services.validation import VisionClient, VisionServiceError

DEFAULT_VISION_URL = "https://vision.googleapis.com/v1/images:annotate"


@dataclass
class HttpxGoogleVisionClient(VisionClient):
    """Vision client implemented with httpx; the key stays server-side."""

    api_key: str
    http_client: httpx.AsyncClient
    api_url: str = DEFAULT_VISION_URL

    @classmethod
    def create(
        cls, api_key: str, api_url: str = DEFAULT_VISION_URL
    ) -> "HttpxGoogleVisionClient":
        """Create a vision client with a managed httpx session."""
        return cls(api_key=api_key, http_client=httpx.AsyncClient(), api_url=api_url)

    async def annotate(
        self, image_content: str, features: list[dict[str, object]]
    ) -> dict[str, object]:
        """Send one image for annotation and return the raw response."""
        payload = {
            "requests": [
                {
                    "image": {"content": image_content},
                    "features": features,
                }
            ]
        }
        response = await self.http_client.post(
            self.api_url,
            headers={"x-goog-api-key": self.api_key},
            json=payload,
            timeout=20,
        )
        if response.is_error:
            raise VisionServiceError(
                f"Vision API request failed: {response.status_code} "
                f"{_error_details(response)}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise VisionServiceError("Vision API returned invalid JSON") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _error_details(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return str(body)
