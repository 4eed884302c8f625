"""Supabase Storage adapter for try-on images."""

from dataclasses import dataclass

from supabase import Client

from tryon_studio.errors import UploadError
from tryon_studio.services.submission import ImageStorage


@dataclass
class SupabaseImageStorage(ImageStorage):
    """Uploads images to a Supabase Storage bucket."""

    client: Client
    bucket: str = "tryon-images"

    def upload(
        self, path: str, content: bytes, content_type: str, upsert: bool = False
    ) -> str:
        """Upload bytes and return the object's public URL."""
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(
                path=path,
                file=content,
                file_options={
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "true" if upsert else "false",
                },
            )
        except Exception as exc:
            raise UploadError(f"Failed to upload image: {exc}") from exc
        return bucket.get_public_url(path)
