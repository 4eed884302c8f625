"""Garment catalog lookups and catalog image seeding."""

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from tryon_studio.domain.dresses import DressOption
from tryon_studio.errors import TryOnError

if TYPE_CHECKING:
    from tryon_studio.services.submission import ImageStorage

logger = logging.getLogger(__name__)

_IMAGE_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


class DressRepository(Protocol):
    """Persistence interface for the garment catalog."""

    def list_dresses(self) -> list[DressOption]:
        """Return all dresses ordered by creation time."""

    def get_dress(self, dress_id: UUID) -> DressOption | None:
        """Return a dress by id, if present."""

    def update_image_url(self, dress_id: UUID, image_url: str) -> None:
        """Point a dress at a new image URL."""


@dataclass
class DressCatalogService:
    """Application service for the garment catalog."""

    repository: DressRepository
    storage: "ImageStorage"

    def list_dresses(self) -> list[DressOption]:
        return self.repository.list_dresses()

    def get_dress(self, dress_id: UUID) -> DressOption | None:
        return self.repository.get_dress(dress_id)

    def upload_dress_image(
        self, dress_id: UUID, content: bytes, filename: str, upsert: bool = False
    ) -> str:
        """Store a catalog image and point the dress at it."""
        suffix = Path(filename).suffix.lower() or ".png"
        path = f"dress-options/dress-{dress_id}-{int(time.time() * 1000)}{suffix}"
        url = self.storage.upload(
            path, content, _IMAGE_TYPES.get(suffix, "image/png"), upsert=upsert
        )
        self.repository.update_image_url(dress_id, url)
        logger.info("Updated dress %s with image %s", dress_id, url)
        return url

    def seed_from_directory(self, directory: Path) -> list[str]:
        """Upload images named after catalog dresses; return updated names."""
        files = {
            slugify(path.stem): path
            for path in sorted(directory.iterdir())
            if path.suffix.lower() in _IMAGE_TYPES
        }
        updated: list[str] = []
        for dress in self.list_dresses():
            path = files.get(slugify(dress.name))
            if path is None:
                logger.warning("No image found for %s", dress.name)
                continue
            try:
                self.upload_dress_image(
                    dress.id, path.read_bytes(), path.name, upsert=True
                )
            except (OSError, TryOnError):
                logger.exception("Failed to seed image for %s", dress.name)
                continue
            updated.append(dress.name)
        return updated


def slugify(name: str) -> str:
    """Lowercase a name and join its words with dashes."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
