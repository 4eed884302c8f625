"""Domain models for the garment catalog."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class DressOption:
    """A garment available for try-on."""

    id: UUID
    name: str
    image_url: str
    created_at: datetime | None
    updated_at: datetime | None
