"""Supabase-backed garment catalog repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from tryon_studio.domain.dresses import DressOption
from tryon_studio.errors import CatalogError
from tryon_studio.services.dresses import DressRepository


@dataclass
class SupabaseDressRepository(DressRepository):
    """Supabase implementation for the dress_options table."""

    client: Client

    def list_dresses(self) -> list[DressOption]:
        """Return dresses ordered by creation time."""
        response = (
            self.client.table("dress_options")
            .select("id, name, image_url, created_at, updated_at")
            .order("created_at", desc=False)
            .execute()
        )
        return [_dress_from_row(row) for row in response.data or []]

    def get_dress(self, dress_id: UUID) -> DressOption | None:
        """Return a dress by id, if present."""
        response = (
            self.client.table("dress_options")
            .select("id, name, image_url, created_at, updated_at")
            .eq("id", str(dress_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _dress_from_row(response.data[0])

    def update_image_url(self, dress_id: UUID, image_url: str) -> None:
        """Point a dress at a new image URL."""
        try:
            self.client.table("dress_options").update(
                {
                    "image_url": image_url,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            ).eq("id", str(dress_id)).execute()
        except Exception as exc:
            raise CatalogError(f"Failed to update dress option: {exc}") from exc


def _dress_from_row(row: dict[str, object]) -> DressOption:
    return DressOption(
        id=UUID(str(row["id"])),
        name=str(row["name"]),
        image_url=str(row.get("image_url") or ""),
        created_at=_parse(row.get("created_at")),
        updated_at=_parse(row.get("updated_at")),
    )


def _parse(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
