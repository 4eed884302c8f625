"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from tryon_studio.errors import CatalogError, UploadError

if TYPE_CHECKING:
    from tryon_studio.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/dresses/{dress_id}/image", dependencies=[Depends(require_admin)])
async def upload_dress_image(
    dress_id: UUID, request: Request, filename: str = "dress.png"
) -> dict[str, str]:
    """Store a catalog image and point the dress at it."""
    container: AppContainer = request.app.state.container
    if container.catalog_service.get_dress(dress_id) is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Unknown dress option")
    content = await request.body()
    if not content:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Request body is empty")
    try:
        url = container.catalog_service.upload_dress_image(dress_id, content, filename)
    except (UploadError, CatalogError) as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, str(exc)) from exc
    return {"image_url": url}
