"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status

from tryon_studio.api.admin import router as admin_router
from tryon_studio.api.models import DressOut, SessionOut, ValidationOut
from tryon_studio.app_logging import configure_logging
from tryon_studio.containers import AppContainer
from tryon_studio.domain.sessions import DressSelection, ImageUpload, TryOnSession
from tryon_studio.errors import ObservationTimeoutError, SessionError, UploadError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/dresses")
    async def list_dresses(request: Request) -> dict[str, list[DressOut]]:
        """Return the garment catalog ordered by creation time."""
        state_container: AppContainer = request.app.state.container
        dresses = state_container.catalog_service.list_dresses()
        return {"dresses": [DressOut.from_domain(dress) for dress in dresses]}

    @app.post("/photos/validate")
    async def validate_photo(request: Request) -> ValidationOut:
        """Validate a raw image body against the vision service."""
        state_container: AppContainer = request.app.state.container
        content = await _read_image(request)
        result = await state_container.validation_service.validate(content)
        return ValidationOut(is_valid=result.is_valid, reason=result.reason)

    @app.post("/tryon/sessions", status_code=status.HTTP_201_CREATED)
    async def create_session(
        request: Request,
        dress_id: UUID,
        user_id: UUID | None = None,
        filename: str = "upload.jpg",
    ) -> SessionOut:
        """Validate the photo, store both images and create a pending session."""
        state_container: AppContainer = request.app.state.container
        content = await _read_image(request)
        if state_container.catalog_service.get_dress(dress_id) is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Unknown dress option")
        result = await state_container.validation_service.validate(content)
        if not result.is_valid:
            raise HTTPException(422, result.reason)
        photo = ImageUpload(
            content=content,
            filename=filename,
            content_type=request.headers.get("content-type", "image/jpeg"),
        )
        try:
            session = await asyncio.to_thread(
                state_container.submission_service.submit,
                photo,
                DressSelection(dress_id=dress_id),
                user_id,
            )
        except (UploadError, SessionError) as exc:
            logger.exception("Try-on submission failed")
            raise HTTPException(status.HTTP_502_BAD_GATEWAY, str(exc)) from exc
        return SessionOut.from_domain(session)

    @app.get("/tryon/sessions/{session_id}")
    async def get_session(session_id: UUID, request: Request) -> SessionOut:
        """Return the current state of a session."""
        state_container: AppContainer = request.app.state.container
        session = await _load_session(state_container, session_id)
        return SessionOut.from_domain(session)

    @app.get("/tryon/sessions/{session_id}/result")
    async def wait_for_result(session_id: UUID, request: Request) -> SessionOut:
        """Block until the session is terminal, bounded by the polling settings."""
        state_container: AppContainer = request.app.state.container
        await _load_session(state_container, session_id)
        try:
            session = await state_container.polling_observer.observe(session_id)
        except ObservationTimeoutError as exc:
            raise HTTPException(status.HTTP_504_GATEWAY_TIMEOUT, str(exc)) from exc
        except SessionError as exc:
            raise HTTPException(status.HTTP_502_BAD_GATEWAY, str(exc)) from exc
        return SessionOut.from_domain(session)

    return app


async def _load_session(container: AppContainer, session_id: UUID) -> TryOnSession:
    try:
        session = await asyncio.to_thread(
            container.session_repository.get_session, session_id
        )
    except SessionError as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, str(exc)) from exc
    if session is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Session not found")
    return session


async def _read_image(request: Request) -> bytes:
    content = await request.body()
    if not content:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Request body is empty")
    return content
