"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from tryon_studio.adapters.google_vision_client import HttpxGoogleVisionClient
from tryon_studio.adapters.supabase_dress_repository import SupabaseDressRepository
from tryon_studio.adapters.supabase_session_repository import (
    SupabaseTryOnSessionRepository,
)
from tryon_studio.adapters.supabase_storage import SupabaseImageStorage
from tryon_studio.config import Settings
from tryon_studio.domain.validation import ValidationRules
from tryon_studio.services.dresses import DressCatalogService
from tryon_studio.services.observers import PollingSessionObserver
from tryon_studio.services.submission import (
    ImageStorage,
    SubmissionService,
    TryOnSessionRepository,
)
from tryon_studio.services.validation import PhotoValidationService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    storage: ImageStorage
    session_repository: TryOnSessionRepository
    catalog_service: DressCatalogService
    validation_service: PhotoValidationService
    submission_service: SubmissionService
    polling_observer: PollingSessionObserver
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    storage = SupabaseImageStorage(
        supabase_client, bucket=resolved_settings.storage_bucket
    )
    session_repository = SupabaseTryOnSessionRepository(supabase_client)
    catalog_service = DressCatalogService(
        repository=SupabaseDressRepository(supabase_client),
        storage=storage,
    )
    vision_client = HttpxGoogleVisionClient.create(
        api_key=resolved_settings.google_vision_api_key,
        api_url=resolved_settings.vision_api_url,
    )
    validation_service = PhotoValidationService(
        client=vision_client,
        rules=ValidationRules(
            check_front_facing=resolved_settings.require_front_facing
        ),
    )
    submission_service = SubmissionService(
        storage=storage,
        session_repository=session_repository,
        catalog=catalog_service,
    )
    polling_observer = PollingSessionObserver(
        repository=session_repository,
        interval_seconds=resolved_settings.poll_interval_seconds,
        max_attempts=resolved_settings.poll_max_attempts,
    )

    async def close_resources() -> None:
        await vision_client.close()

    return AppContainer(
        settings=resolved_settings,
        storage=storage,
        session_repository=session_repository,
        catalog_service=catalog_service,
        validation_service=validation_service,
        submission_service=submission_service,
        polling_observer=polling_observer,
        close_resources=close_resources,
    )
