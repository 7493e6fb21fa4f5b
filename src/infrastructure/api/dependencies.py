from __future__ import annotations

from fastapi import HTTPException, Request, status
from supabase import AsyncClient

from src.application.services.session_manager import SessionManager
from src.domain.errors import ConfigurationAbsent
from src.domain.services.demo_credentials import DemoCredentialResolver
from src.infrastructure.config import Settings
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.database.supabase_client import (
    SupabaseIdentityProvider,
    create_supabase_client,
)
from src.infrastructure.demo_catalog import load_demo_catalog
from src.infrastructure.logging import get_logger
from src.infrastructure.storage.local_storage import LocalKeyValueStorage
from src.infrastructure.storage.session_store import PersistedSessionStore

logger = get_logger(__name__)


async def build_session_manager(settings: Settings) -> SessionManager:
    """Wire the session manager for the configured environment.

    A missing provider configuration is not an error: the manager then runs
    on the demo catalog and local sign-up only.
    """
    catalog = load_demo_catalog(settings.demo_catalog_path, settings.demo_password)
    store = PersistedSessionStore(LocalKeyValueStorage(settings.storage_dir))
    client: AsyncClient | None = None
    try:
        client = await create_supabase_client(settings)
    except ConfigurationAbsent as exc:
        logger.info("identity_provider_absent", reason=exc.user_message, **exc.context)

    if client is None:
        return SessionManager(store=store, resolver=DemoCredentialResolver(catalog))
    return SessionManager(
        store=store,
        resolver=DemoCredentialResolver(catalog),
        provider=SupabaseIdentityProvider(client),
        profiles=ProfileRepository(client, settings=settings),
        prefer_demo=settings.prefer_demo,
    )


def get_session_manager(request: Request) -> SessionManager:
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Session manager not started"
        )
    return manager
