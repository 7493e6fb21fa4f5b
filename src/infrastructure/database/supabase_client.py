from __future__ import annotations

from typing import Any

from supabase import AsyncClient, acreate_client

from src.application.change_stream import SessionChangeStream
from src.application.ports import AuthResult, ProviderError, SignUpResult
from src.domain.entities.profile import ProfileSeed
from src.domain.entities.session import Identity, SessionChange
from src.domain.errors import ConfigurationAbsent
from src.infrastructure.config import Settings
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)


async def create_supabase_client(settings: Settings) -> AsyncClient:
    """Create the async Supabase client.

    Raises:
        ConfigurationAbsent: URL or anon key missing, or SUPABASE_DISABLED=1
    """
    if not settings.provider_configured:
        raise ConfigurationAbsent(disabled=settings.supabase_disabled)
    client = await acreate_client(settings.supabase_url, settings.supabase_anon_key)
    logger.info("supabase_client_created", url=settings.supabase_url)
    return client


def _provider_error(exc: Exception) -> ProviderError:
    return ProviderError(
        message=getattr(exc, "message", None) or str(exc) or exc.__class__.__name__,
        code=getattr(exc, "code", None),
        status=getattr(exc, "status", None),
    )


def _to_identity(session: Any) -> Identity | None:
    if session is None or getattr(session, "user", None) is None:
        return None
    return Identity(
        user_id=session.user.id,
        email=session.user.email,
        access_token=session.access_token,
        expires_at=session.expires_at,
    )


class SupabaseIdentityProvider:
    """Identity provider backed by Supabase Auth.

    Auth failures come back as ``ProviderError`` values instead of
    exceptions so the session layer can inspect them.
    """

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            res = await self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as exc:  # network path
            logger.warning("supabase_sign_in_failed", email=email, error=str(exc))
            return AuthResult(error=_provider_error(exc))
        return AuthResult(identity=_to_identity(res.session))

    async def sign_up(self, email: str, password: str, seed: ProfileSeed) -> SignUpResult:
        try:
            res = await self._client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": seed.as_metadata()}}
            )
        except Exception as exc:  # network path
            logger.warning("supabase_sign_up_failed", email=email, error=str(exc))
            return SignUpResult(error=_provider_error(exc))
        user = res.user
        return SignUpResult(account_id=user.id if user else None)

    async def sign_out(self) -> ProviderError | None:
        try:
            await self._client.auth.sign_out()
        except Exception as exc:  # network path
            return _provider_error(exc)
        return None

    async def get_current_session(self) -> Identity | None:
        try:
            session = await self._client.auth.get_session()
        except Exception as exc:  # network path, e.g. a failed token refresh
            logger.warning("supabase_get_session_failed", error=str(exc))
            return None
        return _to_identity(session)

    def session_changes(self) -> SessionChangeStream:
        stream = SessionChangeStream()

        def on_change(event: str, session: Any) -> None:
            stream.publish(SessionChange(event=str(event), identity=_to_identity(session)))

        subscription = self._client.auth.on_auth_state_change(on_change)
        stream.add_cancel_callback(subscription.unsubscribe)
        return stream
