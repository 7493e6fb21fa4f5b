"""Session orchestration: who is currently using the app.

The manager owns the observable session state and is its only writer. Two
authentication sources can drive the profile: the demo catalog, persisted
in the local session slot, and the identity provider. Provider sign-ins
complete through the change stream rather than inside ``login``.
"""
from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from src.application.change_stream import SessionChangeStream
from src.application.ports import IdentityProvider, ProfileStore
from src.application.use_cases.load_profile import LoadProfileUseCase
from src.application.use_cases.register_account import RegisterAccountUseCase
from src.domain.entities.profile import ProfileEntity, UserRole
from src.domain.entities.session import (
    Identity,
    SessionChange,
    SessionSource,
    SessionState,
    SessionStatus,
)
from src.domain.errors import AuthError, SessionError, UnverifiedAccount
from src.domain.services.demo_credentials import DemoCredentialResolver
from src.infrastructure.logging import get_logger
from src.infrastructure.storage.session_store import PersistedSessionStore

logger = get_logger(__name__)

StateListener = Callable[[SessionState], None]


class SessionManager:
    def __init__(
        self,
        store: PersistedSessionStore,
        resolver: DemoCredentialResolver,
        provider: IdentityProvider | None = None,
        profiles: ProfileStore | None = None,
        prefer_demo: bool = True,
    ) -> None:
        if provider is not None and profiles is None:
            raise ValueError("A profile store is required when an identity provider is configured")
        self._store = store
        self._resolver = resolver
        self._provider = provider
        self._profiles = profiles
        self._prefer_demo = prefer_demo
        self._loader = LoadProfileUseCase(profiles) if profiles is not None else None
        self._state = SessionState()
        self._listeners: list[StateListener] = []
        self._changes: SessionChangeStream | None = None
        self._change_task: asyncio.Task[None] | None = None
        self._started = False

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def provider_configured(self) -> bool:
        return self._provider is not None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every new state. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes) -> SessionState:
        previous = self._state
        self._state = replace(previous, **changes)
        if self._state.status is not previous.status:
            logger.debug(
                "session_transition",
                previous=previous.status.value,
                current=self._state.status.value,
                source=self._state.source.value if self._state.source else None,
            )
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("session_listener_failed", listener=repr(listener))
        return self._state

    def _fail(self, error: SessionError) -> SessionError:
        logger.warning("session_operation_failed", **error.to_dict())
        self._set_state(status=SessionStatus.ERROR, is_loading=False, error=error)
        return error

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SessionState:
        """Restore a prior session. Runs once; later calls return the current state."""
        if self._started:
            return self._state
        self._started = True
        logger.info("session_initializing", provider_configured=self.provider_configured)

        if self._provider is not None:
            self._changes = self._provider.session_changes()
            self._change_task = asyncio.create_task(self._consume_changes(self._changes))

        profile = self._store.read()
        if profile is not None:
            logger.info("session_restored_demo", email=profile.email)
            return self._enter_demo(profile)

        if self._provider is None:
            return self._set_state(status=SessionStatus.UNAUTHENTICATED, is_loading=False)

        identity = await self._provider.get_current_session()
        if identity is None:
            logger.info("session_none")
            return self._set_state(status=SessionStatus.UNAUTHENTICATED, is_loading=False)
        logger.info("session_restored_provider", user_id=identity.user_id)
        return await self._load_profile_for(identity)

    async def aclose(self) -> None:
        """Release the change subscription and wait for the handler to finish."""
        changes, self._changes = self._changes, None
        task, self._change_task = self._change_task, None
        if changes is not None:
            changes.cancel()
            logger.debug("session_subscription_released")
        if task is not None:
            await task

    async def __aenter__(self) -> SessionManager:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> SessionState:
        """
        Sign in with the demo catalog or the identity provider.

        A demo match wins outright unless the provider is preferred. A
        provider sign-in only starts the session; the profile arrives
        through the change stream. An unverified provider account that is
        also a demo account falls back to demo mode.

        Raises:
            AuthError: credentials were rejected
        """
        logger.info("login_started", email=email)
        self._set_state(is_loading=True, error=None)

        source = self._source_for_login(email, password)
        if source is SessionSource.DEMO:
            return self._enter_demo(self._resolver.resolve(email, password))

        if self._provider is None:
            raise self._fail(AuthError("Identity provider is not configured.", email=email))

        try:
            result = await self._provider.sign_in(email, password)
        except Exception as exc:
            logger.exception("login_unexpected_error", email=email)
            raise self._fail(SessionError(f"Login failed: {exc}", email=email)) from exc
        if result.error is None:
            logger.info("login_provider_accepted", email=email)
            return self._state

        if result.error.unverified_account and self._source_for_login(
            email, password, unverified=True
        ) is SessionSource.DEMO:
            logger.info("login_demo_fallback", email=email)
            return self._enter_demo(self._resolver.resolve(email, password))

        error_cls = UnverifiedAccount if result.error.unverified_account else AuthError
        raise self._fail(error_cls(result.error.message, email=email))

    async def sign_up(
        self, email: str, password: str, first_name: str, last_name: str
    ) -> SessionState:
        """
        Create an account. Without a provider the profile is synthesized
        locally and kept only in the session slot.

        Raises:
            AuthError: account creation or the follow-up sign-in failed
            ConstraintError: the profile row was rejected; the provider
                account created before it is left in place
        """
        self._set_state(is_loading=True, error=None)

        if self._provider is None:
            logger.info("sign_up_local", email=email)
            return self._enter_demo(_local_profile(email, first_name, last_name))

        use_case = RegisterAccountUseCase(self._provider, self._profiles)
        try:
            registration = await use_case.execute(email, password, first_name, last_name)
        except SessionError as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            logger.exception("sign_up_unexpected_error", email=email)
            raise self._fail(SessionError(f"Sign up failed: {exc}", email=email)) from exc
        self._store.clear()
        return self._set_state(
            status=SessionStatus.AUTHENTICATED,
            source=SessionSource.PROVIDER,
            identity=registration.identity or self._state.identity,
            profile=registration.profile,
            is_loading=False,
            error=None,
        )

    async def logout(self) -> SessionState:
        """Always ends in UNAUTHENTICATED. A provider sign-out failure is recorded, not raised."""
        logger.info("logout", source=self._state.source.value if self._state.source else None)
        error: SessionError | None = None
        self._store.clear()
        if self._provider is not None:
            failure = await self._provider.sign_out()
            if failure is not None:
                logger.warning("logout_provider_failed", message=failure.message)
                error = AuthError(failure.message, step="sign_out")
        return self._set_state(
            status=SessionStatus.UNAUTHENTICATED,
            source=None,
            identity=None,
            profile=None,
            is_loading=False,
            error=error,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _source_for_login(
        self, email: str, password: str, unverified: bool = False
    ) -> SessionSource:
        """Decide which source handles a login attempt.

        Demo credentials win up front unless the provider is preferred, in
        which case they are accepted only once the provider reports the
        account as unverified.
        """
        if not (self._resolver.is_sentinel(password) and self._resolver.is_demo_email(email)):
            return SessionSource.PROVIDER
        if self._prefer_demo or self._provider is None or unverified:
            return SessionSource.DEMO
        return SessionSource.PROVIDER

    def _enter_demo(self, profile: ProfileEntity) -> SessionState:
        # A live provider session is not signed out here. Its next TOKEN_REFRESHED
        # event moves the state back to AUTHENTICATED and clears the demo slot.
        self._store.write(profile)
        logger.info("session_demo_active", email=profile.email, role=profile.role.value)
        return self._set_state(
            status=SessionStatus.DEMO_ACTIVE,
            source=SessionSource.DEMO,
            profile=profile,
            identity=None,
            is_loading=False,
            error=None,
        )

    async def _load_profile_for(self, identity: Identity) -> SessionState:
        self._set_state(source=SessionSource.PROVIDER, identity=identity, is_loading=True)
        result = await self._loader.execute(identity.user_id)
        if not result.ok:
            # identity stays set even though no profile could be loaded
            return self._set_state(
                status=SessionStatus.ERROR, profile=None, is_loading=False, error=result.error
            )
        self._store.clear()
        return self._set_state(
            status=SessionStatus.AUTHENTICATED,
            profile=result.profile,
            is_loading=False,
            error=None,
        )

    async def _consume_changes(self, changes: SessionChangeStream) -> None:
        async for change in changes:
            try:
                await self._handle_session_change(change)
            except Exception as exc:
                # keep consuming: a later SIGNED_OUT must still be applied
                logger.exception("session_change_failed", auth_event=change.event)
                self._set_state(
                    status=SessionStatus.ERROR,
                    is_loading=False,
                    error=SessionError(f"Session change failed: {exc}", auth_event=change.event),
                )

    async def _handle_session_change(self, change: SessionChange) -> None:
        logger.debug("session_change_received", auth_event=change.event)
        if change.session_ended:
            self._store.clear()
            self._set_state(
                status=SessionStatus.UNAUTHENTICATED,
                source=None,
                identity=None,
                profile=None,
                is_loading=False,
            )
            return
        await self._load_profile_for(change.identity)


def _local_profile(email: str, first_name: str, last_name: str) -> ProfileEntity:
    now = datetime.now(UTC)
    return ProfileEntity(
        id=f"demo-{uuid.uuid4()}",
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=UserRole.GYMNAST,
        gym_id=None,
        created_at=now,
        updated_at=now,
    )
