"""Interfaces the session layer consumes from the outside world."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from src.application.change_stream import SessionChangeStream
from src.domain.entities.profile import ProfileEntity, ProfileSeed
from src.domain.entities.session import Identity

_UNVERIFIED_MARKERS = ("email not confirmed", "email_not_confirmed")


@dataclass(frozen=True)
class ProviderError:
    message: str
    code: str | None = None
    status: int | None = None

    @property
    def unverified_account(self) -> bool:
        haystack = f"{self.code or ''} {self.message}".lower()
        return any(marker in haystack for marker in _UNVERIFIED_MARKERS)


@dataclass(frozen=True)
class AuthResult:
    identity: Identity | None = None
    error: ProviderError | None = None


@dataclass(frozen=True)
class SignUpResult:
    account_id: str | None = None
    error: ProviderError | None = None


class IdentityProvider(Protocol):
    async def sign_in(self, email: str, password: str) -> AuthResult: ...

    async def sign_up(self, email: str, password: str, seed: ProfileSeed) -> SignUpResult: ...

    async def sign_out(self) -> ProviderError | None: ...

    async def get_current_session(self) -> Identity | None: ...

    def session_changes(self) -> SessionChangeStream: ...


class ProfileStore(Protocol):
    async def get(self, user_id: str) -> ProfileEntity | None:
        """Return the profile joined with its gym, or None when no row exists.

        Raises ProfileLoadFailure when the store cannot be read.
        """
        ...

    async def create(self, seed: ProfileSeed) -> ProfileEntity:
        """Insert a profile row. Raises ConstraintError or PermissionDenied."""
        ...
