from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.domain.entities.profile import ProfileEntity
from src.domain.errors import SessionError


class SessionStatus(str, Enum):
    INITIALIZING = "initializing"
    DEMO_ACTIVE = "demo_active"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    ERROR = "error"


class SessionSource(str, Enum):
    """Which authentication source currently drives the profile."""

    DEMO = "demo"
    PROVIDER = "provider"


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str | None
    access_token: str  # opaque provider session handle
    expires_at: int | None = None


@dataclass(frozen=True)
class SessionChange:
    event: str  # provider event name, e.g. SIGNED_IN / SIGNED_OUT
    identity: Identity | None

    @property
    def session_ended(self) -> bool:
        return self.identity is None


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus = SessionStatus.INITIALIZING
    source: SessionSource | None = None
    profile: ProfileEntity | None = None
    identity: Identity | None = None
    is_loading: bool = True
    error: SessionError | None = None
