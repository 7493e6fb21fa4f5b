from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.application.dtos.profile_dto import ProfileDTO
from src.domain.entities.session import SessionSource, SessionState, SessionStatus


class LoginRequest(BaseModel):
    """Request model for signing in."""
    email: str = Field(..., min_length=3, max_length=320, description="Account email", examples=["coach@demo.com"])
    password: str = Field(..., min_length=1, description="Account password")


class SignUpRequest(BaseModel):
    """Request model for creating an account."""
    email: str = Field(..., min_length=3, max_length=320, description="Account email", examples=["new@example.com"])
    password: str = Field(..., min_length=1, description="Account password")
    first_name: str = Field(..., min_length=1, max_length=100, description="Given name", examples=["Alex"])
    last_name: str = Field(..., min_length=1, max_length=100, description="Family name", examples=["Morgan"])


class IdentityInfo(BaseModel):
    """Provider identity backing the session. The access token is never returned."""
    user_id: str = Field(..., description="Provider account id")
    email: str | None = Field(None, description="Email known to the provider")
    expires_at: int | None = Field(None, description="Unix timestamp when the provider session expires")


class SessionStateResponse(BaseModel):
    """Snapshot of the observable session state."""
    status: SessionStatus = Field(..., description="Current state of the session state machine")
    source: SessionSource | None = Field(None, description="Authentication source driving the profile")
    profile: ProfileDTO | None = Field(None, description="Profile of the current user")
    identity: IdentityInfo | None = Field(None, description="Provider identity, only for provider sessions")
    is_loading: bool = Field(..., description="Whether an operation is still in flight")
    error: dict[str, Any] | None = Field(None, description="Last error descriptor, if any")

    @classmethod
    def from_state(cls, state: SessionState) -> SessionStateResponse:
        identity = None
        if state.identity is not None:
            identity = IdentityInfo(
                user_id=state.identity.user_id,
                email=state.identity.email,
                expires_at=state.identity.expires_at,
            )
        return cls(
            status=state.status,
            source=state.source,
            profile=ProfileDTO.from_entity(state.profile) if state.profile else None,
            identity=identity,
            is_loading=state.is_loading,
            error=state.error.to_dict() if state.error else None,
        )
