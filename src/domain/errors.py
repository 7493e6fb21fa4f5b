"""Error taxonomy for session orchestration.

Every error carries a stable ``code`` and a ``user_message`` that is safe to
show in the UI; ``to_dict`` is what ends up in the session state's error
descriptor and in HTTP error bodies.
"""
from __future__ import annotations

from typing import Any


class SessionError(Exception):
    code = "session_error"
    default_message = "Session error."

    def __init__(self, user_message: str | None = None, **context: Any) -> None:
        self.user_message = user_message or self.default_message
        self.context = context
        super().__init__(self.user_message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.user_message, "context": dict(self.context)}


class ConfigurationAbsent(SessionError):
    """No identity provider configured. Selects demo-only paths, never shown to callers."""

    code = "configuration_absent"
    default_message = "Identity provider is not configured."


class AuthError(SessionError):
    code = "auth_error"
    default_message = "Authentication failed."


class UnverifiedAccount(AuthError):
    code = "email_not_confirmed"
    default_message = "Email not confirmed."


class ProfileLoadFailure(SessionError):
    code = "profile_load_failed"
    default_message = "Failed to load user profile."


class ConstraintError(SessionError):
    code = "constraint_error"
    default_message = "Profile could not be created."


class PermissionDenied(ConstraintError):
    code = "permission_denied"
    default_message = "Permission denied while creating profile."


class StorageCorruption(SessionError):
    code = "storage_corruption"
    default_message = "Persisted session is unreadable."
