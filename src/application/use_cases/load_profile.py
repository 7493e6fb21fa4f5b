from __future__ import annotations

from dataclasses import dataclass

from src.application.ports import ProfileStore
from src.domain.entities.profile import ProfileEntity
from src.domain.errors import ProfileLoadFailure
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProfileLoadResult:
    profile: ProfileEntity | None = None
    error: ProfileLoadFailure | None = None

    @property
    def ok(self) -> bool:
        return self.profile is not None


@dataclass
class LoadProfileUseCase:
    profiles: ProfileStore

    async def execute(self, identity_id: str) -> ProfileLoadResult:
        """
        Load the extended profile (joined with its gym) for an account.

        Never raises: a store failure or a missing row comes back as a
        result carrying ProfileLoadFailure, and the caller decides whether
        that is fatal.
        """
        logger.debug("profile_load_started", user_id=identity_id)
        try:
            profile = await self.profiles.get(identity_id)
        except ProfileLoadFailure as exc:
            logger.error("profile_load_failed", user_id=identity_id, error=str(exc))
            return ProfileLoadResult(error=exc)
        if profile is None:
            logger.warning("profile_missing", user_id=identity_id)
            return ProfileLoadResult(error=ProfileLoadFailure(user_id=identity_id, reason="not_found"))
        logger.debug("profile_load_complete", user_id=identity_id, role=profile.role.value)
        return ProfileLoadResult(profile=profile)
