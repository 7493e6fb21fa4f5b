from __future__ import annotations

from pydantic import ValidationError

from src.application.dtos.profile_dto import ProfileDTO
from src.domain.entities.profile import ProfileEntity
from src.domain.errors import StorageCorruption
from src.infrastructure.logging import get_logger
from src.infrastructure.storage.local_storage import LocalKeyValueStorage

logger = get_logger(__name__)

SESSION_SLOT = "demoUser"


class PersistedSessionStore:
    """The single local slot holding the demo profile.

    ``read`` never raises. Unreadable or malformed content is logged,
    discarded, and reported as no session.
    """

    def __init__(self, storage: LocalKeyValueStorage, key: str = SESSION_SLOT) -> None:
        self.storage = storage
        self.key = key

    def read(self) -> ProfileEntity | None:
        try:
            raw = self.storage.get_item(self.key)
        except UnicodeDecodeError as exc:
            self._discard(exc)
            return None
        except OSError as exc:
            logger.warning("persisted_session_unreadable", key=self.key, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            return ProfileDTO.model_validate_json(raw).to_entity()
        except ValidationError as exc:
            self._discard(exc)
            return None

    def write(self, profile: ProfileEntity) -> None:
        self.storage.set_item(self.key, ProfileDTO.from_entity(profile).model_dump_json())

    def clear(self) -> None:
        self.storage.remove_item(self.key)

    def _discard(self, cause: Exception) -> None:
        corruption = StorageCorruption(key=self.key, detail=str(cause))
        logger.warning("persisted_session_corrupt", **corruption.to_dict())
        try:
            self.clear()
        except OSError as exc:
            logger.error("persisted_session_clear_failed", key=self.key, error=str(exc))
