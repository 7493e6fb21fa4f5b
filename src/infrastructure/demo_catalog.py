"""Demo account catalog used when running without a real identity provider."""
from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from pydantic import TypeAdapter

from src.application.dtos.profile_dto import ProfileDTO
from src.domain.entities.profile import ProfileEntity, UserRole
from src.domain.services.demo_credentials import DEFAULT_DEMO_PASSWORD, DemoCatalog
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEMO_GYM_ID = "demo-gym-id"

_DEMO_ACCOUNTS = [
    ("demo-admin-id", "admin@demo.com", "League", "Administrator", UserRole.ADMIN, None),
    ("demo-coach-id", "coach@demo.com", "Sarah", "Johnson", UserRole.COACH, DEMO_GYM_ID),
    ("demo-gymnast-id", "gymnast@demo.com", "Emma", "Davis", UserRole.GYMNAST, DEMO_GYM_ID),
]

_PROFILE_LIST = TypeAdapter(list[ProfileDTO])


def default_demo_catalog(password: str = DEFAULT_DEMO_PASSWORD) -> DemoCatalog:
    now = datetime.now(UTC)
    entries = {
        email: ProfileEntity(
            id=user_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            gym_id=gym_id,
            created_at=now,
            updated_at=now,
        )
        for user_id, email, first_name, last_name, role, gym_id in _DEMO_ACCOUNTS
    }
    return DemoCatalog(entries=entries, password=password)


def load_demo_catalog(path: Path | None = None, password: str = DEFAULT_DEMO_PASSWORD) -> DemoCatalog:
    """Build the catalog from a JSON list of profiles, or the built-in accounts.

    Raises:
        ValueError: the file is not a JSON list of well-formed profiles
    """
    if path is None:
        return default_demo_catalog(password)
    profiles = _PROFILE_LIST.validate_python(json.loads(path.read_text(encoding="utf-8")))
    entries = {dto.email: dto.to_entity() for dto in profiles}
    logger.info("demo_catalog_loaded", path=str(path), accounts=len(entries))
    return DemoCatalog(entries=entries, password=password)
