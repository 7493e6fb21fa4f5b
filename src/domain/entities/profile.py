from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    COACH = "coach"
    GYM_ADMIN = "gym_admin"
    GYMNAST = "gymnast"


@dataclass(frozen=True)
class GymEntity:
    id: str
    name: str
    city: str | None = None
    state: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ProfileEntity:
    id: str  # account id from the identity provider (or a demo id)
    email: str
    first_name: str
    last_name: str
    role: UserRole
    created_at: datetime
    updated_at: datetime
    gym_id: str | None = None
    phone: str | None = None
    date_of_birth: date | None = None
    is_active: bool = True
    gym: GymEntity | None = None  # joined organizational affiliation, when loaded


@dataclass(frozen=True)
class ProfileSeed:
    """Fields needed to create a profile row for a freshly created account.

    Sign-up never assigns a gym or a role other than gymnast; role changes
    happen elsewhere.
    """

    email: str
    first_name: str
    last_name: str
    role: UserRole = UserRole.GYMNAST
    id: str | None = None

    def with_id(self, account_id: str) -> ProfileSeed:
        return ProfileSeed(
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            role=self.role,
            id=account_id,
        )

    def as_metadata(self) -> dict[str, str]:
        return {
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role.value,
        }
