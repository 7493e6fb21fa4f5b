from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from src.domain.entities.profile import GymEntity, ProfileEntity, UserRole


class GymDTO(BaseModel):
    """Gym a profile is affiliated with."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Unique identifier of the gym", examples=["demo-gym-id"])
    name: str = Field(..., description="Display name of the gym", examples=["Demo Gymnastics"])
    city: str | None = Field(None, description="City the gym is located in")
    state: str | None = Field(None, description="State or region the gym is located in")
    created_at: datetime | None = Field(None, description="ISO timestamp when the gym was created")

    @classmethod
    def from_entity(cls, gym: GymEntity) -> GymDTO:
        return cls(id=gym.id, name=gym.name, city=gym.city, state=gym.state, created_at=gym.created_at)

    def to_entity(self) -> GymEntity:
        return GymEntity(
            id=self.id, name=self.name, city=self.city, state=self.state, created_at=self.created_at
        )


class ProfileDTO(BaseModel):
    """Extended account profile, as persisted locally and returned to clients."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, description="Account id of the user", examples=["demo-coach-id"])
    email: str = Field(..., min_length=1, description="Email address of the user", examples=["coach@demo.com"])
    first_name: str = Field(..., description="Given name of the user", examples=["Sarah"])
    last_name: str = Field(..., description="Family name of the user", examples=["Johnson"])
    role: UserRole = Field(..., description="League role of the user", examples=["coach"])
    gym_id: str | None = Field(None, description="Gym the user belongs to, if any", examples=["demo-gym-id"])
    phone: str | None = Field(None, description="Contact phone number")
    date_of_birth: date | None = Field(None, description="Date of birth (gymnasts)")
    is_active: bool = Field(True, description="Whether the account is active")
    created_at: datetime = Field(..., description="ISO timestamp when the profile was created")
    updated_at: datetime = Field(..., description="ISO timestamp when the profile was last updated")
    gym: GymDTO | None = Field(None, description="Joined gym record, when loaded")

    @classmethod
    def from_entity(cls, profile: ProfileEntity) -> ProfileDTO:
        return cls(
            id=profile.id,
            email=profile.email,
            first_name=profile.first_name,
            last_name=profile.last_name,
            role=profile.role,
            gym_id=profile.gym_id,
            phone=profile.phone,
            date_of_birth=profile.date_of_birth,
            is_active=profile.is_active,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
            gym=GymDTO.from_entity(profile.gym) if profile.gym else None,
        )

    def to_entity(self) -> ProfileEntity:
        return ProfileEntity(
            id=self.id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            role=self.role,
            created_at=self.created_at,
            updated_at=self.updated_at,
            gym_id=self.gym_id,
            phone=self.phone,
            date_of_birth=self.date_of_birth,
            is_active=self.is_active,
            gym=self.gym.to_entity() if self.gym else None,
        )
