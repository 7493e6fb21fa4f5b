from __future__ import annotations

import asyncio
from datetime import date, datetime

from supabase import AsyncClient

from src.domain.entities.profile import GymEntity, ProfileEntity, ProfileSeed, UserRole
from src.domain.errors import ConstraintError, PermissionDenied, ProfileLoadFailure
from src.infrastructure.config import Settings
from src.infrastructure.database.postgres_client import PostgresClient, get_postgres_client

PROFILES_TABLE = "user_profiles"

_UNIQUE_VIOLATION = "23505"
_INSUFFICIENT_PRIVILEGE = "42501"

def _parse_datetime(value) -> datetime | None:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value

def _constraint_error(exc: Exception, user_id: str | None) -> ConstraintError:
    """Map a failed insert to the error the session layer understands."""
    code = getattr(exc, "code", None) or getattr(exc, "pgcode", None)
    message = getattr(exc, "message", None) or str(exc)
    if code == _INSUFFICIENT_PRIVILEGE or "row-level security" in message.lower():
        return PermissionDenied(message, user_id=user_id)
    if code == _UNIQUE_VIOLATION:
        return ConstraintError("A profile already exists for this account.", user_id=user_id)
    return ConstraintError(message, user_id=user_id)

class ProfileRepository:
    """Profile rows in Supabase, or in a local PostgreSQL database when
    ``use_local_db`` is set."""

    def __init__(
        self,
        client: AsyncClient | None,
        settings: Settings | None = None,
        pg_client: PostgresClient | None = None,
    ) -> None:
        settings = settings or Settings.from_env()
        self.use_local_db = settings.use_local_db
        if self.use_local_db:
            self.pg_client = pg_client or get_postgres_client()
        elif client is None:
            raise ValueError("A Supabase client is required unless use_local_db is set")
        else:
            self.pg_client = None
        self.client = client

    def _row_to_entity(self, row: dict) -> ProfileEntity:
        """Convert a ``user_profiles`` row (optionally joined with ``gym``) to ProfileEntity."""
        gym_row = row.get("gym")
        gym = None
        if gym_row:
            gym = GymEntity(
                id=gym_row["id"],
                name=gym_row["name"],
                city=gym_row.get("city"),
                state=gym_row.get("state"),
                created_at=_parse_datetime(gym_row.get("created_at")),
            )
        dob = row.get("date_of_birth")
        if isinstance(dob, str):
            dob = date.fromisoformat(dob)
        return ProfileEntity(
            id=row["id"],
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            role=UserRole(row["role"]),
            gym_id=row.get("gym_id"),
            phone=row.get("phone"),
            date_of_birth=dob,
            is_active=row.get("is_active", True),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
            gym=gym,
        )

    async def get(self, user_id: str) -> ProfileEntity | None:
        # PostgreSQL mode
        if self.pg_client is not None:
            query = """
                SELECT p.*, row_to_json(g.*) AS gym
                FROM user_profiles p
                LEFT JOIN gyms g ON g.id = p.gym_id
                WHERE p.id = %s
            """
            try:
                row = await asyncio.to_thread(self.pg_client.fetch_one, query, (user_id,))
                return self._row_to_entity(row) if row else None
            except Exception as exc:
                raise ProfileLoadFailure(f"PostgreSQL read profile failed: {exc}", user_id=user_id) from exc

        # Supabase mode
        try:  # network
            res = await (
                self.client.table(PROFILES_TABLE)
                .select("*, gym:gyms(*)")
                .eq("id", user_id)
                .maybe_single()
                .execute()
            )
            if res is None or not res.data:
                return None
            return self._row_to_entity(res.data)
        except Exception as exc:
            raise ProfileLoadFailure(f"DB read profile failed: {exc}", user_id=user_id) from exc

    async def create(self, seed: ProfileSeed) -> ProfileEntity:
        if not seed.id:
            raise ConstraintError("Profile seed has no account id.")

        # PostgreSQL mode
        if self.pg_client is not None:
            query = """
                INSERT INTO user_profiles (id, email, first_name, last_name, role, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                RETURNING *
            """
            params = (seed.id, seed.email, seed.first_name, seed.last_name, seed.role.value)
            try:
                row = await asyncio.to_thread(self.pg_client.insert_returning, query, params)
                return self._row_to_entity(row)
            except Exception as exc:
                raise _constraint_error(exc, seed.id) from exc

        # Supabase mode
        data = {
            "id": seed.id,
            "email": seed.email,
            "first_name": seed.first_name,
            "last_name": seed.last_name,
            "role": seed.role.value,
        }
        try:  # network
            res = await self.client.table(PROFILES_TABLE).insert(data).execute()
            rows = res.data if res is not None else None
            if not rows:
                raise ConstraintError("Profile insert returned no row.", user_id=seed.id)
            return self._row_to_entity(rows[0])
        except ConstraintError:
            raise
        except Exception as exc:
            raise _constraint_error(exc, seed.id) from exc
