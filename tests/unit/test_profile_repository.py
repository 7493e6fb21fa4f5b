import asyncio

import pytest

from src.domain.entities.profile import ProfileSeed, UserRole
from src.domain.errors import ConstraintError, PermissionDenied, ProfileLoadFailure
from src.infrastructure.config import Settings
from src.infrastructure.database.repositories.profile_repository import (
    PROFILES_TABLE,
    ProfileRepository,
    _constraint_error,
)

ROW = {
    "id": "user-1",
    "email": "coach@example.com",
    "first_name": "Sam",
    "last_name": "Ortiz",
    "role": "coach",
    "gym_id": "gym-1",
    "phone": None,
    "date_of_birth": "2001-04-05",
    "is_active": True,
    "created_at": "2025-07-30T00:01:00+00:00",
    "updated_at": "2025-07-30T00:01:00+00:00",
    "gym": {"id": "gym-1", "name": "Flip City", "city": "Austin", "state": "TX"},
}


class _ApiError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.message = message
        self.code = code


class _PgClient:
    """Blocking helpers with the same shape as PostgresClient."""

    def __init__(self, row=None, error=None):
        self.row = row
        self.error = error
        self.queries = []

    def fetch_one(self, query, params=()):
        self.queries.append(params)
        if self.error is not None:
            raise self.error
        return self.row

    def insert_returning(self, query, params=()):
        self.queries.append(params)
        if self.error is not None:
            raise self.error
        return self.row


@pytest.fixture
def repo(supabase_client):
    return ProfileRepository(supabase_client, settings=Settings())


def _seed(account_id="acct-9"):
    return ProfileSeed(email="new@x.com", first_name="A", last_name="B").with_id(account_id)


def test_supabase_get_joins_gym(repo, supabase_client):
    supabase_client.data["select"] = ROW

    profile = asyncio.run(repo.get("user-1"))

    assert profile.role is UserRole.COACH
    assert profile.gym.name == "Flip City"
    table, operation, columns, filters = supabase_client.executed[0]
    assert (table, operation) == (PROFILES_TABLE, "select")
    assert "gym:gyms(*)" in columns
    assert filters == (("id", "user-1"),)


def test_supabase_get_missing_row_is_none(repo, supabase_client):
    supabase_client.data["select"] = None
    assert asyncio.run(repo.get("user-2")) is None


def test_supabase_get_error_is_a_load_failure(repo, supabase_client):
    supabase_client.errors["select"] = RuntimeError("connection reset")

    with pytest.raises(ProfileLoadFailure) as info:
        asyncio.run(repo.get("user-1"))
    assert info.value.context["user_id"] == "user-1"


def test_supabase_get_unreadable_row_is_a_load_failure(repo, supabase_client):
    supabase_client.data["select"] = {**ROW, "role": "judge"}

    with pytest.raises(ProfileLoadFailure):
        asyncio.run(repo.get("user-1"))


def test_supabase_create_inserts_seed(repo, supabase_client):
    supabase_client.data["insert"] = [{**ROW, "id": "acct-9", "gym": None, "role": "gymnast"}]

    profile = asyncio.run(repo.create(_seed()))

    assert profile.id == "acct-9"
    assert profile.role is UserRole.GYMNAST
    _, operation, payload, _ = supabase_client.executed[0]
    assert operation == "insert"
    assert payload == {
        "id": "acct-9",
        "email": "new@x.com",
        "first_name": "A",
        "last_name": "B",
        "role": "gymnast",
    }


def test_supabase_create_with_no_returned_row(repo, supabase_client):
    supabase_client.data["insert"] = []

    with pytest.raises(ConstraintError) as info:
        asyncio.run(repo.create(_seed()))
    assert info.value.context["user_id"] == "acct-9"


def test_supabase_create_with_unreadable_row(repo, supabase_client):
    supabase_client.data["insert"] = [{"id": "acct-9", "role": "judge"}]

    with pytest.raises(ConstraintError):
        asyncio.run(repo.create(_seed()))


def test_supabase_create_policy_rejection(repo, supabase_client):
    supabase_client.errors["insert"] = _ApiError("new row violates row-level security policy", "42501")

    with pytest.raises(PermissionDenied):
        asyncio.run(repo.create(_seed()))


def test_seed_without_id_is_rejected(repo, supabase_client):
    with pytest.raises(ConstraintError):
        asyncio.run(repo.create(ProfileSeed(email="new@x.com", first_name="A", last_name="B")))
    assert supabase_client.executed == []


def test_client_required_without_local_db():
    with pytest.raises(ValueError):
        ProfileRepository(None, settings=Settings())


def test_local_db_get_and_create():
    pg = _PgClient(row=ROW)
    repo = ProfileRepository(None, settings=Settings(use_local_db=True), pg_client=pg)

    async def scenario():
        return await repo.get("user-1"), await repo.create(_seed("user-1"))

    loaded, created = asyncio.run(scenario())
    assert loaded == created
    assert pg.queries[0] == ("user-1",)
    assert pg.queries[1] == ("user-1", "new@x.com", "A", "B", "gymnast")


def test_local_db_duplicate_is_a_constraint_error():
    pg = _PgClient(error=_ApiError("duplicate key value violates unique constraint", "23505"))
    repo = ProfileRepository(None, settings=Settings(use_local_db=True), pg_client=pg)

    with pytest.raises(ConstraintError) as info:
        asyncio.run(repo.create(_seed()))
    assert "already exists" in info.value.user_message


def test_local_db_unreadable_row_is_a_constraint_error():
    pg = _PgClient(row={"id": "acct-9"})
    repo = ProfileRepository(None, settings=Settings(use_local_db=True), pg_client=pg)

    with pytest.raises(ConstraintError):
        asyncio.run(repo.create(_seed()))


def test_row_with_joined_gym(repo):
    profile = repo._row_to_entity(ROW)
    assert profile.role is UserRole.COACH
    assert profile.gym.name == "Flip City"
    assert profile.date_of_birth.year == 2001
    assert profile.created_at.tzinfo is not None


@pytest.mark.parametrize(
    "exc,expected",
    [
        (_ApiError("new row violates row-level security policy", "42501"), PermissionDenied),
        (_ApiError("permission denied", "42501"), PermissionDenied),
        (_ApiError("duplicate key value violates unique constraint", "23505"), ConstraintError),
        (RuntimeError("connection reset"), ConstraintError),
    ],
)
def test_insert_errors_are_classified(exc, expected):
    error = _constraint_error(exc, "acct-1")
    assert type(error) is expected
    assert error.context["user_id"] == "acct-1"
