import asyncio
import os
import sys
from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure project root is on sys.path so 'src' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from src.application.change_stream import SessionChangeStream  # noqa: E402
from src.application.ports import AuthResult, ProviderError, SignUpResult  # noqa: E402
from src.domain.entities.profile import ProfileEntity, UserRole  # noqa: E402
from src.domain.entities.session import Identity, SessionChange  # noqa: E402
from src.domain.services.demo_credentials import DemoCredentialResolver  # noqa: E402
from src.infrastructure.demo_catalog import default_demo_catalog  # noqa: E402
from src.infrastructure.storage.local_storage import LocalKeyValueStorage  # noqa: E402
from src.infrastructure.storage.session_store import PersistedSessionStore  # noqa: E402

DEMO_PASSWORD = "demo123"


async def _settle(rounds: int = 10) -> None:
    """Let the session manager's change handler catch up."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeIdentityProvider:
    """In-process stand-in for Supabase Auth that records every call."""

    def __init__(self, journal: list) -> None:
        self.journal = journal
        self.accounts: dict[str, dict] = {}
        self.current: Identity | None = None
        self.streams: list[SessionChangeStream] = []
        self.released: list[SessionChangeStream] = []
        self.sign_up_error: ProviderError | None = None
        self.sign_out_error: ProviderError | None = None
        self.sign_up_returns_id = True
        self.confirm_sign_ups = True

    def add_account(self, email: str, password: str, account_id: str, confirmed: bool = True) -> None:
        self.accounts[email] = {"password": password, "id": account_id, "confirmed": confirmed}

    def emit(self, event: str, identity: Identity | None) -> None:
        for stream in self.streams:
            stream.publish(SessionChange(event=event, identity=identity))

    async def sign_in(self, email, password):
        self.journal.append(("sign_in", email))
        account = self.accounts.get(email)
        if account is None or account["password"] != password:
            return AuthResult(error=ProviderError("Invalid login credentials", code="invalid_credentials", status=400))
        if not account["confirmed"]:
            return AuthResult(error=ProviderError("Email not confirmed", code="email_not_confirmed", status=400))
        identity = Identity(user_id=account["id"], email=email, access_token=f"token-{account['id']}")
        self.current = identity
        self.emit("SIGNED_IN", identity)
        return AuthResult(identity=identity)

    async def sign_up(self, email, password, seed):
        self.journal.append(("sign_up", email))
        if self.sign_up_error is not None:
            return SignUpResult(error=self.sign_up_error)
        account_id = f"acct-{len(self.accounts) + 1}"
        self.add_account(email, password, account_id, confirmed=self.confirm_sign_ups)
        return SignUpResult(account_id=account_id if self.sign_up_returns_id else None)

    async def sign_out(self):
        self.journal.append(("sign_out", None))
        if self.sign_out_error is not None:
            return self.sign_out_error
        self.current = None
        self.emit("SIGNED_OUT", None)
        return None

    async def get_current_session(self):
        self.journal.append(("get_current_session", None))
        return self.current

    def session_changes(self):
        stream = SessionChangeStream()
        stream.add_cancel_callback(lambda: self.released.append(stream))
        self.streams.append(stream)
        return stream


class FakeProfileStore:
    def __init__(self, journal: list) -> None:
        self.journal = journal
        self.rows: dict[str, ProfileEntity] = {}
        self.get_error: Exception | None = None
        self.create_error: Exception | None = None

    async def get(self, user_id):
        self.journal.append(("get_profile", user_id))
        if self.get_error is not None:
            raise self.get_error
        return self.rows.get(user_id)

    async def create(self, seed):
        self.journal.append(("create_profile", seed.id))
        if self.create_error is not None:
            raise self.create_error
        now = datetime.now(UTC)
        profile = ProfileEntity(
            id=seed.id,
            email=seed.email,
            first_name=seed.first_name,
            last_name=seed.last_name,
            role=seed.role,
            created_at=now,
            updated_at=now,
        )
        self.rows[seed.id] = profile
        return profile


class FakeQuery:
    """Chainable stand-in for a postgrest request builder."""

    def __init__(self, client: "FakeSupabaseClient", table: str) -> None:
        self.client = client
        self.table = table
        self.operation = "select"
        self.payload = None
        self.filters: list[tuple] = []

    def select(self, columns="*"):
        self.operation = "select"
        self.payload = columns
        return self

    def insert(self, data):
        self.operation = "insert"
        self.payload = data
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def maybe_single(self):
        return self

    async def execute(self):
        self.client.executed.append((self.table, self.operation, self.payload, tuple(self.filters)))
        error = self.client.errors.get(self.operation)
        if error is not None:
            raise error
        return SimpleNamespace(data=self.client.data.get(self.operation))


class FakeSupabaseClient:
    """Records table requests; ``data`` and ``errors`` are keyed by operation."""

    def __init__(self) -> None:
        self.data: dict[str, object] = {}
        self.errors: dict[str, Exception] = {}
        self.executed: list[tuple] = []

    def table(self, name):
        return FakeQuery(self, name)


def _make_profile(user_id: str = "user-1", email: str = "member@example.com", **overrides) -> ProfileEntity:
    now = datetime(2025, 7, 30, 12, 0, tzinfo=UTC)
    fields = dict(
        id=user_id,
        email=email,
        first_name="Jamie",
        last_name="Lee",
        role="gymnast",
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    fields["role"] = UserRole(fields["role"])
    return ProfileEntity(**fields)


@pytest.fixture()
def storage(tmp_path) -> LocalKeyValueStorage:
    return LocalKeyValueStorage(tmp_path / "storage")


@pytest.fixture()
def store(storage) -> PersistedSessionStore:
    return PersistedSessionStore(storage)


@pytest.fixture()
def catalog():
    return default_demo_catalog(DEMO_PASSWORD)


@pytest.fixture()
def resolver(catalog) -> DemoCredentialResolver:
    return DemoCredentialResolver(catalog)


@pytest.fixture()
def journal() -> list:
    return []


@pytest.fixture()
def provider(journal) -> FakeIdentityProvider:
    return FakeIdentityProvider(journal)


@pytest.fixture()
def profiles(journal) -> FakeProfileStore:
    return FakeProfileStore(journal)


@pytest.fixture()
def settle():
    return _settle


@pytest.fixture()
def make_profile():
    return _make_profile


@pytest.fixture()
def supabase_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()
