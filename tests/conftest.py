import inspect
import os
from collections.abc import Callable
from datetime import datetime
from unittest.mock import MagicMock

# Settings are read at import time by the engine and the admin backend
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "admin")

import anyio  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from valida.auth.exceptions import InvalidTokenError  # noqa: E402
from valida.auth.service import (  # noqa: E402
    AuthAccount,
    TokenClaims,
    get_supabase_auth_service,
)
from valida.core.settings import Settings, get_settings  # noqa: E402
from valida.db.engine import get_session  # noqa: E402
from valida.generation.models import Generation, GenerationStatus  # noqa: E402
from valida.imaging.storage import ImageStorage, get_image_storage  # noqa: E402
from valida.main import app  # noqa: E402
from valida.profile.models import Profile  # noqa: E402
from valida.realtime.broker import get_event_broker  # noqa: E402
from valida.realtime.feed import GenerationChangeFeed, get_change_feed  # noqa: E402

USER_TOKEN = "user-token"
OTHER_TOKEN = "other-token"
ADMIN_TOKEN = "admin-token"
BANNED_TOKEN = "banned-token"

HOTMART_SECRET = "hotmart-test-secret"
WORKFLOW_SECRET = "workflow-test-secret"
PUBLIC_URL_PREFIX = "https://storage.example.com/product-images/"


def pytest_configure(config: pytest.Config) -> None:
    # Tests use @pytest.mark.asyncio, but we intentionally rely on anyio.
    config.addinivalue_line(
        "markers",
        "asyncio: run async tests using anyio (project-local hook)",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Run @pytest.mark.asyncio tests with anyio.

    This avoids adding an external pytest-asyncio dependency.
    """
    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None

    funcargs = {
        name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
    }

    async def _run_async_test() -> None:
        await test_func(**funcargs)

    anyio.run(_run_async_test)
    return True


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def mock_http_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.AsyncClient:
    """Async HTTP client whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeAuthService:
    """In-memory stand-in for the Supabase auth service."""

    def __init__(self) -> None:
        self.tokens: dict[str, TokenClaims] = {}
        self.accounts: dict[str, AuthAccount] = {}
        self.created: list[tuple[str, str, dict]] = []
        self.completed: list[tuple[str, str]] = []

    def verify_access_token(self, access_token: str) -> TokenClaims:
        claims = self.tokens.get(access_token)
        if claims is None:
            raise InvalidTokenError()
        return claims

    def find_user_by_email(self, email: str) -> AuthAccount | None:
        return self.accounts.get(email.strip().lower())

    def create_user(
        self, email: str, password: str, user_metadata: dict
    ) -> AuthAccount:
        account = AuthAccount(
            uid=f"new-uid-{len(self.created) + 1}",
            email=email,
            user_metadata=user_metadata,
        )
        self.accounts[email.lower()] = account
        self.created.append((email, password, user_metadata))
        return account

    def complete_first_access(self, uid: str, new_password: str) -> None:
        self.completed.append((uid, new_password))


class FakeRealtimeChannel:
    def __init__(self, topic: str) -> None:
        self.topic = topic
        self.bindings: list[dict] = []
        self.subscribed = False

    def on_postgres_changes(
        self, event, callback, table="*", schema="public", filter=None
    ):
        self.bindings.append(
            {
                "event": event,
                "callback": callback,
                "table": table,
                "schema": schema,
                "filter": filter,
            }
        )
        return self

    async def subscribe(self, callback=None):
        self.subscribed = True
        return self


class FakeRealtimeClient:
    """In-memory stand-in for a Supabase Realtime client.

    ``emit_update`` plays the role of Postgres: it hands a changed row to
    every live channel whose filter selects it.
    """

    def __init__(self, on_subscribe: Callable[[], None] | None = None) -> None:
        self.channels: list[FakeRealtimeChannel] = []
        self.removed: list[FakeRealtimeChannel] = []
        self._on_subscribe = on_subscribe

    async def factory(self) -> "FakeRealtimeClient":
        return self

    def channel(self, topic: str) -> FakeRealtimeChannel:
        channel = FakeRealtimeChannel(topic)
        if self._on_subscribe is not None:
            original = channel.subscribe

            async def subscribe(callback=None):
                self._on_subscribe()
                return await original(callback)

            channel.subscribe = subscribe
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel: FakeRealtimeChannel) -> None:
        self.removed.append(channel)

    async def remove_all_channels(self) -> None:
        self.removed.extend(c for c in self.channels if c not in self.removed)

    def emit_update(self, generation: Generation) -> int:
        payload = {
            "data": {
                "type": "UPDATE",
                "schema": "public",
                "table": "generations",
                "record": {
                    "id": generation.id,
                    "image_url": generation.image_url,
                    "status": GenerationStatus(generation.status).value,
                },
            },
            "ids": [1],
        }
        delivered = 0
        for channel in self.channels:
            if not channel.subscribed or channel in self.removed:
                continue
            for binding in channel.bindings:
                if binding["filter"] == f"id=eq.{generation.id}":
                    binding["callback"](payload)
                    delivered += 1
        return delivered


@pytest.fixture(name="session")
def session_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


def _add_profile(session: Session, **fields) -> Profile:
    profile = Profile(**fields)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture(name="test_profile")
def test_profile_fixture(session: Session) -> Profile:
    return _add_profile(session, id="user-1", email="user@example.com", name="User")


@pytest.fixture(name="other_profile")
def other_profile_fixture(session: Session) -> Profile:
    return _add_profile(session, id="user-2", email="other@example.com", name="Other")


@pytest.fixture(name="admin_profile")
def admin_profile_fixture(session: Session) -> Profile:
    return _add_profile(
        session, id="admin-1", email="admin@example.com", name="Admin", is_admin=True
    )


@pytest.fixture(name="banned_profile")
def banned_profile_fixture(session: Session) -> Profile:
    return _add_profile(
        session,
        id="banned-1",
        email="banned@example.com",
        name="Banned",
        is_banned=True,
    )


@pytest.fixture(name="auth_service")
def auth_service_fixture() -> FakeAuthService:
    service = FakeAuthService()
    service.tokens = {
        USER_TOKEN: TokenClaims(uid="user-1", email="user@example.com"),
        OTHER_TOKEN: TokenClaims(uid="user-2", email="other@example.com"),
        ADMIN_TOKEN: TokenClaims(uid="admin-1", email="admin@example.com"),
        BANNED_TOKEN: TokenClaims(uid="banned-1", email="banned@example.com"),
    }
    return service


@pytest.fixture(name="mock_settings")
def mock_settings_fixture() -> Settings:
    """Create mock settings."""
    return Settings(
        env_name="test",
        database_url="sqlite://",
        session_secret_key="test-secret-key",
        admin_username="admin",
        admin_password="admin",
        supabase_jwt_secret="test-jwt-secret",
        hotmart_secret=HOTMART_SECRET,
        n8n_callback_secret=WORKFLOW_SECRET,
        site_url="https://app.example.com",
    )


@pytest.fixture(name="storage_client")
def storage_client_fixture() -> MagicMock:
    """Supabase client double whose bucket uploads always succeed."""
    client = MagicMock()
    bucket = client.storage.from_.return_value
    bucket.get_public_url.side_effect = lambda name: f"{PUBLIC_URL_PREFIX}{name}"
    return client


@pytest.fixture(name="image_storage")
def image_storage_fixture(storage_client: MagicMock) -> ImageStorage:
    return ImageStorage("product-images", client_factory=lambda: storage_client)


@pytest.fixture(name="client")
def client_fixture(
    session: Session,
    auth_service: FakeAuthService,
    mock_settings: Settings,
    image_storage: ImageStorage,
    test_profile: Profile,
):
    """Create a test client with overridden dependencies."""
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_supabase_auth_service] = lambda: auth_service
    app.dependency_overrides[get_settings] = lambda: mock_settings
    app.dependency_overrides[get_image_storage] = lambda: image_storage
    # Row changes only come from this process unless a test wires a feed
    app.dependency_overrides[get_change_feed] = lambda: GenerationChangeFeed(
        get_event_broker()
    )

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="make_generation")
def make_generation_fixture(session: Session):
    """Factory that saves a generation row."""

    def _make(
        user_id: str = "user-1",
        *,
        product_name: str = "Garrafa Termica",
        status: GenerationStatus = GenerationStatus.processando,
        image_url: str | None = None,
        created_at: datetime | None = None,
        **fields,
    ) -> Generation:
        generation = Generation(
            user_id=user_id,
            product_name=product_name,
            features=fields.pop("features", "500ml, aco inox"),
            category=fields.pop("category", "Casa"),
            status=status,
            image_url=image_url,
            **fields,
        )
        if created_at is not None:
            generation.created_at = created_at
        session.add(generation)
        session.commit()
        session.refresh(generation)
        return generation

    return _make
