"""Pytest configuration: in-memory SQLite app, fake email and user helpers."""
import sys
from pathlib import Path

# Add the backend directory to Python path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from polygram.api.deps import get_email
from polygram.domain.common.types import generate_id, utc_now
from polygram.domain.users.models import OTP_EXPIRED_AT, User
from polygram.infra.db import base
from polygram.infra.db.repositories.topic_repo import TopicRepository
from polygram.infra.db.repositories.user_repo import UserRepositoryImpl
from polygram.infra.messaging.email_base import EmailService
from polygram.infra.security.jwt import create_session_token
from polygram.infra.security.password import get_password_hash
from polygram.main import app as fastapi_app
from polygram.settings import get_config_store

PASSWORD = "Passw0rd!"


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: tests that run the full app against SQLite"
    )


class FakeEmailService(EmailService):
    """Records OTP emails instead of sending them."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    async def send_otp(self, to_email: str, name: str, otp: str, purpose: str) -> None:
        if self.fail:
            raise RuntimeError("provider unavailable")
        self.sent.append({"to": to_email, "name": name, "otp": otp, "purpose": purpose})

    def last_otp(self, to_email: str) -> str:
        for message in reversed(self.sent):
            if message["to"] == to_email:
                return message["otp"]
        raise AssertionError(f"no OTP sent to {to_email}")


@pytest.fixture
async def session_factory(monkeypatch):
    """Fresh in-memory database wired into the app's engine and session factory."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(base.Base.metadata.create_all)
    factory = base.make_session_factory(engine)
    monkeypatch.setattr(base, "engine", engine)
    monkeypatch.setattr(base, "AsyncSessionLocal", factory)
    yield factory
    await engine.dispose()


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def app(session_factory, email_service):
    fastapi_app.dependency_overrides[get_email] = lambda: email_service
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def settings_override():
    """Apply settings overrides for one test."""
    store = get_config_store()

    def _apply(**values):
        store.update(values)

    yield _apply
    store.clear_overrides()


@pytest.fixture
async def client_factory(app):
    """Build clients; each one keeps its own session cookie."""
    clients = []

    def _make(user: User = None) -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        if user is not None:
            client.cookies.set("jwt", create_session_token(user.id))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()


@pytest.fixture
def client(client_factory):
    """Anonymous client."""
    return client_factory()


@pytest.fixture
def make_user(session_factory):
    """Insert a verified user directly."""

    async def _make(username: str, **fields) -> User:
        user = User(
            id=generate_id(),
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            password_hash=get_password_hash(fields.pop("password", PASSWORD)),
            first_name=fields.pop("first_name", "Tester"),
            otp_code="000000",
            otp_generated_at=OTP_EXPIRED_AT,
            verified=fields.pop("verified", True),
            created_at=utc_now(),
            **fields,
        )
        async with session_factory() as session:
            user = await UserRepositoryImpl(session).add(user)
            await session.commit()
        return user

    return _make


@pytest.fixture
def make_topics(session_factory):
    async def _make(*names: str) -> list[str]:
        async with session_factory() as session:
            repo = TopicRepository(session)
            ids = [(await repo.add(name)).id for name in names]
            await session.commit()
        return ids

    return _make


QUESTION_CONTENT = "Which of these options would you pick and why do you think so?"


@pytest.fixture
def create_question():
    """Post a question through the API and return its JSON."""

    async def _create(client: AsyncClient, options=("A", "B"), topics=("science",), title=None):
        response = await client.post(
            "/api/questions",
            json={
                "title": title or "What is the best option here?",
                "content": QUESTION_CONTENT,
                "options": list(options),
                "topics": list(topics),
            },
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["question"]

    return _create


@pytest.fixture
def create_opinion():
    async def _create(client: AsyncClient, question_id: str, option: str = "A"):
        response = await client.post(
            "/api/opinions",
            json={"question_id": question_id, "content": "My reasoning here", "option": option},
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["opinion"]

    return _create
