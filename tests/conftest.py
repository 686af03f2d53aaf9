import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret-0123456789abcdef0123"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-0123456789abcdef0123"
os.environ["JWT_ACCESS_EXPIRES_IN"] = "15m"
os.environ["JWT_REFRESH_EXPIRES_IN"] = "7d"
os.environ["PASSWORD_HASH_SCHEME"] = "scrypt"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from taskhub.database import Base, SessionLocal, import_models, session_scope
from taskhub.main import app
from taskhub.models.user import UserEntry, UserRole
from taskhub.services.passwords import HashScheme, password_context

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

PASSWORD = "Password123!"


@pytest.fixture(autouse=True)
def database():
    import_models()
    Base.metadata.create_all(engine)
    SessionLocal.configure(bind=engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture():
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="make_user")
def make_user_fixture():
    """Insert a user directly, bypassing the API and the audit log."""

    def _make_user(
        email: str = "a@b.com",
        password: str = PASSWORD,
        role: UserRole = UserRole.PERFORMER,
        scheme: HashScheme = HashScheme.SCRYPT,
    ) -> UserEntry:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            entry = UserEntry(
                email=email,
                password_hash=password_context.hash(password, scheme),
                role=role.value,
                created_at=now,
                updated_at=now,
            )
            session.add(entry)
            session.flush()
        return entry

    return _make_user


@pytest.fixture(name="login")
def login_fixture(client):
    def _login(email: str = "a@b.com", password: str = PASSWORD) -> dict:
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _login
