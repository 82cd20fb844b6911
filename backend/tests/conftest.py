"""
Shared pytest fixtures.

Every test gets its own app built from explicit Settings against an in-memory
SQLite database, so tests never touch .env or a real database.
"""
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.security import TokenService
from app.main import create_app

TEST_SECRET_KEY = "test-secret-key"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SECRET_KEY=TEST_SECRET_KEY,
        DATABASE_URL="sqlite://",
        CORS_ORIGINS="http://localhost:8081",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session(app) -> Generator[Session, None, None]:
    """Session bound to the same in-memory database the app uses"""
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def token_service(app) -> TokenService:
    return app.state.token_service


def signup(client: TestClient, email: str, password: str = "pw"):
    return client.post("/signup", json={"email": email, "password": password})


def login(client: TestClient, email: str, password: str = "pw") -> str:
    response = client.post("/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    """Registered user; returns (user_id, auth headers)"""
    user_id = signup(client, "alice@mail.com").json()["id"]
    return user_id, bearer(login(client, "alice@mail.com"))


@pytest.fixture
def bob(client):
    user_id = signup(client, "bob@mail.com").json()["id"]
    return user_id, bearer(login(client, "bob@mail.com"))
