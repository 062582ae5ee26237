import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AI_PROVIDER"] = "anthropic"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bizcoach.coach.factory import get_model_client
from bizcoach.db.base import Base
from bizcoach.db.session import get_db
from bizcoach.main import create_app
from bizcoach import models  # noqa: F401
from tests.fakes import FakeModelClient


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory) -> Session:
    with session_factory() as session:
        yield session


@pytest.fixture()
def fake_model() -> FakeModelClient:
    return FakeModelClient()


@pytest.fixture()
def client(session_factory, fake_model: FakeModelClient):
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_model_client] = lambda: fake_model
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, email: str, password: str = "supersecure") -> dict[str, str]:
    response = client.post(
        "/auth/register",
        json={"email": email, "password": password, "full_name": "Test Founder"},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    return register(client, "founder@example.com")


@pytest.fixture()
def other_headers(client: TestClient) -> dict[str, str]:
    return register(client, "intruder@example.com")
