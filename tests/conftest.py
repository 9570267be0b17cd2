"""Shared pytest fixtures for finadmin tests."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from finadmin.config import Settings
from finadmin.db.schema import Base

TEST_SECRET = "test-secret"


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    factory = sessionmaker(bind=engine)
    session = factory()
    yield session
    session.close()


@pytest.fixture
def api_engine():
    """In-memory engine shared across threads for API tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def client(api_engine):
    """TestClient whose requests use the in-memory database."""
    from finadmin.api.app import create_app, get_db_session

    app = create_app(Settings(jwt_secret=TEST_SECRET))

    def override_get_db():
        with Session(api_engine) as db_session:
            yield db_session

    app.dependency_overrides[get_db_session] = override_get_db
    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    """Register and log in an admin, returning the bearer header."""
    credentials = {"email": "admin@example.com", "password": "admin123"}
    assert client.post("/admin/register", json=credentials).status_code == 201
    token = client.post("/admin/login", json=credentials).json()["token"]
    return {"Authorization": f"Bearer {token}"}
