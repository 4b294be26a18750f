"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.api.dependencies import get_storage_service
from src.database import Base, engine_options, get_db
from src.main import app
from src.models.taxonomy import DEFAULT_CATEGORIES, Category, Tag
from src.services.storage import StorageService


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/recetas", "/recetas_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_options(SQLALCHEMY_DATABASE_URL))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def client(db, tmp_path):
    """Create a test client with database and storage overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_service] = lambda: StorageService(db, tmp_path)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str, name: str, password: str = "testpass123") -> AuthHeaders:
    """Register a user and return bearer headers; the session cookie is dropped."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201
    data = response.json()
    client.cookies.clear()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=email,
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register(client, "test@example.com", "Test User")


@pytest.fixture
def other_headers(client):
    """A second user, for ownership and visibility checks."""
    return register(client, "other@example.com", "Other User")


@pytest.fixture
def categories(db):
    """Seed the default categories and return them by slug."""
    rows = [Category(name=name, slug=slug, icon=icon) for name, slug, icon in DEFAULT_CATEGORIES]
    db.add_all(rows)
    db.commit()
    return {c.slug: c for c in rows}


@pytest.fixture
def tag(db):
    row = Tag(name="Vegano", slug="vegano", color="#22c55e")
    db.add(row)
    db.commit()
    return row


def recipe_json(title: str = "Pan Casero", **overrides) -> dict:
    """A valid recipe payload."""
    data = {
        "title": title,
        "description": "Pan de campo con corteza crujiente",
        "prep_time": 20,
        "cooking_time": 40,
        "servings": 6,
        "difficulty": "medium",
        "is_public": True,
        "ingredients": [
            {"name": "Harina", "quantity": "500", "unit": "g"},
            {"name": "Agua", "quantity": "300", "unit": "ml"},
            {"name": "Sal", "quantity": "10", "unit": "g"},
        ],
        "instructions": ["Mezclar", "Amasar", "Hornear"],
        "category_ids": [],
        "tag_ids": [],
    }
    data.update(overrides)
    return data


@pytest.fixture
def create_recipe(client):
    """Factory creating a recipe through the API and returning its id."""

    def _create(headers, title: str = "Pan Casero", **overrides) -> int:
        response = client.post(
            "/api/v1/recipes", headers=headers, json=recipe_json(title, **overrides)
        )
        assert response.status_code == 201, response.text
        return response.json()["id"]

    return _create


@pytest.fixture
def recipe_payload():
    """Builder for valid recipe payloads."""
    return recipe_json
