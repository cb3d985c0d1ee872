import os
import tempfile

# Required settings must exist before the application module is imported
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(tempfile.mkdtemp(), "import.sqlite"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(tempfile.mkdtemp(), "uploads"))

import pytest
from fastapi.testclient import TestClient

from affinity_api.auth import get_password_hash
from affinity_api.config import Settings
from affinity_api.main import create_app
from affinity_api.models.user import User

DB_SECRET = "test-db-secret"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        jwt_secret="test-jwt-secret",
        database_url=f"sqlite:///{tmp_path / 'test.sqlite'}",
        upload_dir=str(tmp_path / "uploads"),
        db_secret_key=DB_SECRET,
        prediction_api_url="https://predictor.test/predict",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session(app, client):
    session = app.state.database.session()
    try:
        yield session
    finally:
        session.close()


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, username: str, email: str, password: str = "secret1"):
    return client.post("/api/auth/register", json={"username": username, "email": email, "password": password})


def login(client: TestClient, email: str, password: str = "secret1") -> str:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def create_admin(app, username: str = "root", email: str = "root@lab.com", password: str = "rootpass") -> User:
    """Insert an admin row directly, bypassing the API."""
    session = app.state.database.session()
    try:
        admin = User(username=username, email=email, hashed_password=get_password_hash(password), is_admin=True)
        session.add(admin)
        session.commit()
        session.refresh(admin)
        session.expunge(admin)
        return admin
    finally:
        session.close()


@pytest.fixture
def admin_user(app, client) -> User:
    return create_admin(app)


@pytest.fixture
def admin_token(client, admin_user) -> str:
    return login(client, "root@lab.com", "rootpass")


@pytest.fixture
def user_token(client) -> str:
    response = register(client, "alice123", "a@lab.com")
    assert response.status_code == 201, response.text
    return response.json()["token"]
