import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.user import User
from backend.app.services.identity_provider import IdentityProvider


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_and_login(client: TestClient, email: str, password: str) -> str:
    db = SessionLocal()
    IdentityProvider(db).create_account(email, password, full_name="Sunita Kumar")
    db.close()
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def test_me_returns_current_user():
    client = TestClient(app)
    token = create_and_login(client, "me@example.com", "secret1")
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "me@example.com"
    assert data["role"] == "parent"
    assert data["full_name"] == "Sunita Kumar"
    assert isinstance(data.get("id"), int)


def test_me_without_token_returns_401():
    client = TestClient(app)
    response = client.get("/auth/me")
    assert response.status_code == 401


def test_me_with_invalid_token_returns_401():
    client = TestClient(app)
    response = client.get("/auth/me", headers={"Authorization": "Bearer invalid"})
    assert response.status_code == 401


def test_me_for_deactivated_user_returns_401():
    client = TestClient(app)
    token = create_and_login(client, "inactive@example.com", "secret1")
    db = SessionLocal()
    db.query(User).filter(User.email == "inactive@example.com").update({"is_active": False})
    db.commit()
    db.close()
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
