# tests/conftest.py
import os

# Base de datos SQLite en memoria: debe definirse antes de importar blog_service
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "clave-de-pruebas")

import pytest
from fastapi.testclient import TestClient

from blog_service.db import Base, engine, SessionLocal
from blog_service.main import app
from blog_service.auth import AuthService
from blog_service.stores import CredentialStore, ContentStore

TEST_USERNAME = "testuser"
TEST_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def reset_database():
    """Cada prueba arranca con las tablas vacías."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def auth_service(db_session):
    return AuthService(CredentialStore(db_session))


@pytest.fixture
def content_store(db_session):
    return ContentStore(db_session)


@pytest.fixture
def test_user_token(client):
    """
    1. Registra un usuario de prueba.
    2. Inicia sesión para obtener un token.
    3. Devuelve username, user_id y token.
    """
    r_register = client.post("/register", json={"username": TEST_USERNAME, "password": TEST_PASSWORD})
    assert r_register.status_code == 201, r_register.text

    r_login = client.post("/login", json={"username": TEST_USERNAME, "password": TEST_PASSWORD})
    assert r_login.status_code == 200, r_login.text
    token_data = r_login.json()

    return {"username": TEST_USERNAME, "user_id": token_data["user_id"], "token": token_data["access_token"]}


# Fixture de utilidad para las cabeceras de autorización
@pytest.fixture
def auth_headers(test_user_token):
    return {"Authorization": f"Bearer {test_user_token['token']}"}
