import os
import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Créer engine SQLite pour tests AVANT d'importer app
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test.db"
test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# PATCH: remplacer le engine et SessionLocal du core.database AVANT d'importer app
import collabtodo.core.database
collabtodo.core.database.enable_sqlite_foreign_keys(test_engine)
collabtodo.core.database.enable_sqlite_write_lock(test_engine)
collabtodo.core.database.engine = test_engine
collabtodo.core.database.SessionLocal = TestingSessionLocal

# Maintenant importer app (qui utilisera notre engine SQLite)
from collabtodo.core.database import Base, get_db
from collabtodo.core.security import create_access_token
from collabtodo.main import app
from collabtodo.services.user_service import UserService

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture(autouse=True)
def setup_teardown():
    """Crée et nettoie la DB avant/après chaque test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)

# Override la dépendance
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def client():
    """Client de test FastAPI"""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def db():
    """Session DB pour les tests"""
    db = TestingSessionLocal()
    yield db
    db.close()


def auth_headers(user_id: str, display_name: str = None, email: str = None) -> dict:
    """Header Authorization pour un user (le token est normalement émis par le provider)"""
    token = create_access_token(user_id, display_name or user_id.capitalize(), email or f"{user_id}@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    """Headers d'alice, créée (avec son Inbox) au premier appel"""
    headers = auth_headers("alice")
    client.get("/users/me", headers=headers)
    return headers


@pytest.fixture
def bob(client):
    headers = auth_headers("bob")
    client.get("/users/me", headers=headers)
    return headers


@pytest.fixture
def session_factory():
    """Fabrique de sessions indépendantes (tests de concurrence)"""
    return TestingSessionLocal


@pytest.fixture
def make_user(db):
    """Crée des users directement via le service (tests sans HTTP)"""
    def _make(user_id: str):
        return UserService(db).ensure_user(user_id, display_name=user_id.capitalize(), email=f"{user_id}@example.com")
    return _make
