"""Shared pytest fixtures: in-memory database, stores, users and an API client."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("GROQ_API_KEY", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app
from app.models import Role, Store
from app.repositories import StoreContext, StoreRepository
from tests.factories import make_user


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def roles(db):
    created = {name: Role(name=name, description=f"{name} role") for name in ("Admin", "Manager", "Staff")}
    db.add_all(created.values())
    db.commit()
    return created


@pytest.fixture
def store_a(db):
    store = Store(name="Store A", slug="store-a")
    db.add(store)
    db.commit()
    return store


@pytest.fixture
def store_b(db):
    store = Store(name="Store B", slug="store-b")
    db.add(store)
    db.commit()
    return store


@pytest.fixture
def admin_a(db, roles, store_a):
    return make_user(db, roles["Admin"], store_a, "admin@a.example")


@pytest.fixture
def staff_a(db, roles, store_a):
    return make_user(db, roles["Staff"], store_a, "staff@a.example")


@pytest.fixture
def admin_b(db, roles, store_b):
    return make_user(db, roles["Admin"], store_b, "admin@b.example")


@pytest.fixture
def repo_a(db, store_a, admin_a):
    return StoreRepository(db, StoreContext(store_id=store_a.id, user=admin_a))


@pytest.fixture
def repo_b(db, store_b, admin_b):
    return StoreRepository(db, StoreContext(store_id=store_b.id, user=admin_b))


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
