"""Shared test fixtures: in-memory database, gateway, manager, and API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("SEED_DATA", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from itclinic.auth import Actor
from itclinic.database import Base, get_db
from itclinic.gateway import DataGateway
from itclinic.main import app
from itclinic.reservations import ReservationManager
from tests.helpers import ADMIN_ID, CUSTOMER_ID, FIXED_TODAY, OTHER_ID


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def gateway(db_session):
    return DataGateway(db_session)


@pytest.fixture
def manager(gateway):
    return ReservationManager(gateway, clock=lambda: FIXED_TODAY)


@pytest.fixture
def profiles(gateway):
    gateway.insert("profiles", {"id": CUSTOMER_ID, "email": "alice@example.com", "full_name": "Alice Wijaya"})
    gateway.insert("profiles", {"id": OTHER_ID, "email": "bob@example.com", "full_name": "Bob Santoso"})
    gateway.insert("profiles", {"id": ADMIN_ID, "email": "admin@itclinic.test", "full_name": "Shop Admin", "role": "admin"})


@pytest.fixture
def customer(profiles):
    return Actor(user_id=CUSTOMER_ID, role="user")


@pytest.fixture
def other_customer(profiles):
    return Actor(user_id=OTHER_ID, role="user")


@pytest.fixture
def admin(profiles):
    return Actor(user_id=ADMIN_ID, role="admin")


@pytest.fixture
def service(gateway):
    return gateway.insert(
        "services",
        {"name": "Laptop Repair", "description": "Hardware repair", "price": 150000.0, "duration_minutes": 120},
    )


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

