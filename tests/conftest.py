import os
import tempfile

# Point the application at a throwaway database and log directory before any
# application module builds its engine or configures logging.
_SCRATCH = tempfile.mkdtemp(prefix="supply_office_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_SCRATCH, 'app.db')}"
os.environ["LOG_DIR"] = os.path.join(_SCRATCH, "logs")

from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

import models  # noqa: F401
from database import Base, build_engine
from models.users import User, UserRole
from schemas.users import Actor
from utils.events import event_bus


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _actor(user: User) -> Actor:
    return Actor(id=user.id, role=user.role, name=user.name, email=user.email)


@pytest.fixture
def users(db):
    """One admin, a second admin and two employees."""
    rows = {
        "admin": User(name="Ana Admin", email="admin@office.test", role=UserRole.ADMIN),
        "admin2": User(name="Ben Admin", email="admin2@office.test", role=UserRole.ADMIN),
        "employee": User(name="Carla Cruz", email="carla@office.test", role=UserRole.EMPLOYEE),
        "other_employee": User(name="Dan Reyes", email="dan@office.test", role=UserRole.EMPLOYEE),
    }
    db.add_all(rows.values())
    db.commit()
    return SimpleNamespace(**{key: _actor(user) for key, user in rows.items()})


@pytest.fixture
def events():
    """Every event published on the bus during the test."""
    recorded = []
    unsubscribe = event_bus.subscribe(recorded.append)
    yield recorded
    unsubscribe()


def _item_payload(**overrides):
    payload = {
        "supplier": "Office Depot",
        "quantity": 5,
        "unit_of_measure": "reams",
        "item_name": "Bond Paper A4",
        "location": "Shelf A",
        "unit_cost": "10.00",
        "remarks": None,
        "category_name": "Paper",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_item(db, users):
    """Create a ledger item directly as the admin."""
    from crud.inventory_items import create_inventory_item

    def _make(**overrides):
        return create_inventory_item(db, users.admin, _item_payload(**overrides))

    return _make


@pytest.fixture
def item_payload():
    """Builder for a valid item payload; keyword overrides replace fields."""
    return _item_payload
