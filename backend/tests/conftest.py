"""
Pytest fixtures for the MedEquip backend tests.

Provides the application on in-memory SQLite, a test client, and
EquipmentState instances backed by an in-memory store.
"""

import pytest
from medequip import create_app
from medequip.extensions import db
from medequip.models import StateBlob
from medequip.services.blob_store import MemoryBlobStore
from medequip.services.equipment_state import EquipmentState, reset_equipment_state


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty state table and a fresh cached EquipmentState for each test."""
    with app.app_context():
        db.session.query(StateBlob).delete()
        db.session.commit()
        reset_equipment_state()

        yield db.session

        db.session.rollback()
        reset_equipment_state()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def store():
    return MemoryBlobStore()


@pytest.fixture(scope='function')
def state(store):
    """Loaded EquipmentState over an empty in-memory store."""
    state = EquipmentState(store)
    assert state.load()
    return state


@pytest.fixture(scope='function')
def surgery(state):
    """Surgery department with one category; returns the department record."""
    assert state.add_department({"name": "Surgery", "code": "SURG"})
    dept = state.last_created
    assert state.add_category({"name": "Scalpels", "departmentId": dept["id"]})
    return dept


@pytest.fixture(scope='function')
def make_equipment(state):
    """Factory: add one equipment item and return the stored record."""
    def _make(department_id, name="Scalpel", **fields) -> dict:
        data = {"name": name, "departmentId": department_id, "categoryId": "", "status": "available"}
        data.update(fields)
        assert state.add_equipment(data)
        return state.last_created
    return _make
