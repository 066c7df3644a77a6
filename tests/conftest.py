"""
Shared fixtures: a store in a temporary directory and the account components
built on top of it.
"""

import pytest

from src.accounts.ledger import ProgressLedger
from src.accounts.registry import UserRegistry
from src.accounts.session import SessionManager
from src.models.config import AdminIdentity
from src.utils.store import JsonStore

ADMIN_PASSWORD = "admin-test-password"


@pytest.fixture
def store(tmp_path):
    """JsonStore rooted in a fresh temporary directory."""
    return JsonStore(storage_dir=tmp_path / "data")


@pytest.fixture
def registry(store):
    return UserRegistry(store)


@pytest.fixture
def admin_identity():
    return AdminIdentity(
        id="admin-special-001",
        name="Platform Administrator",
        email="admin@careercompass.app",
        password=ADMIN_PASSWORD,
    )


@pytest.fixture
def session(store, registry, admin_identity):
    return SessionManager(store, registry, admin=admin_identity)


@pytest.fixture
def ledger(session):
    return ProgressLedger(session)


@pytest.fixture
def verified_student(session):
    """A registered and verified student, not logged in."""
    user = session.register("Asha", "asha@x.com")
    return session.verify_user(user.id)


@pytest.fixture
def logged_in_student(session, verified_student):
    return session.login("asha@x.com")
