"""
Unit tests for SessionManager
"""

import pytest

from src.accounts.registry import UserRegistry
from src.accounts.session import SessionManager, SessionState
from src.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    UnverifiedAccountError,
    UserNotFoundError,
)
from src.models.user import NewUser, UserRole, UserUpdate
from src.utils.store import SESSION_KEY


def reopen(store, admin_identity):
    """Simulate an application restart against the same storage."""
    return SessionManager(store, UserRegistry(store), admin=admin_identity)


class TestLogin:
    def test_starts_anonymous(self, session):
        assert session.state == SessionState.ANONYMOUS
        assert session.current_user is None

    def test_login_is_case_insensitive(self, session, verified_student):
        user = session.login("ASHA@X.COM")

        assert user.id == verified_student.id
        assert session.state == SessionState.AUTHENTICATED
        assert session.is_authenticated

    def test_login_persists_session_document(self, session, store, verified_student):
        session.login("asha@x.com")

        assert store.get(SESSION_KEY)["id"] == verified_student.id

    def test_unverified_login_rejected(self, session):
        user = session.register("Asha", "asha@x.com")

        with pytest.raises(UnverifiedAccountError) as exc_info:
            session.login("asha@x.com")

        assert exc_info.value.user_id == user.id
        assert session.state == SessionState.ANONYMOUS

    def test_unknown_email_rejected(self, session):
        with pytest.raises(UserNotFoundError):
            session.login("nobody@x.com")
        assert session.current_user is None

    def test_password_is_not_checked_for_registered_users(self, session, verified_student):
        assert session.login("asha@x.com", password="anything").id == verified_student.id


class TestAdminIdentity:
    def test_admin_login_synthesizes_user(self, session, registry, admin_identity):
        user = session.login(admin_identity.email, password=admin_identity.password)

        assert user.id == admin_identity.id
        assert user.role == UserRole.ADMIN
        assert user.verified is True
        assert registry.get(admin_identity.id) is None

    def test_admin_email_is_case_insensitive(self, session, admin_identity):
        user = session.login(admin_identity.email.upper(), password=admin_identity.password)

        assert session.is_admin_identity(user)

    @pytest.mark.parametrize("password", ["wrong", "", None])
    def test_admin_wrong_password(self, session, admin_identity, password):
        with pytest.raises(InvalidCredentialsError):
            session.login(admin_identity.email, password=password)
        assert session.state == SessionState.ANONYMOUS

    def test_admin_email_cannot_be_registered(self, session, admin_identity):
        with pytest.raises(DuplicateEmailError):
            session.register("Impostor", admin_identity.email)

    def test_admin_session_survives_restart(self, session, store, admin_identity):
        session.login(admin_identity.email, password=admin_identity.password)

        restored = reopen(store, admin_identity)

        assert restored.current_user.id == admin_identity.id

    def test_admin_profile_update_stays_out_of_registry(
        self, session, registry, admin_identity
    ):
        session.login(admin_identity.email, password=admin_identity.password)

        updated = session.update_current_user(UserUpdate(academic_goals="Oversight"))

        assert updated.academic_goals == "Oversight"
        assert registry.users == ()


class TestRestore:
    def test_restores_logged_in_user(self, session, store, admin_identity, logged_in_student):
        restored = reopen(store, admin_identity)

        assert restored.state == SessionState.AUTHENTICATED
        assert restored.current_user.id == logged_in_student.id

    def test_restore_prefers_registry_copy(
        self, session, store, registry, admin_identity, logged_in_student
    ):
        # Registry changed behind the session's back
        registry.edit_user(logged_in_student.id, UserUpdate(name="Asha K"))

        restored = reopen(store, admin_identity)

        assert restored.current_user.name == "Asha K"
        assert store.get(SESSION_KEY)["name"] == "Asha K"

    def test_session_for_deleted_user_is_discarded(
        self, session, store, registry, admin_identity, logged_in_student
    ):
        registry.delete_user(logged_in_student.id)

        restored = reopen(store, admin_identity)

        assert restored.state == SessionState.ANONYMOUS
        assert store.get(SESSION_KEY) is None

    def test_corrupted_session_document_is_discarded(self, store, admin_identity):
        (store.storage_dir / f"{SESSION_KEY}.json").write_text("{", encoding="utf-8")

        restored = reopen(store, admin_identity)

        assert restored.state == SessionState.ANONYMOUS

    def test_malformed_session_document_is_discarded(self, store, admin_identity):
        store.set(SESSION_KEY, {"id": "1"})

        restored = reopen(store, admin_identity)

        assert restored.state == SessionState.ANONYMOUS
        assert store.get(SESSION_KEY) is None


class TestUpdatesAndLogout:
    def test_update_writes_through_to_registry_and_session(
        self, session, store, registry, logged_in_student
    ):
        updated = session.update_current_user(UserUpdate(academic_goals="Engineering"))

        assert updated.academic_goals == "Engineering"
        assert session.current_user.academic_goals == "Engineering"
        assert registry.get(logged_in_student.id).academic_goals == "Engineering"
        assert store.get(SESSION_KEY)["academicGoals"] == "Engineering"

    def test_update_while_anonymous_is_noop(self, session, registry, verified_student):
        assert session.update_current_user(UserUpdate(name="Ghost")) is None
        assert registry.get(verified_student.id).name == "Asha"

    def test_update_email_collision_changes_nothing(
        self, session, store, registry, logged_in_student
    ):
        registry.register("Ravi", "ravi@x.com")

        with pytest.raises(DuplicateEmailError):
            session.update_current_user(UserUpdate(email="RAVI@x.com"))

        assert session.current_user.email == "asha@x.com"
        assert store.get(SESSION_KEY)["email"] == "asha@x.com"

    def test_update_to_admin_email_rejected(
        self, session, admin_identity, logged_in_student
    ):
        with pytest.raises(DuplicateEmailError):
            session.update_current_user(UserUpdate(email=admin_identity.email))

    def test_logout_keeps_registry(self, session, store, registry, logged_in_student):
        session.logout()

        assert session.state == SessionState.ANONYMOUS
        assert store.get(SESSION_KEY) is None
        assert registry.get(logged_in_student.id) is not None

    def test_commit_rejects_other_users(self, session, registry, logged_in_student):
        other = registry.register("Ravi", "ravi@x.com")

        with pytest.raises(ValueError):
            session.commit(other)

    def test_context_manager_returns_session(self, session):
        with session as active:
            assert active is session


class TestAdministrativeSync:
    def test_edit_of_current_user_updates_session(
        self, session, store, logged_in_student
    ):
        session.edit_user(logged_in_student.id, UserUpdate(name="Asha K"))

        assert session.current_user.name == "Asha K"
        assert store.get(SESSION_KEY)["name"] == "Asha K"

    def test_edit_of_other_user_leaves_session(self, session, registry, logged_in_student):
        other = registry.register("Ravi", "ravi@x.com")

        session.edit_user(other.id, UserUpdate(name="Ravi K"))

        assert session.current_user.name == "Asha"

    def test_deleting_current_user_logs_out(self, session, store, logged_in_student):
        assert session.delete_user(logged_in_student.id) is True

        assert session.state == SessionState.ANONYMOUS
        assert store.get(SESSION_KEY) is None

    def test_verify_user_then_login(self, session):
        user = session.register("Asha", "asha@x.com")

        session.verify_user(user.id)

        assert session.login("asha@x.com").verified is True

    def test_add_user_with_admin_email_rejected(self, session, admin_identity):
        with pytest.raises(DuplicateEmailError):
            session.add_user(NewUser(name="Impostor", email=admin_identity.email))
