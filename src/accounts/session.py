"""
Session Manager

Holds at most one current user and keeps it consistent with the user registry.
State machine: Anonymous <-> Authenticated(User). The initial state is restored
from the "current-session" store key.

Every mutation of the current user is written to both the registry and the
session document before the call returns. The administrative identity is the
one exception: it is synthesized at login and only ever lives in the session.

Example Usage:
    store = JsonStore("data")
    with SessionManager(store, UserRegistry(store), params.admin) as session:
        user = session.login("asha@x.com")
        session.update_current_user(UserUpdate(academic_goals="Engineering"))
        session.logout()
"""

import hmac
from enum import Enum
from typing import Optional

from pydantic import ValidationError

from src.accounts.registry import UserRegistry
from src.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    UnverifiedAccountError,
    UserNotFoundError,
)
from src.models.config import AdminIdentity
from src.models.user import NewUser, User, UserRole, UserUpdate, normalize_email
from src.utils.logger import get_logger
from src.utils.store import SESSION_KEY, JsonStore


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class SessionManager:
    """Login state and write-through updates for the current user."""

    def __init__(
        self,
        store: JsonStore,
        registry: UserRegistry,
        admin: Optional[AdminIdentity] = None,
        correlation_id: Optional[str] = None,
    ):
        """
        Initialize the session, restoring a previously persisted login.

        Args:
            store: Store holding the "current-session" document
            registry: Registry the current user must belong to
            admin: The administrative identity (defaults from AdminIdentity())
            correlation_id: Correlation ID for logging
        """
        self.store = store
        self.registry = registry
        self.admin = admin or AdminIdentity()
        self.logger = get_logger(
            correlation_id=correlation_id, phase="session", component="session_manager"
        )
        self._current: Optional[User] = self._restore()

    def __enter__(self) -> "SessionManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.logger.debug("session_scope_closed", state=self.state.value)

    # ----- state -----------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if self._current is None:
            return SessionState.ANONYMOUS
        return SessionState.AUTHENTICATED

    @property
    def current_user(self) -> Optional[User]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def is_admin_identity(self, user: Optional[User]) -> bool:
        return user is not None and user.id == self.admin.id

    def _is_admin_email(self, email: str) -> bool:
        return normalize_email(email) == normalize_email(self.admin.email)

    def _synthesize_admin(self) -> User:
        return User(
            id=self.admin.id,
            name=self.admin.name,
            email=self.admin.email,
            role=UserRole.ADMIN,
            verified=True,
        )

    def _restore(self) -> Optional[User]:
        document = self.store.get(SESSION_KEY)
        if document is None:
            return None

        try:
            saved = User.model_validate(document)
        except ValidationError as e:
            self.logger.error("session_document_invalid", error=str(e))
            self.store.remove(SESSION_KEY)
            return None

        if self.is_admin_identity(saved):
            return saved

        # The registry copy is authoritative for the same id
        registered = self.registry.get(saved.id)
        if registered is None:
            self.logger.warning("session_user_missing_from_registry", user_id=saved.id)
            self.store.remove(SESSION_KEY)
            return None

        if registered != saved:
            self._write_session(registered)
        self.logger.info("session_restored", user_id=registered.id)
        return registered

    def _write_session(self, user: User) -> None:
        self.store.set(SESSION_KEY, user.model_dump(mode="json", by_alias=True))

    def commit(self, user: User) -> User:
        """
        Make ``user`` the current user and write it through to storage.

        Used by the ledger after building a new user value. The registry is
        written first so a rejected change (e.g. duplicate email) leaves the
        session untouched.

        Raises:
            ValueError: If ``user`` is not the currently logged-in user
        """
        if self._current is None or self._current.id != user.id:
            raise ValueError("Only the logged-in user can be committed to the session")
        if not self.is_admin_identity(user):
            self.registry.save(user)
        self._write_session(user)
        self._current = user
        return user

    # ----- transitions -----------------------------------------------------

    def register(self, name: str, email: str) -> User:
        """
        Register a new unverified student. Does not log them in.

        Raises:
            DuplicateEmailError: If the email is taken (including the admin email)
        """
        if self._is_admin_email(email):
            raise DuplicateEmailError(email)
        return self.registry.register(name, email)

    def login(self, email: str, password: Optional[str] = None) -> User:
        """
        Authenticate and make the user current.

        The administrative email bypasses the registry and requires an exact
        password match. Registered accounts are looked up by email; their
        password is not checked.

        Raises:
            InvalidCredentialsError: Wrong password for the administrative email
            UserNotFoundError: No registered account has this email
            UnverifiedAccountError: The account has not been verified yet
        """
        if self._is_admin_email(email):
            if password is None or not hmac.compare_digest(
                password.encode("utf-8"), self.admin.password.encode("utf-8")
            ):
                self.logger.warning("admin_login_rejected")
                raise InvalidCredentialsError()
            user = self._synthesize_admin()
        else:
            found = self.registry.find_by_email(email)
            if found is None:
                self.logger.info("login_unknown_email")
                raise UserNotFoundError(email)
            if not found.verified:
                self.logger.info("login_unverified", user_id=found.id)
                raise UnverifiedAccountError(found.email, found.id)
            user = found

        self._current = user
        self._write_session(user)
        self.logger.info("login_succeeded", user_id=user.id, role=user.role.value)
        return user

    def logout(self) -> None:
        """Forget the current user. The registry is untouched."""
        user_id = self._current.id if self._current else None
        self._current = None
        self.store.remove(SESSION_KEY)
        self.logger.info("logout", user_id=user_id)

    def update_current_user(self, update: UserUpdate) -> Optional[User]:
        """
        Merge a profile update into the current user.

        Returns:
            The updated user, or None when nobody is logged in

        Raises:
            DuplicateEmailError: If the new email belongs to another user
        """
        if self._current is None:
            self.logger.warning("update_while_anonymous")
            return None
        if update.email is not None and self._is_admin_email(update.email) and not (
            self.is_admin_identity(self._current)
        ):
            raise DuplicateEmailError(update.email)

        updated = self.commit(self._current.with_profile(update))
        self.logger.info(
            "current_user_updated",
            user_id=updated.id,
            fields=sorted(update.model_fields_set),
        )
        return updated

    # ----- administrative mutations kept consistent with the session -------

    def add_user(self, new_user: NewUser) -> User:
        if self._is_admin_email(new_user.email):
            raise DuplicateEmailError(new_user.email)
        return self.registry.add_user(new_user)

    def edit_user(self, user_id: str, update: UserUpdate) -> User:
        """Edit any registered user; the session follows if it is the current one."""
        if update.email is not None and self._is_admin_email(update.email):
            raise DuplicateEmailError(update.email)
        updated = self.registry.edit_user(user_id, update)
        if self._current is not None and self._current.id == user_id:
            self._current = updated
            self._write_session(updated)
        return updated

    def delete_user(self, user_id: str) -> bool:
        """Delete a registered user; logs out if it was the current one."""
        deleted = self.registry.delete_user(user_id)
        if deleted and self._current is not None and self._current.id == user_id:
            self.logout()
        return deleted

    def verify_user(self, user_id: str) -> User:
        verified = self.registry.verify_user(user_id)
        if self._current is not None and self._current.id == user_id:
            self._current = verified
            self._write_session(verified)
        return verified
