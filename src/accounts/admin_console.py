"""
Admin Console

Guarded entry points for user administration and the login screen's
"verify my email" action. The guards run before any registry call: an
administrator can never delete their own account or change their own role,
and the admin role cannot be handed out to registered users.
"""

from typing import Optional

from src.accounts.registry import SortKey
from src.accounts.session import SessionManager
from src.errors import (
    NotAuthenticatedError,
    NotAuthorizedError,
    SelfModificationError,
    UserNotFoundError,
)
from src.models.user import NewUser, User, UserRole, UserUpdate
from src.utils.logger import get_logger


class AdminConsole:
    """User management on behalf of the logged-in administrator."""

    def __init__(self, session: SessionManager, correlation_id: Optional[str] = None):
        self.session = session
        self.logger = get_logger(
            correlation_id=correlation_id, phase="accounts", component="admin_console"
        )

    def _acting_admin(self, action: str) -> User:
        actor = self.session.current_user
        if actor is None:
            raise NotAuthenticatedError(action)
        if actor.role != UserRole.ADMIN:
            self.logger.warning("admin_action_refused", user_id=actor.id, action=action)
            raise NotAuthorizedError(action)
        return actor

    def list_users(self, sort_key: SortKey = "name", descending: bool = False) -> list[User]:
        self._acting_admin("user listing")
        return self.session.registry.list_users(sort_key, descending)

    def add_user(self, new_user: NewUser) -> User:
        self._acting_admin("user creation")
        if new_user.role == UserRole.ADMIN:
            raise ValueError("The admin role cannot be assigned to registered users.")
        return self.session.add_user(new_user)

    def edit_user(self, user_id: str, update: UserUpdate) -> User:
        """
        Edit a user's name, email or role.

        Raises:
            SelfModificationError: If the admin tries to change their own role
            ValueError: If the update would grant the admin role
        """
        actor = self._acting_admin("user editing")
        if user_id == actor.id and update.role is not None and update.role != actor.role:
            self.logger.warning("self_demotion_refused", user_id=actor.id)
            raise SelfModificationError("Admins cannot change their own role.")
        if update.role == UserRole.ADMIN and user_id != actor.id:
            raise ValueError("The admin role cannot be assigned to registered users.")
        if user_id == actor.id:
            # The acting admin may not be in the registry; edit through the session
            updated = self.session.update_current_user(update)
            if updated is None:
                raise NotAuthenticatedError("user editing")
            return updated
        return self.session.edit_user(user_id, update)

    def delete_user(self, user_id: str) -> bool:
        """
        Delete a user other than the acting admin.

        Raises:
            SelfModificationError: If the admin targets their own account
        """
        actor = self._acting_admin("user deletion")
        if user_id == actor.id:
            self.logger.warning("self_deletion_refused", user_id=actor.id)
            raise SelfModificationError("You cannot delete your own account.")
        return self.session.delete_user(user_id)

    def verify_pending_login(self, email: Optional[str]) -> User:
        """
        Verify the account behind an email that was just refused at login.

        Available without logging in, mirroring the verification link.

        Raises:
            UserNotFoundError: If no registered account has this email
        """
        if not email:
            raise UserNotFoundError("")
        user = self.session.registry.find_by_email(email)
        if user is None:
            raise UserNotFoundError(email)
        if user.verified:
            return user
        return self.session.verify_user(user.id)
