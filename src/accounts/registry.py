"""
User Registry

All known user records, keyed by id, persisted under the "user-registry" store
key. Emails are unique case-insensitively across the registry at all times.

The registry knows nothing about sessions. Keeping the logged-in user in sync
with edits made here is the session manager's job.
"""

from typing import Literal, Optional

from pydantic import ValidationError

from src.errors import DuplicateEmailError, UserNotFoundError
from src.models.user import (
    NewUser,
    User,
    UserRole,
    UserUpdate,
    next_monotonic_id,
    normalize_email,
)
from src.utils.logger import get_logger
from src.utils.store import REGISTRY_KEY, JsonStore

SortKey = Literal["name", "email", "role"]

_SORT_KEYS = {
    "name": lambda u: u.name.lower(),
    "email": lambda u: u.normalized_email,
    "role": lambda u: u.role.value,
}


class UserRegistry:
    """Ordered collection of users with write-through persistence."""

    def __init__(self, store: JsonStore, correlation_id: Optional[str] = None):
        self.store = store
        self.logger = get_logger(
            correlation_id=correlation_id, phase="accounts", component="user_registry"
        )
        self._users: list[User] = self._load()

    def _load(self) -> list[User]:
        document = self.store.get(REGISTRY_KEY)
        if document is None:
            return []
        if not isinstance(document, list):
            self.logger.error("registry_document_invalid", found=type(document).__name__)
            return []

        users = []
        for entry in document:
            try:
                users.append(User.model_validate(entry))
            except ValidationError as e:
                self.logger.error(
                    "registry_entry_skipped",
                    user_id=entry.get("id") if isinstance(entry, dict) else None,
                    error=str(e),
                )
        self.logger.debug("registry_loaded", user_count=len(users))
        return users

    def _persist(self) -> None:
        self.store.set(
            REGISTRY_KEY,
            [user.model_dump(mode="json", by_alias=True) for user in self._users],
        )

    def _ensure_email_available(self, email: str, exclude_id: Optional[str] = None) -> None:
        normalized = normalize_email(email)
        for user in self._users:
            if user.id != exclude_id and user.normalized_email == normalized:
                raise DuplicateEmailError(email)

    def _index_of(self, user_id: str) -> int:
        for index, user in enumerate(self._users):
            if user.id == user_id:
                return index
        raise UserNotFoundError(user_id)

    def _new_id(self) -> str:
        return next_monotonic_id(user.id for user in self._users)

    @property
    def users(self) -> tuple[User, ...]:
        return tuple(self._users)

    def get(self, user_id: str) -> Optional[User]:
        return next((u for u in self._users if u.id == user_id), None)

    def find_by_email(self, email: str) -> Optional[User]:
        normalized = normalize_email(email)
        return next((u for u in self._users if u.normalized_email == normalized), None)

    def register(self, name: str, email: str) -> User:
        """
        Create a new, unverified student account.

        Args:
            name: Display name
            email: Email address (unique, compared case-insensitively)

        Returns:
            The stored user

        Raises:
            DuplicateEmailError: If the email is already registered
            ValueError: If the name is blank or the email is malformed
        """
        if not name.strip():
            raise ValueError("Name must not be empty")
        self._ensure_email_available(email)

        user = User(
            id=self._new_id(),
            name=name.strip(),
            email=email,
            role=UserRole.STUDENT,
            verified=False,
        )
        self._users.append(user)
        self._persist()
        self.logger.info("user_registered", user_id=user.id)
        return user

    def add_user(self, new_user: NewUser) -> User:
        """Create an account on an administrator's behalf. It starts verified."""
        self._ensure_email_available(new_user.email)

        user = User(
            id=self._new_id(),
            name=new_user.name.strip(),
            email=new_user.email,
            role=new_user.role,
            verified=True,
            academic_level=new_user.academic_level,
            interests=list(new_user.interests),
        )
        self._users.append(user)
        self._persist()
        self.logger.info("user_added", user_id=user.id, role=user.role.value)
        return user

    def edit_user(self, user_id: str, update: UserUpdate) -> User:
        """
        Apply a partial profile update to one user.

        Raises:
            UserNotFoundError: If no user has this id
            DuplicateEmailError: If the new email belongs to another user
        """
        index = self._index_of(user_id)
        if update.email is not None:
            self._ensure_email_available(update.email, exclude_id=user_id)

        updated = self._users[index].with_profile(update)
        self._users[index] = updated
        self._persist()
        self.logger.info(
            "user_edited", user_id=user_id, fields=sorted(update.model_fields_set)
        )
        return updated

    def save(self, user: User) -> User:
        """
        Replace the stored record that has the same id.

        Raises:
            UserNotFoundError: If no user has this id
            DuplicateEmailError: If the email now collides with another user
        """
        index = self._index_of(user.id)
        self._ensure_email_available(user.email, exclude_id=user.id)
        self._users[index] = user
        self._persist()
        return user

    def delete_user(self, user_id: str) -> bool:
        """Remove a user. Returns False if the id was not present."""
        remaining = [u for u in self._users if u.id != user_id]
        if len(remaining) == len(self._users):
            return False
        self._users = remaining
        self._persist()
        self.logger.info("user_deleted", user_id=user_id)
        return True

    def verify_user(self, user_id: str) -> User:
        """
        Mark a user's email as verified.

        Raises:
            UserNotFoundError: If no user has this id
        """
        index = self._index_of(user_id)
        verified = self._users[index].with_verified()
        self._users[index] = verified
        self._persist()
        self.logger.info("user_verified", user_id=user_id)
        return verified

    def list_users(self, sort_key: SortKey = "name", descending: bool = False) -> list[User]:
        """Users sorted for administration screens (stable sort)."""
        if sort_key not in _SORT_KEYS:
            raise ValueError(f"Cannot sort users by {sort_key!r}")
        return sorted(self._users, key=_SORT_KEYS[sort_key], reverse=descending)
