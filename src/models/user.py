"""
User Data Models

Pydantic models for user accounts and the per-user records (progress counters,
college applications and quiz history). Models are frozen: every change goes
through an explicit ``with_*`` method that returns a new ``User``, so the
registry copy and the session copy never alias each other.
"""

import time
from datetime import date
from enum import Enum
from typing import Annotated, Iterable, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.models.recommendation import QuizResult


class UserRole(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"
    COUNSELOR = "counselor"


class AcademicLevel(str, Enum):
    HIGH_SCHOOL = "High School"
    UNDERGRADUATE = "Undergraduate"
    POSTGRADUATE = "Postgraduate"


class ApplicationStatus(str, Enum):
    PLANNING = "Planning to Apply"
    APPLIED = "Applied"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    WAITLISTED = "Waitlisted"


LearningStyle = Literal["Visual", "Auditory", "Reading/Writing", "Kinesthetic"]
LEARNING_STYLES: tuple[str, ...] = ("Visual", "Auditory", "Reading/Writing", "Kinesthetic")

# Profile fields an update may explicitly reset to None
_CLEARABLE_FIELDS = frozenset({"avatar", "academic_level"})


def normalize_email(email: str) -> str:
    """Normalized form used for every uniqueness comparison."""
    return email.strip().lower()


def next_monotonic_id(existing_ids: Iterable[str], now_ms: Optional[int] = None) -> str:
    """Generate an id greater than every numeric id already in use.

    Ids are millisecond timestamps; when two are requested within the same
    millisecond (or the clock moves backwards) the largest existing id plus
    one is used instead, so ids never collide and never decrease.

    Args:
        existing_ids: Ids already present in the owning collection
        now_ms: Current time in milliseconds (defaults to the wall clock)

    Returns:
        New id as a decimal string
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    numeric = [int(i) for i in existing_ids if i.isdigit()]
    candidate = now_ms
    if numeric and max(numeric) >= candidate:
        candidate = max(numeric) + 1
    return str(candidate)


def _coerce_deadline(v):
    # Forms submit "" for an unset date and full ISO datetimes for a set one
    if v == "" or v is None:
        return None
    if isinstance(v, str) and "T" in v:
        return v.split("T")[0]
    return v


Deadline = Annotated[Optional[date], BeforeValidator(_coerce_deadline)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class Progress(_CamelModel):
    quiz_completed: bool = False
    colleges_searched: int = Field(default=0, ge=0)
    recommendations_viewed: int = Field(default=0, ge=0)


class NotificationSettings(_CamelModel):
    email_on_new_recommendation: bool = True
    email_on_application_deadline: bool = True


class CollegeApplication(_CamelModel):
    """College application tracked by a single user.

    Attributes:
        id: Unique within the owning user's application list
        college_name: Name of the college
        status: Current application status
        deadline: Application deadline (optional)
        notes: Free-form notes (optional)
    """

    id: str
    college_name: str = Field(min_length=1)
    status: ApplicationStatus = ApplicationStatus.PLANNING
    deadline: Deadline = None
    notes: Optional[str] = None


class NewApplication(_CamelModel):
    """Application data before an id is assigned."""

    college_name: str = Field(min_length=1)
    status: ApplicationStatus = ApplicationStatus.PLANNING
    deadline: Deadline = None
    notes: Optional[str] = None


class User(_CamelModel):
    """User account with profile, progress and history.

    ``quiz_history`` is append-only; use ``with_quiz_result`` to extend it.
    """

    id: str
    name: str
    email: str
    role: UserRole = UserRole.STUDENT
    verified: bool = False
    avatar: Optional[str] = None
    academic_level: Optional[AcademicLevel] = None
    interests: list[str] = Field(default_factory=list)
    academic_goals: str = ""
    learning_style: LearningStyle = "Visual"
    notification_settings: NotificationSettings = Field(
        default_factory=NotificationSettings
    )
    progress: Progress = Field(default_factory=Progress)
    applications: list[CollegeApplication] = Field(default_factory=list)
    quiz_history: list[QuizResult] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError(f"Invalid email address: {v!r}")
        return v

    @property
    def normalized_email(self) -> str:
        return normalize_email(self.email)

    def with_profile(self, update: "UserUpdate") -> "User":
        """Return a copy with the explicitly set fields of ``update`` applied."""
        changes = {
            name: getattr(update, name)
            for name in update.model_fields_set
            if getattr(update, name) is not None or name in _CLEARABLE_FIELDS
        }
        # Re-validate so email trimming and enum coercion still apply
        return User.model_validate({**self._fields(), **changes})

    def with_verified(self) -> "User":
        return self.model_copy(update={"verified": True})

    def with_quiz_result(self, result: QuizResult) -> "User":
        progress = self.progress.model_copy(
            update={
                "quiz_completed": True,
                "recommendations_viewed": self.progress.recommendations_viewed + 1,
            }
        )
        return self.model_copy(
            update={"quiz_history": [*self.quiz_history, result], "progress": progress}
        )

    def with_colleges_searched_bumped(self) -> "User":
        progress = self.progress.model_copy(
            update={"colleges_searched": self.progress.colleges_searched + 1}
        )
        return self.model_copy(update={"progress": progress})

    def with_application(self, application: CollegeApplication) -> "User":
        return self.model_copy(
            update={"applications": [*self.applications, application]}
        )

    def with_application_replaced(self, application: CollegeApplication) -> "User":
        apps = [application if a.id == application.id else a for a in self.applications]
        return self.model_copy(update={"applications": apps})

    def without_application(self, application_id: str) -> "User":
        apps = [a for a in self.applications if a.id != application_id]
        return self.model_copy(update={"applications": apps})

    def _fields(self) -> dict:
        return {name: getattr(self, name) for name in type(self).model_fields}


class UserUpdate(_CamelModel):
    """Partial profile update. Only fields explicitly set are applied.

    The id, progress counters, applications and quiz history are not part of
    a profile update; they change only through the ledger.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    avatar: Optional[str] = None
    academic_level: Optional[AcademicLevel] = None
    interests: Optional[list[str]] = None
    academic_goals: Optional[str] = None
    learning_style: Optional[LearningStyle] = None
    notification_settings: Optional[NotificationSettings] = None


class NewUser(_CamelModel):
    """Account data supplied by an administrator when creating a user."""

    name: str = Field(min_length=1)
    email: str
    role: UserRole = UserRole.STUDENT
    academic_level: Optional[AcademicLevel] = None
    interests: list[str] = Field(default_factory=list)
