"""
Unit tests for user data models
"""

from datetime import date

import pytest
from pydantic import ValidationError

from src.models.recommendation import FALLBACK_RECOMMENDATION, QuizAnswer, QuizResult
from src.models.user import (
    AcademicLevel,
    ApplicationStatus,
    CollegeApplication,
    NewApplication,
    User,
    UserRole,
    UserUpdate,
    next_monotonic_id,
    normalize_email,
)


@pytest.fixture
def user():
    return User(id="1", name="Asha", email="Asha@X.com")


class TestUserDefaults:
    def test_new_user_defaults(self, user):
        assert user.role == UserRole.STUDENT
        assert user.verified is False
        assert user.learning_style == "Visual"
        assert user.progress.quiz_completed is False
        assert user.progress.colleges_searched == 0
        assert user.applications == []
        assert user.quiz_history == []
        assert user.notification_settings.email_on_application_deadline is True

    def test_email_is_trimmed_but_keeps_casing(self):
        user = User(id="1", name="Asha", email="  Asha@X.com ")

        assert user.email == "Asha@X.com"
        assert user.normalized_email == "asha@x.com"

    def test_email_without_at_sign_rejected(self):
        with pytest.raises(ValidationError):
            User(id="1", name="Asha", email="not-an-email")

    def test_users_are_immutable(self, user):
        with pytest.raises(ValidationError):
            user.name = "Other"

    def test_serializes_with_camel_case_keys(self, user):
        document = user.model_dump(mode="json", by_alias=True)

        assert "quizHistory" in document
        assert "notificationSettings" in document
        assert document["progress"] == {
            "quizCompleted": False,
            "collegesSearched": 0,
            "recommendationsViewed": 0,
        }

    def test_round_trips_through_json_document(self, user):
        updated = user.with_quiz_result(
            QuizResult(
                answers=[QuizAnswer(question="Q", answer="A")],
                recommendation=FALLBACK_RECOMMENDATION,
            )
        )

        restored = User.model_validate(updated.model_dump(mode="json", by_alias=True))

        assert restored.model_dump() == updated.model_dump()


class TestUserUpdates:
    def test_with_profile_applies_only_set_fields(self, user):
        updated = user.with_profile(UserUpdate(academic_goals="Engineering"))

        assert updated.academic_goals == "Engineering"
        assert updated.name == "Asha"
        assert user.academic_goals == ""

    def test_with_profile_can_clear_avatar(self):
        user = User(id="1", name="Asha", email="a@x.com", avatar="http://img")

        updated = user.with_profile(UserUpdate(avatar=None))

        assert updated.avatar is None

    def test_with_profile_ignores_none_for_required_fields(self, user):
        updated = user.with_profile(UserUpdate(name=None))

        assert updated.name == "Asha"

    def test_with_profile_rejects_invalid_learning_style(self, user):
        with pytest.raises(ValidationError):
            UserUpdate(learning_style="Telepathic")

    def test_with_profile_coerces_enums(self, user):
        updated = user.with_profile(
            UserUpdate.model_validate({"academicLevel": "Undergraduate"})
        )

        assert updated.academic_level == AcademicLevel.UNDERGRADUATE

    def test_with_quiz_result_updates_counters(self, user):
        result = QuizResult(
            answers=[QuizAnswer(question="Q", answer="A")],
            recommendation=FALLBACK_RECOMMENDATION,
        )

        once = user.with_quiz_result(result)
        twice = once.with_quiz_result(result)

        assert len(twice.quiz_history) == 2
        assert twice.quiz_history[0] == once.quiz_history[0]
        assert twice.progress.quiz_completed is True
        assert twice.progress.recommendations_viewed == 2

    def test_application_helpers(self, user):
        app = CollegeApplication(id="10", college_name="IIT Delhi")

        with_app = user.with_application(app)
        replaced = with_app.with_application_replaced(
            app.model_copy(update={"status": ApplicationStatus.APPLIED})
        )
        removed = replaced.without_application("10")

        assert with_app.applications == [app]
        assert replaced.applications[0].status == ApplicationStatus.APPLIED
        assert removed.applications == []


class TestApplications:
    def test_blank_deadline_becomes_none(self):
        app = NewApplication.model_validate({"collegeName": "MIT", "deadline": ""})

        assert app.deadline is None

    def test_datetime_deadline_keeps_date_part(self):
        app = NewApplication.model_validate(
            {"collegeName": "MIT", "deadline": "2025-01-15T00:00:00.000Z"}
        )

        assert app.deadline == date(2025, 1, 15)

    def test_default_status_is_planning(self):
        app = NewApplication(college_name="MIT")

        assert app.status == ApplicationStatus.PLANNING
        assert app.status.value == "Planning to Apply"

    def test_empty_college_name_rejected(self):
        with pytest.raises(ValidationError):
            NewApplication(college_name="")


class TestIdsAndEmails:
    def test_normalize_email(self):
        assert normalize_email("  ASHA@X.COM ") == "asha@x.com"

    def test_id_uses_clock_when_unused(self):
        assert next_monotonic_id([], now_ms=1_000) == "1000"

    def test_id_collision_within_same_millisecond(self):
        first = next_monotonic_id([], now_ms=1_000)
        second = next_monotonic_id([first], now_ms=1_000)

        assert second == "1001"

    def test_id_never_decreases_when_clock_goes_back(self):
        assert next_monotonic_id(["5000"], now_ms=1_000) == "5001"

    def test_non_numeric_ids_are_ignored(self):
        assert next_monotonic_id(["admin-special-001"], now_ms=42) == "42"
