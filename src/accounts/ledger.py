"""
Progress & Records Ledger

Per-user records (progress counters, college applications, quiz history and
the unfinished-quiz checkpoint), changed only through the session's current
user. Each operation builds a new ``User`` value and commits it through the
session manager, which writes it to the registry and the session document.

All operations are no-ops returning None while nobody is logged in.
"""

import math
from datetime import date, timedelta
from typing import Optional

from pydantic import ValidationError

from src.accounts.session import SessionManager
from src.models.quiz import QuizProgress
from src.models.recommendation import CareerRecommendation, QuizResult
from src.models.user import (
    CollegeApplication,
    NewApplication,
    Progress,
    User,
    next_monotonic_id,
)
from src.utils.logger import get_logger
from src.utils.store import quiz_progress_key

COLLEGES_SEARCHED_GOAL = 5
RECOMMENDATIONS_VIEWED_GOAL = 3


def journey_percentage(progress: Progress) -> int:
    """
    Overall journey completion shown on the dashboard.

    Three equally weighted parts: quiz completed, colleges searched (capped at
    5) and recommendations viewed (capped at 3).
    """
    parts = (
        (1.0 if progress.quiz_completed else 0.0)
        + min(progress.colleges_searched, COLLEGES_SEARCHED_GOAL) / COLLEGES_SEARCHED_GOAL
        + min(progress.recommendations_viewed, RECOMMENDATIONS_VIEWED_GOAL)
        / RECOMMENDATIONS_VIEWED_GOAL
    )
    # Halves round up
    return int(math.floor(parts / 3 * 100 + 0.5))


class ProgressLedger:
    """Mutations of the logged-in user's progress, applications and history."""

    def __init__(self, session: SessionManager, correlation_id: Optional[str] = None):
        self.session = session
        self.logger = get_logger(
            correlation_id=correlation_id, phase="ledger", component="progress_ledger"
        )

    def _current(self, operation: str) -> Optional[User]:
        user = self.session.current_user
        if user is None:
            self.logger.warning("ledger_call_while_anonymous", operation=operation)
        return user

    # ----- quiz history -----------------------------------------------------

    def record_quiz_result(self, result: QuizResult) -> Optional[User]:
        """Append a quiz result and update the quiz/recommendation counters."""
        user = self._current("record_quiz_result")
        if user is None:
            return None
        updated = self.session.commit(user.with_quiz_result(result))
        self.logger.info(
            "quiz_result_recorded",
            user_id=updated.id,
            history_length=len(updated.quiz_history),
            stream=result.recommendation.recommended_stream,
        )
        return updated

    def latest_recommendation(self) -> Optional[CareerRecommendation]:
        user = self.session.current_user
        if user is None or not user.quiz_history:
            return None
        return user.quiz_history[-1].recommendation

    # ----- progress counters ------------------------------------------------

    def bump_colleges_searched(self) -> Optional[User]:
        user = self._current("bump_colleges_searched")
        if user is None:
            return None
        return self.session.commit(user.with_colleges_searched_bumped())

    def journey_percentage(self) -> Optional[int]:
        user = self.session.current_user
        return journey_percentage(user.progress) if user else None

    # ----- applications -----------------------------------------------------

    def add_application(self, data: NewApplication) -> Optional[str]:
        """
        Append a new application with a fresh id.

        Returns:
            The new application's id, or None while anonymous
        """
        user = self._current("add_application")
        if user is None:
            return None
        app_id = next_monotonic_id(a.id for a in user.applications)
        application = CollegeApplication(id=app_id, **data.model_dump())
        self.session.commit(user.with_application(application))
        self.logger.info("application_added", user_id=user.id, application_id=app_id)
        return app_id

    def update_application(self, application: CollegeApplication) -> Optional[User]:
        """Replace the application with the same id; unknown ids change nothing."""
        user = self._current("update_application")
        if user is None:
            return None
        if not any(a.id == application.id for a in user.applications):
            self.logger.info("application_update_ignored", application_id=application.id)
            return user
        return self.session.commit(user.with_application_replaced(application))

    def delete_application(self, application_id: str) -> Optional[User]:
        """Remove the application with this id; unknown ids change nothing."""
        user = self._current("delete_application")
        if user is None:
            return None
        if not any(a.id == application_id for a in user.applications):
            return user
        updated = self.session.commit(user.without_application(application_id))
        self.logger.info(
            "application_deleted", user_id=user.id, application_id=application_id
        )
        return updated

    def upcoming_deadlines(
        self, today: Optional[date] = None, within_days: int = 30
    ) -> tuple[list[CollegeApplication], bool]:
        """
        Applications whose deadline falls in [today, today + within_days].

        Returns:
            (applications sorted by deadline, whether the user wants deadline
            notifications). Empty and False while anonymous.
        """
        user = self.session.current_user
        if user is None:
            return [], False
        today = today or date.today()
        horizon = today + timedelta(days=within_days)
        due = sorted(
            (
                a
                for a in user.applications
                if a.deadline is not None and today <= a.deadline <= horizon
            ),
            key=lambda a: a.deadline,
        )
        return due, user.notification_settings.email_on_application_deadline

    # ----- unfinished quiz checkpoint ---------------------------------------

    def save_quiz_progress(self, progress: QuizProgress) -> None:
        user = self._current("save_quiz_progress")
        if user is None:
            return
        self.session.store.set(
            quiz_progress_key(user.id), progress.model_dump(mode="json", by_alias=True)
        )

    def load_quiz_progress(self) -> Optional[QuizProgress]:
        """Saved unfinished quiz, or None. Unusable saved state is discarded."""
        user = self.session.current_user
        if user is None:
            return None
        key = quiz_progress_key(user.id)
        document = self.session.store.get(key)
        if document is None:
            return None
        try:
            return QuizProgress.model_validate(document)
        except ValidationError as e:
            self.logger.error("quiz_progress_invalid", user_id=user.id, error=str(e))
            self.session.store.remove(key)
            return None

    def clear_quiz_progress(self, user_id: Optional[str] = None) -> None:
        """Drop the saved quiz of ``user_id`` (the current user by default)."""
        if user_id is None:
            user = self.session.current_user
            if user is None:
                return
            user_id = user.id
        self.session.store.remove(quiz_progress_key(user_id))
