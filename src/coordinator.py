"""
Career Coordinator Module

Wires configuration, storage, accounts and the recommendation pipeline into
one application service, and owns the quiz flow: start or resume a quiz,
answer questions one at a time (saved after every answer), then complete it.

Completing a quiz is the only asynchronous step. The generator call gets a
boundary timeout and a bounded number of caller-side retries for generic
failures; rate-limit failures are never retried. The quiz result is written
to the user's history exactly once, after the recommendation is in hand.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional, Sequence

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.accounts.admin_console import AdminConsole
from src.accounts.ledger import ProgressLedger
from src.accounts.registry import UserRegistry
from src.accounts.session import SessionManager
from src.agents.career_recommender import CareerRecommender
from src.errors import CareerCompassError, ExternalServiceError, NotAuthenticatedError
from src.models.config import SystemParams
from src.models.quiz import (
    QUIZ_QUESTIONS,
    QuizDifficulty,
    QuizProgress,
    QuizQuestion,
    build_answers,
    questions_for,
)
from src.models.recommendation import QuizAnswer, QuizResult
from src.utils.credential_manager import CredentialManager
from src.utils.llm_helpers import RecommendationGenerator
from src.utils.logger import get_logger
from src.utils.store import JsonStore


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, ExternalServiceError) and not error.rate_limited


def describe_error(error: BaseException) -> str:
    """Message to show the end user for an error raised by the coordinator."""
    if isinstance(error, ExternalServiceError):
        return error.user_message
    if isinstance(error, CareerCompassError):
        return str(error)
    return "Something went wrong. Please try again."


class CareerCoordinator:
    """
    Application service for one client.

    Example:
        >>> coordinator = CareerCoordinator()
        >>> coordinator.session.login("asha@x.com")
        >>> coordinator.start_quiz("Easy")
        >>> coordinator.answer_question("Mathematics or Physics")
        >>> result = await coordinator.finish_quiz()
    """

    # Backoff between caller-side retries
    retry_wait = wait_exponential(multiplier=1, min=2, max=10)

    def __init__(
        self,
        config_path: str | Path = "config/system_params.json",
        env_file: str | Path = ".env",
        generator: Optional[RecommendationGenerator] = None,
        correlation_id: Optional[str] = None,
        system_params: Optional[SystemParams] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            config_path: Path to system parameters JSON file (defaults apply if absent)
            env_file: Path to the .env file holding the generator API key
            generator: Generator override (Claude Agent SDK backed if None)
            correlation_id: Correlation ID for logging (auto-generated if None)
            system_params: Already loaded parameters; skips reading config_path
        """
        self.system_params = system_params or SystemParams.load_or_default(config_path)
        logging.getLogger().setLevel(self.system_params.log_level)

        if correlation_id is None:
            correlation_id = str(uuid.uuid4())
        self.correlation_id = correlation_id
        self.logger = get_logger(
            correlation_id=correlation_id,
            phase="coordinator",
            component="career_coordinator",
        )

        self.store = JsonStore(
            self.system_params.storage.directory, correlation_id=correlation_id
        )
        self.registry = UserRegistry(self.store, correlation_id=correlation_id)
        self.session = SessionManager(
            self.store,
            self.registry,
            admin=self.system_params.admin,
            correlation_id=correlation_id,
        )
        self.ledger = ProgressLedger(self.session, correlation_id=correlation_id)
        self.admin_console = AdminConsole(self.session, correlation_id=correlation_id)
        self.credentials = CredentialManager(env_file=Path(env_file))
        self.recommender = CareerRecommender(
            self.credentials,
            generator=generator,
            model=self.system_params.llm.model,
            correlation_id=correlation_id,
        )

        self.logger.info(
            "Career Coordinator initialized",
            storage_dir=self.system_params.storage.directory,
            model=self.system_params.llm.model,
            generator_configured=self.credentials.has_generator_credential(),
            restored_session=self.session.is_authenticated,
        )

    # ----- quiz flow -----------------------------------------------------

    def _require_user(self, action: str) -> None:
        if not self.session.is_authenticated:
            raise NotAuthenticatedError(action)

    def start_quiz(self, difficulty: QuizDifficulty) -> QuizProgress:
        """Begin a new quiz, discarding any unfinished one."""
        self._require_user("the career quiz")
        if not questions_for(difficulty, QUIZ_QUESTIONS):
            raise ValueError(f"No questions available for difficulty {difficulty!r}")
        progress = QuizProgress(difficulty=difficulty)
        self.ledger.save_quiz_progress(progress)
        self.logger.info("Quiz started", difficulty=difficulty)
        return progress

    def resume_quiz(self) -> Optional[QuizProgress]:
        """The saved unfinished quiz of the current user, if any."""
        return self.ledger.load_quiz_progress()

    def current_question(self, progress: QuizProgress) -> Optional[QuizQuestion]:
        """Next question to ask, or None when every question is answered."""
        questions = questions_for(progress.difficulty, QUIZ_QUESTIONS)
        if progress.current_question_index >= len(questions):
            return None
        return questions[progress.current_question_index]

    def answer_question(self, choice: str) -> QuizProgress:
        """
        Record the answer to the current question and save progress.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            ValueError: If no quiz is in progress, it is already fully
                answered, or the choice is not one of the question's options
        """
        self._require_user("the career quiz")
        progress = self.ledger.load_quiz_progress()
        if progress is None:
            raise ValueError("No quiz in progress")

        question = self.current_question(progress)
        if question is None:
            raise ValueError("Every question has already been answered")
        if choice not in question.options:
            raise ValueError(f"'{choice}' is not an option for question {question.id}")

        progress = progress.model_copy(
            update={
                "current_question_index": progress.current_question_index + 1,
                "answers": [*progress.answers, choice],
            }
        )
        self.ledger.save_quiz_progress(progress)
        return progress

    async def finish_quiz(self) -> QuizResult:
        """
        Complete the saved quiz once every question is answered.

        Raises:
            NotAuthenticatedError: If nobody is logged in, or the user changed
                while the recommendation was being generated
            ValueError: If there is no fully answered quiz in progress
        """
        self._require_user("the career quiz")
        progress = self.ledger.load_quiz_progress()
        if progress is None:
            raise ValueError("No quiz in progress")
        if self.current_question(progress) is not None:
            raise ValueError("The quiz has unanswered questions")

        questions = questions_for(progress.difficulty, QUIZ_QUESTIONS)
        answers = build_answers(questions, progress.answers)
        return await self.complete_quiz(answers)

    # ----- recommendation ------------------------------------------------

    async def _recommend_once(self, answers: Sequence[QuizAnswer]):
        timeout = self.system_params.llm.call_timeout_seconds
        try:
            return await asyncio.wait_for(
                self.recommender.recommend(answers), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            self.logger.error("Recommendation timed out", timeout_seconds=timeout)
            raise ExternalServiceError(
                f"Recommendation request timed out after {timeout:g}s"
            ) from e

    async def complete_quiz(self, answers: Sequence[QuizAnswer]) -> QuizResult:
        """
        Get a recommendation for the answers and record it in the history.

        Args:
            answers: Ordered question/answer pairs

        Returns:
            The recorded quiz result

        Raises:
            NotAuthenticatedError: If nobody is logged in, or another session
                replaced the starting user before the call returned
            RateLimitedError: If the generator is rate limited (not retried)
            ExternalServiceError: If every attempt failed
        """
        self._require_user("the career quiz")
        user_id = self.session.current_user.id
        attempts = self.system_params.llm.caller_retry_attempts

        recommendation = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    self.logger.warning(
                        "Retrying recommendation",
                        attempt=attempt.retry_state.attempt_number,
                        max_attempts=attempts,
                    )
                recommendation = await self._recommend_once(answers)

        # The session may have changed while the call was in flight
        current = self.session.current_user
        if current is None or current.id != user_id:
            self.logger.warning(
                "Session changed during recommendation, result discarded",
                user_id=user_id,
                current_user_id=current.id if current else None,
            )
            raise NotAuthenticatedError("the career quiz")

        result = QuizResult(answers=list(answers), recommendation=recommendation)
        self.ledger.record_quiz_result(result)
        self.ledger.clear_quiz_progress(user_id)
        return result
