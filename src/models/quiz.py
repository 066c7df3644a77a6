"""
Career Quiz Models

The fixed question bank, difficulty filtering, and the in-progress quiz state
that is saved after each answer so a quiz can be resumed later.
"""

from typing import Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.recommendation import QuizAnswer

QuizDifficulty = Literal["Easy", "Medium", "Hard"]


class QuizQuestion(BaseModel):
    """A multiple-choice quiz question."""

    model_config = ConfigDict(frozen=True)

    id: int
    question: str
    options: list[str]
    difficulty: QuizDifficulty


class QuizProgress(BaseModel):
    """Answers given so far in an unfinished quiz."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    difficulty: QuizDifficulty
    current_question_index: int = Field(default=0, ge=0)
    answers: list[str] = Field(default_factory=list)


QUIZ_QUESTIONS: tuple[QuizQuestion, ...] = (
    QuizQuestion(
        id=1,
        question="Which of these activities do you enjoy the most in your free time?",
        options=[
            "Solving puzzles or playing strategy games",
            "Reading, writing, or debating",
            "Creating art, music, or performing",
            "Organizing events or leading a team",
        ],
        difficulty="Easy",
    ),
    QuizQuestion(
        id=2,
        question="Which school subject are you most passionate about?",
        options=[
            "Mathematics or Physics",
            "History or Literature",
            "Art or Music",
            "Economics or Business Studies",
        ],
        difficulty="Easy",
    ),
    QuizQuestion(
        id=3,
        question="How do you prefer to solve problems?",
        options=[
            "Through logical, step-by-step analysis",
            "By understanding different perspectives and finding a middle ground",
            "By thinking outside the box and trying new, creative approaches",
            "By collaborating with others and delegating tasks",
        ],
        difficulty="Medium",
    ),
    QuizQuestion(
        id=4,
        question="What kind of work environment do you envision for yourself?",
        options=[
            "A research lab or a tech company with a focus on innovation",
            "A library, a government office, or a non-profit organization",
            "A creative studio, a theater, or a design firm",
            "A corporate office with a clear structure and growth path",
        ],
        difficulty="Medium",
    ),
    QuizQuestion(
        id=5,
        question="What motivates you more?",
        options=[
            "Understanding how things work and discovering new principles",
            "Helping people and making a positive impact on society",
            "Expressing your ideas and emotions to an audience",
            "Achieving financial success and building a successful enterprise",
        ],
        difficulty="Hard",
    ),
)


def questions_for(
    difficulty: QuizDifficulty,
    bank: Sequence[QuizQuestion] = QUIZ_QUESTIONS,
) -> list[QuizQuestion]:
    """Return the questions of one difficulty, in bank order."""
    return [q for q in bank if q.difficulty == difficulty]


def build_answers(
    questions: Sequence[QuizQuestion], choices: Sequence[str]
) -> list[QuizAnswer]:
    """
    Pair each question with the option the student chose.

    Args:
        questions: Questions in the order they were asked
        choices: Chosen option text for each question

    Returns:
        Ordered question/answer pairs ready for the recommendation pipeline

    Raises:
        ValueError: If the counts differ or a choice is not one of the options
    """
    if len(questions) != len(choices):
        raise ValueError(
            f"Expected {len(questions)} answers, got {len(choices)}"
        )

    answers = []
    for question, choice in zip(questions, choices):
        if choice not in question.options:
            raise ValueError(
                f"'{choice}' is not an option for question {question.id}"
            )
        answers.append(QuizAnswer(question=question.question, answer=choice))
    return answers
