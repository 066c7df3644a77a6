"""
Career Recommendation Models

Value types produced by the recommendation pipeline and recorded in a user's
quiz history. Field aliases are the camelCase names used by the external
generator and by the persisted documents.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CareerRecommendation(BaseModel):
    """Recommended academic stream with supporting detail.

    Attributes:
        recommended_stream: Stream name (e.g., Science, Commerce, Arts)
        reasoning: Explanation of why the stream fits
        suggested_subjects: Subjects within the stream, in display order
        potential_careers: Career paths aligned with the stream
        confidence_score: Confidence between 0 and 1
        feedback: How specific answers shaped the result (optional)
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    recommended_stream: str
    reasoning: str
    suggested_subjects: list[str]
    potential_careers: list[str]
    confidence_score: float = Field(ge=0.0, le=1.0)
    feedback: Optional[str] = None


class QuizAnswer(BaseModel):
    """One question/answer pair sent to the generator."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str


class QuizResult(BaseModel):
    """Immutable record of a completed quiz."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    answers: list[QuizAnswer]
    recommendation: CareerRecommendation


FALLBACK_RECOMMENDATION = CareerRecommendation(
    recommended_stream="Science",
    reasoning=(
        "Based on your logical problem-solving approach and interest in how things "
        "work, the Science stream is a great fit. It opens doors to fields like "
        "engineering and research where your analytical skills can shine. (This is "
        "a sample recommendation as the AI service is currently unavailable.)"
    ),
    suggested_subjects=["Physics", "Chemistry", "Mathematics", "Computer Science"],
    potential_careers=[
        "Software Engineer",
        "Data Scientist",
        "Research Scientist",
        "Mechanical Engineer",
    ],
    confidence_score=0.85,
    feedback=(
        "Your preference for 'Solving puzzles' and subjects like 'Mathematics or "
        "Physics' strongly indicated a good fit for the analytical and logical "
        "reasoning required in the Science stream."
    ),
)
