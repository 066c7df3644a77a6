"""
Career Recommender Agent
Turns a completed quiz into a validated academic stream recommendation.

Flow: credential check -> prompt rendering -> generator call -> decode and
validate -> fallback. Generator failures surface to the caller as
ExternalServiceError (RateLimitedError for quota/rate-limit failures); output
that does not match the recommendation schema is replaced by the fixed
fallback recommendation. No retries happen here.
"""

from typing import Optional, Sequence

from src.errors import classify_generator_failure
from src.models.recommendation import (
    FALLBACK_RECOMMENDATION,
    CareerRecommendation,
    QuizAnswer,
)
from src.utils.credential_manager import CredentialManager
from src.utils.llm_helpers import ClaudeAgentGenerator, RecommendationGenerator
from src.utils.logger import get_logger
from src.utils.prompt_loader import RECOMMENDATION_TEMPLATE, PromptLoader
from src.utils.validator import ConfigValidator, InvalidShape, decode_recommendation


class CareerRecommender:
    """Recommendation pipeline in front of the external generator."""

    def __init__(
        self,
        credentials: CredentialManager,
        generator: Optional[RecommendationGenerator] = None,
        prompt_loader: Optional[PromptLoader] = None,
        validator: Optional[ConfigValidator] = None,
        model: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ):
        """
        Initialize the recommender.

        Args:
            credentials: Source of the generator API key
            generator: Generator to call (Claude Agent SDK backed if None)
            prompt_loader: Template loader (prompts/ directory if None)
            validator: Schema validator for generator output
            model: Model name passed to the default generator
            correlation_id: Correlation ID for logging
        """
        self.credentials = credentials
        self._generator = generator
        self.prompt_loader = prompt_loader or PromptLoader()
        self.validator = validator or ConfigValidator()
        self.model = model
        self.correlation_id = correlation_id
        self.logger = get_logger(
            correlation_id=correlation_id,
            phase="recommendation",
            component="career_recommender",
        )

    def _get_generator(self) -> RecommendationGenerator:
        if self._generator is None:
            self._generator = ClaudeAgentGenerator(
                model=self.model, correlation_id=self.correlation_id
            )
        return self._generator

    def build_prompt(self, answers: Sequence[QuizAnswer]) -> str:
        return self.prompt_loader.render(
            RECOMMENDATION_TEMPLATE,
            correlation_id=self.correlation_id,
            answers=[a.model_dump() for a in answers],
        )

    async def recommend(self, answers: Sequence[QuizAnswer]) -> CareerRecommendation:
        """
        Produce a recommendation for an ordered list of quiz answers.

        Args:
            answers: Question/answer pairs in the order they were asked

        Returns:
            The generator's recommendation, or the fallback recommendation when
            no credential is configured or the output is unusable

        Raises:
            ValueError: If no answers are given
            RateLimitedError: If the generator reports quota or rate limiting
            ExternalServiceError: For any other generator failure
        """
        if not answers:
            raise ValueError("At least one quiz answer is required")

        if not self.credentials.has_generator_credential():
            self.logger.warning(
                "Generator credential missing, using fallback recommendation"
            )
            return FALLBACK_RECOMMENDATION

        prompt = self.build_prompt(answers)
        system_prompt = self.prompt_loader.get_system_prompt(
            correlation_id=self.correlation_id
        )

        self.logger.info("Requesting recommendation", answer_count=len(answers))
        try:
            response_text = await self._get_generator().generate(
                prompt, system_prompt=system_prompt
            )
        except Exception as e:
            failure = classify_generator_failure(e)
            self.logger.error(
                "Recommendation generator failed",
                error=str(e),
                error_type=type(e).__name__,
                rate_limited=failure.rate_limited,
            )
            if failure is e:
                raise
            raise failure from e

        decoded = decode_recommendation(response_text, self.validator)
        if isinstance(decoded, InvalidShape):
            self.logger.warning(
                "Generator output unusable, using fallback recommendation",
                reason=decoded.reason,
                details=decoded.details[:500],
                response_length=len(response_text),
            )
            return FALLBACK_RECOMMENDATION

        recommendation = decoded.recommendation
        self.logger.info(
            "Recommendation generated",
            stream=recommendation.recommended_stream,
            confidence=recommendation.confidence_score,
        )
        return recommendation
