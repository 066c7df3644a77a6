"""
Error taxonomy for accounts, sessions and the recommendation pipeline.

Registry and session errors are raised synchronously to the immediate caller
and carry a message that can be shown to the end user as-is.
"""

import re

RATE_LIMIT_MARKERS = (
    "resource_exhausted",
    "rate_limit",
    "rate limit",
    "quota",
    "overloaded",
)

# 429 as a standalone number, not part of a longer one ("after 1429ms")
_TOO_MANY_REQUESTS = re.compile(r"(?<!\d)429(?!\d)")


class CareerCompassError(Exception):
    """Base class for all domain errors."""

    pass


class DuplicateEmailError(CareerCompassError):
    """Raised when an email (case-insensitive) is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("An account with this email already exists.")


class UserNotFoundError(CareerCompassError):
    """Raised when no registry entry matches an email or id."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__("No account found with this email.")


class InvalidCredentialsError(CareerCompassError):
    """Raised when the administrative identity is given a wrong password."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials for admin user.")


class UnverifiedAccountError(CareerCompassError):
    """Raised when an unverified account attempts to log in."""

    def __init__(self, email: str, user_id: str):
        self.email = email
        self.user_id = user_id
        super().__init__(
            "Email not verified. Please check your inbox or click the verify button."
        )


class NotAuthenticatedError(CareerCompassError):
    """Raised by callers that require a logged-in user."""

    def __init__(self, action: str = "this action"):
        super().__init__(f"You must be logged in to perform {action}.")


class NotAuthorizedError(CareerCompassError):
    """Raised when a non-administrator calls an administrative action."""

    def __init__(self, action: str = "this action"):
        super().__init__(f"You are not authorized to perform {action}.")


class SelfModificationError(CareerCompassError):
    """Raised when an administrator tries to delete or demote themselves."""

    pass


class ExternalServiceError(CareerCompassError):
    """Raised when the recommendation generator call fails.

    The original error text is kept verbatim in the message; ``user_message``
    gives wording suitable for a retry prompt.
    """

    rate_limited = False

    @property
    def user_message(self) -> str:
        return (
            "There was an issue generating your recommendation. "
            f"Please try the quiz again. Error: {self}"
        )


class RateLimitedError(ExternalServiceError):
    """Generator failure caused by quota exhaustion or request rate limits."""

    rate_limited = True

    @property
    def user_message(self) -> str:
        return (
            "The recommendation service has hit its request limit for now. "
            "Please try again in a little while."
        )


def is_rate_limit_message(text: str) -> bool:
    """Return True if an error text matches a known rate-limit indicator."""
    lowered = text.lower()
    if _TOO_MANY_REQUESTS.search(lowered):
        return True
    return any(marker in lowered for marker in RATE_LIMIT_MARKERS)


def classify_generator_failure(error: BaseException) -> ExternalServiceError:
    """Wrap a raw transport/SDK exception into the pipeline error taxonomy."""
    if isinstance(error, ExternalServiceError):
        return error
    text = str(error) or type(error).__name__
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    if status == 429 or is_rate_limit_message(text):
        return RateLimitedError(text)
    return ExternalServiceError(text)
