"""
Structured Logger Module

Configures structlog for JSON-formatted structured logging with correlation IDs.
Every account, ledger and recommendation component logs through this module so
a single user journey (register -> login -> quiz -> recommendation) can be
followed across components.

Example Usage:
    from src.utils.logger import get_logger

    # Get logger with context
    logger = get_logger(
        correlation_id="a1b2c3d4-e5f6-7890-abcd-ef1234567890",
        phase="session",
        component="session_manager"
    )

    # Log with context automatically included
    logger.info("login_succeeded", user_id="1718000000000", role="student")
    logger.warning("recommendation_fallback_used", reason="missing_fields")
    logger.error("generator_call_failed", error="Timeout after 30s")

Log Levels:
    - DEBUG: Prompt/response sizes, store reads
    - INFO: Registrations, logins, ledger mutations, recommendations produced
    - WARNING: Fallback recommendations, ledger calls while anonymous
    - ERROR: Corrupted store documents, external generator failures
    - CRITICAL: Unrecoverable failures requiring user intervention
"""

import logging
import sys
import uuid
from pathlib import Path
from typing import Optional
import structlog
from structlog.types import BindableLogger, EventDict, WrappedLogger


def mask_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Processor to mask sensitive credentials in log output.

    Args:
        logger: Logger instance
        method_name: Logging method name
        event_dict: Event dictionary to process

    Returns:
        Event dictionary with masked credentials

    Masks:
        - password, api_key, token, secret, credential, auth fields
        - Replaces values with "***MASKED***"
        - Uses word boundary matching to avoid false positives
    """
    sensitive_fields = {"password", "api_key", "token", "secret", "credential", "auth"}

    for key in list(event_dict.keys()):
        key_lower = key.lower()
        # Exact match or match on an underscore/hyphen boundary
        for sensitive in sensitive_fields:
            if (
                key_lower == sensitive
                or key_lower.endswith(f"_{sensitive}")
                or key_lower.endswith(f"-{sensitive}")
                or key_lower.startswith(f"{sensitive}_")
                or key_lower.startswith(f"{sensitive}-")
            ):
                event_dict[key] = "***MASKED***"
                break

    return event_dict


def configure_logging(
    log_file: str = "logs/career-compass.log", log_level: str = "INFO"
) -> None:
    """
    Configure structlog with JSON output and file logging.

    Args:
        log_file: Path to log file (default: "logs/career-compass.log")
        log_level: Logging level (default: "INFO")

    Log Format (JSON):
        {
            "timestamp": "2024-10-06T10:30:45Z",
            "level": "info",
            "correlation_id": "a1b2c3d4-...",
            "phase": "session",
            "component": "session_manager",
            "event": "login_succeeded",
            "user_id": "1718000000000"
        }
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
        handlers=[logging.FileHandler(log_file), logging.StreamHandler(sys.stdout)],
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            mask_credentials,  # Mask sensitive data
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(
    correlation_id: Optional[str] = None,
    phase: Optional[str] = None,
    component: Optional[str] = None,
) -> BindableLogger:
    """
    Get structured logger with bound context.

    Args:
        correlation_id: Correlation ID for request tracing (generates UUID if not provided)
        phase: Journey phase (e.g., "session", "ledger", "recommendation")
        component: Component name (e.g., "user_registry", "career_recommender")

    Returns:
        BoundLogger with correlation_id, phase, and component bound to context
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    logger = structlog.get_logger()

    if correlation_id:
        logger = logger.bind(correlation_id=correlation_id)
    if phase:
        logger = logger.bind(phase=phase)
    if component:
        logger = logger.bind(component=component)

    return logger


# Initialize logging on module import with default settings
configure_logging()
