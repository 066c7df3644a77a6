"""
Schema Validator Module
Validates configuration files and generator responses against JSON schemas.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog
from jsonschema import Draft7Validator, FormatChecker, ValidationError
from pydantic import ValidationError as ModelValidationError

from src.models.recommendation import CareerRecommendation

logger = structlog.get_logger(__name__)

DEFAULT_SCHEMA_DIR = Path(__file__).parent.parent / "schemas"
RECOMMENDATION_SCHEMA = "career_recommendation_schema.json"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


class ConfigValidator:
    """Validates documents against JSON schemas."""

    def __init__(self, schema_dir: Path = DEFAULT_SCHEMA_DIR):
        """
        Initialize validator with schema directory.

        Args:
            schema_dir: Path to directory containing JSON schemas
        """
        self.schema_dir = schema_dir
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Load JSON schema from file.

        Args:
            schema_name: Schema filename (e.g., "system_params_schema.json")

        Returns:
            Loaded schema dictionary

        Raises:
            ConfigurationError: If schema file not found or invalid
        """
        if schema_name in self._schemas:
            logger.debug("schema_loaded_from_cache", schema_name=schema_name)
            return self._schemas[schema_name]

        schema_path = self.schema_dir / schema_name
        if not schema_path.exists():
            logger.error(
                "schema_not_found",
                schema_name=schema_name,
                schema_path=str(schema_path),
            )
            raise ConfigurationError(f"Schema file not found: {schema_path}")

        try:
            with open(schema_path, "r", encoding="utf-8") as f:
                schema = json.load(f)
            self._schemas[schema_name] = schema
            logger.info(
                "schema_loaded", schema_name=schema_name, schema_path=str(schema_path)
            )
            return schema
        except json.JSONDecodeError as e:
            logger.error("schema_invalid_json", schema_name=schema_name, error=str(e))
            raise ConfigurationError(f"Invalid JSON in schema {schema_name}: {e}")

    def iter_errors(self, document: Any, schema_name: str) -> List[ValidationError]:
        """Return every schema violation in a document (empty if valid)."""
        schema = self.load_schema(schema_name)
        validator = Draft7Validator(schema, format_checker=FormatChecker())
        return list(validator.iter_errors(document))

    def validate(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Validate configuration against schema.

        Args:
            config: Configuration dictionary to validate
            schema_name: Schema filename to validate against

        Raises:
            ConfigurationError: If validation fails with detailed error messages
        """
        logger.debug("validating_config", schema_name=schema_name)
        errors = self.iter_errors(config, schema_name)
        if not errors:
            logger.info("validation_passed", schema_name=schema_name)
            return

        logger.warning(
            "validation_failed", schema_name=schema_name, error_count=len(errors)
        )
        error_messages = self._format_validation_errors(errors, schema_name)
        raise ConfigurationError("\n".join(error_messages))

    def validate_file(self, config_path: Path, schema_name: str) -> Dict[str, Any]:
        """
        Load and validate configuration file.

        Args:
            config_path: Path to configuration JSON file
            schema_name: Schema filename to validate against

        Returns:
            Validated configuration dictionary

        Raises:
            ConfigurationError: If file not found or validation fails
        """
        logger.debug(
            "validating_file", config_path=str(config_path), schema_name=schema_name
        )

        if not config_path.exists():
            logger.error("config_file_not_found", config_path=str(config_path))
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(
                "config_invalid_json", config_path=str(config_path), error=str(e)
            )
            raise ConfigurationError(
                f"Invalid JSON in {config_path.name}: {e}\n"
                f"Check for trailing commas, missing quotes, or invalid syntax."
            )

        self.validate(config, schema_name)
        logger.info(
            "file_validation_complete",
            config_path=str(config_path),
            schema_name=schema_name,
        )
        return config

    def _format_validation_errors(
        self, errors: List[ValidationError], schema_name: str
    ) -> List[str]:
        """
        Format validation errors into user-friendly messages.

        Args:
            errors: List of validation errors from jsonschema
            schema_name: Schema name for context

        Returns:
            List of formatted error messages
        """
        messages = [f"\n[X] Configuration validation failed for {schema_name}:\n"]

        for error in errors:
            path = " -> ".join([str(p) for p in error.absolute_path]) or "(root)"

            if error.validator == "required":
                missing_field = error.message.split("'")[1]
                messages.append(
                    f"  * Missing required field: '{missing_field}' at {path}\n"
                    f"    -> Add this field to your configuration file"
                )
            elif error.validator == "type":
                messages.append(
                    f"  * Type mismatch at '{path}': {error.message}\n"
                    f"    -> Expected type: {error.validator_value}"
                )
            elif error.validator in ("minimum", "exclusiveMinimum"):
                messages.append(f"  * Value too small at '{path}': {error.message}")
            elif error.validator == "maximum":
                messages.append(f"  * Value too large at '{path}': {error.message}")
            elif error.validator == "enum":
                messages.append(
                    f"  * Invalid value at '{path}': {error.message}\n"
                    f"    -> Allowed values: {error.validator_value}"
                )
            elif error.validator == "additionalProperties":
                messages.append(f"  * Unknown setting at '{path}': {error.message}")
            else:
                messages.append(f"  * Validation error at '{path}': {error.message}")

        messages.append("\n[!] Fix the errors above and try again.\n")
        return messages


@dataclass(frozen=True)
class ValidRecommendation:
    """Generator output that matched the recommendation schema."""

    recommendation: CareerRecommendation


@dataclass(frozen=True)
class InvalidShape:
    """Generator output that could not be used.

    Attributes:
        reason: Short machine-readable cause ("invalid_json", "not_an_object",
            "schema_mismatch", "model_mismatch")
        details: Human-readable detail for logging
    """

    reason: str
    details: str = ""


DecodedRecommendation = Union[ValidRecommendation, InvalidShape]


def _strip_code_fence(text: str) -> str:
    json_text = text.strip()
    if json_text.startswith("```json"):
        json_text = json_text[7:]
    elif json_text.startswith("```"):
        json_text = json_text[3:]
    if json_text.endswith("```"):
        json_text = json_text[:-3]
    return json_text.strip()


def decode_recommendation(
    response_text: str, validator: Optional[ConfigValidator] = None
) -> DecodedRecommendation:
    """
    Decode and validate raw generator output in one step.

    Args:
        response_text: Raw text returned by the generator (may be fenced in
            a markdown code block)
        validator: Validator to use (defaults to one reading src/schemas)

    Returns:
        ValidRecommendation on success, InvalidShape describing the first
        problem otherwise. Never raises for malformed output.
    """
    validator = validator or ConfigValidator()

    try:
        document = json.loads(_strip_code_fence(response_text))
    except json.JSONDecodeError as e:
        return InvalidShape("invalid_json", str(e))

    if not isinstance(document, dict):
        return InvalidShape("not_an_object", type(document).__name__)

    errors = validator.iter_errors(document, RECOMMENDATION_SCHEMA)
    if errors:
        details = "; ".join(
            f"{'/'.join(str(p) for p in err.absolute_path) or '(root)'}: {err.message}"
            for err in errors
        )
        return InvalidShape("schema_mismatch", details)

    try:
        recommendation = CareerRecommendation.model_validate(document)
    except ModelValidationError as e:
        return InvalidShape("model_mismatch", str(e))

    return ValidRecommendation(recommendation)
