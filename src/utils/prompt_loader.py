"""
Jinja2-based prompt template loading and rendering.

Loads the prompts sent to the recommendation generator from the prompts/
directory. Templates support the usual Jinja2 features (variables, loops,
conditionals, inheritance) plus a ``quote_safe`` filter for free text that is
embedded inside double quotes.

Usage:
    from src.utils.prompt_loader import PromptLoader

    prompt = PromptLoader().render(
        "recommendation/career_stream.j2",
        answers=[{"question": "What motivates you more?", "answer": "Helping people"}],
    )
"""

from pathlib import Path
from typing import Any, Optional

import structlog
from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
    TemplateSyntaxError,
    Undefined,
    UndefinedError,
)

logger = structlog.get_logger(__name__)

RECOMMENDATION_TEMPLATE = "recommendation/career_stream.j2"


class PromptLoader:
    """
    Manages loading and rendering of Jinja2 prompt templates.

    Templates are loaded from the prompts/ directory at the project root.
    """

    def __init__(
        self,
        template_dir: Optional[Path] = None,
        strict_undefined: bool = True,
    ) -> None:
        """
        Initialize PromptLoader with Jinja2 environment.

        Args:
            template_dir: Base directory for templates (defaults to prompts/ in project root)
            strict_undefined: If True, raise error for undefined variables (default: True)
        """
        if template_dir is None:
            # Project root is 2 levels up from this file (src/utils/)
            project_root = Path(__file__).parent.parent.parent
            template_dir = project_root / "prompts"

        self.template_dir = template_dir
        self.strict_undefined = strict_undefined

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,  # Prompts are text, not HTML
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined if strict_undefined else Undefined,
        )
        self.env.filters["quote_safe"] = self._quote_safe_filter

        logger.debug(
            "PromptLoader initialized",
            template_dir=str(self.template_dir),
            strict_undefined=strict_undefined,
        )

    def render(
        self,
        template_name: str,
        correlation_id: Optional[str] = None,
        **variables: Any,
    ) -> str:
        """
        Render a template with provided variables.

        Args:
            template_name: Path to template relative to prompts/ (e.g., "recommendation/career_stream.j2")
            correlation_id: Optional correlation ID for logging
            **variables: Template variables as keyword arguments

        Returns:
            Rendered prompt string

        Raises:
            TemplateNotFound: If template file doesn't exist
            TemplateSyntaxError: If template has syntax errors
            UndefinedError: If strict_undefined=True and variable is missing
        """
        log = logger.bind(template_name=template_name, correlation_id=correlation_id)

        try:
            template = self.env.get_template(template_name)
            rendered = template.render(**variables)
        except TemplateNotFound as e:
            log.error("Template not found", template_dir=str(self.template_dir), error=str(e))
            raise
        except TemplateSyntaxError as e:
            log.error("Template syntax error", error=str(e), lineno=e.lineno)
            raise
        except UndefinedError as e:
            log.error(
                "Undefined variable in template",
                error=str(e),
                variables_provided=list(variables.keys()),
            )
            raise

        log.debug("Template rendered", rendered_length=len(rendered))
        return rendered

    def get_system_prompt(
        self,
        prompt_type: str = "system",
        correlation_id: Optional[str] = None,
        **variables: Any,
    ) -> str:
        """
        Load and render a system prompt from the base/ directory.

        Args:
            prompt_type: Name of the system prompt template (default: "system")
            correlation_id: Optional correlation ID for logging
            **variables: Template variables as keyword arguments

        Returns:
            Rendered system prompt string with surrounding whitespace removed
        """
        template_name = f"base/{prompt_type}.j2"
        return self.render(
            template_name, correlation_id=correlation_id, **variables
        ).strip()

    @staticmethod
    def _quote_safe_filter(text: str) -> str:
        """Collapse newlines and escape double quotes in free-text answers."""
        return " ".join(str(text).split()).replace('"', '\\"')

