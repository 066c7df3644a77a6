"""
Credential Manager Module
Detects the recommendation generator's API key and, on request, prompts for
it and stores it in the .env file.
"""

import os
from pathlib import Path
from typing import Optional

import structlog
from dotenv import load_dotenv, set_key
from rich.console import Console
from rich.prompt import Prompt

console = Console()
logger = structlog.get_logger(__name__)

GENERATOR_API_KEY = "ANTHROPIC_API_KEY"


class CredentialManager:
    """Manages the generator credential with .env storage and CLI prompting."""

    def __init__(self, env_file: Path = Path(".env")):
        """
        Initialize credential manager.

        Args:
            env_file: Path to .env file for credential storage
        """
        self.env_file = env_file
        self._load_credentials()

    def _load_credentials(self) -> None:
        """Load existing credentials from .env file without overriding the environment."""
        if self.env_file.exists():
            load_dotenv(self.env_file, override=False)
            logger.info("credentials_loaded_from_env", env_file=str(self.env_file))
            self._set_secure_permissions()
        else:
            logger.debug("no_env_file_found", env_file=str(self.env_file))

    def _set_secure_permissions(self) -> None:
        """Set secure file permissions on .env file (Unix only)."""
        if os.name == "nt":
            return
        try:
            os.chmod(self.env_file, 0o600)  # rw------- (owner read/write only)
        except OSError as e:
            logger.warning(
                "failed_to_set_permissions", env_file=str(self.env_file), error=str(e)
            )

    def get_generator_credential(self) -> Optional[str]:
        """
        Return the generator API key, or None when it is not configured.

        A missing or blank key is the pipeline's degraded mode, not an error,
        so this never prompts.
        """
        value = (os.getenv(GENERATOR_API_KEY) or "").strip()
        if not value:
            logger.debug("generator_credential_missing", key=GENERATOR_API_KEY)
            return None
        return value

    def has_generator_credential(self) -> bool:
        return self.get_generator_credential() is not None

    def get_credential(
        self,
        key: str,
        prompt_message: str,
        is_password: bool = False,
        required: bool = True,
    ) -> Optional[str]:
        """
        Get credential from environment or prompt user.

        Args:
            key: Environment variable name (e.g., "ANTHROPIC_API_KEY")
            prompt_message: Message to display when prompting
            is_password: Whether to mask input (for passwords)
            required: Whether credential is required

        Returns:
            Credential value or None if optional and not provided

        Raises:
            ValueError: If required credential not provided
        """
        value = os.getenv(key)
        if value:
            logger.debug("credential_found_in_env", key=key, is_password=is_password)
            return value

        logger.info("prompting_for_credential", key=key, required=required)
        console.print(f"\n[yellow][*] Credential Required: {key}[/yellow]")
        console.print(f"   {prompt_message}\n")

        value = Prompt.ask("   Enter value", password=is_password)

        if not value and required:
            logger.error("required_credential_not_provided", key=key)
            raise ValueError(f"Required credential not provided: {key}")

        if value:
            self._save_credential(key, value)

        return value or None

    def setup_generator_credential(self) -> Optional[str]:
        """Prompt for the generator API key (optional; blank keeps degraded mode)."""
        return self.get_credential(
            GENERATOR_API_KEY,
            "API key for AI recommendations (leave blank to use sample recommendations)",
            is_password=True,
            required=False,
        )

    def _save_credential(self, key: str, value: str) -> None:
        """
        Save credential to .env file.

        Args:
            key: Environment variable name
            value: Credential value
        """
        try:
            self.env_file.touch(exist_ok=True)
            set_key(self.env_file, key, value)
            os.environ[key] = value
            self._set_secure_permissions()
            console.print(f"   [green][+] Saved {key} to .env[/green]\n")
            logger.info("credential_saved", key=key, env_file=str(self.env_file))
        except Exception as e:
            console.print(f"   [red][X] Failed to save credential: {e}[/red]\n")
            logger.error("failed_to_save_credential", key=key, error=str(e))
            raise

    @staticmethod
    def mask_credential(value: str, show_chars: int = 3) -> str:
        """
        Mask credential for display in logs.

        Args:
            value: Credential value to mask
            show_chars: Number of characters to show at start

        Returns:
            Masked credential (e.g., "abc***")
        """
        if not value or len(value) <= show_chars:
            return "***"
        return f"{value[:show_chars]}{'*' * (len(value) - show_chars)}"
