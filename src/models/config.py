"""
Configuration Models

Pydantic models for system configuration validation.
"""

import os
from pathlib import Path
from pydantic import BaseModel, Field, field_validator


class StorageConfig(BaseModel):
    """Where the client-held documents (session, registry, quiz progress) live."""

    directory: str = Field(default="data", min_length=1)


class LLMConfig(BaseModel):
    """Recommendation generator settings."""

    model: str = Field(default="claude-sonnet-4-5")
    # Boundary timeout applied by the coordinator, not by the pipeline
    call_timeout_seconds: float = Field(default=60.0, gt=0)
    # Caller-side retries on generic generator failures (never on rate limits)
    caller_retry_attempts: int = Field(default=1, ge=1, le=5)


class AdminIdentity(BaseModel):
    """The single administrative identity synthesized at login.

    It is never stored in the user registry.
    """

    id: str = Field(default="admin-special-001")
    name: str = Field(default="Platform Administrator")
    email: str = Field(default="admin@careercompass.app")
    password: str = Field(default="change-me", min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError(f"Invalid admin email: {v!r}")
        return v.strip()


class SystemParams(BaseModel):
    """System parameters configuration model."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    admin: AdminIdentity = Field(default_factory=AdminIdentity)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    def with_env_overrides(self) -> "SystemParams":
        """Apply CAREER_ADMIN_PASSWORD from the environment, if set."""
        password = os.getenv("CAREER_ADMIN_PASSWORD")
        if not password:
            return self
        admin = self.admin.model_copy(update={"password": password})
        return self.model_copy(update={"admin": admin})

    @classmethod
    def load(cls, config_path: Path | str | None = None) -> "SystemParams":
        """Load system parameters from config file.

        Args:
            config_path: Path to system_params.json (defaults to config/system_params.json)

        Returns:
            SystemParams: Validated configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the file does not match the JSON schema
            ValueError: If config validation fails
        """
        from src.utils.validator import ConfigValidator

        if config_path is None:
            config_path = Path("config/system_params.json")
        else:
            config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}. "
                f"Copy {config_path.stem}.example.json to {config_path.name}"
            )

        config_data = ConfigValidator().validate_file(
            config_path, "system_params_schema.json"
        )
        return cls(**config_data).with_env_overrides()

    @classmethod
    def load_or_default(cls, config_path: Path | str | None = None) -> "SystemParams":
        """Like ``load`` but falls back to defaults when the file is absent."""
        path = Path(config_path) if config_path else Path("config/system_params.json")
        if not path.exists():
            return cls().with_env_overrides()
        return cls.load(path)
