"""
Unit tests for configuration models
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from src.models.config import AdminIdentity, LLMConfig, SystemParams
from src.utils.validator import ConfigurationError


@pytest.fixture(autouse=True)
def no_admin_password_override(monkeypatch):
    monkeypatch.delenv("CAREER_ADMIN_PASSWORD", raising=False)


def write_config(tmp_path, data):
    path = tmp_path / "system_params.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults():
    params = SystemParams()

    assert params.storage.directory == "data"
    assert params.llm.caller_retry_attempts == 1
    assert params.admin.id == "admin-special-001"
    assert params.log_level == "INFO"


def test_log_level_is_normalized():
    assert SystemParams(log_level="debug").log_level == "DEBUG"


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        SystemParams(log_level="LOUD")


def test_retry_attempts_bounds():
    with pytest.raises(ValidationError):
        LLMConfig(caller_retry_attempts=0)


def test_admin_email_must_look_like_email():
    with pytest.raises(ValidationError):
        AdminIdentity(email="admin")


def test_load_from_file(tmp_path):
    path = write_config(
        tmp_path,
        {"storage": {"directory": "state"}, "llm": {"call_timeout_seconds": 5}},
    )

    params = SystemParams.load(path)

    assert params.storage.directory == "state"
    assert params.llm.call_timeout_seconds == 5
    assert params.llm.model == "claude-sonnet-4-5"


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="example.json"):
        SystemParams.load(tmp_path / "system_params.json")


def test_load_rejects_schema_violations(tmp_path):
    path = write_config(tmp_path, {"llm": {"caller_retry_attempts": 9}})

    with pytest.raises(ConfigurationError):
        SystemParams.load(path)


def test_load_or_default_without_file(tmp_path):
    params = SystemParams.load_or_default(tmp_path / "absent.json")

    assert params == SystemParams()


def test_admin_password_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("CAREER_ADMIN_PASSWORD", "from-env")

    params = SystemParams.load_or_default(tmp_path / "absent.json")

    assert params.admin.password == "from-env"


def test_example_config_is_valid():
    params = SystemParams.load(
        Path(__file__).parents[2] / "config" / "system_params.example.json"
    )

    assert params.admin.email == "admin@careercompass.app"
