"""
Unit tests for the credential setup command.
"""

import pytest

from src.cli import main, setup_credentials
from src.utils.credential_manager import GENERATOR_API_KEY


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.setenv(GENERATOR_API_KEY, "")
    monkeypatch.delenv(GENERATOR_API_KEY)


@pytest.fixture
def console(mocker):
    return mocker.patch("src.cli.console")


def printed(console):
    return " ".join(str(call.args[0]) for call in console.print.call_args_list)


def test_entered_key_is_saved(tmp_path, clean_env, mocker, console):
    env_file = tmp_path / ".env"
    mocker.patch("src.utils.credential_manager.Prompt.ask", return_value="sk-ant-new-key")

    assert setup_credentials(env_file) == 0

    assert f"{GENERATOR_API_KEY}='sk-ant-new-key'" in env_file.read_text(encoding="utf-8")
    assert "sk-" in printed(console)
    assert "sk-ant-new-key" not in printed(console)


def test_blank_key_keeps_sample_recommendations(tmp_path, clean_env, mocker, console):
    env_file = tmp_path / ".env"
    mocker.patch("src.utils.credential_manager.Prompt.ask", return_value="")

    assert setup_credentials(env_file) == 0

    assert not env_file.exists()
    assert "sample recommendations" in printed(console)


def test_configured_key_is_not_asked_again(tmp_path, monkeypatch, mocker, console):
    monkeypatch.setenv(GENERATOR_API_KEY, "sk-ant-present")
    ask = mocker.patch("src.utils.credential_manager.Prompt.ask")

    assert setup_credentials(tmp_path / ".env") == 0

    ask.assert_not_called()
    assert "already configured" in printed(console)


def test_main_uses_env_file_argument(tmp_path, clean_env, mocker, monkeypatch, console):
    env_file = tmp_path / "custom.env"
    monkeypatch.setattr("sys.argv", ["career-compass-setup", str(env_file)])
    mocker.patch("src.utils.credential_manager.Prompt.ask", return_value="sk-ant-custom")

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 0
    assert "sk-ant-custom" in env_file.read_text(encoding="utf-8")
