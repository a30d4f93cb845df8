import pytest

from rowbot.cli import main
from rowbot.config import DEFAULT_SCHEDULES, Settings, env_required
from rowbot.runtime import build_runtime


def test_settings_defaults(monkeypatch):
    for name in ("ROWBOT_SCHEDULES", "ROWBOT_DEBUG_ROUTES", "GOOGLE_SERVICE_ACCOUNT_JSON", "GOOGLE_SERVICE_ACCOUNT_FILE"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.schedules == DEFAULT_SCHEDULES
    assert settings.debug_routes is False
    assert settings.google_credentials == ""


def test_settings_from_env(monkeypatch):
    monkeypatch.delenv("GOOGLE_SERVICE_ACCOUNT_JSON", raising=False)
    monkeypatch.delenv("ROWBOT_HEALTH_PORT", raising=False)
    monkeypatch.setenv("METASHEET_SPREADSHEET_ID", " meta-1 ")
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_FILE", "/keys/bot.json")
    monkeypatch.setenv("ROWBOT_DEBUG_ROUTES", "yes")
    monkeypatch.setenv("ROWBOT_SCHEDULES", "")
    settings = Settings.from_env()
    assert settings.metasheet_id == "meta-1"
    assert settings.google_credentials == "/keys/bot.json"
    assert settings.debug_routes is True
    assert settings.health_port == 8080
    assert settings.schedules == DEFAULT_SCHEDULES
    assert settings.directory_url() == "https://docs.google.com/spreadsheets/d/meta-1/edit"


def test_env_required(monkeypatch):
    monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
    with pytest.raises(RuntimeError, match="Missing required env: SLACK_BOT_TOKEN"):
        env_required("SLACK_BOT_TOKEN")


def test_runtime_needs_google_credentials(monkeypatch):
    monkeypatch.delenv("GOOGLE_SERVICE_ACCOUNT_JSON", raising=False)
    monkeypatch.delenv("GOOGLE_SERVICE_ACCOUNT_FILE", raising=False)
    with pytest.raises(RuntimeError, match="GOOGLE_SERVICE_ACCOUNT_FILE"):
        build_runtime()


def test_cli_none_task(capsys):
    assert main(["--task", "none"]) == 0
    assert "No task scheduled" in capsys.readouterr().out


def test_cli_reports_configuration_errors(monkeypatch, capsys):
    monkeypatch.delenv("GOOGLE_SERVICE_ACCOUNT_JSON", raising=False)
    monkeypatch.delenv("GOOGLE_SERVICE_ACCOUNT_FILE", raising=False)
    assert main(["--task", "users"]) == 1
    assert "users failed" in capsys.readouterr().err
