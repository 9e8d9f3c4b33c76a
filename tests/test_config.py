import json

from quiz_srs.config import Settings
from quiz_srs.logging import configure_logging, get_logger


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("DAILY_GOAL", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    settings = Settings(_env_file=None)
    assert settings.daily_goal == 20
    assert settings.log_level == "INFO"
    assert settings.database_echo is False


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("DAILY_GOAL", "35")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./other.db")
    settings = Settings(_env_file=None)
    assert settings.daily_goal == 35
    assert settings.database_url == "sqlite:///./other.db"


def test_logging_renders_json_lines(capsys):
    configure_logging(level="INFO", json=True)
    get_logger("quiz_srs.test").info("review_card.answer_recorded", quality=5)
    line = capsys.readouterr().err.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "review_card.answer_recorded"
    assert payload["quality"] == 5
    assert payload["level"] == "info"
    assert "timestamp" in payload


def test_logging_level_filters_info(capsys):
    configure_logging(level="WARNING", json=True)
    get_logger("quiz_srs.test").info("review_card.cards_materialised", created=3)
    assert "cards_materialised" not in capsys.readouterr().err
