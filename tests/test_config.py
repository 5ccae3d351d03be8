import pytest

from core.config import load_settings
from core.exceptions import ConfigurationError


def test_defaults(monkeypatch):
    monkeypatch.setenv("TELEGRAM_TOKEN", "token")
    monkeypatch.setenv("OPENAI_API_KEY", "key")

    settings = load_settings(_env_file=None)

    assert settings.OPENAI_MODEL == "gpt-4o-mini"
    assert settings.AGODA_CID == "1937751"
    assert settings.SESSION_TTL_MINUTES == 60
    assert settings.WEBHOOK_URL is None


def test_missing_token_is_fatal(monkeypatch):
    monkeypatch.delenv("TELEGRAM_TOKEN", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "key")

    with pytest.raises(ConfigurationError, match="TELEGRAM_TOKEN"):
        load_settings(_env_file=None)


def test_blank_api_key_is_fatal(monkeypatch):
    monkeypatch.setenv("TELEGRAM_TOKEN", "token")
    monkeypatch.setenv("OPENAI_API_KEY", "  ")

    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        load_settings(_env_file=None)
