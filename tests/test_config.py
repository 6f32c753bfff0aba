import logging

import pytest

from sentiment_hub.config import DEFAULT_API_URL, configure_logging, load_settings
from sentiment_hub.errors import ConfigError

_ENV = ("SENTIMENT_API_URL", "SENTIMENT_API_KEY", "OPENAI_API_KEY", "SENTIMENT_MODEL",
        "SENTIMENT_TIMEOUT", "SENTIMENT_MAX_RETRIES", "SENTIMENT_RETRY_DELAY", "LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings()
        assert settings.api_url == DEFAULT_API_URL
        assert settings.api_key == ""
        assert settings.max_retries == 3
        assert settings.timeout == 30.0

    def test_openai_key_fallback(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
        assert load_settings().api_key == "sk-openai"
        monkeypatch.setenv("SENTIMENT_API_KEY", "sk-own")
        assert load_settings().api_key == "sk-own"

    def test_numbers_and_level(self, monkeypatch):
        monkeypatch.setenv("SENTIMENT_TIMEOUT", "12.5")
        monkeypatch.setenv("SENTIMENT_MAX_RETRIES", "5")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = load_settings()
        assert settings.timeout == 12.5
        assert settings.max_retries == 5
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("name, value", [
        ("SENTIMENT_TIMEOUT", "soon"),
        ("SENTIMENT_MAX_RETRIES", "0"),
        ("SENTIMENT_RETRY_DELAY", "-1"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigError):
            load_settings()


def test_configure_logging_adds_one_handler():
    logger = configure_logging("DEBUG")
    configure_logging("DEBUG")
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
