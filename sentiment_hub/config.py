"""Settings from the environment (and .env) plus package logging setup."""

import logging
import os
import sys
from dataclasses import dataclass

from dotenv import load_dotenv

from sentiment_hub.errors import ConfigError

# Load environment variables from .env
load_dotenv()

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o-mini"

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    api_key: str = ""
    model: str = DEFAULT_MODEL
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 2.0
    log_level: str = "INFO"


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


def load_settings() -> Settings:
    """Build Settings from the environment (and .env, already loaded at import)."""
    max_retries = _env_number("SENTIMENT_MAX_RETRIES", 3, int)
    if max_retries < 1:
        raise ConfigError("SENTIMENT_MAX_RETRIES must be at least 1")
    return Settings(
        api_url=os.getenv("SENTIMENT_API_URL", DEFAULT_API_URL),
        api_key=os.getenv("SENTIMENT_API_KEY") or os.getenv("OPENAI_API_KEY", ""),
        model=os.getenv("SENTIMENT_MODEL", DEFAULT_MODEL),
        timeout=_env_number("SENTIMENT_TIMEOUT", 30.0, float),
        max_retries=max_retries,
        retry_delay=_env_number("SENTIMENT_RETRY_DELAY", 2.0, float),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stdout handler to the package logger once."""
    logger = logging.getLogger("sentiment_hub")
    logger.setLevel(level)
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)
    return logger
