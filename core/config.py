from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.exceptions import ConfigurationError
from core.logging import logger


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    TELEGRAM_TOKEN: str
    OPENAI_API_KEY: str

    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_TIMEOUT: float = 60.0

    TELEGRAM_TIMEOUT: float = 30.0
    WEBHOOK_URL: Optional[str] = None
    WEBHOOK_SECRET: Optional[str] = None

    AGODA_CID: str = "1937751"

    GA_MEASUREMENT_ID: str = ""
    GA_API_SECRET: str = ""

    SESSION_TTL_MINUTES: int = 60
    LOG_LEVEL: str = "INFO"


def load_settings(**overrides) -> Settings:
    try:
        loaded = Settings(**overrides)
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        logger.error(f"Invalid configuration, check your .env file: {', '.join(missing)}")
        raise ConfigurationError(f"Invalid or missing settings: {', '.join(missing)}") from e

    for name in ("TELEGRAM_TOKEN", "OPENAI_API_KEY"):
        if not getattr(loaded, name).strip():
            logger.error(f"{name} is not set in .env file")
            raise ConfigurationError(f"{name} is not set")
    return loaded


settings = load_settings()
