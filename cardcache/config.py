from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

from cardcache.models.failure import ConfigError


class Settings(BaseSettings):
    """Daemon settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", frozen=True, extra="ignore")

    app_name: str = "cardcache"
    debug: bool = False

    # Database connection (all but port and driver are required)
    db_name: str = Field(min_length=1)
    db_username: str = Field(min_length=1)
    db_password: str = Field(min_length=1)
    db_host: str = Field(min_length=1, validation_alias=AliasChoices("db_host", "db_url"))
    db_port: int = 5432
    db_driver: str = "postgresql+asyncpg"

    # Bulk document
    source_url: str = "https://mtgjson.com/api/v5/AllPrintings.json"
    document_shape: Literal["auto", "sets", "flat"] = "auto"
    fetch_timeout: float = 300.0

    # Scheduling
    max_attempts: int = Field(default=10, ge=1)
    wait_interval: float = Field(default=60 * 60 * 12, gt=0)
    poll_interval: float = Field(default=0.1, gt=0)
    backoff: Literal["none", "fixed", "exponential"] = "none"
    backoff_delay: float = Field(default=5.0, ge=0)
    backoff_max_delay: float = Field(default=300.0, ge=0)

    # Reconciliation
    key_page_size: int = Field(default=100, ge=1)
    update_policy: Literal["on_change", "never"] = "on_change"
    face_merge: Literal["first_write_wins", "face_fallback"] = "first_write_wins"
    color_separator: str = ""
    canonical_color_order: bool = False
    write_card_types: bool = False

    @property
    def database_url(self) -> URL:
        return URL.create(
            self.db_driver,
            username=self.db_username,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


def load_settings(**overrides: object) -> Settings:
    """
    Load settings from the environment (and .env).

    Raises:
        ConfigError: If a required value is missing or any value is invalid
    """
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        missing = tuple(
            str(err["loc"][0]).upper() for err in e.errors() if err["type"] == "missing"
        )
        if missing:
            raise ConfigError(f"{', '.join(missing)} is not defined", missing=missing) from e
        raise ConfigError(f"Invalid configuration: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings.

    Raises:
        ConfigError: If configuration is incomplete
    """
    return load_settings()
