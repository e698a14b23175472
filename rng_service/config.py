"""
Configuration for the RNG service.

Two layers:

- ``Settings``: process environment (or ``.env``), read with pydantic-settings.
- ``ServiceConfig``: the JSON configuration file holding the listen address,
  the shared API key and the CORS allow-list. It is created with defaults on
  first start and reset to defaults when it cannot be parsed.
"""
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Literal

import orjson
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationResetError

log = structlog.get_logger()

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost",
    "http://localhost:8080",
    "http://localhost:5173",
]


class Settings(BaseSettings):
    ENV: str = "dev"
    CONFIG_PATH: str = "config.json"
    DATABASE_URL: str = "sqlite:///./RNG.sqlite"
    API_PREFIX: str = "/api/v1"
    LOG_JSON: bool = True
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


class ServiceConfig(BaseModel):
    """Contents of the JSON configuration file."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    port: int = Field(9999, ge=1, le=65535)
    host: str = "0.0.0.0"
    api_key: str = Field(alias="apiKey", min_length=1)
    allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS), alias="allowedOrigins"
    )
    allow_all_origins: bool = Field(False, alias="allowAllOrigins")

    @classmethod
    def default(cls) -> "ServiceConfig":
        """Local-development defaults with a freshly generated API key."""
        return cls(api_key=str(uuid.uuid4()))

    def cors_origins(self) -> list[str]:
        return ["*"] if self.allow_all_origins else list(self.allowed_origins)


def write_service_config(path: Path, config: ServiceConfig) -> None:
    path.write_bytes(
        orjson.dumps(config.model_dump(by_alias=True), option=orjson.OPT_INDENT_2)
    )


def load_service_config(path: str | Path) -> ServiceConfig:
    """
    Load the service configuration, creating it when absent.

    Args:
        path: Location of the JSON configuration file

    Returns:
        Parsed configuration

    Raises:
        ConfigurationResetError: The file existed but was invalid. It has been
            overwritten with defaults and the process should be restarted.
    """
    path = Path(path)

    if not path.exists():
        config = ServiceConfig.default()
        write_service_config(path, config)
        log.info("config.created", path=str(path))
        return config

    try:
        config = ServiceConfig.model_validate(orjson.loads(path.read_bytes()))
    except (orjson.JSONDecodeError, ValidationError) as exc:
        log.error("config.invalid", path=str(path), error=str(exc))
        write_service_config(path, ServiceConfig.default())
        raise ConfigurationResetError(
            "Invalid configuration found, file has been reset to defaults. "
            "Please rerun the application."
        ) from exc

    log.info("config.loaded", path=str(path), host=config.host, port=config.port)
    return config
