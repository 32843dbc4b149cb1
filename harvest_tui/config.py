"""Configuration.

Credentials live in a TOML file (``~/.config/harvest-tui/config.toml`` by default)::

    [harvest]
    account_id = "123456"
    access_token = "your-token"

Any value can be overridden through ``HARVEST_TUI_*`` environment variables (nested keys
use ``__``, e.g. ``HARVEST_TUI_HARVEST__ACCESS_TOKEN``), optionally from a ``.env`` file
placed next to the config file.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import List, Optional, Tuple, Type, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .api_client import DEFAULT_BASE_URL

CONFIG_DIR = Path.home() / ".config" / "harvest-tui"
CONFIG_ENV_VAR = "HARVEST_TUI_CONFIG"
SETUP_URL = "https://help.getharvest.com/api-v2/authentication-api/authentication/authentication/"


class ConfigError(RuntimeError):
    """Configuration is missing or unusable."""


def default_config_path() -> Path:
    return Path(os.getenv(CONFIG_ENV_VAR, str(CONFIG_DIR / "config.toml"))).expanduser()


class HarvestCredentials(BaseModel):
    account_id: str = ""
    access_token: str = ""

    @field_validator("account_id", "access_token", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> str:
        # TOML happily stores the account id as an integer
        return "" if value is None else str(value).strip()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HARVEST_TUI_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
    """Runtime configuration."""

    harvest: HarvestCredentials = Field(default_factory=HarvestCredentials)
    api_base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 30.0

    config_file: Path = Field(default_factory=default_config_path)
    state_path: Path = CONFIG_DIR / "state.json"
    log_file: Path = CONFIG_DIR / "harvest-tui.log"
    log_level: str = "INFO"

    tick_interval_seconds: float = Field(default=5.0, gt=0)
    poll_interval_seconds: float = Field(default=25.0, gt=0)
    status_timeout_seconds: float = Field(default=3.0, gt=0)

    @field_validator("config_file", "state_path", "log_file", mode="after")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # values read from the TOML file arrive as init kwargs and lose to the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    def missing_credentials(self) -> List[str]:
        missing = []
        if not self.harvest.account_id:
            missing.append("harvest.account_id")
        if not self.harvest.access_token:
            missing.append("harvest.access_token")
        return missing


def _read_toml(path: Path) -> dict:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Could not parse config file {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc


def load_config(path: Optional[Union[str, Path]] = None) -> Settings:
    """Build :class:`Settings` from the TOML file, ``.env`` and the environment."""

    config_path = Path(path).expanduser() if path else default_config_path()

    env_path = config_path.with_name(".env")
    if env_path.exists():
        load_dotenv(env_path)

    data = _read_toml(config_path) if config_path.exists() else {}
    data["config_file"] = config_path
    try:
        settings = Settings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc

    missing = settings.missing_credentials()
    if missing:
        if not config_path.exists():
            raise ConfigError(
                f"Config file {config_path} not found.\n\n"
                f"Create it with your Harvest API credentials:\n\n"
                f"    [harvest]\n    account_id = \"...\"\n    access_token = \"...\"\n\n"
                f"To get your credentials, see {SETUP_URL}"
            )
        raise ConfigError(
            f"Missing {', '.join(missing)} in {config_path}.\n\n"
            f"To get your credentials, see {SETUP_URL}"
        )
    return settings


__all__ = [
    "CONFIG_DIR",
    "ConfigError",
    "HarvestCredentials",
    "SETUP_URL",
    "Settings",
    "default_config_path",
    "load_config",
]
