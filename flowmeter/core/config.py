"""Application configuration management."""
import json
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_FILE = "config.json"
# "flow" and "meter" typed on a phone keypad
DEFAULT_RECEIVE_PORT = 3569
DEFAULT_HTTP_PORT = 63837
DEFAULT_EXPIRE = 86400
MAX_PAYLOAD_SIZE = 512

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be read or validated."""


class PredefinedFlow(BaseModel):
    """Flow registered at startup before any traffic is accepted."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, validation_alias=AliasChoices("name", "Name"))
    expire: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("expire", "Expire"),
        description="Ring capacity in seconds; 0 means use the default expire",
    )


class FlowsConfig(BaseModel):
    """Flow creation policy and predefined flows."""

    model_config = ConfigDict(populate_by_name=True)

    implicit_create: bool = Field(
        True,
        validation_alias=AliasChoices("_implicitCreate", "implicit_create"),
        description="Create unknown flows on their first sample",
    )
    default_expire: int = Field(
        DEFAULT_EXPIRE,
        ge=1,
        validation_alias=AliasChoices("_defaultExpire", "default_expire"),
        description="Default ring capacity in seconds",
    )
    predefined_flows: list[PredefinedFlow] = Field(
        default_factory=list,
        validation_alias=AliasChoices("predefinedFlows", "PredefinedFlows", "predefined_flows"),
    )


class ConfigFile(BaseModel):
    """Root configuration file structure."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    receive_ip: str = Field(
        "127.0.0.1",
        validation_alias=AliasChoices("receiveIP", "receive_ip"),
        description="Address the UDP sample listener binds to",
    )
    receive_port: int = Field(
        DEFAULT_RECEIVE_PORT,
        ge=0,
        le=65535,
        validation_alias=AliasChoices("receivePort", "receive_port"),
    )
    http_ip: str = Field(
        "127.0.0.1",
        validation_alias=AliasChoices("httpIP", "http_ip"),
        description="Address the HTTP API binds to",
    )
    http_port: int = Field(
        DEFAULT_HTTP_PORT,
        ge=0,
        le=65535,
        validation_alias=AliasChoices("httpPort", "http_port"),
    )
    log_level: LogLevel = Field("INFO", validation_alias=AliasChoices("logLevel", "log_level"))
    log_file: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("logFile", "log_file"),
        description="Optional file receiving a copy of the log output",
    )
    tick_interval: float = Field(
        1.0,
        gt=0,
        validation_alias=AliasChoices("tickInterval", "tick_interval"),
        description="Seconds between two ring rotations",
    )
    ingest_workers: int = Field(4, ge=1, validation_alias=AliasChoices("ingestWorkers", "ingest_workers"))
    ingest_queue_size: int = Field(
        10_000,
        ge=1,
        validation_alias=AliasChoices("ingestQueueSize", "ingest_queue_size"),
    )
    flows: FlowsConfig = Field(default_factory=FlowsConfig)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


class Environment(BaseSettings):
    """Process environment overrides."""

    model_config = SettingsConfigDict(env_prefix="FLOWMETER_")

    config: Path = Field(Path(DEFAULT_CONFIG_FILE), description="Path to the JSON configuration file")


class Settings(BaseModel):
    """Resolved application settings shared by all services."""

    receive_ip: str = "127.0.0.1"
    receive_port: int = DEFAULT_RECEIVE_PORT
    http_ip: str = "127.0.0.1"
    http_port: int = DEFAULT_HTTP_PORT
    log_level: LogLevel = "INFO"
    log_file: Optional[str] = None
    tick_interval: float = 1.0
    ingest_workers: int = 4
    ingest_queue_size: int = 10_000
    max_payload_size: int = MAX_PAYLOAD_SIZE

    implicit_create: bool = True
    default_expire: int = DEFAULT_EXPIRE
    predefined_flows: list[PredefinedFlow] = Field(default_factory=list)

    config_path: Optional[Path] = Field(None, description="File the settings were loaded from")
    using_defaults: bool = Field(False, description="True when no configuration file was found")


def _get_config_file_path() -> Path:
    """Return the configuration path, honouring FLOWMETER_CONFIG."""

    return Environment().config


def _load_config_from_json(path: Path) -> ConfigFile | None:
    """Load and validate the configuration file; None when it does not exist."""

    if not path.exists():
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            config_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Can't open config {path}: {e}") from e

    try:
        return ConfigFile.model_validate(config_data)
    except ValidationError as e:
        raise ConfigError(f"Can't parse config {path}: {e}") from e


def _create_settings_from_config(config: ConfigFile, *, path: Path | None, using_defaults: bool) -> Settings:
    """Flatten the configuration file into a Settings object."""

    return Settings(
        receive_ip=config.receive_ip,
        receive_port=config.receive_port,
        http_ip=config.http_ip,
        http_port=config.http_port,
        log_level=config.log_level,
        log_file=config.log_file,
        tick_interval=config.tick_interval,
        ingest_workers=config.ingest_workers,
        ingest_queue_size=config.ingest_queue_size,
        implicit_create=config.flows.implicit_create,
        default_expire=config.flows.default_expire,
        predefined_flows=list(config.flows.predefined_flows),
        config_path=path,
        using_defaults=using_defaults,
    )


def load_settings(path: Path | None = None) -> Settings:
    """Read settings from ``path`` (or the default location), falling back to defaults."""

    path = path or _get_config_file_path()
    config = _load_config_from_json(path)
    if config is None:
        return _create_settings_from_config(ConfigFile(), path=path, using_defaults=True)
    return _create_settings_from_config(config, path=path, using_defaults=False)


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return cached Settings (blocking, use at startup only)."""

    return load_settings()
