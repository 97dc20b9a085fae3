"""
Configuration management for the dockerstats collector.

This module uses Pydantic Settings for environment-based configuration with
support for .env files and an optional YAML file. Configuration is organized
into logical sections:
- Docker daemon connection
- Collection engine and reconnection behaviour
- HTTP server
- Logging

Environment variables can be prefixed with DOCKERSTATS_ (e.g.,
DOCKERSTATS_SERVER__PORT) on the aggregate, or set per section
(e.g., DOCKER_HOST, LOG_LEVEL).
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DockerSettings(BaseSettings):
    """
    Docker daemon connection settings.

    Parameters
    ----------
    docker_host : str
        Docker daemon URL (default: unix:///var/run/docker.sock)
    docker_api_version : str
        API version pinned on every request (default: 1.39)
    docker_timeout_seconds : float
        Timeout for list/stats/inspect calls

    Environment Variables
    ---------------------
    DOCKER_HOST : str
        Override Docker daemon URL
    DOCKER_API_VERSION : str
        Override API version

    Examples
    --------
    >>> config = DockerSettings()
    >>> config.docker_host
    'unix:///var/run/docker.sock'
    >>> config = DockerSettings(docker_host="tcp://localhost:2375")
    >>> config.docker_host
    'tcp://localhost:2375'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    docker_host: str = Field(
        default="unix:///var/run/docker.sock",
        description="Docker daemon URL",
    )
    docker_api_version: str = Field(default="1.39", description="Docker API version")
    docker_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Request timeout (s)"
    )

    @field_validator("docker_host")
    @classmethod
    def validate_docker_host(cls, v: str) -> str:
        """Validate Docker host URL format."""
        valid_schemes = ("unix://", "tcp://", "http://", "https://")
        if not any(v.startswith(scheme) for scheme in valid_schemes):
            raise ValueError(f"Docker host must start with one of: {valid_schemes}. Got: {v}")
        return v


class CollectorSettings(BaseSettings):
    """
    Collection engine and reconnection settings.

    Parameters
    ----------
    max_concurrency : int, optional
        Cap on concurrent per-container fetches (None: one task per container)
    reconnect_backoff_seconds : float
        Wait after rebuilding the runtime on a dropped event stream
    resubscribe_delay_seconds : float
        Wait before resubscribing on the same runtime after other stream errors
    label_retry_delay_seconds : float
        Wait after rebuilding the runtime on a failed inspect
    handle_close_grace_seconds : float
        Delay before a replaced runtime is closed

    Examples
    --------
    >>> config = CollectorSettings()
    >>> config.max_concurrency is None
    True
    >>> config.reconnect_backoff_seconds
    0.25
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    max_concurrency: int | None = Field(
        default=None, ge=1, description="Concurrent fetch cap (None: unbounded)"
    )
    reconnect_backoff_seconds: float = Field(
        default=0.25, ge=0, description="Backoff after rebuilding on stream close"
    )
    resubscribe_delay_seconds: float = Field(
        default=0.25, ge=0, description="Delay before resubscribing"
    )
    label_retry_delay_seconds: float = Field(
        default=0.2, ge=0, description="Delay after rebuilding on inspect failure"
    )
    handle_close_grace_seconds: float = Field(
        default=5.0, ge=0, description="Grace period before closing a replaced runtime"
    )


class ServerSettings(BaseSettings):
    """
    HTTP server settings.

    Parameters
    ----------
    server_host : str
        Bind address
    server_port : int
        Bind port
    cache_ttl_seconds : float
        Lifetime of a cached /stats response (0 disables caching)

    Examples
    --------
    >>> config = ServerSettings()
    >>> config.server_port
    8099
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    server_host: str = Field(default="0.0.0.0", description="Bind address")
    server_port: int = Field(default=8099, ge=1, le=65535, description="Bind port")
    cache_ttl_seconds: float = Field(default=4.0, ge=0, description="Response cache TTL (s)")


class LoggingSettings(BaseSettings):
    """
    Logging configuration.

    Parameters
    ----------
    log_level : str
        Logging level ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    log_format : str
        Log format ("json", "console")

    Environment Variables
    ---------------------
    LOG_LEVEL : str
        Logging level
    LOG_FORMAT : str
        Log format

    Examples
    --------
    >>> config = LoggingSettings()
    >>> config.log_level
    'INFO'
    >>> config.log_format
    'console'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log format",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class Settings(BaseSettings):
    """
    Main dockerstats configuration aggregating all settings.

    Parameters
    ----------
    docker : DockerSettings
        Docker configuration
    collector : CollectorSettings
        Collection engine configuration
    server : ServerSettings
        HTTP server configuration
    logging : LoggingSettings
        Logging configuration

    Examples
    --------
    >>> config = Settings()
    >>> config.docker.docker_host
    'unix:///var/run/docker.sock'
    >>> config.server.cache_ttl_seconds
    4.0
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="DOCKERSTATS_",
        env_nested_delimiter="__",
    )

    docker: DockerSettings = Field(default_factory=DockerSettings)
    collector: CollectorSettings = Field(default_factory=CollectorSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """
        Load configuration from a YAML file.

        Values in the file take precedence. Any field the file leaves out,
        including fields of sections it does mention, is read from the
        environment as usual.

        Parameters
        ----------
        path : str or Path
            Path to the YAML configuration file.

        Raises
        ------
        FileNotFoundError
            If the config file doesn't exist.
        ValueError
            If the config file is invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")

        # Build each section as its own settings object so unset fields still read the env
        sections = {}
        for name, field in cls.model_fields.items():
            value = data.get(name)
            if isinstance(value, dict):
                sections[name] = field.annotation(**value)
            elif value is not None:
                sections[name] = value
        return cls(**sections)


def load_config(path: str | Path | None = None) -> Settings:
    """
    Load dockerstats configuration from the environment and an optional YAML file.

    Examples
    --------
    >>> config = load_config()
    >>> config.server.server_port
    8099
    """
    if path:
        return Settings.from_yaml(path)
    return Settings()
