"""
rtsp_client Configuration
=========================

This module handles configuration loading for the RTSP client.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    RTSP_URL                  -> connection.url
    RTSP_TIMEOUT              -> connection.timeout_seconds
    RTSP_VERBOSITY            -> connection.verbosity
    RTSP_INITIAL_BUFFER_SIZE  -> sink.initial_buffer_size
    RTSP_LOG_LEVEL            -> logging.level

Example:
    from rtsp_client.config import load_config, setup_logging

    settings = load_config()
    setup_logging(settings)

    print(settings.connection.url)
    print(settings.connection.timeout_seconds)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator


logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "rtsp_client"


# =============================================================================
# Configuration Models
# =============================================================================

class ConnectionConfig(BaseModel):
    """RTSP connection configuration."""

    url: str = Field(
        default="rtsp://localhost:8554/stream",
        description="RTSP URL of the media server",
    )
    timeout_seconds: int = Field(
        default=10,
        ge=1,
        description="Connection timeout and data liveness poll interval",
    )
    verbosity: int = Field(
        default=0,
        ge=0,
        description="Verbosity level passed to the RTSP client",
    )

    @field_validator("url")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        if not value.startswith(("rtsp://", "rtsps://")):
            raise ValueError(f"url must use rtsp:// or rtsps://, got {value!r}")
        return value


class SinkConfig(BaseModel):
    """Frame sink configuration."""

    initial_buffer_size: int = Field(
        default=1024 * 1024,
        ge=1,
        description="Initial frame buffer capacity in bytes (doubles on truncation)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for rtsp_client.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    sink: SinkConfig = Field(default_factory=SinkConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        for path in (Path("config.yaml"), Path("config.yml")):
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Connection settings
    if env_url := os.environ.get("RTSP_URL"):
        config_data.setdefault("connection", {})["url"] = env_url
    if env_timeout := os.environ.get("RTSP_TIMEOUT"):
        config_data.setdefault("connection", {})["timeout_seconds"] = int(env_timeout)
    if env_verbosity := os.environ.get("RTSP_VERBOSITY"):
        config_data.setdefault("connection", {})["verbosity"] = int(env_verbosity)

    # Sink settings
    if env_size := os.environ.get("RTSP_INITIAL_BUFFER_SIZE"):
        config_data.setdefault("sink", {})["initial_buffer_size"] = int(env_size)

    # Logging settings
    if env_log := os.environ.get("RTSP_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """
    Configure logging based on settings.

    The configured level applies to the rtsp_client logger tree only, so an
    RTSP_LOG_LEVEL of DEBUG traces NOTIFY and poll records without turning on
    debug output from the host application's other libraries.
    """
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = (
            '{"time": "%(asctime)s", "level": "%(levelname)s", '
            '"logger": "%(name)s", "func": "%(funcName)s", "message": "%(message)s"}'
        )
    else:
        log_format = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

    logging.basicConfig(format=log_format, datefmt="%Y-%m-%dT%H:%M:%S")
    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)
