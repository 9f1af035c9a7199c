"""Configuration module: frozen dataclass loaded from an optional YAML file and env vars."""

import os
import logging
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from apscheduler.triggers.cron import CronTrigger

from logsync.errors import ConfigError

logger = logging.getLogger(__name__)

# (field name, env var) pairs; YAML keys use the field name
_ENV_VARS = (
    ("database_url", "DATABASE_URL"),
    ("solr_url", "SOLR_URL"),
    ("solr_username", "SOLR_USERNAME"),
    ("solr_password", "SOLR_PASSWORD"),
    ("fragment_size", "SOLR_FRAGMENT_SIZE"),
    ("cron_schedule", "CRON_SCHEDULE"),
    ("timezone", "SYNC_TIMEZONE"),
    ("log_table", "LOG_TABLE"),
    ("request_timeout", "SOLR_TIMEOUT"),
    ("host", "HOST"),
    ("port", "PORT"),
    ("log_level", "LOG_LEVEL"),
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

REQUIRED = ("database_url", "solr_url", "solr_username", "solr_password")


@dataclass(frozen=True)
class Config:
    database_url: str = ""
    solr_url: str = ""
    solr_username: str = ""
    solr_password: str = ""
    fragment_size: Optional[int] = None
    cron_schedule: str = "*/1 * * * *"
    timezone: str = "America/Lima"
    log_table: str = "smartia_logs"
    request_timeout: float = 30.0
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"


def load_yaml_config(path: Optional[str]) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path or no file."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def _parse_fragment_size(value) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Fragment size must be an integer, got {value!r}") from None
    if size <= 0:
        raise ConfigError(f"Fragment size must be positive, got {size}")
    return size


def _validate_schedule(cron_schedule: str, timezone: str):
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigError(f"Unknown timezone {timezone!r}") from None
    try:
        CronTrigger.from_crontab(cron_schedule, timezone=timezone)
    except ValueError as exc:
        raise ConfigError(f"Invalid cron schedule {cron_schedule!r}: {exc}") from exc


def load_config(env: Optional[dict] = None, yaml_path: Optional[str] = None) -> Config:
    """Build Config from defaults <- YAML file <- env vars (highest priority).

    Pass env for testability; when None, os.environ is used. Raises
    ConfigError when a required setting is missing or a value is invalid.
    """
    if env is None:
        env = os.environ

    values = dict(load_yaml_config(yaml_path or env.get("CONFIG_PATH")))
    for field_name, env_var in _ENV_VARS:
        if env.get(env_var) is not None:
            values[field_name] = env.get(env_var)

    missing = [name for name in REQUIRED if not values.get(name)]
    if missing:
        names = ", ".join(dict(_ENV_VARS)[name] for name in missing)
        raise ConfigError(f"Missing required configuration: {names}")

    try:
        config = Config(
            database_url=str(values["database_url"]),
            solr_url=str(values["solr_url"]),
            solr_username=str(values["solr_username"]),
            solr_password=str(values["solr_password"]),
            fragment_size=_parse_fragment_size(values.get("fragment_size")),
            cron_schedule=str(values.get("cron_schedule", Config.cron_schedule)),
            timezone=str(values.get("timezone", Config.timezone)),
            log_table=str(values.get("log_table", Config.log_table)),
            request_timeout=float(values.get("request_timeout", Config.request_timeout)),
            host=str(values.get("host", Config.host)),
            port=int(values.get("port", Config.port)),
            log_level=str(values.get("log_level", Config.log_level)).upper(),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc

    if config.log_level not in LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level {config.log_level!r}, expected one of {', '.join(LOG_LEVELS)}"
        )
    _validate_schedule(config.cron_schedule, config.timezone)
    return config
