#!/usr/bin/env python3
"""
ccmon Configuration Management

Lookup order for the YAML file:
1. Explicit path (-c/--config)
2. CCMON_CONFIG environment variable
3. ./config.yaml (if exists)
4. Defaults

Environment overrides are applied on top of the file (a local .env is honoured):
    CCMON_PROMETHEUS_URL, CCMON_REFRESH_INTERVAL, CCMON_LOG_LEVEL
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from ..api.queries.constants import LABEL_APP_VERSION, LABEL_MODEL, LABEL_TERMINAL_TYPE
from ..api.queries.timeranges import TimeRangePreset
from ..insights.pricing import PricingProvider

logger = logging.getLogger("ccmon.server")

DEFAULT_CONFIG_PATH = "config.yaml"

ENV_OVERRIDES = {
    "CCMON_PROMETHEUS_URL": "prometheus_url",
    "CCMON_REFRESH_INTERVAL": "refresh_interval",
    "CCMON_LOG_LEVEL": "log_level",
}


class MonitorConfig(BaseModel):
    # Metrics backend
    prometheus_url: str = "http://localhost:9090"
    request_timeout: float = Field(10.0, gt=0)
    cache_ttl: float = Field(5.0, ge=0)

    # Dashboard behaviour
    refresh_interval: int = Field(15, ge=1)
    default_time_range: TimeRangePreset = TimeRangePreset.LAST_15_MINUTES

    # Label filters (empty = not applied)
    terminal_type_filter: str = ""
    model_filter: str = ""
    app_version_filter: str = ""

    # Local files
    stats_cache_path: Optional[str] = None
    history_path: Optional[str] = None
    enable_project_lookup: bool = True
    pricing_provider: PricingProvider = PricingProvider.ANTHROPIC

    # HTTP surface
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    @field_validator("default_time_range")
    @classmethod
    def _no_custom_default(cls, v):
        if v is TimeRangePreset.CUSTOM:
            raise ValueError("default_time_range must be a preset, not 'custom'")
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level: {v}")
        return level

    def label_filters(self) -> Dict[str, str]:
        """Non-empty filters keyed by metric label name."""
        filters = {
            LABEL_TERMINAL_TYPE: self.terminal_type_filter,
            LABEL_MODEL: self.model_filter,
            LABEL_APP_VERSION: self.app_version_filter,
        }
        return {k: v for k, v in filters.items() if v}

    @property
    def stats_cache_file(self) -> Optional[Path]:
        return Path(self.stats_cache_path).expanduser() if self.stats_cache_path else None

    @property
    def history_file(self) -> Optional[Path]:
        return Path(self.history_path).expanduser() if self.history_path else None


def load_config_from(path: str) -> MonitorConfig:
    """Load configuration from YAML file (no environment overrides)."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return MonitorConfig(**data)


def load_config(config_path: Optional[str] = None) -> MonitorConfig:
    """
    Resolve, load and override the configuration.

    Raises:
        FileNotFoundError: If an explicitly given config file does not exist
        pydantic.ValidationError: If any value is invalid
    """
    load_dotenv()

    data: Dict[str, object] = {}
    candidate = config_path or os.environ.get("CCMON_CONFIG")
    if candidate is None and os.path.exists(DEFAULT_CONFIG_PATH):
        candidate = DEFAULT_CONFIG_PATH

    if candidate:
        with open(candidate, "r") as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {candidate}")
    else:
        logger.info("No configuration file found, using defaults")

    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            logger.debug(f"Config override from {env_name}")
            data[field_name] = value

    return MonitorConfig(**data)
