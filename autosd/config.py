from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class DiscoveryConfig(BaseModel):
    """Reconciliation loop settings."""

    refresh_interval: float = Field(30.0, gt=0)
    label_prefix: str = "__meta_"
    default_metrics_path: str = "/metrics"


class OutputConfig(BaseModel):
    """Where the file_sd document is written."""

    path: str = "/opt/file_sd/autosd.json"
    name: str = "autogenerate_sd"


class HttpConfig(BaseModel):
    """Registration endpoint bind address."""

    host: str = "0.0.0.0"
    port: int = Field(8082, ge=1, le=65535)


class AutoSDConfig(BaseModel):
    """Top-level configuration model."""

    discovery: DiscoveryConfig = DiscoveryConfig()
    output: OutputConfig = OutputConfig()
    http: HttpConfig = HttpConfig()
    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> AutoSDConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to AUTOSD_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("AUTOSD_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = AutoSDConfig(**data)
    else:
        config = AutoSDConfig()

    env_interval = os.getenv("AUTOSD_REFRESH_INTERVAL")
    if env_interval:
        config.discovery = DiscoveryConfig(
            **{**config.discovery.model_dump(), "refresh_interval": float(env_interval)}
        )
    env_output = os.getenv("AUTOSD_OUTPUT_FILE")
    if env_output:
        config.output.path = env_output
    return config
