"""
Configuration for imagemanip.

Settings are a pydantic model tree. Values come from, lowest precedence
first: model defaults, an optional JSON file named by IMAGEMANIP_CONFIG_FILE,
then IMAGEMANIP_* environment variables.
"""

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from imagemanip.core.constants import APIConstants, ImageConstants, SystemConstants
from imagemanip.schemas.styles import TextStyle, WatermarkStyle

logger = logging.getLogger(__name__)

ENV_PREFIX = SystemConstants.ENV_PREFIX


class SystemConfig(BaseModel):
    """Process-level settings."""

    log_level: str = Field(default=SystemConstants.LOG_LEVEL_DEFAULT, description="Root logging level")
    debug: bool = Field(default=False, description="Enable debug mode (uvicorn reload)")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"Unknown log level: {value}")
        return level


class ImageConfig(BaseModel):
    """Encoding settings."""

    default_quality: int = Field(
        default=ImageConstants.DEFAULT_QUALITY, ge=0, le=100, description="Default save quality"
    )
    max_upload_size_mb: int = Field(
        default=APIConstants.MAX_UPLOAD_SIZE_MB, gt=0, description="Maximum decoded payload size"
    )


class APIConfig(BaseModel):
    """HTTP server settings."""

    host: str = APIConstants.DEFAULT_HOST
    port: int = Field(default=APIConstants.DEFAULT_PORT, gt=0, lt=65536)
    cors_enabled: bool = True
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    max_operations: int = Field(default=APIConstants.MAX_OPERATIONS, gt=0)


class Settings(BaseModel):
    """Root settings object."""

    environment: str = "development"
    system: SystemConfig = Field(default_factory=SystemConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    text: TextStyle = Field(default_factory=TextStyle)
    watermark: WatermarkStyle = Field(default_factory=WatermarkStyle)
    api: APIConfig = Field(default_factory=APIConfig)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def _env_overrides(environ: Dict[str, str]) -> Dict[str, Any]:
    """Translate IMAGEMANIP_* variables into a nested settings dict."""
    mapping = {
        "ENV": ("environment",),
        "LOG_LEVEL": ("system", "log_level"),
        "DEBUG": ("system", "debug"),
        "HOST": ("api", "host"),
        "PORT": ("api", "port"),
        "FONT": ("text", "font"),
        "QUALITY": ("image", "default_quality"),
    }
    overrides: Dict[str, Any] = {}
    for suffix, path in mapping.items():
        value = environ.get(f"{ENV_PREFIX}{suffix}")
        if value is None:
            continue
        if suffix == "DEBUG":
            value = value.strip().lower() in ("1", "true", "yes", "on")
        target = overrides
        for key in path[:-1]:
            target = target.setdefault(key, {})
        target[path[-1]] = value
    return overrides


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(config_file: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """
    Build settings from an optional JSON file and environment variables.

    Args:
        config_file: JSON file path (defaults to $IMAGEMANIP_CONFIG_FILE)
        environ: Environment mapping (defaults to os.environ)
    """
    environ = dict(os.environ) if environ is None else environ
    config_file = config_file or environ.get(f"{ENV_PREFIX}CONFIG_FILE")

    data: Dict[str, Any] = {}
    if config_file:
        path = Path(config_file)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read config file {path}: {e}")
            raise
        logger.info(f"Loaded configuration from {path}")

    return Settings.model_validate(_deep_merge(data, _env_overrides(environ)))


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return load_settings()


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, settings.system.log_level),
        format=SystemConstants.LOG_FORMAT,
    )
