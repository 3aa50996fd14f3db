"""
Configuration models for ccswitch
"""
from __future__ import annotations
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator, ConfigDict
from typing import Optional, Dict
import json
import os
import sys
import tempfile

from ccswitch.core.exceptions import ConfigError

DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60
DEFAULT_RETRY_ATTEMPTS = 3


def _user_config_dir() -> str:
    if sys.platform == "win32":
        base = os.environ.get("APPDATA")
        if base:
            return base
    elif sys.platform == "darwin":
        return os.path.join(os.path.expanduser("~"), "Library", "Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME")
        if base:
            return base
    home = os.path.expanduser("~")
    if home == "~":
        raise ConfigError("Could not determine config directory")
    return os.path.join(home, ".config")


def get_config_file_path() -> str:
    """
    Get the configuration file path.
    $CCSWITCH_CONFIG wins; otherwise <user config dir>/ccswitch/config.json.
    """
    override = os.environ.get("CCSWITCH_CONFIG")
    if override:
        return override
    return os.path.join(_user_config_dir(), "ccswitch", "config.json")


class ChannelConfig(BaseModel):
    """Represents an upstream API channel"""
    model_config = ConfigDict(validate_assignment=True)

    name: str
    url: str
    api_key: Optional[str] = None
    model: Optional[str] = None  # None = serves any model
    enabled: bool = True
    priority: int = Field(default=0, ge=0)  # lower = tried first

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("channel name must not be empty")
        return v

    @field_validator('url')
    @classmethod
    def normalize_url(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("channel url must not be empty")
        return v

    @field_validator('api_key', 'model')
    @classmethod
    def empty_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    def serves_model(self, model: str) -> bool:
        """Exact, case-sensitive match; an unset model serves everything."""
        return self.model is None or self.model == model

    def masked_api_key(self) -> Optional[str]:
        if not self.api_key:
            return None
        if len(self.api_key) <= 8:
            return "****"
        return f"{self.api_key[:4]}...{self.api_key[-4:]}"

    def public_dict(self) -> dict:
        """model_dump() with the api key masked, for listings."""
        data = self.model_dump()
        data["api_key"] = self.masked_api_key()
        return data


class AppConfig(BaseModel):
    """Complete application configuration"""
    channels: Dict[str, ChannelConfig] = {}
    default_model: Optional[str] = None
    # Probe timeout
    timeout_seconds: int = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    # Timeout for the real generation call
    request_timeout_seconds: int = Field(default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0)
    # Kept for schema compatibility; nothing retries yet
    retry_attempts: int = Field(default=DEFAULT_RETRY_ATTEMPTS, ge=0)

    @model_validator(mode='after')
    def check_channel_keys(self):
        for key, channel in self.channels.items():
            if key != channel.name:
                raise ValueError(
                    f"channel key '{key}' does not match channel name '{channel.name}'")
        return self

    def get_channel(self, name: str) -> Optional[ChannelConfig]:
        return self.channels.get(name)

    def get_enabled_channels(self):
        return [ch for ch in self.channels.values() if ch.enabled]

    def get_channels_for_model(self, model: str):
        """Enabled channels serving ``model``, in registration order."""
        return [ch for ch in self.get_enabled_channels() if ch.serves_model(model)]


def load_config(config_path: str = None) -> AppConfig:
    """
    Load configuration from JSON file.

    A missing file is replaced by a freshly saved default configuration.

    Args:
        config_path: Optional custom config path. If None, uses default path.

    Returns:
        AppConfig instance

    Raises:
        ConfigError: the file cannot be read, is not JSON, or fails validation
    """
    if config_path is None:
        config_path = get_config_file_path()

    if not os.path.exists(config_path):
        config = AppConfig()
        save_config(config, config_path)
        return config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse config file: {e}") from e

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Failed to parse config file: {e}") from e


def save_config(config: AppConfig, config_path: str = None) -> None:
    """
    Save configuration to JSON file.

    The file is written to a temporary sibling and moved over the target,
    so a failed save leaves the previous file untouched.

    Args:
        config: AppConfig instance to save
        config_path: Optional custom config path. If None, uses default path.

    Raises:
        ConfigError: the directory or file cannot be written
    """
    if config_path is None:
        config_path = get_config_file_path()

    directory = os.path.dirname(os.path.abspath(config_path))
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Failed to create config directory: {e}") from e

    try:
        content = json.dumps(config.model_dump(), indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Failed to serialize config: {e}") from e

    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".config-", suffix=".tmp", dir=directory)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, config_path)
    except OSError as e:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise ConfigError(f"Failed to write config file: {e}") from e
