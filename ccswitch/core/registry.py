"""
Channel registry: the configured channel set and its persistence
"""
from __future__ import annotations

import logging
import threading
from typing import List, Optional

from ccswitch.core.exceptions import ConfigError, ChannelNotFoundError, DuplicateChannelError
from ccswitch.models.config import AppConfig, ChannelConfig, load_config, save_config

logger = logging.getLogger("ccswitch.registry")


class ChannelRegistry:
    """
    Owns the channel set loaded from ``config_path``.

    Every successful add/remove rewrites the whole config file before
    returning. If the write fails the in-memory change is rolled back, so
    memory and disk never disagree.
    """

    def __init__(self, config: AppConfig, config_path: Optional[str] = None):
        self._config = config
        self._config_path = config_path
        # Single writer: persistence is a full-file rewrite
        self._write_lock = threading.Lock()

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "ChannelRegistry":
        return cls(load_config(config_path), config_path)

    @property
    def config(self) -> AppConfig:
        return self._config

    def reload(self):
        """Re-read the config file, replacing the in-memory state."""
        with self._write_lock:
            self._config = load_config(self._config_path)
        logger.info(f"Reloaded {len(self._config.channels)} channel(s)")

    def get(self, name: str) -> Optional[ChannelConfig]:
        return self._config.get_channel(name)

    def list_channels(self) -> List[ChannelConfig]:
        return list(self._config.channels.values())

    def get_channels_for_model(self, model: str) -> List[ChannelConfig]:
        return self._config.get_channels_for_model(model)

    def add(self, channel: ChannelConfig):
        with self._write_lock:
            if channel.name in self._config.channels:
                raise DuplicateChannelError(channel.name)

            self._config.channels[channel.name] = channel
            try:
                save_config(self._config, self._config_path)
            except ConfigError:
                del self._config.channels[channel.name]
                raise
        logger.info(f"Added channel '{channel.name}' ({channel.url})")

    def remove(self, name: str):
        with self._write_lock:
            channels = self._config.channels
            if name not in channels:
                raise ChannelNotFoundError(name)

            # Rebuild on rollback to keep registration order intact
            before = dict(channels)
            del channels[name]
            try:
                save_config(self._config, self._config_path)
            except ConfigError:
                channels.clear()
                channels.update(before)
                raise
        logger.info(f"Removed channel '{name}'")
