"""
Channel manager
Ties the registry, health probe and selector to one shared HTTP client
"""
from __future__ import annotations

from typing import List, Optional

import httpx
from pydantic import ValidationError

from ccswitch.core.exceptions import ChannelNotFoundError, ConfigError
from ccswitch.core.probe import HealthProbe
from ccswitch.core.registry import ChannelRegistry
from ccswitch.core.selector import ChannelSelector, order_by_priority
from ccswitch.models.config import AppConfig, ChannelConfig
from ccswitch.models.schemas import ChannelStatus


class ChannelManager:
    """Channel operations exposed to the CLI and the HTTP surface"""

    def __init__(self, registry: ChannelRegistry, client: Optional[httpx.AsyncClient] = None):
        self.registry = registry
        self._client = client

    @classmethod
    def load(cls, config_path: Optional[str] = None,
             client: Optional[httpx.AsyncClient] = None) -> "ChannelManager":
        return cls(ChannelRegistry.load(config_path), client)

    @property
    def config(self) -> AppConfig:
        return self.registry.config

    def get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.request_timeout_seconds),
                follow_redirects=True,
                limits=httpx.Limits(
                    max_connections=20,
                    max_keepalive_connections=5,
                    keepalive_expiry=30.0,
                ),
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def reload_config(self):
        self.registry.reload()

    # ─── Registry operations ─────────────────────────────────────────────────

    def add_channel(self,
                    name: str,
                    url: str,
                    api_key: Optional[str] = None,
                    model: Optional[str] = None,
                    priority: int = 0,
                    enabled: bool = True) -> ChannelConfig:
        try:
            channel = ChannelConfig(
                name=name,
                url=url,
                api_key=api_key,
                model=model,
                enabled=enabled,
                priority=priority,
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid channel '{name}': {e}") from e
        self.registry.add(channel)
        return channel

    def remove_channel(self, name: str):
        self.registry.remove(name)

    def list_channels(self) -> List[ChannelConfig]:
        return self.registry.list_channels()

    def get_channel(self, name: str) -> ChannelConfig:
        channel = self.registry.get(name)
        if channel is None:
            raise ChannelNotFoundError(name)
        return channel

    # ─── Probing and selection ───────────────────────────────────────────────

    def _probe(self) -> HealthProbe:
        # Built per call so a reloaded timeout takes effect
        return HealthProbe(self.get_client(), timeout=self.config.timeout_seconds)

    async def test_channel(self, channel: ChannelConfig) -> ChannelStatus:
        return await self._probe().probe(channel)

    async def test_all_channels(self) -> List[ChannelStatus]:
        """Probe every enabled channel, one at a time, in priority order."""
        probe = self._probe()
        results = []
        for channel in order_by_priority(self.config.get_enabled_channels()):
            results.append(await probe.probe(channel))
        return results

    probe = test_channel
    probe_all = test_all_channels

    async def find_available_channel(self, model: str) -> ChannelConfig:
        return await ChannelSelector(self.registry, self._probe()).select(model)
