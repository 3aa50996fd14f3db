"""Shared fixtures: a temporary config file and a fake upstream"""
import json
from typing import Callable, Dict, List, Union

import httpx
import pytest

from ccswitch.core.channel import ChannelManager
from ccswitch.core.client import APIClient
from ccswitch.core.registry import ChannelRegistry
from ccswitch.models.config import AppConfig, ChannelConfig, save_config

Route = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """URL-routed MockTransport handler that records every request"""

    def __init__(self):
        self.routes: Dict[str, List[Route]] = {}
        self.requests: List[httpx.Request] = []

    def route(self, url: str, *responses: Route):
        """Queue responses for ``url``; the last one repeats."""
        self.routes[url] = list(responses)
        return self

    def calls_to(self, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]

    def payloads_to(self, url: str) -> List[dict]:
        return [json.loads(r.content) for r in self.calls_to(url)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(str(request.url))
        if not queue:
            raise httpx.ConnectError("Connection refused", request=request)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "ccswitch" / "config.json")


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def make_manager(config_path, upstream):
    """Build a manager over the given channels, persisted to config_path."""

    def _make(*channels: ChannelConfig, **settings) -> ChannelManager:
        config = AppConfig(channels={ch.name: ch for ch in channels}, **settings)
        save_config(config, config_path)
        return ChannelManager(ChannelRegistry.load(config_path), upstream.client())

    return _make


@pytest.fixture
def make_api_client(make_manager):

    def _make(*channels: ChannelConfig, **settings) -> APIClient:
        return APIClient(make_manager(*channels, **settings))

    return _make
