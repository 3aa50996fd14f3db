"""
Health probe
向 channel 发送一个最小的合成请求，判断其是否可达
"""
import logging
import time
from typing import Optional

import httpx

from ccswitch.models.config import ChannelConfig
from ccswitch.models.schemas import ChannelStatus

logger = logging.getLogger("ccswitch.probe")

PROBE_MODEL = "test"
PROBE_PROMPT = "Hello"


def build_headers(channel: ChannelConfig) -> dict:
    """构建请求头"""
    headers = {"Content-Type": "application/json"}
    if channel.api_key:
        headers["Authorization"] = f"Bearer {channel.api_key}"
    return headers


def describe_transport_error(exc: Exception) -> str:
    # Some httpx errors (e.g. bare timeouts) carry an empty message
    return str(exc) or exc.__class__.__name__


class HealthProbe:
    """
    Classifies one channel as available or not.

    2xx and 400 both count as available: a 400 on the placeholder payload
    means the endpoint answered and accepted the credentials.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout

    @staticmethod
    def build_payload(channel: ChannelConfig) -> dict:
        return {
            "model": channel.model or PROBE_MODEL,
            "messages": [{
                "role": "user",
                "content": PROBE_PROMPT
            }],
            "max_tokens": 1,
        }

    @staticmethod
    def is_available_status(status_code: int) -> bool:
        return 200 <= status_code < 300 or status_code == 400

    async def probe(self, channel: ChannelConfig) -> ChannelStatus:
        logger.debug(f"Testing channel: {channel.name}")

        start = time.perf_counter()
        try:
            response = await self.client.post(
                channel.url,
                headers=build_headers(channel),
                json=self.build_payload(channel),
                timeout=self.timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            error = describe_transport_error(e)
            logger.error(f"Channel {channel.name} failed: {error}")
            return ChannelStatus(name=channel.name, available=False, error=error)

        response_time = int((time.perf_counter() - start) * 1000)
        status_code = response.status_code

        if self.is_available_status(status_code):
            logger.debug(
                f"Channel {channel.name} is available (response time: {response_time}ms)")
            return ChannelStatus(
                name=channel.name,
                available=True,
                response_time_ms=response_time,
            )

        error = f"HTTP {status_code}: {response.reason_phrase or 'Unknown'}"
        logger.warning(f"Channel {channel.name} returned error: {error}")
        return ChannelStatus(
            name=channel.name,
            available=False,
            response_time_ms=response_time,
            error=error,
        )
