"""
Request dispatcher
选择可用 channel 后发送真实的生成请求，并把上游响应规范化
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from ccswitch.core.channel import ChannelManager
from ccswitch.core.converter import ResponseNormalizer
from ccswitch.core.exceptions import ChannelError, NetworkError
from ccswitch.core.probe import build_headers, describe_transport_error
from ccswitch.models.config import ChannelConfig
from ccswitch.models.schemas import APIResponse, RequestOptions, DEFAULT_MODEL

logger = logging.getLogger("ccswitch.client")


class APIClient:
    """
    Dispatches a prompt to the first available channel.

    Failover happens only during selection. Once a channel is chosen, any
    upstream error is final for the call.
    """

    def __init__(self, channel_manager: ChannelManager):
        self.channel_manager = channel_manager

    @classmethod
    def load(cls, config_path: Optional[str] = None,
             client: Optional[httpx.AsyncClient] = None) -> "APIClient":
        return cls(ChannelManager.load(config_path, client))

    async def close(self):
        await self.channel_manager.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def reload_config(self):
        self.channel_manager.reload_config()

    def resolve_model(self, options: RequestOptions) -> str:
        return options.model or self.channel_manager.config.default_model or DEFAULT_MODEL

    @staticmethod
    def build_payload(prompt: str, model: str, options: RequestOptions) -> dict:
        payload = {
            "model": model,
            "messages": [{
                "role": "user",
                "content": prompt
            }],
            "stream": options.stream,
        }
        # Unset sampling parameters are left to the upstream's defaults
        if options.max_tokens is not None:
            payload["max_tokens"] = options.max_tokens
        if options.temperature is not None:
            payload["temperature"] = options.temperature
        return payload

    async def make_request(self, prompt: str, options: Optional[RequestOptions] = None) -> APIResponse:
        if options is None:
            options = RequestOptions()
        model = self.resolve_model(options)
        logger.info(f"Making request for model: {model}")

        channel = await self.channel_manager.find_available_channel(model)

        payload = self.build_payload(prompt, model, options)
        response = await self.send_request(channel, payload)
        return self.parse_response(response, channel.name, model)

    dispatch = make_request

    async def send_request(self, channel: ChannelConfig, payload: dict) -> httpx.Response:
        logger.info(f"Sending request to channel: {channel.name}")

        client = self.channel_manager.get_client()
        try:
            response = await client.post(
                channel.url,
                headers=build_headers(channel),
                json=payload,
                timeout=self.channel_manager.config.request_timeout_seconds,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            error = describe_transport_error(e)
            logger.error(f"Request failed for channel {channel.name}: {error}")
            raise NetworkError(error) from e

        if not response.is_success:
            status = f"{response.status_code} {response.reason_phrase}".strip()
            error_text = response.text
            logger.error(f"API request failed with status {status}: {error_text}")
            raise ChannelError(
                f"API request failed: {status} - {error_text}",
                status_code=response.status_code,
                body=error_text,
            )

        return response

    @staticmethod
    def parse_response(response: httpx.Response, channel_name: str, model: str) -> APIResponse:
        text = response.text
        content_type = response.headers.get("content-type", "")

        if ResponseNormalizer.is_event_stream(text, content_type):
            content, usage = ResponseNormalizer.normalize_stream(text)
        else:
            content, usage = ResponseNormalizer.normalize(text)

        return APIResponse(
            content=content,
            channel_used=channel_name,
            model=model,
            usage=usage,
        )
