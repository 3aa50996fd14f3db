"""Request dispatch tests"""
import httpx
import pytest

from ccswitch.core.exceptions import (
    AllChannelsFailedError,
    ChannelError,
    NetworkError,
    NoAvailableChannelsError,
    SerializationError,
)
from ccswitch.models.config import ChannelConfig
from ccswitch.models.schemas import RequestOptions

PRIMARY = "https://primary.example/v1/chat/completions"
BACKUP = "https://backup.example/v1/chat/completions"


def primary(**kwargs):
    return ChannelConfig(name="primary", url=PRIMARY, priority=0, **kwargs)


def backup(**kwargs):
    return ChannelConfig(name="backup", url=BACKUP, priority=1, **kwargs)


def chat(content, **extra):
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    body.update(extra)
    return httpx.Response(200, json=body)


class TestModelResolution:

    @pytest.mark.asyncio
    async def test_explicit_model(self, make_api_client, upstream):
        client = make_api_client(primary(), default_model="configured")
        upstream.route(PRIMARY, httpx.Response(200), chat("hi"))
        response = await client.make_request("Hi", RequestOptions(model="explicit"))
        assert response.model == "explicit"
        assert upstream.payloads_to(PRIMARY)[1]["model"] == "explicit"

    @pytest.mark.asyncio
    async def test_configured_default_model(self, make_api_client, upstream):
        client = make_api_client(primary(), default_model="configured")
        upstream.route(PRIMARY, httpx.Response(200), chat("hi"))
        response = await client.make_request("Hi")
        assert response.model == "configured"

    @pytest.mark.asyncio
    async def test_hardcoded_default_model(self, make_api_client, upstream):
        client = make_api_client(primary())
        upstream.route(PRIMARY, httpx.Response(200), chat("hi"))
        response = await client.make_request("Hi")
        assert response.model == "gpt-3.5-turbo"


class TestDispatch:

    @pytest.mark.asyncio
    async def test_probe_then_dispatch(self, make_api_client, upstream):
        client = make_api_client(primary(api_key="sk-primary"))
        upstream.route(PRIMARY, httpx.Response(200),
                       chat("Hello there", usage={"total_tokens": 12}))

        response = await client.make_request(
            "Say hi", RequestOptions(model="gpt-4", max_tokens=50, temperature=0.2))

        assert response.content == "Hello there"
        assert response.channel_used == "primary"
        assert response.usage == {"total_tokens": 12}

        probe_payload, real_payload = upstream.payloads_to(PRIMARY)
        assert probe_payload["max_tokens"] == 1
        assert real_payload == {
            "model": "gpt-4",
            "messages": [{"role": "user", "content": "Say hi"}],
            "max_tokens": 50,
            "temperature": 0.2,
            "stream": False,
        }
        real_request = upstream.calls_to(PRIMARY)[1]
        assert real_request.headers["Authorization"] == "Bearer sk-primary"
        assert real_request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_unset_sampling_parameters_omitted(self, make_api_client, upstream):
        client = make_api_client(primary())
        upstream.route(PRIMARY, httpx.Response(200), chat("ok"))
        await client.make_request("x", RequestOptions(max_tokens=None, temperature=None))
        payload = upstream.payloads_to(PRIMARY)[1]
        assert "max_tokens" not in payload
        assert "temperature" not in payload

    @pytest.mark.asyncio
    async def test_failover_happens_at_selection(self, make_api_client, upstream):
        client = make_api_client(primary(), backup())
        upstream.route(PRIMARY, httpx.Response(500))
        upstream.route(BACKUP, httpx.Response(200), httpx.Response(200, json={"content": [{"type": "text", "text": "from backup"}]}))

        response = await client.make_request("x")

        assert response.channel_used == "backup"
        assert response.content == "from backup"
        assert len(upstream.calls_to(PRIMARY)) == 1

    @pytest.mark.asyncio
    async def test_upstream_error_is_fatal(self, make_api_client, upstream):
        client = make_api_client(primary(), backup())
        upstream.route(PRIMARY, httpx.Response(200), httpx.Response(429, text="slow down"))
        upstream.route(BACKUP, httpx.Response(200), chat("unused"))

        with pytest.raises(ChannelError) as exc_info:
            await client.make_request("x")

        assert exc_info.value.status_code == 429
        assert exc_info.value.body == "slow down"
        assert "429" in str(exc_info.value)
        assert "slow down" in str(exc_info.value)
        # No fallback to the backup channel after selection
        assert upstream.calls_to(BACKUP) == []

    @pytest.mark.asyncio
    async def test_bad_request_on_real_call_is_fatal(self, make_api_client, upstream):
        client = make_api_client(primary())
        upstream.route(PRIMARY, httpx.Response(400, text="bad model"))
        with pytest.raises(ChannelError, match="bad model"):
            await client.make_request("x")

    @pytest.mark.asyncio
    async def test_transport_failure_on_real_call(self, make_api_client, upstream):
        client = make_api_client(primary())
        upstream.route(PRIMARY, httpx.Response(200), httpx.ConnectError("reset by peer"))
        with pytest.raises(NetworkError, match="reset by peer"):
            await client.make_request("x")

    @pytest.mark.asyncio
    async def test_malformed_body(self, make_api_client, upstream):
        client = make_api_client(primary())
        upstream.route(PRIMARY, httpx.Response(200), httpx.Response(200, text="not json"))
        with pytest.raises(SerializationError):
            await client.make_request("x")

    @pytest.mark.asyncio
    async def test_unextractable_body(self, make_api_client, upstream):
        client = make_api_client(primary())
        upstream.route(PRIMARY, httpx.Response(200), httpx.Response(200, json={"foo": "bar"}))
        with pytest.raises(ChannelError, match="Could not extract content"):
            await client.make_request("x")

    @pytest.mark.asyncio
    async def test_streamed_response(self, make_api_client, upstream):
        client = make_api_client(primary())
        stream_body = (
            'data: {"choices": [{"delta": {"content": "str"}}]}\n\n'
            'data: {"choices": [{"delta": {"content": "eamed"}}]}\n\n'
            'data: [DONE]\n\n'
        )
        upstream.route(PRIMARY, httpx.Response(200), httpx.Response(
            200, text=stream_body, headers={"content-type": "text/event-stream"}))

        response = await client.make_request("x", RequestOptions(stream=True))

        assert response.content == "streamed"
        assert upstream.payloads_to(PRIMARY)[1]["stream"] is True


class TestSelectionErrorsPropagate:

    @pytest.mark.asyncio
    async def test_no_channels(self, make_api_client, upstream):
        client = make_api_client()
        with pytest.raises(NoAvailableChannelsError):
            await client.make_request("x", RequestOptions(model="unknown-model"))
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_all_failed_no_dispatch(self, make_api_client, upstream):
        client = make_api_client(primary(), backup())
        upstream.route(PRIMARY, httpx.Response(500))
        upstream.route(BACKUP, httpx.Response(401))
        with pytest.raises(AllChannelsFailedError):
            await client.make_request("x")
        # Exactly one probe each, no real request
        assert len(upstream.requests) == 2
        assert all(p["max_tokens"] == 1 for p in upstream.payloads_to(PRIMARY) + upstream.payloads_to(BACKUP))
