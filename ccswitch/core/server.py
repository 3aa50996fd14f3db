"""
FastAPI server for ccswitch
Exposes the channel operations to automation over HTTP
"""
from __future__ import annotations
import logging
import uvicorn
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ccswitch import __version__
from ccswitch.core.client import APIClient
from ccswitch.core.exceptions import (
    CCSwitchError,
    ConfigError,
    DuplicateChannelError,
    ChannelNotFoundError,
    NoAvailableChannelsError,
    AllChannelsFailedError,
)
from ccswitch.core.log import configure_logging, resolve_log_level
from ccswitch.models.schemas import RequestOptions, DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE

logger = logging.getLogger("ccswitch.server")


class AddChannelRequest(BaseModel):
    name: str
    url: str
    api_key: Optional[str] = None
    model: Optional[str] = None
    priority: int = Field(default=0, ge=0)
    enabled: bool = True


class GenerateRequest(BaseModel):
    prompt: str
    model: Optional[str] = None
    max_tokens: Optional[int] = DEFAULT_MAX_TOKENS
    temperature: Optional[float] = DEFAULT_TEMPERATURE
    stream: bool = False


def error_status(exc: CCSwitchError) -> int:
    if isinstance(exc, ChannelNotFoundError):
        return 404
    if isinstance(exc, DuplicateChannelError):
        return 409
    if isinstance(exc, ConfigError):
        return 500
    if isinstance(exc, (NoAvailableChannelsError, AllChannelsFailedError)):
        return 503
    return 502


def create_app(api_client: APIClient) -> FastAPI:
    """Create and configure the FastAPI application"""
    manager = api_client.channel_manager

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("ccswitch server starting up...")
        yield
        logger.info("ccswitch server shutting down...")
        await api_client.close()

    app = FastAPI(
        title="ccswitch",
        description="Automatic switching between model API channels",
        version=__version__,
        lifespan=lifespan,
    )

    # ─── Health check ───────────────────────────────────────────────────────────
    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "version": __version__,
            "channels": len(manager.config.get_enabled_channels()),
        }

    # ─── Channels ───────────────────────────────────────────────────────────────
    # Handlers that write the config file are plain def and run in the threadpool
    @app.get("/v1/channels")
    async def list_channels():
        return {"channels": [ch.public_dict() for ch in manager.list_channels()]}

    @app.post("/v1/channels", status_code=201)
    def add_channel(body: AddChannelRequest):
        channel = manager.add_channel(**body.model_dump())
        return channel.public_dict()

    @app.delete("/v1/channels/{name}")
    def remove_channel(name: str):
        manager.remove_channel(name)
        return {"removed": name}

    @app.post("/v1/channels/test")
    async def test_channels(name: Optional[str] = None):
        if name is not None:
            statuses = [await manager.test_channel(manager.get_channel(name))]
        else:
            statuses = await manager.test_all_channels()
        return {"results": [status.to_dict() for status in statuses]}

    # ─── Generation ─────────────────────────────────────────────────────────────
    @app.post("/v1/generate")
    async def generate(body: GenerateRequest):
        options = RequestOptions(
            model=body.model,
            max_tokens=body.max_tokens,
            temperature=body.temperature,
            stream=body.stream,
        )
        response = await api_client.make_request(body.prompt, options)
        return response.to_dict()

    @app.post("/v1/reload")
    def reload_config():
        api_client.reload_config()
        return {"channels": len(manager.list_channels())}

    # ─── Error handlers ─────────────────────────────────────────────────────────
    @app.exception_handler(CCSwitchError)
    async def ccswitch_error_handler(request: Request, exc: CCSwitchError):
        status_code = error_status(exc)
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"error": {"message": str(exc), "type": type(exc).__name__}}
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": {"message": str(exc), "type": "internal_error"}}
        )

    return app


def run_server(api_client: APIClient, host: str = "127.0.0.1", port: int = 3000,
               log_level: Optional[str] = None):
    """Run the server in the foreground until interrupted"""
    configure_logging(log_level)
    app = create_app(api_client)
    uv_config = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_level=resolve_log_level(log_level),
        log_config=None,
        access_log=False,
    )
    uvicorn.Server(uv_config).run()
