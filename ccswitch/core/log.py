"""
Logging setup shared by the CLI and the HTTP server
"""
import logging
import os
from typing import Optional

DEFAULT_LOG_LEVEL = "warning"
LOG_LEVEL_ENV = "CCSWITCH_LOG_LEVEL"


def resolve_log_level(log_level: Optional[str] = None) -> str:
    return (log_level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).lower()


def configure_logging(log_level: Optional[str] = None):
    """
    Set up a single stderr StreamHandler on the root logger.
    uvicorn is started with log_config=None so it leaves this alone.
    """
    level = getattr(logging, resolve_log_level(log_level).upper(), logging.WARNING)

    fmt = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(fmt)
        root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request at INFO
    for name in ("uvicorn.error", "uvicorn.access", "uvicorn", "fastapi", "httpx", "httpcore"):
        lgr = logging.getLogger(name)
        lgr.setLevel(max(level, logging.WARNING) if name.startswith("http") else level)
        lgr.propagate = True
