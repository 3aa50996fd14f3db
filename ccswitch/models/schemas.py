"""
Request-scoped data models
"""
from dataclasses import dataclass
from typing import Optional, Any, Dict

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7


@dataclass
class ChannelStatus:
    """Outcome of one probe"""

    name: str
    available: bool
    response_time_ms: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "available": self.available,
            "response_time_ms": self.response_time_ms,
            "error": self.error,
        }


@dataclass
class RequestOptions:
    """Caller-supplied generation parameters"""

    model: Optional[str] = None
    max_tokens: Optional[int] = DEFAULT_MAX_TOKENS
    temperature: Optional[float] = DEFAULT_TEMPERATURE
    stream: bool = False


@dataclass
class APIResponse:
    """Normalized generation result"""

    content: str
    channel_used: str
    model: str
    usage: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "channel_used": self.channel_used,
            "model": self.model,
            "usage": self.usage,
        }
