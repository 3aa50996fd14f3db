"""
Response normalizer for ccswitch
Reduces the JSON bodies of OpenAI, Anthropic and plain-text style upstreams
to a single content string.
"""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

from ccswitch.core.exceptions import ChannelError, SerializationError

Extractor = Callable[[Any], Optional[str]]


def _first_choice(body: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    return first if isinstance(first, dict) else None


def _nested_str(container: Any, key: str) -> Optional[str]:
    if not isinstance(container, dict):
        return None
    value = container.get(key)
    return value if isinstance(value, str) else None


# ─── Extractors ──────────────────────────────────────────────────────────────
# Each one is total: it returns None rather than raising on an unexpected shape.


def chat_message_content(body: Any) -> Optional[str]:
    """choices[0].message.content"""
    choice = _first_choice(body)
    return _nested_str(choice.get("message"), "content") if choice else None


def stream_delta_content(body: Any) -> Optional[str]:
    """choices[0].delta.content"""
    choice = _first_choice(body)
    return _nested_str(choice.get("delta"), "content") if choice else None


def plain_content(body: Any) -> Optional[str]:
    return _nested_str(body, "content")


def content_blocks_text(body: Any) -> Optional[str]:
    """content[0].text (Anthropic messages)"""
    if not isinstance(body, dict):
        return None
    blocks = body.get("content")
    if not isinstance(blocks, list) or not blocks:
        return None
    return _nested_str(blocks[0], "text")


def top_level_text(body: Any) -> Optional[str]:
    return _nested_str(body, "text")


def top_level_response(body: Any) -> Optional[str]:
    return _nested_str(body, "response")


def content_block_delta_text(body: Any) -> Optional[str]:
    """delta.text (Anthropic content_block_delta stream events)"""
    if not isinstance(body, dict):
        return None
    return _nested_str(body.get("delta"), "text")


class ResponseNormalizer:
    """
    Tries the extractors in a fixed order and returns the first match.

    A match is any string value, including the empty string.
    """

    EXTRACTORS: List[Extractor] = [
        chat_message_content,
        stream_delta_content,
        plain_content,
        content_blocks_text,
        top_level_text,
        top_level_response,
    ]

    # Stream chunks may also be Anthropic events
    STREAM_EXTRACTORS: List[Extractor] = EXTRACTORS + [content_block_delta_text]

    @classmethod
    def extract_content(cls, body: Any) -> str:
        for extractor in cls.EXTRACTORS:
            content = extractor(body)
            if content is not None:
                return content
        raise ChannelError("Could not extract content from response")

    @staticmethod
    def extract_usage(body: Any) -> Optional[Any]:
        if isinstance(body, dict):
            return body.get("usage")
        return None

    @staticmethod
    def parse_json(text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise SerializationError(f"Failed to parse response: {e}") from e

    @classmethod
    def normalize(cls, text: str) -> Tuple[str, Optional[Any]]:
        """Parse a JSON body; returns (content, usage)."""
        body = cls.parse_json(text)
        return cls.extract_content(body), cls.extract_usage(body)

    # ─── Server-sent events ──────────────────────────────────────────────────

    @staticmethod
    def is_event_stream(text: str, content_type: str = "") -> bool:
        if "text/event-stream" in content_type.lower():
            return True
        return text.lstrip().startswith(("data:", "event:"))

    @staticmethod
    def iter_events(text: str):
        """Yield each decoded ``data:`` payload, stopping at [DONE]."""
        for line in text.splitlines():
            line = line.strip()
            if not line.startswith("data:"):
                continue
            data_str = line[5:].strip()
            if data_str == "[DONE]":
                return
            if not data_str:
                continue
            try:
                yield json.loads(data_str)
            except json.JSONDecodeError as e:
                raise SerializationError(f"Failed to parse stream chunk: {e}") from e

    @classmethod
    def normalize_stream(cls, text: str) -> Tuple[str, Optional[Any]]:
        """
        Concatenate the content of every chunk in an SSE body.

        Chunks without extractable content (role headers, finish markers)
        are skipped. The last ``usage`` seen is returned.
        """
        pieces = []
        usage = None
        matched = False
        for chunk in cls.iter_events(text):
            for extractor in cls.STREAM_EXTRACTORS:
                content = extractor(chunk)
                if content is not None:
                    pieces.append(content)
                    matched = True
                    break
            chunk_usage = cls.extract_usage(chunk)
            if chunk_usage is not None:
                usage = chunk_usage

        if not matched:
            raise ChannelError("Could not extract content from response")
        return "".join(pieces), usage


def extract_content(body: Any) -> str:
    """Module-level shortcut for :meth:`ResponseNormalizer.extract_content`."""
    return ResponseNormalizer.extract_content(body)
