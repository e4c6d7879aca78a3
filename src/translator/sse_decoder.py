"""Incremental decoding of chat-completion event streams."""

import codecs
import json
from typing import Any, List

from config.logging_config import get_logger
from translator.errors import UnknownError

logger = get_logger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_delta_content(event: Any) -> str:
    """Read choices[0].delta.content, or "" when any level is missing."""
    if not isinstance(event, dict):
        return ""
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    if not isinstance(content, str):
        return ""
    return content


def parse_event_line(line: str) -> str:
    """
    Return the delta text carried by one event line.

    Lines without the data prefix, the [DONE] sentinel and payloads that are
    not valid JSON all yield an empty string.
    """
    if not line.startswith(DATA_PREFIX):
        return ""
    payload = line[len(DATA_PREFIX):]
    if payload == DONE_SENTINEL:
        return ""
    try:
        event = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning(f"Error parsing line: {e} ({payload[:100]!r})")
        return ""
    return extract_delta_content(event)


class EventStreamDecoder:
    """Turns raw response fragments into content deltas.

    Bytes of a multi-byte character split across fragments, and an event line
    split across fragments, are held back until the rest arrives.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, fragment: bytes) -> str:
        """Decode one fragment and return the concatenated deltas it completes."""
        if not isinstance(fragment, (bytes, bytearray, memoryview)):
            raise UnknownError(f"unexpected stream fragment {type(fragment).__name__}")
        text = self._pending + self._decoder.decode(bytes(fragment))
        lines = text.split("\n")
        self._pending = lines.pop()
        return self._parse_lines(lines)

    def flush(self) -> str:
        """Decode whatever is still buffered once the stream has ended."""
        text = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if not text:
            return ""
        return self._parse_lines(text.split("\n"))

    @staticmethod
    def _parse_lines(lines: List[str]) -> str:
        return "".join(parse_event_line(line.rstrip("\r")) for line in lines)
