"""
Incremental decoder for `data:` server-sent event streams.

Both the chat proxy (reading the LLM gateway) and the widget's streaming
client (reading the proxy) consume streams of the form::

    data: {"content": "Hel"}

    data: {"content": "lo"}

    data: [DONE]

Chunks arrive at arbitrary byte boundaries, so partial lines are buffered
until their newline shows up.
"""
import json
import logging
from typing import Any, Iterator, List

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


class StreamDone:
    """Marker yielded when the `[DONE]` sentinel is seen"""

    def __repr__(self) -> str:
        return "DONE"


DONE = StreamDone()


def format_event(payload: Any) -> str:
    """Serialise one payload as an SSE `data:` event"""
    if payload is DONE:
        return f"data: {DONE_SENTINEL}\n\n"
    return f"data: {json.dumps(payload)}\n\n"


class SSEDecoder:
    """
    Turns raw text chunks into parsed `data:` payloads.

    Lines that are not `data:` fields, and data that is not valid JSON, are
    skipped. Decoding is lenient: one bad line never ends the stream.
    """

    def __init__(self):
        self._buffer = ""

    def feed(self, chunk: str) -> List[Any]:
        """Add a chunk and return every payload completed by it"""
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        return list(self._decode_lines(lines))

    def flush(self) -> List[Any]:
        """Decode whatever is left once the body has ended"""
        remainder, self._buffer = self._buffer, ""
        return list(self._decode_lines([remainder]))

    def _decode_lines(self, lines: List[str]) -> Iterator[Any]:
        for raw_line in lines:
            line = raw_line.rstrip("\r")
            if not line.startswith("data:"):
                continue

            data = line[5:]
            if data.startswith(" "):
                data = data[1:]

            if data.strip() == DONE_SENTINEL:
                yield DONE
                continue

            try:
                yield json.loads(data)
            except json.JSONDecodeError:
                logger.debug(f"Skipping non-JSON stream line: {data[:80]}")
                continue
