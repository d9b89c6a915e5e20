"""Incremental decoding of OpenAI-compatible server-sent event streams.

The response body arrives as arbitrarily sized byte chunks. Chunk boundaries
may fall anywhere: inside a line, inside a JSON token, or inside a multi-byte
UTF-8 character. ``SSEDecoder`` keeps the undecoded bytes and the trailing
partial line across reads, so the deltas it yields are independent of how the
payload was split.
"""

import codecs
import json
import logging
from typing import Any

from .models import StreamDelta

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class _Done:
    """Marker returned by ``parse_event_line`` for the terminal sentinel."""

    def __repr__(self) -> str:
        return "DONE"


DONE = _Done()


def _delta_from_payload(payload: Any) -> StreamDelta | None:
    """Extract a StreamDelta from a decoded ``{choices: [{delta: ...}]}`` record."""
    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not choices or not isinstance(choices, list) or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None

    content = delta.get("content")
    reasoning = delta.get("reasoning_content")
    # Providers send "" or null for the idle channel
    content = content if isinstance(content, str) and content else None
    reasoning = reasoning if isinstance(reasoning, str) and reasoning else None
    if content is None and reasoning is None:
        return None
    return StreamDelta(content=content, reasoning=reasoning)


def parse_event_line(line: str) -> StreamDelta | _Done | None:
    """Parse one complete SSE line.

    Args:
        line: A line without its trailing newline

    Returns:
        ``DONE`` for the terminal sentinel, a StreamDelta when the event
        carries content or reasoning, otherwise None (comments, other fields,
        keep-alives, and malformed JSON are all skipped)
    """
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None

    data = line[len(DATA_PREFIX):].strip()
    if data == DONE_SENTINEL:
        return DONE

    try:
        payload = json.loads(data)
    except ValueError:
        logger.debug("Skipping malformed SSE line: %.200s", line)
        return None
    return _delta_from_payload(payload)


class SSEDecoder:
    """Accumulate-and-split state machine over a chunked byte stream.

    Usage:
        decoder = SSEDecoder()
        async for chunk in response.aiter_bytes():
            for delta in decoder.feed(chunk):
                ...
            if decoder.done:
                break
        for delta in decoder.close():
            ...
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.done = False

    def feed(self, data: bytes) -> list[StreamDelta]:
        """Consume a chunk and return the deltas of every line it completes.

        Once the ``[DONE]`` sentinel is seen, the rest of the chunk and all
        later chunks are ignored.
        """
        if self.done:
            return []
        self._buffer += self._decoder.decode(data)
        *lines, self._buffer = self._buffer.split("\n")
        return self._consume(lines)

    def close(self) -> list[StreamDelta]:
        """Flush at end-of-stream, treating any unterminated line as complete."""
        if self.done:
            return []
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._consume([tail]) if tail else []

    def _consume(self, lines: list[str]) -> list[StreamDelta]:
        deltas = []
        for line in lines:
            event = parse_event_line(line)
            if event is DONE:
                self.done = True
                break
            if event is not None:
                deltas.append(event)
        return deltas
