"""Incremental decoder for the chat-completions event stream.

The endpoint answers a ``stream: true`` request with newline-delimited
frames::

    data: {"choices":[{"delta":{"content":"Hel"}}]}
    data: {"choices":[{"delta":{"content":"lo"}}]}
    data: [DONE]

Chunks arrive from the network at arbitrary byte boundaries, so the decoder
keeps a buffer of the unterminated tail and only parses complete lines.
A frame that fails to parse is assumed to be truncated and is dropped.

Two contracts are offered over the same byte-chunk source:

- ``iter_deltas(chunks)`` -- pull: yields content deltas in arrival order.
- ``decode_stream(chunks, on_delta)`` -- push: forwards each delta to a
  callback and returns the accumulated text.
"""

import codecs
import json
import logging
from typing import Callable, Iterable, Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"
_DATA_PREFIX = "data:"

Chunk = Union[bytes, str]


def parse_frame(line: str) -> Optional[str]:
    """Return the content delta carried by one frame, or None.

    Blank lines, non-data lines, the ``[DONE]`` sentinel, malformed JSON
    and empty deltas all yield None.
    """
    line = line.strip()
    if not line or not line.startswith(_DATA_PREFIX):
        return None

    data = line[len(_DATA_PREFIX):].strip()
    if data == DONE_SENTINEL:
        return None

    try:
        parsed = json.loads(data)
    except json.JSONDecodeError:
        logger.debug("Dropping unparseable stream frame: %.80s", data)
        return None

    try:
        content = parsed["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None

    if isinstance(content, str) and content:
        return content
    return None


class StreamDecoder:
    """Stateful frame buffer. Feed it chunks, collect deltas."""

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._parts: List[str] = []

    @property
    def text(self) -> str:
        """Everything decoded so far."""
        return "".join(self._parts)

    def feed(self, chunk: Chunk) -> List[str]:
        """Add a chunk and return the deltas from every frame it completed."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        deltas = []
        while True:
            line_end = self._buffer.find("\n")
            if line_end == -1:
                break
            line = self._buffer[:line_end]
            self._buffer = self._buffer[line_end + 1:]

            content = parse_frame(line)
            if content is not None:
                self._parts.append(content)
                deltas.append(content)
        return deltas

    def close(self) -> str:
        """Finish the stream and return the full text.

        Any unterminated tail left in the buffer is discarded.
        """
        self._buffer += self._decoder.decode(b"", final=True)
        if self._buffer.strip():
            logger.debug("Discarding unterminated stream tail: %.80s", self._buffer)
        self._buffer = ""
        return self.text


def iter_deltas(chunks: Iterable[Chunk]) -> Iterator[str]:
    """Yield content deltas from a chunk source in arrival order."""
    decoder = StreamDecoder()
    for chunk in chunks:
        if not chunk:
            continue
        yield from decoder.feed(chunk)
    decoder.close()


def decode_stream(
    chunks: Iterable[Chunk],
    on_delta: Optional[Callable[[str], None]] = None,
) -> str:
    """Decode a whole stream, forwarding each delta to ``on_delta``.

    Returns the concatenation of every delta emitted.
    """
    parts = []
    for delta in iter_deltas(chunks):
        parts.append(delta)
        if on_delta:
            on_delta(delta)
    return "".join(parts)
