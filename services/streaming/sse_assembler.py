"""Incremental assembly of streamed chat completions from SSE bytes.

The gateway answers chat requests with an OpenAI-style Server-Sent-Events
body::

    data: {"choices":[{"delta":{"content":"Hel"}}]}
    data: {"choices":[{"delta":{"content":"lo"}}]}
    data: [DONE]

Network chunks can split a line anywhere, including in the middle of a
multibyte character. `StreamingResponseAssembler` buffers partial lines and
only publishes text once a complete event has been parsed, so the sequence
of updates is the same however the bytes were chunked.

Example:
    assembler = StreamingResponseAssembler(on_update=print)
    for chunk in body_chunks:
        assembler.feed(chunk)
    text = assembler.finish()
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncIterable, Callable, List, Optional

LOGGER = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_delta(event: Any) -> Optional[str]:
    """Return `choices[0].delta.content` from a parsed event, if present."""
    if not isinstance(event, dict):
        return None
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class StreamingResponseAssembler:
    """Turn SSE byte chunks into cumulative assistant text.

    Args:
        on_update: Optional callback receiving the cumulative text after every
            extracted delta.
    """

    def __init__(self, on_update: Optional[Callable[[str], None]] = None) -> None:
        self.on_update = on_update
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._text = ""
        self._discarded = 0
        self.done = False
        self.finished = False

    @property
    def text(self) -> str:
        return self._text

    def feed(self, chunk: bytes) -> List[str]:
        """Consume one network chunk and return the updates it produced."""
        if self.finished:
            raise RuntimeError("Cannot feed an assembler after finish().")
        self._buffer += self._decoder.decode(chunk)
        if self.done:
            # Drain whatever follows [DONE]; nothing after it is published.
            self._buffer = ""
            return []
        return self._drain()

    def finish(self) -> str:
        """Mark the end of the stream and return the full assembled text."""
        if self.finished:
            return self._text
        self._buffer += self._decoder.decode(b"", final=True)
        if not self.done and self._buffer:
            # Last pass: the final line may lack its trailing newline.
            if not self._buffer.endswith("\n"):
                self._buffer += "\n"
            self._drain(final=True)
        if self._discarded:
            LOGGER.warning("Discarded %d unparsed characters at end of chat stream", self._discarded)
        self._buffer = ""
        self.finished = True
        return self._text

    async def consume(self, chunks: AsyncIterable[bytes]) -> str:
        """Feed every chunk from `chunks` in order, then finish.

        The stream is finished even if the iterator fails, so text that
        already arrived is kept; the iterator's error is re-raised.
        """
        try:
            async for chunk in chunks:
                self.feed(chunk)
        finally:
            self.finish()
        return self._text

    def _drain(self, final: bool = False) -> List[str]:
        updates: List[str] = []
        while True:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1 :]

            if line.endswith("\r"):
                line = line[:-1]
            if not line.strip() or line.startswith(":"):
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            payload = line[len(DATA_PREFIX) :].strip()
            if payload.startswith(DONE_SENTINEL):
                self.done = True
                self._buffer = ""
                break

            try:
                event = json.loads(payload)
            except ValueError:
                if final:
                    # Nothing more will arrive to complete it.
                    self._discarded += len(line)
                    continue
                # Incomplete event; wait for more bytes.
                self._buffer = line + "\n" + self._buffer
                break

            content = extract_delta(event)
            if content:
                self._text += content
                updates.append(self._text)
                if self.on_update is not None:
                    self.on_update(self._text)
        return updates
