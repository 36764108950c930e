"""
Text-stream framing used by the chat endpoints.

Wire format: one frame per line, ``<part>:<json>\\n``. Part ``0`` carries a text
chunk (a JSON string), part ``3`` carries an error message. The client's stream
reader concatenates text chunks until the body ends, so a single-shot answer
and a truly incremental reply are read the same way.

parse_frames and decode_text are the reference reader for this format. The
server never reads frames back; the reader pins down what a client must
reconstruct from a body.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Union

TEXT_PART = "0"
ERROR_PART = "3"

# Starlette appends "; charset=utf-8" for text/* media types.
STREAM_MEDIA_TYPE = "text/plain"
# Tells the client's stream reader the body uses the data-stream framing.
STREAM_HEADERS = {"X-Experimental-Stream-Data": "true"}


def encode_frame(payload: str, part: str = TEXT_PART) -> bytes:
    """Frame one chunk as UTF-8 bytes: ``0:"<json-escaped payload>"\\n``."""
    try:
        return f"{part}:{json.dumps(payload, ensure_ascii=False)}\n".encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates cannot be written raw as UTF-8; keep them as \\u escapes.
        return f"{part}:{json.dumps(payload)}\n".encode("utf-8")


class StreamState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class SingleFrameStream:
    """
    Byte iterator for an answer that arrived in one piece.

    OPEN -> CLOSED in one step: the first ``next()`` emits the whole answer as
    one text frame and closes; every later ``next()`` ends the iteration.
    """

    def __init__(self, text: str):
        if not isinstance(text, str):
            raise TypeError(f"SingleFrameStream expects str, got {type(text).__name__}")
        self._text = text
        self.state = StreamState.OPEN

    def __iter__(self) -> "SingleFrameStream":
        return self

    def __next__(self) -> bytes:
        if self.state is StreamState.CLOSED:
            raise StopIteration
        self.state = StreamState.CLOSED
        return encode_frame(self._text)


def stream_text_frames(chunks: Iterable[Optional[str]]) -> Iterator[bytes]:
    """Frame each non-empty chunk as it arrives; the stream ends when ``chunks`` is exhausted."""
    for chunk in chunks:
        if chunk:
            yield encode_frame(chunk)


def parse_frames(body: Union[bytes, str]) -> list[tuple[str, Any]]:
    """Split a framed body into ``(part, decoded_payload)`` pairs. Raises ValueError on a malformed line."""
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    frames: list[tuple[str, Any]] = []
    for line in body.split("\n"):
        if not line:
            continue
        part, sep, raw = line.partition(":")
        if not sep or not part:
            raise ValueError(f"Malformed stream frame: {line[:80]!r}")
        frames.append((part, json.loads(raw)))
    return frames


def decode_text(body: Union[bytes, str]) -> str:
    """Reassemble the text a stream reader would show; an error frame raises ValueError."""
    out = []
    for part, payload in parse_frames(body):
        if part == ERROR_PART:
            raise ValueError(f"Stream error frame: {payload}")
        if part == TEXT_PART:
            out.append(payload)
    return "".join(out)
