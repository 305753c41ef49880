"""
Stream Translator Module

Translates the upstream provider's evented-text (SSE) byte stream into the
normalized newline-delimited token stream sent to clients:

    {"token": "Hello", "done": false}
    {"token": " world", "done": false}
    {"token": "", "done": true, "model": "claude-sonnet-4-5-20250929", "total_tokens": 42}

The translator is single-use. It is consumed once, left to right, and its only
suspension point is waiting for the next upstream chunk.
"""

import json
import time
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Dict, Any

import httpx

from ...core.logging import logger
from .line_buffer import StreamLineBuffer
from .parsed_event import ParsedStreamEvent


@dataclass(frozen=True)
class StreamRecord:
    """One normalized token record."""
    token: str
    done: bool
    model: Optional[str] = None
    total_tokens: Optional[int] = None

    @classmethod
    def fragment(cls, token: str) -> "StreamRecord":
        return cls(token=token, done=False)

    @classmethod
    def terminal(cls, model: str, total_tokens: int, token: str = "") -> "StreamRecord":
        return cls(token=token, done=True, model=model, total_tokens=total_tokens)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"token": self.token, "done": self.done}
        if self.done:
            data["model"] = self.model
            data["total_tokens"] = self.total_tokens
        return data

    def to_ndjson(self) -> bytes:
        return (json.dumps(self.to_dict(), ensure_ascii=False) + "\n").encode("utf-8")


TRANSPORT_ERRORS = (httpx.HTTPError, httpx.StreamError, OSError)


class StreamTranslator:
    """
    Evented-text to token-record translator for one streaming request.

    States: awaiting a chunk, buffering, classifying a complete line, and the
    two terminal states ``done`` (stop event) and ``errored`` (transport
    failure). The running output-token total and the target model name survive
    across any number of chunks.
    """

    def __init__(self, model: str, request_id: str = "unknown", max_line_length: int = 1024 * 1024):
        self.model = model
        self.request_id = request_id
        self.buffer = StreamLineBuffer(max_line_length=max_line_length)
        self.total_tokens = 0
        self.state = "awaiting_chunk"
        self.discarded_payloads = 0
        self._consumed = False

    async def translate(self, byte_chunks: AsyncIterator[bytes]) -> AsyncIterator[StreamRecord]:
        """
        Yield normalized records for the given upstream byte chunks.

        Exactly one terminal record is produced when the upstream sends a stop
        event or the transport fails; no record follows it. Exhaustion without
        a stop event ends the sequence with no terminal record.
        """
        if self._consumed:
            raise RuntimeError("StreamTranslator instances are single-use")
        self._consumed = True

        started = time.monotonic()
        fragments = 0

        logger.info("Starting stream translation", request_id=self.request_id, model_id=self.model)

        chunk_iterator = byte_chunks.__aiter__()
        while True:
            self.state = "awaiting_chunk"
            try:
                chunk = await chunk_iterator.__anext__()
            except StopAsyncIteration:
                break
            except TRANSPORT_ERRORS as e:
                self.state = "errored"
                logger.error(
                    "Upstream stream failed mid-response",
                    exc_info=False,
                    request_id=self.request_id,
                    model_id=self.model,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    fragments_sent=fragments,
                )
                yield StreamRecord.terminal(
                    self.model, self.total_tokens, token=f"\n[Stream error: {self._describe(e)}]"
                )
                return

            self.state = "buffering"
            dropped_before = self.buffer.dropped_lines
            lines = self.buffer.feed(chunk)
            if self.buffer.dropped_lines > dropped_before:
                logger.warning(
                    "Dropping oversized stream line",
                    request_id=self.request_id,
                    max_line_length=self.buffer.max_line_length,
                )

            for line in lines:
                self.state = "classifying"
                record = self._classify(line)
                if record is None:
                    continue
                if record.done:
                    self.state = "done"
                    logger.performance(
                        "Stream translation",
                        started,
                        request_id=self.request_id,
                        model_id=self.model,
                        fragments_sent=fragments,
                        total_tokens=self.total_tokens,
                        discarded_payloads=self.discarded_payloads,
                    )
                    yield record
                    return
                fragments += 1
                yield record

        self.state = "done"
        logger.warning(
            "Upstream stream ended without a stop event",
            request_id=self.request_id,
            model_id=self.model,
            fragments_sent=fragments,
            unterminated_chars=len(self.buffer.remaining()),
        )

    def _classify(self, line: str) -> Optional[StreamRecord]:
        event = ParsedStreamEvent.from_line(line)
        if event is None:
            return None

        if not event.is_valid:
            self.discarded_payloads += 1
            logger.debug(
                "Discarding unparsable stream payload",
                request_id=self.request_id,
                parse_error=event.error,
                payload_preview=event.raw[:200],
            )
            return None

        if event.is_stop:
            return StreamRecord.terminal(self.model, self.total_tokens)

        output_tokens = event.output_tokens
        if output_tokens is not None:
            self.total_tokens = output_tokens
            return None

        text = event.text
        if text:
            return StreamRecord.fragment(text)
        return None

    @staticmethod
    def _describe(error: Exception) -> str:
        message = str(error)
        return f"{type(error).__name__}: {message}" if message else type(error).__name__
