"""
Builders for upstream event streams used across the test suite.
"""
import json
from typing import Any, AsyncIterator, Dict, Iterable


MODEL = "claude-sonnet-4-5-20250929"


def sse_line(event: Dict[str, Any]) -> bytes:
    return f"data: {json.dumps(event)}\n".encode("utf-8")


def anthropic_stream(*texts: str, output_tokens: int = 0) -> bytes:
    """A complete Anthropic-style event stream producing the given text deltas."""
    parts = [
        b"event: message_start\n",
        sse_line({"type": "message_start", "message": {"id": "msg_1", "model": MODEL}}),
        b"\n",
        sse_line({"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}}),
        b"\n",
        b": keep-alive\n",
    ]
    for text in texts:
        parts.append(b"event: content_block_delta\n")
        parts.append(sse_line({"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": text}}))
        parts.append(b"\n")
    parts.extend([
        sse_line({"type": "content_block_stop", "index": 0}),
        b"\n",
        sse_line({"type": "message_delta", "delta": {"stop_reason": "end_turn"}, "usage": {"output_tokens": output_tokens}}),
        b"\n",
        b"data: [DONE]\n",
        sse_line({"type": "message_stop"}),
        b"\n",
    ])
    return b"".join(parts)


async def iterate(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk
