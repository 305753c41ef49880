import json
from dataclasses import dataclass
from typing import Optional, Dict, Any

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

CONTENT_DELTA = "content_block_delta"
USAGE_UPDATE = "message_delta"
STREAM_STOP = "message_stop"


@dataclass
class ParsedStreamEvent:
    """
    One decoded ``data:`` payload from the upstream event stream

    Attributes:
        raw: Payload text after the ``data: `` prefix
        data: Parsed JSON object (None if parsing failed)
        is_valid: Whether the payload decoded to a JSON object
        error: Parse error (if any)
    """
    raw: str
    data: Optional[Dict[str, Any]] = None
    is_valid: bool = True
    error: Optional[str] = None

    @classmethod
    def from_line(cls, line: str) -> Optional["ParsedStreamEvent"]:
        """
        Build an event from one stripped line.

        Returns None for lines that carry no payload: blanks, ``:`` comments,
        non-``data`` fields and the ``[DONE]`` sentinel.
        """
        if not line or line.startswith(':'):
            return None
        if not line.startswith(DATA_PREFIX):
            return None

        payload = line[len(DATA_PREFIX):]
        if payload == DONE_SENTINEL:
            return None

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            return cls(raw=payload, is_valid=False, error=str(e))
        if not isinstance(data, dict):
            return cls(raw=payload, is_valid=False, error="payload is not a JSON object")
        return cls(raw=payload, data=data)

    @property
    def kind(self) -> str:
        if not self.data:
            return ""
        kind = self.data.get("type")
        return kind if isinstance(kind, str) else ""

    @property
    def is_stop(self) -> bool:
        return self.kind == STREAM_STOP

    @property
    def text(self) -> str:
        """Text fragment of a content delta, empty for any other event"""
        if self.kind != CONTENT_DELTA:
            return ""
        delta = self.data.get("delta")
        if not isinstance(delta, dict):
            return ""
        text = delta.get("text")
        return text if isinstance(text, str) else ""

    @property
    def output_tokens(self) -> Optional[int]:
        """Output-token count of a usage update, None for any other event"""
        if self.kind != USAGE_UPDATE:
            return None
        usage = self.data.get("usage")
        if not isinstance(usage, dict):
            return None
        tokens = usage.get("output_tokens")
        if isinstance(tokens, bool) or not isinstance(tokens, int):
            return 0
        return max(tokens, 0)
