"""
Project logger for request tracing and diagnostics.

Keyword arguments given to any method travel on the log record as ``extra``
fields. Debug dumps mask credential headers before anything is formatted, so a
key handed to the upstream client never reaches a log file.
"""

import json
import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from .config import setup_logging


SENSITIVE_HEADERS = {"x-api-key", "authorization"}
REDACTED = "***"

# Fields echoed in the request/response summary line
SUMMARY_FIELDS = (("model_id", "model"), ("provider_name", "provider"), ("method", "method"), ("path", "path"))


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Copy of ``headers`` with credential values masked."""
    return {
        key: (REDACTED if key.lower() in SENSITIVE_HEADERS else value)
        for key, value in headers.items()
    }


def _summary(prefix: str, fields: Dict[str, Any]) -> str:
    parts = [prefix]
    parts.extend(f"{label}={fields[name]}" for name, label in SUMMARY_FIELDS if fields.get(name))
    return " | ".join(parts)


class Logger:
    """Wrapper over the ``hydra-backend`` stdlib logger."""

    def __init__(self, base: Optional[logging.Logger] = None):
        self._logger = base or setup_logging()

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def is_debug_enabled(self) -> bool:
        return self._logger.isEnabledFor(logging.DEBUG)

    def _emit(self, level: int, message: str, exc_info: bool = False, **fields):
        self._logger.log(level, message, exc_info=exc_info, extra=fields or None)

    def debug(self, message: str, **fields):
        self._emit(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self._emit(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self._emit(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = True, **fields):
        self._emit(logging.ERROR, message, exc_info=exc_info, **fields)

    def request(self, operation: str, request_id: str, **fields):
        self.info(_summary(f"-> {operation}", fields), request_id=request_id, **fields)

    def response(self, operation: str, request_id: str, status_code: int = 200, **fields):
        message = _summary(f"<- {operation} | status={status_code}", fields)
        if "processing_time_ms" in fields:
            message += f" | {fields['processing_time_ms']}ms"
        self.info(message, request_id=request_id, status_code=status_code, **fields)

    def debug_data(self, title: str, data: Any, request_id: str, **fields):
        """
        Dump a payload at DEBUG level.

        A ``headers`` mapping inside ``data`` is redacted. Nothing is
        serialized when DEBUG is off.
        """
        if not self.is_debug_enabled():
            return

        if isinstance(data, dict) and isinstance(data.get("headers"), dict):
            data = {**data, "headers": redact_headers(data["headers"])}

        if isinstance(data, (dict, list)):
            body = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        else:
            body = str(data)

        heading = f"[{fields['component']}] {title}" if "component" in fields else title
        if "data_flow" in fields:
            heading += f" ({fields['data_flow']})"
        self.debug(f"{heading}\n{body}", request_id=request_id, **fields)

    def performance(self, operation: str, started: float, request_id: str, **fields):
        """Log the elapsed time since ``started`` (a ``time.monotonic()`` reading)."""
        duration_ms = int((time.monotonic() - started) * 1000)
        self.info(f"{operation} took {duration_ms}ms", request_id=request_id, duration_ms=duration_ms, **fields)

    @contextmanager
    def request_context(self, operation: str, request_id: str, **fields):
        """
        Bracket a unit of work with start and finish lines.

        An exception escaping the block is logged and re-raised; the finish
        line records whether the work succeeded.
        """
        started = time.monotonic()
        self.request(operation, request_id, **fields)
        outcome = "ok"
        try:
            yield
        except Exception as e:
            outcome = "failed"
            self.error(f"{operation} failed: {type(e).__name__}: {e}", exc_info=False, request_id=request_id, **fields)
            raise
        finally:
            duration_ms = int((time.monotonic() - started) * 1000)
            self.info(
                f"{operation} finished ({outcome}) in {duration_ms}ms",
                request_id=request_id,
                outcome=outcome,
                duration_ms=duration_ms,
                **fields
            )
